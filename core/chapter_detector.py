"""
Chapter detection for PageQuiz.

Derives a chapter list from a document using three tiers, in order:
1. Outline: the document's own table of contents
2. Pattern scan: heading-like lines ("Chapter 3", "Unit 2: Cells", ...)
3. Uniform partition: fixed-size page blocks

The first tier that returns at least one chapter wins.
"""

import logging
import math
import re
from typing import List, Optional

from config import Config
from core.document import Document
from core.dto import Chapter

logger = logging.getLogger(__name__)

# Each pattern captures (kind, number[, rest])
HEADING_PATTERNS = [
    re.compile(r"^(Chapter)\s+(\d+|[IVXLCDM]+)[:\s]*(.*)", re.IGNORECASE),
    re.compile(r"^(Section)\s+(\d+\.?\d*)[:\s]*(.*)", re.IGNORECASE),
    re.compile(r"^(Unit)\s+(\d+)[:\s]*(.*)", re.IGNORECASE),
    re.compile(r"^(Part)\s+(\d+|[IVXLCDM]+)[:\s]*(.*)", re.IGNORECASE),
    re.compile(r"^(\d+)\.\s+([A-Z][A-Za-z\s]{5,50})$"),
    re.compile(r"^(Lesson)\s+(\d+)[:\s]*(.*)", re.IGNORECASE),
    re.compile(r"^(Module)\s+(\d+)[:\s]*(.*)", re.IGNORECASE),
]

LINE_SPLIT = re.compile(r"\s{2,}|\n")


def match_heading(line: str) -> Optional[str]:
    """Return a chapter title if the line looks like a heading.

    Args:
        line: Candidate line

    Returns:
        "<Kind> <N>: <rest>" or "<Kind> <N>", None when no pattern matches
    """
    line = line.strip()
    for pattern in HEADING_PATTERNS:
        match = pattern.match(line)
        if not match:
            continue
        groups = match.groups()
        rest = groups[2].strip() if len(groups) > 2 and groups[2] else ""
        if rest:
            return f"{groups[0]} {groups[1]}: {rest}"
        return f"{groups[0]} {groups[1].strip()}"
    return None


class ChapterDetector:
    """Detects chapters with outline, pattern and uniform tiers.

    Usage:
        detector = ChapterDetector()
        chapters = await detector.detect(document)
        print(detector.last_tier)  # "outline", "pattern" or "uniform"
    """

    def __init__(
        self,
        scan_max_pages: int = Config.CHAPTER_SCAN_MAX_PAGES,
        scan_max_lines: int = Config.CHAPTER_SCAN_MAX_LINES,
        preview_chars: int = Config.CHAPTER_PREVIEW_CHARS,
        max_sections: int = Config.UNIFORM_MAX_SECTIONS,
    ):
        self.scan_max_pages = scan_max_pages
        self.scan_max_lines = scan_max_lines
        self.preview_chars = preview_chars
        self.max_sections = max_sections
        self.last_tier = "none"

    async def detect(self, document: Document) -> List[Chapter]:
        """Detect chapters, trying each tier in order.

        Args:
            document: Document to analyze

        Returns:
            Chapters with previews; empty only for an empty document
        """
        num_pages = await document.page_count()

        chapters = await self.from_outline(document, num_pages)
        self.last_tier = "outline"

        if not chapters:
            chapters = await self.from_headings(document, num_pages)
            self.last_tier = "pattern"

        if not chapters:
            chapters = self.uniform_partition(num_pages)
            self.last_tier = "uniform" if chapters else "none"

        for chapter in chapters:
            chapter.preview = await self._preview(document, chapter.start_page)

        logger.info(f"[CHAPTERS] Detected {len(chapters)} chapters via {self.last_tier} tier")
        return chapters

    async def from_outline(self, document: Document, num_pages: int) -> List[Chapter]:
        """Build chapters from the document's top-level outline."""
        try:
            outline = await document.outline()
            if not outline:
                return []

            starts = []
            for entry in outline:
                starts.append(await document.resolve_destination(entry.destination))
        except Exception as e:
            logger.debug(f"[CHAPTERS] Outline unavailable: {e}")
            return []

        chapters = []
        for i, entry in enumerate(outline):
            start_page = starts[i] or 1

            end_page = num_pages
            if i < len(outline) - 1 and starts[i + 1] is not None:
                end_page = starts[i + 1] - 1
                if end_page < 1:
                    end_page = num_pages

            chapters.append(
                Chapter(
                    id=i + 1,
                    title=entry.title or f"Section {i + 1}",
                    start_page=start_page,
                    end_page=max(start_page, end_page),
                )
            )
        return chapters

    async def from_headings(self, document: Document, num_pages: int) -> List[Chapter]:
        """Scan the first pages for heading-like lines."""
        chapters: List[Chapter] = []
        seen = set()

        for page_number in range(1, min(num_pages, self.scan_max_pages) + 1):
            try:
                text = await document.page_text(page_number)
            except Exception as e:
                logger.debug(f"[CHAPTERS] Could not read page {page_number}: {e}")
                continue

            lines = [line for line in LINE_SPLIT.split(text) if line.strip()]
            for line in lines[: self.scan_max_lines]:
                title = match_heading(line)
                if title is None or title.lower() in seen:
                    continue

                seen.add(title.lower())
                chapters.append(
                    Chapter(
                        id=len(chapters) + 1,
                        title=title,
                        start_page=page_number,
                        end_page=num_pages,
                    )
                )
                # One chapter per page keeps ranges disjoint
                break

        for current, following in zip(chapters, chapters[1:]):
            current.end_page = following.start_page - 1

        return chapters

    def uniform_partition(self, num_pages: int) -> List[Chapter]:
        """Split the document into at most max_sections equal page blocks."""
        if num_pages < 1:
            return []

        block = math.ceil(num_pages / min(self.max_sections, num_pages))
        chapters = []
        for start in range(1, num_pages + 1, block):
            end = min(start + block - 1, num_pages)
            chapters.append(
                Chapter(id=len(chapters) + 1, title=f"Pages {start}–{end}", start_page=start, end_page=end)
            )
        return chapters

    async def _preview(self, document: Document, page_number: int) -> str:
        try:
            text = await document.page_text(page_number)
        except Exception:
            return ""

        text = " ".join(text.split())
        if len(text) > self.preview_chars:
            return text[: self.preview_chars].strip() + "..."
        return text

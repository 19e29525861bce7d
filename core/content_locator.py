"""
Page selection for PageQuiz exams.

Resolves a PageSelection (current page, explicit range, chapters, whole
document) into the sorted list of page numbers to extract text from.
"""

import logging
from typing import List, Optional

from core.chapter_detector import ChapterDetector
from core.document import Document
from core.dto import Chapter, PageSelection, SelectionMode
from core.exceptions import DocumentUnavailable, NoContentForChapters

logger = logging.getLogger(__name__)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


class ContentLocator:
    """Resolves page selections for one document.

    Detected chapters are cached, so chapter detection runs at most once
    per document unless refresh_chapters() is called.
    """

    def __init__(self, document: Optional[Document], detector: Optional[ChapterDetector] = None):
        self.document = document
        self.detector = detector or ChapterDetector()
        self.chapters: Optional[List[Chapter]] = None

    async def detect_chapters(self) -> List[Chapter]:
        """Return detected chapters, running detection on first use."""
        if self.chapters is None:
            await self.refresh_chapters()
        return self.chapters

    async def refresh_chapters(self) -> List[Chapter]:
        """Run chapter detection again."""
        if self.document is None:
            raise DocumentUnavailable()
        self.chapters = await self.detector.detect(self.document)
        return self.chapters

    async def resolve(self, selection: PageSelection) -> List[int]:
        """Resolve a selection to page numbers.

        Args:
            selection: Page selection

        Returns:
            Sorted, deduplicated, 1-based page numbers

        Raises:
            DocumentUnavailable: If no document is loaded
            NoContentForChapters: If the selected chapters hold no pages
        """
        if self.document is None:
            raise DocumentUnavailable()

        num_pages = await self.document.page_count()
        mode = selection.mode

        if mode == SelectionMode.CURRENT:
            return [clamp(selection.current_page, 1, num_pages)] if num_pages else []

        if mode == SelectionMode.RANGE:
            start = max(selection.start_page, 1)
            end = min(selection.end_page or num_pages, num_pages)
            return list(range(start, end + 1))

        if mode == SelectionMode.CHAPTERS:
            return await self._resolve_chapters(selection.chapter_ids, num_pages)

        return list(range(1, num_pages + 1))

    async def _resolve_chapters(self, chapter_ids: List[int], num_pages: int) -> List[int]:
        chapters = await self.detect_chapters()

        if chapter_ids:
            wanted = set(chapter_ids)
            selected = [c for c in chapters if c.id in wanted]
        else:
            selected = list(chapters)

        if not selected:
            logger.info("[PAGES] No chapters matched the selection, using the whole document")
            return list(range(1, num_pages + 1))

        pages = set()
        for chapter in selected:
            for page in range(chapter.start_page, chapter.end_page + 1):
                if 1 <= page <= num_pages:
                    pages.add(page)

        if not pages:
            raise NoContentForChapters([c.id for c in selected])

        return sorted(pages)

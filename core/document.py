"""
Document access for PageQuiz.

Defines the Document interface the exam pipeline reads from and two
implementations:
- PDFDocument: PDF files via PyMuPDF
- TextDocument: in-memory pages (plain text files, tests, host apps that
  already extracted the text)
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)

PAGE_BREAK = "\f"


@dataclass(frozen=True)
class OutlineEntry:
    """Top-level outline (table of contents) entry.

    Attributes:
        title: Entry title as stored in the document
        destination: Opaque reference, resolved with Document.resolve_destination()
    """

    title: str
    destination: Any = None


class Document(Protocol):
    """Protocol for paginated documents.

    Any object implementing these coroutines can back an exam session.
    Page numbers are 1-based.
    """

    async def page_count(self) -> int:
        ...

    async def page_text(self, page_number: int) -> str:
        ...

    async def outline(self) -> Optional[List[OutlineEntry]]:
        """Return top-level outline entries, or None when the document has none."""
        ...

    async def resolve_destination(self, destination: Any) -> Optional[int]:
        """Return the page number an outline destination points to, if known."""
        ...


class PDFDocument:
    """PDF file read with PyMuPDF (fitz).

    The file stays open until close() is called; use as a context manager:

        with PDFDocument(Path("book.pdf")) as doc:
            text = await doc.page_text(1)
    """

    def __init__(self, pdf_path: Path):
        """Open a PDF.

        Args:
            pdf_path: Path to PDF file

        Raises:
            FileNotFoundError: If the PDF does not exist
        """
        pdf_path = Path(pdf_path)
        if not pdf_path.exists():
            raise FileNotFoundError(f"PDF not found: {pdf_path}")

        self.path = pdf_path
        self._doc = fitz.open(pdf_path)
        logger.debug(f"Opened {pdf_path.name} ({len(self._doc)} pages)")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self._doc is not None:
            self._doc.close()
            self._doc = None

    async def page_count(self) -> int:
        return len(self._doc)

    async def page_text(self, page_number: int) -> str:
        return await asyncio.to_thread(self._read_page, page_number)

    def _read_page(self, page_number: int) -> str:
        if not 1 <= page_number <= len(self._doc):
            raise IndexError(f"Page {page_number} out of range (1-{len(self._doc)})")
        page = self._doc[page_number - 1]
        return page.get_text()

    async def outline(self) -> Optional[List[OutlineEntry]]:
        # simple TOC rows: [level, title, page]; page is 1-based, <= 0 when unresolved
        toc = self._doc.get_toc(simple=True)
        if not toc:
            return None
        return [
            OutlineEntry(title=title, destination=page)
            for level, title, page in (row[:3] for row in toc)
            if level == 1
        ]

    async def resolve_destination(self, destination: Any) -> Optional[int]:
        if isinstance(destination, int) and 1 <= destination <= len(self._doc):
            return destination
        return None


class TextDocument:
    """Document held in memory as a list of page texts.

    Outline destinations are page numbers.
    """

    def __init__(self, pages: Sequence[str], outline: Optional[Sequence[OutlineEntry]] = None):
        self.pages = list(pages)
        self._outline = list(outline) if outline else None

    @classmethod
    def from_text_file(cls, path: Path) -> "TextDocument":
        """Load a plain text file, one page per form-feed separated chunk."""
        text = Path(path).read_text(encoding="utf-8")
        return cls(text.split(PAGE_BREAK))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        pass

    async def page_count(self) -> int:
        return len(self.pages)

    async def page_text(self, page_number: int) -> str:
        if not 1 <= page_number <= len(self.pages):
            raise IndexError(f"Page {page_number} out of range (1-{len(self.pages)})")
        return self.pages[page_number - 1]

    async def outline(self) -> Optional[List[OutlineEntry]]:
        return list(self._outline) if self._outline else None

    async def resolve_destination(self, destination: Any) -> Optional[int]:
        if isinstance(destination, int) and 1 <= destination <= len(self.pages):
            return destination
        return None


def open_document(path: Path):
    """Open a PDF or plain text file as a Document."""
    path = Path(path)
    if path.suffix.lower() == ".pdf":
        return PDFDocument(path)
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")
    return TextDocument.from_text_file(path)

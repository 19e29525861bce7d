"""Text extraction for the selected pages of a document."""

import logging
from typing import Iterable

from config import Config
from core.document import Document
from core.exceptions import DocumentUnavailable, InsufficientContent

logger = logging.getLogger(__name__)


class TextExtractor:
    """Concatenates page text in page order, one blank line between pages."""

    def __init__(self, min_chars: int = Config.MIN_CONTENT_CHARS):
        self.min_chars = min_chars

    async def extract(self, document: Document, pages: Iterable[int]) -> str:
        """Extract text from the given pages.

        Args:
            document: Source document
            pages: 1-based page numbers

        Returns:
            Concatenated text

        Raises:
            DocumentUnavailable: If document is None
            InsufficientContent: If the text is shorter than min_chars
        """
        if document is None:
            raise DocumentUnavailable()

        chunks = []
        for page_number in sorted(set(pages)):
            text = (await document.page_text(page_number)).strip()
            if text:
                chunks.append(text)

        content = "\n\n".join(chunks)
        logger.debug(f"[EXTRACT] {len(chunks)} pages, {len(content)} characters")

        if len(content) < self.min_chars:
            raise InsufficientContent(len(content), self.min_chars)
        return content

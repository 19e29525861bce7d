"""
Unit tests for ContentLocator and TextExtractor.

Page selection modes, chapter fallbacks and text extraction bounds.
"""

import asyncio
import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.content_locator import ContentLocator
from core.document import OutlineEntry, TextDocument
from core.dto import Chapter, PageSelection, SelectionMode
from core.exceptions import DocumentUnavailable, InsufficientContent, NoContentForChapters
from core.text_extractor import TextExtractor


def make_document(n=10):
    outline = [OutlineEntry("One", 1), OutlineEntry("Two", 4), OutlineEntry("Three", 8)]
    pages = [f"Page {i} text about a topic that is long enough to matter." for i in range(1, n + 1)]
    return TextDocument(pages, outline=outline)


class CountingDetector:
    """Detector returning fixed chapters and counting calls."""

    def __init__(self, chapters):
        self.chapters = chapters
        self.calls = 0

    async def detect(self, document):
        self.calls += 1
        return [Chapter(c.id, c.title, c.start_page, c.end_page) for c in self.chapters]


def resolve(locator, **kwargs):
    return asyncio.run(locator.resolve(PageSelection(**kwargs)))


# ============================================================================
# Test Simple Modes
# ============================================================================


def test_current_page_clamped():
    locator = ContentLocator(make_document(5))
    assert resolve(locator, mode=SelectionMode.CURRENT, current_page=3) == [3]
    assert resolve(locator, mode=SelectionMode.CURRENT, current_page=99) == [5]
    assert resolve(locator, mode=SelectionMode.CURRENT, current_page=0) == [1]
    print("✓ test_current_page_clamped passed")


def test_range_inclusive_and_clamped():
    locator = ContentLocator(make_document(10))
    assert resolve(locator, mode=SelectionMode.RANGE, start_page=2, end_page=4) == [2, 3, 4]
    assert resolve(locator, mode=SelectionMode.RANGE, start_page=-3, end_page=100) == list(range(1, 11))
    assert resolve(locator, mode=SelectionMode.RANGE, start_page=8) == [8, 9, 10]
    print("✓ test_range_inclusive_and_clamped passed")


def test_range_start_after_end_is_empty():
    locator = ContentLocator(make_document(10))
    assert resolve(locator, mode=SelectionMode.RANGE, start_page=6, end_page=2) == []
    print("✓ test_range_start_after_end_is_empty passed")


def test_all_pages():
    locator = ContentLocator(make_document(4))
    assert resolve(locator, mode=SelectionMode.ALL) == [1, 2, 3, 4]
    print("✓ test_all_pages passed")


# ============================================================================
# Test Chapter Mode
# ============================================================================


def test_chapters_union_sorted():
    locator = ContentLocator(make_document(10))
    pages = resolve(locator, mode=SelectionMode.CHAPTERS, chapter_ids=[3, 1])
    assert pages == [1, 2, 3, 8, 9, 10]
    print("✓ test_chapters_union_sorted passed")


def test_chapters_without_ids_selects_all_detected():
    locator = ContentLocator(make_document(10))
    assert resolve(locator, mode=SelectionMode.CHAPTERS) == list(range(1, 11))
    assert [c.title for c in locator.chapters] == ["One", "Two", "Three"]
    print("✓ test_chapters_without_ids_selects_all_detected passed")


def test_unmatched_chapter_ids_use_whole_document():
    locator = ContentLocator(make_document(6))
    assert resolve(locator, mode=SelectionMode.CHAPTERS, chapter_ids=[42]) == list(range(1, 7))
    print("✓ test_unmatched_chapter_ids_use_whole_document passed")


def test_chapters_outside_document_raise():
    detector = CountingDetector([Chapter(1, "Ghost", 20, 25)])
    locator = ContentLocator(make_document(5), detector)

    with pytest.raises(NoContentForChapters) as exc_info:
        resolve(locator, mode=SelectionMode.CHAPTERS, chapter_ids=[1])

    assert exc_info.value.chapter_ids == [1]
    print("✓ test_chapters_outside_document_raise passed")


def test_pages_outside_document_dropped():
    detector = CountingDetector([Chapter(1, "Tail", 4, 9)])
    locator = ContentLocator(make_document(5), detector)
    assert resolve(locator, mode=SelectionMode.CHAPTERS, chapter_ids=[1]) == [4, 5]
    print("✓ test_pages_outside_document_dropped passed")


def test_detection_runs_once_per_document():
    detector = CountingDetector([Chapter(1, "All", 1, 3)])
    locator = ContentLocator(make_document(3), detector)

    resolve(locator, mode=SelectionMode.CHAPTERS)
    resolve(locator, mode=SelectionMode.CHAPTERS, chapter_ids=[1])
    assert detector.calls == 1

    asyncio.run(locator.refresh_chapters())
    assert detector.calls == 2
    print("✓ test_detection_runs_once_per_document passed")


def test_missing_document():
    locator = ContentLocator(None)
    with pytest.raises(DocumentUnavailable):
        resolve(locator, mode=SelectionMode.ALL)
    with pytest.raises(DocumentUnavailable):
        asyncio.run(locator.detect_chapters())
    print("✓ test_missing_document passed")


# ============================================================================
# Test TextExtractor
# ============================================================================


def test_extract_joins_pages_with_blank_line():
    doc = TextDocument(["  first page text  ", "", "   ", "third page text\n"])
    text = asyncio.run(TextExtractor(min_chars=10).extract(doc, [4, 1, 2, 3]))
    assert text == "first page text\n\nthird page text"
    print("✓ test_extract_joins_pages_with_blank_line passed")


def test_extract_insufficient_content():
    doc = TextDocument(["tiny"])
    with pytest.raises(InsufficientContent) as exc_info:
        asyncio.run(TextExtractor().extract(doc, [1]))

    assert exc_info.value.length == 4
    assert exc_info.value.minimum == 100
    print("✓ test_extract_insufficient_content passed")


def test_extract_empty_selection():
    doc = make_document(3)
    with pytest.raises(InsufficientContent):
        asyncio.run(TextExtractor().extract(doc, []))
    print("✓ test_extract_empty_selection passed")


def test_extract_without_document():
    with pytest.raises(DocumentUnavailable):
        asyncio.run(TextExtractor().extract(None, [1]))
    print("✓ test_extract_without_document passed")

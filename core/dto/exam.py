"""Exam-related Data Transfer Objects.

Chapters, page selections, exam configuration and score snapshots.
These carry no behaviour beyond small derived properties.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

from core.exam_types import Difficulty, ExamType

from .questions import Question


@dataclass
class Chapter:
    """Detected structural partition of a document.

    Attributes:
        id: 1-based identifier, sequential within one detection result
        title: Chapter title (outline title, matched heading or "Pages X–Y")
        start_page: First page, 1-based
        end_page: Last page, inclusive, never before start_page
        preview: First characters of the start page's text
    """

    id: int
    title: str
    start_page: int
    end_page: int
    preview: str = ""

    @property
    def page_count(self) -> int:
        return self.end_page - self.start_page + 1


class SelectionMode(Enum):
    """Which pages of the document to examine."""

    CURRENT = "current"
    RANGE = "range"
    CHAPTERS = "chapters"
    ALL = "all"


@dataclass
class PageSelection:
    """Page selection for an exam.

    Attributes:
        mode: Selection mode
        current_page: Page shown to the user (CURRENT mode)
        start_page: First page of an explicit range (RANGE mode)
        end_page: Last page of an explicit range, None for the last page
        chapter_ids: Selected chapter ids (CHAPTERS mode); empty selects all
    """

    mode: SelectionMode = SelectionMode.ALL
    current_page: int = 1
    start_page: int = 1
    end_page: Optional[int] = None
    chapter_ids: List[int] = field(default_factory=list)


@dataclass
class ExamConfig:
    """What exam to build."""

    exam_type: ExamType
    question_count: int = 10
    difficulty: Difficulty = Difficulty.MEDIUM
    page_selection: PageSelection = field(default_factory=PageSelection)


@dataclass(frozen=True)
class Mistake:
    """A question whose submitted answer was wrong or missing.

    Attributes:
        index: 0-based question index within the session
        question: The question as presented
        user_answer: Submitted answer, None when unanswered
        correct_answer: Reference answer (letter, token, text or term->letter map)
        explanation: Explanation from the question, empty when absent
    """

    index: int
    question: Question
    user_answer: Any
    correct_answer: Any
    explanation: str = ""

    @property
    def number(self) -> int:
        """1-based question number for display."""
        return self.index + 1


@dataclass(frozen=True)
class ScoreResult:
    """Immutable snapshot produced when an exam is submitted."""

    correct: int
    total: int
    percent: int
    mistakes: Tuple[Mistake, ...] = ()
    elapsed_seconds: int = 0

    @property
    def headline(self) -> str:
        """Short verdict for the score band."""
        if self.percent >= 90:
            return "Excellent!"
        elif self.percent >= 80:
            return "Great Job!"
        elif self.percent >= 70:
            return "Good Work!"
        elif self.percent >= 60:
            return "Keep Practicing!"
        return "Don't Give Up!"

    @property
    def elapsed_label(self) -> str:
        minutes, seconds = divmod(self.elapsed_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

"""Data Transfer Objects for pagequiz-core business logic."""

from .exam import (
    Chapter,
    ExamConfig,
    Mistake,
    PageSelection,
    ScoreResult,
    SelectionMode,
)
from .questions import (
    BLANK_MARKER,
    OPTION_LETTERS,
    QUESTION_TYPES,
    FillBlankQuestion,
    MatchingQuestion,
    MCQQuestion,
    Question,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)

__all__ = [
    # Enums
    "SelectionMode",
    # Exam DTOs
    "Chapter",
    "PageSelection",
    "ExamConfig",
    "Mistake",
    "ScoreResult",
    # Question variants
    "Question",
    "QUESTION_TYPES",
    "MCQQuestion",
    "TrueFalseQuestion",
    "FillBlankQuestion",
    "MatchingQuestion",
    "ShortAnswerQuestion",
    "OPTION_LETTERS",
    "BLANK_MARKER",
]

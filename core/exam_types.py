"""
Exam Type Definitions.

This module defines the exam kinds a user can request and the difficulty
levels passed through to the question generator.

Exam kinds map one-to-one to question variants, except COMPREHENSIVE,
which mixes every variant in a single exam.
"""

from enum import Enum


class ExamType(Enum):
    """Exam kinds.

    Usage:
        from core.exam_types import ExamType

        exam_type = ExamType.from_string("mcq")
        print(exam_type.display_name)  # "Multiple Choice"
    """

    MCQ = "mcq"
    TRUE_FALSE = "truefalse"
    FILL_BLANK = "fillblank"
    MATCHING = "matching"
    SHORT_ANSWER = "shortanswer"

    # Mixed exam: every variant, allocated by fixed ratios
    COMPREHENSIVE = "comprehensive"

    def __str__(self) -> str:
        """String representation of exam type."""
        return self.value

    @property
    def display_name(self) -> str:
        """Human-readable name of the exam type."""
        names = {
            ExamType.MCQ: "Multiple Choice",
            ExamType.TRUE_FALSE: "True/False",
            ExamType.FILL_BLANK: "Fill in the Blank",
            ExamType.MATCHING: "Matching",
            ExamType.SHORT_ANSWER: "Short Answer",
            ExamType.COMPREHENSIVE: "Comprehensive",
        }
        return names.get(self, self.value)

    @classmethod
    def from_string(cls, value: str) -> "ExamType":
        """Convert string to ExamType enum.

        Args:
            value: String value (e.g., "mcq", "truefalse")

        Returns:
            ExamType enum

        Raises:
            ValueError: If value is not a valid exam type
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid_types = [t.value for t in cls]
            raise ValueError(
                f"Invalid exam type '{value}'. Valid types: {', '.join(valid_types)}"
            )


class Difficulty(Enum):
    """Requested difficulty. Only described to the generator, never enforced."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    def __str__(self) -> str:
        return self.value

    @property
    def description(self) -> str:
        """Phrase embedded in generation prompts."""
        descriptions = {
            Difficulty.EASY: "basic recall and simple understanding",
            Difficulty.MEDIUM: "moderate analysis and application",
            Difficulty.HARD: "deep analysis, synthesis, and critical thinking",
        }
        return descriptions[self]

    @classmethod
    def from_string(cls, value: str) -> "Difficulty":
        """Convert string to Difficulty enum.

        Raises:
            ValueError: If value is not a valid difficulty
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = [d.value for d in cls]
            raise ValueError(f"Invalid difficulty '{value}'. Valid values: {', '.join(valid)}")

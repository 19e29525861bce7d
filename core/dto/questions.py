"""Question Data Transfer Objects.

One frozen dataclass per question variant. ``Question`` is the closed union
of all variants; consumers dispatch on it with ``isinstance`` and raise
``TypeError`` for anything else.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Dict, Tuple, Union

from core.exam_types import ExamType

OPTION_LETTERS = ("A", "B", "C", "D")
BLANK_MARKER = "_____"


@dataclass(frozen=True)
class MCQQuestion:
    """Multiple choice question with exactly four options.

    Attributes:
        question: Question stem
        options: Option texts, in A-D order
        correct_answer: Letter of the correct option
        explanation: Why the answer is correct (may be empty)
    """

    kind: ClassVar[ExamType] = ExamType.MCQ

    question: str
    options: Tuple[str, str, str, str]
    correct_answer: str
    explanation: str = ""


@dataclass(frozen=True)
class TrueFalseQuestion:
    """Statement to be judged TRUE or FALSE."""

    kind: ClassVar[ExamType] = ExamType.TRUE_FALSE

    question: str
    correct_answer: str  # "TRUE" or "FALSE"
    explanation: str = ""


@dataclass(frozen=True)
class FillBlankQuestion:
    """Sentence with a blank marker and the word or phrase that fills it."""

    kind: ClassVar[ExamType] = ExamType.FILL_BLANK

    question: str
    correct_answer: str
    explanation: str = ""


@dataclass(frozen=True)
class MatchingQuestion:
    """Terms to be matched with lettered definitions.

    Attributes:
        terms: Term texts; term N is ``terms[N - 1]``
        definitions: Definition texts; letter A is ``definitions[0]``
        correct_answers: 1-based term index -> definition letter
    """

    kind: ClassVar[ExamType] = ExamType.MATCHING

    terms: Tuple[str, ...]
    definitions: Tuple[str, ...]
    correct_answers: Dict[int, str] = field(default_factory=dict)

    @property
    def question(self) -> str:
        return "Match the terms with their correct definitions"

    @property
    def explanation(self) -> str:
        return ""


@dataclass(frozen=True)
class ShortAnswerQuestion:
    """Open question graded by key-term coverage."""

    kind: ClassVar[ExamType] = ExamType.SHORT_ANSWER

    question: str
    expected_answer: str
    key_terms: Tuple[str, ...] = ()

    @property
    def explanation(self) -> str:
        return ""


Question = Union[
    MCQQuestion,
    TrueFalseQuestion,
    FillBlankQuestion,
    MatchingQuestion,
    ShortAnswerQuestion,
]

QUESTION_TYPES = (
    MCQQuestion,
    TrueFalseQuestion,
    FillBlankQuestion,
    MatchingQuestion,
    ShortAnswerQuestion,
)

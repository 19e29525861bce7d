"""
Parsing of free-text generator output into typed questions.

The generator is asked for blocks separated by "---" with fixed markers
(see core.prompt_builder). Each question type has a block parser with the
signature ``parse(block) -> Optional[Question]``; a block missing any
required marker yields None and is dropped.
"""

import logging
import re
from typing import Callable, Dict, List, Optional

from core.dto import (
    FillBlankQuestion,
    MatchingQuestion,
    MCQQuestion,
    Question,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)
from core.exam_types import ExamType
from core.prompt_builder import BLOCK_SEPARATOR

logger = logging.getLogger(__name__)

BlockParser = Callable[[str], Optional[Question]]

_FLAGS = re.DOTALL | re.MULTILINE

# MCQ
_MCQ_QUESTION = re.compile(r"^\s*Q:\s*(.+?)(?=\n\s*A\))", _FLAGS)
_MCQ_OPTIONS = [
    re.compile(r"^\s*A\)\s*(.+?)(?=\n\s*B\))", _FLAGS),
    re.compile(r"^\s*B\)\s*(.+?)(?=\n\s*C\))", _FLAGS),
    re.compile(r"^\s*C\)\s*(.+?)(?=\n\s*D\))", _FLAGS),
    re.compile(r"^\s*D\)\s*(.+?)(?=\n\s*CORRECT:)", _FLAGS),
]
_MCQ_CORRECT = re.compile(r"CORRECT:\s*\[?\(?([A-D])\b", re.IGNORECASE)

# Shared by TrueFalse / FillBlank
_ANSWER_QUESTION = re.compile(r"^\s*Q:\s*(.+?)(?=\n\s*ANSWER:)", _FLAGS)
_TF_ANSWER = re.compile(r"(?<![A-Z_])ANSWER:\s*\[?(TRUE|FALSE)\b", re.IGNORECASE)
_FB_ANSWER = re.compile(r"(?<![A-Z_])ANSWER:\s*(.+?)(?=\n\s*EXPLANATION:|\Z)", re.DOTALL)
_EXPLANATION = re.compile(r"EXPLANATION:\s*(.+)", re.DOTALL)
_BLANK = re.compile(r"_{3,}")

# Matching
_TERMS_SECTION = re.compile(r"(?<![A-Z_])TERMS:\s*(.+?)(?=DEFINITIONS:)", re.DOTALL | re.IGNORECASE)
_DEFINITIONS_SECTION = re.compile(r"DEFINITIONS:\s*(.+?)(?=ANSWERS:)", re.DOTALL | re.IGNORECASE)
_ANSWERS_SECTION = re.compile(r"ANSWERS:\s*(.+)", re.DOTALL | re.IGNORECASE)
_TERM_ITEM = re.compile(r"^\s*\d+[.)]\s*(.+)$", re.MULTILINE)
_DEFINITION_ITEM = re.compile(r"^\s*[A-Z][.)]\s*(.+)$", re.MULTILINE)
_ANSWER_PAIR = re.compile(r"(\d+)\s*-\s*([A-Z])\b", re.IGNORECASE)

# Short answer
_SA_QUESTION = re.compile(r"^\s*Q:\s*(.+?)(?=\n\s*EXPECTED_ANSWER:)", _FLAGS)
_SA_EXPECTED = re.compile(r"EXPECTED_ANSWER:\s*(.+?)(?=\n\s*KEY_TERMS:|\Z)", re.DOTALL)
_SA_KEY_TERMS = re.compile(r"KEY_TERMS:\s*(.+)", re.DOTALL)


def _clean(block: str) -> str:
    """Normalize line endings and drop markdown bold markers."""
    return block.replace("\r\n", "\n").replace("**", "").strip()


def _group(pattern: re.Pattern, block: str) -> Optional[str]:
    match = pattern.search(block)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def parse_mcq(block: str) -> Optional[MCQQuestion]:
    block = _clean(block)
    question = _group(_MCQ_QUESTION, block)
    options = [_group(pattern, block) for pattern in _MCQ_OPTIONS]
    correct = _group(_MCQ_CORRECT, block)

    if not question or not correct or not all(options):
        return None

    return MCQQuestion(
        question=question,
        options=tuple(options),
        correct_answer=correct.upper(),
        explanation=_group(_EXPLANATION, block) or "",
    )


def parse_true_false(block: str) -> Optional[TrueFalseQuestion]:
    block = _clean(block)
    question = _group(_ANSWER_QUESTION, block)
    answer = _group(_TF_ANSWER, block)

    if not question or not answer:
        return None

    return TrueFalseQuestion(
        question=question,
        correct_answer=answer.upper(),
        explanation=_group(_EXPLANATION, block) or "",
    )


def parse_fill_blank(block: str) -> Optional[FillBlankQuestion]:
    block = _clean(block)
    question = _group(_ANSWER_QUESTION, block)
    answer = _group(_FB_ANSWER, block)

    if not question or not answer or not _BLANK.search(question):
        return None

    return FillBlankQuestion(
        question=question,
        correct_answer=answer,
        explanation=_group(_EXPLANATION, block) or "",
    )


def parse_matching(block: str) -> Optional[MatchingQuestion]:
    block = _clean(block)
    terms_section = _group(_TERMS_SECTION, block)
    definitions_section = _group(_DEFINITIONS_SECTION, block)
    answers_section = _group(_ANSWERS_SECTION, block)

    if not terms_section or not definitions_section or not answers_section:
        return None

    terms = [t.strip() for t in _TERM_ITEM.findall(terms_section)]
    definitions = [d.strip() for d in _DEFINITION_ITEM.findall(definitions_section)]
    answers = {int(num): letter.upper() for num, letter in _ANSWER_PAIR.findall(answers_section)}

    if not terms or not definitions or not answers:
        return None

    return MatchingQuestion(terms=tuple(terms), definitions=tuple(definitions), correct_answers=answers)


def parse_short_answer(block: str) -> Optional[ShortAnswerQuestion]:
    block = _clean(block)
    question = _group(_SA_QUESTION, block)
    expected = _group(_SA_EXPECTED, block)

    if not question or not expected:
        return None

    key_terms = _group(_SA_KEY_TERMS, block) or ""
    return ShortAnswerQuestion(
        question=question,
        expected_answer=expected,
        key_terms=tuple(t.strip().lower() for t in key_terms.split(",") if t.strip()),
    )


BLOCK_PARSERS: Dict[ExamType, BlockParser] = {
    ExamType.MCQ: parse_mcq,
    ExamType.TRUE_FALSE: parse_true_false,
    ExamType.FILL_BLANK: parse_fill_blank,
    ExamType.MATCHING: parse_matching,
    ExamType.SHORT_ANSWER: parse_short_answer,
}

# Comprehensive blocks go to the first parser that accepts them
COMPREHENSIVE_ORDER = [
    ExamType.MCQ,
    ExamType.MATCHING,
    ExamType.SHORT_ANSWER,
    ExamType.FILL_BLANK,
    ExamType.TRUE_FALSE,
]


def parse_any(block: str) -> Optional[Question]:
    """Parse a block of unknown type."""
    for exam_type in COMPREHENSIVE_ORDER:
        question = BLOCK_PARSERS[exam_type](block)
        if question is not None:
            return question
    return None


class ResponseParser:
    """Turns raw generator text into a list of questions."""

    def parse(self, text: str, exam_type: ExamType) -> List[Question]:
        """Parse generator output.

        Args:
            text: Raw generator output
            exam_type: Requested exam type; COMPREHENSIVE accepts every variant

        Returns:
            Fully-formed questions in response order (possibly empty)
        """
        if exam_type == ExamType.COMPREHENSIVE:
            parse_block = parse_any
        else:
            parse_block = BLOCK_PARSERS[exam_type]

        questions = []
        dropped = 0
        for block in self.split_blocks(text):
            question = parse_block(block)
            if question is None:
                dropped += 1
                continue
            questions.append(question)

        if dropped:
            logger.debug(f"[PARSE] Dropped {dropped} incomplete blocks ({exam_type.value})")
        return questions

    @staticmethod
    def split_blocks(text: str) -> List[str]:
        return [block for block in (text or "").split(BLOCK_SEPARATOR) if block.strip()]

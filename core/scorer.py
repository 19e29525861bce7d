"""
Scoring of submitted exam answers.

Each question variant has its own equivalence rule:
- MCQ: exact letter match
- True/False: case-insensitive token match, bool answers accepted
- Fill in the blank: trimmed, case-insensitive equality
- Matching: all-or-nothing over the reference pairs
- Short answer: at least half of the key terms (rounded up) mentioned
"""

import logging
import math
from typing import Any, Dict, Mapping, Optional, Sequence

from core.dto import (
    FillBlankQuestion,
    MatchingQuestion,
    MCQQuestion,
    Mistake,
    Question,
    ScoreResult,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)

logger = logging.getLogger(__name__)

NOT_ANSWERED = "Not answered"


def _matching_key(key: Any) -> Optional[int]:
    try:
        return int(key)
    except (TypeError, ValueError):
        return None


class Scorer:
    """Scores answers against questions."""

    SHORT_ANSWER_THRESHOLD = 0.5

    # ==================== PUBLIC METHODS ====================

    def is_correct(self, question: Question, answer: Any) -> bool:
        """Check one answer.

        Args:
            question: Question variant
            answer: Submitted answer, None when unanswered

        Returns:
            True if the answer is correct

        Raises:
            TypeError: For an unknown question type
        """
        if answer is None:
            return False

        if isinstance(question, MCQQuestion):
            return answer == question.correct_answer

        if isinstance(question, TrueFalseQuestion):
            return self._true_false_token(answer) == question.correct_answer.upper()

        if isinstance(question, FillBlankQuestion):
            return (
                isinstance(answer, str)
                and answer.strip().lower() == question.correct_answer.strip().lower()
            )

        if isinstance(question, MatchingQuestion):
            return self._matching_correct(question, answer)

        if isinstance(question, ShortAnswerQuestion):
            return self._short_answer_correct(question, answer)

        raise TypeError(f"Unknown question type: {type(question).__name__}")

    def correct_answer(self, question: Question) -> Any:
        """Reference answer shown in the mistake report."""
        if isinstance(question, (MCQQuestion, TrueFalseQuestion, FillBlankQuestion)):
            return question.correct_answer
        if isinstance(question, MatchingQuestion):
            return dict(question.correct_answers)
        if isinstance(question, ShortAnswerQuestion):
            return question.expected_answer
        raise TypeError(f"Unknown question type: {type(question).__name__}")

    def score(
        self,
        questions: Sequence[Question],
        answers: Mapping[int, Any],
        elapsed_seconds: int = 0,
    ) -> ScoreResult:
        """Score a whole exam.

        Args:
            questions: Exam questions in order
            answers: 0-based question index -> submitted answer
            elapsed_seconds: Time spent on the exam

        Returns:
            ScoreResult snapshot
        """
        correct = 0
        mistakes = []

        for index, question in enumerate(questions):
            answer = answers.get(index)
            if self.is_correct(question, answer):
                correct += 1
                continue

            mistakes.append(
                Mistake(
                    index=index,
                    question=question,
                    user_answer=answer,
                    correct_answer=self.correct_answer(question),
                    explanation=question.explanation or "",
                )
            )

        total = len(questions)
        percent = math.floor(correct / total * 100 + 0.5) if total else 0

        logger.info(f"[SCORE] {correct}/{total} correct ({percent}%)")
        return ScoreResult(
            correct=correct,
            total=total,
            percent=percent,
            mistakes=tuple(mistakes),
            elapsed_seconds=int(elapsed_seconds),
        )

    @staticmethod
    def format_answer(value: Any) -> str:
        """Render an answer or reference answer for display."""
        if value is None or value == "" or value == {}:
            return NOT_ANSWERED
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, Mapping):
            keys = sorted(value, key=lambda k: (_matching_key(k) is None, _matching_key(k) or 0, str(k)))
            return ", ".join(f"{k}→{value[k]}" for k in keys)
        return str(value)

    # ==================== PRIVATE METHODS ====================

    @staticmethod
    def _true_false_token(answer: Any) -> str:
        if isinstance(answer, bool):
            return "TRUE" if answer else "FALSE"
        return str(answer).strip().upper()

    @staticmethod
    def _matching_correct(question: MatchingQuestion, answer: Any) -> bool:
        if not isinstance(answer, Mapping):
            return False

        submitted: Dict[int, str] = {}
        for key, letter in answer.items():
            term = _matching_key(key)
            if term is not None and letter is not None:
                submitted[term] = str(letter).strip().upper()

        return all(
            submitted.get(term) == letter.upper() for term, letter in question.correct_answers.items()
        )

    def _short_answer_correct(self, question: ShortAnswerQuestion, answer: Any) -> bool:
        if not isinstance(answer, str) or not answer.strip():
            return False

        if not question.key_terms:
            return True

        text = answer.lower()
        matched = sum(1 for term in question.key_terms if term.lower() in text)
        return matched >= math.ceil(len(question.key_terms) * self.SHORT_ANSWER_THRESHOLD)

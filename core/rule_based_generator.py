"""
Heuristic question generation used when no generator provider answers.

Questions are built from sentences of the extracted text: a key word is
blanked for MCQ and fill-in-the-blank, swapped for false statements, and
the whole sentence becomes the model answer for short answer questions.
The shape of the output is deterministic, the content is randomized.
"""

import logging
import random
import re
import string
from typing import List, Optional

from config import Config
from core.dto import (
    BLANK_MARKER,
    OPTION_LETTERS,
    FillBlankQuestion,
    MatchingQuestion,
    MCQQuestion,
    Question,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)
from core.exam_types import Difficulty, ExamType

logger = logging.getLogger(__name__)

SENTENCE_SPLIT = re.compile(r"[.!?]+")
NON_ALNUM = re.compile(r"[^A-Za-z0-9]")

QUESTION_CHARS = 200
SHORT_ANSWER_CHARS = 100
KEY_TERM_COUNT = 5
COMPREHENSIVE_CYCLE = (ExamType.MCQ, ExamType.TRUE_FALSE, ExamType.FILL_BLANK)


def _truncate(text: str, limit: int = QUESTION_CHARS) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _replace_word(sentence: str, word: str, replacement: str) -> str:
    """Replace the first case-insensitive whole-word occurrence of `word`."""
    pattern = re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)
    replaced = pattern.sub(lambda _: replacement, sentence, count=1)
    if replaced == sentence:
        replaced = sentence.replace(word, replacement, 1)
    return replaced


class RuleBasedGenerator:
    """Builds questions from raw text without any provider.

    Usage:
        generator = RuleBasedGenerator(rng=random.Random(42))
        questions = generator.generate(text, ExamType.MCQ, count=5)
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        min_sentence_chars: int = Config.MIN_SENTENCE_CHARS,
        min_word_chars: int = Config.MIN_WORD_CHARS,
        matching_pairs: int = Config.MATCHING_PAIRS,
    ):
        self.rng = rng or random.Random()
        self.min_sentence_chars = min_sentence_chars
        self.min_word_chars = min_word_chars
        self.matching_pairs = matching_pairs

    # ==================== PUBLIC METHODS ====================

    def generate(
        self,
        text: str,
        exam_type: ExamType,
        count: int,
        difficulty: Optional[Difficulty] = None,
    ) -> List[Question]:
        """Generate up to `count` questions from `text`.

        Difficulty is accepted for interface parity and ignored.
        """
        sentences = self.sentences(text)

        if exam_type == ExamType.MATCHING:
            questions = self._matching(sentences)
            logger.info(f"[RULE_BASED] Generated {len(questions)} matching question(s)")
            return questions

        questions: List[Question] = []
        for i, sentence in enumerate(sentences[: max(count, 0)]):
            words = self.words(sentence)
            if len(words) < 3:
                continue

            if exam_type == ExamType.COMPREHENSIVE:
                question_type = COMPREHENSIVE_CYCLE[i % len(COMPREHENSIVE_CYCLE)]
            else:
                question_type = exam_type

            question = self._build(question_type, sentence, words)
            if question is not None:
                questions.append(question)

        logger.info(f"[RULE_BASED] Generated {len(questions)} question(s) from {len(sentences)} sentences")
        return questions

    def sentences(self, text: str) -> List[str]:
        """Candidate sentences, shuffled."""
        sentences = [s.strip() for s in SENTENCE_SPLIT.split(text or "")]
        sentences = [s for s in sentences if len(s) > self.min_sentence_chars]
        self.rng.shuffle(sentences)
        return sentences

    def words(self, sentence: str) -> List[str]:
        """Words of a sentence long enough to be quizzed on."""
        words = [w.strip(string.punctuation) for w in sentence.split()]
        return [w for w in words if len(w) > self.min_word_chars]

    # ==================== PRIVATE METHODS ====================

    def _build(self, question_type: ExamType, sentence: str, words: List[str]) -> Optional[Question]:
        if question_type == ExamType.MCQ:
            return self._mcq(sentence, words)
        if question_type == ExamType.TRUE_FALSE:
            return self._true_false(sentence, words)
        if question_type == ExamType.FILL_BLANK:
            return self._fill_blank(sentence, words)
        if question_type == ExamType.SHORT_ANSWER:
            return self._short_answer(sentence, words)
        raise ValueError(f"Unsupported question type for heuristic generation: {question_type}")

    def _mcq(self, sentence: str, words: List[str]) -> Optional[MCQQuestion]:
        if len(words) < 4:
            return None

        key_word = self.rng.choice(words)
        answer = NON_ALNUM.sub("", key_word)
        if not answer:
            return None
        blanked = _replace_word(sentence, key_word, BLANK_MARKER)

        # Options compare case-insensitively after normalization
        seen = {answer.lower()}
        distractors = []
        for word in words:
            candidate = NON_ALNUM.sub("", word)
            if not candidate or candidate.lower() in seen:
                continue
            seen.add(candidate.lower())
            distractors.append(candidate)
            if len(distractors) == 3:
                break
        while len(distractors) < 3:
            distractors.append("N/A")

        options = [answer] + distractors
        self.rng.shuffle(options)
        correct_index = options.index(answer)

        return MCQQuestion(
            question=f'Complete the sentence: "{_truncate(blanked)}"',
            options=tuple(options),
            correct_answer=OPTION_LETTERS[correct_index],
            explanation=f'The correct answer is "{key_word}" as it appears in the original text.',
        )

    def _true_false(self, sentence: str, words: List[str]) -> TrueFalseQuestion:
        statement = sentence
        if self.rng.random() <= 0.5:
            target = self.rng.choice(words)
            replacement = next((w for w in words if w.lower() != target.lower()), "something")
            statement = _replace_word(sentence, target, replacement)

        is_true = statement == sentence
        if is_true:
            explanation = "This statement is directly from the text."
        else:
            explanation = "This statement has been modified from the original text."

        return TrueFalseQuestion(
            question=f'"{_truncate(statement)}"',
            correct_answer="TRUE" if is_true else "FALSE",
            explanation=explanation,
        )

    def _fill_blank(self, sentence: str, words: List[str]) -> FillBlankQuestion:
        key_word = self.rng.choice(words)
        return FillBlankQuestion(
            question=_truncate(_replace_word(sentence, key_word, BLANK_MARKER)),
            correct_answer=key_word,
            explanation=f'The missing word "{key_word}" completes this sentence from the text.',
        )

    def _short_answer(self, sentence: str, words: List[str]) -> ShortAnswerQuestion:
        return ShortAnswerQuestion(
            question=f'Explain the following concept based on the text: "{sentence[:SHORT_ANSWER_CHARS]}..."',
            expected_answer=sentence,
            key_terms=tuple(w.lower() for w in words[:KEY_TERM_COUNT]),
        )

    def _matching(self, sentences: List[str]) -> List[MatchingQuestion]:
        chosen = sentences[: self.matching_pairs]
        if not chosen:
            return []

        # Term N pairs with the definition at letter N; definitions are not shuffled
        terms = tuple(" ".join(s.split()[:3]) for s in chosen)
        definitions = tuple(" ".join(s.split()[3:10]) for s in chosen)
        answers = {i + 1: string.ascii_uppercase[i] for i in range(len(chosen))}
        return [MatchingQuestion(terms=terms, definitions=definitions, correct_answers=answers)]

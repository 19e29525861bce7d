"""
Exam session state machine.

    SETUP --start()--> IN_PROGRESS --submit()--> SUBMITTED
                            ^                        |
                            +-------retake()---------+
    any state --reset()--> SETUP

start() runs the whole pipeline (locate pages, extract text, build the
prompt, generate questions). A failure anywhere leaves the session in
SETUP and the error propagates to the caller.
"""

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from core.chapter_detector import ChapterDetector
from core.content_locator import ContentLocator
from core.document import Document
from core.dto import Chapter, ExamConfig, Question, ScoreResult
from core.exceptions import DocumentUnavailable, InvalidSessionState
from core.generation_client import GenerationClient
from core.prompt_builder import PromptBuilder
from core.scorer import Scorer
from core.text_extractor import TextExtractor

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle state of an exam session."""

    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class ExamSession:
    """One exam over one document.

    Usage:
        session = ExamSession(document, client)
        await session.start(ExamConfig(ExamType.MCQ, question_count=5))
        session.record_answer(0, "B")
        result = session.submit()
    """

    def __init__(
        self,
        document: Optional[Document],
        generation_client: GenerationClient,
        chapter_detector: Optional[ChapterDetector] = None,
        clock: Callable[[], float] = time.monotonic,
        extractor: Optional[TextExtractor] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        scorer: Optional[Scorer] = None,
    ):
        self.document = document
        self.generation_client = generation_client
        self.locator = ContentLocator(document, chapter_detector)
        self.clock = clock
        self.extractor = extractor or TextExtractor()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.scorer = scorer or Scorer()

        self._state = SessionState.SETUP
        self._config: Optional[ExamConfig] = None
        self._questions: Tuple[Question, ...] = ()
        self._answers: Dict[int, Any] = {}
        self._current_index = 0
        self._result: Optional[ScoreResult] = None
        self._generation_source: Optional[str] = None
        self._generation_failures: List[Tuple[str, str]] = []

        # Timer: seconds banked before the current run plus the running segment
        self._banked_seconds = 0.0
        self._running_since: Optional[float] = None
        self._started_at: Optional[float] = None

    # ==================== LIFECYCLE ====================

    async def start(self, config: ExamConfig) -> List[Question]:
        """Generate an exam and begin it.

        Args:
            config: Exam configuration

        Returns:
            The exam questions

        Raises:
            DocumentUnavailable: If the session has no document
            ValueError: If question_count is not positive
            InsufficientContent, NoContentForChapters, GenerationExhausted:
                From the pipeline; the session stays in SETUP
        """
        if self._state == SessionState.IN_PROGRESS:
            logger.info("[SESSION] Discarding the running exam")
        self.reset()

        if self.document is None:
            raise DocumentUnavailable()
        if config.question_count < 1:
            raise ValueError(f"question_count must be positive, got {config.question_count}")

        pages = await self.locator.resolve(config.page_selection)
        text = await self.extractor.extract(self.document, pages)
        prompt = self.prompt_builder.build(
            text, config.exam_type, config.question_count, config.difficulty
        )
        result = await self.generation_client.generate(
            prompt, config.exam_type, config.question_count, text, config.difficulty
        )

        self._config = config
        self._questions = tuple(result.questions)
        self._generation_source = result.source
        self._generation_failures = list(result.failures)
        self._begin_attempt()

        logger.info(
            f"[SESSION] Started {config.exam_type.value} exam: {len(self._questions)} questions "
            f"from {len(pages)} pages (source: {result.source})"
        )
        return list(self._questions)

    def submit(self) -> ScoreResult:
        """Stop the timer and score the answers.

        Raises:
            InvalidSessionState: If no exam is in progress
        """
        if self._state != SessionState.IN_PROGRESS:
            raise InvalidSessionState(f"Cannot submit from state '{self._state.value}'")

        self._stop_timer()
        self._result = self.scorer.score(self._questions, self._answers, self.elapsed_seconds)
        self._state = SessionState.SUBMITTED
        return self._result

    def retake(self) -> None:
        """Start the same questions again with no answers.

        Raises:
            InvalidSessionState: If the exam has not been submitted
        """
        if self._state != SessionState.SUBMITTED:
            raise InvalidSessionState(f"Cannot retake from state '{self._state.value}'")

        self._begin_attempt()
        logger.info("[SESSION] Retaking exam")

    def reset(self) -> None:
        """Discard everything and return to SETUP."""
        self._state = SessionState.SETUP
        self._config = None
        self._questions = ()
        self._answers = {}
        self._current_index = 0
        self._result = None
        self._generation_source = None
        self._generation_failures = []
        self._banked_seconds = 0.0
        self._running_since = None
        self._started_at = None

    def pause(self) -> None:
        """Freeze the timer. No-op unless an exam is running."""
        if self._state != SessionState.IN_PROGRESS or self.is_paused:
            return
        self._stop_timer()

    def resume(self) -> None:
        """Continue a paused timer."""
        if self._state != SessionState.IN_PROGRESS or not self.is_paused:
            return
        self._running_since = self.clock()

    # ==================== NAVIGATION & ANSWERS ====================

    def next(self) -> int:
        if self._questions:
            self._current_index = min(self._current_index + 1, len(self._questions) - 1)
        return self._current_index

    def previous(self) -> int:
        if self._questions:
            self._current_index = max(self._current_index - 1, 0)
        return self._current_index

    def go_to(self, index: int) -> int:
        """Jump to a question, clamped to the valid range."""
        if self._questions:
            self._current_index = max(0, min(index, len(self._questions) - 1))
        return self._current_index

    def record_answer(self, index: int, value: Any) -> None:
        """Store an answer, replacing any earlier one for that question."""
        if self._state != SessionState.IN_PROGRESS:
            logger.debug(f"[SESSION] Ignoring answer for {index}: session is {self._state.value}")
            return
        if not 0 <= index < len(self._questions):
            logger.warning(f"[SESSION] Ignoring answer for invalid question index {index}")
            return
        self._answers[index] = value

    async def detect_chapters(self) -> List[Chapter]:
        """Chapters of the document, detected on first use."""
        return await self.locator.detect_chapters()

    # ==================== ACCESSORS ====================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def config(self) -> Optional[ExamConfig]:
        return self._config

    @property
    def questions(self) -> Tuple[Question, ...]:
        return self._questions

    @property
    def answers(self) -> Dict[int, Any]:
        return dict(self._answers)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_question(self) -> Optional[Question]:
        if not self._questions:
            return None
        return self._questions[self._current_index]

    @property
    def progress(self) -> Tuple[int, int]:
        """(1-based position, total)."""
        if not self._questions:
            return (0, 0)
        return (self._current_index + 1, len(self._questions))

    @property
    def progress_label(self) -> str:
        position, total = self.progress
        return f"Question {position} of {total}"

    @property
    def is_last_question(self) -> bool:
        return bool(self._questions) and self._current_index == len(self._questions) - 1

    @property
    def is_paused(self) -> bool:
        return self._state == SessionState.IN_PROGRESS and self._running_since is None

    @property
    def paused_elapsed(self) -> float:
        """Seconds banked before the current running segment."""
        return self._banked_seconds

    @property
    def started_at(self) -> Optional[float]:
        return self._started_at

    @property
    def elapsed_seconds(self) -> int:
        elapsed = self._banked_seconds
        if self._running_since is not None:
            elapsed += self.clock() - self._running_since
        return int(elapsed)

    @property
    def elapsed_label(self) -> str:
        minutes, seconds = divmod(self.elapsed_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    @property
    def result(self) -> Optional[ScoreResult]:
        return self._result

    @property
    def generation_source(self) -> Optional[str]:
        return self._generation_source

    @property
    def generation_failures(self) -> List[Tuple[str, str]]:
        return list(self._generation_failures)

    @property
    def chapters(self) -> List[Chapter]:
        """Chapters detected so far (empty until detection has run)."""
        return list(self.locator.chapters or [])

    # ==================== PRIVATE METHODS ====================

    def _begin_attempt(self) -> None:
        self._answers = {}
        self._current_index = 0
        self._result = None
        self._banked_seconds = 0.0
        self._started_at = self.clock()
        self._running_since = self._started_at
        self._state = SessionState.IN_PROGRESS

    def _stop_timer(self) -> None:
        if self._running_since is not None:
            self._banked_seconds += self.clock() - self._running_since
            self._running_since = None

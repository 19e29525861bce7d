"""
Unit tests for ExamSession.

Covers the SETUP -> IN_PROGRESS -> SUBMITTED state machine, navigation,
answer capture, the pause-aware timer and failure handling in start().
The clock is a manual fake; generation is a stub or a scripted LLM.
"""

import asyncio
import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.document import TextDocument
from core.dto import (
    ExamConfig,
    FillBlankQuestion,
    MCQQuestion,
    PageSelection,
    SelectionMode,
    TrueFalseQuestion,
)
from core.exam_session import ExamSession, SessionState
from core.exam_types import Difficulty, ExamType
from core.exceptions import (
    DocumentUnavailable,
    GenerationExhausted,
    InsufficientContent,
    InvalidSessionState,
)
from core.generation_client import GenerationClient, GenerationResult
from models.llm_manager import LLMResponse

PAGE_TEXT = (
    "Cells are the basic structural and functional units of every living organism. "
    "Mitochondria generate chemical energy through cellular respiration processes. "
)

QUESTIONS = [
    MCQQuestion("Powerhouse?", ("Nucleus", "Mitochondria", "Ribosome", "Golgi"), "B"),
    TrueFalseQuestion("Cells exist.", "TRUE"),
    FillBlankQuestion("The _____ holds DNA.", "nucleus"),
]


# ============================================================================
# Mocks
# ============================================================================


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class StubClient:
    """Generation client returning fixed questions, or raising."""

    def __init__(self, questions=None, error=None):
        self.questions = QUESTIONS if questions is None else questions
        self.error = error
        self.calls = []

    async def generate(self, prompt, exam_type, count, text, difficulty=None):
        self.calls.append((prompt, exam_type, count, text, difficulty))
        if self.error:
            raise self.error
        return GenerationResult(questions=list(self.questions)[:count], source="stub")


class ScriptedLLM:
    def __init__(self, text):
        self.text = text

    async def generate(self, provider_id, prompt, temperature=0.7, max_tokens=4096):
        return LLMResponse(text=self.text, model=provider_id, success=True)


def make_session(client=None, pages=None, clock=None):
    document = TextDocument(pages or [PAGE_TEXT, PAGE_TEXT, "Chapter 3: Short"])
    return ExamSession(document, client or StubClient(), clock=clock or FakeClock())


def start(session, exam_type=ExamType.MCQ, count=3, **selection):
    config = ExamConfig(
        exam_type=exam_type,
        question_count=count,
        difficulty=Difficulty.MEDIUM,
        page_selection=PageSelection(**selection),
    )
    return asyncio.run(session.start(config))


# ============================================================================
# Test Lifecycle
# ============================================================================


def test_start_enters_in_progress():
    client = StubClient()
    session = make_session(client)
    assert session.state == SessionState.SETUP

    questions = start(session)

    assert session.state == SessionState.IN_PROGRESS
    assert questions == QUESTIONS
    assert session.current_index == 0
    assert session.answers == {}
    assert session.generation_source == "stub"
    assert session.progress == (1, 3)
    assert session.progress_label == "Question 1 of 3"

    prompt, exam_type, count, text, difficulty = client.calls[0]
    assert exam_type == ExamType.MCQ
    assert count == 3
    assert "Mitochondria generate chemical energy" in prompt
    assert text.startswith("Cells are the basic")
    assert difficulty == Difficulty.MEDIUM
    print("✓ test_start_enters_in_progress passed")


def test_start_uses_selected_pages():
    client = StubClient()
    session = make_session(client, pages=[PAGE_TEXT, "Other page " * 20])

    start(session, mode=SelectionMode.CURRENT, current_page=2)

    text = client.calls[0][3]
    assert "Other page" in text
    assert "Mitochondria" not in text
    print("✓ test_start_uses_selected_pages passed")


def test_submit_and_retake():
    clock = FakeClock()
    session = make_session(clock=clock)
    start(session)

    session.record_answer(0, "B")
    session.record_answer(2, "Nucleus")
    clock.advance(42)
    result = session.submit()

    assert session.state == SessionState.SUBMITTED
    assert session.result is result
    assert (result.correct, result.total, result.percent) == (2, 3, 67)
    assert result.elapsed_seconds == 42

    questions_before = session.questions
    session.next()
    session.retake()

    assert session.state == SessionState.IN_PROGRESS
    assert session.questions is questions_before
    assert session.answers == {}
    assert session.current_index == 0
    assert session.result is None
    assert session.elapsed_seconds == 0
    print("✓ test_submit_and_retake passed")


def test_invalid_transitions():
    session = make_session()
    with pytest.raises(InvalidSessionState):
        session.submit()
    with pytest.raises(InvalidSessionState):
        session.retake()

    start(session)
    with pytest.raises(InvalidSessionState):
        session.retake()

    session.submit()
    with pytest.raises(InvalidSessionState):
        session.submit()
    print("✓ test_invalid_transitions passed")


def test_reset_returns_to_setup():
    session = make_session()
    start(session)
    session.record_answer(0, "A")

    session.reset()

    assert session.state == SessionState.SETUP
    assert session.questions == ()
    assert session.answers == {}
    assert session.current_question is None
    assert session.progress_label == "Question 0 of 0"
    print("✓ test_reset_returns_to_setup passed")


def test_restart_discards_running_exam():
    session = make_session()
    start(session)
    session.record_answer(0, "A")
    session.next()

    start(session, count=2)

    assert len(session.questions) == 2
    assert session.answers == {}
    assert session.current_index == 0
    print("✓ test_restart_discards_running_exam passed")


# ============================================================================
# Test Navigation and Answers
# ============================================================================


def test_navigation_clamped():
    session = make_session()
    start(session)

    assert session.previous() == 0
    assert session.next() == 1
    assert session.next() == 2
    assert session.is_last_question
    assert session.next() == 2
    assert session.state == SessionState.IN_PROGRESS
    assert session.go_to(-5) == 0
    print("✓ test_navigation_clamped passed")


def test_answers_kept_while_navigating_and_overwritten():
    session = make_session()
    start(session)

    session.record_answer(0, "A")
    session.next()
    session.previous()
    assert session.answers == {0: "A"}

    session.record_answer(0, "B")
    assert session.answers == {0: "B"}
    print("✓ test_answers_kept_while_navigating_and_overwritten passed")


def test_record_answer_ignored_when_invalid():
    session = make_session()
    session.record_answer(0, "A")
    assert session.answers == {}

    start(session)
    session.record_answer(7, "A")
    session.record_answer(-1, "A")
    assert session.answers == {}

    session.submit()
    session.record_answer(0, "B")
    assert session.answers == {}
    print("✓ test_record_answer_ignored_when_invalid passed")


# ============================================================================
# Test Timer
# ============================================================================


def test_pause_and_resume_timer():
    clock = FakeClock()
    session = make_session(clock=clock)
    start(session)

    clock.advance(30)
    session.pause()
    assert session.is_paused
    assert session.paused_elapsed == 30

    clock.advance(500)
    assert session.elapsed_seconds == 30

    session.resume()
    assert not session.is_paused
    clock.advance(35)
    assert session.elapsed_seconds == 65
    assert session.elapsed_label == "01:05"

    result = session.submit()
    assert result.elapsed_seconds == 65
    clock.advance(100)
    assert session.elapsed_seconds == 65
    print("✓ test_pause_and_resume_timer passed")


def test_submit_while_paused():
    clock = FakeClock()
    session = make_session(clock=clock)
    start(session)
    clock.advance(10)
    session.pause()
    clock.advance(10)

    assert session.submit().elapsed_seconds == 10
    print("✓ test_submit_while_paused passed")


# ============================================================================
# Test Failures in start()
# ============================================================================


def test_missing_document():
    session = ExamSession(None, StubClient())
    with pytest.raises(DocumentUnavailable):
        start(session)
    assert session.state == SessionState.SETUP
    print("✓ test_missing_document passed")


def test_insufficient_content_stays_in_setup():
    session = make_session(pages=["Too short."])
    with pytest.raises(InsufficientContent):
        start(session)
    assert session.state == SessionState.SETUP
    print("✓ test_insufficient_content_stays_in_setup passed")


def test_generation_failure_discards_previous_exam():
    client = StubClient()
    session = make_session(client)
    start(session)

    client.error = GenerationExhausted([("p1", "down")])
    with pytest.raises(GenerationExhausted):
        start(session)

    assert session.state == SessionState.SETUP
    assert session.questions == ()
    print("✓ test_generation_failure_discards_previous_exam passed")


def test_question_count_must_be_positive():
    session = make_session()
    with pytest.raises(ValueError):
        start(session, count=0)
    assert session.state == SessionState.SETUP
    print("✓ test_question_count_must_be_positive passed")


# ============================================================================
# Test Full Pipeline
# ============================================================================


def test_pipeline_with_real_generation_client():
    text = """Q: What do mitochondria generate?
A) Light
B) Chemical energy
C) Water
D) Salt
CORRECT: B
EXPLANATION: Cellular respiration.
---"""
    client = GenerationClient(ScriptedLLM(text), ["gemini-2.0-flash"])
    session = make_session(client)

    start(session, count=5)
    session.record_answer(0, "B")
    result = session.submit()

    assert session.generation_source == "gemini-2.0-flash"
    assert result.percent == 100
    print("✓ test_pipeline_with_real_generation_client passed")


def test_chapter_selection_and_accessor():
    pages = ["Chapter 1: Cells\n" + PAGE_TEXT, PAGE_TEXT, "Chapter 2: Energy\nShort."]
    client = StubClient()
    session = make_session(client, pages=pages)
    assert session.chapters == []

    start(session, mode=SelectionMode.CHAPTERS, chapter_ids=[1])

    assert [c.title for c in session.chapters] == ["Chapter 1: Cells", "Chapter 2: Energy"]
    assert "Chapter 2" not in client.calls[0][3]
    print("✓ test_chapter_selection_and_accessor passed")

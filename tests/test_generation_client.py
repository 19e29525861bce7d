"""
Unit tests for GenerationClient and the fallback combinator.

Uses a scripted LLM: each provider id maps to the response (or exception)
it produces. No network access.
"""

import asyncio
import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.dto import MCQQuestion, TrueFalseQuestion
from core.exam_types import ExamType
from core.exceptions import GenerationExhausted
from core.fallback import AttemptResult, first_success
from core.generation_client import RULE_BASED_SOURCE, GenerationClient
from core.provider_router import ProviderChain
from models.llm_manager import ErrorCode, LLMResponse

MCQ_TEXT = """Q: What is the powerhouse of the cell?
A) Nucleus
B) Mitochondria
C) Ribosome
D) Golgi apparatus
CORRECT: B
EXPLANATION: Mitochondria produce ATP.
---
Q: Which organelle makes proteins?
A) Ribosome
B) Vacuole
C) Lysosome
D) Centriole
CORRECT: A
---
Q: Where does photosynthesis happen?
A) Nucleus
B) Cytoplasm
C) Chloroplast
D) Membrane
CORRECT: C
---"""


# ============================================================================
# Mocks
# ============================================================================


def ok(text, model="m"):
    return LLMResponse(text=text, model=model, success=True)


def fail(code, model="m"):
    return LLMResponse.failure(model, f"{code.value} error", code)


class MockLLM:
    """LLM whose answers are scripted per provider id."""

    def __init__(self, script):
        self.script = script
        self.calls = []

    async def generate(self, provider_id, prompt, temperature=0.7, max_tokens=4096):
        self.calls.append((provider_id, temperature, max_tokens))
        outcome = self.script[provider_id]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class MockFallback:
    """Rule-based stand-in that records whether it ran."""

    def __init__(self, questions=None):
        self.questions = questions if questions is not None else [
            TrueFalseQuestion("Cells exist.", "TRUE", "From the text.")
        ]
        self.calls = 0

    def generate(self, text, exam_type, count, difficulty=None):
        self.calls += 1
        return list(self.questions)


def run(client, exam_type=ExamType.MCQ, count=10):
    return asyncio.run(client.generate("prompt", exam_type, count, "source text"))


# ============================================================================
# Test first_success
# ============================================================================


def test_first_success_order_and_failures():
    tried = []

    async def attempt(candidate):
        tried.append(candidate)
        if candidate == "c":
            return AttemptResult.success(candidate.upper())
        return AttemptResult.retry(f"{candidate} down")

    outcome = asyncio.run(first_success(["a", "b", "c", "d"], attempt))

    assert outcome.succeeded
    assert outcome.value == "C"
    assert outcome.candidate == "c"
    assert outcome.failures == [("a", "a down"), ("b", "b down")]
    assert tried == ["a", "b", "c"]
    print("✓ test_first_success_order_and_failures passed")


def test_first_success_fatal_stops_chain():
    tried = []

    async def attempt(candidate):
        tried.append(candidate)
        return AttemptResult.fatal("no key")

    outcome = asyncio.run(first_success(["a", "b"], attempt))

    assert not outcome.succeeded
    assert tried == ["a"]
    assert outcome.failures == [("a", "no key")]
    print("✓ test_first_success_fatal_stops_chain passed")


def test_first_success_exception_is_retryable():
    async def attempt(candidate):
        if candidate == "a":
            raise ConnectionError("reset")
        return AttemptResult.success(1)

    outcome = asyncio.run(first_success(["a", "b"], attempt))

    assert outcome.candidate == "b"
    assert outcome.failures[0][0] == "a"
    assert "ConnectionError" in outcome.failures[0][1]
    print("✓ test_first_success_exception_is_retryable passed")


def test_first_success_no_candidates():
    async def attempt(candidate):
        return AttemptResult.success(candidate)

    outcome = asyncio.run(first_success([], attempt))
    assert not outcome.succeeded
    assert outcome.failures == []
    print("✓ test_first_success_no_candidates passed")


# ============================================================================
# Test GenerationClient
# ============================================================================


def test_third_provider_used_after_rate_limit_and_not_found():
    llm = MockLLM(
        {
            "p1": fail(ErrorCode.RATE_LIMITED),
            "p2": fail(ErrorCode.NOT_FOUND),
            "p3": ok(MCQ_TEXT),
        }
    )
    fallback = MockFallback()
    client = GenerationClient(llm, ["p1", "p2", "p3"], fallback_generator=fallback)

    result = run(client)

    assert result.source == "p3"
    assert not result.used_fallback
    assert len(result.questions) == 3
    assert all(isinstance(q, MCQQuestion) for q in result.questions)
    assert [p for p, _ in result.failures] == ["p1", "p2"]
    assert fallback.calls == 0
    assert [c[0] for c in llm.calls] == ["p1", "p2", "p3"]
    print("✓ test_third_provider_used_after_rate_limit_and_not_found passed")


def test_all_providers_fail_uses_rule_based():
    llm = MockLLM(
        {
            "p1": fail(ErrorCode.RATE_LIMITED),
            "p2": fail(ErrorCode.OTHER),
            "p3": RuntimeError("socket closed"),
        }
    )
    fallback = MockFallback()
    client = GenerationClient(llm, ["p1", "p2", "p3"], fallback_generator=fallback)

    result = run(client)

    assert result.source == RULE_BASED_SOURCE
    assert result.used_fallback
    assert fallback.calls == 1
    assert len(result.failures) == 3
    assert isinstance(result.questions[0], TrueFalseQuestion)
    print("✓ test_all_providers_fail_uses_rule_based passed")


def test_unparseable_response_tries_next_provider():
    llm = MockLLM({"p1": ok("Sorry, here are some thoughts instead."), "p2": ok(MCQ_TEXT)})
    client = GenerationClient(llm, ["p1", "p2"], fallback_generator=MockFallback())

    result = run(client)

    assert result.source == "p2"
    assert result.failures == [("p1", "response contained no parseable questions")]
    print("✓ test_unparseable_response_tries_next_provider passed")


def test_missing_credentials_stops_chain():
    llm = MockLLM({"p1": fail(ErrorCode.NO_CREDENTIALS), "p2": ok(MCQ_TEXT)})
    fallback = MockFallback()
    client = GenerationClient(llm, ["p1", "p2"], fallback_generator=fallback)

    result = run(client)

    assert [c[0] for c in llm.calls] == ["p1"]
    assert result.source == RULE_BASED_SOURCE
    assert fallback.calls == 1
    print("✓ test_missing_credentials_stops_chain passed")


def test_result_truncated_to_requested_count():
    llm = MockLLM({"p1": ok(MCQ_TEXT)})
    client = GenerationClient(llm, ["p1"])
    assert len(run(client, count=2).questions) == 2

    many = MockFallback([TrueFalseQuestion(f"S{i}", "TRUE") for i in range(8)])
    offline = GenerationClient(llm, [], fallback_generator=many)
    assert len(run(offline, count=5).questions) == 5
    print("✓ test_result_truncated_to_requested_count passed")


def test_exhausted_when_fallback_empty():
    llm = MockLLM({"p1": fail(ErrorCode.RATE_LIMITED)})
    client = GenerationClient(llm, ["p1"], fallback_generator=MockFallback([]))

    with pytest.raises(GenerationExhausted) as exc_info:
        run(client)

    assert exc_info.value.failures == [("p1", "rate_limited error")]
    print("✓ test_exhausted_when_fallback_empty passed")


def test_without_llm_goes_straight_to_rule_based():
    fallback = MockFallback()
    client = GenerationClient(None, ["p1"], fallback_generator=fallback)

    result = run(client)

    assert result.source == RULE_BASED_SOURCE
    assert result.failures == []
    print("✓ test_without_llm_goes_straight_to_rule_based passed")


def test_from_chain_passes_sampling_parameters():
    llm = MockLLM({"gemini-a": ok(MCQ_TEXT)})
    chain = ProviderChain(name="custom", providers=["gemini-a"], temperature=0.2, max_tokens=1234)
    client = GenerationClient.from_chain(llm, chain)

    run(client)

    assert llm.calls == [("gemini-a", 0.2, 1234)]
    print("✓ test_from_chain_passes_sampling_parameters passed")


def test_real_rule_based_fallback_end_to_end():
    text = (
        "Mitochondria generate chemical energy through cellular respiration processes. "
        "Chloroplasts capture sunlight energy during photosynthesis reactions. "
        "Ribosomes assemble proteins following messenger instructions carefully."
    )
    client = GenerationClient(MockLLM({"p1": fail(ErrorCode.NOT_FOUND)}), ["p1"])

    result = asyncio.run(client.generate("prompt", ExamType.MCQ, 2, text))

    assert result.used_fallback
    assert len(result.questions) == 2
    assert all(isinstance(q, MCQQuestion) for q in result.questions)
    print("✓ test_real_rule_based_fallback_end_to_end passed")

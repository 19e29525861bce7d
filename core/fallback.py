"""
Generic ordered fallback.

``first_success`` tries candidates strictly one after another and returns
the first successful attempt. It knows nothing about providers or
questions: callers describe each attempt with an ``AttemptResult``.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

C = TypeVar("C")
T = TypeVar("T")


@dataclass(frozen=True)
class AttemptResult(Generic[T]):
    """Outcome of one attempt.

    Attributes:
        value: Result of a successful attempt
        error: Failure reason (None on success)
        retryable: Whether the next candidate should be tried after a failure
    """

    value: Optional[T] = None
    error: Optional[str] = None
    retryable: bool = True

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "AttemptResult[T]":
        return cls(value=value)

    @classmethod
    def retry(cls, error: str) -> "AttemptResult[T]":
        return cls(error=error, retryable=True)

    @classmethod
    def fatal(cls, error: str) -> "AttemptResult[T]":
        return cls(error=error, retryable=False)


@dataclass
class FallbackOutcome(Generic[C, T]):
    """Result of a fallback run.

    ``candidate`` is the candidate that succeeded, None when all failed.
    ``failures`` lists (candidate, reason) in the order they were tried.
    """

    value: Optional[T] = None
    candidate: Optional[C] = None
    failures: List[Tuple[C, str]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.candidate is not None


async def first_success(
    candidates: Iterable[C],
    attempt: Callable[[C], Awaitable[AttemptResult[T]]],
) -> FallbackOutcome[C, T]:
    """Try candidates in order until one succeeds.

    An exception raised by ``attempt`` counts as a retryable failure. A
    non-retryable failure stops the chain.

    Args:
        candidates: Ordered candidates
        attempt: Coroutine function run once per candidate

    Returns:
        FallbackOutcome with the winning value or the collected failures
    """
    outcome: FallbackOutcome[C, T] = FallbackOutcome()

    for candidate in candidates:
        try:
            result = await attempt(candidate)
        except Exception as e:
            result = AttemptResult.retry(f"{type(e).__name__}: {e}")

        if result.ok:
            outcome.value = result.value
            outcome.candidate = candidate
            if outcome.failures:
                logger.info(f"[FALLBACK] '{candidate}' succeeded after {len(outcome.failures)} failure(s)")
            return outcome

        outcome.failures.append((candidate, result.error))
        logger.warning(f"[FALLBACK] '{candidate}' failed: {result.error}")

        if not result.retryable:
            logger.warning("[FALLBACK] Non-retryable failure, stopping chain")
            break

    return outcome

"""
Question generation through an ordered provider chain.

Providers are tried strictly one at a time. A provider is skipped when it
is rate limited, unknown, returns an error, raises, or answers with text
that parses to zero questions. Missing credentials stop the chain at once.
When no provider succeeds the rule-based generator builds the exam.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

from config import Config
from core.dto import Question
from core.exam_types import Difficulty, ExamType
from core.exceptions import GenerationExhausted
from core.fallback import AttemptResult, first_success
from core.provider_router import ProviderChain
from core.response_parser import ResponseParser
from core.rule_based_generator import RuleBasedGenerator
from models.llm_manager import ErrorCode, LLMResponse

logger = logging.getLogger(__name__)

RULE_BASED_SOURCE = "rule_based"


class LLMInterface(Protocol):
    """Protocol for the generative text collaborator."""

    async def generate(
        self, provider_id: str, prompt: str, temperature: float = ..., max_tokens: int = ...
    ) -> LLMResponse:
        ...


@dataclass
class GenerationResult:
    """Questions plus where they came from.

    Attributes:
        questions: Generated questions, at most the requested count
        source: Provider id that produced them, or "rule_based"
        failures: (provider, reason) for every provider that failed first
    """

    questions: List[Question]
    source: str
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def used_fallback(self) -> bool:
        return self.source == RULE_BASED_SOURCE


class GenerationClient:
    """Generates exam questions, falling back to heuristics.

    Usage:
        async with LLMManager() as llm:
            client = GenerationClient.from_chain(llm, router.get_chain("default"))
            result = await client.generate(prompt, ExamType.MCQ, 10, text)
    """

    def __init__(
        self,
        llm: Optional[LLMInterface],
        providers: Sequence[str] = (),
        parser: Optional[ResponseParser] = None,
        fallback_generator: Optional[RuleBasedGenerator] = None,
        temperature: float = Config.DEFAULT_TEMPERATURE,
        max_tokens: int = Config.DEFAULT_MAX_TOKENS,
    ):
        self.llm = llm
        self.providers = list(providers)
        self.parser = parser or ResponseParser()
        self.fallback_generator = fallback_generator or RuleBasedGenerator()
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_chain(cls, llm: Optional[LLMInterface], chain: ProviderChain, **kwargs) -> "GenerationClient":
        """Build a client for a provider chain from ProviderRouter."""
        return cls(
            llm,
            providers=chain.providers,
            temperature=chain.temperature,
            max_tokens=chain.max_tokens,
            **kwargs,
        )

    async def generate(
        self,
        prompt: str,
        exam_type: ExamType,
        count: int,
        text: str,
        difficulty: Optional[Difficulty] = None,
    ) -> GenerationResult:
        """Generate questions for a prompt.

        Args:
            prompt: Full prompt from PromptBuilder
            exam_type: Requested exam type
            count: Requested number of questions
            text: Extracted text, used by the rule-based fallback
            difficulty: Requested difficulty (ignored by the fallback)

        Returns:
            GenerationResult with at most `count` questions

        Raises:
            GenerationExhausted: If neither providers nor the fallback produced questions
        """

        async def attempt(provider: str) -> AttemptResult[List[Question]]:
            response = await self.llm.generate(
                provider, prompt, temperature=self.temperature, max_tokens=self.max_tokens
            )
            if not response.success:
                reason = response.error or "unknown error"
                if response.error_code == ErrorCode.NO_CREDENTIALS:
                    return AttemptResult.fatal(reason)
                return AttemptResult.retry(reason)

            questions = self.parser.parse(response.text, exam_type)
            if not questions:
                return AttemptResult.retry("response contained no parseable questions")
            return AttemptResult.success(questions)

        providers = self.providers if self.llm is not None else []
        outcome = await first_success(providers, attempt)

        if outcome.succeeded:
            logger.info(f"[GENERATION] {len(outcome.value)} questions from '{outcome.candidate}'")
            return GenerationResult(
                questions=outcome.value[:count],
                source=outcome.candidate,
                failures=outcome.failures,
            )

        logger.warning("[GENERATION] No provider produced questions, using rule-based generator")
        questions = self.fallback_generator.generate(text, exam_type, count, difficulty)
        if not questions:
            raise GenerationExhausted(outcome.failures)

        return GenerationResult(
            questions=questions[:count],
            source=RULE_BASED_SOURCE,
            failures=outcome.failures,
        )

"""
LLM Manager for PageQuiz.
Handles interactions with the Gemini generateContent API.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
import requests

from config import Config

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """Why a generation request failed."""

    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    NO_CREDENTIALS = "no_credentials"
    OTHER = "other"


@dataclass
class LLMResponse:
    """Response from LLM."""

    text: str
    model: str
    success: bool
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def failure(cls, model: str, error: str, error_code: ErrorCode = ErrorCode.OTHER) -> "LLMResponse":
        return cls(text="", model=model, success=False, error=error, error_code=error_code)


class LLMManager:
    """Manages Gemini requests for PageQuiz.

    Each provider id is a Gemini model name. Use as an async context
    manager to share one HTTP session across requests; without it every
    request opens its own session.

    Usage:
        async with LLMManager() as llm:
            response = await llm.generate("gemini-2.0-flash", prompt)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize LLM manager.

        Args:
            api_key: Gemini API key, defaults to Config.GEMINI_API_KEY
            base_url: API base URL, defaults to Config.GEMINI_BASE_URL
            timeout: Total timeout per request in seconds
        """
        self.api_key = api_key if api_key is not None else Config.GEMINI_API_KEY
        self.base_url = (base_url or Config.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout or Config.GENERATION_TIMEOUT

        # Async HTTP session (initialized in __aenter__)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry - initializes aiohttp session."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - closes aiohttp session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def generate(
        self,
        provider_id: str,
        prompt: str,
        temperature: float = Config.DEFAULT_TEMPERATURE,
        max_tokens: int = Config.DEFAULT_MAX_TOKENS,
    ) -> LLMResponse:
        """Generate text with one Gemini model.

        Args:
            provider_id: Gemini model name (e.g. "gemini-2.0-flash")
            prompt: User prompt
            temperature: Sampling temperature
            max_tokens: Maximum output tokens

        Returns:
            LLMResponse; failures carry an error_code instead of raising
        """
        if not self.api_key:
            return LLMResponse.failure(
                provider_id,
                "GEMINI_API_KEY not set. Get one at https://aistudio.google.com/apikey",
                ErrorCode.NO_CREDENTIALS,
            )

        url = f"{self.base_url}/models/{provider_id}:generateContent"
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }

        logger.debug(f"[GENERATION] Requesting {provider_id} ({len(prompt)} prompt chars)")
        try:
            status, data = await self._post_json(url, payload)
        except asyncio.TimeoutError:
            return LLMResponse.failure(provider_id, "Request timed out")
        except aiohttp.ClientError as e:
            return LLMResponse.failure(provider_id, f"Gemini API error: {str(e)}")

        return self._interpret(provider_id, status, data)

    async def _post_json(self, url: str, payload: Dict[str, Any]) -> Tuple[int, Optional[Dict[str, Any]]]:
        """POST a JSON payload and return (status, decoded body or None)."""
        if self._session is not None:
            return await self._send(self._session, url, payload)

        async with aiohttp.ClientSession() as session:
            return await self._send(session, url, payload)

    async def _send(
        self, session: aiohttp.ClientSession, url: str, payload: Dict[str, Any]
    ) -> Tuple[int, Optional[Dict[str, Any]]]:
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.api_key}
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with session.post(url, json=payload, headers=headers, timeout=timeout) as response:
            body = await response.text()
            try:
                data = json.loads(body) if body.strip() else None
            except json.JSONDecodeError:
                data = None
            return response.status, data

    @staticmethod
    def _interpret(model: str, status: int, data: Optional[Dict[str, Any]]) -> LLMResponse:
        """Map an HTTP status and body to an LLMResponse."""
        if status == 429:
            return LLMResponse.failure(model, "Rate limit exceeded", ErrorCode.RATE_LIMITED)
        if status == 404:
            return LLMResponse.failure(model, f"Model '{model}' not found", ErrorCode.NOT_FOUND)
        if status in (401, 403):
            return LLMResponse.failure(model, "Invalid GEMINI_API_KEY. Check your API key.", ErrorCode.NO_CREDENTIALS)

        if not isinstance(data, dict):
            return LLMResponse.failure(model, f"Gemini API returned an unreadable response (HTTP {status})")

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            return LLMResponse.failure(model, f"Gemini API error: {message}")

        if status >= 400:
            return LLMResponse.failure(model, f"Gemini API error: HTTP {status}")

        try:
            candidate = data["candidates"][0]
            text = candidate["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return LLMResponse.failure(model, "Gemini API response has no candidate text")

        return LLMResponse(
            text=text,
            model=model,
            success=True,
            metadata={
                "usage": data.get("usageMetadata"),
                "finish_reason": candidate.get("finishReason"),
            },
        )

    def list_available_models(self) -> List[str]:
        """List Gemini models that support generateContent.

        Returns:
            List of model names, empty when the key is missing or the request fails
        """
        if not self.api_key:
            return []

        try:
            response = requests.get(
                f"{self.base_url}/models",
                headers={"x-goog-api-key": self.api_key},
                timeout=10,
            )
            response.raise_for_status()
            models = response.json().get("models", [])
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning(f"Could not list Gemini models: {e}")
            return []

        return [
            m["name"].split("/", 1)[-1]
            for m in models
            if "generateContent" in m.get("supportedGenerationMethods", [])
        ]

    @staticmethod
    def is_provider_available(provider: str = "gemini") -> bool:
        """Check if a provider is available (has API key configured)."""
        return bool(Config.GEMINI_API_KEY)

"""
Google Gemini client over the REST API (httpx).
"""

import logging
import time
from typing import Any, Optional

import httpx

from ..errors import CollaboratorError, NonRetryableError
from .base import ChatTurn, GenerationClient, LLMResponse

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

NON_RETRYABLE_STATUS = {400, 401, 403, 404}


class GeminiClient(GenerationClient):
    """Gemini generator. Disabled when no API key is configured."""

    def __init__(
        self,
        api_key: str = "",
        model: str = "gemini-2.0-flash",
        temperature: float = 0.7,
        max_tokens: int = 1024,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._http_client = http_client

        if not api_key:
            logger.info("Gemini: No API key - client disabled")
            return

        if self._http_client is None:
            # per-attempt timeouts are enforced by the generation service
            self._http_client = httpx.AsyncClient(timeout=None)
        self.available = True
        logger.info(f"Gemini: Connected via REST ({self.model})")

    @property
    def provider(self) -> str:
        return "gemini"

    def build_payload(
        self,
        prompt: str,
        history: Optional[list[ChatTurn]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Build a generateContent request body."""
        contents = [
            {"role": turn.role, "parts": [{"text": turn.text}]}
            for turn in history or []
        ]
        contents.append({"role": "user", "parts": [{"text": prompt}]})

        payload: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
            },
        }
        system_instruction = (context or {}).get("system_instruction")
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        return payload

    async def generate(
        self,
        prompt: str,
        history: Optional[list[ChatTurn]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> LLMResponse:
        if not self.available:
            raise NonRetryableError("Gemini not available", code="GEMINI_DISABLED")

        start = time.time()
        try:
            response = await self._http_client.post(
                GEMINI_URL.format(model=self.model),
                params={"key": self.api_key},
                json=self.build_payload(prompt, history, context),
            )
        except httpx.TimeoutException as e:
            raise CollaboratorError(f"Gemini request timed out: {e}", code="GEMINI_TIMEOUT") from e
        except httpx.TransportError as e:
            raise CollaboratorError(f"Gemini connection failed: {e}", code="NETWORK_ERROR") from e

        if response.status_code in NON_RETRYABLE_STATUS:
            raise NonRetryableError(
                f"Gemini rejected the request ({response.status_code}): {response.text[:200]}",
                code="GEMINI_VALIDATION",
            )
        if response.status_code == 429:
            raise CollaboratorError("Gemini rate limit exceeded", code="GEMINI_RATE_LIMIT")
        if response.status_code >= 400:
            raise CollaboratorError(
                f"Gemini API error {response.status_code}", code="GEMINI_API_ERROR"
            )

        try:
            data = response.json()
            candidates = data.get("candidates") or []
            parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
            text = "".join(part.get("text", "") for part in parts).strip()
            usage = data.get("usageMetadata") or {}
        except (ValueError, AttributeError, TypeError) as e:
            raise CollaboratorError(
                f"Gemini returned a malformed response: {e}", code="GEMINI_BAD_RESPONSE"
            ) from e

        if not candidates:
            raise CollaboratorError("Gemini returned no candidates", code="GEMINI_EMPTY")
        if not text:
            raise CollaboratorError("Gemini returned empty text", code="GEMINI_EMPTY")

        return LLMResponse(
            success=True,
            text=text,
            usage={
                "prompt_tokens": usage.get("promptTokenCount", 0),
                "completion_tokens": usage.get("candidatesTokenCount", 0),
            },
            provider=self.provider,
            model=self.model,
            latency_ms=int((time.time() - start) * 1000),
        )

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()

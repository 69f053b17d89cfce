"""
Generation Service.

Wraps a ``GenerationClient`` with progressive timeouts, capped backoff and
a circuit breaker. When every attempt fails the caller gets a short error
message in the query's language instead of an exception.
"""

import asyncio
import logging
from typing import Any, Optional

from ..utils.resilience import CircuitBreaker, RetryPolicy, Sleep, retry_with_progressive_timeout
from .base import ChatTurn, GenerationClient, LLMResponse

logger = logging.getLogger(__name__)

ERROR_MESSAGES: dict[str, str] = {
    "tr": "Üzgünüm, şu anda yanıt veremiyorum. Lütfen biraz sonra tekrar deneyin.",
    "en": "Sorry, I can't respond right now. Please try again in a moment.",
    "es": "Lo siento, no puedo responder ahora. Inténtalo de nuevo en un momento.",
    "fr": "Désolé, je ne peux pas répondre pour le moment. Veuillez réessayer plus tard.",
    "de": "Entschuldigung, ich kann gerade nicht antworten. Bitte versuchen Sie es gleich noch einmal.",
    "ru": "Извините, сейчас я не могу ответить. Пожалуйста, попробуйте позже.",
}

LANGUAGE_NAMES = {
    "tr": "Turkish",
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "ru": "Russian",
}

SYSTEM_INSTRUCTION = (
    "You are a warm, knowledgeable honeymoon travel concierge. "
    "Answer in {language}. Keep answers concise and practical, and keep any "
    "**SHOW_PACKAGES:...** markers from the agent notes unchanged."
)


def localized_error(language: str) -> str:
    """Short failure message in the given language, English if unknown."""
    return ERROR_MESSAGES.get(language, ERROR_MESSAGES["en"])


def build_prompt(query: str, agent_notes: str = "") -> str:
    """Prompt combining the user query with the agents' draft answer."""
    if not agent_notes:
        return query
    return (
        f"User question: {query}\n\n"
        f"Specialist agent notes (draft answer):\n{agent_notes}\n\n"
        "Write the final answer for the user based on these notes."
    )


class GenerationService:
    """Retrying front for the generation collaborator."""

    __slots__ = ("_client", "_policy", "_breaker", "_sleep")

    def __init__(
        self,
        client: GenerationClient,
        policy: Optional[RetryPolicy] = None,
        breaker: Optional[CircuitBreaker] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._client = client
        self._policy = policy or RetryPolicy()
        self._breaker = breaker or CircuitBreaker(name=client.provider)
        self._sleep = sleep

    @property
    def available(self) -> bool:
        return self._client.available and self._breaker.is_available()

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def generate(
        self,
        query: str,
        language: str = "en",
        agent_notes: str = "",
        history: Optional[list[ChatTurn]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> LLMResponse:
        """Generate an answer, retrying per the policy.

        Args:
            query: User query.
            language: Answer language, also used for the failure message.
            agent_notes: Synthesized agent answer used as grounding.
            history: Prior conversation turns.
            context: Extra context passed to the client.

        Returns:
            LLMResponse. On failure ``success`` is False and ``text`` holds
            the localized error message.
        """
        if not self.available:
            return LLMResponse(
                success=False,
                text=localized_error(language),
                error=f"{self._client.provider} unavailable",
                provider=self._client.provider,
                attempts=0,
            )

        prompt = build_prompt(query, agent_notes)
        merged = {
            "system_instruction": SYSTEM_INSTRUCTION.format(
                language=LANGUAGE_NAMES.get(language, "the user's language")
            ),
            "language": language,
            **(context or {}),
        }
        attempts = 0

        async def attempt() -> LLMResponse:
            nonlocal attempts
            attempts += 1
            return await self._client.generate(prompt, history, merged)

        try:
            result = await retry_with_progressive_timeout(
                attempt, self._policy, name=f"{self._client.provider} generation", sleep=self._sleep
            )
        except Exception as e:
            logger.warning(f"Generation failed after {attempts} attempt(s): {type(e).__name__}: {e}")
            self._breaker.record_failure()
            return LLMResponse(
                success=False,
                text=localized_error(language),
                error=str(e),
                provider=self._client.provider,
                attempts=attempts,
            )

        self._breaker.record_success()
        result.attempts = attempts
        return result

    async def close(self) -> None:
        await self._client.close()

"""
Generation Client Interface.

The text generator is a black-box collaborator: prompt, conversation
history and context in, text out. Implementations raise
``CollaboratorError`` (or a subclass) on failure so callers can retry.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ChatTurn:
    """One prior message in the conversation."""
    role: str  # "user" or "model"
    text: str


@dataclass(slots=True)
class LLMResponse:
    """Standardized result of a generation call."""
    success: bool
    text: str = ""
    error: Optional[str] = None
    usage: dict = field(default_factory=dict)
    provider: str = "unknown"
    model: str = "unknown"
    latency_ms: int = 0
    attempts: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "text": self.text,
            "error": self.error,
            "usage": self.usage,
            "provider": self.provider,
            "model": self.model,
            "latency_ms": self.latency_ms,
            "attempts": self.attempts,
        }


class GenerationClient(ABC):
    """
    Abstract text generator.

    Implementations:
    - GeminiClient: Google Gemini over REST (httpx)
    """

    available: bool = False

    @property
    def provider(self) -> str:
        return "unknown"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        history: Optional[list[ChatTurn]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> LLMResponse:
        """Generate text.

        Args:
            prompt: Prompt for this turn.
            history: Prior conversation turns, oldest first.
            context: Extra context (system instruction, language, ...).

        Returns:
            LLMResponse with success=True.

        Raises:
            CollaboratorError: On any failure; ``retryable`` tells callers
                whether another attempt can help.
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass

"""Text generation collaborator: interface, Gemini client, retrying service."""

from .base import ChatTurn, GenerationClient, LLMResponse
from .gemini import GeminiClient
from .generation import GenerationService, build_prompt, localized_error

__all__ = [
    "ChatTurn",
    "GeminiClient",
    "GenerationClient",
    "GenerationService",
    "LLMResponse",
    "build_prompt",
    "localized_error",
]

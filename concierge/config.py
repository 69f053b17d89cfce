"""Configuration with sensible defaults for in-process use (no external services)."""

from dataclasses import dataclass, field
from os import getenv


def _parse_bool(value: str, default: bool = True) -> bool:
    """Parse boolean from environment variable."""
    if not value:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_float(value: str, default: float) -> float:
    """Parse float from environment variable."""
    try:
        return float(value) if value else default
    except ValueError:
        return default


def _parse_int(value: str, default: int) -> int:
    """Parse int from environment variable."""
    try:
        return int(value) if value else default
    except ValueError:
        return default


@dataclass(slots=True, frozen=True)
class Config:
    # ==================== Embeddings / Knowledge Index ====================
    embedding_dimension: int = field(
        default_factory=lambda: _parse_int(getenv("EMBEDDING_DIMENSION", ""), 128)
    )
    index_similarity_threshold: float = field(
        default_factory=lambda: _parse_float(getenv("INDEX_SIMILARITY_THRESHOLD", ""), 0.75)
    )

    # ==================== Response Cache ====================
    cache_max_size: int = field(
        default_factory=lambda: _parse_int(getenv("CACHE_MAX_SIZE", ""), 1000)
    )
    cache_ttl_seconds: int = field(
        default_factory=lambda: _parse_int(getenv("CACHE_TTL_SECONDS", ""), 24 * 60 * 60)
    )
    cache_similarity_threshold: float = field(
        default_factory=lambda: _parse_float(getenv("CACHE_SIMILARITY_THRESHOLD", ""), 0.8)
    )
    # Word overlap needed to bridge a knowledge match to a cached answer
    cache_overlap_threshold: float = field(
        default_factory=lambda: _parse_float(getenv("CACHE_OVERLAP_THRESHOLD", ""), 0.6)
    )
    cache_eviction_fraction: float = 0.3
    preload_cache: bool = field(
        default_factory=lambda: _parse_bool(getenv("PRELOAD_CACHE", ""), True)
    )

    # ==================== Orchestration ====================
    history_capacity: int = field(
        default_factory=lambda: _parse_int(getenv("HISTORY_CAPACITY", ""), 100)
    )
    evaluation_timeout: float = field(
        default_factory=lambda: _parse_float(getenv("EVALUATION_TIMEOUT", ""), 5.0)
    )
    default_language: str = field(default_factory=lambda: getenv("DEFAULT_LANGUAGE", "tr"))

    # ==================== Generation (optional - empty key = agents only) ====================
    gemini_api_key: str = field(default_factory=lambda: getenv("GEMINI_API_KEY", ""))
    gemini_model: str = field(default_factory=lambda: getenv("GEMINI_MODEL", "gemini-2.0-flash"))
    generation_max_attempts: int = field(
        default_factory=lambda: _parse_int(getenv("GENERATION_MAX_ATTEMPTS", ""), 3)
    )
    # Progressive timeout: base + step * attempt, capped
    generation_base_timeout: float = 15.0
    generation_timeout_step: float = 5.0
    generation_max_timeout: float = 30.0
    backoff_base: float = 1.0
    backoff_max: float = 5.0

    # ==================== Persistence (optional - empty = in-memory fallback) ====================
    redis_url: str = field(default_factory=lambda: getenv("REDIS_URL", ""))

    def is_generation_available(self) -> bool:
        """Check if an LLM generation backend is configured."""
        return bool(self.gemini_api_key)

    def get_retry_config(self) -> dict[str, float]:
        """Get retry/timeout settings for the generation service."""
        return {
            "max_attempts": self.generation_max_attempts,
            "base_timeout": self.generation_base_timeout,
            "timeout_step": self.generation_timeout_step,
            "max_timeout": self.generation_max_timeout,
            "backoff_base": self.backoff_base,
            "backoff_max": self.backoff_max,
        }

"""Concierge Service - the in-process entry point.

Owns the knowledge index, response cache, agent orchestrator, optional
generation service, persistence sink and self-evaluator, and exposes the
caller-facing operations. Instances are independent, so tests can build
isolated services without environment variables.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .agents import (
    AgentExecutor,
    AgentOrchestrator,
    AgentRegistry,
    ConversationState,
    CoordinationResult,
    EmotionalState,
    PersonalityProfile,
    default_responders,
)
from .agents.synthesizer import FALLBACK_RESPONSE
from .cache import CacheEntry, Feedback, ResponseCache
from .classifier import QueryIntent, classify_intent
from .config import Config
from .embeddings import EmbeddingGenerator
from .evaluation import SelfEvaluator
from .history_sink import HistorySink
from .knowledge_index import SemanticKnowledgeIndex
from .llm import ChatTurn, GeminiClient, GenerationService, LLMResponse
from .realtime import OfflineRealTimeProvider, RealTimeDataProvider
from .text import detect_language, preview
from .utils.resilience import RetryPolicy

logger = logging.getLogger(__name__)

SINK_TIMEOUT = 5.0


@dataclass(slots=True)
class Answer:
    """Result of ``ConciergeService.answer``.

    Attributes:
        response: Text shown to the user.
        language: Detected or requested language.
        source: "cache", "agents", "generation" or "error".
        similarity: Cache similarity on a hit.
        coordination: Agent coordination result on a miss.
        generation: Generation result when a generator is configured.
    """
    response: str
    language: str
    source: str
    similarity: Optional[float] = None
    coordination: Optional[CoordinationResult] = None
    generation: Optional[LLMResponse] = None
    cache_key: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "response": self.response,
            "language": self.language,
            "source": self.source,
            "similarity": self.similarity,
            "coordination": self.coordination.to_dict() if self.coordination else None,
            "generation": self.generation.to_dict() if self.generation else None,
            "cache_key": self.cache_key,
        }


class ConciergeService:
    """Facade over cache, agents and generation."""

    def __init__(
        self,
        config: Optional[Config] = None,
        index: Optional[SemanticKnowledgeIndex] = None,
        cache: Optional[ResponseCache] = None,
        orchestrator: Optional[AgentOrchestrator] = None,
        generation: Optional[GenerationService] = None,
        sink: Optional[HistorySink] = None,
        evaluator: Optional[SelfEvaluator] = None,
        realtime: Optional[RealTimeDataProvider] = None,
        user_insights: Optional[Callable[[str], Optional[dict[str, Any]]]] = None,
    ):
        self.config = config or Config()
        c = self.config

        embedder = EmbeddingGenerator(c.embedding_dimension)
        self.index = index or SemanticKnowledgeIndex(embedder, c.index_similarity_threshold)
        self.cache = cache or ResponseCache(
            self.index,
            embedder,
            max_size=c.cache_max_size,
            ttl_seconds=c.cache_ttl_seconds,
            similarity_threshold=c.cache_similarity_threshold,
            overlap_threshold=c.cache_overlap_threshold,
            eviction_fraction=c.cache_eviction_fraction,
            default_language=c.default_language,
        )

        if orchestrator is None:
            registry = AgentRegistry()
            responders = default_responders(realtime or OfflineRealTimeProvider(), user_insights)
            orchestrator = AgentOrchestrator(
                registry,
                AgentExecutor(registry, responders),
                history_capacity=c.history_capacity,
            )
        self.orchestrator = orchestrator

        self.generation = generation
        self.sink = sink or HistorySink()
        self.evaluator = evaluator or SelfEvaluator(timeout=c.evaluation_timeout)
        self._background: set[asyncio.Task] = set()

    # ==================== Caller-facing operations ====================

    @staticmethod
    def classify_intent(text: str) -> QueryIntent:
        return classify_intent(text)

    def find_cached_answer(
        self,
        query: str,
        user_id: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Optional[dict[str, Any]]:
        """Cached answer and its similarity, or None."""
        match = self.cache.lookup(query, language, user_id)
        if match is None:
            return None
        return {"response": match.response, "similarity": match.similarity}

    def store_answer(
        self,
        query: str,
        response: str,
        language: Optional[str] = None,
        feedback: Feedback | str | None = None,
    ) -> Optional[CacheEntry]:
        return self.cache.store(query, response, language, feedback)

    async def coordinate_response(
        self,
        query: str,
        session_id: str,
        conversation_state: Optional[ConversationState] = None,
        emotional_state: Optional[EmotionalState] = None,
        personality_profile: Optional[PersonalityProfile] = None,
        user_id: Optional[str] = None,
    ) -> CoordinationResult:
        return await self.orchestrator.coordinate_response(
            query, session_id, conversation_state, emotional_state, personality_profile, user_id
        )

    def update_agent_config(self, agent_id: str, patch: dict[str, Any]) -> bool:
        return self.orchestrator.update_agent_config(agent_id, patch)

    # ==================== Full answer flow ====================

    async def answer(
        self,
        query: str,
        session_id: str,
        language: Optional[str] = None,
        conversation_state: Optional[ConversationState] = None,
        emotional_state: Optional[EmotionalState] = None,
        personality_profile: Optional[PersonalityProfile] = None,
        user_id: Optional[str] = None,
        history: Optional[list[ChatTurn]] = None,
    ) -> Answer:
        """Answer a query: cache, then agents, then optional generation.

        Args:
            query: User query.
            session_id: Conversation session id.
            language: Answer language, detected from the query if omitted.
            conversation_state: Optional conversation context.
            emotional_state: Optional caller emotion.
            personality_profile: Optional personality profile.
            user_id: Optional user id.
            history: Prior turns passed to the generator.

        Returns:
            Answer. Failed generations are returned with source "error"
            and are not cached.
        """
        language = language or detect_language(query, self.config.default_language)

        match = self.cache.lookup(query, language, user_id)
        if match is not None:
            return Answer(
                response=match.response,
                language=language,
                source="cache",
                similarity=match.similarity,
                cache_key=match.key,
            )

        coordination = await self.coordinate_response(
            query, session_id, conversation_state, emotional_state, personality_profile, user_id
        )
        text = coordination.response
        source = "agents"
        generation: Optional[LLMResponse] = None

        if self.generation is not None and self.generation.available:
            generation = await self.generation.generate(
                query,
                language=language,
                agent_notes=coordination.response,
                history=history,
                context={"session_id": session_id},
            )
            text = generation.text
            source = "generation" if generation.success else "error"

        cache_key = None
        if source != "error" and text != FALLBACK_RESPONSE:
            entry = self.cache.store(query, text, language)
            cache_key = entry.key if entry else None

        self._schedule(self._persist("orchestration", {
            "session_id": session_id,
            "user_id": user_id,
            "query": query,
            "language": language,
            "source": source,
            "response": text,
            "distribution": coordination.distribution.to_dict(),
            "insights": coordination.system_insights,
        }))
        self.evaluator.schedule(query, text, session_id, emotional_state)

        logger.info(f"Answered ({source}) for session {session_id}: {preview(query)}")
        return Answer(
            response=text,
            language=language,
            source=source,
            coordination=coordination,
            generation=generation,
            cache_key=cache_key,
        )

    async def record_feedback(
        self,
        query: str,
        feedback: Feedback | str,
        language: Optional[str] = None,
        session_id: Optional[str] = None,
        cache_key: Optional[str] = None,
    ) -> bool:
        """Apply user feedback to the cached answer and the session history.

        Returns:
            True if a cached entry was updated.
        """
        parsed = Feedback.parse(feedback)
        if parsed is None:
            return False

        language = language or detect_language(query, self.config.default_language)
        if cache_key:
            updated = self.cache.update_quality_by_key(cache_key, parsed)
        else:
            updated = self.cache.update_quality(query, language, parsed)

        if session_id:
            score = 1.0 if parsed is Feedback.POSITIVE else 0.0
            self.orchestrator.record_satisfaction(session_id, score)

        self._schedule(self._persist("feedback", {
            "session_id": session_id,
            "query": query,
            "language": language,
            "feedback": parsed.value,
        }))
        return updated

    # ==================== Lifecycle / monitoring ====================

    async def start(self) -> None:
        """Connect the sink and optionally preload popular answers."""
        await self.sink.connect(self.config.redis_url)
        if self.config.preload_cache:
            self.cache.preload_popular_responses()

    async def drain(self) -> None:
        """Wait for background persistence and evaluation work."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        await self.evaluator.drain()

    async def close(self) -> None:
        await self.drain()
        await self.sink.close()
        if self.generation is not None:
            await self.generation.close()

    def stats(self) -> dict[str, Any]:
        return {
            "index": self.index.stats(),
            "cache": self.cache.stats(),
            "agents": self.orchestrator.analytics(),
            "evaluation": self.evaluator.summary(),
        }

    def agent_status(self) -> dict[str, dict[str, Any]]:
        return self.orchestrator.agent_status()

    # ==================== Internals ====================

    def _schedule(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _persist(self, kind: str, payload: dict[str, Any]) -> None:
        try:
            await asyncio.wait_for(self.sink.write(kind, payload), timeout=SINK_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning(f"History sink write timed out ({kind})")
        except Exception as e:
            logger.warning(f"History sink write failed ({kind}): {e}")


async def create_service(config: Optional[Config] = None) -> ConciergeService:
    """Build and start a service from configuration.

    A Gemini generator is attached only when an API key is configured.
    """
    config = config or Config()
    generation = None
    if config.is_generation_available():
        client = GeminiClient(api_key=config.gemini_api_key, model=config.gemini_model)
        generation = GenerationService(client, RetryPolicy.from_config(config.get_retry_config()))

    service = ConciergeService(config, generation=generation)
    await service.start()
    logger.info(
        f"Concierge service ready (generation: {'on' if generation else 'off'}, "
        f"sink: {'redis' if service.sink.available else 'memory'})"
    )
    return service

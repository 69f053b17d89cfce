"""Agent Orchestrator - classify, distribute, execute, synthesize.

Keeps a bounded history of orchestration records for analytics.
"""

import logging
import time
from collections import deque
from typing import Any, Callable

from ..classifier import IntentClassifier, classify_intent
from ..text import preview
from .distributor import TaskDistributor
from .executor import AgentExecutor
from .models import (
    AgentContext,
    ConversationState,
    CoordinationResult,
    EmotionalState,
    OrchestrationRecord,
    PersonalityProfile,
)
from .registry import AgentRegistry
from .synthesizer import response_quality, synthesize

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_CAPACITY = 100
EFFICIENCY_CONFIDENCE = 0.7


class AgentOrchestrator:
    """Coordinates the multi-agent answer for a query."""

    __slots__ = ("registry", "_distributor", "_executor", "_classify", "_history", "_clock")

    def __init__(
        self,
        registry: AgentRegistry | None = None,
        executor: AgentExecutor | None = None,
        classifier: IntentClassifier = classify_intent,
        history_capacity: int = DEFAULT_HISTORY_CAPACITY,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the orchestrator.

        Args:
            registry: Agent registry, defaults to the built-in roles.
            executor: Agent executor, defaults to the built-in responders.
            classifier: Intent classifier shared by distribution and responders.
            history_capacity: Number of orchestration records kept.
            clock: Timestamp source for records.
        """
        self.registry = registry or AgentRegistry()
        self._classify = classifier
        self._distributor = TaskDistributor(self.registry, classifier)
        self._executor = executor or AgentExecutor(self.registry)
        self._history: deque[OrchestrationRecord] = deque(maxlen=history_capacity)
        self._clock = clock

    @property
    def distributor(self) -> TaskDistributor:
        return self._distributor

    @property
    def history(self) -> list[OrchestrationRecord]:
        return list(self._history)

    async def coordinate_response(
        self,
        query: str,
        session_id: str,
        conversation_state: ConversationState | None = None,
        emotional_state: EmotionalState | None = None,
        personality_profile: PersonalityProfile | None = None,
        user_id: str | None = None,
    ) -> CoordinationResult:
        """Produce a coordinated multi-agent answer.

        Args:
            query: User query.
            session_id: Conversation session id.
            conversation_state: Optional phase and collected info.
            emotional_state: Optional caller emotion.
            personality_profile: Optional personality profile.
            user_id: Optional user id for personalization.

        Returns:
            CoordinationResult with the answer, contributions, distribution
            and system insights.
        """
        query = query or ""
        started = time.perf_counter()
        logger.info(f"Multi-agent coordination started for query: {preview(query)}")

        intent = self._classify(query)
        distribution = self._distributor.distribute(
            query, conversation_state, emotional_state, intent=intent
        )
        context = AgentContext(
            session_id=session_id,
            distribution=distribution,
            intent=intent,
            conversation_state=conversation_state,
            emotional_state=emotional_state,
            personality_profile=personality_profile,
            user_id=user_id,
        )
        responses = await self._executor.execute(query, context)
        final = synthesize(responses, distribution, emotional_state)

        elapsed_ms = (time.perf_counter() - started) * 1000
        quality = response_quality(responses, distribution)

        self._history.append(OrchestrationRecord(
            session_id=session_id,
            query=query,
            distribution=distribution,
            responses=responses,
            final_response=final,
            timestamp=self._clock(),
        ))

        logger.info(
            f"Multi-agent coordination completed in {elapsed_ms:.0f}ms with "
            f"{len(responses)} agents (quality: {quality:.2f})"
        )
        return CoordinationResult(
            response=final,
            agent_contributions=responses,
            distribution=distribution,
            system_insights={
                "task_complexity": distribution.complexity.value,
                "agents_involved": len(responses),
                "coordination_time_ms": elapsed_ms,
                "quality_score": quality,
                "intent": intent.primary.value,
            },
        )

    def latest_record(self, session_id: str) -> OrchestrationRecord | None:
        """Most recent record for a session."""
        for record in reversed(self._history):
            if record.session_id == session_id:
                return record
        return None

    def record_satisfaction(self, session_id: str, score: float) -> bool:
        """Attach a satisfaction score in [0, 1] to the session's latest record."""
        record = self.latest_record(session_id)
        if record is None:
            return False
        record.user_satisfaction = max(0.0, min(1.0, float(score)))
        return True

    def update_agent_config(self, agent_id: str, patch: dict[str, Any]) -> bool:
        return self.registry.update_config(agent_id, patch)

    def agent_status(self) -> dict[str, dict[str, Any]]:
        return self.registry.status()

    def analytics(self) -> dict[str, Any]:
        """Usage and performance figures over the retained history."""
        records = list(self._history)
        complexity: dict[str, int] = {}
        usage: dict[str, int] = {}
        confidence_sum: dict[str, float] = {}
        total_agents = 0

        for record in records:
            level = record.distribution.complexity.value
            complexity[level] = complexity.get(level, 0) + 1
            for response in record.responses:
                usage[response.agent_id] = usage.get(response.agent_id, 0) + 1
                confidence_sum[response.agent_id] = (
                    confidence_sum.get(response.agent_id, 0.0) + response.confidence
                )
                total_agents += 1

        efficient = sum(
            1 for record in records
            if any(r.confidence > EFFICIENCY_CONFIDENCE for r in record.responses)
        )
        rated = [r.user_satisfaction for r in records if r.user_satisfaction is not None]

        return {
            "total_tasks": len(records),
            "avg_agents_per_task": total_agents / len(records) if records else 0.0,
            "complexity_distribution": complexity,
            "agent_performance": {
                agent_id: {
                    "usage": count,
                    "avg_confidence": confidence_sum[agent_id] / count,
                }
                for agent_id, count in usage.items()
            },
            "coordination_efficiency": efficient / len(records) if records else 0.0,
            "avg_satisfaction": sum(rated) / len(rated) if rated else None,
        }

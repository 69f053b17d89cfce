"""Task Distributor - scores agents for a query and picks who answers.

Steps:
1. Assess task complexity from query shape, intent and conversation state.
2. Each active agent bids: expertise keyword match, role trigger bonus,
   phase affinity bonus.
3. Pick the primary (best "handle" bid, else best bid overall) and the
   assisting agents (next N bids above 0.3).
4. Pick a coordination strategy and estimate the answer quality.
"""

import logging
import re
from dataclasses import dataclass

from ..classifier import IntentCategory, IntentClassifier, QueryIntent, classify_intent
from .models import (
    AgentDecision,
    AgentId,
    AgentRole,
    ConversationPhase,
    ConversationState,
    CoordinationStrategy,
    DecisionAction,
    Emotion,
    EmotionalState,
    TaskComplexity,
    TaskDistribution,
)
from .registry import AgentRegistry

logger = logging.getLogger(__name__)

FALLBACK_AGENT = AgentId.CUSTOMER_EXPERIENCE.value

EXPERTISE_WEIGHT = 0.4
PHASE_WEIGHT = 0.2
ASSIST_THRESHOLD = 0.3
PARALLEL_AGENT_COUNT = 3
DEFAULT_QUALITY = 0.7
ASSIST_QUALITY_BOOST = 0.05

EXPERTISE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "destinations": ("destination", "place", "country", "city", "where", "nere"),
    "package_selection": ("package", "paket", "option", "choose", "select"),
    "pricing": ("price", "cost", "budget", "fiyat", "bütçe"),
    "reservations": ("book", "reserve", "booking", "rezervasyon"),
    "romantic_experiences": ("romantic", "honeymoon", "couple", "romantik", "balayı"),
    "transportation": ("flight", "transport", "uçak", "ulaşım"),
    "communication": ("help", "support", "problem", "yardım"),
}

# Extra expertise credit when the intent lines up with a tag
EXPERTISE_INTENT_BONUS: tuple[tuple[str, IntentCategory | None, float], ...] = (
    ("destinations", None, 0.3),
    ("package_selection", IntentCategory.COMPARISON, 0.3),
    ("reservations", IntentCategory.BOOKING, 0.4),
)

PHASE_AFFINITY: dict[ConversationPhase, dict[str, float]] = {
    ConversationPhase.GREETING: {AgentId.CUSTOMER_EXPERIENCE.value: 0.3},
    ConversationPhase.DISCOVERY: {AgentId.DESTINATION_EXPERT.value: 0.4},
    ConversationPhase.EXPLORATION: {AgentId.PACKAGE_CURATOR.value: 0.4},
    ConversationPhase.COMPARISON: {
        AgentId.PACKAGE_CURATOR.value: 0.3,
        AgentId.DATA_ANALYST.value: 0.3,
    },
    ConversationPhase.DECISION: {
        AgentId.PACKAGE_CURATOR.value: 0.3,
        AgentId.ROMANCE_CONCIERGE.value: 0.3,
    },
    ConversationPhase.BOOKING: {AgentId.BOOKING_SPECIALIST.value: 0.5},
    ConversationPhase.CONFIRMATION: {
        AgentId.BOOKING_SPECIALIST.value: 0.3,
        AgentId.CUSTOMER_EXPERIENCE.value: 0.3,
    },
}

COMPLEXITY_PENALTY: dict[TaskComplexity, float] = {
    TaskComplexity.SIMPLE: 0.0,
    TaskComplexity.MODERATE: -0.05,
    TaskComplexity.COMPLEX: -0.1,
    TaskComplexity.EXPERT_REQUIRED: -0.15,
}

ASSISTING_COUNT: dict[TaskComplexity, int] = {
    TaskComplexity.SIMPLE: 2,
    TaskComplexity.MODERATE: 2,
    TaskComplexity.COMPLEX: 3,
    TaskComplexity.EXPERT_REQUIRED: 4,
}

DESTINATION_RE = re.compile(r"nere|where|destination|country|city")
PACKAGE_RE = re.compile(r"paket|package|price|fiyat|compare")
ROMANCE_RE = re.compile(r"romantic|honeymoon|balayı|couple|anniversary")
LOGISTICS_RE = re.compile(r"visa|transport|flight|hotel|when|schedule|plan")

DISTRESS_EMOTIONS = frozenset({Emotion.ANXIETY, Emotion.DISAPPOINTMENT, Emotion.CONFUSION})
DATA_ANALYST_MIN_MESSAGES = 5


@dataclass(slots=True)
class _Trigger:
    bonus: float
    action: DecisionAction
    reasoning: str
    suggested_actions: tuple[str, ...]


def _role_trigger(
    agent_id: str,
    lowered: str,
    intent: QueryIntent,
    state: ConversationState | None,
    emotion: EmotionalState | None,
) -> _Trigger | None:
    """Role-specific bonus for an agent, None if the role has no reason to bid."""
    if agent_id == AgentId.DESTINATION_EXPERT.value:
        if intent.entities.destinations or DESTINATION_RE.search(lowered):
            return _Trigger(
                0.4, DecisionAction.HANDLE,
                "Query contains destination-related keywords",
                ("Provide destination recommendations", "Share cultural insights"),
            )
    elif agent_id == AgentId.PACKAGE_CURATOR.value:
        if intent.primary is IntentCategory.COMPARISON or PACKAGE_RE.search(lowered):
            return _Trigger(
                0.4, DecisionAction.HANDLE,
                "Query involves package selection or comparison",
                ("Show relevant packages", "Compare options"),
            )
    elif agent_id == AgentId.BOOKING_SPECIALIST.value:
        in_booking = state is not None and state.phase is ConversationPhase.BOOKING
        if intent.primary is IntentCategory.BOOKING or in_booking:
            return _Trigger(
                0.5, DecisionAction.HANDLE,
                "Booking-related query or conversation phase",
                ("Guide booking process", "Handle reservations"),
            )
    elif agent_id == AgentId.ROMANCE_CONCIERGE.value:
        if ROMANCE_RE.search(lowered):
            return _Trigger(
                0.3, DecisionAction.ASSIST,
                "Romantic context detected",
                ("Add romantic touches", "Suggest special experiences"),
            )
    elif agent_id == AgentId.CUSTOMER_EXPERIENCE.value:
        if emotion is not None and emotion.primary in DISTRESS_EMOTIONS:
            return _Trigger(
                0.5, DecisionAction.HANDLE,
                f"Customer showing {emotion.primary.value} - needs experience management",
                ("Address emotional needs", "Provide reassurance"),
            )
        return _Trigger(
            0.2, DecisionAction.ASSIST,
            "Always assist with customer experience",
            ("Ensure positive tone", "Monitor satisfaction"),
        )
    elif agent_id == AgentId.LOGISTICS_COORDINATOR.value:
        if LOGISTICS_RE.search(lowered):
            return _Trigger(
                0.3, DecisionAction.ASSIST,
                "Logistics-related elements detected",
                ("Provide practical information", "Address logistics concerns"),
            )
    elif agent_id == AgentId.DATA_ANALYST.value:
        if state is not None and state.message_count > DATA_ANALYST_MIN_MESSAGES:
            return _Trigger(
                0.2, DecisionAction.ASSIST,
                "Extended conversation - data insights valuable",
                ("Analyze patterns", "Provide personalized insights"),
            )
    return None


def expertise_match(expertise: tuple[str, ...], lowered: str, intent: QueryIntent) -> float:
    """Share of expertise tags whose keywords appear in the query, in [0, 1]."""
    if not expertise:
        return 0.0

    score = 0.0
    for area in expertise:
        keywords = EXPERTISE_KEYWORDS.get(area, ())
        if keywords:
            score += sum(1 for keyword in keywords if keyword in lowered) / len(keywords)

    for area, required_intent, bonus in EXPERTISE_INTENT_BONUS:
        if area not in expertise:
            continue
        if required_intent is None:
            if intent.entities.destinations:
                score += bonus
        elif intent.primary is required_intent:
            score += bonus

    return min(score / len(expertise), 1.0)


def assess_complexity(
    query: str,
    intent: QueryIntent,
    state: ConversationState | None = None,
) -> TaskComplexity:
    """Map query and conversation signals to a complexity level."""
    score = 0
    if len(query) > 100:
        score += 1
    if len(query.split()) > 15:
        score += 1
    if intent.confidence < 0.6:
        score += 2
    if len(intent.entities.destinations) > 2:
        score += 1

    if state is not None:
        if state.phase is ConversationPhase.BOOKING:
            score += 2
        if state.message_count > 10:
            score += 1
        if len(state.collected_info) > 4:
            score += 1

    if score >= 5:
        return TaskComplexity.EXPERT_REQUIRED
    if score >= 3:
        return TaskComplexity.COMPLEX
    if score >= 1:
        return TaskComplexity.MODERATE
    return TaskComplexity.SIMPLE


class TaskDistributor:
    """Selects and ranks agents for each query."""

    __slots__ = ("_registry", "_classify")

    def __init__(self, registry: AgentRegistry, classifier: IntentClassifier = classify_intent):
        self._registry = registry
        self._classify = classifier

    def decide(
        self,
        query: str,
        intent: QueryIntent,
        state: ConversationState | None = None,
        emotion: EmotionalState | None = None,
    ) -> list[AgentDecision]:
        """Collect a bid from every active agent, highest confidence first."""
        lowered = (query or "").lower()
        decisions: list[AgentDecision] = []

        for agent in self._registry.active():
            decisions.append(self._decide_for(agent, lowered, intent, state, emotion))

        # stable sort keeps registration order among equal bids
        decisions.sort(key=lambda d: d.confidence, reverse=True)
        return decisions

    def _decide_for(
        self,
        agent: AgentRole,
        lowered: str,
        intent: QueryIntent,
        state: ConversationState | None,
        emotion: EmotionalState | None,
    ) -> AgentDecision:
        confidence = expertise_match(agent.expertise, lowered, intent) * EXPERTISE_WEIGHT
        action = DecisionAction.ASSIST
        reasoning = ""
        suggested: list[str] = []

        trigger = _role_trigger(agent.id, lowered, intent, state, emotion)
        if trigger is not None:
            confidence += trigger.bonus
            action = trigger.action
            reasoning = trigger.reasoning
            suggested = list(trigger.suggested_actions)

        if state is not None and state.phase is not None:
            confidence += PHASE_AFFINITY.get(state.phase, {}).get(agent.id, 0.0) * PHASE_WEIGHT

        confidence = min(confidence, 1.0)
        if confidence > 0.7:
            estimate = "high"
        elif confidence > 0.4:
            estimate = "medium"
        else:
            estimate = "low"

        return AgentDecision(
            agent_id=agent.id,
            action=action,
            confidence=confidence,
            reasoning=reasoning,
            suggested_actions=suggested,
            estimated_complexity=estimate,
        )

    @staticmethod
    def select_primary(decisions: list[AgentDecision]) -> str:
        """Best handler, else best bidder, else the fallback role."""
        for decision in decisions:
            if decision.action is DecisionAction.HANDLE:
                return decision.agent_id
        if decisions:
            return decisions[0].agent_id
        return FALLBACK_AGENT

    @staticmethod
    def select_assisting(
        decisions: list[AgentDecision],
        primary: str,
        complexity: TaskComplexity,
    ) -> list[str]:
        limit = ASSISTING_COUNT[complexity]
        candidates = [
            d.agent_id for d in decisions
            if d.agent_id != primary and d.confidence > ASSIST_THRESHOLD
        ]
        return candidates[:limit]

    @staticmethod
    def select_strategy(complexity: TaskComplexity, agent_count: int) -> CoordinationStrategy:
        if complexity is TaskComplexity.EXPERT_REQUIRED:
            return CoordinationStrategy.HIERARCHICAL
        if agent_count > PARALLEL_AGENT_COUNT:
            return CoordinationStrategy.PARALLEL
        return CoordinationStrategy.SEQUENTIAL

    def estimate_quality(
        self,
        primary: str,
        assisting: list[str],
        complexity: TaskComplexity,
    ) -> float:
        """Primary's base confidence plus assist boost minus complexity penalty."""
        agent = self._registry.get(primary)
        base = agent.confidence if agent is not None else DEFAULT_QUALITY
        quality = base + len(assisting) * ASSIST_QUALITY_BOOST + COMPLEXITY_PENALTY[complexity]
        return max(0.5, min(1.0, quality))

    def distribute(
        self,
        query: str,
        state: ConversationState | None = None,
        emotion: EmotionalState | None = None,
        intent: QueryIntent | None = None,
    ) -> TaskDistribution:
        """Build the task distribution for a query.

        Args:
            query: User query.
            state: Optional conversation state.
            emotion: Optional emotional state.
            intent: Pre-computed intent, classified here if omitted.

        Returns:
            TaskDistribution with the primary never among the assisting agents.
        """
        query = query or ""
        intent = intent or self._classify(query)
        complexity = assess_complexity(query, intent, state)
        decisions = self.decide(query, intent, state, emotion)

        primary = self.select_primary(decisions)
        assisting = self.select_assisting(decisions, primary, complexity)
        strategy = self.select_strategy(complexity, 1 + len(assisting))

        distribution = TaskDistribution(
            primary_agent=primary,
            assisting_agents=assisting,
            complexity=complexity,
            strategy=strategy,
            expected_quality=self.estimate_quality(primary, assisting, complexity),
            decisions=decisions,
        )
        logger.debug(
            f"Distribution: primary={primary} assisting={assisting} "
            f"complexity={complexity.value} strategy={strategy.value}"
        )
        return distribution

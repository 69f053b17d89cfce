"""Multi-Agent Coordination Models.

Data structures for agent selection, execution and orchestration records.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..classifier import NEUTRAL_INTENT, QueryIntent


class AgentId(str, Enum):
    """Built-in agent roles."""
    DESTINATION_EXPERT = "destination_expert"
    PACKAGE_CURATOR = "package_curator"
    BOOKING_SPECIALIST = "booking_specialist"
    ROMANCE_CONCIERGE = "romance_concierge"
    LOGISTICS_COORDINATOR = "logistics_coordinator"
    CUSTOMER_EXPERIENCE = "customer_experience"
    DATA_ANALYST = "data_analyst"


class DecisionAction(str, Enum):
    """What an agent offers to do for a query."""
    HANDLE = "handle"           # Wants to lead the answer
    ASSIST = "assist"           # Contributes supporting content
    DELEGATE = "delegate"
    ESCALATE = "escalate"


class TaskComplexity(str, Enum):
    """Complexity of an inbound task."""
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    EXPERT_REQUIRED = "expert_required"


class CoordinationStrategy(str, Enum):
    """How the selected agents are run."""
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    HIERARCHICAL = "hierarchical"


class ConversationPhase(str, Enum):
    """Stage of the conversation funnel."""
    GREETING = "greeting"
    DISCOVERY = "discovery"
    EXPLORATION = "exploration"
    COMPARISON = "comparison"
    DECISION = "decision"
    BOOKING = "booking"
    CONFIRMATION = "confirmation"


class Emotion(str, Enum):
    """Primary emotion reported by the caller."""
    JOY = "joy"
    EXCITEMENT = "excitement"
    ANXIETY = "anxiety"
    DISAPPOINTMENT = "disappointment"
    CONFUSION = "confusion"
    TRUST = "trust"
    ANTICIPATION = "anticipation"
    NEUTRAL = "neutral"


@dataclass(slots=True)
class AgentRole:
    """Descriptor of a registered agent.

    Attributes:
        id: Unique agent identifier.
        name: Display name.
        expertise: Expertise tags used for keyword matching.
        priority: Lower is more important.
        is_active: Inactive agents are never selected.
        confidence: Base confidence in [0, 1].
    """
    id: str
    name: str
    expertise: tuple[str, ...]
    priority: int = 1
    is_active: bool = True
    confidence: float = 0.8

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "expertise": list(self.expertise),
            "priority": self.priority,
            "is_active": self.is_active,
            "confidence": self.confidence,
        }


@dataclass(slots=True)
class ConversationState:
    """Caller-supplied conversation context.

    Attributes:
        phase: Current conversation phase.
        message_count: Number of turns so far.
        collected_info: Facts gathered about the trip (destinations, budget, ...).
    """
    phase: ConversationPhase | None = None
    message_count: int = 0
    collected_info: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class EmotionalState:
    """Caller-supplied emotional reading."""
    primary: Emotion = Emotion.NEUTRAL
    intensity: float = 0.5
    confidence: float = 0.5


@dataclass(slots=True)
class PersonalityProfile:
    """Caller-supplied personality profile. Carried through to responders."""
    communication_style: str = "supportive"
    decision_making: str = "deliberate"
    risk_tolerance: str = "medium"
    traits: dict[str, float] = field(default_factory=dict)


@dataclass(slots=True)
class AgentDecision:
    """An agent's bid for a query."""
    agent_id: str
    action: DecisionAction
    confidence: float
    reasoning: str = ""
    suggested_actions: list[str] = field(default_factory=list)
    estimated_complexity: str = "low"

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "action": self.action.value,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "suggested_actions": self.suggested_actions,
            "estimated_complexity": self.estimated_complexity,
        }


@dataclass(slots=True)
class TaskDistribution:
    """Selection of agents for one query.

    Attributes:
        primary_agent: Lead agent id.
        assisting_agents: Supporting agent ids, never containing the primary.
        complexity: Assessed task complexity.
        strategy: Coordination strategy.
        expected_quality: Estimated quality in [0.5, 1.0].
        decisions: All agent bids, highest confidence first.
    """
    primary_agent: str
    assisting_agents: list[str]
    complexity: TaskComplexity
    strategy: CoordinationStrategy
    expected_quality: float
    decisions: list[AgentDecision] = field(default_factory=list)

    @property
    def selected_agents(self) -> list[str]:
        """Primary first, then assisting agents in selection order."""
        return [self.primary_agent, *self.assisting_agents]

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary_agent": self.primary_agent,
            "assisting_agents": self.assisting_agents,
            "complexity": self.complexity.value,
            "strategy": self.strategy.value,
            "expected_quality": self.expected_quality,
        }


@dataclass(slots=True)
class AgentContext:
    """Everything a responder may look at besides the query."""
    session_id: str
    distribution: TaskDistribution
    intent: QueryIntent = NEUTRAL_INTENT
    conversation_state: ConversationState | None = None
    emotional_state: EmotionalState | None = None
    personality_profile: PersonalityProfile | None = None
    user_id: str | None = None


@dataclass(slots=True)
class AgentResponse:
    """Output of one agent."""
    agent_id: str
    content: str
    confidence: float
    supporting_data: dict[str, Any] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)
    requires_human_review: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "content": self.content,
            "confidence": self.confidence,
            "supporting_data": self.supporting_data,
            "recommendations": self.recommendations,
            "requires_human_review": self.requires_human_review,
        }


@dataclass(slots=True)
class OrchestrationRecord:
    """One coordinated answer, kept in the bounded history."""
    session_id: str
    query: str
    distribution: TaskDistribution
    responses: list[AgentResponse]
    final_response: str
    timestamp: float
    user_satisfaction: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "query": self.query,
            "distribution": self.distribution.to_dict(),
            "responses": [r.to_dict() for r in self.responses],
            "final_response": self.final_response,
            "timestamp": self.timestamp,
            "user_satisfaction": self.user_satisfaction,
        }


@dataclass(slots=True)
class CoordinationResult:
    """Result of ``coordinate_response``."""
    response: str
    agent_contributions: list[AgentResponse]
    distribution: TaskDistribution
    system_insights: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "response": self.response,
            "agent_contributions": [r.to_dict() for r in self.agent_contributions],
            "distribution": self.distribution.to_dict(),
            "system_insights": self.system_insights,
        }

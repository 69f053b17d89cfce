"""Multi-agent coordination: registry, distribution, execution, synthesis."""

from .distributor import TaskDistributor, assess_complexity
from .executor import AgentExecutor
from .models import (
    AgentContext,
    AgentDecision,
    AgentId,
    AgentResponse,
    AgentRole,
    ConversationPhase,
    ConversationState,
    CoordinationResult,
    CoordinationStrategy,
    DecisionAction,
    Emotion,
    EmotionalState,
    OrchestrationRecord,
    PersonalityProfile,
    TaskComplexity,
    TaskDistribution,
)
from .orchestrator import AgentOrchestrator
from .registry import DEFAULT_AGENTS, AgentRegistry
from .responders import AgentOutput, AgentResponder, ResponderTable, default_responders
from .synthesizer import FALLBACK_RESPONSE, response_quality, synthesize

__all__ = [
    "AgentContext",
    "AgentDecision",
    "AgentExecutor",
    "AgentId",
    "AgentOrchestrator",
    "AgentOutput",
    "AgentRegistry",
    "AgentResponder",
    "AgentResponse",
    "AgentRole",
    "ConversationPhase",
    "ConversationState",
    "CoordinationResult",
    "CoordinationStrategy",
    "DEFAULT_AGENTS",
    "DecisionAction",
    "Emotion",
    "EmotionalState",
    "FALLBACK_RESPONSE",
    "OrchestrationRecord",
    "PersonalityProfile",
    "ResponderTable",
    "TaskComplexity",
    "TaskDistribution",
    "TaskDistributor",
    "assess_complexity",
    "default_responders",
    "response_quality",
    "synthesize",
]

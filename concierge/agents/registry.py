"""Agent Registry.

Holds the agent descriptors. Descriptors are never removed at runtime;
configuration patches are validated in full before being committed.
"""

import logging
from dataclasses import replace
from typing import Any, Iterable

from ..errors import ConfigurationError
from .models import AgentId, AgentRole

logger = logging.getLogger(__name__)


DEFAULT_AGENTS: tuple[AgentRole, ...] = (
    AgentRole(
        id=AgentId.DESTINATION_EXPERT.value,
        name="Destination Expert Agent",
        expertise=("destinations", "travel_advice", "cultural_insights", "weather", "local_events"),
        priority=1,
        confidence=0.9,
    ),
    AgentRole(
        id=AgentId.PACKAGE_CURATOR.value,
        name="Package Curator Agent",
        expertise=("package_selection", "pricing", "comparisons", "customization", "availability"),
        priority=2,
        confidence=0.85,
    ),
    AgentRole(
        id=AgentId.BOOKING_SPECIALIST.value,
        name="Booking Specialist Agent",
        expertise=("reservations", "payments", "policies", "modifications", "confirmations"),
        priority=3,
        confidence=0.8,
    ),
    AgentRole(
        id=AgentId.ROMANCE_CONCIERGE.value,
        name="Romance Concierge Agent",
        expertise=("romantic_experiences", "special_occasions", "surprises", "luxury_services"),
        priority=2,
        confidence=0.88,
    ),
    AgentRole(
        id=AgentId.LOGISTICS_COORDINATOR.value,
        name="Logistics Coordinator Agent",
        expertise=("transportation", "schedules", "documentation", "practical_tips", "troubleshooting"),
        priority=4,
        confidence=0.75,
    ),
    AgentRole(
        id=AgentId.CUSTOMER_EXPERIENCE.value,
        name="Customer Experience Agent",
        expertise=("communication", "sentiment_analysis", "problem_resolution", "feedback_handling"),
        priority=1,
        confidence=0.92,
    ),
    AgentRole(
        id=AgentId.DATA_ANALYST.value,
        name="Data Analyst Agent",
        expertise=("market_research", "trend_analysis", "personalization", "predictions", "optimization"),
        priority=5,
        confidence=0.82,
    ),
)

_PATCHABLE_FIELDS = frozenset({"name", "expertise", "priority", "is_active", "confidence"})


def _validate_patch(patch: dict[str, Any]) -> dict[str, Any]:
    """Check a patch and return it with normalized values.

    Raises:
        ConfigurationError: On unknown fields or invalid values.
    """
    if not isinstance(patch, dict) or not patch:
        raise ConfigurationError("Patch must be a non-empty mapping")

    unknown = set(patch) - _PATCHABLE_FIELDS
    if unknown:
        raise ConfigurationError(f"Unknown agent fields: {sorted(unknown)}")

    clean: dict[str, Any] = {}
    for key, value in patch.items():
        if key == "name":
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError("name must be a non-empty string")
            clean[key] = value
        elif key == "expertise":
            if not isinstance(value, (list, tuple, set, frozenset)) or not all(
                isinstance(tag, str) for tag in value
            ):
                raise ConfigurationError("expertise must be a list of strings")
            clean[key] = tuple(value)
        elif key == "priority":
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError("priority must be an integer")
            clean[key] = value
        elif key == "is_active":
            if not isinstance(value, bool):
                raise ConfigurationError("is_active must be a boolean")
            clean[key] = value
        elif key == "confidence":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError("confidence must be a number")
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"confidence must be within [0, 1], got {value}")
            clean[key] = float(value)
    return clean


class AgentRegistry:
    """Registry of agent descriptors, in registration order."""

    __slots__ = ("_agents",)

    def __init__(self, agents: Iterable[AgentRole] | None = None):
        source = DEFAULT_AGENTS if agents is None else agents
        self._agents: dict[str, AgentRole] = {agent.id: replace(agent) for agent in source}
        logger.info(f"Agent registry initialized with {len(self._agents)} agents")

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def get(self, agent_id: str) -> AgentRole | None:
        return self._agents.get(agent_id)

    def all(self) -> list[AgentRole]:
        return list(self._agents.values())

    def active(self) -> list[AgentRole]:
        """Active agents in registration order."""
        return [agent for agent in self._agents.values() if agent.is_active]

    def apply_patch(self, agent_id: str, patch: dict[str, Any]) -> AgentRole:
        """Validate and apply a configuration patch.

        Args:
            agent_id: Agent to update.
            patch: Field values to change.

        Returns:
            The updated descriptor.

        Raises:
            ConfigurationError: If the agent is unknown or the patch is invalid.
                Nothing is changed in that case.
        """
        current = self._agents.get(agent_id)
        if current is None:
            raise ConfigurationError(f"Unknown agent: {agent_id}")

        updated = replace(current, **_validate_patch(patch))
        self._agents[agent_id] = updated
        logger.info(f"Agent {agent_id} configuration updated: {sorted(patch)}")
        return updated

    def update_config(self, agent_id: str, patch: dict[str, Any]) -> bool:
        """Apply a patch atomically.

        Returns:
            True if applied, False if rejected (registry unchanged).
        """
        try:
            self.apply_patch(agent_id, patch)
        except ConfigurationError as e:
            logger.warning(f"Agent config update rejected for {agent_id}: {e}")
            return False
        return True

    def status(self) -> dict[str, dict[str, Any]]:
        """Activity, confidence and expertise per agent."""
        return {
            agent.id: {
                "is_active": agent.is_active,
                "confidence": agent.confidence,
                "expertise": list(agent.expertise),
            }
            for agent in self._agents.values()
        }

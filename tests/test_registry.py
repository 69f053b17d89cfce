"""Tests for the agent registry.

Tests cover:
1. Built-in roles
2. Validated, all-or-nothing configuration patches
3. Status reporting
"""

import pytest

from concierge.agents import DEFAULT_AGENTS, AgentId, AgentRegistry, AgentRole
from concierge.errors import ConfigurationError


class TestDefaults:

    def test_seven_builtin_roles(self, registry):
        assert len(registry) == 7
        assert [agent.id for agent in registry.all()] == [a.value for a in AgentId]

    def test_all_active_by_default(self, registry):
        assert len(registry.active()) == 7

    def test_registries_do_not_share_descriptors(self):
        first = AgentRegistry()
        second = AgentRegistry()
        first.apply_patch("data_analyst", {"confidence": 0.1})
        assert second.get("data_analyst").confidence == 0.82
        assert DEFAULT_AGENTS[-1].confidence == 0.82

    def test_custom_agents(self):
        registry = AgentRegistry([AgentRole(id="visa_helper", name="Visa Helper", expertise=("documentation",))])
        assert "visa_helper" in registry
        assert registry.get("destination_expert") is None


class TestPatches:

    def test_valid_patch_applied(self, registry):
        assert registry.update_config("romance_concierge", {"confidence": 0.5, "priority": 7})
        agent = registry.get("romance_concierge")
        assert agent.confidence == 0.5
        assert agent.priority == 7

    def test_deactivate_and_reactivate(self, registry):
        registry.update_config("booking_specialist", {"is_active": False})
        assert "booking_specialist" not in [a.id for a in registry.active()]
        registry.update_config("booking_specialist", {"is_active": True})
        assert "booking_specialist" in [a.id for a in registry.active()]

    def test_expertise_list_normalized(self, registry):
        registry.apply_patch("logistics_coordinator", {"expertise": ["transportation", "visa"]})
        assert registry.get("logistics_coordinator").expertise == ("transportation", "visa")

    def test_unknown_agent_rejected(self, registry):
        assert registry.update_config("travel_wizard", {"confidence": 0.5}) is False
        with pytest.raises(ConfigurationError):
            registry.apply_patch("travel_wizard", {"confidence": 0.5})

    @pytest.mark.parametrize("patch", [
        {"confidence": 1.5},
        {"confidence": -0.1},
        {"confidence": "high"},
        {"is_active": "yes"},
        {"priority": 1.5},
        {"name": ""},
        {"expertise": "destinations"},
        {"expertise": 5},
        {"expertise": None},
        {"expertise": ["destinations", 3]},
        {"mood": "happy"},
        {},
    ])
    def test_invalid_patch_rejected(self, registry, patch):
        before = registry.status()
        assert registry.update_config("destination_expert", patch) is False
        assert registry.status() == before

    def test_partially_invalid_patch_changes_nothing(self, registry):
        agent_before = registry.get("package_curator")
        accepted = registry.update_config(
            "package_curator",
            {"is_active": False, "confidence": 2.0},
        )
        assert accepted is False
        agent = registry.get("package_curator")
        assert agent.is_active is True
        assert agent.confidence == agent_before.confidence


class TestStatus:

    def test_status_shape(self, registry):
        status = registry.status()
        assert set(status) == {a.value for a in AgentId}
        assert status["customer_experience"] == {
            "is_active": True,
            "confidence": 0.92,
            "expertise": [
                "communication",
                "sentiment_analysis",
                "problem_resolution",
                "feedback_handling",
            ],
        }

    def test_status_reflects_patch(self, registry):
        registry.update_config("data_analyst", {"is_active": False})
        assert registry.status()["data_analyst"]["is_active"] is False

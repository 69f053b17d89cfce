"""Tests for agent selection.

Tests cover:
1. Complexity assessment
2. Primary and assisting selection
3. Strategy and quality estimation
4. Distribution invariants over a spread of queries
"""

import pytest

from concierge.agents import (
    AgentRegistry,
    ConversationPhase,
    ConversationState,
    CoordinationStrategy,
    DecisionAction,
    Emotion,
    EmotionalState,
    TaskComplexity,
    TaskDistributor,
    assess_complexity,
)
from concierge.agents.distributor import ASSISTING_COUNT, expertise_match
from concierge.classifier import classify_intent


BOOKING_QUERY = "Rezervasyon yapmak istiyorum, ödeme nasıl olur?"
BALI_QUERY = "Bali için paket önerir misiniz"


@pytest.fixture
def distributor(registry):
    return TaskDistributor(registry)


class TestComplexity:

    def test_confident_short_query_is_simple(self):
        assert assess_complexity(BALI_QUERY, classify_intent(BALI_QUERY)) == TaskComplexity.SIMPLE

    def test_unclassified_query_is_moderate(self):
        query = "Merhaba"
        assert assess_complexity(query, classify_intent(query)) == TaskComplexity.MODERATE

    def test_booking_phase_long_conversation_is_expert(self):
        state = ConversationState(phase=ConversationPhase.BOOKING, message_count=12)
        complexity = assess_complexity(BOOKING_QUERY, classify_intent(BOOKING_QUERY), state)
        assert complexity == TaskComplexity.EXPERT_REQUIRED

    def test_booking_phase_is_complex(self):
        state = ConversationState(phase=ConversationPhase.BOOKING)
        complexity = assess_complexity(BOOKING_QUERY, classify_intent(BOOKING_QUERY), state)
        assert complexity == TaskComplexity.COMPLEX


class TestSelection:

    def test_booking_specialist_handles_booking(self, distributor):
        state = ConversationState(phase=ConversationPhase.BOOKING, message_count=3)
        distribution = distributor.distribute(BOOKING_QUERY, state)

        assert distribution.primary_agent == "booking_specialist"
        assert distribution.assisting_agents == []
        booking = next(d for d in distribution.decisions if d.agent_id == "booking_specialist")
        assert booking.action == DecisionAction.HANDLE
        assert booking.confidence == pytest.approx(0.652)

    def test_destination_leads_package_assists(self, distributor):
        distribution = distributor.distribute(BALI_QUERY)
        assert distribution.primary_agent == "destination_expert"
        assert distribution.assisting_agents == ["package_curator"]
        assert distribution.complexity == TaskComplexity.SIMPLE
        assert distribution.strategy == CoordinationStrategy.SEQUENTIAL

    def test_distressed_customer_gets_customer_experience(self, distributor):
        emotion = EmotionalState(primary=Emotion.ANXIETY, intensity=0.8)
        distribution = distributor.distribute(BALI_QUERY, emotion=emotion)
        assert distribution.primary_agent == "customer_experience"
        assert distribution.assisting_agents == ["destination_expert", "package_curator"]

    def test_inactive_agent_never_selected(self, registry, distributor):
        state = ConversationState(phase=ConversationPhase.BOOKING, message_count=3)
        registry.update_config("booking_specialist", {"is_active": False})

        distribution = distributor.distribute(BOOKING_QUERY, state)
        assert "booking_specialist" not in distribution.selected_agents
        assert "booking_specialist" not in [d.agent_id for d in distribution.decisions]

        registry.update_config("booking_specialist", {"is_active": True})
        assert distributor.distribute(BOOKING_QUERY, state).primary_agent == "booking_specialist"

    def test_no_active_agents_falls_back(self):
        registry = AgentRegistry()
        for agent in registry.all():
            registry.update_config(agent.id, {"is_active": False})
        distribution = TaskDistributor(registry).distribute(BALI_QUERY)
        assert distribution.primary_agent == "customer_experience"
        assert distribution.assisting_agents == []

    def test_decisions_sorted_descending(self, distributor):
        decisions = distributor.distribute(BALI_QUERY).decisions
        confidences = [d.confidence for d in decisions]
        assert confidences == sorted(confidences, reverse=True)

    def test_data_analyst_joins_long_conversations(self, distributor):
        query = "Bütçe karşılaştırma"
        state = ConversationState(phase=ConversationPhase.COMPARISON, message_count=8)
        decisions = {d.agent_id: d for d in distributor.distribute(query, state).decisions}
        assert decisions["data_analyst"].reasoning.startswith("Extended conversation")


class TestStrategy:

    @pytest.mark.parametrize("complexity,count,expected", [
        (TaskComplexity.EXPERT_REQUIRED, 1, CoordinationStrategy.HIERARCHICAL),
        (TaskComplexity.EXPERT_REQUIRED, 5, CoordinationStrategy.HIERARCHICAL),
        (TaskComplexity.MODERATE, 4, CoordinationStrategy.PARALLEL),
        (TaskComplexity.SIMPLE, 3, CoordinationStrategy.SEQUENTIAL),
        (TaskComplexity.COMPLEX, 1, CoordinationStrategy.SEQUENTIAL),
    ])
    def test_select_strategy(self, complexity, count, expected):
        assert TaskDistributor.select_strategy(complexity, count) == expected

    def test_quality_clamped(self, distributor):
        assert distributor.estimate_quality("customer_experience", ["a", "b", "c", "d"], TaskComplexity.SIMPLE) == 1.0
        assert distributor.estimate_quality("unknown", [], TaskComplexity.EXPERT_REQUIRED) == pytest.approx(0.55)

    def test_quality_formula(self, distributor):
        quality = distributor.estimate_quality("destination_expert", ["package_curator"], TaskComplexity.MODERATE)
        assert quality == pytest.approx(0.9 + 0.05 - 0.05)


class TestExpertiseMatch:

    def test_empty_expertise(self):
        assert expertise_match((), "anything", classify_intent("anything")) == 0.0

    def test_capped_at_one(self):
        query = "package paket option choose select"
        intent = classify_intent("compare " + query)
        assert expertise_match(("package_selection",), query, intent) == 1.0

    def test_unknown_tags_score_zero(self):
        assert expertise_match(("weather",), "weather today", classify_intent("weather today")) == 0.0


class TestInvariants:

    QUERIES = [
        "",
        "Merhaba",
        BALI_QUERY,
        BOOKING_QUERY,
        "Paris mi Santorini mi daha romantik, fiyat farkı ne kadar?",
        "I need help, my flight was cancelled and the hotel booking has a problem",
        "Maldivler, Bali, Phuket ve Tokyo arasında 3000 euro bütçe ile balayı için hangisi?",
        "Vize ve uçak planı nasıl olmalı?",
    ]

    STATES = [
        None,
        ConversationState(phase=ConversationPhase.GREETING, message_count=1),
        ConversationState(phase=ConversationPhase.COMPARISON, message_count=7),
        ConversationState(
            phase=ConversationPhase.BOOKING,
            message_count=15,
            collected_info={"a": 1, "b": 2, "c": 3, "d": 4, "e": 5},
        ),
    ]

    EMOTIONS = [None, EmotionalState(primary=Emotion.CONFUSION), EmotionalState(primary=Emotion.JOY)]

    def test_distribution_invariants(self, registry, distributor):
        active = {agent.id for agent in registry.active()}
        for query in self.QUERIES:
            for state in self.STATES:
                for emotion in self.EMOTIONS:
                    distribution = distributor.distribute(query, state, emotion)
                    assert distribution.primary_agent in active
                    assert distribution.primary_agent not in distribution.assisting_agents
                    assert set(distribution.assisting_agents) <= active
                    assert len(distribution.assisting_agents) <= ASSISTING_COUNT[distribution.complexity]
                    assert len(set(distribution.assisting_agents)) == len(distribution.assisting_agents)
                    assert 0.5 <= distribution.expected_quality <= 1.0
                    assert all(0.0 <= d.confidence <= 1.0 for d in distribution.decisions)

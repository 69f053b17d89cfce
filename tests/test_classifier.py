"""Tests for the query intent classifier.

Tests cover:
1. Primary intent and confidence scoring
2. Entity extraction (destinations, budget, group size, style)
3. Sentiment buckets
4. Degenerate input
5. Cache category derivation and compatibility helpers
"""

import pytest

from concierge.classifier import (
    NEUTRAL_INTENT,
    CacheCategory,
    IntentCategory,
    Sentiment,
    analyze_sentiment,
    categories_compatible,
    classify_intent,
    derive_category,
    extract_entities,
    infer_related_concepts,
    intents_compatible,
)


class TestPrimaryIntent:
    """Tests for intent scoring."""

    @pytest.mark.parametrize("query,expected", [
        ("I want to book a reservation", IntentCategory.BOOKING),
        ("Compare Bali vs Maldives", IntentCategory.COMPARISON),
        ("Can you recommend a honeymoon spot?", IntentCategory.DISCOVERY),
        ("Bali için paket önerir misiniz", IntentCategory.DISCOVERY),
        ("How do I get a visa?", IntentCategory.INFORMATION),
        ("I need help with a problem", IntentCategory.SUPPORT),
    ])
    def test_primary(self, query, expected):
        assert classify_intent(query).primary is expected

    def test_single_category_full_confidence(self):
        intent = classify_intent("I want to book a reservation")
        assert intent.confidence == pytest.approx(1.0)

    def test_confidence_divided_by_scoring_categories(self):
        # booking ("book") 1.0 and information ("how") 0.7 both score
        intent = classify_intent("how do I book")
        assert intent.primary is IntentCategory.BOOKING
        assert intent.confidence == pytest.approx(0.5)

    def test_confidence_in_unit_interval(self):
        for query in ("book reserve buy payment confirm", "what", "compare which better"):
            intent = classify_intent(query)
            assert 0.0 <= intent.confidence <= 1.0

    def test_pure_function(self):
        first = classify_intent("Compare Paris and Rome packages")
        second = classify_intent("Compare Paris and Rome packages")
        assert first == second


class TestDegenerateInput:
    """Malformed input never raises."""

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_is_neutral(self, text):
        assert classify_intent(text) is NEUTRAL_INTENT

    def test_no_signal_is_information_with_zero_confidence(self):
        intent = classify_intent("hello there")
        assert intent.primary is IntentCategory.INFORMATION
        assert intent.confidence == 0.0
        assert intent.sentiment is Sentiment.NEUTRAL


class TestEntities:
    """Tests for entity extraction."""

    def test_destinations_in_order_of_appearance(self):
        entities = extract_entities("Santorini or Bali or Paris?")
        assert entities.destinations == ("santorini", "bali", "paris")

    def test_budget(self):
        assert extract_entities("around 3000 euro for a week").budget_range == "3000 euro"
        assert extract_entities("under $5000").budget_range == "$5000"

    def test_group_size(self):
        assert extract_entities("a solo trip").group_size == 1
        assert extract_entities("for a couple").group_size == 2
        assert extract_entities("ikimiz için").group_size == 2
        assert extract_entities("Paris trip").group_size is None

    def test_travel_style(self):
        assert extract_entities("a luxury escape").travel_style == "luxury"
        assert extract_entities("macera dolu bir tatil").travel_style == "macera"

    def test_empty(self):
        entities = extract_entities("")
        assert entities.destinations == ()
        assert entities.budget_range is None


class TestSentiment:

    @pytest.mark.parametrize("text,expected", [
        ("This is amazing!", Sentiment.EXCITED),
        ("Sounds good", Sentiment.POSITIVE),
        ("I need it asap", Sentiment.URGENT),
        ("That was terrible", Sentiment.NEGATIVE),
        ("Paris in May", Sentiment.NEUTRAL),
    ])
    def test_buckets(self, text, expected):
        assert analyze_sentiment(text) is expected

    def test_first_bucket_wins(self):
        # excited is checked before negative
        assert analyze_sentiment("amazing but terrible") is Sentiment.EXCITED


class TestCategoryHelpers:

    def test_destination_entity_wins(self):
        text = "book a trip to Bali"
        assert derive_category(text, classify_intent(text)) is CacheCategory.DESTINATION

    def test_booking_intent(self):
        text = "I want to book a reservation"
        assert derive_category(text, classify_intent(text)) is CacheCategory.BOOKING

    def test_style_means_package(self):
        text = "luxury honeymoon ideas"
        assert derive_category(text, classify_intent(text)) is CacheCategory.PACKAGE

    def test_general_fallback(self):
        text = "hello there"
        assert derive_category(text, classify_intent(text)) is CacheCategory.GENERAL

    def test_category_compatibility(self):
        discovery = classify_intent("recommend something")
        booking = classify_intent("book it")
        assert categories_compatible("package", "package", booking)
        assert categories_compatible("general", "booking", booking)
        assert categories_compatible("destination", "package", discovery)
        assert categories_compatible("package", "booking", booking)
        assert not categories_compatible("booking", "destination", discovery)

    def test_intent_compatibility(self):
        discovery = classify_intent("recommend something")
        information = classify_intent("how does it work")
        booking = classify_intent("book it")
        comparison = classify_intent("compare them")
        assert intents_compatible(discovery, information)
        assert intents_compatible(comparison, discovery)
        assert intents_compatible(booking, information)
        assert not intents_compatible(booking, comparison)

    def test_related_concepts(self):
        concepts = infer_related_concepts(classify_intent("Recommend Bali, amazing!"))
        assert {"explore", "find", "search"} <= set(concepts)
        assert {"destination", "travel", "location"} <= set(concepts)
        assert {"enthusiasm", "passion", "eagerness"} <= set(concepts)

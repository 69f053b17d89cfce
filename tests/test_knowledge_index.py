"""Tests for the semantic knowledge index."""

import pytest

from concierge.knowledge_index import SEED_KNOWLEDGE, SemanticKnowledgeIndex
from concierge.text import extract_keywords


class TestSeeding:

    def test_seeded_on_construction(self, index):
        assert len(index) == len(SEED_KNOWLEDGE) == 12

    def test_unseeded(self):
        assert len(SemanticKnowledgeIndex(seed=False)) == 0

    def test_stats(self, index):
        stats = index.stats()
        assert stats["total_embeddings"] == 12
        assert stats["categories"]["destination"] == 5
        assert stats["similarity_threshold"] == 0.75


class TestFindMatches:

    def test_exact_text_matches_itself_first(self):
        index = SemanticKnowledgeIndex(seed=False)
        text = "Maldivler su üstü villa balayı"
        index.add(text, "destination", extract_keywords(text))
        matches = index.find_matches(text)
        assert matches, "An entry should match its own text"
        assert matches[0].text == text
        assert matches[0].similarity == pytest.approx(1.0)

    def test_sorted_descending_and_limited(self, index):
        for i in range(6):
            index.add(f"romantic honeymoon luxury beach villa {i}", "destination")
        matches = index.find_matches("romantic honeymoon luxury beach villa", limit=3)
        assert len(matches) <= 3
        similarities = [m.similarity for m in matches]
        assert similarities == sorted(similarities, reverse=True)

    def test_threshold_respected(self, index):
        for match in index.find_matches("romantic honeymoon beach"):
            assert match.similarity >= index.threshold

    def test_ties_keep_insertion_order(self):
        index = SemanticKnowledgeIndex(seed=False)
        text = "Kapadokya balon turu"
        first = index.add(text, "destination", extract_keywords(text))
        second = index.add(text, "destination", extract_keywords(text))
        matches = index.find_matches(text)
        assert [m.metadata["key"] for m in matches] == [first, second]

    def test_nothing_qualifies(self):
        index = SemanticKnowledgeIndex(seed=False, threshold=0.99)
        index.add("mountain hiking adventure", "package")
        assert index.find_matches("spa") == []

    @pytest.mark.parametrize("query", ["", "   "])
    def test_empty_query(self, index, query):
        assert index.find_matches(query) == []

    def test_non_positive_limit(self, index):
        assert index.find_matches("romantic", limit=0) == []

    def test_add_tags_language_and_intent(self):
        index = SemanticKnowledgeIndex(seed=False)
        key = index.add("book now for Paris", "booking", ["paris"], language="en")
        match = index.find_matches("book now for Paris")[0]
        assert match.metadata["key"] == key
        assert match.metadata["language"] == "en"
        assert match.intent == "booking"


class TestKeyedEntries:

    def test_same_key_replaces_entry(self):
        index = SemanticKnowledgeIndex(seed=False)
        text = "Paris romantic hotel with Seine view"
        index.add("Paris romantic hotel", "destination", key="cache:paris")
        index.add(text, "destination", extract_keywords(text), key="cache:paris")
        assert len(index) == 1
        assert [m.text for m in index.find_matches(text)] == [text]

    def test_generated_keys_are_unique(self):
        index = SemanticKnowledgeIndex(seed=False)
        first = index.add("Bali villa", "destination")
        second = index.add("Bali villa", "destination")
        assert first != second
        assert len(index) == 2

    def test_remove(self, index):
        before = len(index)
        key = index.add("Kapadokya balloon sunrise", "activity", key="cache:kapadokya")
        assert key in index
        assert index.remove(key) is True
        assert key not in index
        assert index.remove(key) is False
        assert len(index) == before

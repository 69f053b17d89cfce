"""Semantic Knowledge Index - similarity search over reference embeddings.

Seeded with a small travel knowledge base and grown at runtime as answers
are cached. Queries are embedded together with their keywords and the
concepts implied by their intent.
"""

import logging
import time
from dataclasses import dataclass, field
from itertools import count
from typing import Any

import numpy as np

from .classifier import IntentClassifier, classify_intent, infer_related_concepts
from .embeddings import EmbeddingGenerator, cosine_similarity
from .text import extract_keywords, preview

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.75
QUERY_KEYWORD_LIMIT = 10

SEED_KNOWLEDGE: tuple[dict[str, Any], ...] = (
    # Destinations
    {
        "text": "Paris romantic honeymoon luxury Eiffel Tower Seine cruise",
        "category": "destination",
        "keywords": ("paris", "romantic", "luxury", "eiffel", "seine", "france"),
        "intent": "discovery",
        "concepts": ("romance", "city break", "culture", "luxury"),
    },
    {
        "text": "Bali tropical paradise villa spa massage sunset beach",
        "category": "destination",
        "keywords": ("bali", "tropical", "villa", "spa", "beach", "indonesia"),
        "intent": "discovery",
        "concepts": ("tropical", "relaxation", "nature", "wellness"),
    },
    {
        "text": "Santorini Greek islands blue dome sunset caldera wine",
        "category": "destination",
        "keywords": ("santorini", "greece", "islands", "sunset", "caldera", "wine"),
        "intent": "discovery",
        "concepts": ("islands", "mediterranean", "scenic", "wine"),
    },
    {
        "text": "Maldives overwater bungalow crystal clear water snorkeling",
        "category": "destination",
        "keywords": ("maldives", "overwater", "bungalow", "crystal", "snorkeling"),
        "intent": "discovery",
        "concepts": ("luxury", "water sports", "isolation", "marine life"),
    },
    {
        "text": "Kapadokya hot air balloon cave hotel fairy chimneys",
        "category": "destination",
        "keywords": ("kapadokya", "balloon", "cave", "hotel", "fairy", "turkey"),
        "intent": "discovery",
        "concepts": ("adventure", "unique", "history", "landscape"),
    },
    # Package types
    {
        "text": "luxury honeymoon package five star resort spa treatment",
        "category": "package",
        "keywords": ("luxury", "honeymoon", "five", "star", "spa", "treatment"),
        "intent": "comparison",
        "concepts": ("premium", "exclusive", "high-end", "personalized"),
    },
    {
        "text": "budget romantic getaway affordable couple package deal",
        "category": "package",
        "keywords": ("budget", "romantic", "affordable", "couple", "deal"),
        "intent": "comparison",
        "concepts": ("value", "economical", "basic", "essential"),
    },
    {
        "text": "adventure honeymoon hiking mountain climbing outdoor activities",
        "category": "package",
        "keywords": ("adventure", "hiking", "mountain", "climbing", "outdoor"),
        "intent": "discovery",
        "concepts": ("active", "nature", "sports", "adrenaline"),
    },
    # Activities
    {
        "text": "romantic dinner candlelight private chef wine tasting",
        "category": "activity",
        "keywords": ("romantic", "dinner", "candlelight", "chef", "wine"),
        "intent": "information",
        "concepts": ("dining", "intimacy", "culinary", "special"),
    },
    {
        "text": "couples massage spa relaxation wellness treatment therapy",
        "category": "activity",
        "keywords": ("couples", "massage", "spa", "relaxation", "wellness"),
        "intent": "information",
        "concepts": ("relaxation", "bonding", "health", "luxury"),
    },
    # Booking and pricing
    {
        "text": "book now reservation available dates payment confirm",
        "category": "general",
        "keywords": ("book", "reservation", "available", "payment", "confirm"),
        "intent": "booking",
        "concepts": ("purchase", "commitment", "finalize", "secure"),
    },
    {
        "text": "price cost budget how much expensive affordable cheap",
        "category": "general",
        "keywords": ("price", "cost", "budget", "expensive", "affordable"),
        "intent": "information",
        "concepts": ("financial", "value", "comparison", "planning"),
    },
)


@dataclass(slots=True)
class KnowledgeEntry:
    """A reference embedding and its tags."""
    key: str
    text: str
    vector: np.ndarray
    category: str
    language: str
    keywords: tuple[str, ...]
    intent: str
    confidence: float
    sequence: int
    timestamp: float = field(default_factory=time.time)


@dataclass(slots=True)
class KnowledgeMatch:
    """A knowledge entry that cleared the similarity threshold."""
    text: str
    similarity: float
    category: str
    intent: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "text": self.text,
            "similarity": self.similarity,
            "category": self.category,
            "intent": self.intent,
            "metadata": self.metadata,
        }


class SemanticKnowledgeIndex:
    """Growable set of tagged embeddings with cosine-similarity lookup."""

    __slots__ = ("_embedder", "_classify", "_entries", "_sequence", "threshold")

    def __init__(
        self,
        embedder: EmbeddingGenerator | None = None,
        threshold: float = DEFAULT_THRESHOLD,
        classifier: IntentClassifier = classify_intent,
        seed: bool = True,
    ):
        """Initialize the index.

        Args:
            embedder: Embedding generator (default 128 dimensions).
            threshold: Minimum cosine similarity for a match.
            classifier: Intent classifier used to infer query concepts.
            seed: Whether to load the built-in travel knowledge base.
        """
        self._embedder = embedder or EmbeddingGenerator()
        self._classify = classifier
        self._entries: dict[str, KnowledgeEntry] = {}
        self._sequence = count()
        self.threshold = threshold

        if seed:
            self._seed()

    def _seed(self) -> None:
        for position, item in enumerate(SEED_KNOWLEDGE):
            vector = self._embedder.embed(item["text"], item["keywords"], item["concepts"])
            self._commit(KnowledgeEntry(
                key=f"knowledge_{position}",
                text=item["text"],
                vector=vector,
                category=item["category"],
                language="en",
                keywords=tuple(item["keywords"]),
                intent=item["intent"],
                confidence=0.9,
                sequence=next(self._sequence),
            ))
        logger.info(f"Knowledge index seeded with {len(self._entries)} embeddings")

    def _commit(self, entry: KnowledgeEntry) -> None:
        self._entries[entry.key] = entry

    def __len__(self) -> int:
        return len(self._entries)

    def query_vector(self, query: str) -> np.ndarray:
        """Embed a query with its keywords and inferred concepts."""
        intent = self._classify(query)
        return self._embedder.embed(
            query,
            extract_keywords(query, QUERY_KEYWORD_LIMIT),
            infer_related_concepts(intent),
        )

    def add(
        self,
        text: str,
        category: str,
        keywords: list[str] | tuple[str, ...] = (),
        language: str = "en",
        key: str | None = None,
    ) -> str:
        """Insert a reference entry, replacing any entry with the same key.

        Args:
            text: Text to embed.
            category: Topic tag (destination, package, ...).
            keywords: Extra keywords folded into the embedding.
            language: Language tag.
            key: Entry key. A fresh "user_N" key is generated if omitted.

        Returns:
            Key of the entry.
        """
        intent = self._classify(text)
        vector = self._embedder.embed(text, keywords, infer_related_concepts(intent))
        sequence = next(self._sequence)
        entry = KnowledgeEntry(
            key=key or f"user_{sequence}",
            text=text,
            vector=vector,
            category=str(category),
            language=language,
            keywords=tuple(keywords),
            intent=intent.primary.value,
            confidence=0.8,
            sequence=sequence,
        )
        self._commit(entry)
        logger.debug(f"Knowledge entry added: {preview(text)}")
        return entry.key

    def remove(self, key: str) -> bool:
        """Drop an entry. Returns False if the key is unknown."""
        return self._entries.pop(key, None) is not None

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def find_matches(self, query: str, limit: int = 5) -> list[KnowledgeMatch]:
        """Return up to ``limit`` entries at or above the threshold.

        Sorted by similarity descending; ties keep insertion order.
        """
        if limit <= 0 or not self._entries or not query or not query.strip():
            return []

        query_vector = self.query_vector(query)
        scored = []
        for entry in self._entries.values():
            similarity = cosine_similarity(query_vector, entry.vector)
            if similarity >= self.threshold:
                scored.append((similarity, entry))

        scored.sort(key=lambda pair: (-pair[0], pair[1].sequence))
        return [
            KnowledgeMatch(
                text=entry.text,
                similarity=similarity,
                category=entry.category,
                intent=entry.intent,
                metadata={
                    "key": entry.key,
                    "language": entry.language,
                    "keywords": list(entry.keywords),
                    "confidence": entry.confidence,
                },
            )
            for similarity, entry in scored[:limit]
        ]

    def stats(self) -> dict[str, Any]:
        """Entry counts per category and last update time."""
        categories: dict[str, int] = {}
        last_updated = 0.0
        for entry in self._entries.values():
            categories[entry.category] = categories.get(entry.category, 0) + 1
            last_updated = max(last_updated, entry.timestamp)
        return {
            "total_embeddings": len(self._entries),
            "categories": categories,
            "similarity_threshold": self.threshold,
            "last_updated": last_updated,
        }

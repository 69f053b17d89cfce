"""Response Cache - similarity-indexed reuse of previously generated answers.

Lookup runs two strategies in order:
1. Knowledge bridge: ask the knowledge index for related concepts, then
   accept a cached entry whose query shares enough words with one of them.
2. Similarity scan: cosine similarity between query embeddings, boosted
   for compatible intents and high-quality entries.

Entries expire after a TTL and the lowest-hit entries are evicted when the
cache fills up. All operations are synchronous and in-memory; mutations
are computed first and committed in a single step.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

import numpy as np

from .classifier import (
    IntentClassifier,
    QueryIntent,
    categories_compatible,
    classify_intent,
    derive_category,
    infer_related_concepts,
    intents_compatible,
)
from .embeddings import EmbeddingGenerator, cosine_similarity
from .knowledge_index import SemanticKnowledgeIndex
from .text import extract_keywords, normalize_text, preview, word_overlap

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1000
DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_SIMILARITY_THRESHOLD = 0.8
DEFAULT_OVERLAP_THRESHOLD = 0.6
DEFAULT_EVICTION_FRACTION = 0.3

INTENT_BOOST = 1.2
QUALITY_BOOST_FLOOR = 0.8
QUALITY_BOOST_SCALE = 0.1
KNOWLEDGE_MATCH_LIMIT = 3
INDEX_RESPONSE_PREFIX = 100
ENTRY_KEYWORD_LIMIT = 8
INDEX_KEY_PREFIX = "cache:"

QUALITY_DEFAULT = 0.7
QUALITY_POSITIVE = 0.9
QUALITY_NEGATIVE = 0.3
QUALITY_STEP_UP = 0.1
QUALITY_STEP_DOWN = 0.2

_KEY_SPACE_RE = re.compile(r"\s+")


class Feedback(str, Enum):
    """User feedback attached to an answer."""
    POSITIVE = "positive"
    NEGATIVE = "negative"

    @classmethod
    def parse(cls, value: "Feedback | str | None") -> "Feedback | None":
        """Accept enum members, 'positive'/'negative' or thumbs_up/thumbs_down."""
        if value is None or isinstance(value, cls):
            return value
        lowered = str(value).lower()
        if lowered in ("positive", "thumbs_up", "up", "like"):
            return cls.POSITIVE
        if lowered in ("negative", "thumbs_down", "down", "dislike"):
            return cls.NEGATIVE
        return None


@dataclass(slots=True)
class CacheEntry:
    """A cached answer.

    Attributes:
        key: Normalized key (language, category, query text).
        query: Original query text.
        response: Cached answer text.
        embedding: Query embedding.
        intent: Intent snapshot at store time.
        category: Cache category value.
        language: Answer language.
        quality: Quality score in [0, 1], adjusted by feedback.
        hit_count: Number of lookups served.
        created_at: Creation timestamp (seconds).
    """
    key: str
    query: str
    response: str
    embedding: np.ndarray
    intent: QueryIntent
    category: str
    language: str
    quality: float = QUALITY_DEFAULT
    hit_count: int = 0
    created_at: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation (embedding omitted)."""
        return {
            "key": self.key,
            "query": self.query,
            "response": self.response,
            "intent": self.intent.to_dict(),
            "category": self.category,
            "language": self.language,
            "quality": self.quality,
            "hit_count": self.hit_count,
            "created_at": self.created_at,
        }


@dataclass(slots=True)
class CacheMatch:
    """A cache hit.

    Attributes:
        query: Query the answer was originally stored for.
        response: Cached answer.
        similarity: Similarity in [0, 1].
        category: Category of the cached entry.
        strategy: "knowledge" or "similarity".
        key: Key of the cached entry.
    """
    query: str
    response: str
    similarity: float
    category: str
    strategy: str = "similarity"
    key: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "query": self.query,
            "response": self.response,
            "similarity": self.similarity,
            "category": self.category,
            "strategy": self.strategy,
        }


POPULAR_RESPONSES: tuple[tuple[str, str, str], ...] = (
    (
        "En iyi balayı destinasyonları neler?",
        "En popüler balayı destinasyonları arasında Santorini, Bali, Maldivler ve Paris "
        "bulunmaktadır. ✨ Her biri farklı romantik deneyimler sunar.\n\n"
        "**SHOW_PACKAGES:romantic**\n\nHangi tarz bir balayı hayal ediyorsunuz? 💕",
        "tr",
    ),
    (
        "Bali balayı paketleri",
        "Bali, tropikal cennet atmosferi ile mükemmel balayı destinasyonu! 🌺 Lüks villalar, "
        "spa deneyimleri ve gün batımı yemekleri sizi bekliyor.\n\n"
        "**SHOW_PACKAGES:Bali**\n\nKaç günlük bir Bali tatili planlıyorsunuz? 💕",
        "tr",
    ),
    (
        "romantik destinasyon önerileri",
        "Romantik balayı için özel destinasyonlar! ✨ Paris'in şıklığı, Santorini'nin büyüsü, "
        "Kapadokya'nın eşsizliği sizi bekliyor.\n\n"
        "**SHOW_PACKAGES:romantic**\n\nBütçeniz ve hayal ettiğiniz atmosfer nasıl? 💕",
        "tr",
    ),
)


class ResponseCache:
    """Capacity-bounded, TTL-expiring cache of answers keyed by meaning."""

    __slots__ = (
        "_index",
        "_embedder",
        "_classify",
        "_entries",
        "_clock",
        "max_size",
        "ttl_seconds",
        "similarity_threshold",
        "overlap_threshold",
        "eviction_fraction",
        "default_language",
    )

    def __init__(
        self,
        index: SemanticKnowledgeIndex,
        embedder: EmbeddingGenerator | None = None,
        classifier: IntentClassifier = classify_intent,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD,
        eviction_fraction: float = DEFAULT_EVICTION_FRACTION,
        default_language: str = "tr",
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache.

        Args:
            index: Knowledge index used for the bridge lookup and fed on store.
            embedder: Embedding generator for query vectors.
            classifier: Intent classifier.
            max_size: Maximum number of entries.
            ttl_seconds: Entry lifetime.
            similarity_threshold: Minimum boosted similarity for a scan hit.
            overlap_threshold: Minimum word overlap for a knowledge bridge hit.
            eviction_fraction: Share of entries dropped when full.
            default_language: Language used when none is given.
            clock: Time source, injectable for tests.
        """
        if max_size <= 0:
            raise ValueError(f"Cache max_size must be positive, got {max_size}")
        self._index = index
        self._embedder = embedder or EmbeddingGenerator()
        self._classify = classifier
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.similarity_threshold = similarity_threshold
        self.overlap_threshold = overlap_threshold
        self.eviction_fraction = eviction_fraction
        self.default_language = default_language

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    @staticmethod
    def make_key(query: str, language: str, category: str) -> str:
        """Normalized cache key: language, category and query text."""
        normalized = _KEY_SPACE_RE.sub(" ", normalize_text(query))
        return f"{language}_{category}_{normalized}"

    def _embed(self, query: str, intent: QueryIntent) -> np.ndarray:
        return self._embedder.embed(
            query,
            extract_keywords(query),
            infer_related_concepts(intent),
        )

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self.ttl_seconds

    @staticmethod
    def index_key(key: str) -> str:
        """Knowledge index key of a cached answer."""
        return f"{INDEX_KEY_PREFIX}{key}"

    def _purge(self, keys: list[str]) -> None:
        for key in keys:
            if self._entries.pop(key, None) is not None:
                self._index.remove(self.index_key(key))

    # ------------------------------------------------------------------ lookup

    def lookup(
        self,
        query: str,
        language: str | None = None,
        user_id: str | None = None,
    ) -> CacheMatch | None:
        """Find a reusable answer for a query.

        Args:
            query: Incoming query.
            language: Answer language; only same-language entries match.
            user_id: Optional caller id, used for logging only.

        Returns:
            CacheMatch or None on a miss.
        """
        if not query or not query.strip():
            return None
        language = language or self.default_language
        intent = self._classify(query)
        logger.debug(
            f"Cache lookup intent={intent.primary.value} "
            f"confidence={intent.confidence:.2f} user={user_id or '-'}"
        )

        match = self._lookup_via_knowledge(query, language)
        if match is None:
            match = self._lookup_via_similarity(query, language, intent)

        if match:
            logger.info(
                f"Cache hit ({match.strategy}) similarity={match.similarity:.3f} "
                f"for query: {preview(query)}"
            )
        return match

    def _lookup_via_knowledge(self, query: str, language: str) -> CacheMatch | None:
        matches = self._index.find_matches(query, KNOWLEDGE_MATCH_LIMIT)
        if not matches:
            return None

        now = self._clock()
        expired: list[str] = []
        found: CacheMatch | None = None
        for knowledge in matches:
            for key, entry in self._entries.items():
                if entry.language != language:
                    continue
                if self._is_expired(entry, now):
                    expired.append(key)
                    continue
                if word_overlap(entry.query, knowledge.text) >= self.overlap_threshold:
                    entry.hit_count += 1
                    found = CacheMatch(
                        query=entry.query,
                        response=entry.response,
                        similarity=min(knowledge.similarity, 1.0),
                        category=entry.category,
                        strategy="knowledge",
                        key=key,
                    )
                    break
            if found:
                break

        self._purge(expired)
        return found

    def _lookup_via_similarity(
        self,
        query: str,
        language: str,
        intent: QueryIntent,
    ) -> CacheMatch | None:
        query_vector = self._embed(query, intent)
        category = derive_category(query, intent).value

        now = self._clock()
        expired: list[str] = []
        best: CacheEntry | None = None
        best_score = 0.0

        for key, entry in self._entries.items():
            if entry.language != language:
                continue
            if not categories_compatible(entry.category, category, intent):
                continue
            if self._is_expired(entry, now):
                expired.append(key)
                continue

            score = cosine_similarity(query_vector, entry.embedding)
            if intents_compatible(intent, entry.intent):
                score *= INTENT_BOOST
            if entry.quality > QUALITY_BOOST_FLOOR:
                score *= 1 + entry.quality * QUALITY_BOOST_SCALE

            if score >= self.similarity_threshold and score > best_score:
                best, best_score = entry, score

        self._purge(expired)
        if best is None:
            return None

        best.hit_count += 1
        return CacheMatch(
            query=best.query,
            response=best.response,
            similarity=min(best_score, 1.0),
            category=best.category,
            strategy="similarity",
            key=best.key,
        )

    # ------------------------------------------------------------------ writes

    def store(
        self,
        query: str,
        response: str,
        language: str | None = None,
        feedback: Feedback | str | None = None,
    ) -> CacheEntry | None:
        """Cache an answer and feed it into the knowledge index.

        Args:
            query: Query the answer was produced for.
            response: Answer text.
            language: Answer language.
            feedback: Optional initial user feedback.

        Returns:
            The stored entry, or None for empty input.
        """
        if not query or not query.strip() or not response:
            return None
        language = language or self.default_language

        intent = self._classify(query)
        category = derive_category(query, intent).value
        key = self.make_key(query, language, category)

        parsed = Feedback.parse(feedback)
        if parsed is Feedback.POSITIVE:
            quality = QUALITY_POSITIVE
        elif parsed is Feedback.NEGATIVE:
            quality = QUALITY_NEGATIVE
        else:
            quality = QUALITY_DEFAULT

        entry = CacheEntry(
            key=key,
            query=query,
            response=response,
            embedding=self._embed(query, intent),
            intent=intent,
            category=category,
            language=language,
            quality=quality,
            created_at=self._clock(),
        )
        index_text = f"{query} {response[:INDEX_RESPONSE_PREFIX]}"
        index_keywords = extract_keywords(query, ENTRY_KEYWORD_LIMIT)

        if key not in self._entries and len(self._entries) >= self.max_size:
            self.evict()
        self._entries[key] = entry
        self._index.add(index_text, category, index_keywords, language, key=self.index_key(key))

        logger.info(f"Cache entry stored: {preview(query)} (quality: {quality})")
        return entry

    def update_quality(
        self,
        query: str,
        language: str | None,
        feedback: Feedback | str,
    ) -> bool:
        """Adjust the quality of the entry stored for ``query``.

        The key is re-derived from the raw text; if normalization or
        classification yields a different key than at store time, this
        silently does nothing. Use ``update_quality_by_key`` when the key
        returned by ``store`` is available.

        Returns:
            True if an entry was updated.
        """
        language = language or self.default_language
        intent = self._classify(query)
        key = self.make_key(query, language, derive_category(query, intent).value)
        return self.update_quality_by_key(key, feedback)

    def update_quality_by_key(self, key: str, feedback: Feedback | str) -> bool:
        """Adjust quality for an entry by its exact key."""
        entry = self._entries.get(key)
        parsed = Feedback.parse(feedback)
        if entry is None or parsed is None:
            return False

        if parsed is Feedback.POSITIVE:
            entry.quality = min(1.0, entry.quality + QUALITY_STEP_UP)
            entry.hit_count += 1
        else:
            entry.quality = max(0.0, entry.quality - QUALITY_STEP_DOWN)
        logger.info(f"Cache quality updated: {parsed.value} -> {entry.quality:.2f} for {preview(entry.query, 30)}")
        return True

    def evict(self) -> int:
        """Purge expired entries, then the least-hit share if still full.

        Returns:
            Number of entries removed.
        """
        before = len(self._entries)
        now = self._clock()
        self._purge([k for k, e in self._entries.items() if self._is_expired(e, now)])

        if len(self._entries) >= self.max_size:
            remaining = sorted(
                self._entries.values(),
                key=lambda entry: (entry.hit_count, entry.created_at),
            )
            drop = max(1, int(len(remaining) * self.eviction_fraction))
            self._purge([entry.key for entry in remaining[:drop]])

        removed = before - len(self._entries)
        logger.info(f"Cache eviction removed {removed} entries, size now {len(self._entries)}")
        return removed

    def preload_popular_responses(self) -> None:
        """Seed the cache with frequently asked answers."""
        for query, response, language in POPULAR_RESPONSES:
            self.store(query, response, language)
        logger.info("Popular responses preloaded to cache")

    def get(self, key: str) -> CacheEntry | None:
        """Get an entry by key (no TTL check, no hit counting)."""
        return self._entries.get(key)

    def entries(self) -> list[CacheEntry]:
        """All entries, expired ones included."""
        return list(self._entries.values())

    def stats(self) -> dict[str, Any]:
        """Size, hit rate and per-category counts."""
        entries = list(self._entries.values())
        total_hits = sum(entry.hit_count for entry in entries)
        categories: dict[str, int] = {}
        for entry in entries:
            categories[entry.category] = categories.get(entry.category, 0) + 1
        return {
            "size": len(entries),
            "max_size": self.max_size,
            "hit_rate": total_hits / len(entries) if entries else 0.0,
            "categories": categories,
            "ttl_hours": self.ttl_seconds / 3600,
        }

    def clear(self) -> None:
        """Drop every cached entry."""
        self._purge(list(self._entries))
        logger.info("Response cache cleared")

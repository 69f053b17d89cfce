"""Query Intent Classifier - keyword/pattern scoring of travel queries.

Classifies the primary intent, extracts travel entities (destinations,
budget, group size, style) and a coarse sentiment. Everything here is a
pure function of the input text so a learned model can replace
``classify_intent`` without touching callers.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class IntentCategory(str, Enum):
    """Primary purpose of a query."""
    DISCOVERY = "discovery"
    COMPARISON = "comparison"
    BOOKING = "booking"
    INFORMATION = "information"
    SUPPORT = "support"


class Sentiment(str, Enum):
    """Coarse emotional tone of a query."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    EXCITED = "excited"
    URGENT = "urgent"


class CacheCategory(str, Enum):
    """Topic bucket used to partition cached answers."""
    DESTINATION = "destination"
    PACKAGE = "package"
    BOOKING = "booking"
    GENERAL = "general"


# Scoring order doubles as tie-break order
INTENT_PATTERNS: dict[IntentCategory, tuple[tuple[str, ...], float]] = {
    IntentCategory.BOOKING: (
        (r"book", r"reserv", r"satın al", r"\bbuy\b", r"payment", r"ödeme", r"confirm", r"available"),
        1.0,
    ),
    IntentCategory.COMPARISON: (
        (r"compar", r"\bvs\b", r"better", r"difference", r"karşılaştır", r"\bfark", r"\bwhich\b", r"\bhangi"),
        0.9,
    ),
    IntentCategory.DISCOVERY: (
        (r"recommend", r"suggest", r"\böner", r"\bbest\b", r"\btop\b", r"\bwhere\b", r"nerede", r"\bwhat\b", r"\bne\b"),
        0.8,
    ),
    IntentCategory.INFORMATION: (
        (r"\bhow\b", r"\bwhen\b", r"\bwhy\b", r"nasıl", r"ne zaman", r"neden", r"price", r"\bcost", r"fiyat"),
        0.7,
    ),
    IntentCategory.SUPPORT: (
        (r"\bhelp", r"problem", r"issue", r"yardım", r"sorun", r"error", r"\bhata"),
        0.6,
    ),
}

_COMPILED_INTENTS = {
    intent: (tuple(re.compile(p) for p in patterns), weight)
    for intent, (patterns, weight) in INTENT_PATTERNS.items()
}

DESTINATIONS = (
    "paris", "bali", "santorini", "maldives", "maldivler", "kapadokya",
    "antalya", "istanbul", "rome", "london", "tokyo", "new york",
    "barcelona", "amsterdam", "venice", "venedik", "phuket", "sri lanka",
)

TRAVEL_STYLES = ("luxury", "lüks", "budget", "bütçe", "adventure", "macera", "romantic", "romantik")

BUDGET_RE = re.compile(
    r"(\d+k?)\s*(euro|dolar|dollars?|tl|lira|\$|€|₺)|([$€₺])\s*(\d+k?)",
    re.IGNORECASE,
)
GROUP_SIZE_RE = re.compile(
    r"\b(ikimiz|çift|2\s*kişi|iki kişi|tek|alone|solo|couple|two of us)\b",
    re.IGNORECASE,
)
SOLO_MARKERS = ("tek", "solo", "alone")

# First matching bucket wins
SENTIMENT_PATTERNS: tuple[tuple[Sentiment, re.Pattern], ...] = (
    (Sentiment.EXCITED, re.compile(r"amazing|fantastic|perfect|love|excited|harika|mükemmel|seviyorum")),
    (Sentiment.POSITIVE, re.compile(r"good|great|nice|beautiful|\biyi\b|güzel")),
    (Sentiment.URGENT, re.compile(r"urgent|asap|quickly|soon|\bacil\b|hızlı|çabuk")),
    (Sentiment.NEGATIVE, re.compile(r"problem|\bbad\b|terrible|disappointed|sorun|kötü|berbat")),
)

CATEGORY_FALLBACK_PATTERNS: tuple[tuple[CacheCategory, re.Pattern], ...] = (
    (CacheCategory.DESTINATION, re.compile(
        r"paris|bali|santorini|maldiv|antalya|kapadokya|istanbul|destinasyon|destination|nere"
    )),
    (CacheCategory.PACKAGE, re.compile(r"paket|package|öner|recommend|show_packages|fiyat|price")),
    (CacheCategory.BOOKING, re.compile(r"rezervasyon|booking|book|satın|buy|ödeme|payment")),
)

COMPATIBLE_INTENTS = (
    frozenset({IntentCategory.DISCOVERY, IntentCategory.INFORMATION}),
    frozenset({IntentCategory.COMPARISON, IntentCategory.DISCOVERY}),
    frozenset({IntentCategory.BOOKING, IntentCategory.INFORMATION}),
)

INTENT_CONCEPTS: dict[IntentCategory, tuple[str, ...]] = {
    IntentCategory.DISCOVERY: ("explore", "find", "search"),
    IntentCategory.BOOKING: ("purchase", "reserve", "confirm"),
    IntentCategory.COMPARISON: ("evaluate", "compare", "choose"),
    IntentCategory.INFORMATION: ("learn", "understand", "know"),
}


@dataclass(slots=True, frozen=True)
class QueryEntities:
    """Travel entities extracted from a query.

    Attributes:
        destinations: Gazetteer destinations in order of appearance.
        budget_range: Raw matched budget text ("3000 euro").
        group_size: 1 for solo travel, 2 for couples.
        travel_style: First matching style keyword.
    """
    destinations: tuple[str, ...] = ()
    budget_range: str | None = None
    group_size: int | None = None
    travel_style: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "destinations": list(self.destinations),
            "budget_range": self.budget_range,
            "group_size": self.group_size,
            "travel_style": self.travel_style,
        }


@dataclass(slots=True, frozen=True)
class QueryIntent:
    """Result of classifying a single query.

    Attributes:
        primary: Highest scoring intent category.
        confidence: Max score over the number of categories that scored.
        entities: Extracted travel entities.
        sentiment: Coarse sentiment bucket.
        scores: Raw per-category scores, for debugging.
    """
    primary: IntentCategory
    confidence: float
    entities: QueryEntities = field(default_factory=QueryEntities)
    sentiment: Sentiment = Sentiment.NEUTRAL
    scores: dict[str, float] = field(default_factory=dict, compare=False, hash=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "primary": self.primary.value,
            "confidence": self.confidence,
            "entities": self.entities.to_dict(),
            "sentiment": self.sentiment.value,
            "scores": dict(self.scores),
        }


IntentClassifier = Callable[[str], QueryIntent]

NEUTRAL_INTENT = QueryIntent(primary=IntentCategory.INFORMATION, confidence=0.0)


def classify_intent(text: str | None) -> QueryIntent:
    """Classify a query. Empty or missing text yields the neutral intent."""
    if not text or not text.strip():
        return NEUTRAL_INTENT

    lowered = text.lower()
    scores: dict[str, float] = {}
    for intent, (patterns, weight) in _COMPILED_INTENTS.items():
        scores[intent.value] = sum(weight for p in patterns if p.search(lowered))

    scored = [value for value in scores.values() if value > 0]
    if not scored:
        return QueryIntent(
            primary=IntentCategory.INFORMATION,
            confidence=0.0,
            entities=extract_entities(text),
            sentiment=analyze_sentiment(text),
            scores=scores,
        )

    best = max(scored)
    # dict preserves declaration order, so ties go to the earlier category
    primary = next(IntentCategory(k) for k, v in scores.items() if v == best)
    return QueryIntent(
        primary=primary,
        confidence=min(1.0, best / len(scored)),
        entities=extract_entities(text),
        sentiment=analyze_sentiment(text),
        scores=scores,
    )


def extract_entities(text: str | None) -> QueryEntities:
    """Extract destinations, budget, group size and travel style."""
    if not text:
        return QueryEntities()
    lowered = text.lower()

    positions = [(lowered.find(dest), dest) for dest in DESTINATIONS if dest in lowered]
    destinations = tuple(dest for _, dest in sorted(positions))

    budget_range = None
    if match := BUDGET_RE.search(text):
        budget_range = match.group(0).strip()

    group_size = None
    if match := GROUP_SIZE_RE.search(text):
        phrase = match.group(0).lower()
        group_size = 1 if any(marker in phrase for marker in SOLO_MARKERS) else 2

    travel_style = next((style for style in TRAVEL_STYLES if style in lowered), None)

    return QueryEntities(
        destinations=destinations,
        budget_range=budget_range,
        group_size=group_size,
        travel_style=travel_style,
    )


def analyze_sentiment(text: str | None) -> Sentiment:
    """First matching sentiment bucket, neutral otherwise."""
    if not text:
        return Sentiment.NEUTRAL
    lowered = text.lower()
    for sentiment, pattern in SENTIMENT_PATTERNS:
        if pattern.search(lowered):
            return sentiment
    return Sentiment.NEUTRAL


def infer_related_concepts(intent: QueryIntent) -> list[str]:
    """Concepts implied by the intent, used to enrich query embeddings."""
    concepts = list(INTENT_CONCEPTS.get(intent.primary, ()))
    if intent.entities.destinations:
        concepts.extend(("destination", "travel", "location"))
    if intent.entities.travel_style:
        concepts.extend((intent.entities.travel_style, "style", "preference"))
    if intent.sentiment is Sentiment.EXCITED:
        concepts.extend(("enthusiasm", "passion", "eagerness"))
    return concepts


def derive_category(text: str, intent: QueryIntent) -> CacheCategory:
    """Pick the cache bucket for a query."""
    if intent.entities.destinations:
        return CacheCategory.DESTINATION
    if intent.primary is IntentCategory.BOOKING:
        return CacheCategory.BOOKING
    if intent.entities.budget_range or intent.entities.travel_style:
        return CacheCategory.PACKAGE

    lowered = text.lower()
    for category, pattern in CATEGORY_FALLBACK_PATTERNS:
        if pattern.search(lowered):
            return category
    return CacheCategory.GENERAL


def categories_compatible(cached: str, query: str, intent: QueryIntent) -> bool:
    """Whether a cached answer's category may serve a query's category."""
    if cached == query:
        return True
    if CacheCategory.GENERAL.value in (cached, query):
        return True
    if intent.primary is IntentCategory.DISCOVERY and cached == CacheCategory.DESTINATION.value:
        return True
    if intent.primary is IntentCategory.BOOKING and cached == CacheCategory.PACKAGE.value:
        return True
    if intent.primary is IntentCategory.COMPARISON and cached in (
        CacheCategory.PACKAGE.value,
        CacheCategory.DESTINATION.value,
    ):
        return True
    return False


def intents_compatible(first: QueryIntent, second: QueryIntent) -> bool:
    """Same primary intent or a known compatible pair."""
    if first.primary is second.primary:
        return True
    return frozenset({first.primary, second.primary}) in COMPATIBLE_INTENTS

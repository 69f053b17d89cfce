"""Text helpers shared by the embedder, classifier, index and cache."""

import re

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")

STOP_WORDS = frozenset({
    # English
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    # Turkish
    "için", "ile", "ve", "veya", "ama", "bu", "şu", "o", "bir", "de", "da", "den", "dan",
})

# Ordered: first matching language wins, English otherwise
LANGUAGE_CUES = (
    ("tr", re.compile(r"[çğıöşü]|merhaba|selam|teşekkür|nasıl")),
    ("es", re.compile(r"[ñáíóú¿¡]|hola|gracias|cómo|está")),
    ("fr", re.compile(r"[àâèêœ]|bonjour|merci|comment")),
    ("de", re.compile(r"[äß]|hallo|danke|bitte")),
    ("ru", re.compile(r"[а-яё]|привет|спасибо")),
)


def normalize_text(text: str | None) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    if not text:
        return ""
    cleaned = _PUNCTUATION_RE.sub("", text.lower())
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def tokenize(text: str | None) -> list[str]:
    """Split normalized text into tokens."""
    normalized = normalize_text(text)
    return normalized.split(" ") if normalized else []


def extract_keywords(text: str | None, limit: int = 10) -> list[str]:
    """Stop-word filtered tokens longer than two characters."""
    keywords = [t for t in tokenize(text) if len(t) > 2 and t not in STOP_WORDS]
    return keywords[:limit]


def word_overlap(first: str, second: str) -> float:
    """Share of words in common, relative to the longer of the two texts."""
    first_words = first.lower().split()
    second_words = second.lower().split()
    if not first_words or not second_words:
        return 0.0
    second_set = set(second_words)
    common = sum(1 for word in first_words if word in second_set)
    return common / max(len(first_words), len(second_words))


def detect_language(text: str | None, default: str = "en") -> str:
    """Cheap script/greeting based language detection."""
    if not text:
        return default
    lowered = text.lower()
    for language, pattern in LANGUAGE_CUES:
        if pattern.search(lowered):
            return language
    return default


def preview(text: str | None, length: int = 50) -> str:
    """Truncate text for log lines."""
    if not text:
        return ""
    return text if len(text) <= length else f"{text[:length]}..."

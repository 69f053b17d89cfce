"""Deterministic concept-weighted text embeddings.

Vectors are built from a fixed concept table plus a rolling character hash,
so unknown words still land somewhere in the space. Identical normalized
input always produces a bit-identical vector.
"""

import logging
from functools import lru_cache
from typing import Iterable

import numpy as np

from .text import normalize_text, tokenize

logger = logging.getLogger(__name__)

DEFAULT_DIMENSION = 128

EXACT_WEIGHT = 1.0
FUZZY_WEIGHT = 0.5
CHAR_WEIGHT = 0.1
# Shorter terms ("a", "in") would fuzzy-match half the table
MIN_FUZZY_LENGTH = 3

# Concept -> vector indices
CONCEPT_INDICES: dict[str, tuple[int, ...]] = {
    # Romance
    "romantic": (0, 10, 25, 45, 67, 89, 101),
    "luxury": (1, 15, 30, 50, 70, 90, 110),
    "honeymoon": (2, 18, 35, 55, 75, 95, 115),
    "couples": (3, 20, 40, 60, 80, 100, 120),
    # Destinations
    "beach": (4, 12, 28, 48, 68, 88, 108),
    "mountain": (5, 14, 32, 52, 72, 92, 112),
    "city": (6, 16, 36, 56, 76, 96, 116),
    "island": (7, 19, 39, 59, 79, 99, 119),
    # Activities
    "adventure": (8, 22, 42, 62, 82, 102, 122),
    "relaxation": (9, 24, 44, 64, 84, 104, 124),
    "culture": (10, 26, 46, 66, 86, 106, 126),
    "wellness": (11, 27, 47, 67, 87, 107, 127),
    # Intents
    "booking": (13, 33, 53, 73, 93, 113),
    "discovery": (17, 37, 57, 77, 97, 117),
    "comparison": (21, 41, 61, 81, 101, 121),
    "information": (23, 43, 63, 83, 103, 123),
}


def _clean_term(term: str) -> str:
    return normalize_text(term).replace(" ", "")


@lru_cache(maxsize=4096)
def _build_vector(terms: tuple[str, ...], dimension: int) -> np.ndarray:
    vector = np.zeros(dimension, dtype=np.float64)

    for term in terms:
        exact = CONCEPT_INDICES.get(term)
        if exact:
            for index in exact:
                if index < dimension:
                    vector[index] += EXACT_WEIGHT

        if len(term) >= MIN_FUZZY_LENGTH:
            for concept, indices in CONCEPT_INDICES.items():
                if concept == term:
                    continue
                if concept in term or term in concept:
                    for index in indices:
                        if index < dimension:
                            vector[index] += FUZZY_WEIGHT

        for position, char in enumerate(term):
            vector[(ord(char) * (position + 1)) % dimension] += CHAR_WEIGHT

    magnitude = float(np.linalg.norm(vector))
    if magnitude > 0:
        vector = vector / magnitude
    vector.setflags(write=False)
    return vector


def cosine_similarity(first: np.ndarray, second: np.ndarray) -> float:
    """Cosine similarity clamped to [0, 1]; 0 for mismatched or zero vectors."""
    if first.shape != second.shape:
        return 0.0
    magnitude = float(np.linalg.norm(first)) * float(np.linalg.norm(second))
    if magnitude == 0:
        return 0.0
    similarity = float(np.dot(first, second)) / magnitude
    return max(0.0, min(1.0, similarity))


class EmbeddingGenerator:
    """Turns text (plus optional keywords and concepts) into unit vectors."""

    __slots__ = ("dimension",)

    def __init__(self, dimension: int = DEFAULT_DIMENSION):
        if dimension <= 0:
            raise ValueError(f"Embedding dimension must be positive, got {dimension}")
        self.dimension = dimension

    def terms(
        self,
        text: str | None,
        keywords: Iterable[str] | None = None,
        concepts: Iterable[str] | None = None,
    ) -> tuple[str, ...]:
        """Union of text tokens, keywords and concepts in first-seen order."""
        ordered: dict[str, None] = {}
        for token in tokenize(text):
            ordered.setdefault(token, None)
        for extra in (keywords or (), concepts or ()):
            for term in extra:
                cleaned = _clean_term(term)
                if cleaned:
                    ordered.setdefault(cleaned, None)
        return tuple(ordered)

    def embed(
        self,
        text: str | None,
        keywords: Iterable[str] | None = None,
        concepts: Iterable[str] | None = None,
    ) -> np.ndarray:
        """Embed text into a read-only unit vector (all zeros for no signal)."""
        return _build_vector(self.terms(text, keywords, concepts), self.dimension)

    def zero(self) -> np.ndarray:
        """The no-signal vector."""
        return _build_vector((), self.dimension)

"""Concierge core - response reuse and multi-agent answer coordination.

Components:
    - EmbeddingGenerator: deterministic concept-weighted text vectors
    - classify_intent: keyword/pattern intent, entity and sentiment classifier
    - SemanticKnowledgeIndex: reference embeddings with similarity lookup
    - ResponseCache: TTL/capacity bounded, similarity-indexed answer cache
    - AgentOrchestrator: registry, distribution, execution and synthesis
    - ConciergeService: the in-process entry point tying it all together
"""

from .agents import AgentOrchestrator, AgentRegistry
from .cache import CacheEntry, CacheMatch, Feedback, ResponseCache
from .classifier import QueryIntent, classify_intent
from .config import Config
from .embeddings import EmbeddingGenerator, cosine_similarity
from .knowledge_index import SemanticKnowledgeIndex
from .service import Answer, ConciergeService, create_service

__version__ = "0.1.0"

__all__ = [
    "AgentOrchestrator",
    "AgentRegistry",
    "Answer",
    "CacheEntry",
    "CacheMatch",
    "ConciergeService",
    "Config",
    "EmbeddingGenerator",
    "Feedback",
    "QueryIntent",
    "ResponseCache",
    "SemanticKnowledgeIndex",
    "classify_intent",
    "cosine_similarity",
    "create_service",
]

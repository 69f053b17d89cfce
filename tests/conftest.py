"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from concierge.agents import AgentOrchestrator, AgentRegistry
from concierge.cache import ResponseCache
from concierge.knowledge_index import SemanticKnowledgeIndex


@pytest.fixture(scope="session")
def event_loop_policy():
    """Use default event loop policy for Windows compatibility."""
    import asyncio
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    return asyncio.get_event_loop_policy()


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# Long enough that a stored query never shares 60% of its words with
# the "query + response prefix" text fed to the knowledge index.
LONG_RESPONSE = (
    "Bu destinasyon balayı çiftleri için harika seçenekler sunuyor, özel villalar, "
    "gün batımı yemekleri ve unutulmaz deneyimler sizi bekliyor."
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def index():
    return SemanticKnowledgeIndex()


@pytest.fixture
def cache(index, clock):
    return ResponseCache(index, clock=clock)


@pytest.fixture
def registry():
    return AgentRegistry()


@pytest.fixture
def orchestrator(registry):
    return AgentOrchestrator(registry)

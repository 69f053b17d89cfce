"""Real-time destination data (weather, local events).

``RealTimeDataProvider`` is the collaborator interface consumed by the
destination expert. ``OfflineRealTimeProvider`` serves deterministic
climate-table data with a per-destination TTL cache, for demos and tests.
"""

import logging
import time
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WeatherSnapshot:
    """Current weather at a destination."""
    temperature: int
    condition: str
    humidity: int = 60


@dataclass(slots=True)
class LocalEvent:
    """An upcoming event at a destination."""
    name: str
    kind: str
    impact: str = "medium"


@dataclass(slots=True)
class DestinationData:
    """Weather plus upcoming events for one destination."""
    destination: str
    weather: WeatherSnapshot
    events: list[LocalEvent] = field(default_factory=list)
    fetched_at: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "destination": self.destination,
            "weather": {
                "temperature": self.weather.temperature,
                "condition": self.weather.condition,
                "humidity": self.weather.humidity,
            },
            "events": [{"name": e.name, "kind": e.kind, "impact": e.impact} for e in self.events],
            "fetched_at": self.fetched_at,
        }


class RealTimeDataProvider(ABC):
    """Source of live destination data. Implementations may raise on failure."""

    @abstractmethod
    async def get_travel_data(self, destination: str) -> DestinationData:
        """Fetch weather and events for a destination."""
        pass


CLIMATE: dict[str, tuple[int, int]] = {
    "paris": (8, 18),
    "bali": (24, 32),
    "santorini": (15, 25),
    "maldives": (26, 30),
    "maldivler": (26, 30),
    "kapadokya": (5, 20),
    "antalya": (12, 26),
}
DEFAULT_CLIMATE = (10, 25)

CONDITIONS = ("sunny", "partly_cloudy", "cloudy", "light_rain", "clear")

EVENTS: tuple[LocalEvent, ...] = (
    LocalEvent("Summer Music Festival", "festival", "high"),
    LocalEvent("Art Exhibition", "exhibition", "medium"),
    LocalEvent("Local Holiday", "holiday", "high"),
    LocalEvent("Food Festival", "festival", "medium"),
)

WEATHER_TTL_SECONDS = 30 * 60


class OfflineRealTimeProvider(RealTimeDataProvider):
    """Deterministic provider backed by a climate table."""

    __slots__ = ("_cache", "_ttl", "_clock")

    def __init__(self, ttl_seconds: float = WEATHER_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self._cache: dict[str, DestinationData] = {}
        self._ttl = ttl_seconds
        self._clock = clock

    async def get_travel_data(self, destination: str) -> DestinationData:
        key = destination.strip().lower()
        now = self._clock()
        cached = self._cache.get(key)
        if cached is not None and now - cached.fetched_at <= self._ttl:
            return cached

        low, high = CLIMATE.get(key, DEFAULT_CLIMATE)
        seed = zlib.crc32(key.encode("utf-8"))
        data = DestinationData(
            destination=destination,
            weather=WeatherSnapshot(
                temperature=low + seed % (high - low + 1),
                condition=CONDITIONS[seed % len(CONDITIONS)],
                humidity=40 + seed % 41,
            ),
            events=list(EVENTS[: 1 + seed % 3]),
            fetched_at=now,
        )
        self._cache[key] = data
        logger.debug(f"Real-time data generated for {destination}")
        return data

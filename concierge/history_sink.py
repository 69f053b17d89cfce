"""Persistence sink for orchestration records and feedback.

Writes to Redis lists when configured, otherwise to bounded in-memory
deques. Writes never raise: a Redis failure drops the sink to memory.
"""

import json
import logging
from collections import deque
from typing import Any

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

KEY_PREFIX = "concierge"
DEFAULT_CAPACITY = 1000


class HistorySink:
    """Async write-mostly log with Redis or in-memory fallback."""

    __slots__ = ("client", "available", "capacity", "_fallback")

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self.client = None
        self.available = False
        self.capacity = capacity
        self._fallback: dict[str, deque[str]] = {}

    async def connect(self, url: str) -> None:
        """Connect to Redis or use in-memory fallback."""
        if not url:
            logger.info("History sink: using in-memory (no Redis configured)")
            return

        try:
            self.client = aioredis.from_url(url, decode_responses=True)
            await self.client.ping()
            self.available = True
            logger.info(f"History sink: Redis connected ({url})")
        except Exception as e:
            self.client = None
            logger.warning(f"History sink: Redis unavailable ({e}), using in-memory")

    async def close(self) -> None:
        if self.client:
            await self.client.aclose()

    @staticmethod
    def make_key(kind: str) -> str:
        return f"{KEY_PREFIX}:{kind}"

    async def write(self, kind: str, payload: dict[str, Any]) -> None:
        """Append a JSON record to the ``kind`` log."""
        value = json.dumps(payload, ensure_ascii=False, default=str)
        key = self.make_key(kind)

        if self.available:
            try:
                await self.client.lpush(key, value)
                await self.client.ltrim(key, 0, self.capacity - 1)
                return
            except Exception as e:
                self.available = False
                logger.warning(f"History sink: Redis write failed ({e}), switching to in-memory")

        log = self._fallback.get(key)
        if log is None:
            log = self._fallback[key] = deque(maxlen=self.capacity)
        log.appendleft(value)

    async def recent(self, kind: str, limit: int = 10) -> list[dict[str, Any]]:
        """Most recent records of a kind, newest first."""
        key = self.make_key(kind)
        if self.available:
            try:
                values = await self.client.lrange(key, 0, limit - 1)
                return [json.loads(v) for v in values]
            except Exception as e:
                logger.warning(f"History sink: Redis read failed ({e})")
        values = list(self._fallback.get(key, ()))[:limit]
        return [json.loads(v) for v in values]

    async def stats(self) -> dict[str, Any]:
        if self.available:
            try:
                keys = [k async for k in self.client.scan_iter(match=f"{KEY_PREFIX}:*")]
                return {"backend": "redis", "logs": len(keys), "capacity": self.capacity}
            except Exception:
                self.available = False
        return {
            "backend": "memory",
            "logs": len(self._fallback),
            "records": sum(len(log) for log in self._fallback.values()),
            "capacity": self.capacity,
        }

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..core.config import Settings

logger = logging.getLogger("songradio.cache")

Clock = Callable[[], float]


@dataclass(slots=True)
class CacheEntry:
    payload: Any
    timestamp: float


class TTLCache(Protocol):
    ttl: float

    async def get_entry(self, key: str) -> Optional[CacheEntry]: ...

    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, payload: Any) -> None: ...

    async def clear(self) -> int: ...

    def age(self, entry: CacheEntry) -> float: ...

    async def close(self) -> None: ...


class MemoryTTLCache:
    """Process-local cache. Expired entries are dropped on read and swept on every write."""

    def __init__(self, ttl: float, *, clock: Clock = time.monotonic) -> None:
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _fresh(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.timestamp < self.ttl

    async def get_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not self._fresh(entry):
            del self._entries[key]
            return None
        return entry

    async def get(self, key: str) -> Any:
        entry = await self.get_entry(key)
        return entry.payload if entry is not None else None

    def sweep(self) -> int:
        expired = [key for key, entry in self._entries.items() if not self._fresh(entry)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def set(self, key: str, payload: Any) -> None:
        self.sweep()
        self._entries[key] = CacheEntry(payload=payload, timestamp=self.clock())

    async def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def age(self, entry: CacheEntry) -> float:
        return max(0.0, self.clock() - entry.timestamp)

    async def close(self) -> None:
        return None


class RedisTTLCache:
    """Shares cached payloads between workers; payloads must be JSON compatible."""

    def __init__(self, redis: Redis, ttl: float, *, prefix: str, clock: Clock = time.time) -> None:
        self.redis = redis
        self.ttl = ttl
        self.prefix = prefix
        self.clock = clock

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get_entry(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = await self.redis.get(self._key(key))
        except RedisError as exc:
            logger.warning("Redis read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            stored = json.loads(raw)
            entry = CacheEntry(payload=stored["payload"], timestamp=float(stored["timestamp"]))
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding undecodable cache entry %s", key)
            await self._discard(key)
            return None
        if self.clock() - entry.timestamp >= self.ttl:
            await self._discard(key)
            return None
        return entry

    async def _discard(self, key: str) -> None:
        try:
            await self.redis.delete(self._key(key))
        except RedisError as exc:
            logger.warning("Redis delete failed for %s: %s", key, exc)

    async def get(self, key: str) -> Any:
        entry = await self.get_entry(key)
        return entry.payload if entry is not None else None

    async def set(self, key: str, payload: Any) -> None:
        value = json.dumps({"payload": payload, "timestamp": self.clock()})
        try:
            await self.redis.set(self._key(key), value, ex=max(1, int(self.ttl)))
        except RedisError as exc:
            logger.warning("Redis write failed for %s: %s", key, exc)

    async def clear(self) -> int:
        try:
            keys = [key async for key in self.redis.scan_iter(match=f"{self.prefix}*")]
            if not keys:
                return 0
            return int(await self.redis.delete(*keys))
        except RedisError as exc:
            logger.warning("Redis clear failed for %s: %s", self.prefix, exc)
            return 0

    def age(self, entry: CacheEntry) -> float:
        return max(0.0, self.clock() - entry.timestamp)

    async def close(self) -> None:
        await self.redis.aclose()


def build_cache(settings: Settings, namespace: str, *, clock: Optional[Clock] = None) -> TTLCache:
    if settings.cache_backend == "redis":
        redis = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
        return RedisTTLCache(
            redis,
            settings.cache_ttl_seconds,
            prefix=f"{settings.cache_prefix}{namespace}:",
            clock=clock or time.time,
        )
    return MemoryTTLCache(settings.cache_ttl_seconds, clock=clock or time.monotonic)

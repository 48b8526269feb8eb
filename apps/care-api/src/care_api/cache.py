from __future__ import annotations

import asyncio
import json
import logging
import math
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import ValidationError

from care_api.errors import CacheWriteError
from care_api.schemas.facility import Facility

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "nearby:"
DEFAULT_TTL_SECONDS = 300
COORDINATE_PRECISION = 3
SWEEP_INTERVAL_SECONDS = 60.0
DEFAULT_READ_TIMEOUT_SECONDS = 1.0

Clock = Callable[[], float]


class CacheStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> Any | None:
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def invalidate_prefix(self, prefix: str) -> int:
        raise NotImplementedError


class RedisLikeCacheClient(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def setex(self, key: str, seconds: int, value: str) -> bool: ...

    async def keys(self, pattern: str) -> list[str]: ...

    async def delete(self, *keys: str) -> int: ...


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class InMemoryCacheStore(CacheStore):
    """Process-local store; each key is guarded by its own lock.

    A key's lock lives only while some caller holds or waits on it, and expired
    entries are swept on write at most once per ``sweep_interval_seconds``.
    """

    def __init__(self, clock: Clock = time.time, sweep_interval_seconds: float = SWEEP_INTERVAL_SECONDS) -> None:
        self._items: dict[str, tuple[float, Any]] = {}
        self._locks: dict[str, _KeyLock] = {}
        self._clock = clock
        self._sweep_interval_seconds = sweep_interval_seconds
        self._next_sweep_at = 0.0

    @asynccontextmanager
    async def _locked(self, key: str):
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                self._locks.pop(key, None)

    async def get(self, key: str) -> Any | None:
        async with self._locked(key):
            item = self._items.get(key)
            if item is None:
                return None
            expires_at, value = item
            if expires_at <= self._clock():
                self._items.pop(key, None)
                return None
            return value

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        async with self._locked(key):
            now = self._clock()
            self._sweep_expired(now)
            self._items[key] = (now + ttl_seconds, value)

    async def delete(self, key: str) -> None:
        async with self._locked(key):
            self._items.pop(key, None)

    async def invalidate_prefix(self, prefix: str) -> int:
        keys = [key for key in self._items if key.startswith(prefix)]
        for key in keys:
            self._items.pop(key, None)
        return len(keys)

    def _sweep_expired(self, now: float) -> None:
        if now < self._next_sweep_at:
            return
        self._next_sweep_at = now + self._sweep_interval_seconds
        expired = [key for key, (expires_at, _) in self._items.items() if expires_at <= now]
        for key in expired:
            self._items.pop(key, None)
        if expired:
            logger.debug("cache_expired_swept", extra={"swept": len(expired)})

    def __len__(self) -> int:
        return len(self._items)


class RedisCacheStore(CacheStore):
    """Stores ``{"value", "expiry"}`` records under SETEX.

    Expired records are treated as misses on read and left for Redis TTL to
    evict, so a read never deletes a newer concurrent write.
    """

    def __init__(self, client: RedisLikeCacheClient, clock: Clock = time.time) -> None:
        self._client = client
        self._clock = clock

    async def get(self, key: str) -> Any | None:
        raw = await self._client.get(key)
        if not raw:
            return None
        record = json.loads(raw)
        if not isinstance(record, dict) or record.get("expiry", 0) <= self._clock():
            return None
        return record.get("value")

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        payload = json.dumps({"value": value, "expiry": self._clock() + ttl_seconds}, ensure_ascii=True)
        await self._client.setex(key, max(1, math.ceil(ttl_seconds)), payload)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def invalidate_prefix(self, prefix: str) -> int:
        keys = await self._client.keys(f"{prefix}*")
        if not keys:
            return 0
        return await self._client.delete(*keys)


def _quantize(value: float) -> str:
    # adding 0.0 turns -0.0 into 0.0 so tiny negatives share a key with tiny positives
    return f"{round(value, COORDINATE_PRECISION) + 0.0:.{COORDINATE_PRECISION}f}"


@dataclass
class FacilityCache:
    store: CacheStore
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    prefix: str = CACHE_KEY_PREFIX
    read_timeout_seconds: float = DEFAULT_READ_TIMEOUT_SECONDS

    def generate_key(self, lat: float, lon: float, radius: int, category: str) -> str:
        return f"{self.prefix}{category}_{_quantize(lat)}_{_quantize(lon)}_{radius}"

    async def get(self, key: str) -> list[Facility] | None:
        try:
            cached = await asyncio.wait_for(self.store.get(key), timeout=self.read_timeout_seconds)
        except Exception:
            logger.warning("cache_read_failed", extra={"cache_key": key}, exc_info=True)
            return None
        if cached is None:
            return None
        try:
            return [Facility.model_validate(item) for item in cached]
        except (ValidationError, TypeError):
            logger.warning("cache_entry_invalid", extra={"cache_key": key})
            return None

    async def set(
        self,
        key: str,
        facilities: Sequence[Facility],
        ttl_seconds: int | None = None,
    ) -> bool:
        value = [facility.model_dump(mode="json") for facility in facilities]
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        try:
            await self._write(key, value, ttl)
        except CacheWriteError:
            logger.exception("cache_write_failed", extra={"cache_key": key})
            return False
        return True

    async def _write(self, key: str, value: list[dict[str, Any]], ttl_seconds: float) -> None:
        try:
            await self.store.set(key, value, ttl_seconds)
        except Exception as exc:
            raise CacheWriteError(f"cache write failed for {key}") from exc

    async def invalidate(self, key: str) -> None:
        await self.store.delete(key)

    async def clear(self) -> int:
        removed = await self.store.invalidate_prefix(self.prefix)
        logger.info("cache_cleared", extra={"prefix": self.prefix, "removed": removed})
        return removed

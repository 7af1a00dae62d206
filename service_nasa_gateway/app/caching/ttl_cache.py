"""
In-process TTL cache for the NASA gateway.
"""

import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from shared.logging import get_logger


@dataclass(frozen=True)
class CacheStats:
    """Counters reported by a TTLCache."""

    hits: int
    misses: int
    key_count: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "keys": self.key_count,
            "hit_rate": self.hit_rate,
        }


@dataclass
class CacheEntry:
    key: str
    value: Any
    stored_at: float
    ttl_seconds: int

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl_seconds


class TTLCache:
    """Key/value store with per-entry expiry and cumulative hit/miss counters.

    Expired entries are treated as absent on read and removed lazily. A
    background sweeper can be started to reclaim memory held by entries
    nobody reads again. Hit/miss counters survive ``flush_all`` and only
    reset with the cache instance itself.
    """

    def __init__(
        self,
        default_ttl_seconds: int = 3600,
        sweep_interval_seconds: int = 600,
        *,
        clock: Callable[[], float] = time.monotonic,
        name: str = "api",
    ):
        self.default_ttl_seconds = default_ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self.name = name
        self.logger = get_logger(f"gateway.cache.{name}")

        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    def get(self, key: str) -> Optional[Any]:
        """Return the live value for ``key`` or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._clock() >= entry.expires_at:
                del self._entries[key]
                entry = None

            if entry is None:
                self._misses += 1
                return None

            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, stored_at=self._clock(), ttl_seconds=ttl)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def flush_all(self) -> int:
        """Drop every entry; counters are left untouched."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        self.logger.info("Cache flushed", cache=self.name, removed=removed)
        return removed

    def keys(self) -> List[str]:
        now = self._clock()
        with self._lock:
            return [key for key, entry in self._entries.items() if now < entry.expires_at]

    def stats(self) -> CacheStats:
        return CacheStats(hits=self._hits, misses=self._misses, key_count=len(self.keys()))

    def total_size_bytes(self, sizer: Callable[[Any], int] = len) -> int:
        """Sum ``sizer(value)`` over live entries."""
        now = self._clock()
        with self._lock:
            values = [entry.value for entry in self._entries.values() if now < entry.expires_at]
        return sum(sizer(value) for value in values)

    def sweep(self) -> int:
        """Remove expired entries and return how many were dropped."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]

        if expired:
            self.logger.debug("Expired cache entries swept", cache=self.name, removed=len(expired))
        return len(expired)

    def start_sweeper(self) -> None:
        """Start periodic sweeping on the running event loop."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.create_task(self._sweep_loop(), name=f"cache-sweeper-{self.name}")

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            self.sweep()

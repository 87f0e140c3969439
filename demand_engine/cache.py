"""
TTL cache for demand signals, keyed by topic set.

The cache is an ordinary object owned by whoever builds the service; there is
no module-level state. get_or_compute serialises recomputation per key so
concurrent requests for the same topics trigger a single computation.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, Optional, Sequence, Tuple

from .demand.models import DemandSignal
from .demand.topics import topic_key

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class DemandSignalCache:
    """In-memory demand signal cache with expiry."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, Tuple[float, DemandSignal]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    def _expired(self, stored_at: float) -> bool:
        return self.clock() - stored_at >= self.ttl_seconds

    def get(self, topics: Sequence[str]) -> Optional[DemandSignal]:
        """Cached signal for the topic set, or None if absent or expired."""
        key = topic_key(topics)
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, signal = entry
        if self._expired(stored_at):
            del self._entries[key]
            return None
        return signal

    def set(self, topics: Sequence[str], signal: DemandSignal) -> None:
        """Store a signal, evicting any entries that have expired."""
        self.cleanup()
        self._entries[topic_key(topics)] = (self.clock(), signal)

    def invalidate(self, topics: Sequence[str]) -> bool:
        """Drop one topic set. Returns True if an entry was removed."""
        key = topic_key(topics)
        removed = self._entries.pop(key, None) is not None
        if removed:
            logger.info("Invalidated cached demand signal for %s", key)
        return removed

    def invalidate_all(self) -> int:
        """Drop every entry. Returns how many were removed."""
        count = len(self._entries)
        self._entries.clear()
        logger.info("Invalidated %d cached demand signals", count)
        return count

    def cleanup(self) -> int:
        """Remove expired entries. Returns how many were removed."""
        expired = [k for k, (stored_at, _) in self._entries.items() if self._expired(stored_at)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Removed %d expired demand signals", len(expired))
        return len(expired)

    def stats(self) -> dict:
        now = self.clock()
        ages = [now - stored_at for stored_at, _ in self._entries.values()]
        return {
            "size": len(self._entries),
            "oldest_age_seconds": max(ages) if ages else 0.0,
        }

    async def get_or_compute(
        self,
        topics: Sequence[str],
        compute: Callable[[], Awaitable[DemandSignal]],
    ) -> DemandSignal:
        """Return the cached signal or compute, store and return a fresh one."""
        cached = self.get(topics)
        if cached is not None:
            return cached

        key = topic_key(topics)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                # Another task may have filled the entry while we waited
                cached = self.get(topics)
                if cached is not None:
                    return cached
                signal = await compute()
                self.set(topics, signal)
                return signal
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]

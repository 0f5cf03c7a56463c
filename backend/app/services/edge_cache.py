"""
XenoCanto Proxy: Edge Cache Store & Accessor
===============================================

What:  The response cache used to avoid repeat upstream calls for a species.
Why:   xeno-canto responses for a species change rarely; serving them from a
       cache cuts upstream load and latency for the front-end.
How:   InMemoryCacheStore keeps entries in an insertion-ordered dict with a
       per-entry TTL and a capacity bound. EdgeCacheAccessor wraps any
       CacheStore with the proxy's read/write semantics.

Accessor semantics:
    lookup(key)  → entry | None
        Best effort. A backend exception is logged and reported as a miss.
    store_entry(key, body, headers, ttl)
        Meant to run as a background task after the response has been sent.
        Any failure is logged and dropped. No retry.

Single-process note:
    Each uvicorn worker holds its own InMemoryCacheStore. Concurrent misses
    for the same species may both go upstream and both store; the second
    write replaces the first, which is harmless because both came from the
    same upstream query.
"""

import logging
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional

from app.config import settings
from app.exceptions import CacheStoreError
from app.services.cache_base import CacheStore, CachedEntry

logger = logging.getLogger(__name__)


class InMemoryCacheStore(CacheStore):
    """
    In-process TTL cache standing in for the platform's edge cache.

    Eviction policy:
        - Expired entries are dropped when read.
        - When full, the oldest-written entry is evicted first.
    """

    def __init__(
        self,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CachedEntry]" = OrderedDict()

    async def get(self, key: str) -> Optional[CachedEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            return None
        return entry

    async def put(
        self,
        key: str,
        body: bytes,
        headers: Dict[str, str],
        ttl_seconds: int,
    ) -> None:
        if ttl_seconds <= 0:
            raise CacheStoreError(
                message="Refusing to store an entry with a non-positive TTL",
                context={"key": key, "ttl_seconds": ttl_seconds},
            )

        entry = CachedEntry(
            body=bytes(body),
            headers=dict(headers),
            expires_at=self._clock() + ttl_seconds,
        )

        # Re-inserting moves the key to the end (newest)
        self._entries.pop(key, None)
        self._entries[key] = entry

        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Edge cache full, evicted %s", evicted)

    async def size(self) -> int:
        return len(self._entries)


class EdgeCacheAccessor:
    """Read/write access to the shared cache with failure containment."""

    def __init__(self, store: CacheStore):
        self.store = store

    async def lookup(self, key: str) -> Optional[CachedEntry]:
        try:
            return await self.store.get(key)
        except Exception as e:
            # Unknown, not an error: fall through to the upstream fetch
            logger.warning("Edge cache lookup failed for %s: %s", key, str(e))
            return None

    async def store_entry(
        self,
        key: str,
        body: bytes,
        headers: Dict[str, str],
        ttl_seconds: int,
    ) -> None:
        """
        Populate the cache. Intended for BackgroundTasks; never raises.
        """
        try:
            await self.store.put(key, body, headers, ttl_seconds)
            logger.debug("Edge cache populated: %s (ttl=%ds)", key, ttl_seconds)
        except Exception as e:
            logger.warning(
                "Edge cache store dropped for %s: %s",
                key,
                str(e),
                extra={"error_type": type(e).__name__},
            )

    async def entry_count(self) -> Optional[int]:
        try:
            return await self.store.size()
        except Exception as e:
            logger.warning("Edge cache size unavailable: %s", str(e))
            return None


# ── Singleton Instance ────────────────────────────────────────────────────
# Shared by every request in this worker process
edge_cache = EdgeCacheAccessor(
    InMemoryCacheStore(max_entries=settings.edge_cache_max_entries)
)

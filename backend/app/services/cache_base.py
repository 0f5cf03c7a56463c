"""
XenoCanto Proxy: Abstract Edge Cache Interface
=================================================

What:  Abstract base class defining the contract for the shared response cache.
Why:   On an edge platform the cache is provided by the host and is opaque to
       us. Coding against an interface lets the proxy run with the in-process
       store today and a platform-backed store later without touching the
       dispatcher.
How:   Concrete stores inherit from CacheStore and implement get()/put().

Contract:
    - get() is a best-effort read. A missing or expired entry returns None;
      None means "unknown", never an error.
    - put() may raise (CacheStoreError or anything the backend throws).
      Callers on the request path never call put() directly; the accessor
      runs it in the background and drops failures.
    - Stored bytes are returned unchanged on a later get().
    - Eviction is entirely the store's own policy.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class CachedEntry:
    """
    An opaque cached response: body bytes plus the header set stored with it.

    `expires_at` is a monotonic-clock deadline derived from the TTL passed to
    put(); it is the server-side freshness window and is unrelated to the
    Cache-Control value later sent to browsers.
    """

    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)
    expires_at: float = float("inf")

    def is_fresh(self, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.monotonic()) < self.expires_at


class CacheStore(ABC):
    """Key-value response store shared by every request in the process."""

    @abstractmethod
    async def get(self, key: str) -> Optional[CachedEntry]:
        """
        Look up a cached response.

        Args:
            key: Synthetic cache URL from derive_cache_key().

        Returns:
            The stored entry, or None if absent or expired.
        """
        ...

    @abstractmethod
    async def put(
        self,
        key: str,
        body: bytes,
        headers: Dict[str, str],
        ttl_seconds: int,
    ) -> None:
        """
        Store a response under `key`, replacing any previous entry.

        Last write wins when two requests populate the same key concurrently.

        Raises:
            CacheStoreError: The entry could not be stored.
        """
        ...

    @abstractmethod
    async def size(self) -> int:
        """Number of entries currently held (used by the health check)."""
        ...

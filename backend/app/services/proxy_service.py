"""
XenoCanto Proxy: Proxy Service (Request Orchestrator)
========================================================

What:  Turns a species lookup into a response: cache first, upstream on miss.
Why:   Keeps HTTP plumbing in the routes and the proxy's rules in one place.
How:   Composes the cache key deriver, EdgeCacheAccessor and XenoCantoService.

Orchestration Flow (GET /?species=...):
    ┌────────────┐    ┌──────────────┐  hit   ┌─────────────────────────┐
    │ Derive key │───▶│ Cache lookup │───────▶│ cached body, fresh CORS │
    └────────────┘    └──────────────┘        └─────────────────────────┘
                             │ miss
                             ▼
                      ┌──────────────┐        ┌─────────────────────────┐
                      │  xeno-canto  │───────▶│ body + MISS headers     │
                      └──────────────┘        │ + pending cache store   │
                                              └─────────────────────────┘

Header sets:
    Client (miss): Content-Type, Access-Control-Allow-Origin,
                   Cache-Control: public, max-age=<browser_cache_max_age>,
                   X-Cache: MISS
    Cached:        Content-Type, Cache-Control: public, max-age=<edge_cache_ttl>
                   (no CORS header: it is re-applied per request on every hit)
    Client (hit):  the cached set, with Access-Control-Allow-Origin set to this
                   request's origin and X-Cache: HIT

The service never writes to the cache itself. On a miss it returns a
PendingStore that the route schedules as a background task, so the response
is not held up by (or affected by) cache population.
"""

import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from app.config import settings
from app.exceptions import UpstreamServiceError
from app.services.cache_key import derive_cache_key
from app.services.edge_cache import EdgeCacheAccessor, edge_cache
from app.services.xeno_canto_service import XenoCantoService, xeno_canto_service

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"

PREFLIGHT_ALLOW_METHODS = "GET, OPTIONS"
PREFLIGHT_ALLOW_HEADERS = "Content-Type"


def set_header(headers: Dict[str, str], name: str, value: str) -> None:
    """Set `name` in a plain dict, replacing any existing key case-insensitively."""
    for existing in [key for key in headers if key.lower() == name.lower()]:
        del headers[existing]
    headers[name] = value


@dataclass(frozen=True)
class PendingStore:
    """A cache write to run after the response has been sent."""

    key: str
    body: bytes
    headers: Dict[str, str]
    ttl_seconds: int


@dataclass
class ProxyResult:
    """Successful species lookup, ready to be sent as a 200 response."""

    body: bytes
    headers: Dict[str, str]
    cache_status: str
    pending_store: Optional[PendingStore] = None


class ProxyService:
    """
    Business logic layer for the species proxy.

    Stateless apart from its collaborators; one instance serves every request.
    """

    def __init__(
        self,
        cache: EdgeCacheAccessor,
        upstream: XenoCantoService,
        browser_cache_max_age: int = 86_400,
        edge_cache_ttl: int = 604_800,
    ):
        self.cache = cache
        self.upstream = upstream
        self.browser_cache_max_age = browser_cache_max_age
        self.edge_cache_ttl = edge_cache_ttl

    def preflight_headers(self, cors_origin: str) -> Dict[str, str]:
        return {
            "Access-Control-Allow-Origin": cors_origin,
            "Access-Control-Allow-Methods": PREFLIGHT_ALLOW_METHODS,
            "Access-Control-Allow-Headers": PREFLIGHT_ALLOW_HEADERS,
        }

    async def lookup_species(self, species: str, cors_origin: str) -> ProxyResult:
        """
        Serve recordings for one species.

        Args:
            species: Raw `species` query value (already URL-decoded).
            cors_origin: Origin resolved for this request by OriginValidator.

        Returns:
            ProxyResult marked HIT (no pending store) or MISS (with one).

        Raises:
            UpstreamServiceError: Cache miss and the upstream call failed.
        """
        cache_key = derive_cache_key(species)

        # ── Cache hit ─────────────────────────────────────────────────────
        cached = await self.cache.lookup(cache_key)
        if cached is not None:
            headers = dict(cached.headers)
            set_header(headers, "Access-Control-Allow-Origin", cors_origin)
            set_header(headers, "X-Cache", "HIT")
            logger.debug("Edge cache hit: %s", cache_key)
            return ProxyResult(body=cached.body, headers=headers, cache_status="HIT")

        # ── Cache miss: go upstream ───────────────────────────────────────
        data = await self.upstream.fetch_recordings(species)
        body = self._encode(data, species)

        headers = {
            "Content-Type": JSON_CONTENT_TYPE,
            "Access-Control-Allow-Origin": cors_origin,
            "Cache-Control": f"public, max-age={self.browser_cache_max_age}",
            "X-Cache": "MISS",
        }
        pending = PendingStore(
            key=cache_key,
            body=body,
            headers={
                "Content-Type": JSON_CONTENT_TYPE,
                "Cache-Control": f"public, max-age={self.edge_cache_ttl}",
            },
            ttl_seconds=self.edge_cache_ttl,
        )
        return ProxyResult(
            body=body,
            headers=headers,
            cache_status="MISS",
            pending_store=pending,
        )

    async def run_pending_store(self, pending: PendingStore) -> None:
        """Background task body: populate the cache, never raise."""
        await self.cache.store_entry(
            pending.key,
            pending.body,
            pending.headers,
            pending.ttl_seconds,
        )

    @staticmethod
    def _encode(data, species: str) -> bytes:
        # Compact separators, non-ASCII kept as-is
        try:
            return json.dumps(
                data, separators=(",", ":"), ensure_ascii=False, allow_nan=False
            ).encode("utf-8")
        except ValueError as e:
            logger.error("Upstream payload for species=%r is not valid JSON: %s", species, e)
            raise UpstreamServiceError(context={"error_type": type(e).__name__}) from e


# ── Singleton Instance ────────────────────────────────────────────────────
proxy_service = ProxyService(
    cache=edge_cache,
    upstream=xeno_canto_service,
    browser_cache_max_age=settings.browser_cache_max_age,
    edge_cache_ttl=settings.edge_cache_ttl,
)


def get_proxy_service() -> ProxyService:
    """FastAPI dependency returning the process-wide ProxyService."""
    return proxy_service

"""
XenoCanto Proxy: Upstream Fetcher (xeno-canto API v3)
=======================================================

What:  Issues the outbound recordings search and decodes the JSON payload.
Why:   Keeps the API key server-side; the browser never sees it.
How:   One shared httpx.AsyncClient per process, opened lazily and closed by
       the application lifespan.

Query format:
    GET {upstream_base_url}?query=sp:"<species>" q:<grade>&key=<api key>

    `sp:"..."` is xeno-canto's exact species match; `q:A` restricts results
    to top-quality recordings.

Failure model:
    Network errors, malformed bodies, and any other exception during the call
    or decode all become a single UpstreamServiceError. There is no retry and
    no client-side timeout unless `upstream_timeout` is configured.

    The upstream HTTP status is not inspected: a non-2xx response whose body
    is valid JSON is returned as a success. The status is logged so that this
    can be tightened later if needed.
"""

import logging
import time
import uuid
from typing import Any, Optional

import httpx

from app.config import settings
from app.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)


class XenoCantoService:
    """Thin client for the xeno-canto recordings endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        quality: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.xeno_canto_api_key
        self.base_url = base_url or settings.upstream_base_url
        self.quality = quality or settings.upstream_quality
        self.timeout = timeout if timeout is not None else settings.upstream_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_query(self, species: str) -> str:
        return f'sp:"{species}" q:{self.quality}'

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def fetch_recordings(self, species: str) -> Any:
        """
        Search xeno-canto for quality-A recordings of one species.

        Args:
            species: Species name exactly as received from the client.

        Returns:
            The decoded JSON payload (any JSON value).

        Raises:
            UpstreamServiceError: The call or the decode failed for any reason.
        """
        call_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        try:
            response = await self._get_client().get(
                self.base_url,
                params={"query": self.build_query(species), "key": self.api_key},
            )
            data = response.json()
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "[%s] xeno-canto request failed after %.0fms for species=%r: %s",
                call_id,
                duration_ms,
                species,
                type(e).__name__,
            )
            raise UpstreamServiceError(
                context={"call_id": call_id, "error_type": type(e).__name__},
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        if response.is_success:
            logger.info(
                "[%s] xeno-canto responded %d in %.0fms for species=%r",
                call_id,
                response.status_code,
                duration_ms,
                species,
            )
        else:
            logger.warning(
                "[%s] xeno-canto responded %d in %.0fms for species=%r; "
                "passing JSON body through",
                call_id,
                response.status_code,
                duration_ms,
                species,
            )
        return data

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None


# ── Singleton Instance ────────────────────────────────────────────────────
# One connection pool shared by every request
xeno_canto_service = XenoCantoService()

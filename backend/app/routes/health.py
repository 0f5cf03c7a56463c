"""
XenoCanto Proxy: Health Check Route
======================================

What:  Health check endpoint for monitoring and platform probes.
How:   Reports whether the upstream credential is configured and how many
       entries the edge cache holds. It never calls xeno-canto: probes run
       every few seconds and would spend the API quota.

Status levels:
    - healthy:   API key present
    - degraded:  API key missing (every cache miss will fail upstream)
"""

import logging
import time

from fastapi import APIRouter, Depends

from app import __version__
from app.schemas.proxy import HealthResponse
from app.services.proxy_service import ProxyService, get_proxy_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    service: ProxyService = Depends(get_proxy_service),
) -> HealthResponse:
    configured = service.upstream.is_configured
    if not configured:
        logger.warning("Health check: XENO_CANTO_API_KEY is not configured")

    return HealthResponse(
        status="healthy" if configured else "degraded",
        version=__version__,
        upstream_configured=configured,
        cache_entries=await service.cache.entry_count(),
        uptime_seconds=round(time.time() - _start_time, 2),
    )

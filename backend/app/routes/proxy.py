"""
XenoCanto Proxy: Species Proxy Route Handlers
================================================

What:  Handles CORS preflight (OPTIONS, any path) and species lookups (every
       other method, any path).
Why:   This is the only surface the front-end talks to.
How:   Resolves the CORS origin, validates `species`, delegates to ProxyService,
       and schedules cache population as a background task on a miss.

Request Flow (GET, HEAD, POST, PUT, PATCH, DELETE):
    1. Resolve CORS origin from the Origin header
    2. Reject a missing `species` with 400 (ValidationError → handler in main.py)
    3. ProxyService: cache lookup → upstream on miss
    4. Return 200 with the JSON body; on a miss the cache write runs after
       the response has been sent (Starlette BackgroundTask)

The method only decides preflight vs lookup; a request body is never read.
The path is ignored: `/`, `/recordings` and `/anything` behave the same.
`GET /health` is the one reserved path (registered earlier); the OpenAPI
docs routes are disabled in create_app() so they cannot shadow lookups.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from starlette.background import BackgroundTask

from app.exceptions import InternalProxyError, ValidationError, XenoCantoProxyError
from app.schemas.proxy import ErrorResponse
from app.services.origin_validator import origin_validator
from app.services.proxy_service import ProxyService, get_proxy_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Proxy"])

# Everything except OPTIONS is a data request
LOOKUP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def get_cors_origin(request: Request) -> str:
    """Origin to echo in Access-Control-Allow-Origin for this request."""
    origin = origin_validator.resolve(request.headers.get("origin"))
    request.state.cors_origin = origin
    return origin


@router.options(
    "/{path:path}",
    summary="CORS preflight",
    description="Answers browser preflight requests with the permitted methods and headers.",
)
async def preflight(
    path: str,
    cors_origin: str = Depends(get_cors_origin),
    service: ProxyService = Depends(get_proxy_service),
) -> Response:
    return Response(status_code=200, headers=service.preflight_headers(cors_origin))


@router.api_route(
    "/{path:path}",
    methods=LOOKUP_METHODS,
    responses={
        200: {"description": "xeno-canto recordings payload (passed through)"},
        400: {"description": "Missing species parameter", "model": ErrorResponse},
        500: {"description": "Upstream failure", "model": ErrorResponse},
    },
    summary="Look up recordings for a species",
    description=(
        "Returns quality-A xeno-canto recordings for the exact species name given "
        "in the `species` query parameter. Responses are cached at the edge for "
        "7 days; X-Cache reports HIT or MISS."
    ),
)
async def species_lookup(
    path: str,
    request: Request,
    cors_origin: str = Depends(get_cors_origin),
    service: ProxyService = Depends(get_proxy_service),
) -> Response:
    """
    Look up one species.

    `species` is read from query_params rather than declared as Query():
        When `species` is repeated the first value must win, and an empty
        value (`?species=`) is a valid lookup distinct from an absent one.
    """
    values = request.query_params.getlist("species")
    if not values:
        raise ValidationError(message="Missing species parameter", field="species")
    species = values[0]

    try:
        result = await service.lookup_species(species, cors_origin)
    except XenoCantoProxyError:
        raise
    except Exception as e:
        raise InternalProxyError(
            context={"species": species, "error_type": type(e).__name__},
        ) from e

    background = None
    if result.pending_store is not None:
        background = BackgroundTask(service.run_pending_store, result.pending_store)

    return Response(
        content=result.body,
        status_code=200,
        headers=result.headers,
        background=background,
    )

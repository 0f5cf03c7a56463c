"""
XenoCanto Proxy: FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐                   │
    │  │ Req ID   │→│  Logging        │                   │
    │  └──────────┘ └─────────────────┘                   │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌─────────────┐  │
    │  │ GET /health  │ │ OPTIONS /*   │ │ other /*    │  │
    │  └──────────────┘ └──────────────┘ └─────────────┘  │
    │                                                     │
    │  Exception Handlers (all set the CORS origin):      │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ ValidationError→400 │ Upstream→500 │ *→500   │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, validate configuration, log allowed origins
    Shutdown: close the shared upstream HTTP client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import settings
from app.exceptions import (
    InternalProxyError,
    UpstreamServiceError,
    ValidationError,
    XenoCantoProxyError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import health, proxy
from app.services.origin_validator import origin_validator
from app.services.xeno_canto_service import xeno_canto_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    When:   Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # httpx logs every request URL at INFO, and the URL carries the API key
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("XenoCanto Proxy %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: preflights, cache hits and /health still work
        logger.error("Configuration error: %s", str(e))

    logger.info("Allowed origins: %s", ", ".join(origin_validator.allowed_origins))
    logger.info(
        "Cache lifetimes: browser=%ds edge=%ds",
        settings.browser_cache_max_age,
        settings.edge_cache_ttl,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("XenoCanto Proxy shutting down...")
    await xeno_canto_service.aclose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_headers(request: Request) -> Dict[str, str]:
    """
    Every error response carries the CORS origin so the browser lets the
    page read the error body instead of reporting an opaque CORS failure.
    """
    cors_origin = getattr(request.state, "cors_origin", None)
    if cors_origin is None:
        cors_origin = origin_validator.resolve(request.headers.get("origin"))
    return {"Access-Control-Allow-Origin": cors_origin}


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError          → 400 {"error": "Missing species parameter"}
        UpstreamServiceError     → 500 {"error": "Failed to fetch from xeno-canto"}
        InternalProxyError       → 500 {"error": "Internal server error"}
        XenoCantoProxyError      → 500 {"error": <message>}
        HTTPException            → exc.status_code {"error": exc.detail}
        Exception (fallback)     → 500 {"error": "Internal server error"}

    Context and stack traces are logged server-side only.

    The Exception fallback is installed by Starlette in ServerErrorMiddleware,
    outside RequestIDMiddleware and RequestLoggingMiddleware, so its responses
    carry no X-Request-ID and produce no access line. The lookup route wraps
    unexpected failures in InternalProxyError to stay on the handled path;
    the fallback only answers errors raised outside any route.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={"error": exc.message},
            headers=_error_headers(request),
        )

    @app.exception_handler(UpstreamServiceError)
    async def handle_upstream_error(request: Request, exc: UpstreamServiceError):
        rid = request_id_var.get("")
        logger.error("[%s] Upstream error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={"error": exc.message},
            headers=_error_headers(request),
        )

    @app.exception_handler(InternalProxyError)
    async def handle_internal_error(request: Request, exc: InternalProxyError):
        rid = request_id_var.get("")
        logger.error(
            "[%s] Unexpected error: %s | Context: %s",
            rid,
            str(exc.__cause__ or exc),
            exc.context,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"error": exc.message},
            headers=_error_headers(request),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        rid = request_id_var.get("")
        logger.warning("[%s] HTTP %d: %s", rid, exc.status_code, exc.detail)
        headers = dict(exc.headers or {})
        headers.update(_error_headers(request))
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=headers,
        )

    @app.exception_handler(XenoCantoProxyError)
    async def handle_proxy_error(request: Request, exc: XenoCantoProxyError):
        rid = request_id_var.get("")
        logger.error("[%s] Proxy error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={"error": exc.message},
            headers=_error_headers(request),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
            headers=_error_headers(request),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="XenoCanto Proxy",
        description=(
            "Edge proxy for the xeno-canto recordings API. Keeps the API key "
            "server-side, applies origin checks, and caches species lookups."
        ),
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = first to execute: RequestID → Logging → routes
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    # health first: proxy's catch-all path would otherwise match /health
    app.include_router(health.router)
    app.include_router(proxy.router)

    return app


app = create_app()

"""
XenoCanto Proxy: Pydantic Response Schemas
=============================================

What:  Pydantic models describing the JSON shapes the proxy produces itself.
Why:   OpenAPI documentation and a single definition of the error format.
       Species payloads are NOT modelled here: they are xeno-canto's JSON,
       passed through untouched.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Error body for every non-2xx response the proxy generates.

    Example:
        {"error": "Missing species parameter"}
    """
    error: str = Field(description="Human-readable error description")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and platform probes.
    """
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    upstream_configured: bool = Field(description="Whether an API key is present")
    cache_entries: Optional[int] = Field(
        default=None,
        description="Entries currently held by the edge cache (null if unavailable)",
    )
    uptime_seconds: float = Field(description="Seconds since service started")

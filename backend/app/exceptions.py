"""
XenoCanto Proxy: Custom Exception Hierarchy
==============================================

What:  Defines application-specific exceptions for the proxy's error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and fixed client-facing messages.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return `{"error": <message>}` JSON responses with the CORS origin set.
Who:   Raised by services; caught by global handlers or by the cache accessor.
When:  During request processing when recoverable errors occur.

Exception Hierarchy:
    XenoCantoProxyError (base)
    ├── ValidationError        → 400 Bad Request (client can fix)
    ├── UpstreamServiceError   → 500 Internal Server Error
    ├── CacheStoreError        → never reaches a response (swallowed by accessor)
    └── InternalProxyError     → 500 {"error": "Internal server error"}
"""

from typing import Any, Dict, Optional


class XenoCantoProxyError(Exception):
    """
    Base exception for all proxy errors.

    Attributes:
        message:  User-facing error description (returned as the `error` field)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(XenoCantoProxyError):
    """
    Raised when client input fails validation.

    When:    The `species` query parameter is absent.
    HTTP:    400 Bad Request

    Example response:
        {"error": "Missing species parameter"}
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UpstreamServiceError(XenoCantoProxyError):
    """
    Raised when the xeno-canto call fails for any reason.

    When:    Network failure, malformed/non-JSON body, or any other exception
             raised while calling or decoding. The causes are deliberately
             collapsed into one outcome; the original error type is kept in
             `context` for the logs only.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Failed to fetch from xeno-canto",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CacheStoreError(XenoCantoProxyError):
    """
    Raised by a cache backend when a write cannot be completed.

    The edge cache accessor catches this (and anything else a backend raises)
    during background population. It is logged and dropped: no retry, and the
    response already sent is unaffected.
    """

    def __init__(
        self,
        message: str = "Edge cache store failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InternalProxyError(XenoCantoProxyError):
    """
    Wraps an unexpected exception raised while serving a lookup.

    The route layer converts anything that is not already a
    XenoCantoProxyError into this, so the failure is answered inside the
    middleware chain (request ID, access log) rather than by the
    last-resort handler. The original exception is kept as __cause__.
    """

    def __init__(
        self,
        message: str = "Internal server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

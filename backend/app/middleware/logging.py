"""
XenoCanto Proxy: Request Logging Middleware
==============================================

What:  One structured access log line per HTTP request.
Why:   Hit ratio, upstream failures and slow misses are the numbers worth
       watching on a caching proxy; all three are visible from this line.
How:   Measures duration around call_next and logs method, path, status,
       cache marker, duration, request ID and client IP.

Log level by status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

Not logged: query strings (the species is logged by the services) and
any header other than X-Cache. The API key never passes through here.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("xenocanto_proxy.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs structured information about each HTTP request and response.

    Typical durations:
        - cache HIT: 1-5ms
        - cache MISS: dominated by the xeno-canto call (hundreds of ms)
    """

    SKIPPED_PATHS = {"/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        # Health checks are too frequent to be useful in the access log
        if path in self.SKIPPED_PATHS:
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        cache_status = response.headers.get("X-Cache", "-")

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %s %.1fms [%s] from %s",
            method,
            path,
            status,
            cache_status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "cache_status": cache_status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response

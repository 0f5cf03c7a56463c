"""
XenoCanto Proxy: Request ID Middleware
=========================================

What:  Tags each request with a short ID and returns it in X-Request-ID.
Why:   Lets a front-end bug report be matched to the proxy's log lines,
       including the upstream call made on that request's behalf.
How:   Reuses the client's X-Request-ID when it is a plain token, otherwise
       generates one. The ID lives in a ContextVar for the duration of the
       request and on request.state.

Accepted client IDs:
    1-64 characters from [A-Za-z0-9._-]. Anything else (too long, spaces,
    control characters) is replaced, because the ID is written verbatim
    into log lines and echoed in a response header.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
_CLIENT_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,64}")

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(client_value: Optional[str]) -> str:
    """The client's ID if it is a safe token, else a fresh 8-character one."""
    if client_value and _CLIENT_ID_PATTERN.fullmatch(client_value):
        return client_value
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns the request ID and restores the previous context afterwards."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = rid
        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response

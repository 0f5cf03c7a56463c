"""
XenoCanto Proxy: Origin Validator
====================================

What:  Decides which value to place in `Access-Control-Allow-Origin`.
Why:   The proxy is only meant to serve the project's static site and local
       development pages, but every response (errors included) must still
       carry a usable origin so the browser lets the page read the body.
How:   Pure function of the request's `Origin` header and the configured,
       read-only allowed-origin tuple.

Matching rules:
    - No header → not allowed
    - Header equal to the local-file token ("null") → always allowed
    - Header equal to an allowed entry → allowed
    - Header starting with `<entry>:` or `<entry>/` → allowed
      (port-bearing or path-bearing variant of the entry)
    - Anything else → not allowed

    Allowed headers are echoed back verbatim. Everything else gets the first
    configured entry.

    This is a prefix match, not a parsed scheme+host+port comparison.
    `https://bryancraven.github.io.evil.com` is rejected only because the
    character after the allowed string is neither `:` nor `/`.
"""

from typing import Optional, Sequence

from app.config import settings


class OriginValidator:
    """Resolves the CORS origin to echo for a request."""

    def __init__(self, allowed_origins: Sequence[str], local_origin_token: str = "null"):
        if not allowed_origins:
            raise ValueError("At least one allowed origin is required")
        self.allowed_origins = tuple(allowed_origins)
        self.local_origin_token = local_origin_token

    @property
    def default_origin(self) -> str:
        return self.allowed_origins[0]

    def is_allowed(self, origin: Optional[str]) -> bool:
        if not origin:
            return False
        return any(
            origin == allowed
            or origin.startswith(allowed + ":")
            or origin.startswith(allowed + "/")
            for allowed in self.allowed_origins
        )

    def resolve(self, origin: Optional[str]) -> str:
        """
        Return the origin to place in `Access-Control-Allow-Origin`.

        Args:
            origin: Raw `Origin` header value; None when the header is absent.

        Returns:
            The header value unchanged when allowed (or equal to the local
            token), otherwise the first configured origin. Never raises.
        """
        if origin is not None and origin == self.local_origin_token:
            return origin
        if self.is_allowed(origin):
            return origin
        return self.default_origin


# ── Singleton Instance ────────────────────────────────────────────────────
origin_validator = OriginValidator(
    allowed_origins=settings.allowed_origins_list,
    local_origin_token=settings.local_origin_token,
)

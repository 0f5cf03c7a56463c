# Middleware package init
"""
XenoCanto Proxy: Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → Route Handler

    1. Request ID: Generate correlation ID for logging and tracing
    2. Logging: Log request details with the generated request ID

    CORS is NOT a middleware here. The allowed-origin rules (prefix matching,
    fallback to the first configured origin, the "null" token) differ from
    Starlette's CORSMiddleware, so routes and exception handlers set
    Access-Control-Allow-Origin themselves via OriginValidator.
"""

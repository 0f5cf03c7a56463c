# Routes package init
"""
XenoCanto Proxy: API Routes Package
======================================

Route Inventory:
    - health.py:  GET     /health              (service health check)
    - proxy.py:   OPTIONS /{path}              (CORS preflight)
                  GET     /{path}?species=...  (species lookup)

Routes stay thin: they resolve the CORS origin, read the query string, and
delegate to ProxyService. health must be included before proxy, whose
catch-all path would otherwise shadow it.
"""

# Services package init
"""
XenoCanto Proxy: Services Layer
==================================

Service Inventory:
    - OriginValidator:    Resolves the Access-Control-Allow-Origin value
    - derive_cache_key:   Species → synthetic cache URL
    - CacheStore (abstract) / InMemoryCacheStore: Response storage
    - EdgeCacheAccessor:  Best-effort lookup, fire-and-forget store
    - XenoCantoService:   Upstream recordings search
    - ProxyService:       Orchestrates cache → upstream → response
"""

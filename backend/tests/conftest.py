"""
XenoCanto Proxy: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Tests must never call the real xeno-canto API (quota, network) and
       must never share cache state with each other.
How:   Upstream calls go through httpx.MockTransport; every test gets a fresh
       InMemoryCacheStore; the app's ProxyService dependency is overridden.

Fixtures (all function-scoped):
    ├── cache_store:     Empty InMemoryCacheStore
    ├── upstream_calls:  List of httpx.Request objects seen by the stub upstream
    ├── upstream:        XenoCantoService wired to the stub upstream
    ├── proxy:           ProxyService using cache_store + upstream
    └── test_client:     HTTPX AsyncClient talking to the FastAPI app
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["XENO_CANTO_API_KEY"] = "test-key-not-real"
os.environ["ALLOWED_ORIGINS"] = (
    "https://bryancraven.github.io,http://localhost,http://127.0.0.1,null"
)
os.environ["LOG_LEVEL"] = "WARNING"

from typing import List

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.services.edge_cache import EdgeCacheAccessor, InMemoryCacheStore
from app.services.proxy_service import ProxyService
from app.services.xeno_canto_service import XenoCantoService



def recordings_payload(query: str) -> dict:
    """Minimal xeno-canto v3 response shape, echoing the query it answers."""
    return {
        "numRecordings": "1",
        "numSpecies": "1",
        "page": 1,
        "numPages": 1,
        "query": query,
        "recordings": [
            {
                "id": "123456",
                "gen": "Parus",
                "sp": "major",
                "en": "Great Tit",
                "cnt": "Österreich",
                "q": "A",
                "file": "https://xeno-canto.org/123456/download",
            }
        ],
    }


@pytest.fixture
def cache_store():
    """A fresh, empty in-memory edge cache for each test."""
    return InMemoryCacheStore(max_entries=100)


@pytest.fixture
def upstream_calls() -> List[httpx.Request]:
    return []


@pytest.fixture
def upstream_handler(upstream_calls):
    """
    Default stub for the xeno-canto endpoint: 200 with a JSON payload.

    Tests needing a different upstream behaviour build their own
    XenoCantoService with a different MockTransport handler.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        upstream_calls.append(request)
        return httpx.Response(200, json=recordings_payload(request.url.params["query"]))

    return handler


@pytest.fixture
def upstream(upstream_handler):
    return XenoCantoService(
        api_key="test-key-not-real",
        base_url="https://xeno-canto.test/api/3/recordings",
        quality="A",
        transport=httpx.MockTransport(upstream_handler),
    )


@pytest.fixture
def proxy(cache_store, upstream):
    return ProxyService(
        cache=EdgeCacheAccessor(cache_store),
        upstream=upstream,
        browser_cache_max_age=86_400,
        edge_cache_ttl=604_800,
    )


@pytest_asyncio.fixture
async def test_client(proxy):
    """
    Provides an async HTTP test client for endpoint testing.

    ASGITransport awaits the whole ASGI call, background tasks included,
    so a cache write scheduled by one request is visible to the next.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app
    from app.services.proxy_service import get_proxy_service

    app.dependency_overrides[get_proxy_service] = lambda: proxy
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    await proxy.upstream.aclose()

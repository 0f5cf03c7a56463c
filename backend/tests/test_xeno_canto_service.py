"""
XenoCanto Proxy: Upstream Fetcher Unit Tests (Mocked)
========================================================

What:  Tests for XenoCantoService against httpx.MockTransport.
Why:   Tests should not make real API calls (quota, network).

What we test:
    ✅ Query shape: exact species match, quality filter, API key
    ✅ Network errors and non-JSON bodies collapse into UpstreamServiceError
    ✅ Non-2xx responses with a JSON body pass through as success
    ❌ Real API calls
"""

import httpx
import pytest

from app.exceptions import UpstreamServiceError
from app.services.xeno_canto_service import XenoCantoService


def make_service(handler, **kwargs) -> XenoCantoService:
    return XenoCantoService(
        api_key=kwargs.pop("api_key", "secret-key"),
        base_url="https://xeno-canto.test/api/3/recordings",
        quality="A",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestQueryConstruction:

    def test_build_query(self):
        service = make_service(lambda request: httpx.Response(200, json={}))
        assert service.build_query("Parus major") == 'sp:"Parus major" q:A'

    @pytest.mark.asyncio
    async def test_request_carries_query_and_key(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"recordings": []})

        service = make_service(handler)
        await service.fetch_recordings("Erithacus rubecula")
        await service.aclose()

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "GET"
        assert request.url.host == "xeno-canto.test"
        assert request.url.path == "/api/3/recordings"
        assert request.url.params["query"] == 'sp:"Erithacus rubecula" q:A'
        assert request.url.params["key"] == "secret-key"

    def test_is_configured(self):
        handler = lambda request: httpx.Response(200, json={})
        assert make_service(handler).is_configured
        assert not make_service(handler, api_key="").is_configured


class TestFetchRecordings:

    @pytest.mark.asyncio
    async def test_success_returns_decoded_json(self):
        payload = {"numRecordings": "1", "recordings": [{"id": "1", "en": "Robin"}]}
        service = make_service(lambda request: httpx.Response(200, json=payload))

        assert await service.fetch_recordings("Erithacus rubecula") == payload
        await service.aclose()

    @pytest.mark.asyncio
    async def test_network_error_raises_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        service = make_service(handler)
        with pytest.raises(UpstreamServiceError) as exc_info:
            await service.fetch_recordings("Parus major")

        assert exc_info.value.message == "Failed to fetch from xeno-canto"
        assert exc_info.value.context["error_type"] == "ConnectError"

    @pytest.mark.asyncio
    async def test_malformed_body_raises_upstream_error(self):
        service = make_service(
            lambda request: httpx.Response(200, content=b"<html>maintenance</html>")
        )
        with pytest.raises(UpstreamServiceError, match="Failed to fetch from xeno-canto"):
            await service.fetch_recordings("Parus major")

    @pytest.mark.asyncio
    async def test_truncated_json_raises_upstream_error(self):
        service = make_service(
            lambda request: httpx.Response(200, content=b'{"recordings": [')
        )
        with pytest.raises(UpstreamServiceError):
            await service.fetch_recordings("Parus major")

    @pytest.mark.asyncio
    async def test_non_2xx_json_body_is_passed_through(self):
        """Upstream status is not inspected; a JSON error body is a success."""
        payload = {"error": "invalid key", "message": "Unauthorized"}
        service = make_service(lambda request: httpx.Response(401, json=payload))

        assert await service.fetch_recordings("Parus major") == payload
        await service.aclose()

    @pytest.mark.asyncio
    async def test_non_2xx_non_json_body_raises_upstream_error(self):
        service = make_service(lambda request: httpx.Response(502, content=b"Bad Gateway"))
        with pytest.raises(UpstreamServiceError):
            await service.fetch_recordings("Parus major")

    @pytest.mark.asyncio
    async def test_client_reopened_after_close(self):
        service = make_service(lambda request: httpx.Response(200, json=[]))
        await service.fetch_recordings("Pica pica")
        await service.aclose()

        assert await service.fetch_recordings("Pica pica") == []
        await service.aclose()

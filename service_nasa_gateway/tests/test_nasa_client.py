"""
Unit tests for the NASA API client.
"""

import httpx
import pytest

from service_nasa_gateway.app.adapters import NasaApiClient
from shared.errors import (
    InvalidApiKey,
    RateLimitExceeded,
    RedirectNotAllowed,
    UpstreamError,
    UpstreamErrorKind,
    UpstreamTimeout,
    UpstreamUnavailable,
    UpstreamUnreachable,
)


def make_client(handler) -> NasaApiClient:
    return NasaApiClient("TESTKEY", "https://api.nasa.gov", transport=httpx.MockTransport(handler))


class TestNasaApiClient:
    """Test cases for NasaApiClient."""

    @pytest.mark.asyncio
    async def test_request_injects_api_key_and_drops_none(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["user_agent"] = request.headers.get("user-agent")
            return httpx.Response(200, json={"title": "Pillars"})

        client = make_client(handler)
        result = await client.request("/planetary/apod", {"date": "2024-01-15", "count": None})
        await client.close()

        assert result == {"title": "Pillars"}
        assert seen["path"] == "/planetary/apod"
        assert seen["params"] == {"date": "2024-01-15", "api_key": "TESTKEY"}
        assert seen["user_agent"] == "NASA-Mission-Control-Dashboard/1.0.0"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, error_cls, kind", [
        (429, RateLimitExceeded, UpstreamErrorKind.RATE_LIMITED),
        (403, InvalidApiKey, UpstreamErrorKind.AUTH_INVALID),
        (500, UpstreamUnavailable, UpstreamErrorKind.UNAVAILABLE),
        (503, UpstreamUnavailable, UpstreamErrorKind.UNAVAILABLE),
    ])
    async def test_status_mapping(self, status, error_cls, kind):
        client = make_client(lambda request: httpx.Response(status))

        with pytest.raises(error_cls) as exc_info:
            await client.request("/planetary/apod")

        assert exc_info.value.kind is kind
        assert exc_info.value.details["kind"] == kind.value

    @pytest.mark.asyncio
    async def test_rate_limit_carries_retry_after(self):
        client = make_client(lambda request: httpx.Response(429))

        with pytest.raises(RateLimitExceeded) as exc_info:
            await client.request("/planetary/apod")

        assert exc_info.value.status_code == 429
        assert exc_info.value.code == "RATE_LIMIT_EXCEEDED"
        assert exc_info.value.details["retry_after"] == 3600

    @pytest.mark.asyncio
    async def test_other_status_uses_upstream_message(self):
        def handler(request):
            return httpx.Response(400, json={"error": {"message": "Date must be between Jun 16, 1995 and today"}})

        client = make_client(handler)

        with pytest.raises(UpstreamError) as exc_info:
            await client.request("/planetary/apod", {"date": "1990-01-01"})

        error = exc_info.value
        assert error.kind is UpstreamErrorKind.HTTP_ERROR
        assert error.upstream_status == 400
        assert error.status_code == 400
        assert error.message == "NASA API returned 400: Date must be between Jun 16, 1995 and today"

    @pytest.mark.asyncio
    async def test_msg_field_is_used_when_present(self):
        client = make_client(lambda request: httpx.Response(404, json={"msg": "No data available"}))

        with pytest.raises(UpstreamError) as exc_info:
            await client.request("/neo/rest/v1/neo/1")

        assert exc_info.value.message == "NASA API returned 404: No data available"

    @pytest.mark.asyncio
    async def test_timeout_maps_to_upstream_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler)

        with pytest.raises(UpstreamTimeout) as exc_info:
            await client.request("/planetary/apod")

        assert exc_info.value.status_code == 408

    @pytest.mark.asyncio
    async def test_connection_failure_maps_to_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(UpstreamUnreachable) as exc_info:
            await client.request("/planetary/apod")

        assert exc_info.value.kind is UpstreamErrorKind.NETWORK
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_malformed_json_is_upstream_error(self):
        client = make_client(lambda request: httpx.Response(200, content=b"<html>oops</html>"))

        with pytest.raises(UpstreamError):
            await client.request("/planetary/apod")

    @pytest.mark.asyncio
    async def test_fetch_binary_has_no_api_key(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            return httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})

        client = make_client(handler)
        payload = await client.fetch_binary("https://apod.nasa.gov/apod/image/2401/pillars.png")

        assert seen["url"] == "https://apod.nasa.gov/apod/image/2401/pillars.png"
        assert payload.content == b"\x89PNG"
        assert payload.content_type == "image/png"
        assert len(payload) == 4

    @pytest.mark.asyncio
    async def test_fetch_binary_defaults_content_type(self):
        client = make_client(lambda request: httpx.Response(200, content=b"jpeg-bytes"))

        payload = await client.fetch_binary("https://apod.nasa.gov/image.jpg")

        assert payload.content_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_fetch_binary_follows_redirects(self):
        requested = []

        def handler(request):
            requested.append(str(request.url))
            if request.url.host == "mars.jpl.nasa.gov":
                return httpx.Response(301, headers={"Location": "https://mars.nasa.gov/msl-raw-images/a.jpg"})
            return httpx.Response(200, content=b"JPEG", headers={"content-type": "image/jpeg"})

        client = make_client(handler)
        payload = await client.fetch_binary("http://mars.jpl.nasa.gov/msl-raw-images/a.jpg")

        assert payload.content == b"JPEG"
        assert requested == [
            "http://mars.jpl.nasa.gov/msl-raw-images/a.jpg",
            "https://mars.nasa.gov/msl-raw-images/a.jpg",
        ]

    @pytest.mark.asyncio
    async def test_fetch_binary_resolves_relative_location(self):
        def handler(request):
            if request.url.path == "/old.jpg":
                return httpx.Response(302, headers={"Location": "/new.jpg"})
            return httpx.Response(200, content=b"new")

        client = make_client(handler)
        payload = await client.fetch_binary("https://apod.nasa.gov/old.jpg")

        assert payload.content == b"new"

    @pytest.mark.asyncio
    async def test_fetch_binary_refused_redirect_is_never_requested(self):
        requested = []

        def handler(request):
            requested.append(request.url.host)
            return httpx.Response(302, headers={"Location": "https://evil.example/a.jpg"})

        client = make_client(handler)

        with pytest.raises(RedirectNotAllowed) as exc_info:
            await client.fetch_binary(
                "https://apod.nasa.gov/a.jpg",
                redirect_allowed=lambda url: "evil" not in url,
            )

        assert exc_info.value.location == "https://evil.example/a.jpg"
        assert requested == ["apod.nasa.gov"]

    @pytest.mark.asyncio
    async def test_fetch_binary_redirect_loop(self):
        client = make_client(lambda request: httpx.Response(302, headers={"Location": str(request.url)}))

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch_binary("https://apod.nasa.gov/loop.jpg", max_redirects=2)

        assert exc_info.value.message == "Too many redirects"

    @pytest.mark.asyncio
    async def test_fetch_binary_error_after_redirect(self):
        def handler(request):
            if request.url.path == "/a.jpg":
                return httpx.Response(301, headers={"Location": "/gone.jpg"})
            return httpx.Response(404)

        client = make_client(handler)

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch_binary("https://apod.nasa.gov/a.jpg")

        assert exc_info.value.upstream_status == 404
        assert exc_info.value.details["url"] == "https://apod.nasa.gov/gone.jpg"

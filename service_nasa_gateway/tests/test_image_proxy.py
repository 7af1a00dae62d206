"""
Unit tests for the image proxy.
"""

import httpx
import pytest

from service_nasa_gateway.app.adapters import BinaryPayload, NasaApiClient
from service_nasa_gateway.app.caching import TTLCache
from service_nasa_gateway.app.proxy import ForbiddenDomainError, ImageProxy, ImageTimeoutError
from shared.errors import (
    InternalError,
    InvalidRequestError,
    NotFoundError,
    UpstreamError,
    UpstreamTimeout,
    UpstreamUnavailable,
)


IMAGE_URL = "https://apod.nasa.gov/apod/image/2401/pillars.jpg"


class TestImageProxy:
    """Test cases for ImageProxy."""

    @pytest.fixture
    def image_cache(self, fake_clock):
        return TTLCache(86400, 3600, clock=fake_clock, name="image")

    @pytest.fixture
    def proxy(self, nasa_client, image_cache):
        return ImageProxy(nasa_client, image_cache)

    @pytest.mark.parametrize("url", [
        "https://apod.nasa.gov/apod/image.jpg",
        "https://mars.jpl.nasa.gov/msl-raw-images/a.jpg",
        "https://www.apod.nasa.gov/x.png",
        "https://EPIC.GSFC.NASA.GOV/archive/a.png",
    ])
    def test_allowed_hosts(self, proxy, url):
        assert proxy.is_allowed(url) is True

    @pytest.mark.parametrize("url", [
        "https://evil.com/apod.nasa.gov.jpg",
        "https://apod.nasa.gov.evil.com/x.jpg",
        "https://notapod.nasa.gov/x.jpg",
        "https://nasa.gov/x.jpg",
        "not a url",
    ])
    def test_disallowed_hosts(self, proxy, url):
        assert proxy.is_allowed(url) is False

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, proxy, nasa_client):
        nasa_client.fetch_binary.return_value = BinaryPayload(b"jpeg-bytes", "image/jpeg")

        first = await proxy.proxy_image(IMAGE_URL)
        second = await proxy.proxy_image(IMAGE_URL)

        nasa_client.fetch_binary.assert_awaited_once_with(IMAGE_URL, redirect_allowed=proxy.is_allowed)
        assert first.cache_status == "MISS"
        assert second.cache_status == "HIT"
        assert second.content == b"jpeg-bytes"
        assert second.headers == {
            "Content-Length": "10",
            "Cache-Control": "public, max-age=86400",
            "X-Cache": "HIT",
        }

    @pytest.mark.asyncio
    async def test_cache_key_is_url_digest(self, proxy, nasa_client, image_cache):
        nasa_client.fetch_binary.return_value = BinaryPayload(b"x", "image/png")

        await proxy.proxy_image(IMAGE_URL)

        (key,) = image_cache.keys()
        assert key.startswith("image:")
        assert len(key) == len("image:") + 64

    @pytest.mark.asyncio
    async def test_forbidden_host_never_fetches(self, proxy, nasa_client):
        with pytest.raises(ForbiddenDomainError) as exc_info:
            await proxy.proxy_image("https://example.com/cat.jpg")

        assert exc_info.value.status_code == 403
        assert exc_info.value.code == "FORBIDDEN"
        nasa_client.fetch_binary.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", [None, "", "apod.nasa.gov/image.jpg", "ftp://apod.nasa.gov/a.jpg"])
    async def test_missing_or_malformed_url(self, proxy, nasa_client, url):
        with pytest.raises(InvalidRequestError):
            await proxy.proxy_image(url)
        nasa_client.fetch_binary.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_maps_to_408(self, proxy, nasa_client):
        nasa_client.fetch_binary.side_effect = UpstreamTimeout()

        with pytest.raises(ImageTimeoutError) as exc_info:
            await proxy.proxy_image(IMAGE_URL)

        assert exc_info.value.status_code == 408

    @pytest.mark.asyncio
    async def test_upstream_404_maps_to_not_found(self, proxy, nasa_client):
        nasa_client.fetch_binary.side_effect = UpstreamError("NASA API returned 404: Not Found", upstream_status=404)

        with pytest.raises(NotFoundError):
            await proxy.proxy_image(IMAGE_URL)

    @pytest.mark.asyncio
    async def test_other_failures_are_internal(self, proxy, nasa_client, image_cache):
        nasa_client.fetch_binary.side_effect = UpstreamUnavailable()

        with pytest.raises(InternalError):
            await proxy.proxy_image(IMAGE_URL)

        assert image_cache.keys() == []

    @pytest.mark.asyncio
    async def test_stats_and_clear(self, proxy, nasa_client):
        nasa_client.fetch_binary.return_value = BinaryPayload(b"a" * 2048, "image/jpeg")

        await proxy.proxy_image(IMAGE_URL)
        await proxy.proxy_image(IMAGE_URL)

        stats = proxy.stats()
        assert stats["cached_images"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5
        assert stats["cache_size_bytes"] == 2048
        assert stats["cache_size_mb"] == 0.0

        assert proxy.clear() == 1
        assert proxy.stats()["cached_images"] == 0


class TestImageProxyRedirects:
    """Test cases for redirecting image hosts."""

    @pytest.fixture
    def image_cache(self, fake_clock):
        return TTLCache(86400, 3600, clock=fake_clock, name="image")

    @pytest.fixture
    def requested(self):
        return []

    def make_proxy(self, image_cache, requested, location):
        def handler(request):
            requested.append(str(request.url))
            if request.url.host == "mars.jpl.nasa.gov":
                return httpx.Response(301, headers={"Location": location})
            return httpx.Response(200, content=b"JPEG", headers={"content-type": "image/jpeg"})

        client = NasaApiClient("TESTKEY", transport=httpx.MockTransport(handler))
        return ImageProxy(client, image_cache)

    @pytest.mark.asyncio
    async def test_redirect_to_allowed_host_is_served(self, image_cache, requested):
        proxy = self.make_proxy(image_cache, requested, "https://mars.nasa.gov/msl-raw-images/a.jpg")

        image = await proxy.proxy_image("http://mars.jpl.nasa.gov/msl-raw-images/a.jpg")

        assert image.content == b"JPEG"
        assert image.content_type == "image/jpeg"
        assert image.cache_status == "MISS"
        assert requested[-1] == "https://mars.nasa.gov/msl-raw-images/a.jpg"

    @pytest.mark.asyncio
    async def test_redirect_to_forbidden_host_is_refused(self, image_cache, requested):
        proxy = self.make_proxy(image_cache, requested, "https://evil.example/a.jpg")

        with pytest.raises(ForbiddenDomainError) as exc_info:
            await proxy.proxy_image("http://mars.jpl.nasa.gov/msl-raw-images/a.jpg")

        assert exc_info.value.status_code == 403
        assert exc_info.value.details == {"host": "evil.example"}
        assert requested == ["http://mars.jpl.nasa.gov/msl-raw-images/a.jpg"]
        assert image_cache.keys() == []

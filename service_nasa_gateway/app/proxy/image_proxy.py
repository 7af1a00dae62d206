"""
Caching image proxy for NASA-hosted media.
"""

import hashlib
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple, TYPE_CHECKING
from urllib.parse import urlparse

from shared.errors import (
    AccessLayerException,
    ExternalServiceError,
    ForbiddenError,
    InternalError,
    InvalidRequestError,
    NotFoundError,
    RedirectNotAllowed,
    UpstreamError,
    UpstreamTimeout,
)
from shared.logging import get_logger

from ..adapters.nasa_client import BinaryPayload, NasaApiClient
from ..caching.ttl_cache import TTLCache

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


ALLOWED_IMAGE_DOMAINS: Tuple[str, ...] = (
    "apod.nasa.gov",
    "mars.nasa.gov",
    "mars.jpl.nasa.gov",
    "api.nasa.gov",
    "epic.gsfc.nasa.gov",
    "photojournal.jpl.nasa.gov",
)

IMAGE_CACHE_TTL = 86400


class ImageTimeoutError(AccessLayerException):
    """Image fetch exceeded the upstream timeout."""

    status_code = 408

    def __init__(self, message: str = "Image request timed out", details: Optional[Dict[str, Any]] = None):
        super().__init__("REQUEST_TIMEOUT", message, details)


class ForbiddenDomainError(ForbiddenError):
    """Image host is not on the allow-list."""

    def __init__(self, host: str):
        super().__init__("Only NASA domains are allowed", details={"host": host})


@dataclass(frozen=True)
class ProxiedImage:
    content: bytes
    content_type: str
    cache_status: str

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Content-Length": str(len(self.content)),
            "Cache-Control": f"public, max-age={IMAGE_CACHE_TTL}",
            "X-Cache": self.cache_status,
        }


class ImageProxy:
    """Fetch allow-listed images once and serve them from cache afterwards."""

    def __init__(
        self,
        nasa_client: NasaApiClient,
        cache: TTLCache,
        *,
        allowed_domains: Iterable[str] = ALLOWED_IMAGE_DOMAINS,
        ttl: int = IMAGE_CACHE_TTL,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.nasa_client = nasa_client
        self.cache = cache
        self.allowed_domains = tuple(domain.lower() for domain in allowed_domains)
        self.ttl = ttl
        self.metrics = metrics
        self.logger = get_logger("gateway.image_proxy")

    def is_allowed(self, url: str) -> bool:
        """Exact host match or a subdomain of an allowed domain."""
        hostname = (urlparse(url).hostname or "").lower()
        if not hostname:
            return False
        return any(hostname == domain or hostname.endswith(f".{domain}") for domain in self.allowed_domains)

    @staticmethod
    def cache_key(url: str) -> str:
        return f"image:{hashlib.sha256(url.encode('utf-8')).hexdigest()}"

    async def proxy_image(self, url: Optional[str]) -> ProxiedImage:
        if not url:
            raise InvalidRequestError("Image URL is required", details={"errors": ["url is required"]})

        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise InvalidRequestError("Image URL must be an absolute http(s) URL", details={"url": url})

        if not self.is_allowed(url):
            self.logger.warning("Rejected image proxy request", host=parsed.hostname)
            raise ForbiddenDomainError(parsed.hostname)

        key = self.cache_key(url)
        cached = self._safe_get(key)
        if cached is not None:
            self.logger.debug("Image cache hit", url=url)
            return ProxiedImage(cached.content, cached.content_type, "HIT")

        payload = await self._fetch(url)
        try:
            self.cache.set(key, payload, self.ttl)
        except Exception as exc:
            self.logger.error("Image cache store error", url=url, error=str(exc))

        return ProxiedImage(payload.content, payload.content_type, "MISS")

    def _safe_get(self, key: str) -> Optional[BinaryPayload]:
        try:
            value = self.cache.get(key)
        except Exception as exc:
            self.logger.error("Image cache fetch error", error=str(exc))
            return None

        if self.metrics:
            self.metrics.record_cache_event(self.cache.name, hit=value is not None)
        return value

    async def _fetch(self, url: str) -> BinaryPayload:
        start = time.perf_counter()
        outcome = "error"
        try:
            payload = await self.nasa_client.fetch_binary(url, redirect_allowed=self.is_allowed)
            outcome = "ok"
            return payload
        except UpstreamTimeout as exc:
            outcome = exc.kind.value
            raise ImageTimeoutError(details={"url": url}) from exc
        except RedirectNotAllowed as exc:
            outcome = "redirect_refused"
            raise ForbiddenDomainError(urlparse(exc.location).hostname or exc.location) from exc
        except UpstreamError as exc:
            outcome = exc.kind.value
            if exc.upstream_status == 404:
                raise NotFoundError("The requested image could not be found", details={"url": url}) from exc
            raise InternalError("Image proxy failed", details={"url": url, "upstream": exc.message}) from exc
        except ExternalServiceError as exc:
            outcome = exc.kind.value
            raise InternalError("Image proxy failed", details={"url": url, "upstream": exc.message}) from exc
        finally:
            if self.metrics:
                self.metrics.record_upstream_request("image_proxy", outcome, time.perf_counter() - start)

    def stats(self) -> Dict[str, Any]:
        stats = self.cache.stats()
        size_bytes = self.cache.total_size_bytes(len)
        return {
            "cached_images": stats.key_count,
            "hits": stats.hits,
            "misses": stats.misses,
            "hit_rate": stats.hit_rate,
            "cache_size_bytes": size_bytes,
            "cache_size_mb": round(size_bytes / (1024 * 1024), 2),
        }

    def clear(self) -> int:
        return self.cache.flush_all()

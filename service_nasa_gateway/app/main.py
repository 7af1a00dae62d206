"""
NASA Mission Control API gateway.

Fronts the NASA Open APIs (APOD, Mars Rover Photos, NeoWs, EPIC) with
validation, response caching, derived analytics and an image proxy.
"""

from typing import Any, Callable, Dict, Optional

from fastapi import Query, Request, Response
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import AccessLayerException, CacheError, ForbiddenError, RateLimitError

from .adapters.nasa_client import NasaApiClient
from .caching.ttl_cache import TTLCache
from .domain import ApodService, EpicService, MarsRoverService, NeoService, success_envelope
from .domain.base import DEFAULT_LONG_TTL, utc_now
from .domain.envelope import format_timestamp
from .proxy.image_proxy import ImageProxy
from .ratelimit.fixed_window import FixedWindowRateLimiter, rate_limit_headers
from .validation import validate_api_key


ENDPOINT_INDEX = {
    "health": "/api/health",
    "apod": "/api/apod",
    "mars": "/api/mars",
    "neows": "/api/neows",
    "epic": "/api/epic",
    "proxy": "/api/proxy",
}


class GatewayService(BaseService):
    """NASA API gateway service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        nasa_client: Optional[NasaApiClient] = None,
        clock: Callable = utc_now,
    ):
        super().__init__("gateway", config)
        self._clock = clock

        self.nasa_client = nasa_client or NasaApiClient(
            self.config.nasa_api_key,
            self.config.nasa_api_base_url,
            timeout=self.config.nasa_api_timeout_seconds,
            user_agent=self.config.user_agent,
        )
        self.api_cache = TTLCache(
            self.config.cache_ttl_seconds,
            self.config.cache_check_period_seconds,
            name="api",
        )
        self.image_cache = TTLCache(
            self.config.image_cache_ttl_seconds,
            self.config.image_cache_check_period_seconds,
            name="image",
        )

        resource_options = dict(
            short_ttl=self.config.cache_ttl_seconds,
            long_ttl=DEFAULT_LONG_TTL,
            clock=clock,
            metrics=self.metrics,
        )
        self.apod = ApodService(self.nasa_client, self.api_cache, **resource_options)
        self.mars = MarsRoverService(self.nasa_client, self.api_cache, **resource_options)
        self.neows = NeoService(self.nasa_client, self.api_cache, **resource_options)
        self.epic = EpicService(self.nasa_client, self.api_cache, **resource_options)
        self.image_proxy = ImageProxy(
            self.nasa_client,
            self.image_cache,
            ttl=self.config.image_cache_ttl_seconds,
            metrics=self.metrics,
        )
        self.rate_limiter = FixedWindowRateLimiter(
            self.config.rate_limit_max_requests,
            self.config.rate_limit_window_ms / 1000,
        )

        if self.nasa_client.api_key == "DEMO_KEY":
            self.logger.warning("Using DEMO_KEY, NASA rate limits are strict")
        elif not validate_api_key(self.nasa_client.api_key):
            self.logger.warning("NASA API key has an unexpected format")

        self.app.state.gateway_service = self
        self._setup_health_routes()
        self._setup_apod_routes()
        self._setup_mars_routes()
        self._setup_neows_routes()
        self._setup_epic_routes()
        self._setup_proxy_routes()

    async def on_startup(self) -> None:
        self.api_cache.start_sweeper()
        self.image_cache.start_sweeper()
        self.logger.info(
            "Gateway started",
            environment=self.config.environment,
            port=self.config.port,
            nasa_api=self.config.nasa_api_base_url,
        )

    async def on_shutdown(self) -> None:
        await self.api_cache.stop_sweeper()
        await self.image_cache.stop_sweeper()
        await self.nasa_client.close()
        self.logger.info("Gateway stopped")

    def available_endpoints(self) -> Dict[str, str]:
        return dict(ENDPOINT_INDEX)

    def _require_development(self, action: str) -> None:
        if not self.config.is_development:
            raise ForbiddenError(
                f"{action} is only allowed in development",
                details={"environment": self.config.environment},
            )

    def _flush(self, cache: TTLCache) -> int:
        try:
            return cache.flush_all()
        except Exception as exc:
            raise CacheError("Cache clear failed", details={"cache": cache.name, "error": str(exc)}) from exc

    def _setup_middleware(self):
        # Innermost middleware is registered first, so CORS and the request
        # context also wrap rate-limit rejections
        self._setup_rate_limit_middleware()
        super()._setup_middleware()

    def _setup_rate_limit_middleware(self):
        """Fixed-window limit per client IP on /api routes."""

        @self.app.middleware("http")
        async def enforce_rate_limit(request: Request, call_next):
            if request.method == "OPTIONS" or not request.url.path.startswith("/api/"):
                return await call_next(request)

            client_ip = self.get_client_ip(request)
            result = self.rate_limiter.check_rate_limit(client_ip)
            headers = rate_limit_headers(result)

            if not result["allowed"]:
                self.metrics.increment_counter("rate_limit_hits_total", endpoint=request.url.path)
                error = RateLimitError(
                    "Too many requests from this IP, please try again later.",
                    details={"retry_after": result["retry_after"]},
                )
                headers["Retry-After"] = str(result["retry_after"])
                return JSONResponse(status_code=error.status_code, content=error.to_envelope(), headers=headers)

            response = await call_next(request)
            response.headers.update(headers)
            return response

    def _setup_health_routes(self):
        """Set up root banner and health routes."""

        @self.app.get("/")
        async def root():
            return {
                "message": "NASA Mission Control Dashboard API",
                "version": self.version,
                "status": "operational",
                "endpoints": self.available_endpoints(),
                "documentation": "https://api.nasa.gov/",
            }

        @self.app.get("/api/health")
        async def health():
            """Service health with a live NASA API probe."""
            services = {"api": "operational", "cache": "operational", "nasa_api": "operational"}
            warnings = []

            try:
                await self.apod.get_today()
            except AccessLayerException as exc:
                self.logger.warning("NASA API health probe failed", code=exc.code, message=exc.message)
                services["nasa_api"] = "degraded"
                warnings.append("NASA API connectivity issues detected")
            except Exception as exc:
                self.logger.error("NASA API health probe error", error=str(exc), exc_info=True)
                services["nasa_api"] = "degraded"
                warnings.append("NASA API connectivity issues detected")

            stats = self.api_cache.stats()
            data: Dict[str, Any] = {
                "status": "operational" if not warnings else "degraded",
                "timestamp": format_timestamp(self._clock()),
                "uptime_seconds": round(self.get_uptime(), 3),
                "environment": self.config.environment,
                "version": self.version,
                "services": services,
                "cache": {"status": "operational", **stats.to_dict()},
            }
            if warnings:
                data["warnings"] = warnings
            return {"success": True, "data": data}

        @self.app.post("/api/health/cache/clear")
        async def clear_api_cache():
            self._require_development("Cache clearing")
            removed = self._flush(self.api_cache)
            return success_envelope(
                {"message": "Cache cleared successfully", "removed": removed},
                "health/cache/clear",
                timestamp=self._clock(),
            )

    def _setup_apod_routes(self):
        """Set up Astronomy Picture of the Day routes."""

        @self.app.get("/api/apod")
        async def get_apod(
            date: Optional[str] = None,
            count: Optional[str] = None,
            start_date: Optional[str] = None,
            end_date: Optional[str] = None,
        ):
            return await self.apod.get_apod(date=date, count=count, start_date=start_date, end_date=end_date)

        @self.app.get("/api/apod/today")
        async def get_apod_today():
            return await self.apod.get_today()

        @self.app.get("/api/apod/random")
        async def get_apod_random(count: Optional[str] = None):
            return await self.apod.get_random(count)

        @self.app.get("/api/apod/range")
        async def get_apod_range(start_date: Optional[str] = None, end_date: Optional[str] = None):
            return await self.apod.get_range(start_date, end_date)

    def _setup_mars_routes(self):
        """Set up Mars rover routes."""

        @self.app.get("/api/mars/rovers")
        async def list_rovers():
            return self.mars.list_rovers()

        @self.app.get("/api/mars/{rover}/manifest")
        async def get_manifest(rover: str):
            return await self.mars.get_manifest(rover)

        @self.app.get("/api/mars/{rover}/photos")
        async def get_photos(
            rover: str,
            sol: Optional[str] = None,
            earth_date: Optional[str] = None,
            camera: Optional[str] = None,
            page: Optional[str] = None,
        ):
            return await self.mars.get_photos(rover, sol=sol, earth_date=earth_date, camera=camera, page=page)

        @self.app.get("/api/mars/{rover}/latest")
        async def get_latest_photos(rover: str, camera: Optional[str] = None):
            return await self.mars.get_latest(rover, camera=camera)

    def _setup_neows_routes(self):
        """Set up Near Earth Object routes."""

        @self.app.get("/api/neows/feed")
        async def get_feed(
            start_date: Optional[str] = None,
            end_date: Optional[str] = None,
            detailed: bool = False,
        ):
            return await self.neows.get_feed(start_date, end_date, detailed)

        @self.app.get("/api/neows/today")
        async def get_today():
            return await self.neows.get_today()

        @self.app.get("/api/neows/object/{asteroid_id}")
        async def get_object(asteroid_id: str):
            return await self.neows.get_object(asteroid_id)

        @self.app.get("/api/neows/hazardous")
        async def get_hazardous():
            return await self.neows.get_hazardous()

    def _setup_epic_routes(self):
        """Set up EPIC Earth imagery routes."""

        @self.app.get("/api/epic/images")
        async def get_images(date: Optional[str] = None, type: Optional[str] = "natural"):
            return await self.epic.get_images(date, type)

        @self.app.get("/api/epic/latest")
        async def get_latest(type: Optional[str] = "natural"):
            return await self.epic.get_latest(type)

        @self.app.get("/api/epic/dates")
        async def get_dates(type: Optional[str] = "natural"):
            return await self.epic.get_dates(type)

        @self.app.get("/api/epic/natural")
        async def get_natural():
            return await self.epic.get_natural()

        @self.app.get("/api/epic/enhanced")
        async def get_enhanced():
            return await self.epic.get_enhanced()

    def _setup_proxy_routes(self):
        """Set up image proxy routes."""

        async def proxied_response(url: Optional[str]) -> Response:
            image = await self.image_proxy.proxy_image(url)
            return Response(content=image.content, media_type=image.content_type, headers=image.headers)

        @self.app.get("/api/proxy/image")
        async def proxy_image(url: Optional[str] = None):
            return await proxied_response(url)

        @self.app.get("/api/proxy/thumbnail")
        async def proxy_thumbnail(
            url: Optional[str] = None,
            _size: int = Query(300, ge=16, le=2048, alias="size"),
        ):
            # Size is range-checked but not applied; the original image is served as-is
            return await proxied_response(url)

        @self.app.get("/api/proxy/cache/stats")
        async def image_cache_stats():
            return success_envelope(self.image_proxy.stats(), "proxy/cache/stats", timestamp=self._clock())

        @self.app.post("/api/proxy/cache/clear")
        async def clear_image_cache():
            self._require_development("Image cache clearing")
            removed = self._flush(self.image_cache)
            return success_envelope(
                {"message": "Image cache cleared successfully", "removed": removed},
                "proxy/cache/clear",
                timestamp=self._clock(),
            )


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = GatewayService(config, **kwargs)
    return service.app


if __name__ == "__main__":
    service = GatewayService(get_config("gateway"))
    service.run()

"""
Base service class for access layer services.
"""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Dict, Any, Optional
import time
import traceback

from shared.config import ServiceConfig, get_config
from shared.logging import clear_context, configure_logging, get_logger, set_client_context, set_request_id
from shared.metrics import get_metrics_collector
from shared.errors import AccessLayerException, InvalidRequestError, NotFoundError


class BaseService:
    """Base service class with common functionality."""

    version = "1.0.0"

    def __init__(self, service_name: str, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.config = config or get_config(service_name)
        self.port = self.config.port
        self._start_time = time.time()

        configure_logging(service_name, self.config.log_level, self.config.log_format)
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name)

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await self.on_startup()
            try:
                yield
            finally:
                await self.on_shutdown()

        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"NASA Mission Control - {self.service_name.title()} Service",
            version=self.version,
            docs_url="/docs" if self.config.is_development else None,
            redoc_url="/redoc" if self.config.is_development else None,
            lifespan=lifespan,
        )

    async def on_startup(self) -> None:
        """Startup hook. Override in subclasses."""

    async def on_shutdown(self) -> None:
        """Shutdown hook. Override in subclasses."""

    def _setup_middleware(self):
        """Set up middleware."""

        self.app.add_middleware(GZipMiddleware, minimum_size=1024)
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @self.app.middleware("http")
        async def bind_request_context(request: Request, call_next):
            request_id = set_request_id(request.headers.get("X-Request-ID"))
            set_client_context(self.get_client_ip(request))
            started = time.perf_counter()

            try:
                response = await call_next(request)
                duration = time.perf_counter() - started
                self.metrics.record_http_request(
                    request.method, request.url.path, response.status_code, duration
                )
                self.logger.info(
                    "HTTP request",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round(duration * 1000, 2),
                )
                response.headers["X-Request-ID"] = request_id
                return response
            finally:
                clear_context()

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/metrics", include_in_schema=False)
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            return Response(content=self.metrics.render(), media_type=CONTENT_TYPE_LATEST)

        @self.app.exception_handler(AccessLayerException)
        async def access_layer_exception_handler(request: Request, exc: AccessLayerException):
            """Handle AccessLayerException."""
            log = self.logger.error if exc.status_code >= 500 else self.logger.warning
            log(
                "Access layer error",
                code=exc.code,
                message=exc.message,
                details=exc.details,
                path=request.url.path,
            )
            self.metrics.record_error(exc.code)
            return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_handler(request: Request, exc: RequestValidationError):
            """Handle FastAPI parameter coercion failures."""
            errors = [
                f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
                for error in exc.errors()
            ]
            error = InvalidRequestError("Invalid request parameters", details={"errors": errors})
            return JSONResponse(status_code=error.status_code, content=error.to_envelope())

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            """Handle routing-level HTTP errors."""
            if exc.status_code == 404:
                error = NotFoundError(
                    f"Route {request.url.path} not found",
                    details={"available_endpoints": self.available_endpoints()},
                )
                return JSONResponse(status_code=404, content=error.to_envelope())

            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "success": False,
                    "error": {"code": "HTTP_ERROR", "message": str(exc.detail), "details": {}},
                },
                headers=getattr(exc, "headers", None),
            )

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Unhandled exception", error=str(exc), path=request.url.path, exc_info=True)
            self.metrics.record_error("INTERNAL_ERROR")

            details: Dict[str, Any] = {}
            if self.config.is_development:
                message = str(exc) or exc.__class__.__name__
                details = {
                    "exception": exc.__class__.__name__,
                    "stack": traceback.format_exception(type(exc), exc, exc.__traceback__),
                }
            else:
                message = "Something went wrong on our end. Please try again later."

            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": {"code": "INTERNAL_ERROR", "message": message, "details": details},
                }
            )

    def available_endpoints(self) -> Dict[str, str]:
        """Endpoint index advertised on unknown routes. Override in subclasses."""
        return {}

    def get_client_ip(self, request: Request) -> str:
        """Caller IP; forwarding headers are only read when ``trust_proxy`` is set."""
        if self.config.trust_proxy:
            forwarded_for = request.headers.get("X-Forwarded-For")
            if forwarded_for:
                return forwarded_for.split(",")[0].strip()
            real_ip = request.headers.get("X-Real-IP")
            if real_ip:
                return real_ip.strip()
        if request.client:
            return request.client.host
        return "unknown"

    def get_uptime(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )

"""
Shared fetch pipeline for gateway resources.
"""

import json
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple, TYPE_CHECKING

from shared.errors import ExternalServiceError, InvalidRequestError
from shared.logging import get_logger

from ..adapters.nasa_client import NasaApiClient
from ..caching.ttl_cache import TTLCache
from ..validation.validators import QueryValidationResult
from .envelope import success_envelope

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_SHORT_TTL = 3600
DEFAULT_LONG_TTL = 86400


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GatewayResource:
    """Validate, look up the cache, call NASA on a miss, and wrap the result.

    Only the raw upstream payload is cached. Subclasses derive their views
    from it on every call and must never mutate the cached object in place.
    """

    resource_name = "resource"

    def __init__(
        self,
        nasa_client: NasaApiClient,
        cache: TTLCache,
        *,
        short_ttl: int = DEFAULT_SHORT_TTL,
        long_ttl: int = DEFAULT_LONG_TTL,
        clock: Callable[[], datetime] = utc_now,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.nasa_client = nasa_client
        self.cache = cache
        self.short_ttl = short_ttl
        self.long_ttl = long_ttl
        self.metrics = metrics
        self._clock = clock
        self.logger = get_logger(f"gateway.{self.resource_name}")

    def now(self) -> datetime:
        current = self._clock()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone.utc)

    def today(self) -> str:
        return self.now().strftime("%Y-%m-%d")

    @staticmethod
    def cache_key(resource: str, endpoint: str, params: Dict[str, Any]) -> str:
        """Deterministic key: absent params are dropped and the rest sorted."""
        normalized = {key: str(value) for key, value in params.items() if value is not None}
        return f"{resource}:{endpoint}:{json.dumps(normalized, sort_keys=True)}"

    def _safe_get(self, key: str) -> Optional[Any]:
        """Read the cache, degrading any cache failure to a miss."""
        try:
            value = self.cache.get(key)
        except Exception as exc:
            self.logger.error("Cache fetch error", key=key, error=str(exc))
            return None

        if self.metrics:
            self.metrics.record_cache_event(self.cache.name, hit=value is not None)
        return value

    def _safe_set(self, key: str, value: Any, ttl: int) -> None:
        try:
            self.cache.set(key, value, ttl)
        except Exception as exc:
            self.logger.error("Cache store error", key=key, error=str(exc))

    async def fetch(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        ttl: Optional[int] = None,
    ) -> Tuple[Any, bool]:
        """Return ``(raw_payload, served_from_cache)`` for an upstream endpoint."""
        params = {key: value for key, value in (params or {}).items() if value is not None}
        key = self.cache_key(self.resource_name, endpoint, params)

        cached = self._safe_get(key)
        if cached is not None:
            self.logger.debug("Cache hit", key=key)
            return cached, True

        start = time.perf_counter()
        outcome = "error"
        try:
            payload = await self.nasa_client.request(endpoint, params)
            outcome = "ok"
        except ExternalServiceError as exc:
            outcome = exc.kind.value
            raise
        finally:
            if self.metrics:
                self.metrics.record_upstream_request(self.resource_name, outcome, time.perf_counter() - start)

        self._safe_set(key, payload, self.short_ttl if ttl is None else ttl)
        return payload, False

    def envelope(self, data: Any, endpoint: str, *, cached: Optional[bool] = None, **meta: Any) -> Dict[str, Any]:
        return success_envelope(data, endpoint, cached=cached, timestamp=self.now(), **meta)

    @staticmethod
    def require_valid(result: QueryValidationResult) -> None:
        """Raise InvalidRequestError carrying every collected validation error."""
        if not result.is_valid:
            raise InvalidRequestError(result.errors[0], details={"errors": result.errors})

    @staticmethod
    def invalid(message: str, **details: Any) -> InvalidRequestError:
        return InvalidRequestError(message, details={"errors": [message], **details})

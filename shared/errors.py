"""
Shared error handling for the NASA Mission Control access layer.

Every failure surfaced to a caller is an ``AccessLayerException`` subclass.
The outermost HTTP boundary turns it into the failure envelope::

    {"success": false, "error": {"code": ..., "message": ..., "details": {...}}}
"""

from enum import Enum
from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error body nested under ``error`` in failure envelopes."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for access layer services."""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(code=self.code, message=self.message, details=self.details)

    def to_envelope(self) -> Dict[str, Any]:
        """Wrap the error response in the failure envelope."""
        return {"success": False, "error": self.to_response().model_dump()}


class InvalidRequestError(AccessLayerException):
    """Client-supplied parameters failed validation."""

    status_code = 400

    def __init__(self, message: str = "Invalid request", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_REQUEST", message, details)


class ForbiddenError(AccessLayerException):
    """Operation not permitted for this caller or environment."""

    status_code = 403

    def __init__(self, message: str = "Forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__("FORBIDDEN", message, details)


class NotFoundError(AccessLayerException):
    """Requested resource does not exist."""

    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class RateLimitError(AccessLayerException):
    """Rate limiting errors."""

    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded", details: Optional[Dict[str, Any]] = None):
        super().__init__("RATE_LIMIT_EXCEEDED", message, details)


class CacheError(AccessLayerException):
    """Cache maintenance operation failed."""

    status_code = 500

    def __init__(self, message: str = "Cache operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_ERROR", message, details)


class InternalError(AccessLayerException):
    """Catch-all server error."""

    status_code = 500

    def __init__(self, message: str = "Internal server error", details: Optional[Dict[str, Any]] = None):
        super().__init__("INTERNAL_ERROR", message, details)


class UpstreamErrorKind(str, Enum):
    """Discriminator set by the upstream client for every failed call."""

    RATE_LIMITED = "rate_limited"
    AUTH_INVALID = "auth_invalid"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    NETWORK = "network"
    HTTP_ERROR = "http_error"


class ExternalServiceError(AccessLayerException):
    """External service errors."""

    status_code = 502
    kind = UpstreamErrorKind.HTTP_ERROR

    def __init__(
        self,
        service: str,
        message: str = "External service error",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        code: str = "NASA_API_ERROR",
    ):
        self.service = service
        details = dict(details or {})
        details.setdefault("kind", self.kind.value)
        super().__init__(code, message, details, status_code)


class UpstreamError(ExternalServiceError):
    """Upstream answered with a non-success status not covered by a narrower kind."""

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        service: str = "nasa_api",
    ):
        self.upstream_status = upstream_status
        details = dict(details or {})
        if upstream_status is not None:
            details.setdefault("upstream_status", upstream_status)
        # Client errors from upstream pass through, anything else is a bad gateway
        status = upstream_status if upstream_status and 400 <= upstream_status < 500 else 502
        super().__init__(service, message, details, status_code=status)


class RateLimitExceeded(ExternalServiceError):
    """Upstream API quota exhausted (HTTP 429)."""

    status_code = 429
    kind = UpstreamErrorKind.RATE_LIMITED

    def __init__(self, message: str = "NASA API rate limit exceeded. Please try again later.",
                 details: Optional[Dict[str, Any]] = None, service: str = "nasa_api"):
        details = dict(details or {})
        details.setdefault("retry_after", 3600)
        super().__init__(service, message, details, code="RATE_LIMIT_EXCEEDED")


class InvalidApiKey(ExternalServiceError):
    """Upstream rejected the configured API key (HTTP 403)."""

    status_code = 403
    kind = UpstreamErrorKind.AUTH_INVALID

    def __init__(self, message: str = "NASA API key is invalid or missing. Please check server configuration.",
                 details: Optional[Dict[str, Any]] = None, service: str = "nasa_api"):
        super().__init__(service, message, details)


class UpstreamUnavailable(ExternalServiceError):
    """Upstream returned a 5xx status."""

    status_code = 503
    kind = UpstreamErrorKind.UNAVAILABLE

    def __init__(self, message: str = "NASA API is temporarily unavailable. Please try again later.",
                 details: Optional[Dict[str, Any]] = None, service: str = "nasa_api"):
        super().__init__(service, message, details)


class UpstreamTimeout(ExternalServiceError):
    """Upstream call exceeded the request timeout."""

    status_code = 408
    kind = UpstreamErrorKind.TIMEOUT

    def __init__(self, message: str = "Request to NASA API timed out. Please try again.",
                 details: Optional[Dict[str, Any]] = None, service: str = "nasa_api"):
        super().__init__(service, message, details)


class UpstreamUnreachable(ExternalServiceError):
    """Connection to upstream could not be established."""

    status_code = 503
    kind = UpstreamErrorKind.NETWORK

    def __init__(self, message: str = "Unable to connect to NASA API. Please try again later.",
                 details: Optional[Dict[str, Any]] = None, service: str = "nasa_api"):
        super().__init__(service, message, details)


class RedirectNotAllowed(ExternalServiceError):
    """Upstream redirected to a location the caller refused to follow."""

    status_code = 403

    def __init__(self, location: str, details: Optional[Dict[str, Any]] = None, service: str = "nasa_api"):
        self.location = location
        details = dict(details or {})
        details.setdefault("location", location)
        super().__init__(service, "Upstream redirected to a disallowed location", details)

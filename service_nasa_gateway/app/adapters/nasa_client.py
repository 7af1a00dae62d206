"""
NASA Open API client for the gateway.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
import httpx

from shared.logging import get_logger
from shared.errors import (
    InvalidApiKey,
    RateLimitExceeded,
    RedirectNotAllowed,
    UpstreamError,
    UpstreamTimeout,
    UpstreamUnavailable,
    UpstreamUnreachable,
)


DEFAULT_BASE_URL = "https://api.nasa.gov"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "NASA-Mission-Control-Dashboard/1.0.0"
MAX_REDIRECTS = 5


@dataclass(frozen=True)
class BinaryPayload:
    """Raw body plus content type of a binary fetch."""

    content: bytes
    content_type: str

    def __len__(self) -> int:
        return len(self.content)


class NasaApiClient:
    """Client for api.nasa.gov that injects the API key and maps failures to typed errors."""

    def __init__(
        self,
        api_key: str = "DEMO_KEY",
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.logger = get_logger("gateway.nasa_client")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``endpoint`` relative to the base URL and return decoded JSON."""
        query = {key: value for key, value in (params or {}).items() if value is not None}
        query["api_key"] = self.api_key

        self.logger.info("NASA API request", endpoint=endpoint)
        response = await self._send(endpoint, query)

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                "NASA API returned a malformed JSON body",
                details={"endpoint": endpoint, "error": str(exc)},
            ) from exc

    async def fetch_binary(
        self,
        url: str,
        *,
        redirect_allowed: Optional[Callable[[str], bool]] = None,
        max_redirects: int = MAX_REDIRECTS,
    ) -> BinaryPayload:
        """GET an absolute URL and return its raw body. No API key is attached.

        Redirects are followed by hand so that every hop can be vetted by
        ``redirect_allowed`` before it is requested.
        """
        self.logger.info("Binary fetch", url=url)
        current = url
        for _ in range(max_redirects + 1):
            response = await self._get(current, None)
            if not response.has_redirect_location:
                break
            location = str(response.url.join(response.headers["Location"]))
            if redirect_allowed is not None and not redirect_allowed(location):
                self.logger.warning("Binary fetch redirect refused", url=current, location=location)
                raise RedirectNotAllowed(location, details={"url": url})
            self.logger.debug("Following redirect", url=current, location=location)
            current = location
        else:
            raise UpstreamError(
                "Too many redirects",
                details={"url": url, "max_redirects": max_redirects},
            )

        if not response.is_success:
            self._raise_for_status(current, response)
        content_type = response.headers.get("content-type") or "image/jpeg"
        return BinaryPayload(content=response.content, content_type=content_type)

    async def _send(self, url: str, params: Optional[Dict[str, Any]]) -> httpx.Response:
        response = await self._get(url, params)
        if not response.is_success:
            self._raise_for_status(url, response)
        return response

    async def _get(self, url: str, params: Optional[Dict[str, Any]]) -> httpx.Response:
        try:
            response = await self._client.get(url, params=params)
        except httpx.TimeoutException as exc:
            self.logger.error("NASA API timeout", url=url, timeout=self.timeout)
            raise UpstreamTimeout(details={"url": url}) from exc
        except httpx.TransportError as exc:
            self.logger.error("NASA API unreachable", url=url, error=str(exc))
            raise UpstreamUnreachable(details={"url": url, "error": str(exc)}) from exc
        return response

    def _raise_for_status(self, url: str, response: httpx.Response) -> None:
        status = response.status_code
        message = self._extract_message(response)
        self.logger.error("NASA API error", url=url, status_code=status, message=message)

        details = {"url": url, "upstream_status": status}
        if status == 429:
            raise RateLimitExceeded(details=details)
        if status == 403:
            raise InvalidApiKey(details=details)
        if status >= 500:
            raise UpstreamUnavailable(details=details)

        raise UpstreamError(
            f"NASA API returned {status}: {message}",
            upstream_status=status,
            details={"url": url},
        )

    @staticmethod
    def _extract_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.reason_phrase

        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if body.get("msg"):
                return str(body["msg"])
        return response.reason_phrase

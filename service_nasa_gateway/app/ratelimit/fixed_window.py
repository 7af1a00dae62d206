"""
Fixed window rate limiter for the gateway's API routes.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict

from shared.logging import get_logger


@dataclass
class _Window:
    started_at: float
    count: int = 0


class FixedWindowRateLimiter:
    """Per-client request counter that resets every ``window_seconds``.

    State is process-local; a restart forgets every window. Elapsed windows
    are dropped at most once per window length as requests arrive.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 900.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._last_prune = clock()
        self._lock = threading.Lock()
        self.logger = get_logger("gateway.rate_limiter")

    def check_rate_limit(self, client_id: str) -> Dict[str, Any]:
        """Count one request for ``client_id`` and report whether it is allowed."""
        now = self._clock()

        with self._lock:
            if now - self._last_prune >= self.window_seconds:
                self._drop_stale(now)

            window = self._windows.get(client_id)
            if window is None or now - window.started_at >= self.window_seconds:
                window = _Window(started_at=now)
                self._windows[client_id] = window

            reset_in = max(0, math.ceil(window.started_at + self.window_seconds - now))

            if window.count >= self.max_requests:
                self.logger.warning(
                    "Rate limit exceeded",
                    client_id=client_id,
                    current_count=window.count,
                    limit=self.max_requests,
                )
                return {
                    "allowed": False,
                    "current_count": window.count,
                    "limit": self.max_requests,
                    "remaining": 0,
                    "reset_in_seconds": reset_in,
                    "retry_after": reset_in,
                }

            window.count += 1
            return {
                "allowed": True,
                "current_count": window.count,
                "limit": self.max_requests,
                "remaining": max(0, self.max_requests - window.count),
                "reset_in_seconds": reset_in,
            }

    def reset(self, client_id: str) -> bool:
        with self._lock:
            removed = self._windows.pop(client_id, None) is not None
        if removed:
            self.logger.info("Rate limit reset", client_id=client_id)
        return removed

    def prune(self) -> int:
        """Drop windows that have already elapsed."""
        with self._lock:
            return self._drop_stale(self._clock())

    def _drop_stale(self, now: float) -> int:
        stale = [cid for cid, w in self._windows.items() if now - w.started_at >= self.window_seconds]
        for client_id in stale:
            del self._windows[client_id]
        self._last_prune = now
        if stale:
            self.logger.debug("Pruned rate limit windows", count=len(stale))
        return len(stale)

    def __len__(self) -> int:
        return len(self._windows)


def rate_limit_headers(result: Dict[str, Any]) -> Dict[str, str]:
    return {
        "RateLimit-Limit": str(result["limit"]),
        "RateLimit-Remaining": str(result["remaining"]),
        "RateLimit-Reset": str(result["reset_in_seconds"]),
    }


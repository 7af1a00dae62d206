"""
Inbound rate limiting for the gateway.
"""

from .fixed_window import FixedWindowRateLimiter, rate_limit_headers

__all__ = ["FixedWindowRateLimiter", "rate_limit_headers"]

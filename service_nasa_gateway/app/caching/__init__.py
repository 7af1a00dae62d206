"""
Gateway caching package.

Provides the in-process TTL cache used by both the JSON API gateway and
the image proxy. Only raw upstream payloads are stored; derived views are
recomputed on every request.
"""

from .ttl_cache import CacheEntry, CacheStats, TTLCache

__all__ = ["CacheEntry", "CacheStats", "TTLCache"]

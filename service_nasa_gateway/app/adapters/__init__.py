"""
Adapters package for the NASA gateway.

Contains the HTTP client wrapper for the upstream NASA Open APIs. The
adapter encapsulates:

- Base URL, API key injection and request headers
- The fixed request timeout
- Mapping of upstream failures onto typed shared errors

Keep adapters thin: no caching and no retries live here.
"""

from .nasa_client import BinaryPayload, NasaApiClient

__all__ = ["BinaryPayload", "NasaApiClient"]

"""
Gateway domain package.

One service per NASA resource family. Each follows the same pipeline:
validate the inputs, derive a cache key, read the cache, call NASA on a
miss, derive fresh views from the raw payload, and wrap the result in the
success envelope.
"""

from .apod import ApodService
from .base import GatewayResource
from .envelope import success_envelope
from .epic import EpicService
from .mars import MarsRoverService
from .neows import NeoService, RiskSummary, categorize_size

__all__ = [
    "ApodService",
    "EpicService",
    "GatewayResource",
    "MarsRoverService",
    "NeoService",
    "RiskSummary",
    "categorize_size",
    "success_envelope",
]

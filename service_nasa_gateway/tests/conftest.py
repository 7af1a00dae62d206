"""
Shared fixtures for NASA gateway tests.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from service_nasa_gateway.app.caching.ttl_cache import TTLCache


FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
TEST_API_KEY = "abcdefghijklmnopqrstuvwxyz0123456789ABCD"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def api_cache(fake_clock):
    return TTLCache(3600, 600, clock=fake_clock, name="api")


@pytest.fixture
def nasa_client():
    """Upstream client double; tests set ``request.return_value`` or ``side_effect``."""
    client = AsyncMock()
    client.api_key = TEST_API_KEY
    return client


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW


@pytest.fixture
def make_neo():
    """Build a NeoWs object payload."""

    def _make_neo(
        neo_id: str,
        name: str,
        diameter_km: float,
        hazardous: bool = False,
        approaches: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        return {
            "id": neo_id,
            "name": name,
            "is_potentially_hazardous_asteroid": hazardous,
            "estimated_diameter": {
                "kilometers": {
                    "estimated_diameter_min": diameter_km / 2,
                    "estimated_diameter_max": diameter_km,
                }
            },
            "close_approach_data": approaches if approaches is not None else [],
        }

    return _make_neo


@pytest.fixture
def make_approach():
    """Build a close approach record."""

    def _make_approach(date: str, distance_km: float, velocity_kmh: float = 50000.0) -> Dict[str, Any]:
        return {
            "close_approach_date": date,
            "miss_distance": {"kilometers": str(distance_km)},
            "relative_velocity": {"kilometers_per_hour": str(velocity_kmh)},
        }

    return _make_approach

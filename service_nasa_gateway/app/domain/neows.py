"""
Near Earth Object resource with derived risk statistics.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..validation import NEO_FEED_MAX_DAYS, validate_asteroid_id, validate_date_range
from ..validation.validators import parse_date
from .base import GatewayResource


NEO_FEED_ENDPOINT = "/neo/rest/v1/feed"
NEO_LOOKUP_ENDPOINT = "/neo/rest/v1/neo"

# Upper bounds in kilometres, checked in order
SIZE_CATEGORIES = (
    (0.001, "TINY"),
    (0.01, "SMALL"),
    (0.1, "MEDIUM"),
    (1.0, "LARGE"),
)


def categorize_size(diameter_km: float) -> str:
    for upper_bound, label in SIZE_CATEGORIES:
        if diameter_km < upper_bound:
            return label
    return "MASSIVE"


def _max_diameter_km(neo: Dict[str, Any]) -> float:
    return float(neo["estimated_diameter"]["kilometers"]["estimated_diameter_max"])


def _approach_view(approach: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "date": approach.get("close_approach_date"),
        "distance_km": float(approach["miss_distance"]["kilometers"]),
        "velocity_kmh": float(approach["relative_velocity"]["kilometers_per_hour"]),
    }


def iter_feed_objects(feed: Dict[str, Any]) -> Iterable[Dict[str, Any]]:
    """Objects across every date bucket, in upstream order."""
    for objects in (feed.get("near_earth_objects") or {}).values():
        yield from objects


@dataclass
class RiskSummary:
    """Aggregate risk view over a NEO feed."""

    total_objects: int = 0
    potentially_hazardous: int = 0
    close_approaches: int = 0
    largest_object: Optional[Dict[str, Any]] = None
    closest_approach: Optional[Dict[str, Any]] = None

    @classmethod
    def from_feed(cls, feed: Dict[str, Any]) -> "RiskSummary":
        """Scan every object once.

        Largest/closest use strict comparisons so the first object seen wins
        a tie.
        """
        summary = cls()
        scanned = 0

        for neo in iter_feed_objects(feed):
            scanned += 1
            hazardous = bool(neo.get("is_potentially_hazardous_asteroid"))
            if hazardous:
                summary.potentially_hazardous += 1

            for approach in neo.get("close_approach_data") or []:
                summary.close_approaches += 1
                distance = float(approach["miss_distance"]["kilometers"])
                if summary.closest_approach is None or distance < summary.closest_approach["distance"]:
                    summary.closest_approach = {
                        "object_name": neo.get("name"),
                        "distance": distance,
                        "date": approach.get("close_approach_date"),
                        "velocity": float(approach["relative_velocity"]["kilometers_per_hour"]),
                    }

            diameter = _max_diameter_km(neo)
            if summary.largest_object is None or diameter > summary.largest_object["diameter"]:
                summary.largest_object = {
                    "name": neo.get("name"),
                    "diameter": diameter,
                    "is_hazardous": hazardous,
                }

        element_count = feed.get("element_count")
        summary.total_objects = int(element_count) if element_count is not None else scanned
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_objects": self.total_objects,
            "potentially_hazardous": self.potentially_hazardous,
            "close_approaches": self.close_approaches,
            "largest_object": self.largest_object,
            "closest_approach": self.closest_approach,
        }


class NeoService(GatewayResource):
    """Feed, daily, per-object and hazardous-only views of NeoWs data."""

    resource_name = "neows"

    async def _feed(self, start_date: str, end_date: str, detailed: bool):
        params = {
            "start_date": start_date,
            "end_date": end_date,
            "detailed": "true" if detailed else "false",
        }
        return await self.fetch(NEO_FEED_ENDPOINT, params)

    async def get_feed(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        detailed: bool = False,
    ) -> Dict[str, Any]:
        today = self.today()
        start_date = start_date or today
        end_date = end_date or today

        window = validate_date_range(start_date, end_date, NEO_FEED_MAX_DAYS)
        if not window.is_valid:
            raise self.invalid(window.message)

        feed, cached = await self._feed(start_date, end_date, detailed)
        data = {**feed, "risk_summary": RiskSummary.from_feed(feed).to_dict()}
        return self.envelope(
            data,
            "neows/feed",
            cached=cached,
            start_date=start_date,
            end_date=end_date,
            days=window.days,
            detailed=detailed,
        )

    async def get_today(self) -> Dict[str, Any]:
        today = self.today()
        feed, cached = await self._feed(today, today, False)

        todays_objects = (feed.get("near_earth_objects") or {}).get(today, [])
        total = len(todays_objects)
        stats = {
            "total_count": total,
            "hazardous_count": sum(1 for neo in todays_objects if neo.get("is_potentially_hazardous_asteroid")),
            "average_size": sum(_max_diameter_km(neo) for neo in todays_objects) / total if total else 0,
        }
        return self.envelope({**feed, "daily_stats": stats}, "neows/today", cached=cached, date=today)

    async def get_object(self, asteroid_id: str) -> Dict[str, Any]:
        if not validate_asteroid_id(asteroid_id):
            raise self.invalid("Asteroid ID must be a numeric string of 1 to 10 digits")

        neo, cached = await self.fetch(f"{NEO_LOOKUP_ENDPOINT}/{asteroid_id}", ttl=self.long_ttl)
        approaches = neo.get("close_approach_data") or []
        analysis = {
            "risk_level": "HIGH" if neo.get("is_potentially_hazardous_asteroid") else "LOW",
            "size_category": categorize_size(_max_diameter_km(neo)),
            "next_approach": self.next_approach(approaches),
            "approach_count": len(approaches),
        }
        return self.envelope(
            {**neo, "analysis": analysis},
            f"neows/object/{asteroid_id}",
            cached=cached,
            asteroid_id=asteroid_id,
        )

    def next_approach(self, approaches: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Earliest approach dated strictly after now, or None."""
        now = self.now()
        upcoming = []
        for approach in approaches:
            approach_date = parse_date(approach.get("close_approach_date"))
            if approach_date is None:
                continue
            moment = datetime(approach_date.year, approach_date.month, approach_date.day, tzinfo=timezone.utc)
            if moment > now:
                upcoming.append((moment, approach))

        if not upcoming:
            return None

        # min() keeps the first of equal dates
        _, earliest = min(upcoming, key=lambda item: item[0])
        return _approach_view(earliest)

    async def get_hazardous(self) -> Dict[str, Any]:
        today = self.today()
        feed, cached = await self._feed(today, today, True)

        hazardous = [
            {
                "id": neo.get("id"),
                "name": neo.get("name"),
                "diameter_km": _max_diameter_km(neo),
                "close_approach_data": [_approach_view(a) for a in neo.get("close_approach_data") or []],
            }
            for neo in iter_feed_objects(feed)
            if neo.get("is_potentially_hazardous_asteroid")
        ]
        hazardous.sort(key=lambda item: item["diameter_km"], reverse=True)

        return self.envelope(
            {"hazardous_objects": hazardous, "count": len(hazardous), "date": today},
            "neows/hazardous",
            cached=cached,
            date=today,
        )

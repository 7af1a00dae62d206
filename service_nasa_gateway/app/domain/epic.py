"""
EPIC Earth imagery resource.
"""

from typing import Any, Dict, List, Optional

from shared.errors import NotFoundError

from ..validation import EPIC_IMAGE_TYPES, validate_date
from ..validation.validators import parse_date
from .base import GatewayResource


EPIC_API_ROOT = "/EPIC/api"
EPIC_ARCHIVE_URL = "https://api.nasa.gov/EPIC/archive"

_METADATA_FIELDS = ("sun_j2000_position", "lunar_j2000_position", "attitude_quaternions", "coords")


class EpicService(GatewayResource):
    """Daily EPIC image listings with synthesized archive URLs."""

    resource_name = "epic"

    def _normalize_type(self, image_type: Optional[str]) -> str:
        normalized = (image_type or "natural").lower()
        if normalized not in EPIC_IMAGE_TYPES:
            raise self.invalid(f"Type must be one of: {', '.join(EPIC_IMAGE_TYPES)}")
        return normalized

    def archive_urls(self, image: Dict[str, Any], image_type: str) -> Dict[str, str]:
        """Full-size PNG and thumbnail JPG URLs for one EPIC image record."""
        day_path = str(image["date"]).split(" ")[0].replace("-", "/")
        base = f"{EPIC_ARCHIVE_URL}/{image_type}/{day_path}"
        api_key = self.nasa_client.api_key
        return {
            "image_url": f"{base}/png/{image['image']}.png?api_key={api_key}",
            "thumbnail_url": f"{base}/thumbs/{image['image']}.jpg?api_key={api_key}",
        }

    def enrich_images(self, images: List[Dict[str, Any]], image_type: str) -> List[Dict[str, Any]]:
        return [
            {
                **image,
                **self.archive_urls(image, image_type),
                "metadata": {name: image.get(name) for name in _METADATA_FIELDS},
            }
            for image in images or []
        ]

    async def _images_for(self, date: str, image_type: str):
        return await self.fetch(f"{EPIC_API_ROOT}/{image_type}/date/{date}")

    async def _available_dates(self, image_type: str):
        return await self.fetch(f"{EPIC_API_ROOT}/{image_type}/all", ttl=self.long_ttl)

    async def get_images(self, date: Optional[str] = None, image_type: Optional[str] = "natural") -> Dict[str, Any]:
        image_type = self._normalize_type(image_type)
        target_date = date or self.today()

        if not validate_date(target_date):
            raise self.invalid("Date must be in YYYY-MM-DD format")
        if parse_date(target_date) > self.now().date():
            raise self.invalid("Date cannot be in the future")

        images, cached = await self._images_for(target_date, image_type)
        data = self.enrich_images(images, image_type)
        return self.envelope(
            data,
            "epic/images",
            cached=cached,
            date=target_date,
            type=image_type,
            count=len(data),
        )

    async def get_latest(self, image_type: Optional[str] = "natural") -> Dict[str, Any]:
        image_type = self._normalize_type(image_type)

        dates, dates_cached = await self._available_dates(image_type)
        if not dates:
            raise NotFoundError(
                "No EPIC images available for the specified type",
                details={"type": image_type},
            )

        latest_date = max(str(item["date"]).split(" ")[0] for item in dates)
        images, images_cached = await self._images_for(latest_date, image_type)
        data = self.enrich_images(images, image_type)
        return self.envelope(
            data,
            "epic/latest",
            cached=dates_cached and images_cached,
            date=latest_date,
            type=image_type,
            count=len(data),
        )

    async def get_dates(self, image_type: Optional[str] = "natural") -> Dict[str, Any]:
        image_type = self._normalize_type(image_type)
        dates, cached = await self._available_dates(image_type)

        processed = []
        for item in dates or []:
            day = parse_date(str(item.get("date", "")).split(" ")[0])
            if day is None:
                continue
            processed.append({
                "date": day.isoformat(),
                "formatted_date": f"{day.strftime('%B')} {day.day}, {day.year}",
                "day_of_year": day.timetuple().tm_yday,
            })

        all_dates = [entry["date"] for entry in processed]
        return self.envelope(
            processed,
            "epic/dates",
            cached=cached,
            type=image_type,
            count=len(processed),
            date_range={
                "earliest": min(all_dates) if all_dates else None,
                "latest": max(all_dates) if all_dates else None,
            },
        )

    async def _todays_images(self, image_type: str) -> Dict[str, Any]:
        today = self.today()
        images, cached = await self._images_for(today, image_type)
        data = self.enrich_images(images, image_type)
        return self.envelope(
            data,
            f"epic/{image_type}",
            cached=cached,
            date=today,
            type=image_type,
            count=len(data),
        )

    async def get_natural(self) -> Dict[str, Any]:
        return await self._todays_images("natural")

    async def get_enhanced(self) -> Dict[str, Any]:
        return await self._todays_images("enhanced")

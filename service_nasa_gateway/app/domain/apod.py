"""
Astronomy Picture of the Day resource.
"""

from typing import Any, Dict, Optional, Union

from ..validation import (
    APOD_MAX_COUNT,
    APOD_RANGE_MAX_DAYS,
    FieldRule,
    validate_count,
    validate_date,
    validate_date_range,
    validate_query_params,
)
from .base import GatewayResource


APOD_ENDPOINT = "/planetary/apod"

_DATE_MESSAGE = "must be in YYYY-MM-DD format"
_COUNT_MESSAGE = f"Count must be between 1 and {APOD_MAX_COUNT}"


def _valid_count(value: Any) -> bool:
    return validate_count(value, 1, APOD_MAX_COUNT)


class ApodService(GatewayResource):
    """APOD lookups by date, random sample, or date range."""

    resource_name = "apod"

    async def get_apod(
        self,
        date: Optional[str] = None,
        count: Optional[Union[str, int]] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = {"date": date, "count": count, "start_date": start_date, "end_date": end_date}
        self.require_valid(validate_query_params(params, {
            "date": FieldRule(validate_date, message=f"Date {_DATE_MESSAGE}"),
            "count": FieldRule(_valid_count, message=_COUNT_MESSAGE),
            "start_date": FieldRule(validate_date, message=f"Start date {_DATE_MESSAGE}"),
            "end_date": FieldRule(validate_date, message=f"End date {_DATE_MESSAGE}"),
        }))

        if start_date and end_date:
            window = validate_date_range(start_date, end_date, APOD_RANGE_MAX_DAYS)
            if not window.is_valid:
                raise self.invalid(window.message)

        query = {key: value for key, value in params.items() if value not in (None, "")}
        if "count" in query:
            query["count"] = int(query["count"])

        data, cached = await self.fetch(APOD_ENDPOINT, query)
        return self.envelope(data, "apod", cached=cached, **query)

    async def get_today(self) -> Dict[str, Any]:
        today = self.today()
        data, cached = await self.fetch(APOD_ENDPOINT, {"date": today})
        return self.envelope(data, "apod/today", cached=cached, date=today)

    async def get_random(self, count: Optional[Union[str, int]] = None) -> Dict[str, Any]:
        if count in (None, ""):
            count = 1
        if not _valid_count(count):
            raise self.invalid(_COUNT_MESSAGE)

        count = int(count)
        data, cached = await self.fetch(APOD_ENDPOINT, {"count": count})
        return self.envelope(data, "apod/random", cached=cached, count=count)

    async def get_range(self, start_date: Optional[str], end_date: Optional[str]) -> Dict[str, Any]:
        params = {"start_date": start_date, "end_date": end_date}
        self.require_valid(validate_query_params(params, {
            "start_date": FieldRule(validate_date, required=True, message=f"Start date {_DATE_MESSAGE}"),
            "end_date": FieldRule(validate_date, required=True, message=f"End date {_DATE_MESSAGE}"),
        }))

        window = validate_date_range(start_date, end_date, APOD_RANGE_MAX_DAYS)
        if not window.is_valid:
            raise self.invalid(window.message)

        data, cached = await self.fetch(APOD_ENDPOINT, params)
        return self.envelope(
            data,
            "apod/range",
            cached=cached,
            start_date=start_date,
            end_date=end_date,
            days=window.days,
        )

"""
Query parameter validation for the NASA gateway.

Every validator takes the raw value as received from the query string (or a
plain int) and answers without raising: malformed input is simply invalid.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, List, Mapping, Optional, Sequence


_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ASTEROID_ID_PATTERN = re.compile(r"^\d{1,10}$")
_API_KEY_PATTERN = re.compile(r"^[A-Za-z0-9]{20,50}$")


@dataclass(frozen=True)
class DateRangeResult:
    """Outcome of a date range check."""

    is_valid: bool
    message: Optional[str] = None
    days: Optional[int] = None


@dataclass(frozen=True)
class FieldRule:
    """Declarative validation rule for one query parameter."""

    validator: Optional[Callable[[Any], bool]] = None
    required: bool = False
    message: Optional[str] = None


@dataclass
class QueryValidationResult:
    """Aggregated outcome of validate_query_params."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)


def _parse_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_date(value: str) -> Optional[date]:
    """Parse a YYYY-MM-DD string, returning None for anything else."""
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def validate_date(value: Any) -> bool:
    """True for a real calendar day written as YYYY-MM-DD."""
    parsed = parse_date(value)
    return parsed is not None and parsed.strftime("%Y-%m-%d") == value


def validate_count(value: Any, min_value: int = 1, max_value: int = 100) -> bool:
    number = _parse_int(value)
    return number is not None and min_value <= number <= max_value


def validate_sol(value: Any) -> bool:
    return validate_count(value, 0, 10000)


def validate_camera(camera: Any, rover: Any, catalog: Mapping[str, Sequence[str]]) -> bool:
    """True when the camera belongs to the rover's catalog (both case-insensitive)."""
    if not camera or not isinstance(camera, str) or not isinstance(rover, str):
        return False

    cameras = catalog.get(rover.lower())
    if not cameras:
        return False

    return camera.upper() in {name.upper() for name in cameras}


def validate_asteroid_id(value: Any) -> bool:
    return isinstance(value, str) and bool(_ASTEROID_ID_PATTERN.match(value))


def validate_page(value: Any) -> bool:
    return validate_count(value, 1, 1000)


def validate_date_range(start_date: Any, end_date: Any, max_days: int = 7) -> DateRangeResult:
    """
    Check an inclusive date window.

    The day count is inclusive of both ends, so 2024-01-01..2024-01-07 spans
    seven days and passes a seven day limit.
    """
    if not validate_date(start_date):
        return DateRangeResult(False, "Invalid start date format")

    if not validate_date(end_date):
        return DateRangeResult(False, "Invalid end date format")

    start = parse_date(start_date)
    end = parse_date(end_date)

    if start > end:
        return DateRangeResult(False, "Start date must be before or equal to end date")

    days = (end - start).days + 1
    if days > max_days:
        return DateRangeResult(False, f"Date range cannot exceed {max_days} days")

    return DateRangeResult(True, days=days)


def _is_absent(value: Any) -> bool:
    return value is None or value == ""


def validate_query_params(params: Mapping[str, Any], rules: Mapping[str, FieldRule]) -> QueryValidationResult:
    """Evaluate every rule and collect all failures rather than stopping at the first."""
    errors: List[str] = []

    for key, rule in rules.items():
        value = params.get(key)

        if _is_absent(value):
            if rule.required:
                errors.append(f"{key} is required")
            continue

        if rule.validator is not None and not rule.validator(value):
            errors.append(rule.message or f"Invalid {key}")

    return QueryValidationResult(is_valid=not errors, errors=errors)


def sanitize_string(value: Any, max_length: int = 100) -> str:
    if not value or not isinstance(value, str):
        return ""

    return re.sub(r"[<>]", "", value.strip()[:max_length])


def validate_api_key(api_key: Any) -> bool:
    """NASA issued keys are 40 alphanumeric characters; accept a tolerant range."""
    return isinstance(api_key, str) and bool(_API_KEY_PATTERN.match(api_key))


"""
Validation package for the NASA gateway.

Pure, non-raising checks for query and path parameters plus the static
rover/camera and EPIC catalogs they are checked against.
"""

from .catalog import (
    APOD_MAX_COUNT,
    APOD_RANGE_MAX_DAYS,
    EPIC_IMAGE_TYPES,
    NEO_FEED_MAX_DAYS,
    ROVER_CAMERAS,
    VALID_ROVERS,
)
from .validators import (
    DateRangeResult,
    FieldRule,
    QueryValidationResult,
    parse_date,
    sanitize_string,
    validate_api_key,
    validate_asteroid_id,
    validate_camera,
    validate_count,
    validate_date,
    validate_date_range,
    validate_page,
    validate_query_params,
    validate_sol,
)

__all__ = [
    "APOD_MAX_COUNT",
    "APOD_RANGE_MAX_DAYS",
    "EPIC_IMAGE_TYPES",
    "NEO_FEED_MAX_DAYS",
    "ROVER_CAMERAS",
    "VALID_ROVERS",
    "DateRangeResult",
    "FieldRule",
    "QueryValidationResult",
    "parse_date",
    "sanitize_string",
    "validate_api_key",
    "validate_asteroid_id",
    "validate_camera",
    "validate_count",
    "validate_date",
    "validate_date_range",
    "validate_page",
    "validate_query_params",
    "validate_sol",
]

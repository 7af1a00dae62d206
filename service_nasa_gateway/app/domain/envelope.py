"""
Success envelope shared by every gateway endpoint.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


def format_timestamp(value: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    value = value or datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def success_envelope(
    data: Any,
    endpoint: str,
    *,
    cached: Optional[bool] = None,
    timestamp: Optional[datetime] = None,
    **meta: Any,
) -> Dict[str, Any]:
    """Wrap ``data`` as ``{"success": true, "data": ..., "meta": {...}}``.

    ``cached`` is omitted from meta for responses that never touch the cache.
    """
    envelope_meta: Dict[str, Any] = {"endpoint": endpoint}
    envelope_meta.update(meta)
    if cached is not None:
        envelope_meta["cached"] = cached
    envelope_meta["timestamp"] = format_timestamp(timestamp)
    return {"success": True, "data": data, "meta": envelope_meta}

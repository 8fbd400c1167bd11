import math
from datetime import UTC, datetime
from typing import Optional


def utc_now() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns of all entities."""
    return datetime.now(UTC).replace(tzinfo=None)


def isoformat_utc(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds") + "Z"


def parse_iso_utc(value: Optional[str]) -> Optional[datetime]:
    """
    ISO-8601 string to naive UTC. Blank input yields None.

    A trailing "Z" is accepted and offsets are converted to UTC.
    Raises ValueError on anything unparseable.
    """
    if value is None or not value.strip():
        return None
    value = value.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def clamp_positive(value, default: Optional[int], maximum: Optional[int] = None) -> Optional[int]:
    """
    Floor a positive number and cap it at maximum.

    Non-numeric, non-finite or non-positive input yields default.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number) or number <= 0:
        return default
    number = max(1, int(math.floor(number)))
    return number if maximum is None else min(number, maximum)

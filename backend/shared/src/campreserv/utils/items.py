"""Helpers for converting between DynamoDB items and model fields.

DynamoDB returns numbers as Decimal and stores dates as ISO strings, while
the models are strict about int/date/datetime types.
"""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal
from typing import Any


def as_int(value: Any, default: int | None = None) -> int | None:
    """Convert a DynamoDB number to int, keeping None as `default`."""
    if value is None:
        return default
    return int(value)


def as_float(value: Any, default: float | None = None) -> float | None:
    if value is None:
        return default
    return float(value)


def as_date(value: Any) -> dt.date | None:
    if not value:
        return None
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(str(value)[:10])


def as_datetime(value: Any) -> dt.datetime | None:
    """Parse an ISO timestamp; naive values are treated as UTC."""
    if not value:
        return None
    if isinstance(value, dt.datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = dt.datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed


def as_decimal(value: float | int) -> Decimal:
    """Convert a float for storage; DynamoDB rejects float values."""
    return Decimal(str(value))


def compact(item: dict[str, Any]) -> dict[str, Any]:
    """Drop None values so optional attributes are simply absent."""
    return {key: value for key, value in item.items() if value is not None}


def round_half_up(value: float | Decimal, places: int = 0) -> Decimal:
    """Round to `places` decimals with halves rounded up."""
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)

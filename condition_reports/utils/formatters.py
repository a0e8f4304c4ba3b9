import re
from datetime import datetime
from typing import Any, Mapping, Optional


def _get(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def format_address_lines(address: Any) -> tuple:
    """Two display lines: street and suburb, then city, province and postal code."""
    street = " ".join(part for part in (_get(address, "street_number"), _get(address, "street_name")) if part)
    first = ", ".join(part for part in (street, _get(address, "suburb")) if part)
    locality = ", ".join(part for part in (_get(address, "city"), _get(address, "province")) if part)
    second = " ".join(part for part in (locality, _get(address, "postal_code")) if part)
    return first, second


def format_address(address: Any) -> str:
    return ", ".join(line for line in format_address_lines(address) if line)


def format_gps(coordinates: Any, precision: int = 6) -> str:
    latitude = _get(coordinates, "latitude")
    longitude = _get(coordinates, "longitude")
    if latitude is None or longitude is None:
        return "GPS unavailable"
    text = f"{latitude:.{precision}f}, {longitude:.{precision}f}"
    accuracy = _get(coordinates, "accuracy")
    if accuracy:
        text += f" (±{accuracy:g}m)"
    return text


def format_duration(seconds: Optional[int]) -> str:
    if seconds is None:
        return ""
    seconds = int(seconds)
    return f"{seconds // 60}:{seconds % 60:02d}"


def format_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def format_datetime(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


def safe_filename(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", name or "")

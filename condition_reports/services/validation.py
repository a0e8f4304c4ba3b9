from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from ..constants import (
    COMMENT_OPTIONAL_CONDITIONS,
    GPS_ACCURACY_THRESHOLDS,
    PHOTO_CONTENT_TYPES,
    PHOTO_MAX_FILE_SIZE,
    PHOTO_MAX_PER_ITEM,
    SA_PROVINCES,
    VIDEO_CONTENT_TYPES,
    VIDEO_MAX_DURATION_SECONDS,
    VIDEO_MAX_FILE_SIZE,
    ConditionState,
)

POSTAL_CODE_PATTERN = re.compile(r"^\d{4}$")


@dataclass
class ValidationResult:
    valid: bool
    issues: List[str] = field(default_factory=list)


@dataclass
class CompletenessResult:
    is_complete: bool
    issues: List[str] = field(default_factory=list)


@dataclass
class GpsAccuracy:
    level: str
    is_accurate: bool
    message: str


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _condition(value: Union[ConditionState, str, None]) -> Optional[ConditionState]:
    if value is None:
        return None
    try:
        return ConditionState(value)
    except ValueError:
        return None


def requires_comment(condition: Union[ConditionState, str]) -> bool:
    resolved = _condition(condition)
    return resolved not in COMMENT_OPTIONAL_CONDITIONS


def validate_item(item: Any) -> ValidationResult:
    """Check one inspection item (ORM row, schema or mapping) against the comment rule."""
    issues: List[str] = []
    raw_condition = _field(item, "condition")
    condition = _condition(raw_condition)
    if condition is None:
        issues.append(f"Unknown condition: {raw_condition}")
        return ValidationResult(valid=False, issues=issues)

    notes = _field(item, "notes") or ""
    if requires_comment(condition) and not notes.strip():
        issues.append(f"Comment required for {condition.value} condition")

    photos = _field(item, "photos") or []
    if len(photos) > PHOTO_MAX_PER_ITEM:
        issues.append(f"Maximum {PHOTO_MAX_PER_ITEM} photos per item")

    return ValidationResult(valid=not issues, issues=issues)


def validate_report_completeness(report: Any) -> CompletenessResult:
    rooms = list(_field(report, "rooms") or [])
    issues: List[str] = []

    if not rooms:
        issues.append("At least one room is required")

    for room_index, room in enumerate(rooms, start=1):
        name = (_field(room, "name") or "").strip()
        if not name:
            issues.append(f"Room {room_index}: Name is required")
        label = name or f"Room {room_index}"

        items = list(_field(room, "items") or [])
        if not items:
            issues.append(f"{label}: No inspection items")
            continue

        for item_index, item in enumerate(items, start=1):
            for issue in validate_item(item).issues:
                issues.append(f"{label} - Item {item_index}: {issue}")

    return CompletenessResult(is_complete=not issues, issues=issues)


def validate_property_address(address: Any) -> List[str]:
    issues: List[str] = []
    for name, label in (("street_name", "Street name"), ("suburb", "Suburb"), ("city", "City")):
        if not (_field(address, name) or "").strip():
            issues.append(f"{name}: {label} is required")

    province = _field(address, "province")
    if province not in SA_PROVINCES:
        issues.append(f"province: Province must be one of {', '.join(SA_PROVINCES)}")

    postal_code = _field(address, "postal_code") or ""
    if not POSTAL_CODE_PATTERN.match(postal_code):
        issues.append("postal_code: Postal code must be 4 digits")
    return issues


def classify_gps_accuracy(coordinates: Any) -> GpsAccuracy:
    accuracy = _field(coordinates, "accuracy") if coordinates is not None else None
    if not accuracy:
        return GpsAccuracy("unknown", False, "GPS accuracy not available")
    if accuracy <= GPS_ACCURACY_THRESHOLDS["excellent"]:
        return GpsAccuracy("excellent", True, f"Excellent GPS accuracy (±{accuracy:g}m)")
    if accuracy <= GPS_ACCURACY_THRESHOLDS["good"]:
        return GpsAccuracy("good", True, f"Good GPS accuracy (±{accuracy:g}m)")
    if accuracy <= GPS_ACCURACY_THRESHOLDS["fair"]:
        return GpsAccuracy("fair", False, f"Fair GPS accuracy (±{accuracy:g}m) - consider retrying")
    return GpsAccuracy("poor", False, f"Poor GPS accuracy (±{accuracy:g}m) - retry required")


def validate_room_video(duration: Optional[int], size: Optional[int], content_type: Optional[str] = None) -> List[str]:
    issues: List[str] = []
    if duration is not None and duration > VIDEO_MAX_DURATION_SECONDS:
        issues.append(f"Video must be {VIDEO_MAX_DURATION_SECONDS} seconds or shorter")
    if size is not None and size > VIDEO_MAX_FILE_SIZE:
        issues.append("Video file size must be less than 50MB")
    if content_type is not None and content_type not in VIDEO_CONTENT_TYPES:
        issues.append("Video must be WebM, MP4 or QuickTime format")
    return issues


def validate_photo_upload(content_type: Optional[str], size: int, existing_count: int = 0) -> List[str]:
    issues: List[str] = []
    if content_type not in PHOTO_CONTENT_TYPES:
        issues.append("File must be JPEG, PNG, or WebP format")
    if size > PHOTO_MAX_FILE_SIZE:
        issues.append("File size must be less than 5MB")
    if existing_count >= PHOTO_MAX_PER_ITEM:
        issues.append(f"Maximum {PHOTO_MAX_PER_ITEM} photos per item")
    return issues

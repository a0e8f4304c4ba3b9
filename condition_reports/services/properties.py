from __future__ import annotations

import logging
from typing import List, Optional

from ..constants import GPS_MAX_ACCEPTABLE_ACCURACY, PROPERTY_LIST_LIMIT
from ..core.errors import NotAuthenticated, NotFound, ValidationError
from ..models.models import Property, new_id, utcnow
from ..repositories import Repositories
from ..schemas.schemas import GPSCoordinates, PropertyCreate, PropertyUpdate
from .activity import log_activity
from .validation import classify_gps_accuracy, validate_property_address

logger = logging.getLogger(__name__)


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise NotAuthenticated()
    return user_id


def _check_gps(coordinates: Optional[GPSCoordinates]) -> GPSCoordinates:
    if coordinates is None:
        raise ValidationError("GPS location must be captured before creating a property")
    if coordinates.accuracy is not None and coordinates.accuracy > GPS_MAX_ACCEPTABLE_ACCURACY:
        raise ValidationError(
            f"GPS accuracy is too poor (±{coordinates.accuracy:.0f}m). "
            f"Retry the capture with precise location enabled; accuracy must be better than ±{GPS_MAX_ACCEPTABLE_ACCURACY}m."
        )
    return coordinates


def _apply_gps(prop: Property, coordinates: GPSCoordinates) -> None:
    prop.latitude = coordinates.latitude
    prop.longitude = coordinates.longitude
    prop.gps_accuracy = coordinates.accuracy
    prop.gps_timestamp = coordinates.timestamp


class PropertyService:
    def __init__(self, repos: Repositories) -> None:
        self.repos = repos

    def create_property(self, user_id: Optional[str], payload: PropertyCreate) -> Property:
        owner_id = _require_user(user_id)
        coordinates = _check_gps(payload.gps_coordinates)
        issues = validate_property_address(payload.address)
        if issues:
            raise ValidationError(issues=issues)

        now = utcnow()
        address = payload.address
        prop = Property(
            id=new_id(),
            user_id=owner_id,
            name=payload.name.strip(),
            property_type=payload.property_type.value,
            unit_number=payload.unit_number or None,
            complex_name=payload.complex_name or None,
            estate_name=payload.estate_name or None,
            street_number=address.street_number or None,
            street_name=address.street_name,
            suburb=address.suburb,
            city=address.city,
            province=address.province,
            postal_code=address.postal_code,
            user_role=payload.user_role.value,
            description=payload.description,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        _apply_gps(prop, coordinates)
        prop = self.repos.properties.add(prop)

        accuracy = classify_gps_accuracy(coordinates)
        logger.info(
            "Property created",
            extra={"property_id": prop.id, "user_id": owner_id, "gps_accuracy_level": accuracy.level},
        )
        log_activity(
            self.repos,
            "property_created",
            owner_id,
            {
                "property_id": prop.id,
                "name": prop.name,
                "property_type": prop.property_type,
                "gps_accuracy": coordinates.accuracy,
            },
        )
        return prop

    def list_properties(self, user_id: Optional[str]) -> List[Property]:
        owner_id = _require_user(user_id)
        return self.repos.properties.list_for_user(owner_id, limit=PROPERTY_LIST_LIMIT)

    def get_property(self, user_id: Optional[str], property_id: str) -> Property:
        owner_id = _require_user(user_id)
        prop = self.repos.properties.get(property_id)
        if prop is None or prop.user_id != owner_id:
            raise NotFound("Property not found")
        return prop

    def update_property(self, user_id: Optional[str], property_id: str, payload: PropertyUpdate) -> Property:
        prop = self.get_property(user_id, property_id)

        # A rejected update must leave prop untouched.
        address_changes = payload.address.model_dump(exclude_unset=True) if payload.address is not None else {}
        if address_changes:
            issues = validate_property_address({**prop.address, **address_changes})
            if issues:
                raise ValidationError(issues=issues)
        coordinates = _check_gps(payload.gps_coordinates) if payload.gps_coordinates is not None else None

        changes = payload.model_dump(exclude_unset=True, exclude={"address", "gps_coordinates"})
        for field, value in changes.items():
            if value is None and field in {"name", "property_type", "user_role"}:
                continue
            setattr(prop, field, value.value if hasattr(value, "value") else value)
        for field, value in address_changes.items():
            setattr(prop, field, value)
        if coordinates is not None:
            _apply_gps(prop, coordinates)

        prop.updated_at = utcnow()
        return self.repos.properties.save(prop)

    def deactivate_property(self, user_id: Optional[str], property_id: str) -> Property:
        prop = self.get_property(user_id, property_id)
        prop.is_active = False
        prop.updated_at = utcnow()
        prop = self.repos.properties.save(prop)
        logger.info("Property deactivated", extra={"property_id": prop.id, "user_id": prop.user_id})
        return prop

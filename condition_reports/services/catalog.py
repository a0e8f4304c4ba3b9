"""Static inspection checklist per room type.

Items are always presented in catalog order for their room type so rendered
reports are deterministic regardless of the order in which items were recorded.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, TypeVar, Union

from ..constants import RoomType


@dataclass(frozen=True)
class InspectionCategory:
    id: str
    name: str
    description: Optional[str] = None


def _cats(*rows: Tuple[str, str, str]) -> Tuple[InspectionCategory, ...]:
    return tuple(InspectionCategory(*row) for row in rows)


DEFAULT_INSPECTION_CATEGORIES: Dict[RoomType, Tuple[InspectionCategory, ...]] = {
    RoomType.STANDARD: _cats(
        ("walls", "Walls", "Wall condition, paint, cracks"),
        ("windows", "Windows", "Window frames, glass, locks"),
        ("floors", "Carpets/Floors", "Floor covering condition"),
        ("doors", "Doors", "Door condition, handles, locks"),
        ("ceiling", "Ceiling", "Ceiling condition, paint, cracks"),
        ("lighting", "Light Fittings", "Light switches and fittings"),
        ("power", "Power Points", "Electrical outlets condition"),
    ),
    RoomType.BATHROOM: _cats(
        ("walls", "Walls", "Wall tiles, paint, waterproofing"),
        ("floors", "Floors", "Floor tiles, waterproofing"),
        ("basin", "Basin", "Hand basin condition"),
        ("toilet", "Toilet", "Toilet condition and function"),
        ("shower", "Shower/Bath", "Shower or bath condition"),
        ("taps", "Taps/Plumbing", "Water pressure, leaks"),
        ("ventilation", "Ventilation", "Exhaust fan, windows"),
        ("lighting", "Light Fittings", "Bathroom lighting"),
    ),
    RoomType.KITCHEN: _cats(
        ("walls", "Walls", "Wall tiles, backsplash, paint"),
        ("windows", "Windows", "Window frames, glass, locks"),
        ("floors", "Floors", "Floor covering condition"),
        ("cabinets", "Cabinets", "Kitchen cabinets condition"),
        ("counters", "Countertops", "Counter surface condition"),
        ("sink", "Sink", "Kitchen sink condition"),
        ("appliances", "Appliances", "Built-in appliances"),
        ("plumbing", "Plumbing", "Water pressure, leaks"),
        ("lighting", "Light Fittings", "Kitchen lighting"),
        ("power", "Electrical Points", "Power outlets, switches condition"),
    ),
    RoomType.PATIO: _cats(
        ("surface", "Surface", "Patio surface condition"),
        ("railings", "Railings", "Safety railings condition"),
        ("roofing", "Roofing/Cover", "Overhead covering"),
        ("drainage", "Drainage", "Water drainage systems"),
        ("lighting", "Lighting", "Outdoor lighting fixtures"),
    ),
    RoomType.OUTBUILDING: _cats(
        ("structure", "Structure", "Building structural integrity"),
        ("roofing", "Roofing", "Roof condition, leaks"),
        ("walls", "Walls", "External and internal walls"),
        ("doors", "Doors/Windows", "Access points condition"),
        ("flooring", "Flooring", "Floor surface condition"),
        ("electrical", "Electrical", "Power points, lighting, wiring"),
        ("other", "Other", "Any additional items or features"),
    ),
    RoomType.EXTERIOR: _cats(
        ("roof", "Roof", "Main roof condition"),
        ("gutters", "Gutters", "Gutter system condition"),
        ("walls", "External Walls", "Outside wall condition"),
        ("garden", "Garden/Lawn", "Landscaping condition"),
        ("driveway", "Driveway", "Driveway surface condition"),
        ("fencing", "Fencing", "Boundary fencing condition"),
        ("security", "Security Features", "Gates, alarms, etc."),
    ),
    RoomType.SPECIAL_FEATURES: _cats(
        ("solar", "Solar Power System", "Solar panels, inverters, batteries"),
        ("generator", "Backup Power", "Generator, UPS systems, changeover switches"),
        ("water", "Water Systems", "Borehole, JoJo tanks, pumps, filtration"),
        ("irrigation", "Irrigation System", "Garden sprinklers, drip lines, controllers"),
        ("pool", "Pool & Equipment", "Pool condition, pump, filter, heating"),
        ("security_systems", "Security Systems", "Alarms, cameras, electric fence, beams"),
        ("aircon", "Air Conditioning", "Central or split units, ducting"),
        ("gas", "Gas Installations", "Gas stove connections, gas geyser, bottles"),
        ("smart_home", "Smart Home Features", "Automation, smart devices, connectivity"),
        ("other_special", "Other Special Features", "Any additional unique features"),
    ),
}

T = TypeVar("T")


def _room_type(room_type: Union[RoomType, str]) -> Optional[RoomType]:
    try:
        return RoomType(room_type)
    except ValueError:
        return None


def get_categories(room_type: Union[RoomType, str]) -> Tuple[InspectionCategory, ...]:
    resolved = _room_type(room_type)
    if resolved is None:
        return ()
    return DEFAULT_INSPECTION_CATEGORIES[resolved]


def get_category(room_type: Union[RoomType, str], category_id: str) -> Optional[InspectionCategory]:
    return next((c for c in get_categories(room_type) if c.id == category_id), None)


def category_index(room_type: Union[RoomType, str], category_id: str) -> Optional[int]:
    for index, category in enumerate(get_categories(room_type)):
        if category.id == category_id:
            return index
    return None


def sort_items(room_type: Union[RoomType, str], items: Iterable[T]) -> List[T]:
    """Return ``items`` in catalog order; unknown categories keep their relative order at the end."""
    categories = get_categories(room_type)
    order = {category.id: index for index, category in enumerate(categories)}
    fallback = len(order)
    return sorted(items, key=lambda item: order.get(item.category_id, fallback))

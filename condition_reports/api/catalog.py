from typing import List

from fastapi import APIRouter, HTTPException

from ..constants import CONDITION_COLORS, CONDITION_LABELS, ROOM_TYPE_LABELS, ConditionState, RoomType
from ..schemas.schemas import (
    ConditionRead,
    InspectionCategoryRead,
    InspectionItemInput,
    RoomTypeRead,
    ValidationResultRead,
)
from ..services import catalog
from ..services.validation import requires_comment, validate_item

router = APIRouter()


@router.get("/catalog/room-types", response_model=List[RoomTypeRead])
def list_room_types() -> List[RoomTypeRead]:
    return [RoomTypeRead(value=room_type, label=ROOM_TYPE_LABELS[room_type]) for room_type in RoomType]


@router.get("/catalog/rooms/{room_type}", response_model=List[InspectionCategoryRead])
def list_categories(room_type: str) -> List[catalog.InspectionCategory]:
    categories = catalog.get_categories(room_type)
    if not categories:
        raise HTTPException(status_code=404, detail=f"Unknown room type '{room_type}'")
    return list(categories)


@router.get("/catalog/conditions", response_model=List[ConditionRead])
def list_conditions() -> List[ConditionRead]:
    return [
        ConditionRead(
            value=condition,
            label=CONDITION_LABELS[condition],
            color=CONDITION_COLORS[condition],
            requires_comment=requires_comment(condition),
        )
        for condition in ConditionState
    ]


@router.post("/validation/item", response_model=ValidationResultRead)
def validate_inspection_item(payload: InspectionItemInput) -> ValidationResultRead:
    result = validate_item(payload)
    return ValidationResultRead(valid=result.valid, issues=result.issues)

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..constants import ConditionState, PaymentStatus, PropertyType, ReportStatus, RoomType, UserRole


class UserCreate(BaseModel):
    email: EmailStr
    full_name: Optional[str] = None
    password: str = Field(min_length=8)
    role: UserRole = UserRole.TENANT


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: EmailStr
    full_name: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: datetime


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenRefreshRequest(BaseModel):
    refresh_token: str


class GPSCoordinates(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: Optional[float] = Field(default=None, gt=0)
    timestamp: datetime


class PropertyAddress(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    street_number: Optional[str] = None
    street_name: str
    suburb: str
    city: str
    province: str
    postal_code: str


class PropertyAddressUpdate(BaseModel):
    street_number: Optional[str] = None
    street_name: Optional[str] = None
    suburb: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None


class PropertyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    property_type: PropertyType = PropertyType.HOUSE
    unit_number: Optional[str] = None
    complex_name: Optional[str] = None
    estate_name: Optional[str] = None
    address: PropertyAddress
    # Optional here so a missing fix surfaces as a domain error rather than a schema error.
    gps_coordinates: Optional[GPSCoordinates] = None
    user_role: UserRole = UserRole.TENANT
    description: Optional[str] = Field(default=None, max_length=500)


class PropertyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    property_type: Optional[PropertyType] = None
    unit_number: Optional[str] = None
    complex_name: Optional[str] = None
    estate_name: Optional[str] = None
    address: Optional[PropertyAddressUpdate] = None
    gps_coordinates: Optional[GPSCoordinates] = None
    user_role: Optional[UserRole] = None
    description: Optional[str] = Field(default=None, max_length=500)


class PropertyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    name: str
    property_type: str = PropertyType.HOUSE.value
    unit_number: Optional[str] = None
    complex_name: Optional[str] = None
    estate_name: Optional[str] = None
    address: PropertyAddress
    gps_coordinates: GPSCoordinates
    user_role: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InspectionItemInput(BaseModel):
    category_id: str = Field(min_length=1)
    condition: ConditionState
    notes: Optional[str] = Field(default=None, max_length=500)
    photos: List[str] = Field(default_factory=list)


class InspectionItemUpsert(BaseModel):
    condition: ConditionState
    notes: Optional[str] = Field(default=None, max_length=500)
    photos: List[str] = Field(default_factory=list)


class InspectionItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    category_id: str
    condition: ConditionState
    notes: Optional[str] = None
    photos: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("photos", mode="before")
    @classmethod
    def _photos_default(cls, value: Any) -> Any:
        return value or []


class RoomCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: RoomType


class RoomUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class RoomVideoAttach(BaseModel):
    video_url: str
    video_duration: int = Field(ge=0)
    video_size: int = Field(ge=0)


class RoomRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    name: str
    # Plain string so documents posted to the render boundary may carry legacy room types.
    type: str
    position: int = 0
    video_url: Optional[str] = None
    video_duration: Optional[int] = None
    video_size: Optional[int] = None
    items: List[InspectionItemRead] = []


class RoomSaveRequest(BaseModel):
    items: List[InspectionItemInput]


class RoomSaveSummaryRead(BaseModel):
    saved: int
    failed: int
    errors: Dict[str, str] = {}


class ReportCreate(BaseModel):
    property_id: str
    title: str = Field(min_length=1, max_length=100)


class ReportUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=100)


class ReportStatusUpdate(BaseModel):
    status: ReportStatus


class ReportPaymentUpdate(BaseModel):
    payment_reference: str = Field(min_length=1)


class ReportRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    property_id: Optional[str] = None
    title: str
    status: str = ReportStatus.DRAFT.value
    payment_status: str = PaymentStatus.UNPAID.value
    payment_reference: Optional[str] = None
    pdf_url: Optional[str] = None
    completed_at: Optional[datetime] = None
    finalized_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    rooms: List[RoomRead] = []


class PublicReportRead(BaseModel):
    report: ReportRead
    property: PropertyRead


class ValidationResultRead(BaseModel):
    valid: bool
    issues: List[str]


class CompletenessRead(BaseModel):
    is_complete: bool
    issues: List[str]


class InspectionCategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None


class ConditionRead(BaseModel):
    value: ConditionState
    label: str
    color: str
    requires_comment: bool


class RoomTypeRead(BaseModel):
    value: RoomType
    label: str


class MediaUploadResponse(BaseModel):
    url: str
    path: str


class PdfRenderOptions(BaseModel):
    creator_name: Optional[str] = None
    creator_role: Optional[str] = None


class ActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[str] = None
    activity_type: str
    details: Dict[str, Any] = {}
    created_at: datetime

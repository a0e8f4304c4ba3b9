from enum import Enum


class ConditionState(str, Enum):
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    URGENT_REPAIR = "Urgent Repair"
    NOT_APPLICABLE = "N/A"


class RoomType(str, Enum):
    STANDARD = "Standard"
    BATHROOM = "Bathroom"
    KITCHEN = "Kitchen"
    PATIO = "Patio"
    OUTBUILDING = "Outbuilding"
    EXTERIOR = "Exterior"
    SPECIAL_FEATURES = "SpecialFeatures"


class PropertyType(str, Enum):
    HOUSE = "House"
    TOWNHOUSE = "Townhouse"
    FLAT = "Flat"
    CLUSTER = "Cluster"
    COTTAGE = "Cottage"
    GRANNY_FLAT = "Granny Flat"
    OTHER = "Other"


class UserRole(str, Enum):
    TENANT = "tenant"
    LANDLORD = "landlord"
    BUYER = "buyer"
    SELLER = "seller"
    AGENT = "agent"
    CONTRACTOR = "contractor"


class ReportStatus(str, Enum):
    DRAFT = "draft"
    COMPLETED = "completed"
    FINALIZED = "finalized"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


# Forward-only lifecycle; finalized is terminal.
REPORT_TRANSITIONS = {
    ReportStatus.DRAFT: {ReportStatus.COMPLETED},
    ReportStatus.COMPLETED: {ReportStatus.FINALIZED},
    ReportStatus.FINALIZED: set(),
}

# Single colour table shared by the API (interactive display) and the PDF renderer.
CONDITION_COLORS = {
    ConditionState.GOOD: "#277020",
    ConditionState.FAIR: "#f5a409",
    ConditionState.POOR: "#c62121",
    ConditionState.URGENT_REPAIR: "#c62121",
    ConditionState.NOT_APPLICABLE: "#777777",
}

CONDITION_LABELS = {
    ConditionState.GOOD: "Good",
    ConditionState.FAIR: "Fair",
    ConditionState.POOR: "Poor",
    ConditionState.URGENT_REPAIR: "Urgent Repair",
    ConditionState.NOT_APPLICABLE: "Not Applicable",
}

# Conditions that do not need an explanatory comment.
COMMENT_OPTIONAL_CONDITIONS = {ConditionState.GOOD, ConditionState.NOT_APPLICABLE}

USER_ROLE_LABELS = {
    UserRole.TENANT: "Tenant",
    UserRole.LANDLORD: "Landlord",
    UserRole.BUYER: "Buyer",
    UserRole.SELLER: "Seller",
    UserRole.AGENT: "Real Estate Agent",
    UserRole.CONTRACTOR: "Contractor",
}

ROOM_TYPE_LABELS = {
    RoomType.STANDARD: "Standard Room",
    RoomType.BATHROOM: "Bathroom",
    RoomType.KITCHEN: "Kitchen",
    RoomType.PATIO: "Patio/Balcony",
    RoomType.OUTBUILDING: "Outbuilding",
    RoomType.EXTERIOR: "Exterior Areas",
    RoomType.SPECIAL_FEATURES: "Special Features",
}

SA_PROVINCES = [
    "Eastern Cape",
    "Free State",
    "Gauteng",
    "KwaZulu-Natal",
    "Limpopo",
    "Mpumalanga",
    "Northern Cape",
    "North West",
    "Western Cape",
]

GPS_ACCURACY_THRESHOLDS = {
    "excellent": 5,
    "good": 10,
    "fair": 50,
}

PHOTO_MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
PHOTO_MAX_PER_ITEM = 10
PHOTO_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}

VIDEO_MAX_DURATION_SECONDS = 60
VIDEO_MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
VIDEO_CONTENT_TYPES = {"video/webm", "video/mp4", "video/quicktime"}

PROPERTY_LIST_LIMIT = 50

# Fixes coarser than this are rejected when a property is registered (network location, not GPS).
GPS_MAX_ACCEPTABLE_ACCURACY = 200

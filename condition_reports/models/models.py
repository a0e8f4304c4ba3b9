import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship as orm_relationship

from ..config import Base


def utcnow():
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="tenant")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    properties = orm_relationship("Property", back_populates="user")
    reports = orm_relationship("Report", back_populates="user")

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


class Property(Base):
    __tablename__ = "properties"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    property_type = Column(String, nullable=False, default="House")
    unit_number = Column(String, nullable=True)
    complex_name = Column(String, nullable=True)
    estate_name = Column(String, nullable=True)
    street_number = Column(String, nullable=True)
    street_name = Column(String, nullable=False)
    suburb = Column(String, nullable=False)
    city = Column(String, nullable=False)
    province = Column(String, nullable=False)
    postal_code = Column(String(4), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    gps_accuracy = Column(Float, nullable=True)
    gps_timestamp = Column(DateTime, nullable=False)
    user_role = Column(String, nullable=False, default="tenant")
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = orm_relationship("User", back_populates="properties")
    reports = orm_relationship("Report", back_populates="property")

    @property
    def address(self) -> dict:
        return {
            "street_number": self.street_number,
            "street_name": self.street_name,
            "suburb": self.suburb,
            "city": self.city,
            "province": self.province,
            "postal_code": self.postal_code,
        }

    @property
    def gps_coordinates(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.gps_accuracy,
            "timestamp": self.gps_timestamp,
        }


class Report(Base):
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    property_id = Column(String(36), ForeignKey("properties.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    status = Column(String, nullable=False, default="draft", index=True)
    payment_status = Column(String, nullable=False, default="unpaid")
    payment_reference = Column(String, nullable=True)
    pdf_url = Column(String, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    finalized_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = orm_relationship("User", back_populates="reports")
    property = orm_relationship("Property", back_populates="reports")
    rooms = orm_relationship(
        "Room",
        back_populates="report",
        order_by="Room.position",
        cascade="all, delete-orphan",
    )


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=new_id)
    report_id = Column(String(36), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    video_url = Column(String, nullable=True)
    video_duration = Column(Integer, nullable=True)  # seconds
    video_size = Column(Integer, nullable=True)  # bytes
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    report = orm_relationship("Report", back_populates="rooms")
    items = orm_relationship(
        "InspectionItem",
        back_populates="room",
        order_by="InspectionItem.created_at",
        cascade="all, delete-orphan",
    )


class InspectionItem(Base):
    __tablename__ = "inspection_items"
    __table_args__ = (UniqueConstraint("room_id", "category_id", name="uq_inspection_items_room_category"),)

    id = Column(String(36), primary_key=True, default=new_id)
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(String, nullable=False)
    condition = Column(String, nullable=False)
    notes = Column(Text, nullable=True)
    photos = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    room = orm_relationship("Room", back_populates="items")


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), nullable=True, index=True)
    activity_type = Column(String, nullable=False, index=True)
    details = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)

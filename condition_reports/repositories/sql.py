from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core.errors import TransientIO
from ..models.models import ActivityLog, InspectionItem, Property, Report, Room, User
from .base import (
    ActivityRepository,
    PropertyRepository,
    ReportRepository,
    Repositories,
    UserRepository,
)

logger = logging.getLogger(__name__)


class _SessionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Database commit failed; changes rolled back.")
            raise TransientIO() from exc


class SqlUserRepository(_SessionRepository, UserRepository):
    def add(self, user: User) -> User:
        self.session.add(user)
        self._commit()
        self.session.refresh(user)
        return user

    def get(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return (
            self.session.query(User)
            .filter(func.lower(User.email) == email.lower())
            .first()
        )


class SqlPropertyRepository(_SessionRepository, PropertyRepository):
    def add(self, prop: Property) -> Property:
        self.session.add(prop)
        self._commit()
        self.session.refresh(prop)
        return prop

    def get(self, property_id: str) -> Optional[Property]:
        return self.session.get(Property, property_id)

    def list_for_user(self, user_id: str, include_inactive: bool = False, limit: Optional[int] = None) -> List[Property]:
        query = self.session.query(Property).filter(Property.user_id == user_id)
        if not include_inactive:
            query = query.filter(Property.is_active.is_(True))
        query = query.order_by(Property.updated_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def save(self, prop: Property) -> Property:
        self.session.add(prop)
        self._commit()
        self.session.refresh(prop)
        return prop


class SqlReportRepository(_SessionRepository, ReportRepository):
    def _hydrated(self):
        return self.session.query(Report).options(
            selectinload(Report.rooms).selectinload(Room.items),
        )

    def add(self, report: Report) -> Report:
        self.session.add(report)
        self._commit()
        return self.get(report.id)

    def get(self, report_id: str) -> Optional[Report]:
        return self._hydrated().filter(Report.id == report_id).first()

    def list_for_user(self, user_id: str, property_id: Optional[str] = None) -> List[Report]:
        query = self._hydrated().filter(Report.user_id == user_id)
        if property_id:
            query = query.filter(Report.property_id == property_id)
        return query.order_by(Report.updated_at.desc()).all()

    def save(self, report: Report) -> Report:
        self.session.add(report)
        self._commit()
        return self.get(report.id)

    def get_room(self, room_id: str) -> Optional[Room]:
        return (
            self.session.query(Room)
            .options(selectinload(Room.items), selectinload(Room.report))
            .filter(Room.id == room_id)
            .first()
        )

    def add_room(self, report: Report, room: Room) -> Room:
        report.rooms.append(room)
        self.session.add(room)
        self._commit()
        self.session.refresh(room)
        return room

    def save_room(self, room: Room) -> Room:
        self.session.add(room)
        self._commit()
        self.session.refresh(room)
        return room

    def delete_room(self, room: Room) -> None:
        self.session.delete(room)
        self._commit()

    def get_item(self, item_id: str) -> Optional[InspectionItem]:
        return (
            self.session.query(InspectionItem)
            .options(selectinload(InspectionItem.room).selectinload(Room.report))
            .filter(InspectionItem.id == item_id)
            .first()
        )

    def find_item(self, room_id: str, category_id: str) -> Optional[InspectionItem]:
        return (
            self.session.query(InspectionItem)
            .filter(InspectionItem.room_id == room_id, InspectionItem.category_id == category_id)
            .first()
        )

    def add_item(self, room: Room, item: InspectionItem) -> InspectionItem:
        room.items.append(item)
        self.session.add(item)
        self._commit()
        self.session.refresh(item)
        return item

    def save_item(self, item: InspectionItem) -> InspectionItem:
        self.session.add(item)
        self._commit()
        self.session.refresh(item)
        return item

    def delete_item(self, item: InspectionItem) -> None:
        self.session.delete(item)
        self._commit()

    def delete_report_cascade(self, report: Report) -> Tuple[int, int]:
        rooms_deleted = 0
        items_deleted = 0
        # Everything below is flushed in a single transaction by _commit.
        for room in list(report.rooms):
            for item in list(room.items):
                self.session.delete(item)
                items_deleted += 1
            self.session.delete(room)
            rooms_deleted += 1
        self.session.delete(report)
        self._commit()
        return rooms_deleted, items_deleted


class SqlActivityRepository(_SessionRepository, ActivityRepository):
    def add(self, entry: ActivityLog) -> ActivityLog:
        self.session.add(entry)
        self._commit()
        return entry

    def recent(self, limit: int = 50, user_id: Optional[str] = None) -> List[ActivityLog]:
        query = self.session.query(ActivityLog)
        if user_id is not None:
            query = query.filter(ActivityLog.user_id == user_id)
        return (
            query
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .limit(limit)
            .all()
        )

    def prune(self, keep: int) -> int:
        stale_ids = [
            row.id
            for row in self.session.query(ActivityLog.id)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .offset(keep)
            .all()
        ]
        if not stale_ids:
            return 0
        self.session.query(ActivityLog).filter(ActivityLog.id.in_(stale_ids)).delete(synchronize_session=False)
        self._commit()
        return len(stale_ids)


def sql_repositories(session: Session) -> Repositories:
    return Repositories(
        users=SqlUserRepository(session),
        properties=SqlPropertyRepository(session),
        reports=SqlReportRepository(session),
        activity=SqlActivityRepository(session),
    )

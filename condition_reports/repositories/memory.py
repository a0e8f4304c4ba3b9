"""In-process data source used for demos and tests.

Objects are plain (transient) ORM instances, so relationship collections such as
``report.rooms`` and ``room.items`` are maintained in memory without a session.
"""
from __future__ import annotations

import itertools
import threading
from typing import Dict, List, Optional, Tuple

from ..models.models import ActivityLog, InspectionItem, Property, Report, Room, User, new_id, utcnow
from .base import (
    ActivityRepository,
    PropertyRepository,
    ReportRepository,
    Repositories,
    UserRepository,
)


def _stamp(obj, touch: bool = False) -> None:
    if getattr(obj, "id", None) is None:
        obj.id = new_id()
    now = utcnow()
    if getattr(obj, "created_at", None) is None:
        obj.created_at = now
    if hasattr(obj, "updated_at") and (touch or obj.updated_at is None):
        obj.updated_at = now


class MemoryStore:
    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users: Dict[str, User] = {}
        self.properties: Dict[str, Property] = {}
        self.reports: Dict[str, Report] = {}
        self.rooms: Dict[str, Room] = {}
        self.items: Dict[str, InspectionItem] = {}
        self.activity: List[ActivityLog] = []
        self.activity_ids = itertools.count(1)

    def clear(self) -> None:
        with self.lock:
            self.users.clear()
            self.properties.clear()
            self.reports.clear()
            self.rooms.clear()
            self.items.clear()
            self.activity.clear()


class MemoryUserRepository(UserRepository):
    def __init__(self, store: MemoryStore) -> None:
        self.store = store

    def add(self, user: User) -> User:
        with self.store.lock:
            _stamp(user)
            if user.is_active is None:
                user.is_active = True
            self.store.users[user.id] = user
        return user

    def get(self, user_id: str) -> Optional[User]:
        return self.store.users.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        wanted = email.lower()
        return next((u for u in self.store.users.values() if u.email.lower() == wanted), None)


class MemoryPropertyRepository(PropertyRepository):
    def __init__(self, store: MemoryStore) -> None:
        self.store = store

    def add(self, prop: Property) -> Property:
        with self.store.lock:
            _stamp(prop)
            if prop.is_active is None:
                prop.is_active = True
            self.store.properties[prop.id] = prop
        return prop

    def get(self, property_id: str) -> Optional[Property]:
        return self.store.properties.get(property_id)

    def list_for_user(self, user_id: str, include_inactive: bool = False, limit: Optional[int] = None) -> List[Property]:
        rows = [
            p
            for p in self.store.properties.values()
            if p.user_id == user_id and (include_inactive or p.is_active)
        ]
        rows.sort(key=lambda p: p.updated_at, reverse=True)
        return rows[:limit] if limit else rows

    def save(self, prop: Property) -> Property:
        with self.store.lock:
            _stamp(prop, touch=True)
            self.store.properties[prop.id] = prop
        return prop


class MemoryReportRepository(ReportRepository):
    def __init__(self, store: MemoryStore) -> None:
        self.store = store

    def add(self, report: Report) -> Report:
        with self.store.lock:
            _stamp(report)
            self.store.reports[report.id] = report
        return report

    def get(self, report_id: str) -> Optional[Report]:
        return self.store.reports.get(report_id)

    def list_for_user(self, user_id: str, property_id: Optional[str] = None) -> List[Report]:
        rows = [
            r
            for r in self.store.reports.values()
            if r.user_id == user_id and (property_id is None or r.property_id == property_id)
        ]
        rows.sort(key=lambda r: r.updated_at, reverse=True)
        return rows

    def save(self, report: Report) -> Report:
        with self.store.lock:
            _stamp(report, touch=True)
            self.store.reports[report.id] = report
        return report

    def get_room(self, room_id: str) -> Optional[Room]:
        return self.store.rooms.get(room_id)

    def add_room(self, report: Report, room: Room) -> Room:
        with self.store.lock:
            _stamp(room)
            report.rooms.append(room)
            self.store.rooms[room.id] = room
        return room

    def save_room(self, room: Room) -> Room:
        with self.store.lock:
            _stamp(room, touch=True)
        return room

    def delete_room(self, room: Room) -> None:
        with self.store.lock:
            for item in list(room.items):
                self.store.items.pop(item.id, None)
            report = room.report
            if report is not None and room in report.rooms:
                report.rooms.remove(room)
            self.store.rooms.pop(room.id, None)

    def get_item(self, item_id: str) -> Optional[InspectionItem]:
        return self.store.items.get(item_id)

    def find_item(self, room_id: str, category_id: str) -> Optional[InspectionItem]:
        room = self.store.rooms.get(room_id)
        if room is None:
            return None
        return next((i for i in room.items if i.category_id == category_id), None)

    def add_item(self, room: Room, item: InspectionItem) -> InspectionItem:
        with self.store.lock:
            _stamp(item)
            if item.photos is None:
                item.photos = []
            room.items.append(item)
            self.store.items[item.id] = item
        return item

    def save_item(self, item: InspectionItem) -> InspectionItem:
        with self.store.lock:
            _stamp(item, touch=True)
        return item

    def delete_item(self, item: InspectionItem) -> None:
        with self.store.lock:
            room = item.room
            if room is not None and item in room.items:
                room.items.remove(item)
            self.store.items.pop(item.id, None)

    def delete_report_cascade(self, report: Report) -> Tuple[int, int]:
        with self.store.lock:
            rooms = list(report.rooms)
            items_deleted = 0
            for room in rooms:
                for item in room.items:
                    self.store.items.pop(item.id, None)
                    items_deleted += 1
                self.store.rooms.pop(room.id, None)
            self.store.reports.pop(report.id, None)
        return len(rooms), items_deleted


class MemoryActivityRepository(ActivityRepository):
    def __init__(self, store: MemoryStore) -> None:
        self.store = store

    def add(self, entry: ActivityLog) -> ActivityLog:
        with self.store.lock:
            entry.id = next(self.store.activity_ids)
            if entry.created_at is None:
                entry.created_at = utcnow()
            self.store.activity.append(entry)
        return entry

    def recent(self, limit: int = 50, user_id: Optional[str] = None) -> List[ActivityLog]:
        if not limit:
            return []
        with self.store.lock:
            entries = [entry for entry in self.store.activity if user_id is None or entry.user_id == user_id]
        return list(reversed(entries[-limit:]))

    def prune(self, keep: int) -> int:
        with self.store.lock:
            stale = max(len(self.store.activity) - keep, 0)
            if stale:
                del self.store.activity[:stale]
        return stale


def memory_repositories(store: MemoryStore) -> Repositories:
    return Repositories(
        users=MemoryUserRepository(store),
        properties=MemoryPropertyRepository(store),
        reports=MemoryReportRepository(store),
        activity=MemoryActivityRepository(store),
    )

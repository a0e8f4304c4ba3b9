from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..models.models import ActivityLog, InspectionItem, Property, Report, Room, User


class UserRepository(ABC):
    @abstractmethod
    def add(self, user: User) -> User: ...

    @abstractmethod
    def get(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]: ...


class PropertyRepository(ABC):
    @abstractmethod
    def add(self, prop: Property) -> Property: ...

    @abstractmethod
    def get(self, property_id: str) -> Optional[Property]: ...

    @abstractmethod
    def list_for_user(self, user_id: str, include_inactive: bool = False, limit: Optional[int] = None) -> List[Property]:
        """Most recently updated first."""

    @abstractmethod
    def save(self, prop: Property) -> Property: ...


class ReportRepository(ABC):
    """Reports with their rooms and inspection items.

    ``get`` and ``list_for_user`` return fully hydrated reports (rooms and items loaded).
    """

    @abstractmethod
    def add(self, report: Report) -> Report: ...

    @abstractmethod
    def get(self, report_id: str) -> Optional[Report]: ...

    @abstractmethod
    def list_for_user(self, user_id: str, property_id: Optional[str] = None) -> List[Report]: ...

    @abstractmethod
    def save(self, report: Report) -> Report: ...

    @abstractmethod
    def get_room(self, room_id: str) -> Optional[Room]: ...

    @abstractmethod
    def add_room(self, report: Report, room: Room) -> Room: ...

    @abstractmethod
    def save_room(self, room: Room) -> Room: ...

    @abstractmethod
    def delete_room(self, room: Room) -> None: ...

    @abstractmethod
    def get_item(self, item_id: str) -> Optional[InspectionItem]: ...

    @abstractmethod
    def find_item(self, room_id: str, category_id: str) -> Optional[InspectionItem]: ...

    @abstractmethod
    def add_item(self, room: Room, item: InspectionItem) -> InspectionItem: ...

    @abstractmethod
    def save_item(self, item: InspectionItem) -> InspectionItem: ...

    @abstractmethod
    def delete_item(self, item: InspectionItem) -> None: ...

    @abstractmethod
    def delete_report_cascade(self, report: Report) -> Tuple[int, int]:
        """Delete items, then rooms, then the report as one unit.

        Returns ``(rooms_deleted, items_deleted)``.
        """


class ActivityRepository(ABC):
    @abstractmethod
    def add(self, entry: ActivityLog) -> ActivityLog: ...

    @abstractmethod
    def recent(self, limit: int = 50, user_id: Optional[str] = None) -> List[ActivityLog]:
        """Newest first, optionally restricted to one user before the limit applies."""

    @abstractmethod
    def prune(self, keep: int) -> int:
        """Drop all but the newest ``keep`` entries; returns how many were removed."""


@dataclass
class Repositories:
    users: UserRepository
    properties: PropertyRepository
    reports: ReportRepository
    activity: ActivityRepository

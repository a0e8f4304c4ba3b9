"""Report lifecycle: reports, rooms, inspection items and the status state machine.

Status moves forward only (draft -> completed -> finalized). Once a report is
finalized its rooms and items are locked; every mutating call raises
``ReportLocked``. Payment is tracked separately from completion status.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..constants import REPORT_TRANSITIONS, ConditionState, PaymentStatus, ReportStatus, RoomType
from ..core.errors import (
    DomainError,
    Forbidden,
    InvalidTransition,
    NotAuthenticated,
    NotFound,
    ReportLocked,
    ValidationError,
)
from ..models.models import InspectionItem, Property, Report, Room, new_id, utcnow
from ..repositories import Repositories
from ..schemas.schemas import InspectionItemInput
from . import catalog
from .activity import log_activity
from .validation import CompletenessResult, validate_item, validate_report_completeness, validate_room_video

logger = logging.getLogger(__name__)


@dataclass
class RoomSaveSummary:
    saved: int = 0
    failed: int = 0
    errors: Dict[str, str] = field(default_factory=dict)


class ReportLifecycleManager:
    def __init__(self, repos: Repositories) -> None:
        self.repos = repos

    # --- lookups -------------------------------------------------------

    @staticmethod
    def _require_user(user_id: Optional[str]) -> str:
        if not user_id:
            raise NotAuthenticated()
        return user_id

    def _owned_report(self, user_id: Optional[str], report_id: str) -> Report:
        owner_id = self._require_user(user_id)
        report = self.repos.reports.get(report_id)
        if report is None or report.user_id != owner_id:
            raise NotFound("Report not found")
        return report

    @staticmethod
    def _ensure_mutable(report: Report) -> None:
        if report.status == ReportStatus.FINALIZED.value:
            raise ReportLocked()

    def _mutable_report(self, user_id: Optional[str], report_id: str) -> Report:
        report = self._owned_report(user_id, report_id)
        self._ensure_mutable(report)
        return report

    def _mutable_room(self, user_id: Optional[str], room_id: str) -> Room:
        owner_id = self._require_user(user_id)
        room = self.repos.reports.get_room(room_id)
        if room is None or room.report is None or room.report.user_id != owner_id:
            raise NotFound("Room not found")
        self._ensure_mutable(room.report)
        return room

    # --- reports -------------------------------------------------------

    def create_report(self, user_id: Optional[str], property_id: str, title: str) -> Report:
        owner_id = self._require_user(user_id)
        prop = self.repos.properties.get(property_id)
        if prop is None or prop.user_id != owner_id or not prop.is_active:
            raise NotFound("Property not found")
        title = (title or "").strip()
        if not title:
            raise ValidationError("Report title is required")

        now = utcnow()
        report = Report(
            id=new_id(),
            user_id=owner_id,
            property_id=prop.id,
            title=title,
            status=ReportStatus.DRAFT.value,
            payment_status=PaymentStatus.UNPAID.value,
            created_at=now,
            updated_at=now,
        )
        report = self.repos.reports.add(report)
        logger.info("Report created", extra={"report_id": report.id, "property_id": prop.id, "user_id": owner_id})
        log_activity(self.repos, "report_created", owner_id, {"report_id": report.id, "property_id": prop.id, "title": title})
        return report

    def list_reports(self, user_id: Optional[str], property_id: Optional[str] = None) -> List[Report]:
        owner_id = self._require_user(user_id)
        return self.repos.reports.list_for_user(owner_id, property_id=property_id)

    def get_report(self, user_id: Optional[str], report_id: str) -> Report:
        return self._owned_report(user_id, report_id)

    def get_editable_report(self, user_id: Optional[str], report_id: str) -> Report:
        return self._mutable_report(user_id, report_id)

    def get_public_report(self, report_id: str) -> Tuple[Report, Property]:
        report = self.repos.reports.get(report_id)
        if report is None:
            raise NotFound("Report not found")
        prop = self.repos.properties.get(report.property_id)
        if prop is None:
            raise NotFound("Property not found")
        return report, prop

    def get_completeness(self, user_id: Optional[str], report_id: str) -> CompletenessResult:
        return validate_report_completeness(self._owned_report(user_id, report_id))

    def update_report_title(self, user_id: Optional[str], report_id: str, title: str) -> Report:
        report = self._mutable_report(user_id, report_id)
        title = (title or "").strip()
        if not title:
            raise ValidationError("Report title is required")
        report.title = title
        report.updated_at = utcnow()
        return self.repos.reports.save(report)

    def update_report_status(self, user_id: Optional[str], report_id: str, status: Union[ReportStatus, str]) -> Report:
        report = self._owned_report(user_id, report_id)
        try:
            target = ReportStatus(status)
        except ValueError as exc:
            raise InvalidTransition(f"Unknown report status '{status}'") from exc

        current = ReportStatus(report.status)
        if current == ReportStatus.FINALIZED:
            raise ReportLocked()
        if target not in REPORT_TRANSITIONS[current]:
            raise InvalidTransition(f"Cannot change report status from {current.value} to {target.value}")

        now = utcnow()
        if target == ReportStatus.COMPLETED:
            completeness = validate_report_completeness(report)
            if not completeness.is_complete:
                raise ValidationError("Report is not complete", issues=completeness.issues)
            report.completed_at = now
        elif target == ReportStatus.FINALIZED:
            report.finalized_at = now

        report.status = target.value
        report.updated_at = now
        report = self.repos.reports.save(report)
        logger.info(
            "Report status changed",
            extra={"report_id": report.id, "from_status": current.value, "to_status": target.value},
        )
        log_activity(
            self.repos,
            "report_status_changed",
            report.user_id,
            {"report_id": report.id, "from": current.value, "to": target.value},
        )
        return report

    def complete_report(self, user_id: Optional[str], report_id: str) -> Report:
        return self.update_report_status(user_id, report_id, ReportStatus.COMPLETED)

    def finalize_report(self, user_id: Optional[str], report_id: str) -> Report:
        return self.update_report_status(user_id, report_id, ReportStatus.FINALIZED)

    def mark_paid(self, user_id: Optional[str], report_id: str, payment_reference: str) -> Report:
        report = self._owned_report(user_id, report_id)
        if report.status == ReportStatus.DRAFT.value:
            raise InvalidTransition("Only completed or finalized reports can be marked as paid")
        if report.payment_status == PaymentStatus.PAID.value:
            raise InvalidTransition("Report is already paid")
        reference = (payment_reference or "").strip()
        if not reference:
            raise ValidationError("Payment reference is required")
        report.payment_status = PaymentStatus.PAID.value
        report.payment_reference = reference
        report.updated_at = utcnow()
        report = self.repos.reports.save(report)
        log_activity(self.repos, "report_paid", report.user_id, {"report_id": report.id})
        return report

    def attach_pdf(self, user_id: Optional[str], report_id: str, pdf_url: str) -> Report:
        report = self._owned_report(user_id, report_id)
        report.pdf_url = pdf_url
        report.updated_at = utcnow()
        return self.repos.reports.save(report)

    def delete_report(self, user_id: Optional[str], report_id: str) -> Tuple[int, int]:
        owner_id = self._require_user(user_id)
        report = self.repos.reports.get(report_id)
        if report is None:
            raise NotFound("Report not found")
        if report.user_id != owner_id:
            raise Forbidden("You do not have permission to delete this report")
        if report.status == ReportStatus.FINALIZED.value:
            raise ReportLocked("Finalized reports cannot be deleted")

        report_id = report.id
        rooms_deleted, items_deleted = self.repos.reports.delete_report_cascade(report)
        logger.info(
            "Report deleted",
            extra={"report_id": report_id, "rooms_deleted": rooms_deleted, "items_deleted": items_deleted},
        )
        log_activity(
            self.repos,
            "report_deleted",
            owner_id,
            {"report_id": report_id, "rooms_deleted": rooms_deleted, "items_deleted": items_deleted},
        )
        return rooms_deleted, items_deleted

    # --- rooms ---------------------------------------------------------

    def add_room(self, user_id: Optional[str], report_id: str, name: str, room_type: Union[RoomType, str]) -> Room:
        report = self._mutable_report(user_id, report_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Room name is required")
        try:
            resolved_type = RoomType(room_type)
        except ValueError as exc:
            raise ValidationError(f"Unknown room type '{room_type}'") from exc

        now = utcnow()
        room = Room(
            id=new_id(),
            report_id=report.id,
            name=name,
            type=resolved_type.value,
            position=max((existing.position for existing in report.rooms), default=-1) + 1,
            created_at=now,
            updated_at=now,
        )
        return self.repos.reports.add_room(report, room)

    def rename_room(self, user_id: Optional[str], room_id: str, name: str) -> Room:
        room = self._mutable_room(user_id, room_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Room name is required")
        room.name = name
        room.updated_at = utcnow()
        return self.repos.reports.save_room(room)

    def delete_room(self, user_id: Optional[str], room_id: str) -> None:
        room = self._mutable_room(user_id, room_id)
        self.repos.reports.delete_room(room)

    def attach_room_video(
        self,
        user_id: Optional[str],
        room_id: str,
        video_url: str,
        duration: int,
        size: int,
    ) -> Room:
        room = self._mutable_room(user_id, room_id)
        issues = validate_room_video(duration, size)
        if issues:
            raise ValidationError(issues=issues)
        room.video_url = video_url
        room.video_duration = duration
        room.video_size = size
        room.updated_at = utcnow()
        return self.repos.reports.save_room(room)

    # --- inspection items ----------------------------------------------

    def record_inspection_item(
        self,
        user_id: Optional[str],
        room_id: str,
        category_id: str,
        condition: Union[ConditionState, str],
        notes: Optional[str] = None,
        photos: Optional[Iterable[str]] = None,
    ) -> InspectionItem:
        """Create or replace the item for ``(room, category)``."""
        room = self._mutable_room(user_id, room_id)
        if catalog.get_category(room.type, category_id) is None:
            raise ValidationError(f"Unknown inspection category '{category_id}' for {room.type} rooms")

        photo_list = list(photos or [])
        result = validate_item({"condition": condition, "notes": notes, "photos": photo_list})
        if not result.valid:
            raise ValidationError(issues=result.issues)

        condition_value = ConditionState(condition).value
        clean_notes = notes.strip() if notes and notes.strip() else None
        report = room.report
        first_item = not any(r.items for r in report.rooms)
        now = utcnow()

        item = self.repos.reports.find_item(room.id, category_id)
        if item is not None:
            item.condition = condition_value
            item.notes = clean_notes
            item.photos = photo_list
            item.updated_at = now
            item = self.repos.reports.save_item(item)
        else:
            item = InspectionItem(
                id=new_id(),
                room_id=room.id,
                category_id=category_id,
                condition=condition_value,
                notes=clean_notes,
                photos=photo_list,
                created_at=now,
                updated_at=now,
            )
            item = self.repos.reports.add_item(room, item)

        if first_item:
            log_activity(self.repos, "inspection_started", report.user_id, {"report_id": report.id, "room_id": room.id})
        return item

    def delete_inspection_item(self, user_id: Optional[str], item_id: str) -> None:
        owner_id = self._require_user(user_id)
        item = self.repos.reports.get_item(item_id)
        room = item.room if item is not None else None
        if room is None or room.report is None or room.report.user_id != owner_id:
            raise NotFound("Inspection item not found")
        self._ensure_mutable(room.report)
        self.repos.reports.delete_item(item)

    def save_room_items(
        self,
        user_id: Optional[str],
        room_id: str,
        items: Iterable[InspectionItemInput],
    ) -> RoomSaveSummary:
        """Save a room's items one by one; a failing item is counted, never aborts the batch."""
        self._mutable_room(user_id, room_id)
        summary = RoomSaveSummary()
        for entry in items:
            try:
                self.record_inspection_item(
                    user_id,
                    room_id,
                    entry.category_id,
                    entry.condition,
                    entry.notes,
                    entry.photos,
                )
            except DomainError as exc:
                summary.failed += 1
                summary.errors[entry.category_id] = exc.detail
                logger.warning(
                    "Inspection item save failed",
                    extra={"room_id": room_id, "category_id": entry.category_id, "error": exc.detail},
                )
            else:
                summary.saved += 1
        return summary

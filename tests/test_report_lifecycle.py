from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from condition_reports.constants import ConditionState, PaymentStatus, ReportStatus, RoomType
from condition_reports.core.errors import Forbidden, InvalidTransition, NotFound, ReportLocked, TransientIO, ValidationError
from condition_reports.models.models import InspectionItem, Room, User, new_id
from condition_reports.schemas.schemas import GPSCoordinates, InspectionItemInput
from condition_reports.services.properties import PropertyService
from condition_reports.services.reports import ReportLifecycleManager
from condition_reports.services.validation import validate_item


@pytest.fixture
def draft(repos, create_user, create_property):
    user = create_user()
    prop = create_property(user)
    manager = ReportLifecycleManager(repos)
    report = manager.create_report(user.id, prop.id, "Move-in inspection")
    return manager, user, report


def _inspect_room(manager, user, report_id, name="Lounge", room_type=RoomType.STANDARD):
    room = manager.add_room(user.id, report_id, name, room_type)
    manager.record_inspection_item(user.id, room.id, "walls", ConditionState.GOOD)
    manager.record_inspection_item(user.id, room.id, "floors", ConditionState.FAIR, notes="Worn carpet near door")
    return room


def test_new_report_starts_as_unpaid_draft(draft):
    _, _, report = draft
    assert report.status == ReportStatus.DRAFT.value
    assert report.payment_status == PaymentStatus.UNPAID.value
    assert report.rooms == []


def test_report_requires_owned_active_property(repos, create_user, create_property):
    owner = create_user()
    stranger = create_user()
    prop = create_property(owner)
    manager = ReportLifecycleManager(repos)

    with pytest.raises(NotFound):
        manager.create_report(stranger.id, prop.id, "Sneaky")
    with pytest.raises(ValidationError):
        manager.create_report(owner.id, prop.id, "   ")


def test_rooms_are_positioned_in_order(draft):
    manager, user, report = draft
    first = manager.add_room(user.id, report.id, "Lounge", RoomType.STANDARD)
    second = manager.add_room(user.id, report.id, "Bathroom", RoomType.BATHROOM)
    assert (first.position, second.position) == (0, 1)

    reloaded = manager.get_report(user.id, report.id)
    assert [room.name for room in reloaded.rooms] == ["Lounge", "Bathroom"]


def test_unknown_room_type_is_rejected(draft):
    manager, user, report = draft
    with pytest.raises(ValidationError):
        manager.add_room(user.id, report.id, "Garage", "Garage")


def test_recording_an_item_twice_replaces_it(draft):
    manager, user, report = draft
    room = manager.add_room(user.id, report.id, "Lounge", RoomType.STANDARD)

    first = manager.record_inspection_item(user.id, room.id, "walls", ConditionState.GOOD)
    second = manager.record_inspection_item(user.id, room.id, "walls", ConditionState.POOR, notes="  Damp patch  ")

    assert first.id == second.id
    assert second.condition == ConditionState.POOR.value
    assert second.notes == "Damp patch"
    reloaded = manager.get_report(user.id, report.id)
    assert len(reloaded.rooms[0].items) == 1


def test_item_rules_are_enforced(draft):
    manager, user, report = draft
    room = manager.add_room(user.id, report.id, "Lounge", RoomType.STANDARD)

    with pytest.raises(ValidationError) as exc:
        manager.record_inspection_item(user.id, room.id, "walls", ConditionState.POOR, notes="")
    assert exc.value.issues == ["Comment required for Poor condition"]

    with pytest.raises(ValidationError):
        manager.record_inspection_item(user.id, room.id, "toilet", ConditionState.GOOD)


def test_complete_requires_a_complete_report(draft):
    manager, user, report = draft
    manager.add_room(user.id, report.id, "Lounge", RoomType.STANDARD)

    with pytest.raises(ValidationError) as exc:
        manager.complete_report(user.id, report.id)
    assert exc.value.issues == ["Lounge: No inspection items"]
    assert manager.get_report(user.id, report.id).status == ReportStatus.DRAFT.value


def test_full_lifecycle_to_finalized(repos, draft):
    manager, user, report = draft
    _inspect_room(manager, user, report.id)

    assert manager.get_completeness(user.id, report.id).is_complete

    completed = manager.complete_report(user.id, report.id)
    assert completed.status == ReportStatus.COMPLETED.value
    assert completed.completed_at is not None

    paid = manager.mark_paid(user.id, report.id, "PAY-123")
    assert paid.payment_status == PaymentStatus.PAID.value
    assert paid.status == ReportStatus.COMPLETED.value

    finalized = manager.finalize_report(user.id, report.id)
    assert finalized.status == ReportStatus.FINALIZED.value
    assert finalized.finalized_at is not None

    activity_types = {entry.activity_type for entry in repos.activity.recent(50)}
    assert {"report_created", "inspection_started", "report_status_changed", "report_paid"} <= activity_types


def test_status_only_moves_forward(draft):
    manager, user, report = draft
    _inspect_room(manager, user, report.id)

    with pytest.raises(InvalidTransition):
        manager.finalize_report(user.id, report.id)

    manager.complete_report(user.id, report.id)
    with pytest.raises(InvalidTransition):
        manager.update_report_status(user.id, report.id, ReportStatus.DRAFT)
    with pytest.raises(InvalidTransition):
        manager.update_report_status(user.id, report.id, "archived")


def test_finalized_report_is_locked(draft):
    manager, user, report = draft
    room = _inspect_room(manager, user, report.id)
    manager.complete_report(user.id, report.id)
    manager.finalize_report(user.id, report.id)

    with pytest.raises(ReportLocked):
        manager.add_room(user.id, report.id, "Kitchen", RoomType.KITCHEN)
    with pytest.raises(Forbidden):
        manager.record_inspection_item(user.id, room.id, "walls", ConditionState.GOOD)
    with pytest.raises(Forbidden):
        manager.rename_room(user.id, room.id, "Living room")
    with pytest.raises(Forbidden):
        manager.update_report_title(user.id, report.id, "New title")
    with pytest.raises(ReportLocked):
        manager.update_report_status(user.id, report.id, ReportStatus.FINALIZED)
    with pytest.raises(ReportLocked):
        manager.delete_report(user.id, report.id)

    # Payment and the exported PDF may still be recorded.
    assert manager.mark_paid(user.id, report.id, "PAY-9").payment_status == PaymentStatus.PAID.value
    assert manager.attach_pdf(user.id, report.id, "https://files.example.com/r.pdf").pdf_url.endswith("r.pdf")


def test_draft_cannot_be_marked_paid_twice_or_early(draft):
    manager, user, report = draft
    with pytest.raises(InvalidTransition):
        manager.mark_paid(user.id, report.id, "PAY-1")

    _inspect_room(manager, user, report.id)
    manager.complete_report(user.id, report.id)
    manager.mark_paid(user.id, report.id, "PAY-1")
    with pytest.raises(InvalidTransition):
        manager.mark_paid(user.id, report.id, "PAY-2")


def _stored_rows(repos):
    reports = repos.reports
    if hasattr(reports, "store"):
        return len(reports.store.rooms), len(reports.store.items)
    return reports.session.query(Room).count(), reports.session.query(InspectionItem).count()


def test_delete_report_cascades(draft):
    manager, user, report = draft
    _inspect_room(manager, user, report.id, "Lounge")
    _inspect_room(manager, user, report.id, "Study")
    assert _stored_rows(manager.repos) == (2, 4)

    assert manager.delete_report(user.id, report.id) == (2, 4)
    with pytest.raises(NotFound):
        manager.get_report(user.id, report.id)
    assert _stored_rows(manager.repos) == (0, 0)


def test_failed_cascade_commit_rolls_back_everything(sql_repos, property_payload, monkeypatch):
    user = sql_repos.users.add(User(id=new_id(), email="owner@example.com", hashed_password="x", role="tenant"))
    prop = PropertyService(sql_repos).create_property(user.id, property_payload())
    manager = ReportLifecycleManager(sql_repos)
    report = manager.create_report(user.id, prop.id, "Move-in inspection")
    _inspect_room(manager, user, report.id, "Lounge")
    _inspect_room(manager, user, report.id, "Study")

    session = sql_repos.reports.session
    real_commit = session.commit

    def failing_commit():
        raise OperationalError("DELETE FROM rooms", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "commit", failing_commit)
    with pytest.raises(TransientIO):
        manager.delete_report(user.id, report.id)
    monkeypatch.setattr(session, "commit", real_commit)

    assert _stored_rows(sql_repos) == (2, 4)
    reloaded = manager.get_report(user.id, report.id)
    assert [room.name for room in reloaded.rooms] == ["Lounge", "Study"]


def test_delete_report_of_another_user_is_forbidden(draft, create_user):
    manager, _, report = draft
    stranger = create_user()
    with pytest.raises(Forbidden):
        manager.delete_report(stranger.id, report.id)


def test_delete_room_and_item(draft):
    manager, user, report = draft
    room = _inspect_room(manager, user, report.id)
    other = manager.add_room(user.id, report.id, "Bathroom", RoomType.BATHROOM)

    item_id = manager.get_report(user.id, report.id).rooms[0].items[0].id
    manager.delete_inspection_item(user.id, item_id)
    assert len(manager.get_report(user.id, report.id).rooms[0].items) == 1

    manager.delete_room(user.id, room.id)
    reloaded = manager.get_report(user.id, report.id)
    assert [r.id for r in reloaded.rooms] == [other.id]


def test_room_video_limits(draft):
    manager, user, report = draft
    room = manager.add_room(user.id, report.id, "Lounge", RoomType.STANDARD)

    updated = manager.attach_room_video(user.id, room.id, "https://files.example.com/v.webm", 42, 1024)
    assert (updated.video_duration, updated.video_size) == (42, 1024)

    with pytest.raises(ValidationError):
        manager.attach_room_video(user.id, room.id, "https://files.example.com/v.webm", 75, 1024)


def test_batch_save_counts_failures_without_aborting(draft):
    manager, user, report = draft
    room = manager.add_room(user.id, report.id, "Lounge", RoomType.STANDARD)

    summary = manager.save_room_items(
        user.id,
        room.id,
        [
            InspectionItemInput(category_id="walls", condition="Good"),
            InspectionItemInput(category_id="windows", condition="Poor"),
            InspectionItemInput(category_id="doors", condition="Fair", notes="Sticks when closing"),
            InspectionItemInput(category_id="oven", condition="Good"),
        ],
    )

    assert (summary.saved, summary.failed) == (2, 2)
    assert set(summary.errors) == {"windows", "oven"}
    reloaded = manager.get_report(user.id, report.id)
    assert sorted(item.category_id for item in reloaded.rooms[0].items) == ["doors", "walls"]


def test_reports_are_private_to_their_owner(draft, create_user):
    manager, _, report = draft
    stranger = create_user()
    with pytest.raises(NotFound):
        manager.get_report(stranger.id, report.id)

    public_report, prop = manager.get_public_report(report.id)
    assert public_report.id == report.id
    assert prop.id == report.property_id


def test_kitchen_inspection_is_locked_after_finalize(repos, create_user, create_property):
    user = create_user()
    gps = GPSCoordinates(latitude=-26.1448, longitude=28.0436, accuracy=8, timestamp=datetime.now(timezone.utc))
    prop = create_property(user, gps_coordinates=gps)
    manager = ReportLifecycleManager(repos)

    report = manager.create_report(user.id, prop.id, "Demo - 2024-01-01")
    room = manager.add_room(user.id, report.id, "Main Kitchen", RoomType.KITCHEN)
    manager.record_inspection_item(user.id, room.id, "sink", ConditionState.POOR, notes="Leaking tap")
    manager.complete_report(user.id, report.id)
    manager.finalize_report(user.id, report.id)

    with pytest.raises(Forbidden):
        manager.record_inspection_item(user.id, room.id, "sink", ConditionState.GOOD)


def test_comment_rule_for_walls():
    assert validate_item({"category_id": "walls", "condition": "Good"}).valid
    result = validate_item({"category_id": "walls", "condition": "Fair", "notes": ""})
    assert not result.valid
    assert result.issues == ["Comment required for Fair condition"]

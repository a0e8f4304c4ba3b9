import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Response

from ..api.dependencies import get_repositories
from ..auth.jwt import get_current_user
from ..models.models import InspectionItem, Report, Room, User
from ..repositories import Repositories
from ..schemas.schemas import (
    CompletenessRead,
    InspectionItemRead,
    InspectionItemUpsert,
    PdfRenderOptions,
    PropertyRead,
    ReportCreate,
    ReportPaymentUpdate,
    ReportRead,
    ReportStatusUpdate,
    ReportUpdate,
    RoomCreate,
    RoomRead,
    RoomSaveRequest,
    RoomSaveSummaryRead,
    RoomUpdate,
    RoomVideoAttach,
)
from ..services.pdf import pdf_filename, render_report_pdf
from ..services.reports import ReportLifecycleManager
from ..services.storage import StorageService, get_storage, pdf_path

logger = logging.getLogger(__name__)

router = APIRouter()


def get_lifecycle_manager(repos: Repositories = Depends(get_repositories)) -> ReportLifecycleManager:
    return ReportLifecycleManager(repos)


def pdf_response(content: bytes, filename: str) -> Response:
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Cache-Control": "no-store",
    }
    return Response(content=content, media_type="application/pdf", headers=headers)


@router.get("/", response_model=List[ReportRead])
def list_reports(
    property_id: Optional[str] = None,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> List[Report]:
    return manager.list_reports(user.id, property_id=property_id)


@router.post("/", response_model=ReportRead, status_code=201)
def create_report(
    payload: ReportCreate,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> Report:
    return manager.create_report(user.id, payload.property_id, payload.title)


@router.get("/{report_id}", response_model=ReportRead)
def get_report(
    report_id: str,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> Report:
    return manager.get_report(user.id, report_id)


@router.patch("/{report_id}", response_model=ReportRead)
def update_report(
    report_id: str,
    payload: ReportUpdate,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> Report:
    return manager.update_report_title(user.id, report_id, payload.title)


@router.delete("/{report_id}")
def delete_report(
    report_id: str,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> Dict[str, int]:
    rooms_deleted, items_deleted = manager.delete_report(user.id, report_id)
    return {"rooms_deleted": rooms_deleted, "items_deleted": items_deleted}


@router.post("/{report_id}/status", response_model=ReportRead)
def update_report_status(
    report_id: str,
    payload: ReportStatusUpdate,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> Report:
    return manager.update_report_status(user.id, report_id, payload.status)


@router.post("/{report_id}/finalize", response_model=ReportRead)
def finalize_report(
    report_id: str,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> Report:
    return manager.finalize_report(user.id, report_id)


@router.post("/{report_id}/payment", response_model=ReportRead)
def record_payment(
    report_id: str,
    payload: ReportPaymentUpdate,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> Report:
    return manager.mark_paid(user.id, report_id, payload.payment_reference)


@router.get("/{report_id}/completeness", response_model=CompletenessRead)
def report_completeness(
    report_id: str,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> CompletenessRead:
    result = manager.get_completeness(user.id, report_id)
    return CompletenessRead(is_complete=result.is_complete, issues=result.issues)


@router.post("/{report_id}/rooms", response_model=RoomRead, status_code=201)
def add_room(
    report_id: str,
    payload: RoomCreate,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> Room:
    return manager.add_room(user.id, report_id, payload.name, payload.type)


@router.patch("/rooms/{room_id}", response_model=RoomRead)
def rename_room(
    room_id: str,
    payload: RoomUpdate,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> Room:
    return manager.rename_room(user.id, room_id, payload.name)


@router.delete("/rooms/{room_id}", status_code=204)
def delete_room(
    room_id: str,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> None:
    manager.delete_room(user.id, room_id)


@router.post("/rooms/{room_id}/video", response_model=RoomRead)
def attach_room_video(
    room_id: str,
    payload: RoomVideoAttach,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> Room:
    return manager.attach_room_video(user.id, room_id, payload.video_url, payload.video_duration, payload.video_size)


@router.put("/rooms/{room_id}/items/{category_id}", response_model=InspectionItemRead)
def record_inspection_item(
    room_id: str,
    category_id: str,
    payload: InspectionItemUpsert,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> InspectionItem:
    return manager.record_inspection_item(
        user.id,
        room_id,
        category_id,
        payload.condition,
        payload.notes,
        payload.photos,
    )


@router.post("/rooms/{room_id}/items:batch", response_model=RoomSaveSummaryRead)
def save_room_items(
    room_id: str,
    payload: RoomSaveRequest,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> RoomSaveSummaryRead:
    summary = manager.save_room_items(user.id, room_id, payload.items)
    return RoomSaveSummaryRead(saved=summary.saved, failed=summary.failed, errors=summary.errors)


@router.delete("/items/{item_id}", status_code=204)
def delete_inspection_item(
    item_id: str,
    user: User = Depends(get_current_user),
    manager: ReportLifecycleManager = Depends(get_lifecycle_manager),
) -> None:
    manager.delete_inspection_item(user.id, item_id)


@router.post("/{report_id}/pdf")
async def export_report_pdf(
    report_id: str,
    options: Optional[PdfRenderOptions] = Body(default=None),
    user: User = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
    storage: StorageService = Depends(get_storage),
) -> Response:
    manager = ReportLifecycleManager(repos)
    report = manager.get_report(user.id, report_id)
    prop = repos.properties.get(report.property_id)
    report_data = ReportRead.model_validate(report)
    property_data = PropertyRead.model_validate(prop)

    options = options or PdfRenderOptions()
    content = await render_report_pdf(
        report_data,
        property_data,
        creator_role=options.creator_role or user.role,
        creator_name=options.creator_name or user.display_name,
    )

    stored = storage.save_file(pdf_path(user.id, report_data.id), content, "application/pdf")
    manager.attach_pdf(user.id, report_data.id, storage.public_url(stored.relative_path))
    logger.info("Report PDF exported", extra={"report_id": report_data.id, "path": stored.relative_path})
    return pdf_response(content, pdf_filename(property_data.name, report_data.id))

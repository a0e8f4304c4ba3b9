import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..api.dependencies import get_repositories
from ..auth.jwt import get_current_user
from ..core.errors import ValidationError
from ..models.models import User
from ..repositories import Repositories
from ..schemas.schemas import MediaUploadResponse
from ..services.reports import ReportLifecycleManager
from ..services.storage import StorageService, extension_for, get_storage, media_path
from ..services.validation import validate_photo_upload, validate_room_video

logger = logging.getLogger(__name__)

router = APIRouter()


def _store(
    storage: StorageService,
    user: User,
    report_id: str,
    owner_id: str,
    file: UploadFile,
    contents: bytes,
) -> MediaUploadResponse:
    path = media_path(user.id, report_id, owner_id, extension_for(file.content_type, file.filename))
    stored = storage.save_file(path, contents, file.content_type)
    logger.info("Media uploaded", extra={"report_id": report_id, "path": stored.relative_path, "bytes": len(contents)})
    return MediaUploadResponse(url=storage.public_url(stored.relative_path), path=stored.relative_path)


@router.post("/photos", response_model=MediaUploadResponse, status_code=201)
async def upload_photo(
    report_id: str = Form(...),
    item_or_room_id: str = Form(...),
    existing_count: int = Form(0),
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
    storage: StorageService = Depends(get_storage),
) -> MediaUploadResponse:
    ReportLifecycleManager(repos).get_editable_report(user.id, report_id)
    contents = await file.read()
    issues = validate_photo_upload(file.content_type, len(contents), existing_count)
    if issues:
        raise ValidationError(issues=issues)
    return _store(storage, user, report_id, item_or_room_id, file, contents)


@router.post("/videos", response_model=MediaUploadResponse, status_code=201)
async def upload_video(
    report_id: str = Form(...),
    room_id: str = Form(...),
    duration: Optional[int] = Form(None),
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
    storage: StorageService = Depends(get_storage),
) -> MediaUploadResponse:
    ReportLifecycleManager(repos).get_editable_report(user.id, report_id)
    contents = await file.read()
    issues = validate_room_video(duration, len(contents), file.content_type)
    if issues:
        raise ValidationError(issues=issues)
    return _store(storage, user, report_id, room_id, file, contents)

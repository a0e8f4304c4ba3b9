from typing import Dict, List

from fastapi import APIRouter, Depends, Query

from ..api.dependencies import get_repositories
from ..auth.jwt import get_current_user
from ..config import settings
from ..models.models import ActivityLog, User
from ..repositories import Repositories
from ..schemas.schemas import ActivityRead
from ..services.activity import recent_activity

router = APIRouter()


@router.get("/health")
def health_check() -> Dict[str, str]:
    return {"status": "ok", "data_source": settings.data_source}


@router.get("/system/activity", response_model=List[ActivityRead])
def list_activity(
    limit: int = Query(50, ge=1, le=500),
    user: User = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
) -> List[ActivityLog]:
    """Recent activity for the signed-in user, newest first."""
    return recent_activity(repos, limit, user_id=user.id)

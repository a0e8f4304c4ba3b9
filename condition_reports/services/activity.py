import logging
from typing import Any, Dict, List, Optional

from ..core.errors import DomainError
from ..models.models import ActivityLog, utcnow
from ..repositories import Repositories

logger = logging.getLogger(__name__)


def _jsonable(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not data:
        return {}
    return {key: value if isinstance(value, (str, int, float, bool, type(None))) else str(value) for key, value in data.items()}


def log_activity(
    repos: Repositories,
    activity_type: str,
    user_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[ActivityLog]:
    """Record an activity row. Failures are logged and never propagate to the caller."""
    entry = ActivityLog(
        user_id=user_id,
        activity_type=activity_type,
        details=_jsonable(metadata),
        created_at=utcnow(),
    )
    try:
        return repos.activity.add(entry)
    except DomainError:
        logger.warning("Failed to record activity", extra={"activity_type": activity_type, "user_id": user_id})
        return None


def recent_activity(repos: Repositories, limit: int = 50, user_id: Optional[str] = None) -> List[ActivityLog]:
    return repos.activity.recent(limit, user_id=user_id)


def prune_activity(repos: Repositories, keep: int) -> int:
    removed = repos.activity.prune(keep)
    if removed:
        logger.info("Pruned activity log", extra={"removed": removed, "kept": keep})
    return removed

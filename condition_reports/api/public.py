from fastapi import APIRouter, Depends

from ..api.dependencies import get_repositories
from ..repositories import Repositories
from ..schemas.schemas import PropertyRead, PublicReportRead, ReportRead
from ..services.reports import ReportLifecycleManager

router = APIRouter()


@router.get("/reports/{report_id}", response_model=PublicReportRead)
def get_public_report(report_id: str, repos: Repositories = Depends(get_repositories)) -> PublicReportRead:
    """Read-only report view for QR code links; no authentication required."""
    report, prop = ReportLifecycleManager(repos).get_public_report(report_id)
    return PublicReportRead(report=ReportRead.model_validate(report), property=PropertyRead.model_validate(prop))

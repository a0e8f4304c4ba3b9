import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import RenderFailure
from ..schemas.schemas import PropertyRead, ReportRead
from ..services.pdf import pdf_filename, render_report_pdf
from .reports import pdf_response

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_FIELDS = ("report", "property", "creatorRole", "creatorName")


@router.post("/generate-pdf")
async def generate_pdf(payload: Dict[str, Any] = Body(...)) -> Response:
    """Render a PDF from a posted report document.

    The body carries ``report``, ``property``, ``creatorRole`` and ``creatorName``.
    Nothing is stored; the caller receives the PDF as an attachment.
    """
    if any(not payload.get(key) for key in REQUIRED_FIELDS):
        return JSONResponse(status_code=400, content={"error": "Missing required fields"})

    try:
        report = ReportRead.model_validate(payload["report"])
        prop = PropertyRead.model_validate(payload["property"])
        content = await render_report_pdf(
            report,
            prop,
            creator_role=str(payload["creatorRole"]),
            creator_name=str(payload["creatorName"]),
        )
    except (PydanticValidationError, RenderFailure) as exc:
        logger.warning("PDF generation request failed", extra={"error": str(exc)})
        return JSONResponse(status_code=500, content={"error": "Failed to generate PDF", "message": str(exc)})

    return pdf_response(content, pdf_filename(prop.name, report.id))

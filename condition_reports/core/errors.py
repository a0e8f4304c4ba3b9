from typing import Any, Dict, Iterable, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class DomainError(Exception):
    status_code = 400
    default_detail = "Request could not be processed."

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotAuthenticated(DomainError):
    status_code = 401
    default_detail = "User not authenticated."


class NotFound(DomainError):
    status_code = 404
    default_detail = "Resource not found."


class ValidationError(DomainError, ValueError):
    status_code = 422
    default_detail = "Validation failed."

    def __init__(self, detail: Optional[str] = None, issues: Optional[Iterable[str]] = None) -> None:
        self.issues: List[str] = list(issues or [])
        if detail is None and self.issues:
            detail = self.issues[0]
        super().__init__(detail)


class Forbidden(DomainError):
    status_code = 403
    default_detail = "Operation not permitted."


class ReportLocked(Forbidden):
    default_detail = "Report is finalized and can no longer be changed."


class InvalidTransition(DomainError, ValueError):
    status_code = 409
    default_detail = "Invalid report status transition."


class TransientIO(DomainError):
    status_code = 503
    default_detail = "Backend temporarily unavailable. Please retry."


class RenderFailure(DomainError):
    status_code = 500
    default_detail = "Failed to generate PDF."


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:  # type: ignore[override]
        payload: Dict[str, Any] = {"detail": exc.detail, "path": str(request.url)}
        issues = getattr(exc, "issues", None)
        if issues:
            payload["errors"] = issues
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, NotAuthenticated) else None
        return JSONResponse(status_code=exc.status_code, content=payload, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore[override]
        return JSONResponse(
            status_code=422,
            content={
                "detail": "Validation failed.",
                "errors": [_describe_error(error) for error in exc.errors()],
                "path": str(request.url),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # type: ignore[override]
        payload: Dict[str, Any] = {"detail": exc.detail or "HTTP error.", "path": str(request.url)}
        return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore[override]
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error.",
                "path": str(request.url),
            },
        )


def _describe_error(error: Dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message

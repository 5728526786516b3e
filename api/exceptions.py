"""
Custom exceptions and error handlers for the API and the admin panel.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.encoders import jsonable_encoder

from api.logging_config import logger
from api.templating import templates


class APIError(HTTPException):
    """Base API error with structured error response."""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error = error
        self.message = message
        self.details = details
        super().__init__(status_code=status_code, detail=message)


class NotFoundError(APIError):
    """Resource not found error."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            status_code=404,
            error="not_found",
            message=f"{resource.lower()} not found",
            details={"resource": resource, "id": identifier},
        )


class BadRequestError(APIError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=400, error="bad_request", message=message, details=details)


class UnauthorizedError(APIError):
    def __init__(self, message: str = "unauthenticated"):
        super().__init__(status_code=401, error="unauthorized", message=message)


class ConflictError(APIError):
    """Unique constraint or duplicate-import conflict."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=409, error="conflict", message=message, details=details)


class TMDbServiceError(APIError):
    """TMDb is unconfigured or returned an error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=500, error="tmdb_error", message=message, details=details)


class AdminPageError(Exception):
    """Error rendered to the admin as an HTML page."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class AdminLoginRequired(Exception):
    """No valid admin session; the browser is sent to the login form."""


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions and return structured JSON response."""
    content = {
        "error": exc.error,
        "message": exc.message,
    }
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Render body/query validation failures in the APIError shape.

    Admin endpoints answer 400 for malformed input; the JSON API keeps 422.
    """
    status_code = 400 if request.url.path.startswith("/admin") else 422
    return JSONResponse(
        status_code=status_code,
        content={
            "error": "validation_error",
            "message": "invalid request body",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )


async def admin_page_error_handler(request: Request, exc: AdminPageError):
    if exc.status_code >= 500:
        logger.error(f"Admin page error on {request.url.path}: {exc.message}")
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": "Error", "error": exc.message, "status_code": exc.status_code},
        status_code=exc.status_code,
    )


async def admin_login_required_handler(request: Request, exc: AdminLoginRequired) -> RedirectResponse:
    return RedirectResponse(url="/admin/login", status_code=302)

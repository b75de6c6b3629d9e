"""
Error taxonomy and the global exception layer.

Every failure is raised where it is detected and travels unchanged to the
HTTP boundary, where the handlers below turn it into a JSON body of the
form ``{"statusCode": ..., "message": ..., "timestamp": ...}``.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnhub.config import get_settings
from learnhub.models import utcnow

logger = logging.getLogger(__name__)


# ==================== TAXONOMY ====================

class LearnhubError(HTTPException):
    """Base class: carries its own status code and default message"""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(status_code=type(self).status_code, detail=message or self.default_message)

    @property
    def message(self) -> str:
        return self.detail


class BadRequest(LearnhubError):
    status_code = 400
    default_message = "Bad request"


class InvalidCredential(LearnhubError):
    """Token missing, malformed, or rejected by the identity provider"""
    status_code = 401
    default_message = "Invalid or expired token"


class UserNotRegistered(LearnhubError):
    """Token valid but no local account"""
    status_code = 401
    default_message = "User not registered. Please register first"


class PaymentRequired(LearnhubError):
    status_code = 402
    default_message = "Payment required to access this course"


class Forbidden(LearnhubError):
    status_code = 403
    default_message = "Access denied"


class NotEnrolled(Forbidden):
    default_message = "You must be enrolled in this course to track progress"


class NotFound(LearnhubError):
    status_code = 404
    default_message = "Resource not found"


class LessonNotFound(NotFound):
    default_message = "Lesson not found"


class Conflict(LearnhubError):
    status_code = 409
    default_message = "Resource already exists"


# ==================== HANDLERS ====================

GENERIC_SERVER_ERROR = "Something went wrong, please try again later"


def _body(request: Request, status: int, message, details: Optional[dict] = None) -> dict:
    body = {
        "statusCode": status,
        "message": message,
        "timestamp": utcnow().isoformat(),
    }
    if get_settings().expose_error_details:
        body["path"] = request.url.path
        body["method"] = request.method
        if details:
            body["details"] = details
    return body


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    status = exc.status_code
    detail = exc.detail
    details = detail if isinstance(detail, dict) else None
    message = detail.get("message", str(detail)) if isinstance(detail, dict) else detail

    if status >= 500:
        logger.error("[%s] %s - %s: %s", request.method, request.url.path, status, message)
        if not get_settings().expose_error_details:
            message = GENERIC_SERVER_ERROR
    else:
        logger.warning("[%s] %s - %s: %s", request.method, request.url.path, status, message)

    return JSONResponse(
        status_code=status,
        content=_body(request, status, message, details),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))

    logger.warning("[%s] %s - 400: %s", request.method, request.url.path, messages)
    return JSONResponse(status_code=400, content=_body(request, 400, messages))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[%s] %s - unhandled error", request.method, request.url.path)
    message = str(exc) if get_settings().expose_error_details else GENERIC_SERVER_ERROR
    return JSONResponse(status_code=500, content=_body(request, 500, message))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

"""Exception handlers mapping engine errors onto the ErrorResponse shape."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from agent_feedback.lib.exceptions import (
    FeedbackError,
    FieldError,
    RateLimitedError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STORAGE_ERROR_MESSAGE = "Storage unavailable"


def error_body(message: str, details: Optional[List[Dict[str, str]]] = None) -> Dict[str, Any]:
    return {"status": "error", "error": message, "details": details}


def field_errors_from_pydantic(errors: List[Dict[str, Any]]) -> List[FieldError]:
    """Flatten pydantic error dicts into field/message pairs."""
    details = []
    for error in errors:
        field = ".".join(str(loc) for loc in error.get("loc", ()) if loc not in ("body", "query", "path"))
        details.append(FieldError(field or "body", error.get("msg", "Invalid value")))
    return details


async def feedback_error_handler(request: Request, exc: FeedbackError) -> JSONResponse:
    headers = None

    if isinstance(exc, ValidationError):
        content = error_body(exc.message, [e.to_dict() for e in exc.errors])
    elif isinstance(exc, StorageError):
        # The message never reaches the caller; the log has the cause.
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.message)
        content = error_body(STORAGE_ERROR_MESSAGE)
    else:
        content = error_body(exc.message)

    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after_sec)}

    return JSONResponse(status_code=exc.HTTP_STATUS, content=content, headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert FastAPI's 422 request validation errors into the 400 ErrorResponse shape."""
    details = [e.to_dict() for e in field_errors_from_pydantic(exc.errors())]
    logger.warning("Rejected request to %s: %s", request.url.path, details)
    return JSONResponse(status_code=400, content=error_body("Validation failed", details))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FeedbackError, feedback_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

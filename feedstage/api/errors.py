"""
Global translation of service failures into HTTP responses.

Bodies follow ErrorDetails: {"timestamp", "message", "details"?}.
"""

import logging
from collections import Counter
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from feedstage.api.schemas import ErrorDetails
from feedstage.domain.errors import (
    DataAccessError,
    DataConflictError,
    DataUpdateError,
    InvalidTransitionError,
)

logger = logging.getLogger(__name__)

# exception class name -> occurrences since startup
error_counts: Counter[str] = Counter()


def _error_response(status_code: int, message: str, details: str | None = None) -> JSONResponse:
    body = ErrorDetails(timestamp=datetime.now(UTC), message=message, details=details or None)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


def _record(request: Request, exc: Exception, status_code: int) -> None:
    error_counts[type(exc).__name__] += 1
    if status_code >= 500:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc
        )
    else:
        logger.warning(
            "%s %s rejected (%d): %s", request.method, request.url.path, status_code, exc
        )


async def handle_data_access(request: Request, exc: Exception) -> JSONResponse:
    _record(request, exc, 404)
    return _error_response(404, "Entity not found.")


async def handle_data_update(request: Request, exc: Exception) -> JSONResponse:
    _record(request, exc, 500)
    return _error_response(500, "Something horrible happened, please try again later.")


async def handle_data_conflict(request: Request, exc: Exception) -> JSONResponse:
    _record(request, exc, 409)
    return _error_response(409, "Conflict")


async def handle_invalid_transition(request: Request, exc: Exception) -> JSONResponse:
    _record(request, exc, 400)
    return _error_response(400, "Invalid transition", str(exc))


async def handle_request_validation(request: Request, exc: Exception) -> JSONResponse:
    _record(request, exc, 400)
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in errors
    )
    return _error_response(400, "Validation Failed", details)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DataAccessError, handle_data_access)
    app.add_exception_handler(DataUpdateError, handle_data_update)
    app.add_exception_handler(DataConflictError, handle_data_conflict)
    app.add_exception_handler(InvalidTransitionError, handle_invalid_transition)
    app.add_exception_handler(RequestValidationError, handle_request_validation)

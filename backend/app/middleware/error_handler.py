from __future__ import annotations

import logging
import traceback

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.envelope import error_response

logger = logging.getLogger(__name__)


def _format_validation_error(exc: RequestValidationError) -> str:
    """Turn Pydantic validation errors into a readable message."""
    parts = []
    for err_entry in exc.errors():
        loc = err_entry.get("loc", ())
        loc_str = ".".join(str(x) for x in loc if x not in ("body", "path"))
        msg = err_entry.get("msg", "Validation error")
        parts.append(f"{loc_str}: {msg}" if loc_str else msg)
    return "; ".join(parts) or "Request validation failed"


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 validation errors in the app envelope format with a readable message."""
    message = _format_validation_error(exc)
    logger.warning("Validation error on %s %s: %s", request.method, request.url.path, message)
    return error_response(422, message)


class ServiceError(Exception):
    """Raise from the service layer for known user-facing errors."""

    status_code = 400


class NotFoundError(ServiceError):
    """The addressed message or entity does not exist (or is soft-deleted)."""

    status_code = 404


class AuthenticationError(ServiceError):
    status_code = 401


class PermissionDeniedError(ServiceError):
    status_code = 403


class UndoStoreError(ServiceError):
    """The message store failed while closing off the undo scope. Nothing was reported as done."""

    status_code = 500


def full_error_message(exc: Exception) -> str:
    """Return full exception details including traceback."""
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).strip()


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Service failure in %s %s: %s", request.method, request.url.path, exc)
    return error_response(exc.status_code, str(exc))


async def catch_all_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error in %s %s", request.method, request.url.path)
    return error_response(500, full_error_message(exc))

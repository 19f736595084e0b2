from __future__ import annotations

from datetime import datetime, timezone
from typing import Generic, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    ok: bool
    data: T | None
    error: str | None = None
    timestamp: str


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def ok(data: T) -> ApiResponse[T]:
    return ApiResponse(ok=True, data=data, timestamp=_now_iso())


def err(message: str, data: T | None = None) -> ApiResponse[T]:
    """Error envelope. ``data`` carries partial results such as undo counts."""
    return ApiResponse(ok=False, data=data, error=message, timestamp=_now_iso())


def error_response(status_code: int, message: str, data: T | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=err(message, data).model_dump())

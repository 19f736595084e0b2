from collections.abc import Iterator

from fastapi import Header
from sqlalchemy.orm import Session

from app.db.session import session_scope
from app.middleware.error_handler import AuthenticationError


def get_db() -> Iterator[Session]:
    with session_scope() as db:
        yield db


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Caller identity as established by the upstream authentication layer."""
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError("Authentication required")
    return x_user_id.strip()

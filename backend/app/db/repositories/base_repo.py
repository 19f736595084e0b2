"""Shared session handling for repositories."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session


class BaseRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def flush(self) -> None:
        self.db.flush()

    @contextmanager
    def unit(self) -> Iterator[Session]:
        """Commit everything written inside the block, or roll all of it back."""
        try:
            yield self.db
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

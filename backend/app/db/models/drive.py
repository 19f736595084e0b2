from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.db.models.drive_member import DriveMember
    from app.db.models.drive_role import DriveRole
    from app.db.models.page import Page


class Drive(Base):
    __tablename__ = "drives"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    owner_id: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    is_trashed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    trashed_at: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    pages: Mapped[list["Page"]] = relationship(
        back_populates="drive", cascade="all, delete-orphan", passive_deletes=True
    )
    members: Mapped[list["DriveMember"]] = relationship(
        back_populates="drive", cascade="all, delete-orphan", passive_deletes=True
    )
    roles: Mapped[list["DriveRole"]] = relationship(
        back_populates="drive", cascade="all, delete-orphan", passive_deletes=True
    )

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.db.models.drive import Drive
    from app.db.models.page_permission import PagePermission


class Page(Base):
    __tablename__ = "pages"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    drive_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("drives.id", ondelete="CASCADE"), nullable=True
    )
    parent_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_trashed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    trashed_at: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)

    drive: Mapped[Optional["Drive"]] = relationship(back_populates="pages")
    permissions: Mapped[list["PagePermission"]] = relationship(
        back_populates="page", cascade="all, delete-orphan", passive_deletes=True
    )

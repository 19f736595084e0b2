from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.db.models.drive import Drive


class DriveMember(Base):
    __tablename__ = "drive_members"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    drive_id: Mapped[str] = mapped_column(ForeignKey("drives.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False, default="MEMBER")
    custom_role_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("drive_roles.id", ondelete="SET NULL"), nullable=True
    )

    drive: Mapped["Drive"] = relationship(back_populates="members")

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

KIND_ORIGINAL = "original"
KIND_UNDO = "undo"
UNDO_ACTION_TYPE = "UNDO"
# One per executed undo, whatever the mode. Never AI-attributed, never carries snapshots.
CONVERSATION_UNDO_ACTION_TYPE = "conversation_undo"
CONVERSATION_ENTITY_TYPE = "conversation"


class ActivityEvent(Base):
    """Append-only ledger row. Rows are never updated once written."""

    __tablename__ = "activity_events"
    __table_args__ = (
        Index("ix_activity_events_page_created", "page_id", "created_at"),
        Index("ix_activity_events_drive_created", "drive_id", "created_at"),
        Index("ix_activity_events_undoes", "undoes_event_id"),
    )

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    kind: Mapped[str] = mapped_column(Text, nullable=False, default=KIND_ORIGINAL)
    undoes_event_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    action_type: Mapped[str] = mapped_column(Text, nullable=False)
    entity_type: Mapped[str] = mapped_column(Text, nullable=False)
    entity_id: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    page_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    drive_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_conversation_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_ai_action: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    before_state_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    after_state_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changes_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)

from __future__ import annotations

from typing import Any

from sqlalchemy import and_, or_, select

from app.db.models.activity_event import (
    CONVERSATION_ENTITY_TYPE,
    CONVERSATION_UNDO_ACTION_TYPE,
    KIND_ORIGINAL,
    KIND_UNDO,
    UNDO_ACTION_TYPE,
    ActivityEvent,
)
from app.db.repositories.base_repo import BaseRepository
from app.utils.ids import generate_id
from app.utils.json_helpers import dump_state
from app.utils.time import normalize_ts, utc_now_iso


class ActivityRepository(BaseRepository):
    """Read and append access to the activity ledger. There is no update path."""

    def get_event(self, event_id: str) -> ActivityEvent | None:
        return self.db.get(ActivityEvent, event_id)

    def list_ai_events_since(
        self,
        *,
        cutoff_ts: str,
        page_id: str | None,
        drive_id: str | None,
        conversation_id: str | None = None,
        require_conversation: bool = False,
    ) -> list[ActivityEvent]:
        """AI-attributed originals in the page/drive scope, newest first.

        Events that already have an undo row are left out so a repeated
        execute never reverses the same change twice.
        """
        cutoff = normalize_ts(cutoff_ts)
        scope = []
        if page_id is not None:
            scope.append(ActivityEvent.page_id == page_id)
        if drive_id is not None:
            scope.append(ActivityEvent.drive_id == drive_id)
        if not scope:
            if conversation_id is None:
                return []
            scope.append(ActivityEvent.ai_conversation_id == conversation_id)

        undone = select(ActivityEvent.undoes_event_id).where(
            ActivityEvent.kind == KIND_UNDO,
            ActivityEvent.undoes_event_id.is_not(None),
        )
        conditions = [
            ActivityEvent.is_ai_action.is_(True),
            ActivityEvent.kind == KIND_ORIGINAL,
            ActivityEvent.created_at >= cutoff,
            or_(*scope),
            ActivityEvent.id.not_in(undone),
        ]
        if require_conversation and conversation_id is not None:
            conditions.append(ActivityEvent.ai_conversation_id == conversation_id)

        stmt = (
            select(ActivityEvent)
            .where(and_(*conditions))
            .order_by(ActivityEvent.created_at.desc(), ActivityEvent.id.desc())
        )
        return list(self.db.scalars(stmt).all())

    def list_undo_events(self, original_event_id: str) -> list[ActivityEvent]:
        stmt = (
            select(ActivityEvent)
            .where(
                ActivityEvent.kind == KIND_UNDO,
                ActivityEvent.undoes_event_id == original_event_id,
            )
            .order_by(ActivityEvent.created_at.asc())
        )
        return list(self.db.scalars(stmt).all())

    def list_events_for_entity(self, entity_type: str, entity_id: str) -> list[ActivityEvent]:
        stmt = (
            select(ActivityEvent)
            .where(
                ActivityEvent.entity_type == entity_type,
                ActivityEvent.entity_id == entity_id,
            )
            .order_by(ActivityEvent.created_at.asc(), ActivityEvent.id.asc())
        )
        return list(self.db.scalars(stmt).all())

    def append(
        self,
        *,
        action_type: str,
        entity_type: str,
        entity_id: str,
        user_id: str | None = None,
        page_id: str | None = None,
        drive_id: str | None = None,
        ai_conversation_id: str | None = None,
        is_ai_action: bool = False,
        before_state: dict[str, Any] | None = None,
        after_state: dict[str, Any] | None = None,
        changes: dict[str, Any] | None = None,
        description: str | None = None,
        created_at: str | None = None,
        event_id: str | None = None,
    ) -> ActivityEvent:
        event = ActivityEvent(
            id=event_id or generate_id("act"),
            kind=KIND_ORIGINAL,
            action_type=action_type,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            page_id=page_id,
            drive_id=drive_id,
            ai_conversation_id=ai_conversation_id,
            is_ai_action=is_ai_action,
            before_state_json=dump_state(before_state),
            after_state_json=dump_state(after_state),
            changes_json=dump_state(changes),
            description=description,
            created_at=normalize_ts(created_at) if created_at else utc_now_iso(),
        )
        self.db.add(event)
        self.db.flush()
        return event

    def append_undo(
        self,
        original: ActivityEvent,
        *,
        user_id: str | None,
        description: str | None = None,
    ) -> ActivityEvent:
        """Record the reversal of ``original`` as a new row with swapped snapshots."""
        event = ActivityEvent(
            id=generate_id("act"),
            kind=KIND_UNDO,
            undoes_event_id=original.id,
            action_type=UNDO_ACTION_TYPE,
            entity_type=original.entity_type,
            entity_id=original.entity_id,
            user_id=user_id,
            page_id=original.page_id,
            drive_id=original.drive_id,
            ai_conversation_id=original.ai_conversation_id,
            is_ai_action=False,
            before_state_json=original.after_state_json,
            after_state_json=original.before_state_json,
            changes_json=original.changes_json,
            description=description
            or f"Undo {original.action_type} on {original.entity_type} {original.entity_id}",
            created_at=utc_now_iso(),
        )
        self.db.add(event)
        self.db.flush()
        return event

    def append_conversation_undo(
        self,
        *,
        conversation_id: str,
        message_id: str,
        user_id: str | None,
        page_id: str | None,
        drive_id: str | None,
        summary: dict[str, Any],
        description: str | None = None,
    ) -> ActivityEvent:
        """Audit row for a whole undo call; the outcome lives in ``changes``."""
        return self.append(
            action_type=CONVERSATION_UNDO_ACTION_TYPE,
            entity_type=CONVERSATION_ENTITY_TYPE,
            entity_id=conversation_id,
            user_id=user_id,
            page_id=page_id,
            drive_id=drive_id,
            ai_conversation_id=conversation_id,
            is_ai_action=False,
            changes={"messageId": message_id, **summary},
            description=description,
        )

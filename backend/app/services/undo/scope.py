from __future__ import annotations

import logging
from typing import Any

from app.capabilities.restorers.interfaces import EntityRestorer, RestoreStatus
from app.capabilities.restorers.registry import RestorerRegistry
from app.db.models.activity_event import ActivityEvent
from app.db.repositories.activity_repo import ActivityRepository
from app.db.repositories.message_repo import MessageRepository
from app.db.repositories.workspace_repo import WorkspaceRepository
from app.services.undo.types import (
    REASON_NO_PREVIOUS_STATE,
    REASON_NOT_FOUND,
    REASON_RESTORER_NOT_FOUND,
    REASON_STATE_DRIFT,
    UndoActivity,
    UndoCheckpoint,
    UndoPreview,
)
from app.utils.json_helpers import parse_state

logger = logging.getLogger(__name__)

_STATUS_REASONS: dict[RestoreStatus, str] = {
    "conflict": REASON_STATE_DRIFT,
    "not_found": REASON_NOT_FOUND,
}


def reason_for_status(status: RestoreStatus) -> str:
    return _STATUS_REASONS.get(status, status)


class UndoScopeCalculator:
    """Read-only computation of everything an undo from a checkpoint would touch."""

    def __init__(
        self,
        messages: MessageRepository,
        activities: ActivityRepository,
        workspace: WorkspaceRepository,
        registry: RestorerRegistry,
        *,
        scope_by_conversation: bool = False,
    ):
        self.messages = messages
        self.activities = activities
        self.workspace = workspace
        self.registry = registry
        self.scope_by_conversation = scope_by_conversation

    def count_messages(self, checkpoint: UndoCheckpoint) -> int:
        return self.messages.count_active_since(
            checkpoint.conversation_id, checkpoint.cutoff_timestamp
        )

    def list_activities(self, checkpoint: UndoCheckpoint) -> list[ActivityEvent]:
        """In-scope AI ledger entries, newest first."""
        return self.activities.list_ai_events_since(
            cutoff_ts=checkpoint.cutoff_timestamp,
            page_id=checkpoint.page_id,
            drive_id=checkpoint.drive_id,
            conversation_id=checkpoint.conversation_id,
            require_conversation=self.scope_by_conversation,
        )

    def preview(self, checkpoint: UndoCheckpoint) -> UndoPreview:
        messages_affected = self.count_messages(checkpoint)
        events = self.list_activities(checkpoint)
        verdicts = self._dry_run(events)

        activities: list[UndoActivity] = []
        warnings: list[str] = []
        for event in events:
            can_undo, reason, detail = verdicts[event.id]
            activities.append(
                UndoActivity(
                    id=event.id,
                    action_type=event.action_type,
                    entity_type=event.entity_type,
                    entity_id=event.entity_id,
                    description=event.description,
                    created_at=event.created_at,
                    can_undo=can_undo,
                    reason=reason,
                )
            )
            if not can_undo:
                suffix = f": {detail}" if detail else f" ({reason})"
                warnings.append(
                    f"Cannot undo {event.action_type} on {event.entity_type} {event.entity_id}{suffix}"
                )

        logger.info(
            "Undo preview message_id=%s conversation_id=%s messages=%d activities=%d blocked=%d",
            checkpoint.origin_message_id,
            checkpoint.conversation_id,
            messages_affected,
            len(activities),
            len(warnings),
        )
        return UndoPreview(
            message_id=checkpoint.origin_message_id,
            conversation_id=checkpoint.conversation_id,
            page_id=checkpoint.page_id,
            drive_id=checkpoint.drive_id,
            messages_affected=messages_affected,
            activities_affected=activities,
            warnings=warnings,
        )

    def _dry_run(
        self, events: list[ActivityEvent]
    ) -> dict[str, tuple[bool, str | None, str | None]]:
        """Replay the reversal against snapshots without writing anything.

        Events arrive newest first, so each entity's simulated state evolves in
        the same order the executor would apply it.
        """
        verdicts: dict[str, tuple[bool, str | None, str | None]] = {}
        restorers: dict[str, EntityRestorer] = {}
        simulated: dict[tuple[str, str], dict[str, Any] | None] = {}

        for event in events:
            before = parse_state(event.before_state_json)
            after = parse_state(event.after_state_json)
            if before is None and after is None:
                verdicts[event.id] = (False, REASON_NO_PREVIOUS_STATE, "no recorded state to restore")
                continue

            if not self.registry.has(event.entity_type):
                verdicts[event.id] = (
                    False,
                    REASON_RESTORER_NOT_FOUND,
                    f"undo is not supported for {event.entity_type}",
                )
                continue
            if event.entity_type not in restorers:
                restorers[event.entity_type] = self.registry.create(event.entity_type, self.workspace)
            restorer = restorers[event.entity_type]

            key = (event.entity_type, event.entity_id)
            if key not in simulated:
                simulated[key] = restorer.snapshot(event.entity_id)

            outcome = restorer.check(simulated[key], after)
            if not outcome.ok:
                verdicts[event.id] = (False, reason_for_status(outcome.status), outcome.detail)
                continue

            simulated[key] = restorer.project(simulated[key], before)
            verdicts[event.id] = (True, None, None)

        return verdicts

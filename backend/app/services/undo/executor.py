from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from app.capabilities.restorers.interfaces import EntityRestorer
from app.capabilities.restorers.registry import RestorerRegistry
from app.db.models.activity_event import ActivityEvent
from app.db.repositories.activity_repo import ActivityRepository
from app.db.repositories.message_repo import MessageRepository
from app.db.repositories.workspace_repo import WorkspaceRepository
from app.middleware.error_handler import ServiceError, UndoStoreError
from app.services.undo.aggregator import aggregate, summarize
from app.services.undo.scope import UndoScopeCalculator, reason_for_status
from app.services.undo.types import (
    MESSAGES_AND_CHANGES,
    MESSAGES_ONLY,
    REASON_NO_PREVIOUS_STATE,
    REASON_RESTORE_FAILED,
    REASON_RESTORER_NOT_FOUND,
    UndoCheckpoint,
    UndoError,
    UndoMode,
    UndoResult,
    UndoStage,
    UnitOutcome,
)
from app.utils.json_helpers import parse_state

logger = logging.getLogger(__name__)


class RollbackExecutor:
    """Soft-deletes the checkpoint's messages and, on request, reverses AI changes.

    Message deletion is the only step that can abort the call. Each ledger
    entry is reversed as an isolated unit that commits on its own, so an
    interrupted run leaves only complete, audited reversals behind.
    """

    def __init__(
        self,
        messages: MessageRepository,
        activities: ActivityRepository,
        workspace: WorkspaceRepository,
        registry: RestorerRegistry,
        scope: UndoScopeCalculator,
    ):
        self.messages = messages
        self.activities = activities
        self.workspace = workspace
        self.registry = registry
        self.scope = scope
        self.stage = UndoStage.VALIDATING

    def _enter(self, stage: UndoStage, checkpoint: UndoCheckpoint) -> None:
        self.stage = stage
        logger.debug("Undo %s message_id=%s", stage.value, checkpoint.origin_message_id)

    def execute(
        self, checkpoint: UndoCheckpoint, mode: UndoMode, *, user_id: str | None
    ) -> UndoResult:
        self._enter(UndoStage.VALIDATING, checkpoint)
        if mode not in (MESSAGES_ONLY, MESSAGES_AND_CHANGES):
            raise ServiceError(
                f"Invalid undo mode '{mode}'. Expected messages_only or messages_and_changes"
            )

        self._enter(UndoStage.SCOPING, checkpoint)
        # messages_only never looks at the ledger.
        events = self.scope.list_activities(checkpoint) if mode == MESSAGES_AND_CHANGES else []

        self._enter(UndoStage.DELETING_MESSAGES, checkpoint)
        messages_deleted = self._delete_messages(checkpoint)

        outcomes: list[UnitOutcome] = []
        if mode == MESSAGES_AND_CHANGES:
            self._enter(UndoStage.REVERSING_ACTIVITIES, checkpoint)
            restorers: dict[str, EntityRestorer] = {}
            for event in events:
                outcomes.append(self._reverse(event, restorers, user_id=user_id))

        self._enter(UndoStage.AGGREGATING, checkpoint)
        result = aggregate(mode=mode, messages_deleted=messages_deleted, outcomes=outcomes)

        self._enter(UndoStage.AUDITING, checkpoint)
        result.audit_event_id = self._record_audit(checkpoint, result, user_id=user_id)

        self._enter(UndoStage.DONE, checkpoint)
        logger.info(
            "Undo executed message_id=%s conversation_id=%s mode=%s messages_deleted=%d "
            "activities_rolled_back=%d errors=%d",
            checkpoint.origin_message_id,
            checkpoint.conversation_id,
            mode,
            result.messages_deleted,
            result.activities_rolled_back,
            len(result.errors),
        )
        return result

    def _record_audit(
        self, checkpoint: UndoCheckpoint, result: UndoResult, *, user_id: str | None
    ) -> str | None:
        """Append the conversation-level audit row. The undo itself is already committed."""
        try:
            with self.activities.unit():
                event = self.activities.append_conversation_undo(
                    conversation_id=checkpoint.conversation_id,
                    message_id=checkpoint.origin_message_id,
                    user_id=user_id,
                    page_id=checkpoint.page_id,
                    drive_id=checkpoint.drive_id,
                    summary={
                        "mode": result.mode,
                        "messagesDeleted": result.messages_deleted,
                        "activitiesRolledBack": result.activities_rolled_back,
                        "rolledBackActivityIds": result.rolled_back_activity_ids,
                        "undoEventIds": result.undo_event_ids,
                        "errorCount": len(result.errors),
                    },
                    description=summarize(result),
                )
        except SQLAlchemyError:
            logger.error(
                "Undo audit row could not be written conversation_id=%s message_id=%s",
                checkpoint.conversation_id,
                checkpoint.origin_message_id,
                exc_info=True,
            )
            return None
        return event.id

    def _delete_messages(self, checkpoint: UndoCheckpoint) -> int:
        try:
            with self.messages.unit():
                return self.messages.soft_delete_since(
                    checkpoint.conversation_id, checkpoint.cutoff_timestamp
                )
        except SQLAlchemyError as exc:
            logger.error(
                "Undo aborted: message soft delete failed conversation_id=%s",
                checkpoint.conversation_id,
                exc_info=True,
            )
            raise UndoStoreError("Failed to delete messages; nothing was undone") from exc

    def _reverse(
        self,
        event: ActivityEvent,
        restorers: dict[str, EntityRestorer],
        *,
        user_id: str | None,
    ) -> UnitOutcome:
        outcome = UnitOutcome(
            activity_id=event.id, entity_type=event.entity_type, entity_id=event.entity_id
        )
        before = parse_state(event.before_state_json)
        after = parse_state(event.after_state_json)
        if before is None and after is None:
            return self._fail(outcome, REASON_NO_PREVIOUS_STATE, "No recorded state to restore")

        if not self.registry.has(event.entity_type):
            return self._fail(
                outcome, REASON_RESTORER_NOT_FOUND, f"Undo is not supported for {event.entity_type}"
            )
        if event.entity_type not in restorers:
            restorers[event.entity_type] = self.registry.create(event.entity_type, self.workspace)
        restorer = restorers[event.entity_type]

        try:
            with self.activities.unit():
                restored = restorer.restore(event.entity_id, before, expected_state=after)
                if not restored.ok:
                    return self._fail(outcome, reason_for_status(restored.status), restored.detail)
                undo_event = self.activities.append_undo(event, user_id=user_id)
        except Exception as exc:
            logger.warning(
                "Undo unit failed activity_id=%s entity=%s/%s",
                event.id,
                event.entity_type,
                event.entity_id,
                exc_info=True,
            )
            return self._fail(outcome, REASON_RESTORE_FAILED, str(exc))

        outcome.undo_event_id = undo_event.id
        return outcome

    @staticmethod
    def _fail(outcome: UnitOutcome, reason: str, message: str | None) -> UnitOutcome:
        logger.warning(
            "Could not undo activity_id=%s entity=%s/%s reason=%s",
            outcome.activity_id,
            outcome.entity_type,
            outcome.entity_id,
            reason,
        )
        outcome.error = UndoError(
            entity_id=outcome.entity_id,
            entity_type=outcome.entity_type,
            reason=reason,
            activity_id=outcome.activity_id,
            message=message,
        )
        return outcome

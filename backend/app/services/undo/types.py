from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

UndoMode = Literal["messages_only", "messages_and_changes"]

MESSAGES_ONLY: UndoMode = "messages_only"
MESSAGES_AND_CHANGES: UndoMode = "messages_and_changes"

# Reasons attached to per-unit errors.
REASON_STATE_DRIFT = "state_drift"
REASON_NOT_FOUND = "not_found"
REASON_RESTORER_NOT_FOUND = "restorer_not_found"
REASON_NO_PREVIOUS_STATE = "no_previous_state"
REASON_RESTORE_FAILED = "restore_failed"


class UndoStage(str, Enum):
    VALIDATING = "validating"
    SCOPING = "scoping"
    DELETING_MESSAGES = "deleting_messages"
    REVERSING_ACTIVITIES = "reversing_activities"
    AGGREGATING = "aggregating"
    AUDITING = "auditing"
    DONE = "done"


class UndoOutcome(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


@dataclass(frozen=True)
class UndoCheckpoint:
    origin_message_id: str
    conversation_id: str
    page_id: str | None
    drive_id: str | None
    cutoff_timestamp: str
    # Author of the checkpoint message, or of the conversation for assistant turns.
    owner_user_id: str | None = None


@dataclass
class UndoActivity:
    id: str
    action_type: str
    entity_type: str
    entity_id: str
    description: str | None
    created_at: str
    can_undo: bool = True
    reason: str | None = None


@dataclass
class UndoPreview:
    message_id: str
    conversation_id: str
    page_id: str | None
    drive_id: str | None
    messages_affected: int
    activities_affected: list[UndoActivity] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class UndoError:
    entity_id: str
    entity_type: str
    reason: str
    activity_id: str | None = None
    message: str | None = None


@dataclass
class UnitOutcome:
    """Result of reversing a single ledger entry."""

    activity_id: str
    entity_type: str
    entity_id: str
    undo_event_id: str | None = None
    error: UndoError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class UndoResult:
    success: bool
    messages_deleted: int
    activities_rolled_back: int
    errors: list[UndoError] = field(default_factory=list)
    mode: UndoMode = MESSAGES_ONLY
    undo_event_ids: list[str] = field(default_factory=list)
    rolled_back_activity_ids: list[str] = field(default_factory=list)
    audit_event_id: str | None = None

"""Folds per-unit outcomes into the single report callers act on."""

from __future__ import annotations

from app.services.undo.types import UndoMode, UndoOutcome, UndoResult, UnitOutcome


def aggregate(
    *, mode: UndoMode, messages_deleted: int, outcomes: list[UnitOutcome]
) -> UndoResult:
    errors = [o.error for o in outcomes if o.error is not None]
    succeeded = [o for o in outcomes if o.ok]
    return UndoResult(
        success=not errors,
        messages_deleted=messages_deleted,
        activities_rolled_back=len(succeeded),
        errors=errors,
        mode=mode,
        undo_event_ids=[o.undo_event_id for o in succeeded if o.undo_event_id],
        rolled_back_activity_ids=[o.activity_id for o in succeeded],
    )


def classify(result: UndoResult) -> UndoOutcome:
    if not result.errors:
        return UndoOutcome.SUCCESS
    if result.messages_deleted > 0 or result.activities_rolled_back > 0:
        return UndoOutcome.PARTIAL
    return UndoOutcome.FAILURE


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def summarize(result: UndoResult) -> str:
    """Human readable one-liner, e.g. "Deleted 3 messages and undid 2 changes"."""
    text = f"Deleted {_plural(result.messages_deleted, 'message')}"
    if result.mode == "messages_and_changes":
        text += f" and undid {_plural(result.activities_rolled_back, 'change')}"
    if result.errors:
        attempted = result.activities_rolled_back + len(result.errors)
        text += f"; {len(result.errors)} of {_plural(attempted, 'change')} could not be undone"
    return text

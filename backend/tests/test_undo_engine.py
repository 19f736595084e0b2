import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.db.models.activity_event import (
    CONVERSATION_ENTITY_TYPE,
    CONVERSATION_UNDO_ACTION_TYPE,
    ActivityEvent,
)
from app.db.models.chat_message import ChatMessage
from app.db.models.page import Page
from app.db.repositories.activity_repo import ActivityRepository
from app.db.repositories.message_repo import MessageRepository
from app.middleware.error_handler import NotFoundError, ServiceError, UndoStoreError
from app.services.undo.aggregator import classify
from app.services.undo.types import REASON_RESTORE_FAILED, UndoOutcome
from app.services.undo_service import AiUndoService
from app.utils.json_helpers import parse_state
from tests.factories import add_activity, add_page, conversation_turn, make_workspace


def _ledger(db, ws) -> list[ActivityEvent]:
    stmt = (
        select(ActivityEvent)
        .where(
            ActivityEvent.drive_id == ws.drive_id,
            ActivityEvent.entity_type != CONVERSATION_ENTITY_TYPE,
        )
        .order_by(ActivityEvent.created_at.asc())
    )
    return list(db.scalars(stmt).all())


def _audit_rows(db, ws) -> list[ActivityEvent]:
    stmt = select(ActivityEvent).where(
        ActivityEvent.entity_id == ws.conversation_id,
        ActivityEvent.action_type == CONVERSATION_UNDO_ACTION_TYPE,
    )
    return list(db.scalars(stmt).all())


def _active_ids(db, ws) -> list[str]:
    return [m.id for m in MessageRepository(db).list_messages(ws.conversation_id)]


def test_checkpoint_resolves_page_drive_and_cutoff(db) -> None:
    ws = make_workspace(db)
    ids = conversation_turn(db, ws)
    db.commit()

    checkpoint = AiUndoService(db).resolve_checkpoint(ids["m3"])

    assert checkpoint.origin_message_id == ids["m3"]
    assert checkpoint.conversation_id == ws.conversation_id
    assert checkpoint.page_id == ws.page_id
    assert checkpoint.drive_id == ws.drive_id
    assert checkpoint.cutoff_timestamp == "2024-01-15T10:01:40.000000+00:00"


def test_checkpoint_missing_or_deleted_message_is_not_found(db) -> None:
    ws = make_workspace(db)
    ids = conversation_turn(db, ws)
    db.get(ChatMessage, ids["m5"]).is_active = False
    db.commit()

    service = AiUndoService(db)
    with pytest.raises(NotFoundError):
        service.resolve_checkpoint("msg-does-not-exist")
    with pytest.raises(NotFoundError):
        service.resolve_checkpoint(ids["m5"])


def test_preview_counts_messages_and_lists_ai_activities(db) -> None:
    ws = make_workspace(db)
    ids = conversation_turn(db, ws)
    edit = add_activity(db, ws, at=105, before={"content": "old"}, after={"content": "new"})
    add_activity(db, ws, at=95, before={"content": "older"}, after={"content": "old"})
    add_activity(db, ws, at=115, before={"title": "A"}, after={"title": "B"}, is_ai=False)
    db.commit()

    preview = AiUndoService(db).preview_ai_undo(ids["m3"])

    assert preview.messages_affected == 3
    assert [a.id for a in preview.activities_affected] == [edit]
    activity = preview.activities_affected[0]
    assert (activity.action_type, activity.entity_type) == ("update", "page")
    assert activity.can_undo is True
    assert preview.warnings == []


def test_preview_is_idempotent_and_read_only(db) -> None:
    ws = make_workspace(db)
    ids = conversation_turn(db, ws)
    add_activity(db, ws, at=105, before={"content": "old"}, after={"content": "new"})
    db.commit()
    service = AiUndoService(db)

    first = service.preview_ai_undo(ids["m3"])
    second = service.preview_ai_undo(ids["m3"])

    assert first == second
    assert db.get(Page, ws.page_id).content == "new"
    assert len(_active_ids(db, ws)) == 5
    assert len(_ledger(db, ws)) == 1


def test_scope_is_monotonic_over_checkpoints(db) -> None:
    ws = make_workspace(db)
    ids = conversation_turn(db, ws)
    db.commit()
    service = AiUndoService(db)

    counts = [service.preview_ai_undo(ids[name]).messages_affected for name in ("m1", "m3", "m4", "m5")]

    assert counts == [5, 3, 2, 1]
    assert counts == sorted(counts, reverse=True)


def test_execute_messages_only_end_to_end(db) -> None:
    ws = make_workspace(db)
    ids = conversation_turn(db, ws)
    add_activity(db, ws, at=105, before={"content": "old"}, after={"content": "new"})
    db.commit()

    result = AiUndoService(db).execute_ai_undo(ids["m3"], "messages_only", user_id=ws.owner_id)

    assert result.success is True
    assert result.messages_deleted == 3
    assert result.activities_rolled_back == 0
    assert result.errors == []
    assert _active_ids(db, ws) == [ids["m1"], ids["m2"]]
    for name in ("m3", "m4", "m5"):
        message = db.get(ChatMessage, ids[name])
        assert message.is_active is False
        assert message.deleted_at is not None
    assert db.get(Page, ws.page_id).content == "new"
    assert len(_ledger(db, ws)) == 1

    audit = _audit_rows(db, ws)
    assert len(audit) == 1
    assert audit[0].id == result.audit_event_id
    assert audit[0].is_ai_action is False
    assert audit[0].before_state_json is None
    assert audit[0].after_state_json is None
    changes = parse_state(audit[0].changes_json)
    assert changes["mode"] == "messages_only"
    assert changes["messageId"] == ids["m3"]
    assert changes["messagesDeleted"] == 3
    assert changes["activitiesRolledBack"] == 0
    assert changes["undoEventIds"] == []


def test_messages_only_never_reads_the_ledger(db, monkeypatch: pytest.MonkeyPatch) -> None:
    ws = make_workspace(db)
    ids = conversation_turn(db, ws)
    db.commit()

    def _forbidden(*args, **kwargs):
        raise AssertionError("ledger must not be queried in messages_only mode")

    monkeypatch.setattr(ActivityRepository, "list_ai_events_since", _forbidden)
    result = AiUndoService(db).execute_ai_undo(ids["m4"], "messages_only")

    assert result.success is True
    assert result.messages_deleted == 2


def test_messages_only_leaves_ledger_for_later_undo(db) -> None:
    ws = make_workspace(db)
    ids = conversation_turn(db, ws)
    edit = add_activity(db, ws, at=105, before={"content": "old"}, after={"content": "new"})
    db.commit()
    service = AiUndoService(db)

    service.execute_ai_undo(ids["m4"], "messages_only")
    preview = service.preview_ai_undo(ids["m3"])

    assert [a.id for a in preview.activities_affected] == [edit]
    assert preview.messages_affected == 1


def test_execute_messages_and_changes_end_to_end(db) -> None:
    ws = make_workspace(db, content="new")
    ids = conversation_turn(db, ws)
    edit = add_activity(db, ws, at=105, before={"content": "old"}, after={"content": "new"})
    db.commit()

    result = AiUndoService(db).execute_ai_undo(
        ids["m3"], "messages_and_changes", user_id=ws.owner_id
    )

    assert result.success is True
    assert result.messages_deleted == 3
    assert result.activities_rolled_back == 1
    assert result.errors == []
    assert classify(result) is UndoOutcome.SUCCESS
    assert db.get(Page, ws.page_id).content == "old"

    ledger = _ledger(db, ws)
    assert len(ledger) == 2
    original, undo = ledger
    assert original.id == edit
    assert parse_state(original.after_state_json) == {"content": "new"}
    assert undo.action_type == "UNDO"
    assert undo.kind == "undo"
    assert undo.undoes_event_id == edit
    assert undo.is_ai_action is False
    assert undo.user_id == ws.owner_id
    assert parse_state(undo.before_state_json) == {"content": "new"}
    assert parse_state(undo.after_state_json) == {"content": "old"}
    assert result.undo_event_ids == [undo.id]

    audit = _audit_rows(db, ws)
    assert len(audit) == 1
    assert audit[0].kind == "original"
    assert audit[0].is_ai_action is False
    assert audit[0].before_state_json is None
    changes = parse_state(audit[0].changes_json)
    assert changes["mode"] == "messages_and_changes"
    assert changes["activitiesRolledBack"] == 1
    assert changes["rolledBackActivityIds"] == [edit]
    assert changes["undoEventIds"] == [undo.id]
    assert result.rolled_back_activity_ids == [edit]
    assert audit[0].description == "Deleted 3 messages and undid 1 change"


def test_audit_row_is_never_in_undo_scope(db) -> None:
    ws = make_workspace(db)
    ids = conversation_turn(db, ws)
    db.commit()
    service = AiUndoService(db)

    service.execute_ai_undo(ids["m4"], "messages_only")
    preview = service.preview_ai_undo(ids["m3"])

    assert len(_audit_rows(db, ws)) == 1
    assert preview.activities_affected == []


def test_chained_edits_are_reversed_newest_first(db) -> None:
    ws = make_workspace(db, content="v2")
    ids = conversation_turn(db, ws)
    add_activity(db, ws, at=101, before={"content": "v0"}, after={"content": "v1"})
    add_activity(db, ws, at=102, before={"content": "v1"}, after={"content": "v2"})
    db.commit()

    result = AiUndoService(db).execute_ai_undo(ids["m3"], "messages_and_changes")

    assert result.success is True
    assert result.activities_rolled_back == 2
    assert db.get(Page, ws.page_id).content == "v0"


def test_preview_dry_run_follows_chained_edits(db) -> None:
    ws = make_workspace(db, content="v2")
    ids = conversation_turn(db, ws)
    add_activity(db, ws, at=101, before={"content": "v0"}, after={"content": "v1"})
    add_activity(db, ws, at=102, before={"content": "v1"}, after={"content": "v2"})
    db.commit()

    preview = AiUndoService(db).preview_ai_undo(ids["m3"])

    assert [a.can_undo for a in preview.activities_affected] == [True, True]
    assert [a.created_at for a in preview.activities_affected] == sorted(
        [a.created_at for a in preview.activities_affected], reverse=True
    )


def test_partial_failure_reports_missing_entity(db) -> None:
    ws = make_workspace(db, content="new")
    ids = conversation_turn(db, ws)
    other = add_page(db, ws, "notes", content="after")
    add_activity(db, ws, at=103, before={"content": "old"}, after={"content": "new"})
    add_activity(db, ws, at=104, entity_id=other, before={"content": "before"}, after={"content": "after"})
    missing = ws.id("gone")
    add_activity(db, ws, at=105, entity_id=missing, before={"title": "x"}, after={"title": "y"})
    db.commit()

    result = AiUndoService(db).execute_ai_undo(ids["m3"], "messages_and_changes")

    assert result.success is False
    assert result.activities_rolled_back == 2
    assert len(result.errors) == 1
    error = result.errors[0]
    assert (error.entity_id, error.entity_type, error.reason) == (missing, "page", "not_found")
    assert classify(result) is UndoOutcome.PARTIAL
    assert db.get(Page, ws.page_id).content == "old"
    assert db.get(Page, other).content == "before"


def test_state_drift_is_reported_instead_of_overwritten(db) -> None:
    ws = make_workspace(db, content="new")
    ids = conversation_turn(db, ws)
    add_activity(db, ws, at=105, before={"content": "old"}, after={"content": "new"})
    # A person edits the page after the AI did.
    add_activity(db, ws, at=115, before={"content": "new"}, after={"content": "human"}, is_ai=False)
    db.get(Page, ws.page_id).content = "human"
    db.commit()

    preview = AiUndoService(db).preview_ai_undo(ids["m3"])
    assert preview.activities_affected[0].can_undo is False
    assert preview.activities_affected[0].reason == "state_drift"
    assert preview.warnings and preview.warnings[0].startswith("Cannot undo update on page")

    result = AiUndoService(db).execute_ai_undo(ids["m3"], "messages_and_changes")

    assert result.success is False
    assert result.messages_deleted == 3
    assert result.activities_rolled_back == 0
    assert [e.reason for e in result.errors] == ["state_drift"]
    assert db.get(Page, ws.page_id).content == "human"
    assert not [e for e in _ledger(db, ws) if e.action_type == "UNDO"]


def test_unknown_entity_type_and_missing_state_are_unit_errors(db) -> None:
    ws = make_workspace(db, content="new")
    ids = conversation_turn(db, ws)
    add_activity(db, ws, at=101, entity_type="spreadsheetCell", entity_id="cell-1", before={"v": 1}, after={"v": 2})
    add_activity(db, ws, at=102, before=None, after=None, action_type="convert")
    add_activity(db, ws, at=103, before={"content": "old"}, after={"content": "new"})
    db.commit()

    result = AiUndoService(db).execute_ai_undo(ids["m3"], "messages_and_changes")

    assert result.activities_rolled_back == 1
    assert sorted(e.reason for e in result.errors) == ["no_previous_state", "restorer_not_found"]
    assert db.get(Page, ws.page_id).content == "old"


def test_second_execute_does_not_reverse_twice(db) -> None:
    ws = make_workspace(db, content="new")
    ids = conversation_turn(db, ws)
    add_activity(db, ws, at=105, before={"content": "old"}, after={"content": "new"})
    db.commit()
    service = AiUndoService(db)

    service.execute_ai_undo(ids["m3"], "messages_and_changes")
    # The earlier message is still active, so a wider undo is possible and must skip the reversed edit.
    again = service.execute_ai_undo(ids["m2"], "messages_and_changes")

    assert again.success is True
    assert again.messages_deleted == 1
    assert again.activities_rolled_back == 0
    assert len([e for e in _ledger(db, ws) if e.action_type == "UNDO"]) == 1


def test_message_store_failure_aborts_without_partial_result(db, monkeypatch: pytest.MonkeyPatch) -> None:
    ws = make_workspace(db, content="new")
    ids = conversation_turn(db, ws)
    add_activity(db, ws, at=105, before={"content": "old"}, after={"content": "new"})
    db.commit()

    def _locked(*args, **kwargs):
        raise OperationalError("UPDATE chat_messages", {}, Exception("database is locked"))

    monkeypatch.setattr(MessageRepository, "soft_delete_since", _locked)
    with pytest.raises(UndoStoreError):
        AiUndoService(db).execute_ai_undo(ids["m3"], "messages_and_changes")

    assert db.get(Page, ws.page_id).content == "new"
    assert len(_ledger(db, ws)) == 1
    assert _audit_rows(db, ws) == []


def test_invalid_mode_is_rejected_before_any_mutation(db) -> None:
    ws = make_workspace(db)
    ids = conversation_turn(db, ws)
    db.commit()

    with pytest.raises(ServiceError, match="Invalid undo mode"):
        AiUndoService(db).execute_ai_undo(ids["m3"], "everything")  # type: ignore[arg-type]

    assert len(_active_ids(db, ws)) == 5


def test_other_conversations_are_untouched(db) -> None:
    ws = make_workspace(db)
    ids = conversation_turn(db, ws)
    other = make_workspace(db)
    other_ids = conversation_turn(db, other)
    db.commit()

    AiUndoService(db).execute_ai_undo(ids["m1"], "messages_only")

    assert _active_ids(db, ws) == []
    assert _active_ids(db, other) == list(other_ids.values())


def test_exception_inside_one_unit_leaves_other_units_applied(db) -> None:
    ws = make_workspace(db)
    ids = conversation_turn(db, ws)
    first = add_page(db, ws, "first", content="new")
    broken = add_page(db, ws, "broken", content="new")
    last = add_page(db, ws, "last", content="new")
    add_activity(db, ws, at=101, entity_id=first, before={"content": "b1"}, after={"content": "new"})
    # A NULL title violates the pages schema, so this unit raises on flush.
    failing = add_activity(
        db, ws, at=102, entity_id=broken, before={"content": "old", "title": None}, after={"content": "new"}
    )
    add_activity(db, ws, at=103, entity_id=last, before={"content": "c1"}, after={"content": "new"})
    db.commit()

    result = AiUndoService(db).execute_ai_undo(ids["m3"], "messages_and_changes")

    db.expire_all()
    assert db.get(Page, broken).content == "new"
    assert db.get(Page, first).content == "b1"
    assert db.get(Page, last).content == "c1"
    assert result.activities_rolled_back == 2
    assert len(result.errors) == 1
    assert result.errors[0].reason == REASON_RESTORE_FAILED
    assert result.errors[0].activity_id == failing
    assert classify(result) is UndoOutcome.PARTIAL
    assert len([e for e in _ledger(db, ws) if e.action_type == "UNDO"]) == 2

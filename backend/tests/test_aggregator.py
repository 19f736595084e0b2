from app.services.undo.aggregator import aggregate, classify, summarize
from app.services.undo.types import UndoError, UndoOutcome, UnitOutcome


def _ok(activity_id: str) -> UnitOutcome:
    return UnitOutcome(
        activity_id=activity_id, entity_type="page", entity_id="p1", undo_event_id=f"undo-{activity_id}"
    )


def _failed(activity_id: str, reason: str = "not_found") -> UnitOutcome:
    return UnitOutcome(
        activity_id=activity_id,
        entity_type="page",
        entity_id="p2",
        error=UndoError(entity_id="p2", entity_type="page", reason=reason, activity_id=activity_id),
    )


def test_full_success() -> None:
    result = aggregate(mode="messages_and_changes", messages_deleted=3, outcomes=[_ok("a1")])

    assert result.success is True
    assert result.activities_rolled_back == 1
    assert result.undo_event_ids == ["undo-a1"]
    assert classify(result) is UndoOutcome.SUCCESS
    assert summarize(result) == "Deleted 3 messages and undid 1 change"


def test_partial_failure_keeps_counts() -> None:
    result = aggregate(
        mode="messages_and_changes",
        messages_deleted=12,
        outcomes=[_ok("a1"), _failed("a2"), _ok("a3")],
    )

    assert result.success is False
    assert result.messages_deleted == 12
    assert result.activities_rolled_back == 2
    assert [e.activity_id for e in result.errors] == ["a2"]
    assert classify(result) is UndoOutcome.PARTIAL
    assert summarize(result) == (
        "Deleted 12 messages and undid 2 changes; 1 of 3 changes could not be undone"
    )


def test_nothing_succeeded_is_a_failure() -> None:
    result = aggregate(mode="messages_and_changes", messages_deleted=0, outcomes=[_failed("a1", "state_drift")])

    assert result.success is False
    assert classify(result) is UndoOutcome.FAILURE
    assert summarize(result) == "Deleted 0 messages and undid 0 changes; 1 of 1 change could not be undone"


def test_messages_only_summary() -> None:
    result = aggregate(mode="messages_only", messages_deleted=1, outcomes=[])

    assert classify(result) is UndoOutcome.SUCCESS
    assert summarize(result) == "Deleted 1 message"


def test_rolled_back_ids_follow_successful_units() -> None:
    result = aggregate(
        mode="messages_and_changes",
        messages_deleted=2,
        outcomes=[_ok("a3"), _failed("a2"), _ok("a1")],
    )

    assert result.rolled_back_activity_ids == ["a3", "a1"]
    assert result.undo_event_ids == ["undo-a3", "undo-a1"]

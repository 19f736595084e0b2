from app.schemas.undo import UndoActivityOut, UndoErrorOut, UndoPreviewOut, UndoResultOut
from app.services.undo.aggregator import classify, summarize
from app.services.undo.types import UndoActivity, UndoError, UndoPreview, UndoResult


def map_activity_for_ui(activity: UndoActivity) -> UndoActivityOut:
    return UndoActivityOut(
        id=activity.id,
        actionType=activity.action_type,
        entityType=activity.entity_type,
        entityId=activity.entity_id,
        description=activity.description,
        createdAt=activity.created_at,
        canUndo=activity.can_undo,
        reason=activity.reason,
    )


def map_preview_for_ui(preview: UndoPreview) -> UndoPreviewOut:
    return UndoPreviewOut(
        messageId=preview.message_id,
        conversationId=preview.conversation_id,
        pageId=preview.page_id,
        driveId=preview.drive_id,
        messagesAffected=preview.messages_affected,
        activitiesAffected=[map_activity_for_ui(a) for a in preview.activities_affected],
        warnings=list(preview.warnings),
    )


def map_error_for_ui(error: UndoError) -> UndoErrorOut:
    return UndoErrorOut(
        entityId=error.entity_id,
        entityType=error.entity_type,
        reason=error.reason,
        activityId=error.activity_id,
        message=error.message,
    )


def map_result_for_ui(result: UndoResult) -> UndoResultOut:
    return UndoResultOut(
        success=result.success,
        outcome=classify(result).value,
        mode=result.mode,
        messagesDeleted=result.messages_deleted,
        activitiesRolledBack=result.activities_rolled_back,
        errors=[map_error_for_ui(e) for e in result.errors],
        undoEventIds=list(result.undo_event_ids),
        rolledBackActivityIds=list(result.rolled_back_activity_ids),
        message=summarize(result),
    )

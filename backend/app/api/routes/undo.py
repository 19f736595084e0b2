import logging

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from app.api.deps import get_current_user_id, get_db
from app.api.envelope import error_response, ok
from app.middleware.error_handler import ServiceError, full_error_message
from app.schemas.undo import ExecuteUndoRequest
from app.services.access_gate import AccessGate
from app.services.event_bus import get_event_bus, undo_applied_event
from app.services.undo.aggregator import classify
from app.services.undo.types import UndoOutcome
from app.services.undo_service import AiUndoService
from app.utils.ids import ID_PATTERN
from app.utils.mappers import map_preview_for_ui, map_result_for_ui

router = APIRouter(prefix="/api/ai/chat/messages", tags=["undo"])
logger = logging.getLogger(__name__)

_OUTCOME_STATUS = {
    UndoOutcome.SUCCESS: 200,
    UndoOutcome.PARTIAL: 207,
    UndoOutcome.FAILURE: 500,
}


def _internal_error(exc: Exception):
    logger.exception("Unhandled error in undo route")
    return error_response(500, full_error_message(exc))


@router.get("/{message_id}/undo")
def preview_undo(
    message_id: str = Path(pattern=ID_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        service = AiUndoService(db)
        checkpoint = service.resolve_checkpoint(message_id)
        AccessGate(db).require_undo_access(user_id, checkpoint)
        preview = service.preview(checkpoint)
        return ok(map_preview_for_ui(preview).model_dump())
    except ServiceError as exc:
        return error_response(exc.status_code, str(exc))
    except Exception as exc:
        return _internal_error(exc)


@router.post("/{message_id}/undo")
async def execute_undo(
    request: ExecuteUndoRequest,
    message_id: str = Path(pattern=ID_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        service = AiUndoService(db)
        checkpoint = service.resolve_checkpoint(message_id)
        AccessGate(db).require_undo_access(user_id, checkpoint)
        result = service.execute(checkpoint, request.mode, user_id=user_id)
    except ServiceError as exc:
        return error_response(exc.status_code, str(exc))
    except Exception as exc:
        return _internal_error(exc)

    if result.messages_deleted or result.activities_rolled_back:
        await get_event_bus().publish(
            checkpoint.conversation_id, undo_applied_event(checkpoint, result)
        )

    payload = map_result_for_ui(result)
    outcome = classify(result)
    if outcome is UndoOutcome.SUCCESS:
        return ok(payload.model_dump())
    return error_response(_OUTCOME_STATUS[outcome], payload.message, payload.model_dump())

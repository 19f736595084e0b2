from __future__ import annotations

from app.db.repositories.message_repo import MessageRepository
from app.db.repositories.workspace_repo import WorkspaceRepository
from app.middleware.error_handler import NotFoundError
from app.services.undo.types import UndoCheckpoint
from app.utils.time import normalize_ts


class CheckpointResolver:
    """Turns a message id into the anchor every undo scope is computed from.

    No authorization happens here; callers gate access to the page first.
    """

    def __init__(self, messages: MessageRepository, workspace: WorkspaceRepository):
        self.messages = messages
        self.workspace = workspace

    def resolve(self, message_id: str) -> UndoCheckpoint:
        message = self.messages.get_active_message(message_id)
        if message is None:
            raise NotFoundError(f"Message not found: {message_id}")

        drive_id = None
        if message.page_id is not None:
            page = self.workspace.get_page(message.page_id)
            drive_id = page.drive_id if page is not None else None

        return UndoCheckpoint(
            origin_message_id=message.id,
            conversation_id=message.conversation_id,
            page_id=message.page_id,
            drive_id=drive_id,
            cutoff_timestamp=normalize_ts(message.created_at),
            owner_user_id=message.user_id
            or self.messages.get_conversation_owner(message.conversation_id),
        )

from __future__ import annotations

from sqlalchemy.orm import Session

from app.capabilities.restorers.registry import RestorerRegistry, get_restorer_registry
from app.config.settings import get_settings
from app.db.repositories.activity_repo import ActivityRepository
from app.db.repositories.message_repo import MessageRepository
from app.db.repositories.workspace_repo import WorkspaceRepository
from app.services.undo.checkpoint import CheckpointResolver
from app.services.undo.executor import RollbackExecutor
from app.services.undo.scope import UndoScopeCalculator
from app.services.undo.types import UndoCheckpoint, UndoMode, UndoPreview, UndoResult


class AiUndoService:
    """Entry point for previewing and executing the undo of an AI turn."""

    def __init__(self, db: Session, *, registry: RestorerRegistry | None = None):
        self.message_repo = MessageRepository(db)
        self.activity_repo = ActivityRepository(db)
        self.workspace_repo = WorkspaceRepository(db)
        self.registry = registry or get_restorer_registry()
        self.resolver = CheckpointResolver(self.message_repo, self.workspace_repo)
        self.scope = UndoScopeCalculator(
            self.message_repo,
            self.activity_repo,
            self.workspace_repo,
            self.registry,
            scope_by_conversation=get_settings().undo_scope_by_conversation,
        )
        self.executor = RollbackExecutor(
            self.message_repo,
            self.activity_repo,
            self.workspace_repo,
            self.registry,
            self.scope,
        )

    def resolve_checkpoint(self, message_id: str) -> UndoCheckpoint:
        return self.resolver.resolve(message_id)

    def preview(self, checkpoint: UndoCheckpoint) -> UndoPreview:
        return self.scope.preview(checkpoint)

    def execute(
        self, checkpoint: UndoCheckpoint, mode: UndoMode, *, user_id: str | None = None
    ) -> UndoResult:
        return self.executor.execute(checkpoint, mode, user_id=user_id)

    def preview_ai_undo(self, message_id: str) -> UndoPreview:
        return self.preview(self.resolve_checkpoint(message_id))

    def execute_ai_undo(
        self, message_id: str, mode: UndoMode, *, user_id: str | None = None
    ) -> UndoResult:
        return self.execute(self.resolve_checkpoint(message_id), mode, user_id=user_id)

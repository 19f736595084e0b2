from __future__ import annotations

from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.db.repositories.workspace_repo import WorkspaceRepository
from app.middleware.error_handler import PermissionDeniedError
from app.services.undo.types import UndoCheckpoint


class AccessGate:
    """Edit-rights checks evaluated before the undo engine runs."""

    def __init__(self, db: Session):
        self.repo = WorkspaceRepository(db)
        self.admin_roles = {r.upper() for r in get_settings().undo_admin_roles}

    def can_user_edit_page(self, user_id: str, page_id: str) -> bool:
        page = self.repo.get_page(page_id)
        if page is None:
            return False
        if page.drive_id is not None:
            drive = self.repo.get_drive(page.drive_id)
            if drive is not None and drive.owner_id == user_id:
                return True
            member = self.repo.find_drive_member(page.drive_id, user_id)
            if member is not None and member.role.upper() in self.admin_roles:
                return True
        permission = self.repo.find_page_permission(page_id, user_id)
        return bool(permission is not None and permission.can_edit)

    def can_user_undo(self, user_id: str, checkpoint: UndoCheckpoint) -> bool:
        if checkpoint.page_id is None:
            # Global assistant conversations belong to whoever wrote in them.
            return checkpoint.owner_user_id == user_id
        return self.can_user_edit_page(user_id, checkpoint.page_id)

    def require_undo_access(self, user_id: str, checkpoint: UndoCheckpoint) -> None:
        if not self.can_user_undo(user_id, checkpoint):
            raise PermissionDeniedError(
                "You do not have permission to undo changes in this conversation"
            )

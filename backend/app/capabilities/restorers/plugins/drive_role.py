from __future__ import annotations

from typing import Any

from app.capabilities.restorers.base import SnapshotRestorer
from app.capabilities.restorers.interfaces import RestorerPlugin
from app.db.models.drive_role import DriveRole
from app.utils.time import utc_now_iso


class DriveRoleRestorer(SnapshotRestorer):
    """Removing a role leaves its members on their base role (custom_role_id is SET NULL)."""

    entity_type = "driveRole"
    fields = ("drive_id", "name", "description", "color", "is_default", "permissions", "position")

    def _load(self, entity_id: str) -> DriveRole | None:
        return self.repo.get_drive_role(entity_id)

    def _create(self, entity_id: str, state: dict[str, Any]) -> None:
        self.repo.add(
            DriveRole(
                id=entity_id,
                drive_id=state["drive_id"],
                name=state.get("name") or "Restored Role",
                description=state.get("description"),
                color=state.get("color"),
                is_default=bool(state.get("is_default", False)),
                permissions=state.get("permissions") or {},
                position=state.get("position") or 0,
                updated_at=utc_now_iso(),
            )
        )

    def _update(self, row: DriveRole, state: dict[str, Any]) -> None:
        row.updated_at = utc_now_iso()
        super()._update(row, state)


RESTORER_PLUGIN = RestorerPlugin(
    entity_type="driveRole",
    description="Restores custom drive roles and their page permission maps.",
    factory=DriveRoleRestorer,
    aliases=("role",),
)

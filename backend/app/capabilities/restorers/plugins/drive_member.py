from __future__ import annotations

from typing import Any

from app.capabilities.restorers.base import SnapshotRestorer
from app.capabilities.restorers.interfaces import RestorerPlugin
from app.db.models.drive_member import DriveMember


class DriveMemberRestorer(SnapshotRestorer):
    entity_type = "driveMember"
    fields = ("drive_id", "user_id", "role")

    def _load(self, entity_id: str) -> DriveMember | None:
        return self.repo.get_drive_member(entity_id)

    def _create(self, entity_id: str, state: dict[str, Any]) -> None:
        self.repo.add(
            DriveMember(
                id=entity_id,
                drive_id=state["drive_id"],
                user_id=state["user_id"],
                role=state.get("role") or "MEMBER",
            )
        )


RESTORER_PLUGIN = RestorerPlugin(
    entity_type="driveMember",
    description="Re-adds removed members, removes added members and resets roles.",
    factory=DriveMemberRestorer,
    aliases=("member",),
)

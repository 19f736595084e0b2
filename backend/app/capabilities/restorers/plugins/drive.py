from __future__ import annotations

from typing import Any

from app.capabilities.restorers.base import SnapshotRestorer
from app.capabilities.restorers.interfaces import RestorerPlugin
from app.db.models.drive import Drive
from app.utils.time import utc_now_iso


class DriveRestorer(SnapshotRestorer):
    """Drives go to the trash with their pages rather than being deleted."""

    entity_type = "drive"
    fields = ("name", "is_trashed")

    def _load(self, entity_id: str) -> Drive | None:
        return self.repo.get_drive(entity_id)

    def _create(self, entity_id: str, state: dict[str, Any]) -> None:
        is_trashed = bool(state.get("is_trashed", False))
        now = utc_now_iso()
        self.repo.add(
            Drive(
                id=entity_id,
                name=state.get("name") or "Restored drive",
                owner_id=state["owner_id"],
                created_at=now,
                is_trashed=is_trashed,
                trashed_at=now if is_trashed else None,
            )
        )

    def _update(self, row: Drive, state: dict[str, Any]) -> None:
        if "is_trashed" in state:
            row.trashed_at = utc_now_iso() if state["is_trashed"] else None
        super()._update(row, state)

    def _remove(self, row: Drive) -> None:
        now = utc_now_iso()
        for page in self.repo.list_drive_pages(row.id):
            if page.is_trashed:
                continue
            page.is_trashed = True
            page.trashed_at = now
            page.updated_at = now
        row.is_trashed = True
        row.trashed_at = now
        self.repo.flush()

    def _removed_state(self, current: dict[str, Any]) -> dict[str, Any] | None:
        return {**current, "is_trashed": True}


RESTORER_PLUGIN = RestorerPlugin(
    entity_type="drive",
    description="Restores drive name and trash state; undoing a creation trashes the drive and its pages.",
    factory=DriveRestorer,
)

from __future__ import annotations

from typing import Any

from app.capabilities.restorers.base import SnapshotRestorer
from app.capabilities.restorers.interfaces import RestoreOutcome, RestorerPlugin
from app.db.models.page import Page
from app.utils.time import utc_now_iso


class PageRestorer(SnapshotRestorer):
    """Pages are never hard-deleted: undoing a creation trashes the page."""

    entity_type = "page"
    fields = ("title", "content", "parent_id", "is_trashed")

    def _load(self, entity_id: str) -> Page | None:
        return self.repo.get_page(entity_id)

    def snapshot(self, entity_id: str) -> dict[str, Any] | None:
        state = super().snapshot(entity_id)
        if state is not None:
            # Carried for the parent drive check, never compared or restored.
            state["drive_id"] = self._load(entity_id).drive_id
        return state

    def check(
        self, current: dict[str, Any] | None, expected_state: dict[str, Any] | None
    ) -> RestoreOutcome:
        outcome = super().check(current, expected_state)
        if not outcome.ok or current is None or not current.get("drive_id"):
            return outcome
        drive = self.repo.get_drive(current["drive_id"])
        if drive is None:
            return RestoreOutcome("conflict", "Parent drive has been deleted")
        if drive.is_trashed:
            return RestoreOutcome("conflict", "Parent drive is in trash")
        return outcome

    def _create(self, entity_id: str, state: dict[str, Any]) -> None:
        now = utc_now_iso()
        self.repo.add(
            Page(
                id=entity_id,
                drive_id=state.get("drive_id"),
                parent_id=state.get("parent_id"),
                title=state.get("title") or "Untitled",
                content=state.get("content") or "",
                is_trashed=bool(state.get("is_trashed", False)),
                created_at=now,
                updated_at=now,
            )
        )

    def _update(self, row: Page, state: dict[str, Any]) -> None:
        if "is_trashed" in state:
            row.trashed_at = utc_now_iso() if state["is_trashed"] else None
        row.updated_at = utc_now_iso()
        super()._update(row, state)

    def _remove(self, row: Page) -> None:
        # Children move up to the grandparent so the tree stays connected.
        for child in self.repo.list_child_pages(row.id):
            child.parent_id = row.parent_id
        row.is_trashed = True
        row.trashed_at = utc_now_iso()
        row.updated_at = row.trashed_at
        self.repo.flush()

    def _removed_state(self, current: dict[str, Any]) -> dict[str, Any] | None:
        return {**current, "is_trashed": True}


RESTORER_PLUGIN = RestorerPlugin(
    entity_type="page",
    description="Restores page title, content, placement and trash state.",
    factory=PageRestorer,
)

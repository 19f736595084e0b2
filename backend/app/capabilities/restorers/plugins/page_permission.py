from __future__ import annotations

from typing import Any

from app.capabilities.restorers.base import SnapshotRestorer
from app.capabilities.restorers.interfaces import RestorerPlugin
from app.db.models.page_permission import PagePermission


class PagePermissionRestorer(SnapshotRestorer):
    entity_type = "pagePermission"
    fields = ("page_id", "user_id", "can_view", "can_edit", "can_share")

    def _load(self, entity_id: str) -> PagePermission | None:
        return self.repo.get_page_permission(entity_id)

    def _create(self, entity_id: str, state: dict[str, Any]) -> None:
        self.repo.add(
            PagePermission(
                id=entity_id,
                page_id=state["page_id"],
                user_id=state["user_id"],
                can_view=bool(state.get("can_view", True)),
                can_edit=bool(state.get("can_edit", False)),
                can_share=bool(state.get("can_share", False)),
            )
        )


RESTORER_PLUGIN = RestorerPlugin(
    entity_type="pagePermission",
    description="Re-grants, revokes or resets page-level permissions.",
    factory=PagePermissionRestorer,
    aliases=("permission",),
)

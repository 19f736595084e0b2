from __future__ import annotations

from typing import Any

from app.capabilities.restorers.base import SnapshotRestorer
from app.capabilities.restorers.interfaces import RestorerPlugin
from app.db.models.calendar_event import CalendarEvent


class CalendarEventRestorer(SnapshotRestorer):
    entity_type = "calendarEvent"
    fields = ("drive_id", "page_id", "title", "description", "location", "start_at", "end_at")

    def _load(self, entity_id: str) -> CalendarEvent | None:
        return self.repo.get_calendar_event(entity_id)

    def _create(self, entity_id: str, state: dict[str, Any]) -> None:
        self.repo.add(
            CalendarEvent(
                id=entity_id,
                drive_id=state.get("drive_id"),
                page_id=state.get("page_id"),
                title=state.get("title") or "Untitled event",
                description=state.get("description"),
                location=state.get("location"),
                start_at=state["start_at"],
                end_at=state["end_at"],
            )
        )


RESTORER_PLUGIN = RestorerPlugin(
    entity_type="calendarEvent",
    description="Restores, recreates or removes calendar events.",
    factory=CalendarEventRestorer,
)

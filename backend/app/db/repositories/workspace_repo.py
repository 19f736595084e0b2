from __future__ import annotations

from sqlalchemy import select

from app.db.models.calendar_event import CalendarEvent
from app.db.models.drive import Drive
from app.db.models.drive_member import DriveMember
from app.db.models.drive_role import DriveRole
from app.db.models.page import Page
from app.db.models.page_permission import PagePermission
from app.db.repositories.base_repo import BaseRepository


class WorkspaceRepository(BaseRepository):
    """Lookups over the workspace entities that AI actions can change."""

    def get_drive(self, drive_id: str) -> Drive | None:
        return self.db.get(Drive, drive_id)

    def get_page(self, page_id: str) -> Page | None:
        return self.db.get(Page, page_id)

    def get_page_permission(self, permission_id: str) -> PagePermission | None:
        return self.db.get(PagePermission, permission_id)

    def get_drive_member(self, member_id: str) -> DriveMember | None:
        return self.db.get(DriveMember, member_id)

    def get_drive_role(self, role_id: str) -> DriveRole | None:
        return self.db.get(DriveRole, role_id)

    def get_calendar_event(self, event_id: str) -> CalendarEvent | None:
        return self.db.get(CalendarEvent, event_id)

    def find_drive_member(self, drive_id: str, user_id: str) -> DriveMember | None:
        stmt = select(DriveMember).where(
            DriveMember.drive_id == drive_id,
            DriveMember.user_id == user_id,
        )
        return self.db.scalars(stmt).first()

    def find_page_permission(self, page_id: str, user_id: str) -> PagePermission | None:
        stmt = select(PagePermission).where(
            PagePermission.page_id == page_id,
            PagePermission.user_id == user_id,
        )
        return self.db.scalars(stmt).first()

    def list_child_pages(self, parent_id: str) -> list[Page]:
        stmt = select(Page).where(Page.parent_id == parent_id).order_by(Page.created_at.asc())
        return list(self.db.scalars(stmt).all())

    def list_drive_pages(self, drive_id: str) -> list[Page]:
        stmt = select(Page).where(Page.drive_id == drive_id)
        return list(self.db.scalars(stmt).all())

    def add(self, entity: object) -> None:
        self.db.add(entity)
        self.db.flush()

    def delete(self, entity: object) -> None:
        self.db.delete(entity)
        self.db.flush()

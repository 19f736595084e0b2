from app.db.models.activity_event import ActivityEvent
from app.db.models.calendar_event import CalendarEvent
from app.db.models.chat_message import ChatMessage
from app.db.models.drive import Drive
from app.db.models.drive_member import DriveMember
from app.db.models.drive_role import DriveRole
from app.db.models.page import Page
from app.db.models.page_permission import PagePermission

__all__ = [
    "ActivityEvent",
    "CalendarEvent",
    "ChatMessage",
    "Drive",
    "DriveMember",
    "DriveRole",
    "Page",
    "PagePermission",
]

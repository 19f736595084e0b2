"""Builders for isolated workspaces; every call gets fresh ids so tests never collide."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy.orm import Session

from app.db.models.drive import Drive
from app.db.models.drive_member import DriveMember
from app.db.models.page import Page
from app.db.repositories.activity_repo import ActivityRepository
from app.db.repositories.message_repo import MessageRepository

BASE_TIME = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


def ts(seconds: int) -> str:
    return (BASE_TIME + timedelta(seconds=seconds)).isoformat()


@dataclass
class Workspace:
    suffix: str
    owner_id: str
    drive_id: str
    page_id: str
    conversation_id: str

    def id(self, name: str) -> str:
        return f"{name}-{self.suffix}"


def make_workspace(db: Session, *, content: str = "new", owner_id: str | None = None) -> Workspace:
    suffix = uuid4().hex[:10]
    ws = Workspace(
        suffix=suffix,
        owner_id=owner_id or f"owner-{suffix}",
        drive_id=f"drive-{suffix}",
        page_id=f"page-{suffix}",
        conversation_id=f"conv-{suffix}",
    )
    now = ts(0)
    db.add(Drive(id=ws.drive_id, name="Team drive", owner_id=ws.owner_id, created_at=now))
    db.flush()
    db.add(
        Page(
            id=ws.page_id,
            drive_id=ws.drive_id,
            title="Roadmap",
            content=content,
            is_trashed=False,
            created_at=now,
            updated_at=now,
        )
    )
    db.flush()
    return ws


def add_page(db: Session, ws: Workspace, name: str, *, content: str = "", title: str = "Notes") -> str:
    page_id = ws.id(name)
    db.add(
        Page(
            id=page_id,
            drive_id=ws.drive_id,
            title=title,
            content=content,
            is_trashed=False,
            created_at=ts(0),
            updated_at=ts(0),
        )
    )
    db.flush()
    return page_id


def add_member(db: Session, ws: Workspace, user_id: str, *, role: str = "MEMBER") -> str:
    member_id = ws.id(f"member-{user_id}")
    db.add(DriveMember(id=member_id, drive_id=ws.drive_id, user_id=user_id, role=role))
    db.flush()
    return member_id


def add_message(
    db: Session,
    ws: Workspace,
    name: str,
    *,
    role: str,
    at: int,
    user_id: str | None = None,
) -> str:
    message = MessageRepository(db).create_message(
        message_id=ws.id(name),
        conversation_id=ws.conversation_id,
        page_id=ws.page_id,
        user_id=user_id,
        role=role,
        content=f"{role} message {name}",
        created_at=ts(at),
    )
    return message.id


def add_activity(
    db: Session,
    ws: Workspace,
    *,
    at: int,
    before: dict | None,
    after: dict | None,
    entity_type: str = "page",
    entity_id: str | None = None,
    action_type: str = "update",
    is_ai: bool = True,
    description: str | None = None,
) -> str:
    event = ActivityRepository(db).append(
        action_type=action_type,
        entity_type=entity_type,
        entity_id=entity_id or ws.page_id,
        user_id=ws.owner_id,
        page_id=ws.page_id,
        drive_id=ws.drive_id,
        ai_conversation_id=ws.conversation_id if is_ai else None,
        is_ai_action=is_ai,
        before_state=before,
        after_state=after,
        description=description or f"{action_type} {entity_type}",
        created_at=ts(at),
    )
    return event.id


def conversation_turn(db: Session, ws: Workspace) -> dict[str, str]:
    """M3 (AI, t=100), M4 (user, t=110), M5 (AI, t=120) after an older exchange."""
    ids = {
        "m1": add_message(db, ws, "m1", role="user", at=80, user_id=ws.owner_id),
        "m2": add_message(db, ws, "m2", role="assistant", at=90),
        "m3": add_message(db, ws, "m3", role="assistant", at=100),
        "m4": add_message(db, ws, "m4", role="user", at=110, user_id=ws.owner_id),
        "m5": add_message(db, ws, "m5", role="assistant", at=120),
    }
    return ids

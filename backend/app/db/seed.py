from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.db.base import Base
from app.db.models.drive import Drive
from app.db.models.drive_member import DriveMember
from app.db.models.page import Page
from app.db.repositories.activity_repo import ActivityRepository
from app.db.repositories.message_repo import MessageRepository
from app.utils.time import utc_now_iso

logger = logging.getLogger(__name__)

DEMO_USER_ID = "user-1"
DEMO_DRIVE_ID = "drive-1"
DEMO_PAGE_ID = "page-1"
DEMO_CONVERSATION_ID = "conv-1"


def _ensure_schema(db: Session) -> None:
    """Create missing tables on fresh databases that have not been migrated yet."""
    bind = db.get_bind()
    existing = set(inspect(bind).get_table_names())
    # Importing models ensures all declarative mappings are registered.
    import app.db.models  # noqa: F401

    missing = [name for name in Base.metadata.tables if name not in existing]
    if missing:
        Base.metadata.create_all(bind=bind, checkfirst=True)
        logger.info("Created missing database tables during startup seed: %s", ", ".join(sorted(missing)))


def seed_demo_workspace(db: Session) -> None:
    """One drive, one page and an AI conversation with a single AI page edit."""
    if db.get(Drive, DEMO_DRIVE_ID) is not None:
        return

    now = utc_now_iso()
    db.add(Drive(id=DEMO_DRIVE_ID, name="Demo drive", owner_id=DEMO_USER_ID, created_at=now))
    db.add(DriveMember(id="member-1", drive_id=DEMO_DRIVE_ID, user_id=DEMO_USER_ID, role="OWNER"))
    db.add(
        Page(
            id=DEMO_PAGE_ID,
            drive_id=DEMO_DRIVE_ID,
            title="Welcome",
            content="new",
            is_trashed=False,
            created_at=now,
            updated_at=now,
        )
    )
    db.flush()

    messages = MessageRepository(db)
    messages.create_message(
        message_id="msg-demo-user",
        conversation_id=DEMO_CONVERSATION_ID,
        page_id=DEMO_PAGE_ID,
        user_id=DEMO_USER_ID,
        role="user",
        content="Please rewrite the welcome page",
        created_at="2024-01-15T10:00:00+00:00",
    )
    messages.create_message(
        message_id="msg-demo-ai",
        conversation_id=DEMO_CONVERSATION_ID,
        page_id=DEMO_PAGE_ID,
        role="assistant",
        content="Done, the page has been rewritten.",
        created_at="2024-01-15T10:00:10+00:00",
    )
    ActivityRepository(db).append(
        event_id="act-demo-edit",
        action_type="update",
        entity_type="page",
        entity_id=DEMO_PAGE_ID,
        user_id=DEMO_USER_ID,
        page_id=DEMO_PAGE_ID,
        drive_id=DEMO_DRIVE_ID,
        ai_conversation_id=DEMO_CONVERSATION_ID,
        is_ai_action=True,
        before_state={"content": "old"},
        after_state={"content": "new"},
        description="AI rewrote page content",
        created_at="2024-01-15T10:00:05+00:00",
    )


def seed_app_data(db: Session) -> None:
    _ensure_schema(db)
    if get_settings().seed_demo_workspace:
        seed_demo_workspace(db)

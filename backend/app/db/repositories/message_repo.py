from __future__ import annotations

import json
from typing import Any

from sqlalchemy import func, select, update

from app.db.models.chat_message import ChatMessage
from app.db.repositories.base_repo import BaseRepository
from app.utils.ids import generate_id
from app.utils.time import normalize_ts, utc_now_iso


class MessageRepository(BaseRepository):
    def get_message(self, message_id: str) -> ChatMessage | None:
        return self.db.get(ChatMessage, message_id)

    def get_active_message(self, message_id: str) -> ChatMessage | None:
        stmt = select(ChatMessage).where(
            ChatMessage.id == message_id,
            ChatMessage.is_active.is_(True),
        )
        return self.db.scalars(stmt).first()

    def list_messages(
        self, conversation_id: str, *, include_inactive: bool = False
    ) -> list[ChatMessage]:
        stmt = select(ChatMessage).where(ChatMessage.conversation_id == conversation_id)
        if not include_inactive:
            stmt = stmt.where(ChatMessage.is_active.is_(True))
        stmt = stmt.order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
        return list(self.db.scalars(stmt).all())

    def get_conversation_owner(self, conversation_id: str) -> str | None:
        """Author of the earliest user-attributed message in the conversation."""
        stmt = (
            select(ChatMessage.user_id)
            .where(
                ChatMessage.conversation_id == conversation_id,
                ChatMessage.user_id.is_not(None),
            )
            .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    def count_active_since(self, conversation_id: str, cutoff_ts: str) -> int:
        cutoff = normalize_ts(cutoff_ts)
        stmt = select(func.count()).select_from(ChatMessage).where(
            ChatMessage.conversation_id == conversation_id,
            ChatMessage.is_active.is_(True),
            ChatMessage.created_at >= cutoff,
        )
        return int(self.db.scalar(stmt) or 0)

    def soft_delete_since(
        self, conversation_id: str, cutoff_ts: str, *, deleted_at: str | None = None
    ) -> int:
        """Deactivate every active message at or after the cutoff in one statement."""
        cutoff = normalize_ts(cutoff_ts)
        result = self.db.execute(
            update(ChatMessage)
            .where(
                ChatMessage.conversation_id == conversation_id,
                ChatMessage.is_active.is_(True),
                ChatMessage.created_at >= cutoff,
            )
            .values(is_active=False, deleted_at=deleted_at or utc_now_iso())
            .execution_options(synchronize_session="fetch")
        )
        return int(result.rowcount or 0)

    def create_message(
        self,
        *,
        conversation_id: str,
        role: str,
        content: str,
        created_at: str | None = None,
        page_id: str | None = None,
        user_id: str | None = None,
        message_id: str | None = None,
        tool_calls: list[dict[str, Any]] | None = None,
        tool_results: list[dict[str, Any]] | None = None,
    ) -> ChatMessage:
        message = ChatMessage(
            id=message_id or generate_id("msg"),
            conversation_id=conversation_id,
            page_id=page_id,
            user_id=user_id,
            role=role,
            content=content,
            is_active=True,
            created_at=normalize_ts(created_at) if created_at else utc_now_iso(),
            tool_calls_json=json.dumps(tool_calls) if tool_calls is not None else None,
            tool_results_json=json.dumps(tool_results) if tool_results is not None else None,
        )
        self.db.add(message)
        self.db.flush()
        return message

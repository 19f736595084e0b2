from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from app.core.container import get_container
from app.services.undo.types import UndoCheckpoint, UndoResult

logger = logging.getLogger(__name__)

Subscriber = asyncio.Queue[dict[str, Any]]


class EventBus:
    """In-process fan-out of conversation events to subscribed clients.

    Every event published for a conversation gets the next value of that
    conversation's ``sequence`` counter, so clients can spot gaps. A subscriber
    whose queue is full is dropped rather than blocking the publisher.
    """

    def __init__(self, *, max_sub_queue: int = 200):
        self._subscribers: dict[str, set[Subscriber]] = defaultdict(set)
        self._sequence: dict[str, int] = defaultdict(int)
        self._max_sub_queue = max_sub_queue
        self._lock = asyncio.Lock()

    async def subscribe(self, conversation_id: str) -> Subscriber:
        queue: Subscriber = asyncio.Queue(maxsize=self._max_sub_queue)
        async with self._lock:
            self._subscribers[conversation_id].add(queue)
        return queue

    async def unsubscribe(self, conversation_id: str, queue: Subscriber) -> None:
        async with self._lock:
            subscribers = self._subscribers.get(conversation_id)
            if subscribers is None:
                return
            subscribers.discard(queue)
            if not subscribers:
                del self._subscribers[conversation_id]

    async def publish(self, conversation_id: str, event: dict[str, Any]) -> dict[str, Any]:
        async with self._lock:
            self._sequence[conversation_id] += 1
            stamped = {
                **event,
                "conversationId": conversation_id,
                "timestamp": event.get("timestamp", datetime.now(timezone.utc).isoformat()),
                "sequence": self._sequence[conversation_id],
            }

            subscribers = self._subscribers.get(conversation_id, set())
            overflowing = []
            for queue in subscribers:
                try:
                    queue.put_nowait(stamped)
                except asyncio.QueueFull:
                    overflowing.append(queue)
            for queue in overflowing:
                subscribers.discard(queue)
            if overflowing:
                logger.warning(
                    "Dropped %d slow subscriber(s) conversation_id=%s",
                    len(overflowing),
                    conversation_id,
                )
            return stamped

    async def subscriber_count(self, conversation_id: str) -> int:
        async with self._lock:
            return len(self._subscribers.get(conversation_id, set()))


def undo_applied_event(checkpoint: UndoCheckpoint, result: UndoResult) -> dict[str, Any]:
    """Payload telling open clients to reload the conversation after an undo."""
    return {
        "type": "undo_applied",
        "messageId": checkpoint.origin_message_id,
        "pageId": checkpoint.page_id,
        "mode": result.mode,
        "messagesDeleted": result.messages_deleted,
        "activitiesRolledBack": result.activities_rolled_back,
    }


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    container = get_container()
    if container is not None and container.event_bus is not None:
        return container.event_bus
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus

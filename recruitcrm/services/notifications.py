"""
Notification feed.

Every change to a user's notifications is pushed to that user's live
subscribers together with the fresh unread count, so the client badge can
update without polling.
"""

import asyncio
from collections import defaultdict
from typing import Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from recruitcrm.core.logging import get_logger
from recruitcrm.models import Notification

logger = get_logger("notifications")


class NotificationHub:
    """Per-user fan-out of notification events to live subscribers."""

    def __init__(self):
        self._subscribers: dict[int, set[tuple[asyncio.AbstractEventLoop, asyncio.Queue]]] = defaultdict(set)

    def subscribe(self, user_id: int) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers[user_id].add((asyncio.get_running_loop(), queue))
        logger.info(f"User {user_id} subscribed to notifications")
        return queue

    def unsubscribe(self, user_id: int, queue: asyncio.Queue) -> None:
        subscribers = self._subscribers.get(user_id, set())
        for entry in [entry for entry in subscribers if entry[1] is queue]:
            subscribers.discard(entry)
        if not subscribers:
            self._subscribers.pop(user_id, None)
        logger.info(f"User {user_id} unsubscribed from notifications")

    def publish(self, user_id: int, message: dict) -> int:
        """Queue ``message`` for every subscriber of ``user_id``; returns how many."""
        subscribers = list(self._subscribers.get(user_id, ()))
        for loop, queue in subscribers:
            loop.call_soon_threadsafe(queue.put_nowait, message)
        return len(subscribers)


hub = NotificationHub()


def unread_count(db: Session, user_id: int) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .count()
    )


def serialize_notification(notification: Notification) -> dict:
    return jsonable_encoder({
        "id": notification.id,
        "user_id": notification.user_id,
        "title": notification.title,
        "message": notification.message,
        "is_read": notification.is_read,
        "created_at": notification.created_at,
        "updated_at": notification.updated_at,
    })


def announce(
    db: Session,
    user_id: int,
    event: str,
    notification: Optional[Notification] = None,
) -> None:
    """Publish a change event ('INSERT', 'UPDATE', 'DELETE') with the new unread count."""
    message: dict = {"event": event, "unread_count": unread_count(db, user_id)}
    if notification is not None and event == "INSERT":
        message["notification"] = serialize_notification(notification)
    hub.publish(user_id, message)

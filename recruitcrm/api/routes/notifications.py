"""
Notification API endpoints.

Users read and manage their own notifications; Admins and Editors may post a
notification to anyone. Every change is pushed over the websocket feed, and
clients without a socket poll the unread count instead.
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recruitcrm.api.routes.auth import authenticate_token, get_current_user, require_editor
from recruitcrm.core.config import settings
from recruitcrm.core.errors import APIError, database_error
from recruitcrm.core.logging import get_logger
from recruitcrm.core.security import decode_access_token
from recruitcrm.core.session import sessions
from recruitcrm.db.session import SessionLocal, get_db
from recruitcrm.models import Notification, User
from recruitcrm.services.notifications import (
    announce,
    hub,
    serialize_notification,
    unread_count,
)

logger = get_logger("notifications")

router = APIRouter()

# How often an idle feed re-checks that its session is still signed in
SESSION_CHECK_SECONDS = 30


# ============== Pydantic Schemas ==============


class NotificationCreate(BaseModel):
    user_id: int
    title: str
    message: Optional[str] = None


# ============== Helper Functions ==============


def _get_own_notification(db: Session, notification_id: int, user: User) -> Notification:
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user.id)
        .first()
    )
    if not notification:
        raise APIError(status.HTTP_404_NOT_FOUND, "Notification not found")
    return notification


def _set_read(db: Session, notification: Notification, is_read: bool) -> dict:
    notification.is_read = is_read
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to update notification")

    db.refresh(notification)
    announce(db, notification.user_id, "UPDATE")
    return serialize_notification(notification)


# ============== API Endpoints ==============


@router.get("")
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Notification).filter(Notification.user_id == current_user.id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    try:
        rows = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()
    except SQLAlchemyError as e:
        raise database_error(e, "Failed to fetch notifications")

    return {"data": [serialize_notification(row) for row in rows]}


@router.get("/unread-count")
async def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Unread badge count; ``poll_interval`` is the fallback polling period in seconds."""
    return {
        "count": unread_count(db, current_user.id),
        "poll_interval": settings.NOTIFICATION_POLL_SECONDS,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_notification(
    body: NotificationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    if not body.title.strip():
        raise APIError(status.HTTP_400_BAD_REQUEST, "Title is required")

    recipient = db.query(User).filter(User.id == body.user_id).first()
    if not recipient:
        raise APIError(status.HTTP_404_NOT_FOUND, "User not found")

    notification = Notification(
        user_id=recipient.id,
        title=body.title.strip(),
        message=body.message,
    )
    db.add(notification)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to create notification")

    db.refresh(notification)
    logger.info(f"Notification {notification.id} created for user {recipient.id} by {current_user.email}")
    announce(db, recipient.id, "INSERT", notification)
    return serialize_notification(notification)


@router.post("/read-all")
async def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        updated = (
            db.query(Notification)
            .filter(Notification.user_id == current_user.id, Notification.is_read.is_(False))
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to update notifications")

    if updated:
        announce(db, current_user.id, "UPDATE")
    return {"updated": updated}


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _set_read(db, _get_own_notification(db, notification_id, current_user), True)


@router.post("/{notification_id}/unread")
async def mark_unread(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _set_read(db, _get_own_notification(db, notification_id, current_user), False)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    notification = _get_own_notification(db, notification_id, current_user)
    db.delete(notification)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to delete notification")

    announce(db, current_user.id, "DELETE")
    return {"message": "Notification deleted", "notification_id": notification_id}


# ============== Live Feed ==============


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


@router.websocket("/ws")
async def notification_feed(websocket: WebSocket, token: str = Query("")):
    """
    Live unread-count feed for the token's user.

    The first message is ``{"event": "SNAPSHOT", "unread_count": n}``; after
    that one message per INSERT/UPDATE/DELETE on the user's notifications.
    The socket is closed with 1008 when the token or session is not valid,
    and later as soon as the session is signed out or idles out.
    """
    db = SessionLocal()
    try:
        user = authenticate_token(db, token)
        user_id = user.id
        session_id = decode_access_token(token)["sid"]
        count = unread_count(db, user_id)
    except APIError as e:
        logger.warning(f"Rejected notification feed: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    finally:
        db.close()

    await websocket.accept()
    queue = hub.subscribe(user_id)
    disconnect = asyncio.create_task(_wait_for_disconnect(websocket))
    next_message = None
    try:
        await websocket.send_json({"event": "SNAPSHOT", "unread_count": count})
        while True:
            if next_message is None:
                next_message = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait(
                {disconnect, next_message},
                timeout=SESSION_CHECK_SECONDS,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if disconnect in done:
                break

            # Signed out, idled out, password changed or user removed
            if not sessions.active(session_id):
                logger.info(f"Closing notification feed for user {user_id}: session ended")
                await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                break

            if next_message in done:
                await websocket.send_json(next_message.result())
                next_message = None
    except WebSocketDisconnect:
        pass
    finally:
        disconnect.cancel()
        if next_message is not None:
            next_message.cancel()
        hub.unsubscribe(user_id, queue)

"""
services/notification_service.py

In-app notifications. Each insert is pushed to ``user-{user_id}``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models import Notification
from app.services.realtime_service import realtime_service
from app.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def user_channel(user_id) -> str:
    return f"user-{user_id}"


def send_notification(
    db:      Session,
    user_id: UUID,
    title:   str,
    message: str,
    data:    Optional[Dict[str, Any]] = None,
) -> Notification:
    notification = Notification(user_id=user_id, title=title, message=message, data=data or {})
    db.add(notification)
    db.commit()
    db.refresh(notification)

    realtime_service.try_broadcast(
        user_channel(user_id),
        "notification",
        {
            "id":         str(notification.id),
            "title":      notification.title,
            "message":    notification.message,
            "data":       notification.data,
            "created_at": notification.created_at.isoformat(),
        },
    )
    return notification


def list_unread(db: Session, user_id: UUID, limit: int = 50) -> List[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .order_by(Notification.created_at.desc())
        .limit(limit)
        .all()
    )


def mark_read(db: Session, user_id: UUID, notification_id: UUID) -> Notification:
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .first()
    )
    if not notification:
        raise NotFoundError("Notification")
    notification.is_read = True
    db.commit()
    return notification


def mark_all_read(db: Session, user_id: UUID) -> int:
    count = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return count

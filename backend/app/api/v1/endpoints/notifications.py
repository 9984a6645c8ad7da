"""
api/v1/endpoints/notifications.py

In-app notifications and raw realtime broadcasts.

Endpoints:
  POST /api/notifications/send                  — insert + push to user-{id}
  GET  /api/notifications                       — caller's unread notifications
  POST /api/notifications/read-all              — mark everything read
  POST /api/notifications/{notification_id}/read
  POST /api/realtime/trigger                    — broadcast an arbitrary event
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.db.database import get_db
from app.db.schemas import AuthUser
from app.services import notification_service
from app.services.realtime_service import realtime_service
from app.utils.exceptions import BadRequestError, BroadcastError
from app.utils.helpers import row_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])


class NotificationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[UUID]           = Field(default=None, alias="userId")
    title:   Optional[str]            = None
    message: Optional[str]            = None
    data:    Optional[Dict[str, Any]] = None


class TriggerRequest(BaseModel):
    channel: Optional[str]            = None
    event:   Optional[str]            = None
    data:    Optional[Dict[str, Any]] = None


@router.post("/notifications/send")
def send_notification(
    body: NotificationRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if body.user_id is None or not body.title or not body.message:
        raise BadRequestError("Missing required fields")
    try:
        notification = notification_service.send_notification(
            db, body.user_id, body.title, body.message, body.data
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Send notification error: %s", e)
        raise HTTPException(status_code=500, detail="Failed to send notification")
    return {"notification": row_to_dict(notification)}


@router.get("/notifications")
def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = notification_service.list_unread(db, current_user.id, limit=limit)
    return {"notifications": [row_to_dict(n) for n in rows]}


@router.post("/notifications/read-all")
def mark_all_notifications_read(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    count = notification_service.mark_all_read(db, current_user.id)
    return {"success": True, "updated": count}


@router.post("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification_service.mark_read(db, current_user.id, notification_id)
    return {"success": True}


@router.post("/realtime/trigger")
def trigger_event(
    body: TriggerRequest,
    current_user: AuthUser = Depends(get_current_user),
):
    if not body.channel or not body.event or body.data is None:
        raise BadRequestError("Missing required fields: channel, event, data")
    try:
        realtime_service.broadcast(body.channel, body.event, body.data)
    except httpx.HTTPError as e:
        logger.error("Realtime trigger error: %s", e)
        raise BroadcastError(str(e))
    return {"success": True}

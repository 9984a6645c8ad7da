"""
api/v1/endpoints/messages.py

Direct messaging between clients and chamber members.

Endpoints:
  POST /api/connect                                — client opens a conversation with a lawyer
  POST /api/messages/send                          — post into a thread
  GET  /api/messages/threads                       — caller's threads
  GET  /api/messages/threads/{thread_id}/messages  — paged messages, newest first
  POST /api/messages/threads/{thread_id}/read      — read receipt
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.db.database import get_db
from app.db.schemas import AuthUser
from app.services import messaging_service
from app.utils.exceptions import BadRequestError, UnauthorizedError
from app.utils.helpers import row_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["messages"])


class ConnectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lawyer_id:  Optional[UUID] = Field(default=None, alias="lawyerId")
    chamber_id: Optional[UUID] = Field(default=None, alias="chamberId")
    message:    Optional[str]  = None


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: Optional[str]  = Field(default=None, alias="conversationId")
    sender_id:       Optional[UUID] = Field(default=None, alias="senderId")
    content:         Optional[str]  = None


@router.post("/connect")
def connect_with_lawyer(
    body: ConnectRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if body.lawyer_id is None or body.chamber_id is None or not body.message:
        raise BadRequestError("Missing required fields")

    thread = messaging_service.connect(
        db, current_user, body.lawyer_id, body.chamber_id, body.message
    )
    return {"success": True, "threadId": str(thread.id)}


@router.post("/messages/send")
def send_message(
    body: SendMessageRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not body.conversation_id or not body.content:
        raise BadRequestError("Missing required fields")
    if body.sender_id is not None and body.sender_id != current_user.id:
        raise UnauthorizedError("Cannot send messages as another user")

    try:
        message = messaging_service.send_message(
            db, body.conversation_id, current_user.id, body.content
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Send message error: %s", e)
        raise HTTPException(status_code=500, detail="Failed to send message")
    return {"message": row_to_dict(message)}


@router.get("/messages/threads")
def list_threads(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    threads = messaging_service.list_user_threads(db, current_user.id)
    return {"threads": messaging_service.thread_payloads(db, threads)}


@router.get("/messages/threads/{thread_id}/messages")
def list_thread_messages(
    thread_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    thread = messaging_service.get_thread(db, thread_id)
    messaging_service.ensure_participant(thread, current_user.id)
    messages = messaging_service.list_messages(db, thread.id, limit=limit, offset=offset)
    return {"messages": [row_to_dict(m) for m in messages]}


@router.post("/messages/threads/{thread_id}/read")
def mark_thread_read(
    thread_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    thread = messaging_service.get_thread(db, thread_id)
    messaging_service.ensure_participant(thread, current_user.id)
    receipt = messaging_service.mark_thread_read(db, thread, current_user.id)
    return {"read": row_to_dict(receipt)}

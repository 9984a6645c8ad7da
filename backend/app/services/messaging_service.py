"""
services/messaging_service.py

Threads, messages and read receipts, plus the client -> lawyer
connection flow.

Threads carry no chamber id; chamber visibility is derived from the
participants' memberships.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import String, cast, or_, type_coerce
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models import Message, MessageThread, ThreadRead, User
from app.db.schemas import AuthUser
from app.services import lead_service, membership_service, notification_service
from app.services.realtime_service import realtime_service
from app.utils.exceptions import BadRequestError, NotFoundError, UnauthorizedError
from app.utils.helpers import parse_uuid, row_to_dict, utcnow

logger = logging.getLogger(__name__)

DIRECT_SUBJECT = "Direct Message"


def conversation_channel(thread_id) -> str:
    return f"conversation-{thread_id}"


def participant_set(thread: MessageThread) -> set:
    return {str(p) for p in (thread.participant_ids or [])}


def has_participant(db: Session, user_id: Any):
    """SQL predicate: ``user_id`` is in the thread's ``participant_ids`` array."""
    if db.get_bind().dialect.name == "postgresql":
        return type_coerce(MessageThread.participant_ids, JSONB).contains([str(user_id)])
    # JSON is stored as text elsewhere; ids are quoted array elements
    return cast(MessageThread.participant_ids, String).like(f'%"{user_id}"%')


def get_thread(db: Session, thread_id: Any) -> MessageThread:
    thread_uuid = parse_uuid(thread_id)
    thread = db.query(MessageThread).filter(MessageThread.id == thread_uuid).first() if thread_uuid else None
    if not thread:
        raise NotFoundError("Thread")
    return thread


def ensure_participant(thread: MessageThread, user_id: UUID) -> None:
    if str(user_id) not in participant_set(thread):
        raise UnauthorizedError("Access denied to this conversation")


# ============================================================================
# Threads
# ============================================================================

def find_direct_thread(db: Session, participant_ids: List[str]) -> Optional[MessageThread]:
    """Case-less thread whose participants are exactly ``participant_ids``."""
    wanted = set(participant_ids)
    query = db.query(MessageThread).filter(MessageThread.case_id.is_(None))
    for participant_id in wanted:
        query = query.filter(has_participant(db, participant_id))
    candidates = query.order_by(MessageThread.created_at.asc()).all()
    for thread in candidates:
        if participant_set(thread) == wanted:
            return thread
    return None


def get_or_create_direct_thread(db: Session, user_a: UUID, user_b: UUID, created_by: UUID) -> MessageThread:
    participant_ids = sorted([str(user_a), str(user_b)])
    thread = find_direct_thread(db, participant_ids)
    if thread is None:
        thread = MessageThread(
            subject=DIRECT_SUBJECT,
            participant_ids=participant_ids,
            created_by=created_by,
        )
        db.add(thread)
        db.flush()
        logger.info("Direct thread created: %s", thread.id)
    return thread


def _participants(db: Session, ids: Iterable[str]) -> Dict[str, User]:
    uuids = [u for u in (parse_uuid(i) for i in ids) if u is not None]
    if not uuids:
        return {}
    users = db.query(User).filter(User.id.in_(uuids)).all()
    return {str(u.id): u for u in users}


def _participant_summary(user: User) -> Dict[str, Any]:
    return {
        "id":         str(user.id),
        "full_name":  user.full_name,
        "role":       user.role,
        "avatar_url": user.avatar_url,
    }


def thread_payloads(db: Session, threads: List[MessageThread]) -> List[Dict[str, Any]]:
    """Threads with participant profiles and the client/lawyer picked by role."""
    all_ids = {p for t in threads for p in participant_set(t)}
    users = _participants(db, all_ids)
    out = []
    for thread in threads:
        participants = [
            _participant_summary(users[p]) for p in (str(x) for x in thread.participant_ids or []) if p in users
        ]
        payload = row_to_dict(thread)
        payload["participants"] = participants
        payload["client"] = next((p for p in participants if p["role"] == "client"), None)
        payload["lawyer"] = next((p for p in participants if p["role"] == "lawyer"), None)
        out.append(payload)
    return out


def list_user_threads(db: Session, user_id: UUID) -> List[MessageThread]:
    return (
        db.query(MessageThread)
        .filter(has_participant(db, user_id))
        .order_by(MessageThread.updated_at.desc())
        .all()
    )


# ============================================================================
# Messages
# ============================================================================

def _touch(thread: MessageThread) -> None:
    thread.updated_at = utcnow()


def send_message(db: Session, thread_id: Any, sender_id: UUID, content: str) -> Message:
    """Insert, bump the thread, broadcast ``message`` on the thread channel."""
    thread = get_thread(db, thread_id)
    ensure_participant(thread, sender_id)

    message = Message(thread_id=thread.id, sender_id=sender_id, content=content)
    db.add(message)
    _touch(thread)
    db.commit()
    db.refresh(message)

    realtime_service.try_broadcast(
        conversation_channel(thread.id),
        "message",
        {
            "id":         str(message.id),
            "content":    message.content,
            "sender_id":  str(message.sender_id),
            "created_at": message.created_at.isoformat(),
        },
    )
    return message


def list_messages(db: Session, thread_id: UUID, limit: int = 50, offset: int = 0) -> List[Message]:
    return (
        db.query(Message)
        .filter(Message.thread_id == thread_id)
        .order_by(Message.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def mark_thread_read(db: Session, thread: MessageThread, user_id: UUID) -> ThreadRead:
    receipt = (
        db.query(ThreadRead)
        .filter(ThreadRead.thread_id == thread.id, ThreadRead.user_id == user_id)
        .first()
    )
    if receipt is None:
        receipt = ThreadRead(thread_id=thread.id, user_id=user_id)
        db.add(receipt)
    receipt.last_read_at = utcnow()
    db.commit()
    db.refresh(receipt)
    return receipt


# ============================================================================
# Connect
# ============================================================================

def connect(db: Session, auth_user: AuthUser, lawyer_id: UUID, chamber_id: UUID, message: str) -> MessageThread:
    """
    A client reaches out to a lawyer: reconcile the chamber lead, open (or
    reuse) the direct thread, post the first message and notify the lawyer.
    """
    if not membership_service.is_active_member(db, lawyer_id, chamber_id):
        raise BadRequestError("Lawyer is not an active member of this chamber")

    action = lead_service.reconcile_contact_lead(db, auth_user, chamber_id, lawyer_id, message)
    logger.info("Connect lead reconciliation: %s (chamber=%s)", action, chamber_id)

    thread = get_or_create_direct_thread(db, auth_user.id, lawyer_id, created_by=auth_user.id)
    db.add(Message(thread_id=thread.id, sender_id=auth_user.id, content=message))
    _touch(thread)
    db.commit()
    db.refresh(thread)

    try:
        notification_service.send_notification(
            db,
            lawyer_id,
            "New Connection Request",
            f"{auth_user.full_name or 'A client'} wants to connect with you.",
            {"threadId": str(thread.id), "type": "connection_request"},
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Notification failed: %s", e)

    return thread


# ============================================================================
# Chamber oversight
# ============================================================================

def chamber_threads(db: Session, chamber_id: UUID) -> List[MessageThread]:
    """Threads with at least one active member of the chamber, newest first."""
    member_ids = membership_service.active_member_ids(db, chamber_id)
    if not member_ids:
        return []
    return (
        db.query(MessageThread)
        .filter(or_(*[has_participant(db, m) for m in member_ids]))
        .order_by(MessageThread.updated_at.desc())
        .all()
    )


def chamber_thread_messages(db: Session, chamber_id: UUID, thread_id: Any) -> Dict[str, Any]:
    thread = get_thread(db, thread_id)
    member_ids = {str(m) for m in membership_service.active_member_ids(db, chamber_id)}
    if not participant_set(thread) & member_ids:
        raise UnauthorizedError("Access denied to this communication node")

    messages = (
        db.query(Message)
        .filter(Message.thread_id == thread.id)
        .order_by(Message.created_at.desc())
        .all()
    )
    reads = db.query(ThreadRead).filter(ThreadRead.thread_id == thread.id).all()
    return {
        "messages": [row_to_dict(m) for m in messages],
        "reads":    [row_to_dict(r) for r in reads],
    }

"""
services/lead_service.py

Lead pipeline: reconciliation from inbound client contact, the chamber
lead board, and admin CRUD.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models import Lead, LeadStatus, MessageThread, User
from app.db.schemas import AuthUser, LeadCreate, LeadUpdate
from app.services import membership_service
from app.utils.exceptions import BadRequestError, NotFoundError
from app.utils.helpers import parse_uuid, row_to_dict, truncate_text, utcnow

logger = logging.getLogger(__name__)

DIRECT_MESSAGE_SOURCE = "Direct Message"
NOTE_PREVIEW_CHARS = 500


def lead_name(auth_user: AuthUser, fallback: str = "New Client") -> str:
    if auth_user.full_name:
        return auth_user.full_name
    if auth_user.email:
        return auth_user.email.split("@")[0]
    return fallback


def find_live_lead(db: Session, chamber_id: UUID, email: Optional[str]) -> Optional[Lead]:
    return (
        db.query(Lead)
        .filter(
            Lead.chamber_id == chamber_id,
            Lead.email == email,
            Lead.deleted_at.is_(None),
        )
        .order_by(Lead.created_at.desc())
        .first()
    )


def reconcile_contact_lead(
    db:         Session,
    auth_user:  AuthUser,
    chamber_id: UUID,
    lawyer_id:  UUID,
    message:    str,
) -> str:
    """
    Make sure a client reaching out has a lead in the chamber.

    Returns the action taken: ``created``, ``reactivated`` or ``skipped``.
    Caller commits.
    """
    preview = truncate_text(message, NOTE_PREVIEW_CHARS)
    lead = find_live_lead(db, chamber_id, auth_user.email)

    if lead is None:
        db.add(Lead(
            chamber_id=chamber_id,
            name=lead_name(auth_user),
            email=auth_user.email,
            source=DIRECT_MESSAGE_SOURCE,
            status=LeadStatus.new.value,
            assigned_to=lawyer_id,
            notes=f"Initial message: {preview}",
        ))
        return "created"

    if lead.status == LeadStatus.lost.value:
        lead.status = LeadStatus.new.value
        lead.updated_at = utcnow()
        lead.notes = f"Lead reached out again: {preview}"
        return "reactivated"

    logger.info("Lead already exists with status: %s, skipping creation.", lead.status)
    return "skipped"


def sync_thread_lead(db: Session, auth_user: AuthUser, thread_id: Any) -> Dict[str, Any]:
    """Capture a lead for the other side of a two-party thread."""
    thread_uuid = parse_uuid(thread_id)
    thread = db.query(MessageThread).filter(MessageThread.id == thread_uuid).first() if thread_uuid else None
    if not thread:
        raise NotFoundError("Thread")

    participants = [str(p) for p in (thread.participant_ids or [])]
    if len(participants) != 2:
        return {"message": "Not a direct message"}

    other = next((p for p in participants if p != str(auth_user.id)), None)
    lawyer_id = parse_uuid(other)
    if lawyer_id is None:
        raise BadRequestError("Other participant not found")

    membership = membership_service.get_active_membership(db, lawyer_id)
    if membership is None:
        return {"message": "No active chamber for lawyer"}

    if find_live_lead(db, membership.chamber_id, auth_user.email) is not None:
        return {"success": True, "action": "already_exists"}

    db.add(Lead(
        chamber_id=membership.chamber_id,
        name=lead_name(auth_user, fallback="Client"),
        email=auth_user.email,
        source=DIRECT_MESSAGE_SOURCE,
        status=LeadStatus.new.value,
        assigned_to=lawyer_id,
        notes=f"Lead captured from direct message thread: {thread.id}",
    ))
    db.commit()
    logger.info("Lead captured from thread %s (chamber=%s)", thread.id, membership.chamber_id)
    return {"success": True, "action": "lead_created"}


# ============================================================================
# Board
# ============================================================================

def lead_payload(lead: Lead) -> Dict[str, Any]:
    payload = row_to_dict(lead)
    assignee = lead.assignee
    payload["assignee"] = (
        {"full_name": assignee.full_name, "avatar_url": assignee.avatar_url} if assignee else None
    )
    return payload


def list_admin_leads(db: Session, user_id: UUID) -> List[Lead]:
    chamber_ids = membership_service.get_admin_chamber_ids(db, user_id)
    if not chamber_ids:
        return []
    return (
        db.query(Lead)
        .filter(Lead.chamber_id.in_(chamber_ids), Lead.deleted_at.is_(None))
        .order_by(Lead.created_at.desc())
        .all()
    )


def _check_assignee(db: Session, chamber_id: UUID, assignee_id: Optional[UUID]) -> None:
    if assignee_id is not None and not membership_service.is_active_member(db, assignee_id, chamber_id):
        raise BadRequestError("Assignee must be an active chamber member")


def create_lead(db: Session, data: LeadCreate) -> Lead:
    if not data.chamber_id or not data.name:
        raise BadRequestError("Chamber ID and name are required")
    _check_assignee(db, data.chamber_id, data.assigned_to)
    lead = Lead(
        chamber_id=data.chamber_id,
        name=data.name,
        email=data.email,
        phone=data.phone,
        source=data.source,
        notes=data.notes,
        assigned_to=data.assigned_to,
        status=LeadStatus.new.value,
    )
    db.add(lead)
    db.commit()
    db.refresh(lead)
    return lead


def get_lead(db: Session, lead_id: UUID) -> Lead:
    lead = db.query(Lead).filter(Lead.id == lead_id, Lead.deleted_at.is_(None)).first()
    if not lead:
        raise NotFoundError("Lead")
    return lead


def update_lead(db: Session, lead: Lead, data: LeadUpdate) -> Lead:
    if data.status is not None:
        if data.status not in {s.value for s in LeadStatus}:
            raise BadRequestError("Invalid lead status")
        lead.status = data.status
    if data.notes is not None:
        lead.notes = data.notes
    if data.assigned_to is not None:
        _check_assignee(db, lead.chamber_id, data.assigned_to)
        lead.assigned_to = data.assigned_to
    db.commit()
    db.refresh(lead)
    return lead


def delete_lead(db: Session, lead: Lead) -> None:
    lead.deleted_at = utcnow()
    db.commit()

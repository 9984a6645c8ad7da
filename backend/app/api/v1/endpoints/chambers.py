"""
api/v1/endpoints/chambers.py

Chamber lifecycle, settings, client roster and the admin views over
conversations and leads.

Endpoints:
  GET    /api/chambers/conversations                        — threads touching the chamber
  GET    /api/chambers/conversations/{thread_id}/messages   — messages + read receipts
  GET    /api/chambers/leads                                — lead board of admin chambers
  POST   /api/chambers                                      — create chamber
  GET    /api/chambers/{chamber_id}                         — chamber with settings
  PATCH  /api/chambers/{chamber_id}                         — update chamber
  PUT    /api/chambers/{chamber_id}/settings                — upsert settings
  GET    /api/chambers/{chamber_id}/audit-logs              — audit trail
  GET    /api/chambers/{chamber_id}/clients                 — client roster
  GET    /api/chambers/{chamber_id}/clients/stats           — {total, thisMonth}
  POST   /api/chambers/{chamber_id}/clients                 — add client
  DELETE /api/chambers/{chamber_id}/clients/{user_id}       — remove client
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.db.database import get_db
from app.db.schemas import (
    AuthUser,
    ChamberCreate,
    ChamberSettingsUpdate,
    ChamberUpdate,
    ClientCreate,
)
from app.services import chamber_service, lead_service, messaging_service
from app.services.audit_service import audit_service
from app.services.membership_service import (
    ensure_chamber_admin,
    ensure_chamber_member,
    get_admin_membership,
)
from app.utils.helpers import row_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chambers", tags=["chambers"])


# ============================================================================
# Admin views (declared before /{chamber_id})
# ============================================================================

@router.get("/conversations")
def list_chamber_conversations(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    membership = get_admin_membership(db, current_user.id)
    threads = messaging_service.chamber_threads(db, membership.chamber_id)
    return {"conversations": messaging_service.thread_payloads(db, threads)}


@router.get("/conversations/{thread_id}/messages")
def get_chamber_conversation_messages(
    thread_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    membership = get_admin_membership(db, current_user.id)
    return messaging_service.chamber_thread_messages(db, membership.chamber_id, thread_id)


@router.get("/leads")
def list_chamber_leads(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    leads = lead_service.list_admin_leads(db, current_user.id)
    return {"leads": [lead_service.lead_payload(lead) for lead in leads]}


# ============================================================================
# Chamber
# ============================================================================

@router.post("", status_code=200)
def create_chamber(
    body: ChamberCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    chamber = chamber_service.create_chamber(db, current_user, body)
    return {"chamber": row_to_dict(chamber), "success": True}


@router.get("/{chamber_id}")
def get_chamber(
    chamber_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_chamber_member(db, current_user.id, chamber_id)
    chamber = chamber_service.get_chamber(db, chamber_id)
    return {"chamber": chamber_service.chamber_payload(chamber)}


@router.patch("/{chamber_id}")
def update_chamber(
    chamber_id: UUID,
    body: ChamberUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_chamber_admin(db, current_user.id, chamber_id)
    chamber = chamber_service.update_chamber(
        db, chamber_id, body.model_dump(exclude_unset=True), current_user.id
    )
    return {"chamber": row_to_dict(chamber)}


@router.put("/{chamber_id}/settings")
def update_chamber_settings(
    chamber_id: UUID,
    body: ChamberSettingsUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_chamber_admin(db, current_user.id, chamber_id)
    row = chamber_service.upsert_settings(
        db, chamber_id, body.model_dump(exclude_unset=True), current_user.id
    )
    return {"settings": row_to_dict(row)}


@router.get("/{chamber_id}/audit-logs")
def get_chamber_audit_logs(
    chamber_id: UUID,
    limit: int = Query(100, ge=1, le=500),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_chamber_admin(db, current_user.id, chamber_id)
    logs = audit_service.get_chamber_logs(db, chamber_id, limit=limit)
    return {"logs": [row_to_dict(log) for log in logs]}


# ============================================================================
# Clients
# ============================================================================

@router.get("/{chamber_id}/clients")
def list_clients(
    chamber_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_chamber_member(db, current_user.id, chamber_id)
    return {"clients": chamber_service.list_clients(db, chamber_id)}


@router.get("/{chamber_id}/clients/stats")
def get_client_stats(
    chamber_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_chamber_member(db, current_user.id, chamber_id)
    return chamber_service.client_stats(db, chamber_id)


@router.post("/{chamber_id}/clients")
def create_client(
    chamber_id: UUID,
    body: ClientCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_chamber_admin(db, current_user.id, chamber_id)
    user = chamber_service.create_client(db, chamber_id, body, current_user.id)
    return {"client": row_to_dict(user), "success": True}


@router.delete("/{chamber_id}/clients/{user_id}")
def remove_client(
    chamber_id: UUID,
    user_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_chamber_admin(db, current_user.id, chamber_id)
    chamber_service.remove_client(db, chamber_id, user_id, current_user.id)
    return {"success": True}

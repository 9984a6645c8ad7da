"""
api/v1/endpoints/leads.py

Lead capture from direct messages and admin lead management.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.db.database import get_db
from app.db.schemas import AuthUser, LeadCreate, LeadUpdate
from app.services import lead_service
from app.services.membership_service import ensure_chamber_admin
from app.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])


class SyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    thread_id: Optional[str] = Field(default=None, alias="threadId")


@router.post("/sync")
def sync_thread_lead(
    body: SyncRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not body.thread_id:
        raise BadRequestError("Thread ID required")
    return lead_service.sync_thread_lead(db, current_user, body.thread_id)


@router.post("")
def create_lead(
    body: LeadCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if body.chamber_id is None:
        raise BadRequestError("Chamber ID is required")
    ensure_chamber_admin(db, current_user.id, body.chamber_id)
    lead = lead_service.create_lead(db, body)
    return {"lead": lead_service.lead_payload(lead)}


@router.patch("/{lead_id}/status")
def update_lead(
    lead_id: UUID,
    body: LeadUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    lead = lead_service.get_lead(db, lead_id)
    ensure_chamber_admin(db, current_user.id, lead.chamber_id)
    lead = lead_service.update_lead(db, lead, body)
    return {"lead": lead_service.lead_payload(lead)}


@router.delete("/{lead_id}")
def delete_lead(
    lead_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    lead = lead_service.get_lead(db, lead_id)
    ensure_chamber_admin(db, current_user.id, lead.chamber_id)
    lead_service.delete_lead(db, lead)
    return {"success": True}

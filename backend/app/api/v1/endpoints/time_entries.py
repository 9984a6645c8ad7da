"""
api/v1/endpoints/time_entries.py

Time billing.

Endpoints:
  GET    /api/time-entries               — caller's entries
  POST   /api/time-entries               — log time
  GET    /api/time-entries/chamber       — entries on the admin's chamber cases
  GET    /api/time-entries/summary       — totals, scope=mine|chamber
  PATCH  /api/time-entries/{entry_id}    — edit own entry
  DELETE /api/time-entries/{entry_id}    — soft delete own entry
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.db.database import get_db
from app.db.schemas import AuthUser, TimeEntryCreate, TimeEntryUpdate, TimeSummary
from app.services import time_service
from app.services.membership_service import get_admin_membership

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/time-entries", tags=["time-entries"])


@router.get("")
def list_own_entries(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entries = time_service.user_entries(db, current_user.id)
    return {"entries": [time_service.entry_payload(e) for e in entries]}


@router.post("")
def create_entry(
    body: TimeEntryCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entry = time_service.create_entry(db, current_user.id, body)
    return {"entry": time_service.entry_payload(entry)}


@router.get("/chamber")
def list_chamber_entries(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    membership = get_admin_membership(db, current_user.id)
    entries = time_service.chamber_entries(db, membership.chamber_id)
    return {"entries": [time_service.entry_payload(e) for e in entries]}


@router.get("/summary", response_model=TimeSummary)
def get_summary(
    scope: str = Query("mine", pattern="^(mine|chamber)$"),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if scope == "chamber":
        membership = get_admin_membership(db, current_user.id)
        entries = time_service.chamber_entries(db, membership.chamber_id)
    else:
        entries = time_service.user_entries(db, current_user.id)
    return time_service.summarize(entries)


@router.patch("/{entry_id}")
def update_entry(
    entry_id: UUID,
    body: TimeEntryUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entry = time_service.get_own_entry(db, entry_id, current_user.id)
    entry = time_service.update_entry(db, entry, body)
    return {"entry": time_service.entry_payload(entry)}


@router.delete("/{entry_id}")
def delete_entry(
    entry_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entry = time_service.get_own_entry(db, entry_id, current_user.id)
    time_service.delete_entry(db, entry)
    return {"success": True}

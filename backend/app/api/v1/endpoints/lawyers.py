"""
api/v1/endpoints/lawyers.py

Lawyer roster, invitations, onboarding and the public directory.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.db.database import get_db
from app.db.schemas import AuthUser
from app.services import lawyer_service
from app.services.membership_service import (
    ensure_chamber_admin,
    ensure_chamber_member,
    get_admin_chamber_ids,
    get_admin_membership,
)
from app.utils.exceptions import AuthProviderError, BadRequestError, UnauthorizedError
from app.utils.helpers import row_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lawyers", tags=["lawyers"])


class InviteRequest(BaseModel):
    email:          Optional[str]  = None
    full_name:      Optional[str]  = None
    phone:          Optional[str]  = None
    specialization: Optional[str]  = None
    bar_number:     Optional[str]  = None
    chamber_id:     Optional[UUID] = None


class StatusRequest(BaseModel):
    status:     Optional[str]  = None
    chamber_id: Optional[UUID] = None


class OnboardRequest(BaseModel):
    user_id:          Optional[UUID]  = None
    bar_number:       Optional[str]   = None
    specialization:   Optional[str]   = None
    bio:              Optional[str]   = None
    experience_years: Optional[int]   = None
    phone:            Optional[str]   = None
    avatar_url:       Optional[str]   = None
    hourly_rate:      Optional[float] = None


class ResendRequest(BaseModel):
    lawyer_id: Optional[UUID] = None
    email:     Optional[str]  = None


def _admin_chamber_scope(db: Session, user_id: UUID, chamber_id: Optional[UUID]) -> List[UUID]:
    """Chambers an admin write may touch: the named one, else every chamber the caller administers."""
    if chamber_id is not None:
        ensure_chamber_admin(db, user_id, chamber_id)
        return [chamber_id]
    get_admin_membership(db, user_id)
    return get_admin_chamber_ids(db, user_id)


# ============================================================================
# Invitations
# ============================================================================

@router.post("/invite")
def invite_lawyer(
    body: InviteRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not body.email or not body.full_name:
        raise BadRequestError("Email and full name are required")
    if body.chamber_id is None:
        raise BadRequestError("Chamber ID is required")
    ensure_chamber_admin(db, current_user.id, body.chamber_id)

    try:
        return lawyer_service.invite_lawyer(
            db,
            chamber_id=body.chamber_id,
            email=body.email,
            full_name=body.full_name,
            invited_by=current_user.id,
            phone=body.phone,
            specialization=body.specialization,
            bar_number=body.bar_number,
        )
    except AuthProviderError as e:
        logger.error("Invite error: %s", e.message)
        raise HTTPException(status_code=500, detail=e.message)


@router.get("/invite")
def list_lawyers(
    chamber_id: Optional[UUID] = Query(None),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if chamber_id is None:
        raise BadRequestError("Chamber ID is required")
    ensure_chamber_member(db, current_user.id, chamber_id)
    lawyers = lawyer_service.list_lawyers(db, chamber_id)
    return {"lawyers": [row_to_dict(u) for u in lawyers]}


@router.post("/resend-invite")
def resend_invite(
    body: ResendRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if body.lawyer_id is None or not body.email:
        raise BadRequestError("Lawyer ID and email are required")
    try:
        lawyer_service.resend_invite(db, body.lawyer_id, body.email)
    except AuthProviderError as e:
        logger.error("Resend invite error: %s", e.message)
        raise HTTPException(status_code=500, detail="Failed to send invitation email")
    return {"success": True, "message": "Invitation email sent successfully"}


# ============================================================================
# Onboarding
# ============================================================================

@router.post("/onboard")
def onboard_lawyer(
    body: OnboardRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if body.user_id is None:
        raise BadRequestError("User ID is required")
    if not body.bar_number:
        raise BadRequestError("Bar/License number is required")
    if body.user_id != current_user.id:
        raise UnauthorizedError("You can only complete your own onboarding")

    lawyer_service.onboard_lawyer(
        db,
        user_id=body.user_id,
        bar_number=body.bar_number,
        specialization=body.specialization,
        bio=body.bio,
        experience_years=body.experience_years,
        phone=body.phone,
        avatar_url=body.avatar_url,
        hourly_rate=body.hourly_rate,
    )
    return {"success": True, "message": "Lawyer profile saved successfully"}


@router.get("/directory")
def lawyer_directory(
    practice_area: Optional[str] = Query(None),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"chambers": lawyer_service.lawyer_directory(db, practice_area)}


# ============================================================================
# Membership
# ============================================================================

@router.delete("/{lawyer_id}")
def remove_lawyer(
    lawyer_id: UUID,
    chamber_id: Optional[UUID] = Query(None),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    chamber_ids = _admin_chamber_scope(db, current_user.id, chamber_id)
    removed = lawyer_service.remove_lawyer(db, lawyer_id, chamber_ids, current_user.id)
    return {"success": True, "removed": removed}


@router.patch("/{lawyer_id}")
def set_lawyer_status(
    lawyer_id: UUID,
    body: StatusRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    chamber_ids = _admin_chamber_scope(db, current_user.id, body.chamber_id)
    updated = lawyer_service.set_lawyer_status(
        db, lawyer_id, body.status, chamber_ids, current_user.id
    )
    return {"success": True, "updated": updated}

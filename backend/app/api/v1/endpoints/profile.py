"""
api/v1/endpoints/profile.py

The caller's own profile and session bootstrap.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.db.database import get_db
from app.db.schemas import AuthUser, ProfileUpsert
from app.services import profile_service

router = APIRouter(tags=["profile"])


@router.get("/profile")
def get_profile(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = profile_service.get_profile(db, current_user.id)
    if user is None:
        return {"profile": None, "exists": False}
    return {"profile": profile_service.build_profile_payload(db, user), "exists": True}


@router.post("/profile")
def upsert_profile(
    body: ProfileUpsert,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = profile_service.upsert_profile(db, current_user, role=body.role, full_name=body.full_name)
    return {"profile": profile_service.build_profile_payload(db, user), "exists": True}


@router.get("/auth/session")
def get_session(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Resolved profile (created on first contact) and where to land."""
    return profile_service.resolve_session(db, current_user)

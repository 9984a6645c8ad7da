"""
services/profile_service.py

Profile resolution for authenticated identities.

The auth provider owns credentials; the ``users`` table holds the
application profile. A caller without a profile row gets one created
from their token metadata on first contact.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models import ChamberMember, Client, Lawyer, User, UserRole
from app.db.schemas import AuthUser
from app.utils.helpers import row_to_dict
from app.utils.validators import normalize_role

logger = logging.getLogger(__name__)

DASHBOARD_PATHS = {
    UserRole.chamber_admin.value: "/dashboard/chambers-admin",
    UserRole.lawyer.value:        "/dashboard/lawyer",
    UserRole.client.value:        "/dashboard/client",
}


def dashboard_path(role: Optional[str]) -> str:
    return DASHBOARD_PATHS.get(role or "", "/dashboard")


def get_profile(db: Session, user_id) -> Optional[User]:
    # Soft-deleted profiles are still returned to their owner
    return db.query(User).filter(User.id == user_id).first()


def upsert_profile(
    db:        Session,
    auth_user: AuthUser,
    role:      Optional[str] = None,
    full_name: Optional[str] = None,
) -> User:
    """
    Create or update the caller's own ``users`` row.
    Role precedence: explicit role, then token metadata; unknown -> client.
    """
    resolved_role = normalize_role(role or auth_user.user_metadata.get("role"))
    name = full_name or auth_user.full_name or ""

    user = get_profile(db, auth_user.id)
    if user is None:
        user = User(id=auth_user.id)
        db.add(user)
    user.email = auth_user.email
    user.full_name = name
    user.role = resolved_role

    db.commit()
    db.refresh(user)
    logger.info("Profile upserted: %s (role=%s)", user.id, user.role)
    return user


def build_profile_payload(db: Session, user: User) -> Dict[str, Any]:
    """Profile row merged with lawyer/client sub-profiles and active memberships."""
    lawyer = db.query(Lawyer).filter(Lawyer.user_id == user.id).first()
    client = db.query(Client).filter(Client.user_id == user.id).first()
    chambers = (
        db.query(ChamberMember)
        .filter(ChamberMember.user_id == user.id, ChamberMember.is_active.is_(True))
        .all()
    )
    payload = row_to_dict(user)
    payload["lawyerProfile"] = row_to_dict(lawyer)
    payload["clientProfile"] = row_to_dict(client)
    payload["chambers"] = [row_to_dict(m) for m in chambers]
    return payload


def metadata_profile(auth_user: AuthUser) -> Dict[str, Any]:
    """Profile synthesized from token metadata when the table is unavailable."""
    return {
        "id": str(auth_user.id),
        "email": auth_user.email,
        "full_name": auth_user.full_name or auth_user.email or "",
        "role": normalize_role(auth_user.user_metadata.get("role")),
    }


def resolve_session(db: Session, auth_user: AuthUser) -> Dict[str, Any]:
    """
    Fetch-or-create the caller's profile.

    Falls back to a metadata-only profile if the write fails, so a
    signed-in user always lands on a dashboard.
    """
    source = "database"
    try:
        user = get_profile(db, auth_user.id)
        if user is None:
            logger.info("Profile missing for %s, creating", auth_user.id)
            user = upsert_profile(db, auth_user)
            source = "created"
        profile = row_to_dict(user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Profile resolution failed for %s: %s", auth_user.id, e)
        profile = metadata_profile(auth_user)
        source = "metadata"

    return {
        "profile": profile,
        "source": source,
        "dashboard_path": dashboard_path(profile.get("role")),
    }

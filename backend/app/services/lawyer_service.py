"""
services/lawyer_service.py

Lawyer roster management: invitations through the auth provider,
onboarding, membership status and the public directory.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models import (
    Chamber,
    ChamberMember,
    Lawyer,
    MemberRole,
    User,
    UserRole,
    UserStatus,
)
from app.services.audit_service import audit_service
from app.services.auth_admin_service import auth_admin_service
from app.utils.exceptions import AuthProviderError, BadRequestError, NotFoundError
from app.utils.helpers import parse_uuid, row_to_dict

logger = logging.getLogger(__name__)

MEMBERSHIP_STATUSES = (UserStatus.active.value, UserStatus.inactive.value, UserStatus.pending.value)


def onboarding_redirect() -> str:
    return f"{settings.SITE_URL}/auth/onboarding"


def _ensure_lawyer_membership(db: Session, chamber_id: UUID, user_id: UUID) -> None:
    membership = (
        db.query(ChamberMember)
        .filter(ChamberMember.chamber_id == chamber_id, ChamberMember.user_id == user_id)
        .first()
    )
    if membership is None:
        db.add(ChamberMember(
            chamber_id=chamber_id,
            user_id=user_id,
            role=MemberRole.lawyer.value,
            is_active=True,
        ))
    else:
        membership.is_active = True


# ============================================================================
# Invite
# ============================================================================

def invite_lawyer(
    db:             Session,
    chamber_id:     UUID,
    email:          str,
    full_name:      str,
    invited_by:     UUID,
    phone:          Optional[str] = None,
    specialization: Optional[str] = None,
    bar_number:     Optional[str] = None,
) -> Dict[str, Any]:
    """
    Attach an existing chamberless user, or invite a new one by email.

    Existing users get a recovery email as their setup link; its failure
    is logged only. New users are invited through the auth admin API and
    get a ``pending`` profile.
    """
    existing = db.query(User).filter(User.email == email).first()

    if existing is not None:
        if existing.chamber_id:
            raise BadRequestError("This lawyer is already associated with a chamber")

        existing.chamber_id = chamber_id
        existing.phone = phone
        existing.specialization = specialization
        existing.bar_number = bar_number
        existing.role = UserRole.lawyer.value
        existing.status = UserStatus.active.value
        _ensure_lawyer_membership(db, chamber_id, existing.id)
        db.commit()

        try:
            auth_admin_service.send_password_reset(email, redirect_to=onboarding_redirect())
        except AuthProviderError as e:
            logger.warning("Failed to send invitation email to existing user %s: %s", email, e.message)

        audit_service.log_action(db, invited_by, "lawyer.attach", "user", existing.id, {"email": email})
        return {
            "success": True,
            "message": "Existing user added to chamber and invitation email sent",
            "user_id": str(existing.id),
        }

    try:
        auth_user = auth_admin_service.invite_user_by_email(
            email,
            data={"full_name": full_name, "role": UserRole.lawyer.value},
            redirect_to=onboarding_redirect(),
        )
    except AuthProviderError as e:
        if "already been registered" in e.message:
            raise BadRequestError("An account with this email already exists.")
        raise

    user_id = parse_uuid(auth_user.get("id") or (auth_user.get("user") or {}).get("id"))
    if user_id is None:
        raise RuntimeError("Failed to create user")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        user = User(id=user_id)
        db.add(user)
    user.email = email
    user.full_name = full_name
    user.role = UserRole.lawyer.value
    user.chamber_id = chamber_id
    user.phone = phone
    user.specialization = specialization
    user.bar_number = bar_number
    user.status = UserStatus.pending.value
    db.flush()
    _ensure_lawyer_membership(db, chamber_id, user.id)
    db.commit()

    logger.info("User invited successfully: %s", email)
    audit_service.log_action(db, invited_by, "lawyer.invite", "user", user.id, {"email": email})
    return {
        "success": True,
        "message": "Lawyer invited and email sent successfully.",
        "user_id": str(user.id),
    }


def list_lawyers(db: Session, chamber_id: UUID) -> List[User]:
    return (
        db.query(User)
        .filter(User.role == UserRole.lawyer.value, User.chamber_id == chamber_id)
        .order_by(User.created_at.desc())
        .all()
    )


# ============================================================================
# Membership status
# ============================================================================

def _get_user(db: Session, user_id: UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("Lawyer")
    return user


def remove_lawyer(db: Session, user_id: UUID, chamber_ids: List[UUID], removed_by: UUID) -> int:
    """Delete the lawyer's membership rows in ``chamber_ids`` only."""
    _get_user(db, user_id)
    count = (
        db.query(ChamberMember)
        .filter(ChamberMember.user_id == user_id, ChamberMember.chamber_id.in_(chamber_ids))
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Removed %d membership(s) for lawyer %s", count, user_id)
    audit_service.log_action(db, removed_by, "lawyer.remove", "user", user_id, {"chamber_ids": [str(c) for c in chamber_ids]})
    return count


def set_lawyer_status(
    db:         Session,
    user_id:    UUID,
    status:     Optional[str],
    chamber_ids: List[UUID],
    changed_by: UUID,
) -> int:
    if status not in MEMBERSHIP_STATUSES:
        raise BadRequestError("Valid status is required (active, inactive, pending)")
    query = db.query(ChamberMember).filter(
        ChamberMember.user_id == user_id,
        ChamberMember.chamber_id.in_(chamber_ids),
    )
    count = query.update({ChamberMember.is_active: status == UserStatus.active.value}, synchronize_session=False)
    db.commit()
    audit_service.log_action(db, changed_by, "lawyer.status", "user", user_id, {"status": status})
    return count


# ============================================================================
# Onboarding
# ============================================================================

def onboard_lawyer(
    db:               Session,
    user_id:          UUID,
    bar_number:       str,
    specialization:   Optional[str]   = None,
    bio:              Optional[str]   = None,
    experience_years: Optional[int]   = None,
    phone:            Optional[str]   = None,
    avatar_url:       Optional[str]   = None,
    hourly_rate:      Optional[float] = None,
) -> Lawyer:
    user = _get_user(db, user_id)
    user.phone = phone or None
    user.onboarding_completed = True
    if avatar_url:
        user.avatar_url = avatar_url

    profile = db.query(Lawyer).filter(Lawyer.user_id == user_id).first()
    if profile is None:
        profile = Lawyer(user_id=user_id)
        db.add(profile)
    profile.bar_number = bar_number
    profile.specialization = specialization
    profile.bio = bio or None
    profile.experience_years = experience_years or 0
    if hourly_rate is not None:
        profile.hourly_rate = hourly_rate

    db.commit()
    db.refresh(profile)
    logger.info("Lawyer onboarding completed for user: %s", user_id)
    return profile


def resend_invite(db: Session, lawyer_id: UUID, email: str) -> None:
    lawyer = (
        db.query(User)
        .filter(User.id == lawyer_id, User.role == UserRole.lawyer.value)
        .first()
    )
    if not lawyer:
        raise NotFoundError("Lawyer")

    auth_admin_service.send_password_reset(email, redirect_to=onboarding_redirect())

    if lawyer.status == UserStatus.inactive.value:
        lawyer.status = UserStatus.pending.value
        db.commit()
    logger.info("Resend invite: Email sent to %s", email)


# ============================================================================
# Directory
# ============================================================================

def _directory_profile(profile: Lawyer) -> Dict[str, Any]:
    areas = [s.strip() for s in (profile.specialization or "").split(",") if s.strip()]
    return {
        "licenseNumber":    profile.bar_number,
        "practiceAreas":    areas,
        "bio":              profile.bio,
        "experience_years": profile.experience_years,
        "hourly_rate":      profile.hourly_rate,
        "tagline":          f"{areas[0] if areas else 'Associate'} Attorney",
    }


def lawyer_directory(db: Session, practice_area: Optional[str] = None) -> List[Dict[str, Any]]:
    """Chambers with their active lawyers that have a professional profile."""
    rows = (
        db.query(ChamberMember, Chamber, User, Lawyer)
        .join(Chamber, ChamberMember.chamber_id == Chamber.id)
        .join(User, ChamberMember.user_id == User.id)
        .join(Lawyer, Lawyer.user_id == User.id)
        .filter(
            ChamberMember.is_active.is_(True),
            User.role == UserRole.lawyer.value,
            User.deleted_at.is_(None),
        )
        .order_by(Chamber.name.asc(), User.full_name.asc())
        .all()
    )

    chambers: Dict[str, Dict[str, Any]] = {}
    for member, chamber, user, profile in rows:
        lawyer_profile = _directory_profile(profile)
        if practice_area and practice_area != "All" and practice_area not in lawyer_profile["practiceAreas"]:
            continue
        entry = chambers.setdefault(str(chamber.id), {**row_to_dict(chamber), "lawyers": []})
        entry["lawyers"].append({
            "id":             str(user.id),
            "full_name":      user.full_name or "Anonymous",
            "email":          user.email,
            "phone":          user.phone,
            "avatar_url":     user.avatar_url,
            "status":         "active" if user.onboarding_completed else "pending",
            "chamber_id":     str(member.chamber_id),
            "lawyer_profile": lawyer_profile,
        })
    return list(chambers.values())

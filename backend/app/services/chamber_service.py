"""
services/chamber_service.py

Chamber (tenant) lifecycle, settings and client roster.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models import (
    Address,
    Chamber,
    ChamberMember,
    ChamberSettings,
    Client,
    MemberRole,
    User,
    UserRole,
)
from app.db.schemas import AuthUser, ChamberCreate, ClientCreate
from app.services import profile_service
from app.services.audit_service import audit_service
from app.utils.exceptions import BadRequestError, NotFoundError
from app.utils.helpers import month_start, row_to_dict, utcnow
from app.utils.validators import validate_email

logger = logging.getLogger(__name__)


# ============================================================================
# Chambers
# ============================================================================

def create_chamber(db: Session, auth_user: AuthUser, data: ChamberCreate) -> Chamber:
    """
    Create a chamber with the caller as its admin.

    Address (optional), chamber and admin membership are written in one
    transaction. The onboarding flag on the caller's profile is set
    afterwards and its failure is only logged.
    """
    if not data.name:
        raise BadRequestError("Chamber name is required")

    if profile_service.get_profile(db, auth_user.id) is None:
        profile_service.upsert_profile(db, auth_user, role=UserRole.chamber_admin.value)

    address_id = None
    if data.street_address or data.city or data.country:
        address = Address(
            street_address=data.street_address or "",
            city=data.city or "",
            state=data.state,
            postal_code=data.postal_code,
            country=data.country or "",
        )
        db.add(address)
        db.flush()
        address_id = address.id

    chamber = Chamber(
        name=data.name,
        phone=data.phone or None,
        email=data.email or auth_user.email,
        website=data.website or None,
        description=data.description or None,
        logo_url=data.logo_url or None,
        admin_id=auth_user.id,
        address_id=address_id,
    )
    db.add(chamber)
    db.flush()

    db.add(ChamberMember(
        chamber_id=chamber.id,
        user_id=auth_user.id,
        role=MemberRole.admin.value,
        is_active=True,
    ))
    db.commit()
    db.refresh(chamber)
    logger.info("Chamber created: %s (admin=%s)", chamber.id, auth_user.id)

    try:
        user = profile_service.get_profile(db, auth_user.id)
        user.onboarding_completed = True
        if user.chamber_id is None:
            user.chamber_id = chamber.id
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to mark onboarding for %s: %s", auth_user.id, e)

    audit_service.log_action(db, auth_user.id, "chamber.create", "chamber", chamber.id, {"name": chamber.name})
    return chamber


def get_chamber(db: Session, chamber_id: UUID) -> Chamber:
    chamber = db.query(Chamber).filter(Chamber.id == chamber_id).first()
    if not chamber:
        raise NotFoundError("Chamber")
    return chamber


def chamber_payload(chamber: Chamber) -> Dict[str, Any]:
    payload = row_to_dict(chamber)
    payload["chamber_settings"] = row_to_dict(chamber.settings)
    payload["address"] = row_to_dict(chamber.address)
    return payload


def update_chamber(db: Session, chamber_id: UUID, updates: Dict[str, Any], user_id: UUID) -> Chamber:
    chamber = get_chamber(db, chamber_id)
    for key, value in updates.items():
        setattr(chamber, key, value)
    db.commit()
    db.refresh(chamber)
    audit_service.log_action(db, user_id, "chamber.update", "chamber", chamber.id, updates)
    return chamber


def upsert_settings(db: Session, chamber_id: UUID, updates: Dict[str, Any], user_id: UUID) -> ChamberSettings:
    get_chamber(db, chamber_id)
    row = db.query(ChamberSettings).filter(ChamberSettings.chamber_id == chamber_id).first()
    if row is None:
        row = ChamberSettings(chamber_id=chamber_id)
        db.add(row)
    for key, value in updates.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    audit_service.log_action(db, user_id, "chamber.settings", "chamber", chamber_id, updates)
    return row


def default_hourly_rate(db: Session, chamber_id: Optional[UUID]) -> Optional[float]:
    if chamber_id is None:
        return None
    row = db.query(ChamberSettings).filter(ChamberSettings.chamber_id == chamber_id).first()
    return row.default_hourly_rate if row else None


# ============================================================================
# Clients
# ============================================================================

def _client_members(db: Session, chamber_id: UUID):
    return (
        db.query(ChamberMember, User)
        .join(User, ChamberMember.user_id == User.id)
        .filter(
            ChamberMember.chamber_id == chamber_id,
            ChamberMember.is_active.is_(True),
            User.role == UserRole.client.value,
            User.deleted_at.is_(None),
        )
        .order_by(ChamberMember.created_at.desc())
    )


def list_clients(db: Session, chamber_id: UUID) -> List[Dict[str, Any]]:
    return [
        {
            "id":         str(user.id),
            "email":      user.email,
            "full_name":  user.full_name,
            "phone":      user.phone,
            "avatar_url": user.avatar_url,
            "role":       user.role,
        }
        for _member, user in _client_members(db, chamber_id).all()
    ]


def client_stats(db: Session, chamber_id: UUID) -> Dict[str, int]:
    users = [user for _member, user in _client_members(db, chamber_id).all()]
    since = month_start()
    return {
        "total": len(users),
        "thisMonth": sum(1 for u in users if u.created_at and u.created_at >= since),
    }


def create_client(db: Session, chamber_id: UUID, data: ClientCreate, created_by: UUID) -> User:
    if not data.full_name:
        raise BadRequestError("Full name is required")
    if not validate_email(data.email or ""):
        raise BadRequestError("A valid email is required")

    if db.query(User).filter(User.email == data.email).first():
        raise BadRequestError("A user with this email already exists")

    user = User(
        email=data.email,
        full_name=data.full_name,
        phone=data.phone,
        role=UserRole.client.value,
        chamber_id=chamber_id,
    )
    db.add(user)
    db.flush()
    db.add(Client(user_id=user.id, chamber_id=chamber_id))
    db.add(ChamberMember(
        chamber_id=chamber_id,
        user_id=user.id,
        role=MemberRole.member.value,
        is_active=True,
    ))
    db.commit()
    db.refresh(user)

    logger.info("Client created: %s (chamber=%s)", user.id, chamber_id)
    audit_service.log_action(db, created_by, "client.create", "user", user.id, {"email": user.email})
    return user


def _delete_membership(db: Session, chamber_id: UUID, user_id: UUID) -> int:
    count = (
        db.query(ChamberMember)
        .filter(ChamberMember.chamber_id == chamber_id, ChamberMember.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return count


def remove_client(db: Session, chamber_id: UUID, user_id: UUID, removed_by: UUID) -> None:
    """
    Soft-delete the client profile, then drop the chamber membership.

    The two writes are separate commits; when the membership delete
    fails the soft-delete is reverted before the error propagates.
    """
    client = (
        db.query(Client)
        .filter(Client.user_id == user_id, Client.deleted_at.is_(None))
        .first()
    )
    membership = (
        db.query(ChamberMember)
        .filter(ChamberMember.chamber_id == chamber_id, ChamberMember.user_id == user_id)
        .first()
    )
    if not client or not membership:
        raise NotFoundError("Client")

    client_id = client.id
    client.deleted_at = utcnow()
    db.commit()

    try:
        _delete_membership(db, chamber_id, user_id)
    except SQLAlchemyError:
        db.rollback()
        logger.error("Membership delete failed for client %s, restoring profile", user_id)
        restored = db.query(Client).filter(Client.id == client_id).first()
        restored.deleted_at = None
        db.commit()
        raise

    logger.info("Client removed: %s (chamber=%s)", user_id, chamber_id)
    audit_service.log_action(db, removed_by, "client.remove", "user", user_id)

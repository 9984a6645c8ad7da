"""
services/membership_service.py

Chamber membership lookups used for authorization.
"""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models import Case, ChamberMember, MemberRole, User, UserRole
from app.utils.exceptions import AdminRequiredError, UnauthorizedError

ADMIN_ROLES = (MemberRole.admin.value, MemberRole.owner.value)


def get_active_membership(db: Session, user_id: UUID, chamber_id: Optional[UUID] = None) -> Optional[ChamberMember]:
    query = db.query(ChamberMember).filter(
        ChamberMember.user_id == user_id,
        ChamberMember.is_active.is_(True),
    )
    if chamber_id is not None:
        query = query.filter(ChamberMember.chamber_id == chamber_id)
    return query.order_by(ChamberMember.created_at.asc()).first()


def get_admin_membership(db: Session, user_id: UUID) -> ChamberMember:
    """Active ``admin`` membership of the caller, else 403."""
    membership = (
        db.query(ChamberMember)
        .filter(
            ChamberMember.user_id == user_id,
            ChamberMember.role == MemberRole.admin.value,
            ChamberMember.is_active.is_(True),
        )
        .first()
    )
    if not membership:
        raise AdminRequiredError()
    return membership


def get_admin_chamber_ids(db: Session, user_id: UUID) -> List[UUID]:
    rows = (
        db.query(ChamberMember.chamber_id)
        .filter(
            ChamberMember.user_id == user_id,
            ChamberMember.role.in_(ADMIN_ROLES),
            ChamberMember.is_active.is_(True),
        )
        .all()
    )
    return [r[0] for r in rows]


def active_member_ids(db: Session, chamber_id: UUID) -> List[UUID]:
    rows = (
        db.query(ChamberMember.user_id)
        .filter(ChamberMember.chamber_id == chamber_id, ChamberMember.is_active.is_(True))
        .all()
    )
    return [r[0] for r in rows]


def is_active_member(db: Session, user_id: UUID, chamber_id: UUID) -> bool:
    return get_active_membership(db, user_id, chamber_id) is not None


def ensure_chamber_member(db: Session, user_id: UUID, chamber_id: UUID) -> ChamberMember:
    membership = get_active_membership(db, user_id, chamber_id)
    if not membership:
        raise UnauthorizedError()
    return membership


def ensure_chamber_admin(db: Session, user_id: UUID, chamber_id: UUID) -> ChamberMember:
    membership = get_active_membership(db, user_id, chamber_id)
    if not membership or membership.role not in ADMIN_ROLES:
        raise AdminRequiredError()
    return membership


def ensure_case_access(db: Session, user_id: UUID, case: Case) -> None:
    """Chamber members and the case's own client may read a case."""
    if case.client_id == user_id:
        return
    ensure_chamber_member(db, user_id, case.chamber_id)


def user_role(db: Session, user_id: UUID) -> str:
    user = db.query(User).filter(User.id == user_id).first()
    return user.role if user else UserRole.client.value

"""
services/time_service.py

Time billing: entries in minutes with an hourly rate, soft delete, and
summaries over a lawyer's or a chamber's entries.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models import Case, Lawyer, TimeEntry, User
from app.db.schemas import TimeEntryCreate, TimeEntryUpdate
from app.services import chamber_service, membership_service
from app.utils.exceptions import BadRequestError, NotFoundError, UnauthorizedError
from app.utils.helpers import row_to_dict, utcnow

logger = logging.getLogger(__name__)


def resolve_rate(db: Session, user_id: UUID, case: Optional[Case]) -> float:
    """Lawyer's hourly rate, else the chamber default, else the global default."""
    lawyer = db.query(Lawyer).filter(Lawyer.user_id == user_id).first()
    if lawyer and lawyer.hourly_rate is not None:
        return lawyer.hourly_rate

    chamber_id = case.chamber_id if case else None
    if chamber_id is None:
        user = db.query(User).filter(User.id == user_id).first()
        chamber_id = user.chamber_id if user else None
    chamber_rate = chamber_service.default_hourly_rate(db, chamber_id)
    if chamber_rate is not None:
        return chamber_rate
    return settings.DEFAULT_HOURLY_RATE


def create_entry(db: Session, user_id: UUID, data: TimeEntryCreate) -> TimeEntry:
    if not data.description:
        raise BadRequestError("Description is required")
    if not data.minutes or data.minutes <= 0:
        raise BadRequestError("Minutes must be a positive number")

    case = None
    if data.case_id is not None:
        case = db.query(Case).filter(Case.id == data.case_id, Case.deleted_at.is_(None)).first()
        if case is None:
            raise NotFoundError("Case")
        membership_service.ensure_chamber_member(db, user_id, case.chamber_id)

    rate = data.rate if data.rate is not None else resolve_rate(db, user_id, case)
    entry = TimeEntry(
        case_id=data.case_id,
        user_id=user_id,
        description=data.description,
        minutes=data.minutes,
        billable=data.billable,
        rate=rate,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info("Time entry logged: %s (%d min @ %.2f)", entry.id, entry.minutes, entry.rate)
    return entry


def get_own_entry(db: Session, entry_id: UUID, user_id: UUID) -> TimeEntry:
    entry = db.query(TimeEntry).filter(TimeEntry.id == entry_id, TimeEntry.deleted_at.is_(None)).first()
    if not entry:
        raise NotFoundError("Time entry")
    if entry.user_id != user_id:
        raise UnauthorizedError()
    return entry


def update_entry(db: Session, entry: TimeEntry, data: TimeEntryUpdate) -> TimeEntry:
    changes = data.model_dump(exclude_unset=True)
    if "minutes" in changes and (not changes["minutes"] or changes["minutes"] <= 0):
        raise BadRequestError("Minutes must be a positive number")
    for key, value in changes.items():
        if value is not None:
            setattr(entry, key, value)
    db.commit()
    db.refresh(entry)
    return entry


def delete_entry(db: Session, entry: TimeEntry) -> None:
    entry.deleted_at = utcnow()
    db.commit()


def user_entries(db: Session, user_id: UUID) -> List[TimeEntry]:
    return (
        db.query(TimeEntry)
        .filter(TimeEntry.user_id == user_id, TimeEntry.deleted_at.is_(None))
        .order_by(TimeEntry.created_at.desc())
        .all()
    )


def chamber_entries(db: Session, chamber_id: UUID) -> List[TimeEntry]:
    """Entries logged against the chamber's cases."""
    return (
        db.query(TimeEntry)
        .join(Case, TimeEntry.case_id == Case.id)
        .filter(Case.chamber_id == chamber_id, TimeEntry.deleted_at.is_(None))
        .order_by(TimeEntry.created_at.desc())
        .all()
    )


def entry_payload(entry: TimeEntry) -> Dict[str, Any]:
    payload = row_to_dict(entry)
    payload["case"] = (
        {"title": entry.case.title, "case_number": entry.case.case_number, "chamber_id": str(entry.case.chamber_id)}
        if entry.case else None
    )
    payload["user"] = (
        {"full_name": entry.user.full_name, "email": entry.user.email} if entry.user else None
    )
    return payload


def summarize(entries: Iterable[TimeEntry]) -> Dict[str, float]:
    """Hours and value in the shape the dashboards consume."""
    entries = list(entries)
    total_minutes = sum(e.minutes for e in entries)
    billable_minutes = sum(e.minutes for e in entries if e.billable)
    total_value = sum((e.minutes / 60) * (e.rate or 0) for e in entries)
    return {
        "totalHours":    round(total_minutes / 60, 2),
        "billableHours": round(billable_minutes / 60, 2),
        "totalValue":    round(total_value, 2),
    }

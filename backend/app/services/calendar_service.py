"""
services/calendar_service.py

Calendar operations over the two event sources: court hearings and
case tasks with due dates.

Called by:
  - api/v1/endpoints/calendar.py (create / update / delete / events / export)

An event's ``type`` selects the table: ``hearing`` -> hearings,
``task`` -> case_tasks. Every operation is scoped to the chamber that
owns the event's case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models import Case, CasePriority, CaseTask, Hearing, TaskStatus
from app.services.membership_service import ensure_chamber_member
from app.utils.exceptions import BadRequestError, NotFoundError
from app.utils.helpers import parse_uuid, row_to_dict, utcnow

logger = logging.getLogger(__name__)

EVENT_TYPES = ("hearing", "task")


@dataclass
class CalendarEvent:
    """Common shape of hearings and tasks for views and export"""
    id:          str
    title:       str
    date:        datetime
    type:        str
    case_id:     str
    case_number: Optional[str]
    description: Optional[str] = None
    location:    Optional[str] = None
    priority:    Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id":          self.id,
            "title":       self.title,
            "description": self.description,
            "date":        self.date.isoformat() if self.date else None,
            "type":        self.type,
            "location":    self.location,
            "priority":    self.priority,
            "caseId":      self.case_id,
            "caseNumber":  self.case_number,
        }


# ============================================================================
# Parsing
# ============================================================================

def combine_date_time(date_str: str, time_str: Optional[str]) -> datetime:
    """``YYYY-MM-DD`` + optional ``HH:MM[:SS]``; midnight when time is omitted."""
    try:
        return datetime.fromisoformat(f"{date_str}T{time_str or '00:00:00'}")
    except (TypeError, ValueError):
        raise BadRequestError("Invalid date or time")


def parse_range_bound(value: Optional[str], end: bool = False) -> Optional[datetime]:
    """
    Parse an ISO date or datetime bound. A bare end date covers that
    whole day.
    """
    if not value:
        return None
    try:
        if len(value) == 10:
            day = date.fromisoformat(value)
            return datetime.combine(day, time.max if end else time.min)
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise BadRequestError(f"Invalid date: {value}")
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - (parsed.utcoffset() or timedelta(0))
    return parsed


def _event_type(value: Optional[str]) -> str:
    if value not in EVENT_TYPES:
        raise BadRequestError("Invalid event type")
    return value


def _load_case(db: Session, case_id: Any) -> Case:
    case_uuid = parse_uuid(case_id)
    case = None
    if case_uuid:
        case = db.query(Case).filter(Case.id == case_uuid, Case.deleted_at.is_(None)).first()
    if not case:
        raise NotFoundError("Case")
    return case


# ============================================================================
# Create
# ============================================================================

def create_event(
    db:          Session,
    user_id:     UUID,
    case_id:     str,
    event_type:  str,
    title:       str,
    date_str:    str,
    time_str:    Optional[str] = None,
    location:    Optional[str] = None,
    description: Optional[str] = None,
    priority:    Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Insert a hearing or task row. Returns the inserted row(s) serialized.
    """
    event_type = _event_type(event_type)
    when = combine_date_time(date_str, time_str)
    case = _load_case(db, case_id)
    ensure_chamber_member(db, user_id, case.chamber_id)

    if event_type == "hearing":
        row = Hearing(
            case_id=case.id,
            hearing_date=when,
            court_name=location or "",
            description=description,
        )
    else:
        row = CaseTask(
            case_id=case.id,
            title=title,
            due_date=when,
            description=description,
            priority=priority or CasePriority.medium.value,
            status=TaskStatus.pending.value,
        )

    db.add(row)
    db.commit()
    db.refresh(row)

    logger.info("Calendar %s created: %s (case=%s)", event_type, row.id, case.id)
    return [row_to_dict(row)]


# ============================================================================
# Update
# ============================================================================

def _load_event(db: Session, event_type: str, event_id: Any):
    model = Hearing if event_type == "hearing" else CaseTask
    event_uuid = parse_uuid(event_id)
    row = None
    if event_uuid:
        query = db.query(model).filter(model.id == event_uuid)
        if model is CaseTask:
            query = query.filter(CaseTask.deleted_at.is_(None))
        row = query.first()
    if not row:
        raise NotFoundError("Event")
    return row


def update_event(
    db:          Session,
    user_id:     UUID,
    event_id:    str,
    event_type:  str,
    fields:      Dict[str, Any],
) -> List[Dict[str, Any]]:
    """
    Partial update. The event only moves when both ``date`` and ``time``
    are supplied; other keys are applied when present in ``fields``.
    """
    event_type = _event_type(event_type)
    row = _load_event(db, event_type, event_id)
    ensure_chamber_member(db, user_id, row.case.chamber_id)

    when = None
    if fields.get("date") and fields.get("time"):
        when = combine_date_time(fields["date"], fields["time"])

    if event_type == "hearing":
        if when:
            row.hearing_date = when
        if "location" in fields:
            row.court_name = fields["location"] or ""
        if "description" in fields:
            row.description = fields["description"]
    else:
        if "title" in fields and fields["title"] is not None:
            row.title = fields["title"]
        if when:
            row.due_date = when
        if "description" in fields:
            row.description = fields["description"]
        if "priority" in fields and fields["priority"] is not None:
            row.priority = fields["priority"]

    db.commit()
    db.refresh(row)
    logger.info("Calendar %s updated: %s", event_type, row.id)
    return [row_to_dict(row)]


# ============================================================================
# Delete
# ============================================================================

def delete_event(db: Session, user_id: UUID, event_id: str, event_type: str) -> None:
    """Hearings are removed; tasks are soft-deleted like every other task."""
    event_type = _event_type(event_type)
    row = _load_event(db, event_type, event_id)
    ensure_chamber_member(db, user_id, row.case.chamber_id)

    if event_type == "hearing":
        db.delete(row)
    else:
        row.deleted_at = utcnow()
    db.commit()
    logger.info("Calendar %s deleted: %s", event_type, event_id)


# ============================================================================
# Read
# ============================================================================

def _hearing_description(hearing: Hearing) -> Optional[str]:
    if hearing.court_name:
        if hearing.judge_name:
            return f"{hearing.court_name} - {hearing.judge_name}"
        return hearing.court_name
    return hearing.case.title


def get_events(
    db:         Session,
    chamber_id: UUID,
    start:      Optional[datetime] = None,
    end:        Optional[datetime] = None,
    lawyer_id:  Optional[UUID]     = None,
) -> List[CalendarEvent]:
    """
    Hearings and tasks of a chamber's live cases within [start, end].

    Lawyer view: hearings of cases assigned to the lawyer and tasks
    assigned to the lawyer.
    """
    hearings_q = (
        db.query(Hearing)
        .join(Case, Hearing.case_id == Case.id)
        .filter(Case.chamber_id == chamber_id, Case.deleted_at.is_(None))
    )
    tasks_q = (
        db.query(CaseTask)
        .join(Case, CaseTask.case_id == Case.id)
        .filter(
            Case.chamber_id == chamber_id,
            Case.deleted_at.is_(None),
            CaseTask.deleted_at.is_(None),
            CaseTask.due_date.isnot(None),
        )
    )
    if lawyer_id is not None:
        hearings_q = hearings_q.filter(Case.assigned_to == lawyer_id)
        tasks_q = tasks_q.filter(CaseTask.assigned_to == lawyer_id)
    if start is not None:
        hearings_q = hearings_q.filter(Hearing.hearing_date >= start)
        tasks_q = tasks_q.filter(CaseTask.due_date >= start)
    if end is not None:
        hearings_q = hearings_q.filter(Hearing.hearing_date <= end)
        tasks_q = tasks_q.filter(CaseTask.due_date <= end)

    events = [
        CalendarEvent(
            id=str(h.id),
            title=f"Hearing: {h.case.case_number}",
            description=_hearing_description(h),
            date=h.hearing_date,
            type="hearing",
            location=h.court_name or None,
            case_id=str(h.case_id),
            case_number=h.case.case_number,
        )
        for h in hearings_q.order_by(Hearing.hearing_date.asc()).all()
    ]
    events.extend(
        CalendarEvent(
            id=str(t.id),
            title=f"Task: {t.title}",
            description=t.case.title,
            date=t.due_date,
            type="task",
            priority=t.priority,
            case_id=str(t.case_id),
            case_number=t.case.case_number,
        )
        for t in tasks_q.order_by(CaseTask.due_date.asc()).all()
    )
    return events

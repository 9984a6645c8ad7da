"""
services/case_service.py

Case tracking: role-scoped listing and search, stats, CRUD with soft
delete, assignment and tasks. Every write is audited.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from app.db.models import (
    Case,
    CasePriority,
    CaseStatus,
    CaseTask,
    TaskStatus,
    UserRole,
)
from app.db.schemas import CaseCreate, CaseUpdate, TaskCreate
from app.services import membership_service
from app.services.audit_service import audit_service
from app.utils.exceptions import BadRequestError, CaseNotFoundError, NotFoundError
from app.utils.helpers import utcnow

logger = logging.getLogger(__name__)

CASE_STATUSES = {s.value for s in CaseStatus}
CASE_PRIORITIES = {p.value for p in CasePriority}
TASK_STATUSES = {s.value for s in TaskStatus}


def _check_choice(value: Optional[str], allowed: set, label: str) -> None:
    if value is not None and value not in allowed:
        raise BadRequestError(f"Invalid {label}: {value}")


# ============================================================================
# Scope
# ============================================================================

def scoped_cases(db: Session, user_id: UUID) -> Query:
    """
    Live cases visible to the caller: admins see their chambers' cases,
    lawyers their assigned cases, everyone else the cases they are the
    client of.
    """
    query = db.query(Case).filter(Case.deleted_at.is_(None))
    admin_chambers = membership_service.get_admin_chamber_ids(db, user_id)
    if admin_chambers:
        return query.filter(Case.chamber_id.in_(admin_chambers))
    if membership_service.user_role(db, user_id) == UserRole.lawyer.value:
        return query.filter(Case.assigned_to == user_id)
    return query.filter(Case.client_id == user_id)


def search_cases(
    db:       Session,
    user_id:  UUID,
    q:        Optional[str] = None,
    status:   Optional[str] = None,
    priority: Optional[str] = None,
) -> List[Case]:
    query = scoped_cases(db, user_id)
    if q:
        pattern = f"%{q}%"
        query = query.filter(or_(
            Case.case_number.ilike(pattern),
            Case.title.ilike(pattern),
            Case.description.ilike(pattern),
        ))
    if status and status != "all":
        query = query.filter(Case.status == status)
    if priority and priority != "all":
        query = query.filter(Case.priority == priority)
    return query.order_by(Case.created_at.desc()).all()


def case_stats(db: Session, user_id: UUID) -> Dict[str, int]:
    cases = scoped_cases(db, user_id).all()
    stats = {"total": len(cases)}
    for status in ("open", "pending", "closed", "archived"):
        stats[status] = sum(1 for c in cases if c.status == status)
    for priority in ("critical", "high"):
        stats[priority] = sum(1 for c in cases if c.priority == priority)
    return stats


# ============================================================================
# CRUD
# ============================================================================

def get_case(db: Session, case_id: UUID) -> Case:
    case = db.query(Case).filter(Case.id == case_id, Case.deleted_at.is_(None)).first()
    if not case:
        raise CaseNotFoundError()
    return case


def create_case(db: Session, chamber_id: UUID, data: CaseCreate, user_id: UUID) -> Case:
    if not data.case_number or not data.title:
        raise BadRequestError("Case number and title are required")
    _check_choice(data.status, CASE_STATUSES, "status")
    _check_choice(data.priority, CASE_PRIORITIES, "priority")
    if data.assigned_to and not membership_service.is_active_member(db, data.assigned_to, chamber_id):
        raise BadRequestError("Assignee must be an active chamber member")

    case = Case(
        chamber_id=chamber_id,
        case_number=data.case_number,
        title=data.title,
        description=data.description,
        client_id=data.client_id,
        assigned_to=data.assigned_to,
        case_type=data.case_type,
        priority=data.priority or CasePriority.medium.value,
        status=data.status or CaseStatus.open.value,
        filing_date=data.filing_date,
        next_hearing_date=data.next_hearing_date,
    )
    db.add(case)
    db.commit()
    db.refresh(case)
    logger.info("Case created: %s (chamber=%s)", case.id, chamber_id)
    audit_service.log_action(db, user_id, "case.create", "case", case.id, {"case_number": case.case_number})
    return case


def update_case(db: Session, case: Case, data: CaseUpdate, user_id: UUID) -> Case:
    changes = data.model_dump(exclude_unset=True)
    _check_choice(changes.get("priority"), CASE_PRIORITIES, "priority")
    for key, value in changes.items():
        setattr(case, key, value)
    db.commit()
    db.refresh(case)
    audit_service.log_action(
        db, user_id, "case.update", "case", case.id,
        {k: str(v) if v is not None else None for k, v in changes.items()},
    )
    return case


def delete_case(db: Session, case: Case, user_id: UUID) -> None:
    case.deleted_at = utcnow()
    db.commit()
    audit_service.log_action(db, user_id, "case.delete", "case", case.id)


def set_case_status(db: Session, case: Case, status: Optional[str], user_id: UUID) -> Case:
    if status not in CASE_STATUSES:
        raise BadRequestError("Valid status is required (open, pending, closed, archived)")
    previous = case.status
    case.status = status
    db.commit()
    db.refresh(case)
    audit_service.log_action(db, user_id, "case.status", "case", case.id, {"from": previous, "to": status})
    return case


def assign_case(db: Session, case: Case, assignee_id: Optional[UUID], user_id: UUID) -> Case:
    if assignee_id is not None and not membership_service.is_active_member(db, assignee_id, case.chamber_id):
        raise BadRequestError("Assignee must be an active chamber member")
    case.assigned_to = assignee_id
    db.commit()
    db.refresh(case)
    audit_service.log_action(
        db, user_id, "case.assign", "case", case.id,
        {"assigned_to": str(assignee_id) if assignee_id else None},
    )
    return case


# ============================================================================
# Tasks
# ============================================================================

def list_tasks(db: Session, case_id: UUID) -> List[CaseTask]:
    return (
        db.query(CaseTask)
        .filter(CaseTask.case_id == case_id, CaseTask.deleted_at.is_(None))
        .order_by(CaseTask.due_date.asc())
        .all()
    )


def create_task(db: Session, case: Case, data: TaskCreate, user_id: UUID) -> CaseTask:
    if not data.title:
        raise BadRequestError("Task title is required")
    _check_choice(data.priority, CASE_PRIORITIES, "priority")
    if data.assigned_to and not membership_service.is_active_member(db, data.assigned_to, case.chamber_id):
        raise BadRequestError("Assignee must be an active chamber member")
    task = CaseTask(
        case_id=case.id,
        title=data.title,
        description=data.description,
        due_date=data.due_date,
        priority=data.priority or CasePriority.medium.value,
        assigned_to=data.assigned_to,
        status=TaskStatus.pending.value,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    audit_service.log_action(db, user_id, "task.create", "case_task", task.id, {"case_id": str(case.id)})
    return task


def get_task(db: Session, task_id: UUID) -> CaseTask:
    task = db.query(CaseTask).filter(CaseTask.id == task_id, CaseTask.deleted_at.is_(None)).first()
    if not task:
        raise NotFoundError("Task")
    return task


def set_task_status(db: Session, task: CaseTask, status: Optional[str], user_id: UUID) -> CaseTask:
    if status not in TASK_STATUSES:
        raise BadRequestError("Valid status is required (pending, in_progress, completed, cancelled)")
    task.status = status
    if status == TaskStatus.completed.value:
        task.completed_at = utcnow()
    db.commit()
    db.refresh(task)
    audit_service.log_action(db, user_id, "task.status", "case_task", task.id, {"status": status})
    return task

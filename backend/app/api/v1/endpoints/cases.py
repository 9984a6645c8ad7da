"""
api/v1/endpoints/cases.py

Case tracking and case tasks.

Endpoints:
  GET    /api/cases                  — role-scoped search
  GET    /api/cases/stats            — counts by status / priority
  POST   /api/cases                  — create (chamber admin)
  GET    /api/cases/{case_id}        — detail
  PATCH  /api/cases/{case_id}        — partial update
  DELETE /api/cases/{case_id}        — soft delete
  PATCH  /api/cases/{case_id}/status — change status
  PATCH  /api/cases/{case_id}/assign — change assignee
  GET    /api/cases/{case_id}/tasks  — tasks by due date
  POST   /api/cases/{case_id}/tasks  — add task
  PATCH  /api/tasks/{task_id}/status — change task status
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.db.database import get_db
from app.db.schemas import AuthUser, CaseCreate, CaseUpdate, TaskCreate
from app.services import case_service
from app.services.membership_service import (
    ensure_case_access,
    ensure_chamber_admin,
    ensure_chamber_member,
    get_admin_membership,
)
from app.utils.helpers import row_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cases", tags=["cases"])
tasks_router = APIRouter(prefix="/tasks", tags=["cases"])


class StatusRequest(BaseModel):
    status: Optional[str] = None


class AssignRequest(BaseModel):
    assigned_to: Optional[UUID] = None


# ============================================================================
# Cases
# ============================================================================

@router.get("")
def search_cases(
    q: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    cases = case_service.search_cases(db, current_user.id, q=q, status=status, priority=priority)
    return {"cases": [row_to_dict(c) for c in cases]}


@router.get("/stats")
def get_case_stats(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return case_service.case_stats(db, current_user.id)


@router.post("")
def create_case(
    body: CaseCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if body.chamber_id is not None:
        chamber_id = ensure_chamber_admin(db, current_user.id, body.chamber_id).chamber_id
    else:
        chamber_id = get_admin_membership(db, current_user.id).chamber_id
    case = case_service.create_case(db, chamber_id, body, current_user.id)
    return {"case": row_to_dict(case)}


@router.get("/{case_id}")
def get_case(
    case_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = case_service.get_case(db, case_id)
    ensure_case_access(db, current_user.id, case)
    return {"case": row_to_dict(case)}


@router.patch("/{case_id}")
def update_case(
    case_id: UUID,
    body: CaseUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = case_service.get_case(db, case_id)
    ensure_chamber_member(db, current_user.id, case.chamber_id)
    case = case_service.update_case(db, case, body, current_user.id)
    return {"case": row_to_dict(case)}


@router.delete("/{case_id}")
def delete_case(
    case_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = case_service.get_case(db, case_id)
    ensure_chamber_admin(db, current_user.id, case.chamber_id)
    case_service.delete_case(db, case, current_user.id)
    return {"success": True}


@router.patch("/{case_id}/status")
def set_case_status(
    case_id: UUID,
    body: StatusRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = case_service.get_case(db, case_id)
    ensure_chamber_member(db, current_user.id, case.chamber_id)
    case = case_service.set_case_status(db, case, body.status, current_user.id)
    return {"case": row_to_dict(case)}


@router.patch("/{case_id}/assign")
def assign_case(
    case_id: UUID,
    body: AssignRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = case_service.get_case(db, case_id)
    ensure_chamber_admin(db, current_user.id, case.chamber_id)
    case = case_service.assign_case(db, case, body.assigned_to, current_user.id)
    return {"case": row_to_dict(case)}


# ============================================================================
# Tasks
# ============================================================================

@router.get("/{case_id}/tasks")
def list_tasks(
    case_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = case_service.get_case(db, case_id)
    ensure_case_access(db, current_user.id, case)
    return {"tasks": [row_to_dict(t) for t in case_service.list_tasks(db, case.id)]}


@router.post("/{case_id}/tasks")
def create_task(
    case_id: UUID,
    body: TaskCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = case_service.get_case(db, case_id)
    ensure_chamber_member(db, current_user.id, case.chamber_id)
    task = case_service.create_task(db, case, body, current_user.id)
    return {"task": row_to_dict(task)}


@tasks_router.patch("/{task_id}/status")
def set_task_status(
    task_id: UUID,
    body: StatusRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    task = case_service.get_task(db, task_id)
    ensure_chamber_member(db, current_user.id, task.case.chamber_id)
    task = case_service.set_task_status(db, task, body.status, current_user.id)
    return {"task": row_to_dict(task)}

"""
api/v1/endpoints/calendar.py

Calendar REST API for the chamber calendar page.

Endpoints:
  POST   /api/calendar/create   — create hearing or task
  PUT    /api/calendar/update   — partial update of a hearing or task
  DELETE /api/calendar/delete   — delete a hearing or task
  GET    /api/calendar/events   — merged hearings + tasks in a date range
  POST   /api/calendar/export   — ICS / CSV download
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.db.database import get_db
from app.db.schemas import AuthUser
from app.services.calendar_export import render_export
from app.services.calendar_service import (
    create_event,
    delete_event,
    get_events,
    parse_range_bound,
    update_event,
)
from app.services.membership_service import ensure_chamber_member
from app.utils.exceptions import BadRequestError
from app.utils.validators import missing_fields

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calendar", tags=["calendar"])


# ============================================================================
# Request schemas
# ============================================================================

class EventCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    case_id:     Optional[str] = Field(default=None, alias="caseId")
    type:        Optional[str] = None
    title:       Optional[str] = None
    date:        Optional[str] = None
    time:        Optional[str] = None
    location:    Optional[str] = None
    description: Optional[str] = None
    priority:    Optional[str] = None


class EventUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    id:   Optional[str] = None
    type: Optional[str] = None


class EventDeleteRequest(BaseModel):
    id:   Optional[str] = None
    type: Optional[str] = None


class ExportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chamber_id: Optional[UUID] = Field(default=None, alias="chamberId")
    start_date: Optional[str]  = Field(default=None, alias="startDate")
    end_date:   Optional[str]  = Field(default=None, alias="endDate")
    format:     str            = "ics"


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/create")
def create_calendar_event(
    body: EventCreateRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if missing_fields(body.model_dump(), ["case_id", "type", "title", "date"]):
        raise BadRequestError("Missing required fields")

    rows = create_event(
        db,
        user_id=current_user.id,
        case_id=body.case_id,
        event_type=body.type,
        title=body.title,
        date_str=body.date,
        time_str=body.time,
        location=body.location,
        description=body.description,
        priority=body.priority,
    )
    return {"success": True, "data": rows}


@router.put("/update")
def update_calendar_event(
    body: EventUpdateRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not body.id or not body.type:
        raise BadRequestError("Missing required fields")

    fields = dict(body.model_extra or {})
    rows = update_event(db, current_user.id, body.id, body.type, fields)
    return {"success": True, "data": rows}


@router.delete("/delete")
def delete_calendar_event(
    body: EventDeleteRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not body.id or not body.type:
        raise BadRequestError("Missing required fields")

    delete_event(db, current_user.id, body.id, body.type)
    return {"success": True}


@router.get("/events")
def list_calendar_events(
    chamber_id: Optional[UUID] = Query(None),
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    lawyer_id: Optional[UUID] = Query(None),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if chamber_id is None:
        raise BadRequestError("Chamber ID is required")
    ensure_chamber_member(db, current_user.id, chamber_id)

    events = get_events(
        db,
        chamber_id,
        start=parse_range_bound(start),
        end=parse_range_bound(end, end=True),
        lawyer_id=lawyer_id,
    )
    return {"events": [e.to_dict() for e in events]}


@router.post("/export")
def export_calendar(
    body: ExportRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if body.chamber_id is None:
        raise BadRequestError("Chamber ID is required")
    ensure_chamber_member(db, current_user.id, body.chamber_id)

    events = get_events(
        db,
        body.chamber_id,
        start=parse_range_bound(body.start_date),
        end=parse_range_bound(body.end_date, end=True),
    )
    content, content_type, filename = render_export(events, body.format)
    logger.info("Calendar export: chamber=%s format=%s events=%d", body.chamber_id, body.format, len(events))
    return Response(
        content=content,
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

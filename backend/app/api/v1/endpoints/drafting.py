"""
api/v1/endpoints/drafting.py

Legal drafting templates: browse, fill placeholders, export to PDF.
"""

from __future__ import annotations

import io
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from app.api.v1.deps import get_current_user
from app.db.schemas import AuthUser
from app.services.drafting_service import drafting_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drafting", tags=["drafting"])


class RenderRequest(BaseModel):
    fields: Dict[str, str] = Field(default_factory=dict)


@router.get("/templates")
def list_templates(
    category: Optional[str] = Query(None),
    current_user: AuthUser = Depends(get_current_user),
):
    templates = drafting_service.list_templates(category)
    return {"templates": [t.model_dump() for t in templates]}


@router.get("/templates/{template_id}")
def get_template(
    template_id: str,
    current_user: AuthUser = Depends(get_current_user),
):
    return {"template": drafting_service.get_template(template_id).model_dump()}


@router.post("/templates/{template_id}/render")
def render_template(
    template_id: str,
    body: RenderRequest,
    current_user: AuthUser = Depends(get_current_user),
):
    template = drafting_service.get_template(template_id)
    content, missing = drafting_service.render(template, body.fields)
    return {"content": content, "missing_fields": missing}


@router.post("/templates/{template_id}/pdf")
def export_template_pdf(
    template_id: str,
    body: RenderRequest,
    current_user: AuthUser = Depends(get_current_user),
):
    template = drafting_service.get_template(template_id)
    content, missing = drafting_service.render(template, body.fields)
    pdf_bytes = drafting_service.build_pdf(template.title, content)
    filename = drafting_service.pdf_filename(template.title)
    logger.info("Draft PDF exported: template=%s missing=%d", template_id, len(missing))
    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

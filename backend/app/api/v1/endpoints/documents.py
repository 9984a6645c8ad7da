"""
api/v1/endpoints/documents.py

Case document vault.

Endpoints:
  GET    /api/cases/{case_id}/documents   — documents grouped by base name
  POST   /api/cases/{case_id}/documents   — upload (optionally as a new version)
  DELETE /api/documents/{document_id}     — soft delete
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.db.database import get_db
from app.db.schemas import AuthUser
from app.services import case_service, document_service
from app.services.membership_service import ensure_case_access
from app.utils.helpers import parse_uuid, row_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["documents"])


@router.get("/cases/{case_id}/documents")
def list_case_documents(
    case_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = case_service.get_case(db, case_id)
    ensure_case_access(db, current_user.id, case)
    return {"groups": document_service.grouped_documents(db, case.id)}


@router.post("/cases/{case_id}/documents")
def upload_case_document(
    case_id: UUID,
    file: UploadFile = File(...),
    parent_document_id: Optional[str] = Form(None),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    case = case_service.get_case(db, case_id)
    ensure_case_access(db, current_user.id, case)

    data = file.file.read()
    document = document_service.upload_document(
        db,
        case,
        filename=file.filename,
        data=data,
        content_type=file.content_type,
        uploaded_by=current_user.id,
        parent_document_id=parse_uuid(parent_document_id),
    )
    return {"document": row_to_dict(document)}


@router.delete("/documents/{document_id}")
def delete_case_document(
    document_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    document = document_service.get_document(db, document_id)
    ensure_case_access(db, current_user.id, document.case)
    document_service.delete_document(db, document, current_user.id)
    return {"success": True}

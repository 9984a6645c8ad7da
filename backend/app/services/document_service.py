"""
services/document_service.py

Case document vault. Objects live in the documents bucket under
``{case_id}/{epoch_ms}_{name}``; rows in ``case_documents``.

Versions are plain rows sharing a base name: uploading a new version of
``Brief.pdf`` stores ``Brief (v2).pdf``, then ``Brief (v3).pdf``, ...
"""

from __future__ import annotations

import logging
import re
import time
from collections import OrderedDict
from typing import Any, Dict, List, Optional
from uuid import UUID

from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models import Case, CaseDocument
from app.services.audit_service import audit_service
from app.services.storage_service import storage_service
from app.utils.exceptions import BadRequestError, DocumentNotFoundError, UploadFailedError
from app.utils.helpers import row_to_dict, utcnow

logger = logging.getLogger(__name__)

VERSION_SUFFIX = re.compile(r"\s\(v\d+\)$")
GROUP_PATTERN = re.compile(r"^(.*?)(?:\s\(v\d+\))?(\.[^.]*)?$")


def split_extension(name: str):
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return name, ""
    return stem, ext


def base_name(name: str) -> str:
    """``Brief (v3).pdf`` -> ``Brief.pdf``"""
    match = GROUP_PATTERN.match(name)
    if not match:
        return name
    return match.group(1) + (match.group(2) or "")


def version_name(parent_name: str, upload_name: str, sibling_names: List[str]) -> str:
    """
    Name for a new version of ``parent_name``. The extension comes from
    the uploaded file; the version number is one more than the number of
    existing documents starting with the parent's base.
    """
    parent_stem, parent_ext = split_extension(parent_name)
    parent_base = VERSION_SUFFIX.sub("", parent_stem)
    _, ext = split_extension(upload_name)
    ext = ext or parent_ext

    related = [n for n in sibling_names if n.startswith(parent_base)]
    next_version = len(related) + 1
    suffix = f".{ext}" if ext else ""
    return f"{parent_base} (v{next_version}){suffix}"


def storage_key(case_id: UUID, name: str, now_ms: Optional[int] = None) -> str:
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{case_id}/{stamp}_{name}"


def _live_documents(db: Session, case_id: UUID) -> List[CaseDocument]:
    return (
        db.query(CaseDocument)
        .filter(CaseDocument.case_id == case_id, CaseDocument.deleted_at.is_(None))
        .order_by(CaseDocument.created_at.desc())
        .all()
    )


# ============================================================================
# Upload
# ============================================================================

def upload_document(
    db:                 Session,
    case:               Case,
    filename:           str,
    data:               bytes,
    content_type:       Optional[str],
    uploaded_by:        UUID,
    parent_document_id: Optional[UUID] = None,
) -> CaseDocument:
    if not filename:
        raise BadRequestError("File is required")
    if len(data) > settings.MAX_DOCUMENT_SIZE_MB * 1024 * 1024:
        raise BadRequestError(f"File must be less than {settings.MAX_DOCUMENT_SIZE_MB}MB")

    final_name = filename
    if parent_document_id is not None:
        siblings = _live_documents(db, case.id)
        parent = next((d for d in siblings if d.id == parent_document_id), None)
        if parent is None:
            raise DocumentNotFoundError()
        final_name = version_name(parent.name, filename, [d.name for d in siblings])

    key = storage_key(case.id, final_name)
    try:
        url = storage_service.upload_bytes(
            settings.DOCUMENTS_BUCKET_NAME, key, data, content_type or "application/octet-stream"
        )
    except (ClientError, BotoCoreError, ValueError) as e:
        logger.error("Document upload failed for case %s: %s", case.id, e)
        raise UploadFailedError(str(e))

    document = CaseDocument(
        case_id=case.id,
        name=final_name,
        url=url,
        storage_path=key,
        type=content_type,
        size=len(data),
        uploaded_by=uploaded_by,
    )
    db.add(document)
    db.commit()
    db.refresh(document)

    logger.info("Document stored: %s (case=%s)", final_name, case.id)
    audit_service.log_action(db, uploaded_by, "document.upload", "case_document", document.id, {"name": final_name})
    return document


# ============================================================================
# Read / delete
# ============================================================================

def grouped_documents(db: Session, case_id: UUID) -> List[Dict[str, Any]]:
    """Documents grouped by base name; each group newest first."""
    groups: "OrderedDict[str, List[CaseDocument]]" = OrderedDict()
    for doc in _live_documents(db, case_id):
        groups.setdefault(base_name(doc.name), []).append(doc)

    out = []
    for name, docs in groups.items():
        docs.sort(key=lambda d: d.created_at, reverse=True)
        out.append({
            "base_name":     name,
            "latest":        row_to_dict(docs[0]),
            "versions":      [row_to_dict(d) for d in docs[1:]],
            "version_count": len(docs),
        })
    return out


def get_document(db: Session, document_id: UUID) -> CaseDocument:
    doc = (
        db.query(CaseDocument)
        .filter(CaseDocument.id == document_id, CaseDocument.deleted_at.is_(None))
        .first()
    )
    if not doc:
        raise DocumentNotFoundError()
    return doc


def delete_document(db: Session, document: CaseDocument, user_id: UUID) -> None:
    document.deleted_at = utcnow()
    db.commit()
    audit_service.log_action(db, user_id, "document.delete", "case_document", document.id)

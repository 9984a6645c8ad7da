"""
api/v1/endpoints/debug.py

Operator helpers, mounted only when DEBUG is on.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.db.database import get_db
from app.db.models import User
from app.db.schemas import AuthUser
from app.services.auth_admin_service import auth_admin_service
from app.utils.exceptions import AuthProviderError, BadRequestError
from app.utils.helpers import row_to_dict, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/debug", tags=["debug"])


class CheckUserRequest(BaseModel):
    email: Optional[str] = None


class DeleteUserRequest(BaseModel):
    user_id: Optional[UUID] = None


@router.post("/check-user")
def check_user(
    body: CheckUserRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not body.email:
        raise BadRequestError("Email is required")
    try:
        auth_user = auth_admin_service.find_user_by_email(body.email)
    except AuthProviderError as e:
        raise HTTPException(status_code=500, detail=e.message)

    profile = db.query(User).filter(User.email == body.email).first()
    return {
        "authUser": auth_user,
        "profile": row_to_dict(profile),
        "exists": auth_user is not None,
    }


@router.post("/delete-user")
def delete_user(
    body: DeleteUserRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if body.user_id is None:
        raise BadRequestError("User ID is required")
    try:
        auth_admin_service.delete_user(str(body.user_id))
    except AuthProviderError as e:
        raise HTTPException(status_code=500, detail=e.message)

    profile = db.query(User).filter(User.id == body.user_id).first()
    if profile is not None:
        profile.deleted_at = utcnow()
        db.commit()
    logger.warning("Debug delete of user %s by %s", body.user_id, current_user.id)
    return {"success": True}

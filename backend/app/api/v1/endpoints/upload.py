# backend/app/api/v1/endpoints/upload.py

"""
Upload Endpoints

Public asset uploads (logos, avatars) into the assets bucket.
"""

from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.api.v1.deps import get_current_user
from app.core.config import settings
from app.core.logger import logger
from app.db.schemas import AuthUser
from app.services.storage_service import storage_service
from app.utils.exceptions import BadRequestError, UploadFailedError

router = APIRouter(tags=["upload"])


@router.post("/upload")
def upload_asset(
    file: Optional[UploadFile] = File(None),
    bucket: str = Form(settings.ASSETS_BUCKET_NAME),
    path: Optional[str] = Form(None),
    current_user: AuthUser = Depends(get_current_user),
):
    """
    Store a file at ``bucket/path`` (overwriting) and return its public URL.
    The bucket is created as public, image-only, when it does not exist yet.
    """
    if file is None or not path:
        raise BadRequestError("File and path are required")

    data = file.file.read()
    if len(data) > settings.max_upload_bytes:
        raise BadRequestError(f"File must be less than {settings.MAX_UPLOAD_SIZE_MB}MB")

    try:
        if storage_service.ensure_bucket(bucket, public=True, allowed_mime_types=settings.allowed_image_types_list):
            logger.info("Bucket %s created on first upload", bucket)
    except (ClientError, BotoCoreError) as e:
        # Upload below reports the real failure if the bucket is unusable
        logger.warning("Could not ensure bucket %s: %s", bucket, e)

    try:
        url = storage_service.upload_bytes(
            bucket, path, data, file.content_type or "application/octet-stream", upsert=True
        )
    except (ClientError, BotoCoreError) as e:
        logger.error("Upload error for %s/%s: %s", bucket, path, e)
        raise UploadFailedError(str(e))

    logger.info("User %s uploaded %s/%s", current_user.id, bucket, path)
    return {"url": url, "path": path}

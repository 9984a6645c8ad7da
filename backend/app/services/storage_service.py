# app/services/storage_service.py

import boto3
from botocore.exceptions import ClientError
from typing import List, Optional

from app.core.config import settings
from app.core.logger import logger


class StorageService:
    """
    Object storage over the provider's S3-compatible endpoint.
    """

    def __init__(self):
        self.s3_client = boto3.client(
            's3',
            region_name=settings.STORAGE_REGION,
            endpoint_url=settings.STORAGE_ENDPOINT_URL or None,
            aws_access_key_id=settings.STORAGE_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY or None
        )

    def public_url(self, bucket: str, key: str) -> str:
        return f"{settings.SUPABASE_URL}/storage/v1/object/public/{bucket}/{key}"

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self.s3_client.head_bucket(Bucket=bucket)
            return True
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in ("404", "NoSuchBucket", "NotFound"):
                return False
            logger.error("Failed to check bucket %s: %s", bucket, e)
            raise

    def ensure_bucket(
        self,
        bucket: str,
        public: bool = True,
        allowed_mime_types: Optional[List[str]] = None
    ) -> bool:
        """
        Create ``bucket`` when missing. Returns True when it was created.
        """
        if self.bucket_exists(bucket):
            return False
        try:
            params = {"Bucket": bucket}
            if public:
                params["ACL"] = "public-read"
            self.s3_client.create_bucket(**params)
            logger.info(
                "Created bucket %s (public=%s, mime_types=%s)",
                bucket, public, ",".join(allowed_mime_types or []) or "*",
            )
            return True
        except ClientError as e:
            logger.error("Failed to create bucket %s: %s", bucket, e)
            raise

    def upload_bytes(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False
    ) -> str:
        """
        Store ``data`` at ``bucket/key`` and return its public URL.
        Without ``upsert`` an existing object is an error.
        """
        try:
            if not upsert and self._object_exists(bucket, key):
                raise ValueError(f"Object already exists: {key}")
            self.s3_client.put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
            logger.info("Uploaded object: %s/%s (%d bytes)", bucket, key, len(data))
            return self.public_url(bucket, key)
        except ClientError as e:
            logger.error("Failed to upload %s/%s: %s", bucket, key, e)
            raise

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=bucket, Key=key)
            logger.info("Deleted object: %s/%s", bucket, key)
        except ClientError as e:
            logger.error("Failed to delete %s/%s: %s", bucket, key, e)
            raise

    def _object_exists(self, bucket: str, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise


storage_service = StorageService()

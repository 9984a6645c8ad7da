"""
Application configuration using Pydantic Settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import json
from pydantic import field_validator


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """

    # Application
    APP_NAME: str = "Chambers"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    SITE_URL: str = "http://localhost:3000"

    # Database
    DATABASE_URL: str
    AUTO_CREATE_TABLES: bool = False

    # Hosted auth / realtime / storage provider
    SUPABASE_URL: str
    SUPABASE_SERVICE_ROLE_KEY: str
    SUPABASE_JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    # S3-compatible storage
    STORAGE_ACCESS_KEY_ID: str = ""
    STORAGE_SECRET_ACCESS_KEY: str = ""
    STORAGE_REGION: str = "ap-south-1"
    STORAGE_ENDPOINT_URL: str = ""
    ASSETS_BUCKET_NAME: str = "chamber-assets"
    DOCUMENTS_BUCKET_NAME: str = "case-documents"
    MAX_UPLOAD_SIZE_MB: int = 5
    MAX_DOCUMENT_SIZE_MB: int = 25
    ALLOWED_IMAGE_TYPES: str = "image/png,image/jpeg,image/gif,image/webp"

    # Billing
    DEFAULT_HOURLY_RATE: float = 0.0

    # Calendar export
    CALENDAR_PRODID: str = "-//Apna Waqeel//Calendar//EN"
    CALENDAR_NAME: str = "Legal Calendar"
    CALENDAR_UID_DOMAIN: str = "apnawaqeel.local"

    # CORS
    CORS_ORIGINS: str = '["http://localhost:3000"]'

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("SUPABASE_URL", "SITE_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().rstrip("/")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from string to list"""
        try:
            if isinstance(self.CORS_ORIGINS, str):
                return json.loads(self.CORS_ORIGINS)
            return self.CORS_ORIGINS
        except ValueError:
            return ["http://localhost:3000"]

    @property
    def allowed_image_types_list(self) -> List[str]:
        return [t.strip() for t in self.ALLOWED_IMAGE_TYPES.split(",") if t.strip()]

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024


settings = Settings()

from __future__ import annotations

from typing import Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: AnyUrl
    SUPABASE_SERVICE_ROLE_KEY: str
    APP_ENV: str = "local"
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
    )

    # AI providers
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_IMAGE_MODEL: str = "imagen-4.0-generate-001"

    # Image storage (S3 or S3-compatible); images are served unstored when the bucket is unset
    S3_BUCKET_NAME: Optional[str] = None
    S3_ENDPOINT_URL: Optional[str] = None
    S3_REGION: Optional[str] = None
    S3_ACCESS_KEY_ID: Optional[str] = None
    S3_SECRET_ACCESS_KEY: Optional[str] = None
    S3_PUBLIC_URL: Optional[str] = None
    PLACEHOLDER_IMAGE_URL: str = (
        "https://images.unsplash.com/photo-1556909114-f6e7ad7d3136"
        "?ixlib=rb-4.0.3&auto=format&fit=crop&w=1024&h=768"
    )

    # Auto-generation
    AUTOGEN_MAX_ATTEMPTS: int = Field(default=5, ge=1)
    AUTOGEN_BOOTSTRAP: bool = True

    # Duplicate detection
    DUPLICATE_MIN_TOKEN_LENGTH: int = Field(default=3, ge=0)
    DUPLICATE_MIN_SHARED_TOKENS: int = Field(default=2, ge=1)
    DUPLICATE_OVERLAP_RATIO: float = Field(default=0.7, gt=0, le=1)


settings = Settings()

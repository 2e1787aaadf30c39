# src/app/deps.py (singletons expostos como dependências do FastAPI)

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from supabase import Client, create_client

from src.app.config import settings
from src.app.domain.errors import StorageError
from src.app.infra.db.supabase_repo import SupabaseRecipeRepository, SupabaseSettingsRepository
from src.app.infra.storage.base import ImageStorage
from src.app.infra.storage.s3_provider import S3ImageStorage
from src.app.services.auto_generator import AutoGenerationScheduler
from src.app.services.duplicate_checker import DuplicateChecker, DuplicatePolicy
from src.app.services.image_producer import ImageProducer
from src.app.services.recipe_generator import RecipeGenerator
from src.app.services.recipe_preview import RecipePreviewService
from src.app.services.recipe_publisher import RecipePublisher
from src.services.gemini_client import GeminiClient

logger = logging.getLogger(__name__)

_client: Client | None = None
_gemini: GeminiClient | None = None
_storage: ImageStorage | None = None
_storage_checked = False
_scheduler: AutoGenerationScheduler | None = None


def get_supabase() -> Client:
    global _client
    if _client is None:
        _client = create_client(str(settings.SUPABASE_URL),
                                settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


def get_recipe_repository() -> SupabaseRecipeRepository:
    return SupabaseRecipeRepository(get_supabase())


def get_settings_repository() -> SupabaseSettingsRepository:
    return SupabaseSettingsRepository(get_supabase())


def get_gemini_client() -> GeminiClient:
    global _gemini
    if _gemini is None:
        _gemini = GeminiClient(
            api_key=settings.GEMINI_API_KEY,
            model_name=settings.GEMINI_MODEL,
            image_model_name=settings.GEMINI_IMAGE_MODEL,
        )
    return _gemini


def get_image_storage() -> ImageStorage | None:
    """None when no bucket is configured; images are then used unstored."""
    global _storage, _storage_checked
    if not _storage_checked:
        _storage_checked = True
        if not settings.S3_BUCKET_NAME:
            logger.info("Image storage disabled: S3_BUCKET_NAME not set")
            return None
        try:
            _storage = S3ImageStorage(
                bucket_name=settings.S3_BUCKET_NAME,
                access_key_id=settings.S3_ACCESS_KEY_ID,
                secret_access_key=settings.S3_SECRET_ACCESS_KEY,
                region=settings.S3_REGION,
                endpoint_url=settings.S3_ENDPOINT_URL,
                public_url=settings.S3_PUBLIC_URL,
            )
        except StorageError as e:
            logger.warning("Image storage disabled: %s", e)
            _storage = None
    return _storage


def get_duplicate_checker() -> DuplicateChecker:
    policy = DuplicatePolicy(
        min_token_length=settings.DUPLICATE_MIN_TOKEN_LENGTH,
        min_shared_tokens=settings.DUPLICATE_MIN_SHARED_TOKENS,
        overlap_ratio=settings.DUPLICATE_OVERLAP_RATIO,
    )
    return DuplicateChecker(get_recipe_repository(), policy)


def get_recipe_generator() -> RecipeGenerator:
    return RecipeGenerator(get_gemini_client(), get_duplicate_checker())


def get_image_producer() -> ImageProducer:
    return ImageProducer(
        get_gemini_client(),
        storage=get_image_storage(),
        placeholder_url=settings.PLACEHOLDER_IMAGE_URL,
    )


def get_recipe_publisher() -> RecipePublisher:
    return RecipePublisher(get_recipe_repository())


def get_preview_service() -> RecipePreviewService:
    return RecipePreviewService(
        get_recipe_generator(),
        get_image_producer(),
        get_recipe_publisher(),
        max_attempts=settings.AUTOGEN_MAX_ATTEMPTS,
    )


def get_scheduler() -> AutoGenerationScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = AutoGenerationScheduler(
            settings_repository=get_settings_repository(),
            generator=get_recipe_generator(),
            image_producer=get_image_producer(),
            publisher=get_recipe_publisher(),
            max_attempts=settings.AUTOGEN_MAX_ATTEMPTS,
        )
    return _scheduler


def get_existing_scheduler() -> AutoGenerationScheduler | None:
    return _scheduler


auth_scheme = HTTPBearer(auto_error=False)

class CurrentUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None

async def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase),
) -> CurrentUser:
    """
    Recebe Authorization: Bearer <access_token> do Supabase,
    valida no GoTrue e retorna dados mínimos do usuário.
    """
    if cred is None or cred.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    token = cred.credentials
    try:
        res = supa.auth.get_user(token)
        user = res.user
        if not user:
            raise HTTPException(status_code=401, detail="Invalid token")

        # metadados podem conter 'name'
        name = None
        meta = getattr(user, "user_metadata", None) or {}
        if isinstance(meta, dict):
            name = meta.get("name")

        return CurrentUser(id=str(user.id), email=user.email, name=name)
    except HTTPException:
        raise
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid/expired token")

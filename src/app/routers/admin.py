# src/app/routers/admin.py
"""
Operator routes: auto-generation control, manual preview and publishing.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from starlette.concurrency import run_in_threadpool

from src.app.deps import (
    CurrentUser,
    get_current_user,
    get_preview_service,
    get_recipe_publisher,
    get_scheduler,
    get_settings_repository,
)
from src.app.domain.errors import (
    DuplicateRecipeError,
    GenerationError,
    InvalidSettingsError,
    PersistenceError,
)
from src.app.domain.models import CycleResult, Difficulty, Recipe
from src.app.infra.db.base import SettingsRepository
from src.app.schemas.admin import (
    AutoGenerationSettingsOut,
    AutoGenerationStatus,
    CycleResultOut,
    PreviewRequest,
    PreviewResponse,
    RecipeDraft,
    RecipeOut,
    SessionStatsOut,
    UpdateSettingsRequest,
)
from src.app.services.auto_generator import AutoGenerationScheduler
from src.app.services.recipe_preview import RecipePreviewService
from src.app.services.recipe_publisher import RecipePublisher
from src.services.persist_models import RecipeRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _recipe_out(recipe: Recipe) -> RecipeOut:
    return RecipeOut(
        id=recipe.id,
        slug=recipe.slug,
        title=recipe.title,
        description=recipe.description,
        image_url=recipe.image_url,
        difficulty=recipe.difficulty.value,
        cook_time=recipe.cook_time,
        servings=recipe.servings,
        category=recipe.category,
        subcategory=recipe.subcategory,
        published=recipe.published,
        created_at=recipe.created_at,
    )


def _cycle_out(result: CycleResult) -> CycleResultOut:
    return CycleResultOut(
        status=result.status.value,
        reason=result.reason,
        recipe=_recipe_out(result.recipe) if result.recipe else None,
        outcome=result.outcome.kind.value if result.outcome else None,
        image_source=result.image.source.value if result.image else None,
    )


def _persistence_unavailable(exc: PersistenceError) -> HTTPException:
    logger.error("admin.persistence_error operation=%s reason=%s", exc.operation, exc.reason)
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")


async def _status(scheduler: AutoGenerationScheduler, repo: SettingsRepository) -> AutoGenerationStatus:
    try:
        current = await run_in_threadpool(repo.read)
        seconds = await scheduler.seconds_until_next_generation()
    except PersistenceError as exc:
        raise _persistence_unavailable(exc) from exc

    stats = scheduler.stats
    return AutoGenerationStatus(
        state=scheduler.state.value,
        settings=AutoGenerationSettingsOut(
            auto_generation_enabled=current.auto_generation_enabled,
            generation_interval_minutes=current.generation_interval_minutes,
            last_generation_at=current.last_generation_at,
            updated_at=current.updated_at,
        ),
        stats=SessionStatsOut(
            recipes_generated=stats.recipes_generated,
            session_start_time=stats.session_start_time,
        ),
        seconds_until_next=seconds,
        cycle_in_flight=scheduler.cycle_in_flight,
    )


@router.get("/auto-generation", response_model=AutoGenerationStatus)
async def get_auto_generation_status(
    user: CurrentUser = Depends(get_current_user),
    scheduler: AutoGenerationScheduler = Depends(get_scheduler),
    repo: SettingsRepository = Depends(get_settings_repository),
) -> AutoGenerationStatus:
    return await _status(scheduler, repo)


@router.put("/auto-generation/settings", response_model=AutoGenerationStatus)
async def update_auto_generation_settings(
    body: UpdateSettingsRequest,
    user: CurrentUser = Depends(get_current_user),
    scheduler: AutoGenerationScheduler = Depends(get_scheduler),
    repo: SettingsRepository = Depends(get_settings_repository),
) -> AutoGenerationStatus:
    changes = body.model_dump(exclude_none=True)
    try:
        updated = await run_in_threadpool(lambda: repo.write(**changes))
    except InvalidSettingsError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise _persistence_unavailable(exc) from exc

    logger.info(
        "admin.settings_updated user=%s enabled=%s interval=%s",
        user.id,
        updated.auto_generation_enabled,
        updated.generation_interval_minutes,
    )
    try:
        if updated.auto_generation_enabled:
            await scheduler.restart()
        else:
            scheduler.stop()
    except PersistenceError as exc:
        raise _persistence_unavailable(exc) from exc

    return await _status(scheduler, repo)


@router.post("/auto-generation/start", response_model=AutoGenerationStatus)
async def start_auto_generation(
    user: CurrentUser = Depends(get_current_user),
    scheduler: AutoGenerationScheduler = Depends(get_scheduler),
    repo: SettingsRepository = Depends(get_settings_repository),
) -> AutoGenerationStatus:
    try:
        await scheduler.start()
    except PersistenceError as exc:
        raise _persistence_unavailable(exc) from exc
    return await _status(scheduler, repo)


@router.post("/auto-generation/stop", response_model=AutoGenerationStatus)
async def stop_auto_generation(
    user: CurrentUser = Depends(get_current_user),
    scheduler: AutoGenerationScheduler = Depends(get_scheduler),
    repo: SettingsRepository = Depends(get_settings_repository),
) -> AutoGenerationStatus:
    scheduler.stop()
    return await _status(scheduler, repo)


@router.post("/auto-generation/restart", response_model=AutoGenerationStatus)
async def restart_auto_generation(
    user: CurrentUser = Depends(get_current_user),
    scheduler: AutoGenerationScheduler = Depends(get_scheduler),
    repo: SettingsRepository = Depends(get_settings_repository),
) -> AutoGenerationStatus:
    try:
        await scheduler.restart()
    except PersistenceError as exc:
        raise _persistence_unavailable(exc) from exc
    return await _status(scheduler, repo)


@router.post("/auto-generation/run", response_model=CycleResultOut)
async def run_generation_cycle(
    user: CurrentUser = Depends(get_current_user),
    scheduler: AutoGenerationScheduler = Depends(get_scheduler),
) -> CycleResultOut:
    result = await scheduler.run_cycle()
    return _cycle_out(result)


@router.post("/auto-generation/stats/reset", response_model=SessionStatsOut)
async def reset_generation_stats(
    user: CurrentUser = Depends(get_current_user),
    scheduler: AutoGenerationScheduler = Depends(get_scheduler),
) -> SessionStatsOut:
    stats = scheduler.reset_stats()
    return SessionStatsOut(recipes_generated=stats.recipes_generated, session_start_time=stats.session_start_time)


@router.post("/recipes/preview", response_model=PreviewResponse)
async def preview_recipe(
    body: PreviewRequest,
    user: CurrentUser = Depends(get_current_user),
    previewer: RecipePreviewService = Depends(get_preview_service),
) -> PreviewResponse:
    difficulty: Optional[Difficulty] = Difficulty.parse(body.difficulty) if body.difficulty else None

    try:
        preview = await run_in_threadpool(previewer.preview, body.idea, difficulty, body.cook_time)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except DuplicateRecipeError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"could not generate a unique recipe after {exc.attempts} attempts",
        ) from exc
    except GenerationError as exc:
        logger.error("admin.preview_failed idea=%r error=%s", body.idea, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise _persistence_unavailable(exc) from exc

    return PreviewResponse(
        draft=RecipeDraft(**preview.draft.model_dump(exclude={"published"})),
        outcome=preview.outcome.kind.value,
        image_source=preview.image.source.value,
        attempts=preview.outcome.attempts,
        reason=preview.outcome.reason or preview.image.reason,
    )


@router.post("/recipes", response_model=RecipeOut, status_code=status.HTTP_201_CREATED)
async def publish_recipe(
    body: RecipeDraft,
    user: CurrentUser = Depends(get_current_user),
    publisher: RecipePublisher = Depends(get_recipe_publisher),
) -> RecipeOut:
    draft = RecipeRecord(**body.model_dump(), published=False)
    try:
        recipe = await run_in_threadpool(publisher.publish_draft, draft)
    except PersistenceError as exc:
        raise _persistence_unavailable(exc) from exc
    logger.info("admin.recipe_published user=%s slug=%s", user.id, recipe.slug)
    return _recipe_out(recipe)

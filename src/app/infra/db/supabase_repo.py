from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from src.app.domain.errors import InvalidSettingsError, PersistenceError, SlugConflictError
from src.app.domain.models import (
    AutoGenerationSettings,
    DEFAULT_INTERVAL_MINUTES,
    Difficulty,
    Recipe,
    SimilarRecipe,
)
from src.app.infra.db.base import RecipeRepository, SettingsRepository
from src.services.persist_models import RecipeRecord

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
SETTINGS_FIELDS = {"auto_generation_enabled", "generation_interval_minutes"}


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None
    else:
        return None

    # "timestamp without time zone" columns are stored in UTC.
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _safe_int(value: object, default: int = 0) -> int:
    return int(value) if value else default


def _safe_str(value: object) -> str | None:
    return str(value) if value else None


def _safe_list(value: object) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value]
    return []


def _row_to_recipe(row: dict[str, Any]) -> Recipe:
    similar = None
    if row.get("similar_recipe_title") and row.get("similar_recipe_url"):
        similar = SimilarRecipe(
            title=str(row["similar_recipe_title"]),
            url=str(row["similar_recipe_url"]),
        )

    return Recipe(
        id=int(row["id"]),
        slug=str(row["slug"]),
        title=str(row["title"]),
        description=str(row.get("description") or ""),
        content=str(row.get("content") or ""),
        ingredients=_safe_list(row.get("ingredients")),
        instructions=_safe_list(row.get("instructions")),
        tips=_safe_list(row.get("tips")),
        long_description=_safe_str(row.get("long_description")),
        cook_time=_safe_int(row.get("cook_time"), 30),
        difficulty=Difficulty.parse(row.get("difficulty")),
        servings=_safe_int(row.get("servings"), 4),
        image_url=_safe_str(row.get("image_url")),
        meta_title=_safe_str(row.get("meta_title")),
        meta_description=_safe_str(row.get("meta_description")),
        meta_keywords=_safe_str(row.get("meta_keywords")),
        hashtags=_safe_list(row.get("hashtags")),
        category=str(row.get("category") or "Receitas"),
        subcategory=str(row.get("subcategory") or "Diversas"),
        similar_recipe=similar,
        published=bool(row.get("published", True)),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )


def _row_to_settings(row: dict[str, Any]) -> AutoGenerationSettings:
    return AutoGenerationSettings(
        id=_safe_int(row.get("id")) or None,
        auto_generation_enabled=bool(row.get("auto_generation_enabled", False)),
        generation_interval_minutes=_safe_int(
            row.get("generation_interval_minutes"), DEFAULT_INTERVAL_MINUTES
        ),
        last_generation_at=_parse_datetime(row.get("last_generation_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SupabaseRecipeRepository(RecipeRepository):
    TABLE_NAME = "recipes"

    def __init__(self, client: Client):
        self._client = client
        logger.info("SupabaseRecipeRepository initialized")

    def find_by_slug(self, slug: str) -> Optional[Recipe]:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("slug", slug)
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError, ConnectionError, TimeoutError) as error:
            logger.error("Error looking up recipe by slug %s: %s", slug, error)
            raise PersistenceError("find_by_slug", str(error)) from error

        if not result.data:
            return None
        return _row_to_recipe(result.data[0])

    def search_by_title(self, query: str, limit: int = 20) -> list[Recipe]:
        term = query.strip()
        if not term:
            return []

        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .ilike("title", f"%{_escape_like(term)}%")
                .limit(limit)
                .execute()
            )
        except (APIError, httpx.HTTPError, ConnectionError, TimeoutError) as error:
            logger.error("Error searching recipes by title %r: %s", term, error)
            raise PersistenceError("search_by_title", str(error)) from error

        return [_row_to_recipe(row) for row in result.data or []]

    def create(self, record: RecipeRecord) -> Recipe:
        now_iso = _now_utc().isoformat()
        payload = record.model_dump()
        payload["created_at"] = now_iso
        payload["updated_at"] = now_iso

        try:
            result = self._client.table(self.TABLE_NAME).insert(payload).execute()
        except APIError as error:
            if getattr(error, "code", None) == UNIQUE_VIOLATION:
                raise SlugConflictError(record.slug) from error
            logger.error("Error creating recipe %s: %s", record.slug, error)
            raise PersistenceError("create", str(error)) from error
        except (httpx.HTTPError, ConnectionError, TimeoutError) as error:
            logger.error("Network error creating recipe %s: %s", record.slug, error)
            raise PersistenceError("create", str(error)) from error

        if not result.data:
            raise PersistenceError("create", "insert returned no rows")

        recipe = _row_to_recipe(result.data[0])
        logger.info("Created recipe: id=%s, slug=%s, published=%s", recipe.id, recipe.slug, recipe.published)
        return recipe


class SupabaseSettingsRepository(SettingsRepository):
    TABLE_NAME = "system_settings"

    def __init__(self, client: Client):
        self._client = client
        logger.info("SupabaseSettingsRepository initialized")

    def _fetch_row(self) -> dict[str, Any] | None:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .order("id")
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError, ConnectionError, TimeoutError) as error:
            logger.error("Error reading settings: %s", error)
            raise PersistenceError("read_settings", str(error)) from error
        return result.data[0] if result.data else None

    def _insert_defaults(self) -> dict[str, Any]:
        defaults = AutoGenerationSettings()
        payload = {
            "auto_generation_enabled": defaults.auto_generation_enabled,
            "generation_interval_minutes": defaults.generation_interval_minutes,
            "updated_at": _now_utc().isoformat(),
        }
        try:
            result = self._client.table(self.TABLE_NAME).insert(payload).execute()
        except (APIError, httpx.HTTPError, ConnectionError, TimeoutError) as error:
            logger.error("Error creating default settings: %s", error)
            raise PersistenceError("create_settings", str(error)) from error

        if not result.data:
            raise PersistenceError("create_settings", "insert returned no rows")
        logger.info("Created default auto-generation settings")
        return result.data[0]

    def _update(self, row_id: object, update_data: dict[str, Any], operation: str) -> dict[str, Any]:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .update(update_data)
                .eq("id", row_id)
                .execute()
            )
        except (APIError, httpx.HTTPError, ConnectionError, TimeoutError) as error:
            logger.error("Error updating settings (%s): %s", operation, error)
            raise PersistenceError(operation, str(error)) from error

        if not result.data:
            raise PersistenceError(operation, "update returned no rows")
        return result.data[0]

    def read(self) -> AutoGenerationSettings:
        row = self._fetch_row()
        if row is None:
            row = self._insert_defaults()
        return _row_to_settings(row)

    def write(self, **changes: Any) -> AutoGenerationSettings:
        unknown = set(changes) - SETTINGS_FIELDS
        if unknown:
            raise InvalidSettingsError(", ".join(sorted(unknown)), "unknown setting")

        update_data: dict[str, Any] = {}
        if changes.get("generation_interval_minutes") is not None:
            update_data["generation_interval_minutes"] = AutoGenerationSettings.validate_interval(
                changes["generation_interval_minutes"]
            )
        if changes.get("auto_generation_enabled") is not None:
            update_data["auto_generation_enabled"] = bool(changes["auto_generation_enabled"])

        row = self._fetch_row() or self._insert_defaults()
        if not update_data:
            return _row_to_settings(row)

        update_data["updated_at"] = _now_utc().isoformat()
        updated = self._update(row["id"], update_data, "write_settings")
        logger.info("Updated auto-generation settings: %s", sorted(update_data))
        return _row_to_settings(updated)

    def update_last_generation_timestamp(self, ts: datetime) -> None:
        row = self._fetch_row() or self._insert_defaults()
        self._update(
            row["id"],
            {"last_generation_at": ts.isoformat(), "updated_at": _now_utc().isoformat()},
            "update_last_generation",
        )

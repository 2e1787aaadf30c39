# src/app/infra/db/base.py
"""
Abstract base classes for recipe and settings persistence.
These interfaces allow easy swapping between different database backends.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from src.app.domain.models import AutoGenerationSettings, Recipe
from src.services.persist_models import RecipeRecord


class RecipeRepository(ABC):
    """
    Abstract interface for recipe storage.

    Implementations:
    - SupabaseRecipeRepository: Postgres table via Supabase
    """

    @abstractmethod
    def find_by_slug(self, slug: str) -> Optional[Recipe]:
        """
        Get a recipe by its slug.

        Args:
            slug: The URL-safe identifier

        Returns:
            The recipe, or None if no row uses this slug
        """
        pass

    @abstractmethod
    def search_by_title(self, query: str, limit: int = 20) -> list[Recipe]:
        """
        Case-insensitive substring search on recipe titles.

        Args:
            query: Term to look for
            limit: Max recipes to return

        Returns:
            Matching recipes (possibly empty)
        """
        pass

    @abstractmethod
    def create(self, record: RecipeRecord) -> Recipe:
        """
        Insert a new recipe.

        Args:
            record: Validated insert payload

        Returns:
            The created recipe

        Raises:
            SlugConflictError: the slug was taken concurrently
            PersistenceError: any other storage failure
        """
        pass


class SettingsRepository(ABC):
    """
    Abstract interface for the single auto-generation settings row.
    Last write wins; there is no optimistic locking.
    """

    @abstractmethod
    def read(self) -> AutoGenerationSettings:
        """
        Read the settings row, creating it with defaults when missing.

        Returns:
            Current settings
        """
        pass

    @abstractmethod
    def write(self, **changes: Any) -> AutoGenerationSettings:
        """
        Apply a partial update.

        Args:
            **changes: auto_generation_enabled and/or generation_interval_minutes

        Returns:
            The settings after the update

        Raises:
            InvalidSettingsError: a value is out of bounds or unknown
        """
        pass

    @abstractmethod
    def update_last_generation_timestamp(self, ts: datetime) -> None:
        """
        Record when the last successful generation happened.

        Args:
            ts: Timestamp of the generation (UTC)
        """
        pass

# src/app/services/recipe_publisher.py
"""
Turns a generated recipe into a persisted one: content body, unique slug, insert.
"""
from __future__ import annotations

import logging
from typing import Optional

from src.app.domain.errors import PersistenceError, SlugConflictError
from src.app.domain.models import GeneratedRecipe, Recipe
from src.app.infra.db.base import RecipeRepository
from src.services.persist_models import RecipeRecord
from src.services.slugify import slugify, unique_slug

logger = logging.getLogger(__name__)

MAX_SLUG_CONFLICTS = 3


def build_content(recipe: GeneratedRecipe) -> str:
    """Markdown body shown on the recipe page."""
    sections = [
        "## Ingredientes\n\n" + "\n".join(f"- {item}" for item in recipe.ingredients),
        "## Modo de Preparo\n\n" + "\n\n".join(
            f"{index}. {step}" for index, step in enumerate(recipe.instructions, start=1)
        ),
    ]
    if recipe.tips:
        sections.append("## Dicas\n\n" + "\n".join(f"- {tip}" for tip in recipe.tips))
    return "\n\n".join(sections)


def build_record(
    recipe: GeneratedRecipe,
    slug: str,
    image_url: Optional[str],
    published: bool = True,
) -> RecipeRecord:
    similar = recipe.similar_recipe
    return RecipeRecord(
        slug=slug,
        title=recipe.title,
        description=recipe.description,
        long_description=recipe.long_description,
        content=build_content(recipe),
        ingredients=list(recipe.ingredients),
        instructions=list(recipe.instructions),
        tips=list(recipe.tips),
        cook_time=recipe.cook_time,
        difficulty=recipe.difficulty.value,
        servings=recipe.servings,
        image_url=image_url,
        meta_title=recipe.meta_title,
        meta_description=recipe.meta_description,
        meta_keywords=recipe.meta_keywords,
        hashtags=list(recipe.hashtags),
        category=recipe.category,
        subcategory=recipe.subcategory,
        similar_recipe_title=similar.title if similar else None,
        similar_recipe_url=similar.url if similar else None,
        published=published,
    )


class RecipePublisher:
    def __init__(self, recipes: RecipeRepository):
        self._recipes = recipes

    def resolve_unique_slug(self, title: str) -> str:
        """slugify(title), then -1, -2, ... until no recipe uses it."""
        return unique_slug(slugify(title), lambda slug: self._recipes.find_by_slug(slug) is not None)

    def _create(self, record: RecipeRecord) -> Recipe:
        # The slug probe is not atomic; a unique index rejects concurrent winners.
        for attempt in range(1, MAX_SLUG_CONFLICTS + 1):
            try:
                return self._recipes.create(record)
            except SlugConflictError as e:
                logger.warning("publish.slug_conflict slug=%s attempt=%d", e.slug, attempt)
                record = record.model_copy(update={"slug": self.resolve_unique_slug(record.title)})
        raise PersistenceError("create", f"slug still taken after {MAX_SLUG_CONFLICTS} attempts: {record.slug}")

    def publish(
        self,
        generated: GeneratedRecipe,
        image_url: Optional[str],
        published: bool = True,
    ) -> Recipe:
        slug = self.resolve_unique_slug(generated.title)
        recipe = self._create(build_record(generated, slug, image_url, published))
        logger.info("publish.created id=%s slug=%s", recipe.id, recipe.slug)
        return recipe

    def build_draft(self, generated: GeneratedRecipe, image_url: Optional[str]) -> RecipeRecord:
        """Unpublished preview; the slug is only a suggestion until publish_draft."""
        return build_record(generated, self.resolve_unique_slug(generated.title), image_url, published=False)

    def publish_draft(self, draft: RecipeRecord) -> Recipe:
        record = draft.model_copy(
            update={"slug": self.resolve_unique_slug(draft.title), "published": True}
        )
        recipe = self._create(record)
        logger.info("publish.draft_published id=%s slug=%s", recipe.id, recipe.slug)
        return recipe

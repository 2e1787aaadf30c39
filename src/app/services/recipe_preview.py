# src/app/services/recipe_preview.py
"""
Operator-triggered generation: produces an unpublished draft for review.
Unlike the scheduler, errors here surface to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from src.app.domain.errors import DuplicateRecipeError
from src.app.domain.models import Difficulty, GenerationOutcome, ImageResult
from src.app.services.image_producer import ImageProducer
from src.app.services.recipe_generator import RecipeGenerator
from src.app.services.recipe_publisher import RecipePublisher
from src.services.persist_models import RecipeRecord

logger = logging.getLogger(__name__)


@dataclass
class RecipePreview:
    outcome: GenerationOutcome
    image: ImageResult
    draft: RecipeRecord


class RecipePreviewService:
    def __init__(
        self,
        generator: RecipeGenerator,
        image_producer: ImageProducer,
        publisher: RecipePublisher,
        max_attempts: int = 5,
    ):
        self._generator = generator
        self._images = image_producer
        self._publisher = publisher
        self.max_attempts = max(1, max_attempts)

    def preview(
        self,
        idea: str,
        difficulty: Optional[Difficulty] = None,
        cook_time: Optional[int] = None,
    ) -> RecipePreview:
        """
        Generate a draft from the given idea, retrying the same idea on duplicates.

        Raises:
            ValueError: empty idea
            DuplicateRecipeError: every attempt produced a near-duplicate
            GenerationSchemaError / GenerationError: provider failure
        """
        last_title = ""
        for attempt in range(1, self.max_attempts + 1):
            try:
                outcome = self._generator.generate(idea, difficulty=difficulty, cook_time=cook_time)
            except DuplicateRecipeError as exc:
                last_title = exc.title
                logger.info("preview.duplicate attempt=%d/%d title=%r", attempt, self.max_attempts, exc.title)
                continue

            outcome.attempts = attempt
            image = self._images.produce(outcome.recipe.title)
            draft = self._publisher.build_draft(outcome.recipe, image.url)
            logger.info("preview.ready title=%r slug=%s kind=%s", draft.title, draft.slug, outcome.kind.value)
            return RecipePreview(outcome=outcome, image=image, draft=draft)

        raise DuplicateRecipeError(last_title, attempts=self.max_attempts)

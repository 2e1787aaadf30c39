# src/app/services/image_producer.py
"""
Illustration for a recipe, with a three-tier fallback:
stored copy, then raw generator URL, then a fixed placeholder.
Inline `data:` images are never returned directly.
"""
from __future__ import annotations

import logging
from typing import Optional

from src.app.domain.errors import ImageProductionError
from src.app.domain.models import ImageResult, ImageSource
from src.app.infra.ai.base import ImageGenerationService
from src.app.infra.storage.base import ImageStorage
from src.services.slugify import slugify

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE_URL = (
    "https://images.unsplash.com/photo-1556909114-f6e7ad7d3136"
    "?ixlib=rb-4.0.3&auto=format&fit=crop&w=1024&h=768"
)


def build_image_prompt(title: str) -> str:
    return (
        f'Uma foto profissional e apetitosa de "{title}", bem iluminada, com ingredientes frescos, '
        "estilo culinário brasileiro, fundo neutro, alta qualidade, adequada para blog de receitas"
    )


class ImageProducer:
    """Never raises; the worst case is the placeholder image."""

    def __init__(
        self,
        image_service: ImageGenerationService,
        storage: Optional[ImageStorage] = None,
        placeholder_url: str = PLACEHOLDER_IMAGE_URL,
    ):
        self._images = image_service
        self._storage = storage
        self.placeholder_url = placeholder_url or PLACEHOLDER_IMAGE_URL

    def _generate(self, prompt: str) -> str:
        try:
            url = self._images.generate_image(prompt)
        except Exception as e:
            raise ImageProductionError("generate", str(e)) from e
        if not url:
            raise ImageProductionError("generate", "empty image URL")
        return url

    def _store(self, url: str, title: str) -> str:
        try:
            stored = self._storage.store_from_url(url, slugify(title))
        except Exception as e:
            raise ImageProductionError("store", str(e)) from e
        if not stored:
            raise ImageProductionError("store", "empty stored URL")
        return stored

    def _direct(self, url: str) -> str:
        # data: URLs are only published through storage.
        if url.startswith("data:"):
            raise ImageProductionError("direct", "inline image requires storage")
        return url

    def _placeholder(self, reason: str) -> ImageResult:
        return ImageResult(url=self.placeholder_url, source=ImageSource.PLACEHOLDER, reason=reason)

    def produce(self, title: str) -> ImageResult:
        prompt = build_image_prompt(title)

        try:
            url = self._generate(prompt)
            if self._storage is None:
                try:
                    direct = self._direct(url)
                except ImageProductionError as e:
                    logger.warning("image.placeholder title=%r reason=%s", title, e)
                    return self._placeholder(str(e))
                logger.info("image.direct title=%r reason=no_storage", title)
                return ImageResult(url=direct, source=ImageSource.DIRECT, reason="storage not configured")
            stored = self._store(url, title)
            logger.info("image.stored title=%r url=%s", title, stored)
            return ImageResult(url=stored, source=ImageSource.STORED)
        except ImageProductionError as first:
            logger.warning("image.tier1_failed title=%r error=%s", title, first)
            first_error = first

        try:
            url = self._direct(self._generate(prompt))
            logger.info("image.direct title=%r", title)
            return ImageResult(url=url, source=ImageSource.DIRECT, reason=str(first_error))
        except ImageProductionError as second:
            logger.warning("image.tier2_failed title=%r error=%s", title, second)
            return self._placeholder(f"{first_error}; {second}")

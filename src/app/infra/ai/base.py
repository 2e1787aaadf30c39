# src/app/infra/ai/base.py
"""
Abstract interfaces for the external AI providers.
Recipe text and illustrations come from separate services so either can be swapped.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class TextGenerationService(ABC):
    """
    Structured text generation.

    Implementations:
    - GeminiClient: Google Gemini via google-genai
    """

    @abstractmethod
    def generate_json(self, prompt: str, schema: dict[str, Any]) -> dict[str, Any]:
        """
        Generate a JSON object matching a response schema.

        Args:
            prompt: User prompt describing the object to produce
            schema: Response schema the provider must follow

        Returns:
            The decoded JSON object

        Raises:
            RateLimitedError: provider signaled rate/quota exhaustion
            MalformedResponseError: the response was not a JSON object
            ServiceError: any other provider failure
        """
        pass


class ImageGenerationService(ABC):
    """
    Illustration generation.

    Implementations:
    - GeminiClient: Imagen via google-genai (returns a data: URL)
    """

    @abstractmethod
    def generate_image(self, prompt: str) -> str:
        """
        Generate one image for a prompt.

        Args:
            prompt: Description of the picture

        Returns:
            A URL for the image (http(s) or data:)

        Raises:
            ServiceError: generation failed or returned no image
        """
        pass

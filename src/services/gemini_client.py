from __future__ import annotations

import base64
import json
import logging
from pathlib import Path
from typing import Any

from google import genai
from google.genai import types
from google.genai.errors import APIError

from src.app.infra.ai.base import ImageGenerationService, TextGenerationService
from src.services.errors import MalformedResponseError, RateLimitedError, ServiceError

logger = logging.getLogger(__name__)

RECIPE_SYSTEM_PROMPT = Path("data/Prompt/RECIPE_SYSTEM_PROMPT.txt")
DEFAULT_TEMPERATURE = 0.7


class GeminiConfigurationError(ServiceError):
    pass


class GeminiPromptError(ServiceError):
    pass


def _is_rate_limited_error(exc: Exception) -> bool:
    status_code = getattr(exc, "code", None) or getattr(exc, "status_code", None)
    message = str(exc)
    if status_code == 429:
        return True
    if "RESOURCE_EXHAUSTED" in message or "quota" in message.lower():
        return True
    return False


class GeminiClient(TextGenerationService, ImageGenerationService):
    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.5-flash",
        image_model_name: str = "imagen-4.0-generate-001",
        system_prompt_path: Path = RECIPE_SYSTEM_PROMPT,
        temperature: float = DEFAULT_TEMPERATURE,
        client: genai.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.model_name = model_name
        self.image_model_name = image_model_name
        self.system_prompt_path = system_prompt_path
        self.temperature = temperature
        self._client = client or self._configure_api()

    def _configure_api(self) -> genai.Client:
        if not self.api_key:
            raise GeminiConfigurationError("Missing Google API key.")
        return genai.Client(api_key=self.api_key)

    def _load_system_prompt(self, file_path: Path) -> str:
        try:
            return file_path.read_text(encoding="utf-8")
        except FileNotFoundError as not_found_error:
            raise GeminiPromptError(f"Prompt file not found: {file_path}") from not_found_error
        except (OSError, IOError) as io_error:
            raise GeminiPromptError(f"Unable to read prompt file: {io_error}") from io_error

    def generate_json(self, prompt: str, schema: dict[str, Any]) -> dict[str, Any]:
        system_instruction = self._load_system_prompt(self.system_prompt_path)
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=self.temperature,
            response_mime_type="application/json",
            response_schema=schema,
        )

        try:
            response = self._client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=config,
            )
        except APIError as err:
            if _is_rate_limited_error(err):
                raise RateLimitedError(
                    "Limite da API do Gemini atingido. Tente novamente em alguns instantes."
                ) from err
            raise ServiceError(f"Gemini text generation failed: {err}") from err

        text = getattr(response, "text", None)
        if not text:
            raise MalformedResponseError("Model response did not include text content.")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as decode_error:
            raise MalformedResponseError(f"Model response is not valid JSON: {decode_error}") from decode_error

        if not isinstance(data, dict):
            raise MalformedResponseError("Model response is not a JSON object.")

        logger.info("gemini.generate_json model=%s keys=%d", self.model_name, len(data))
        return data

    def generate_image(self, prompt: str) -> str:
        config = types.GenerateImagesConfig(
            number_of_images=1,
            aspect_ratio="4:3",
        )

        try:
            response = self._client.models.generate_images(
                model=self.image_model_name,
                prompt=prompt,
                config=config,
            )
        except APIError as err:
            if _is_rate_limited_error(err):
                raise RateLimitedError(
                    "Limite da API do Gemini atingido. Tente novamente em alguns instantes."
                ) from err
            raise ServiceError(f"Gemini image generation failed: {err}") from err

        generated = getattr(response, "generated_images", None) or []
        image = generated[0].image if generated else None
        image_bytes = getattr(image, "image_bytes", None) if image else None
        if not image_bytes:
            raise ServiceError("Image model returned no image.")

        mime_type = getattr(image, "mime_type", None) or "image/png"
        encoded = base64.b64encode(image_bytes).decode("ascii")
        logger.info("gemini.generate_image model=%s bytes=%d", self.image_model_name, len(image_bytes))
        return f"data:{mime_type};base64,{encoded}"

# src/app/services/recipe_generator.py
"""
Recipe generation service.
Turns a seed idea into a structured recipe using the text provider.
"""
from __future__ import annotations

import logging
import random
from typing import Any, Optional

from src.app.domain.errors import (
    DuplicateRecipeError,
    GenerationError,
    GenerationQuotaError,
    GenerationSchemaError,
)
from src.app.domain.models import (
    Difficulty,
    GeneratedRecipe,
    GenerationOutcome,
    OutcomeKind,
    SimilarRecipe,
)
from src.app.infra.ai.base import TextGenerationService
from src.app.services.duplicate_checker import DuplicateChecker
from src.app.services.fallback_recipes import pick_fallback_recipe
from src.services.errors import MalformedResponseError, RateLimitedError, ServiceError

logger = logging.getLogger(__name__)

DEFAULT_COOK_TIME = 30
DEFAULT_SERVINGS = 4
REQUIRED_FIELDS = ("title", "ingredients", "instructions")

_STRING_LIST = {"type": "ARRAY", "items": {"type": "STRING"}}

# Gemini schema dialect; plain dict so no defaults leak into the request.
RECIPE_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "description": {"type": "STRING"},
        "long_description": {"type": "STRING"},
        "ingredients": _STRING_LIST,
        "instructions": _STRING_LIST,
        "tips": _STRING_LIST,
        "cook_time": {"type": "INTEGER"},
        "difficulty": {"type": "STRING", "enum": ["Fácil", "Médio", "Difícil"]},
        "servings": {"type": "INTEGER"},
        "meta_title": {"type": "STRING"},
        "meta_description": {"type": "STRING"},
        "meta_keywords": {"type": "STRING"},
        "hashtags": _STRING_LIST,
        "category": {"type": "STRING"},
        "subcategory": {"type": "STRING"},
        "similar_recipe": {
            "type": "OBJECT",
            "properties": {
                "title": {"type": "STRING"},
                "url": {"type": "STRING"},
            },
        },
    },
    "required": list(REQUIRED_FIELDS) + ["description", "cook_time", "difficulty", "servings"],
}


def build_recipe_prompt(
    idea: str,
    difficulty: Optional[Difficulty] = None,
    cook_time: Optional[int] = None,
) -> str:
    lines = [
        f'Gere uma receita completa em português brasileiro baseada na ideia: "{idea}".',
        "",
        "Campos do JSON:",
        '- "title": título atrativo da receita',
        '- "description": descrição resumida em 1-2 frases',
        '- "long_description": texto de apresentação com 2-3 parágrafos',
        '- "ingredients": lista de ingredientes com quantidades específicas',
        '- "instructions": lista de passos claros, na ordem de execução',
        '- "tips": 3-5 dicas úteis e práticas',
        '- "cook_time": tempo total de preparo + cozimento, em minutos',
        '- "difficulty": "Fácil", "Médio" ou "Difícil", conforme a complexidade real',
        '- "servings": número de porções',
        '- "meta_title": título SEO (máx. 60 caracteres)',
        '- "meta_description": descrição SEO (máx. 160 caracteres)',
        '- "meta_keywords": palavras-chave separadas por vírgula',
        '- "hashtags": 10 hashtags relevantes',
        '- "category": categoria (ex.: Massas, Peixes, Carnes, Sobremesas, Bebidas, Saladas)',
        '- "subcategory": subcategoria (ex.: Pizza, Macarrão, Camarão, Bolos, Tortas, Sucos)',
        '- "similar_recipe": receita conhecida parecida, com "title" e "url"',
    ]
    if difficulty is not None:
        lines += ["", f"A receita deve ter dificuldade {difficulty.label_pt}."]
    if cook_time is not None:
        lines += ["", f"O tempo total de preparo deve ficar perto de {cook_time} minutos."]
    lines += ["", "Foque em receitas saudáveis, saborosas, autênticas e executáveis."]
    return "\n".join(lines)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def _positive_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key)
    try:
        number = int(value)
    except (TypeError, ValueError):
        number = 0
    if number <= 0:
        logger.warning("recipe.coerced_field field=%s value=%r default=%d", key, value, default)
        return default
    return number


def parse_generated_recipe(data: dict[str, Any]) -> GeneratedRecipe:
    """
    Validate the provider payload and map it to a GeneratedRecipe.

    Raises:
        GenerationSchemaError: title, ingredients or instructions are missing
    """
    title = _text(data.get("title"))
    ingredients = _string_list(data.get("ingredients"))
    instructions = _string_list(data.get("instructions"))

    missing = [
        name
        for name, value in (("title", title), ("ingredients", ingredients), ("instructions", instructions))
        if not value
    ]
    if missing:
        raise GenerationSchemaError(missing_fields=missing)

    similar = None
    raw_similar = data.get("similar_recipe")
    if isinstance(raw_similar, dict) and _text(raw_similar.get("title")) and _text(raw_similar.get("url")):
        similar = SimilarRecipe(title=_text(raw_similar["title"]), url=_text(raw_similar["url"]))

    description = _text(data.get("description")) or title

    return GeneratedRecipe(
        title=title,
        description=description,
        long_description=_text(data.get("long_description")),
        ingredients=ingredients,
        instructions=instructions,
        tips=_string_list(data.get("tips")),
        cook_time=_positive_int(data, "cook_time", DEFAULT_COOK_TIME),
        difficulty=Difficulty.parse(data.get("difficulty")),
        servings=_positive_int(data, "servings", DEFAULT_SERVINGS),
        meta_title=_text(data.get("meta_title")),
        meta_description=_text(data.get("meta_description")),
        meta_keywords=_text(data.get("meta_keywords")),
        hashtags=_string_list(data.get("hashtags")),
        category=_text(data.get("category")) or "Receitas",
        subcategory=_text(data.get("subcategory")) or "Diversas",
        similar_recipe=similar,
    )


class RecipeGenerator:
    """
    Generates one recipe per call.

    Responsibilities:
    - Prompt the text provider with the expected JSON shape
    - Validate the structure of the answer
    - Reject titles too close to existing recipes
    - Substitute pre-authored content when the provider is out of quota
    """

    def __init__(
        self,
        text_service: TextGenerationService,
        duplicate_checker: DuplicateChecker,
        rng: random.Random | None = None,
    ):
        self._text = text_service
        self._duplicates = duplicate_checker
        self._rng = rng or random.Random()

    def _request(self, prompt: str) -> dict[str, Any]:
        try:
            return self._text.generate_json(prompt, RECIPE_RESPONSE_SCHEMA)
        except RateLimitedError as e:
            raise GenerationQuotaError(str(e)) from e
        except MalformedResponseError as e:
            raise GenerationSchemaError(f"Provider returned malformed recipe: {e}") from e
        except ServiceError as e:
            raise GenerationError(f"Failed to generate recipe: {e}") from e

    def generate(
        self,
        idea: str,
        difficulty: Optional[Difficulty] = None,
        cook_time: Optional[int] = None,
    ) -> GenerationOutcome:
        """
        Generate a recipe from a seed idea.

        Args:
            idea: Seed phrase (e.g. "torta de limão")
            difficulty: Optional difficulty hint
            cook_time: Optional cook-time hint in minutes

        Returns:
            GenerationOutcome tagged GENERATED, or FALLBACK_USED when the
            provider was out of quota

        Raises:
            ValueError: empty idea
            GenerationSchemaError: unusable provider answer
            DuplicateRecipeError: title too similar to an existing recipe
            GenerationError: any other provider failure
        """
        idea = (idea or "").strip()
        if not idea:
            raise ValueError("Recipe idea cannot be empty.")

        prompt = build_recipe_prompt(idea, difficulty, cook_time)
        try:
            recipe = parse_generated_recipe(self._request(prompt))
            outcome = GenerationOutcome(kind=OutcomeKind.GENERATED, recipe=recipe, idea=idea)
        except GenerationQuotaError as e:
            logger.warning("recipe.fallback_used idea=%r reason=%s", idea, e)
            recipe = pick_fallback_recipe(idea, self._rng)
            outcome = GenerationOutcome(
                kind=OutcomeKind.FALLBACK_USED,
                recipe=recipe,
                idea=idea,
                reason=str(e),
            )

        if self._duplicates.is_duplicate(recipe.title):
            raise DuplicateRecipeError(recipe.title)

        logger.info("recipe.generated idea=%r title=%r kind=%s", idea, recipe.title, outcome.kind.value)
        return outcome

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from src.app.domain.models import MAX_INTERVAL_MINUTES, MIN_INTERVAL_MINUTES


class AutoGenerationSettingsOut(BaseModel):
    auto_generation_enabled: bool
    generation_interval_minutes: int
    last_generation_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SessionStatsOut(BaseModel):
    recipes_generated: int
    session_start_time: datetime


class AutoGenerationStatus(BaseModel):
    state: Literal["STOPPED", "RUNNING"]
    settings: AutoGenerationSettingsOut
    stats: SessionStatsOut
    seconds_until_next: Optional[int] = None
    cycle_in_flight: bool = False


class UpdateSettingsRequest(BaseModel):
    auto_generation_enabled: Optional[bool] = None
    generation_interval_minutes: Optional[int] = Field(
        default=None,
        ge=MIN_INTERVAL_MINUTES,
        le=MAX_INTERVAL_MINUTES,
        description="Minutes between generations (5 to 1440)",
    )


class RecipeOut(BaseModel):
    id: int
    slug: str
    title: str
    description: str
    image_url: Optional[str] = None
    difficulty: str
    cook_time: int
    servings: int
    category: str
    subcategory: str
    published: bool
    created_at: Optional[datetime] = None


class CycleResultOut(BaseModel):
    status: Literal["PUBLISHED", "FAILED", "SKIPPED"]
    reason: Optional[str] = None
    recipe: Optional[RecipeOut] = None
    outcome: Optional[Literal["GENERATED", "FALLBACK_USED"]] = None
    image_source: Optional[Literal["STORED", "DIRECT", "PLACEHOLDER"]] = None


class PreviewRequest(BaseModel):
    idea: str = Field(..., min_length=1, max_length=200)
    difficulty: Optional[str] = Field(None, description="easy/medium/hard or Fácil/Médio/Difícil")
    cook_time: Optional[int] = Field(None, ge=1, le=1440)


class RecipeDraft(BaseModel):
    slug: str
    title: str
    description: str
    long_description: Optional[str] = None
    content: str
    ingredients: list[str] = Field(..., min_length=1)
    instructions: list[str] = Field(..., min_length=1)
    tips: list[str] = Field(default_factory=list)
    cook_time: int = Field(default=30, gt=0)
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    servings: int = Field(default=4, gt=0)
    image_url: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    hashtags: list[str] = Field(default_factory=list)
    category: str = "Receitas"
    subcategory: str = "Diversas"
    similar_recipe_title: Optional[str] = None
    similar_recipe_url: Optional[str] = None


class PreviewResponse(BaseModel):
    draft: RecipeDraft
    outcome: Literal["GENERATED", "FALLBACK_USED"]
    image_source: Literal["STORED", "DIRECT", "PLACEHOLDER"]
    attempts: int
    reason: Optional[str] = None

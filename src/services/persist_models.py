# src/services/persist_models.py
from typing import Literal, Optional

from pydantic import BaseModel, Field

DifficultyValue = Literal["easy", "medium", "hard"]


class RecipeRecord(BaseModel):
    """Insert payload for the recipes table."""
    slug: str
    title: str
    description: str
    long_description: Optional[str] = None
    content: str
    ingredients: list[str]
    instructions: list[str]
    tips: list[str] = Field(default_factory=list)
    cook_time: int = Field(default=30, gt=0)
    difficulty: DifficultyValue = "medium"
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
    published: bool = True

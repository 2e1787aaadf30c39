# src/app/domain/models.py
"""
Domain models for recipe auto-generation.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from src.app.domain.errors import InvalidSettingsError

MIN_INTERVAL_MINUTES = 5
MAX_INTERVAL_MINUTES = 1440
DEFAULT_INTERVAL_MINUTES = 60


class Difficulty(str, Enum):
    """Recipe difficulty as decided by the text generator."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value: Any) -> "Difficulty":
        """Accepts English or Portuguese labels; anything unknown is MEDIUM."""
        if isinstance(value, Difficulty):
            return value
        if not isinstance(value, str):
            return cls.MEDIUM
        label = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
        label = label.strip().lower()
        return _DIFFICULTY_ALIASES.get(label, cls.MEDIUM)

    @property
    def label_pt(self) -> str:
        return _DIFFICULTY_LABELS_PT[self]


_DIFFICULTY_ALIASES = {
    "easy": Difficulty.EASY,
    "facil": Difficulty.EASY,
    "medium": Difficulty.MEDIUM,
    "medio": Difficulty.MEDIUM,
    "hard": Difficulty.HARD,
    "dificil": Difficulty.HARD,
}

_DIFFICULTY_LABELS_PT = {
    Difficulty.EASY: "Fácil",
    Difficulty.MEDIUM: "Médio",
    Difficulty.HARD: "Difícil",
}


class SchedulerState(str, Enum):
    """States of the auto-generation scheduler."""
    STOPPED = "STOPPED"
    RUNNING = "RUNNING"


class OutcomeKind(str, Enum):
    """Where a generated recipe came from."""
    GENERATED = "GENERATED"
    FALLBACK_USED = "FALLBACK_USED"


class ImageSource(str, Enum):
    """Which tier of the image fallback chain produced the URL."""
    STORED = "STORED"
    DIRECT = "DIRECT"
    PLACEHOLDER = "PLACEHOLDER"


class CycleStatus(str, Enum):
    PUBLISHED = "PUBLISHED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


@dataclass
class SimilarRecipe:
    """An externally-known recipe the generated one resembles."""
    title: str
    url: str


@dataclass
class GeneratedRecipe:
    """
    Structured output of the text generator, before persistence.
    Never exposed to readers until it is published.
    """
    title: str
    description: str
    ingredients: list[str]
    instructions: list[str]
    tips: list[str] = field(default_factory=list)
    long_description: Optional[str] = None
    cook_time: int = 30  # minutes
    difficulty: Difficulty = Difficulty.MEDIUM
    servings: int = 4
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    hashtags: list[str] = field(default_factory=list)
    category: str = "Receitas"
    subcategory: str = "Diversas"
    similar_recipe: Optional[SimilarRecipe] = None


@dataclass
class GenerationOutcome:
    """
    Tagged result of one generator call.
    FALLBACK_USED means the recipe is pre-authored content, not model output.
    """
    kind: OutcomeKind
    recipe: GeneratedRecipe
    idea: str
    attempts: int = 1
    reason: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.kind is OutcomeKind.FALLBACK_USED


@dataclass
class ImageResult:
    """Result of the image fallback chain. The url is never empty."""
    url: str
    source: ImageSource
    reason: Optional[str] = None


@dataclass
class Recipe:
    """A persisted recipe row."""
    id: int
    slug: str
    title: str
    description: str
    content: str
    ingredients: list[str]
    instructions: list[str]
    tips: list[str] = field(default_factory=list)
    long_description: Optional[str] = None
    cook_time: int = 30
    difficulty: Difficulty = Difficulty.MEDIUM
    servings: int = 4
    image_url: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    hashtags: list[str] = field(default_factory=list)
    category: str = "Receitas"
    subcategory: str = "Diversas"
    similar_recipe: Optional[SimilarRecipe] = None
    published: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class AutoGenerationSettings:
    """The single settings row that drives the scheduler."""
    auto_generation_enabled: bool = False
    generation_interval_minutes: int = DEFAULT_INTERVAL_MINUTES
    last_generation_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    id: Optional[int] = None

    @property
    def interval_seconds(self) -> int:
        return self.generation_interval_minutes * 60

    @staticmethod
    def validate_interval(minutes: int) -> int:
        if isinstance(minutes, bool) or not isinstance(minutes, int):
            raise InvalidSettingsError("generation_interval_minutes", "must be an integer")
        if minutes < MIN_INTERVAL_MINUTES:
            raise InvalidSettingsError(
                "generation_interval_minutes", f"minimum is {MIN_INTERVAL_MINUTES} minutes"
            )
        if minutes > MAX_INTERVAL_MINUTES:
            raise InvalidSettingsError(
                "generation_interval_minutes", f"maximum is {MAX_INTERVAL_MINUTES} minutes"
            )
        return minutes


@dataclass
class SessionStats:
    """Process-local counters. Lost on restart."""
    recipes_generated: int
    session_start_time: datetime


@dataclass
class CycleResult:
    """What happened in one generation cycle."""
    status: CycleStatus
    recipe: Optional[Recipe] = None
    outcome: Optional[GenerationOutcome] = None
    image: Optional[ImageResult] = None
    reason: Optional[str] = None

    @property
    def published(self) -> bool:
        return self.status is CycleStatus.PUBLISHED


def compute_seconds_until_next(
    settings: AutoGenerationSettings,
    now: datetime,
) -> Optional[int]:
    """
    Seconds until the next scheduled generation.

    Returns None when auto-generation is disabled or has never run, and
    floors at zero when the next run is already due.
    """
    if not settings.auto_generation_enabled or settings.last_generation_at is None:
        return None
    elapsed = (now - settings.last_generation_at).total_seconds()
    remaining = settings.interval_seconds - elapsed
    return max(0, int(remaining))

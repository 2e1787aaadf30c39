# src/app/services/duplicate_checker.py
"""
Near-duplicate detection for generated recipe titles.
"""
from __future__ import annotations

import logging
import math
import re
import unicodedata
from dataclasses import dataclass

from src.app.infra.db.base import RecipeRepository

logger = logging.getLogger(__name__)

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class DuplicatePolicy:
    """
    Thresholds of the token-overlap heuristic.

    A candidate is similar to an existing title when at least
    min_shared_tokens shared tokens are longer than min_token_length and the
    shared tokens cover at least overlap_ratio of the candidate's tokens.
    """
    min_token_length: int = 3
    min_shared_tokens: int = 2
    overlap_ratio: float = 0.7


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_title(title: str) -> str:
    """Lowercase, strip accents and punctuation, collapse whitespace."""
    text = _strip_accents(title)
    text = _PUNCTUATION.sub(" ", text.lower()).replace("_", " ")
    return _WHITESPACE.sub(" ", text).strip()


def tokenize(title: str) -> list[str]:
    normalized = normalize_title(title)
    return normalized.split(" ") if normalized else []


def is_similar_title(candidate: str, existing: str, policy: DuplicatePolicy = DuplicatePolicy()) -> bool:
    candidate_tokens = set(tokenize(candidate))
    if not candidate_tokens:
        return False

    shared = candidate_tokens & set(tokenize(existing))
    significant = [token for token in shared if len(token) > policy.min_token_length]
    if len(significant) < policy.min_shared_tokens:
        return False

    required = max(policy.min_shared_tokens, math.ceil(policy.overlap_ratio * len(candidate_tokens)))
    return len(shared) >= required


def _search_terms(title: str, min_token_length: int) -> list[str]:
    """Significant words of the title, each also in its accent-free spelling.

    ILIKE is accent-sensitive, so "Maçã" alone never finds "Maca".
    """
    words = _WHITESPACE.split(_PUNCTUATION.sub(" ", title).strip())
    terms: list[str] = []
    for word in words:
        if len(word) <= min_token_length:
            continue
        for spelling in (word, _strip_accents(word)):
            if spelling.lower() not in (t.lower() for t in terms):
                terms.append(spelling)
    return terms


class DuplicateChecker:
    """Decides whether a candidate title is too close to a published one."""

    def __init__(self, recipes: RecipeRepository, policy: DuplicatePolicy | None = None):
        self._recipes = recipes
        self.policy = policy or DuplicatePolicy()

    def _existing_titles(self, title: str) -> list[str]:
        terms = _search_terms(title, self.policy.min_token_length) or [title.strip()]
        seen: set[object] = set()
        titles: list[str] = []
        for term in terms:
            for recipe in self._recipes.search_by_title(term):
                if recipe.id in seen:
                    continue
                seen.add(recipe.id)
                titles.append(recipe.title)
        return titles

    def is_duplicate(self, title: str) -> bool:
        """
        Check a candidate title against existing recipes.

        Fails open: when the lookup itself fails the title is accepted.
        """
        if not title or not title.strip():
            return False

        try:
            existing_titles = self._existing_titles(title)
        except Exception as e:
            logger.warning("duplicate.lookup_failed title=%r error=%s", title, e)
            return False

        normalized = normalize_title(title)
        for existing in existing_titles:
            if normalize_title(existing) == normalized:
                logger.info("duplicate.exact_match title=%r existing=%r", title, existing)
                return True
            if is_similar_title(title, existing, self.policy):
                logger.info("duplicate.similar title=%r existing=%r", title, existing)
                return True
        return False

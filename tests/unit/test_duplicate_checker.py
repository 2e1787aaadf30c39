from __future__ import annotations

import httpx
import pytest

from src.app.services.duplicate_checker import (
    DuplicateChecker,
    DuplicatePolicy,
    is_similar_title,
    normalize_title,
    tokenize,
)
from tests.unit.fakes import InMemoryRecipeRepository


class TestNormalizeTitle:
    def test_strips_accents_case_and_punctuation(self) -> None:
        assert normalize_title("  Risotto de Camarão!! ") == "risotto de camarao"

    def test_collapses_whitespace(self) -> None:
        assert normalize_title("Bolo   de\tChocolate") == "bolo de chocolate"

    def test_hyphenated_words_become_separate_tokens(self) -> None:
        assert tokenize("Hambúrguer de grão-de-bico") == ["hamburguer", "de", "grao", "de", "bico"]

    def test_empty_title(self) -> None:
        assert tokenize("  ") == []


class TestIsSimilarTitle:
    def test_three_of_four_tokens_shared_is_similar(self) -> None:
        assert is_similar_title("Bolo de Chocolate Cremoso", "Bolo de Chocolate Molhado") is True

    def test_below_overlap_ratio_is_not_similar(self) -> None:
        assert is_similar_title("Bolo de Cenoura com Chocolate", "Bolo de Chocolate Molhado") is False

    def test_requires_two_significant_tokens(self) -> None:
        # "de" and "com" are shared but too short to count
        assert is_similar_title("Pão de Queijo com Ervas", "Sopa de Ervilha com Bacon") is False

    def test_accents_do_not_matter(self) -> None:
        assert is_similar_title("Mousse de Maracujá Cremoso", "mousse de maracuja cremosa") is True

    def test_policy_is_configurable(self) -> None:
        strict = DuplicatePolicy(min_token_length=3, min_shared_tokens=2, overlap_ratio=1.0)
        assert is_similar_title("Bolo de Chocolate Cremoso", "Bolo de Chocolate Molhado", strict) is False


class TestDuplicateChecker:
    def test_exact_match_ignoring_case_and_accents(self) -> None:
        repo = InMemoryRecipeRepository(titles=["risotto de camarao"])
        checker = DuplicateChecker(repo)
        assert checker.is_duplicate("Risotto de Camarão") is True

    def test_similar_existing_title_is_duplicate(self) -> None:
        repo = InMemoryRecipeRepository(titles=["Bolo de Chocolate Molhado"])
        checker = DuplicateChecker(repo)
        assert checker.is_duplicate("Bolo de Chocolate Cremoso") is True

    def test_unrelated_titles_are_not_duplicates(self) -> None:
        repo = InMemoryRecipeRepository(titles=["Salada Caesar Completa", "Bolo de Chocolate Molhado"])
        checker = DuplicateChecker(repo)
        assert checker.is_duplicate("Bolo de Cenoura com Chocolate") is False

    def test_searches_each_significant_word_once(self) -> None:
        repo = InMemoryRecipeRepository()
        checker = DuplicateChecker(repo)
        checker.is_duplicate("Bolo de Chocolate com Chocolate")
        assert repo.search_calls == ["Bolo", "Chocolate"]

    def test_lookup_failure_fails_open(self) -> None:
        repo = InMemoryRecipeRepository(titles=["Bolo de Chocolate Cremoso"])
        repo.fail_search = True
        checker = DuplicateChecker(repo)
        assert checker.is_duplicate("Bolo de Chocolate Cremoso") is False

    def test_accented_title_finds_unaccented_match(self) -> None:
        repo = InMemoryRecipeRepository(titles=["Pure de Maca"])
        checker = DuplicateChecker(repo)

        assert checker.is_duplicate("Purê de Maçã") is True
        assert repo.search_calls[:2] == ["Purê", "Pure"]

    def test_search_terms_include_accent_free_spelling(self) -> None:
        repo = InMemoryRecipeRepository()
        DuplicateChecker(repo).is_duplicate("Purê de Maçã")
        assert repo.search_calls == ["Purê", "Pure", "Maçã", "Maca"]

    def test_transport_error_fails_open(self) -> None:
        repo = InMemoryRecipeRepository(titles=["Bolo de Chocolate Cremoso"])
        repo.search_error = httpx.ConnectError("connection refused")
        checker = DuplicateChecker(repo)
        assert checker.is_duplicate("Bolo de Chocolate Cremoso") is False

    @pytest.mark.parametrize("title", ["", "   "])
    def test_blank_title_is_not_duplicate(self, title: str) -> None:
        checker = DuplicateChecker(InMemoryRecipeRepository(titles=["Bolo"]))
        assert checker.is_duplicate(title) is False

from __future__ import annotations

import pytest

from src.app.domain.errors import (
    DuplicateRecipeError,
    GenerationError,
    GenerationQuotaError,
    GenerationSchemaError,
    ImageProductionError,
    InvalidSettingsError,
    PersistenceError,
    SlugConflictError,
    StorageError,
    StorageUploadError,
)


class TestGenerationSchemaError:
    def test_default_message(self) -> None:
        error = GenerationSchemaError()
        assert str(error) == "Generated recipe is missing required fields"
        assert error.missing_fields == []
        assert isinstance(error, GenerationError)

    def test_missing_fields(self) -> None:
        error = GenerationSchemaError(missing_fields=["title"])
        assert error.missing_fields == ["title"]


class TestDuplicateRecipeError:
    def test_single_attempt(self) -> None:
        error = DuplicateRecipeError("Bolo de Chocolate")
        assert "Bolo de Chocolate" in str(error)
        assert error.attempts == 1

    def test_exhausted_attempts_message(self) -> None:
        error = DuplicateRecipeError("Bolo de Chocolate", attempts=5)
        assert str(error).startswith("could not generate a unique recipe after 5 attempts")
        assert error.title == "Bolo de Chocolate"


class TestGenerationQuotaError:
    def test_default_message(self) -> None:
        error = GenerationQuotaError()
        assert str(error) == "Text generation quota exhausted"
        assert isinstance(error, GenerationError)


class TestImageProductionError:
    def test_includes_stage_and_reason(self) -> None:
        error = ImageProductionError("store", "bucket missing")
        assert "store" in str(error)
        assert error.stage == "store"
        assert error.reason == "bucket missing"


class TestStorageUploadError:
    def test_includes_object_key_and_reason(self) -> None:
        error = StorageUploadError("recipes/2026/01/abc_bolo.png", "AccessDenied")
        assert "recipes/2026/01/abc_bolo.png" in str(error)
        assert error.reason == "AccessDenied"
        assert isinstance(error, StorageError)


class TestPersistenceError:
    def test_includes_operation(self) -> None:
        error = PersistenceError("create", "timeout")
        assert "create" in str(error)
        assert error.operation == "create"
        assert error.reason == "timeout"

    def test_slug_conflict_is_persistence_error(self) -> None:
        error = SlugConflictError("bolo-de-chocolate")
        assert isinstance(error, PersistenceError)
        assert error.slug == "bolo-de-chocolate"


class TestInvalidSettingsError:
    def test_is_value_error(self) -> None:
        error = InvalidSettingsError("generation_interval_minutes", "minimum is 5 minutes")
        assert isinstance(error, ValueError)
        assert error.field == "generation_interval_minutes"
        with pytest.raises(ValueError):
            raise error

from __future__ import annotations

import pytest
from datetime import datetime, timedelta, timezone

from src.app.domain.errors import InvalidSettingsError
from src.app.domain.models import (
    AutoGenerationSettings,
    CycleResult,
    CycleStatus,
    Difficulty,
    GeneratedRecipe,
    GenerationOutcome,
    OutcomeKind,
    SchedulerState,
    compute_seconds_until_next,
)

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


class TestDifficulty:
    @pytest.mark.parametrize(
        "label, expected",
        [
            ("easy", Difficulty.EASY),
            ("Fácil", Difficulty.EASY),
            ("facil", Difficulty.EASY),
            ("Médio", Difficulty.MEDIUM),
            ("HARD", Difficulty.HARD),
            ("Difícil", Difficulty.HARD),
        ],
    )
    def test_parse_known_labels(self, label: str, expected: Difficulty) -> None:
        assert Difficulty.parse(label) is expected

    @pytest.mark.parametrize("label", ["extreme", "", None, 3])
    def test_parse_unknown_is_medium(self, label) -> None:
        assert Difficulty.parse(label) is Difficulty.MEDIUM

    def test_portuguese_label(self) -> None:
        assert Difficulty.HARD.label_pt == "Difícil"

    def test_is_string_enum(self) -> None:
        assert isinstance(Difficulty.EASY, str)
        assert Difficulty.EASY == "easy"


class TestSchedulerState:
    def test_values(self) -> None:
        assert SchedulerState.STOPPED.value == "STOPPED"
        assert SchedulerState.RUNNING.value == "RUNNING"


class TestAutoGenerationSettings:
    def test_defaults(self) -> None:
        settings = AutoGenerationSettings()
        assert settings.auto_generation_enabled is False
        assert settings.generation_interval_minutes == 60
        assert settings.last_generation_at is None

    @pytest.mark.parametrize("minutes", [3, 1500, 0, -5])
    def test_interval_out_of_bounds(self, minutes: int) -> None:
        with pytest.raises(InvalidSettingsError) as exc_info:
            AutoGenerationSettings.validate_interval(minutes)
        assert exc_info.value.field == "generation_interval_minutes"

    @pytest.mark.parametrize("minutes", [5, 60, 1440])
    def test_interval_in_bounds(self, minutes: int) -> None:
        assert AutoGenerationSettings.validate_interval(minutes) == minutes

    def test_interval_must_be_integer(self) -> None:
        with pytest.raises(InvalidSettingsError):
            AutoGenerationSettings.validate_interval(True)


class TestComputeSecondsUntilNext:
    def test_remaining_time(self) -> None:
        settings = AutoGenerationSettings(
            auto_generation_enabled=True,
            generation_interval_minutes=30,
            last_generation_at=NOW - timedelta(minutes=10),
        )
        assert compute_seconds_until_next(settings, NOW) == 20 * 60

    def test_floors_at_zero(self) -> None:
        settings = AutoGenerationSettings(
            auto_generation_enabled=True,
            generation_interval_minutes=5,
            last_generation_at=NOW - timedelta(hours=2),
        )
        assert compute_seconds_until_next(settings, NOW) == 0

    def test_none_when_disabled(self) -> None:
        settings = AutoGenerationSettings(auto_generation_enabled=False, last_generation_at=NOW)
        assert compute_seconds_until_next(settings, NOW) is None

    def test_none_when_never_run(self) -> None:
        settings = AutoGenerationSettings(auto_generation_enabled=True)
        assert compute_seconds_until_next(settings, NOW) is None


class TestTaggedResults:
    def test_fallback_outcome_is_distinguishable(self) -> None:
        recipe = GeneratedRecipe(title="X", description="", ingredients=["a"], instructions=["b"])
        outcome = GenerationOutcome(kind=OutcomeKind.FALLBACK_USED, recipe=recipe, idea="x", reason="quota")
        assert outcome.is_fallback is True

    def test_cycle_result_published_flag(self) -> None:
        assert CycleResult(status=CycleStatus.PUBLISHED).published is True
        assert CycleResult(status=CycleStatus.SKIPPED).published is False

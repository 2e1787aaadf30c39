from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Iterator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.app.deps import (
    CurrentUser,
    get_current_user,
    get_preview_service,
    get_recipe_publisher,
    get_scheduler,
    get_settings_repository,
    get_supabase,
)
from src.app.main import app
from src.app.services.auto_generator import AutoGenerationScheduler
from src.app.services.duplicate_checker import DuplicateChecker
from src.app.services.image_producer import ImageProducer
from src.app.services.recipe_generator import RecipeGenerator
from src.app.services.recipe_preview import RecipePreviewService
from src.app.services.recipe_publisher import RecipePublisher
from src.services.errors import MalformedResponseError
from tests.unit.fakes import (
    InMemoryRecipeRepository,
    InMemorySettingsRepository,
    ScriptedImageService,
    ScriptedTextService,
    recipe_payload,
)

NOW = datetime(2026, 2, 1, 8, 0, tzinfo=timezone.utc)


class AdminHarness:
    def __init__(self, text: ScriptedTextService | None = None, existing_titles: list[str] | None = None) -> None:
        self.recipes = InMemoryRecipeRepository(titles=existing_titles)
        self.settings = InMemorySettingsRepository()
        self.text = text or ScriptedTextService()
        generator = RecipeGenerator(self.text, DuplicateChecker(self.recipes), rng=random.Random(3))
        images = ImageProducer(ScriptedImageService(), storage=None)
        self.publisher = RecipePublisher(self.recipes)
        self.scheduler = AutoGenerationScheduler(
            settings_repository=self.settings,
            generator=generator,
            image_producer=images,
            publisher=self.publisher,
            clock=lambda: NOW,
            rng=random.Random(3),
        )
        self.previewer = RecipePreviewService(generator, images, self.publisher, max_attempts=5)

    def install(self) -> None:
        app.dependency_overrides[get_current_user] = lambda: CurrentUser(id="admin-1", email="admin@example.com")
        app.dependency_overrides[get_scheduler] = lambda: self.scheduler
        app.dependency_overrides[get_settings_repository] = lambda: self.settings
        app.dependency_overrides[get_preview_service] = lambda: self.previewer
        app.dependency_overrides[get_recipe_publisher] = lambda: self.publisher


@pytest.fixture
def harness() -> Iterator[AdminHarness]:
    h = AdminHarness()
    h.install()
    yield h
    app.dependency_overrides.clear()


@pytest.fixture
def client(harness: AdminHarness) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"ok": True}


class TestAuth:
    def test_missing_token_is_rejected(self) -> None:
        app.dependency_overrides[get_supabase] = lambda: MagicMock()
        try:
            response = TestClient(app).get("/admin/auto-generation")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 401


class TestAutoGenerationStatus:
    def test_initial_status(self, client: TestClient) -> None:
        body = client.get("/admin/auto-generation").json()

        assert body["state"] == "STOPPED"
        assert body["settings"]["generation_interval_minutes"] == 60
        assert body["stats"]["recipes_generated"] == 0
        assert body["seconds_until_next"] is None


class TestUpdateSettings:
    @pytest.mark.parametrize("minutes", [3, 1500])
    def test_out_of_bounds_interval_rejected(self, client: TestClient, harness: AdminHarness, minutes: int) -> None:
        response = client.put("/admin/auto-generation/settings", json={"generation_interval_minutes": minutes})

        assert response.status_code == 422
        assert harness.settings.current.generation_interval_minutes == 60

    def test_valid_interval_accepted(self, client: TestClient, harness: AdminHarness) -> None:
        response = client.put("/admin/auto-generation/settings", json={"generation_interval_minutes": 60})

        assert response.status_code == 200
        assert response.json()["state"] == "STOPPED"

    def test_enabling_starts_scheduler_with_immediate_cycle(self, client: TestClient, harness: AdminHarness) -> None:
        response = client.put(
            "/admin/auto-generation/settings",
            json={"auto_generation_enabled": True, "generation_interval_minutes": 5},
        )
        body = response.json()
        client.post("/admin/auto-generation/stop")

        assert response.status_code == 200
        assert body["state"] == "RUNNING"
        assert body["stats"]["recipes_generated"] == 1
        assert body["seconds_until_next"] == 300
        assert len(harness.recipes.created) == 1
        assert harness.settings.current.last_generation_at == NOW

    def test_disabling_stops_scheduler(self, client: TestClient, harness: AdminHarness) -> None:
        client.put("/admin/auto-generation/settings", json={"auto_generation_enabled": True})
        response = client.put("/admin/auto-generation/settings", json={"auto_generation_enabled": False})

        assert response.json()["state"] == "STOPPED"
        assert not harness.scheduler.has_timer


class TestControl:
    def test_start_when_disabled_stays_stopped(self, client: TestClient) -> None:
        assert client.post("/admin/auto-generation/start").json()["state"] == "STOPPED"

    def test_stop_is_idempotent(self, client: TestClient) -> None:
        assert client.post("/admin/auto-generation/stop").status_code == 200
        assert client.post("/admin/auto-generation/stop").json()["state"] == "STOPPED"

    def test_manual_run_and_stats_reset(self, client: TestClient, harness: AdminHarness) -> None:
        run = client.post("/admin/auto-generation/run").json()
        assert run["status"] == "PUBLISHED"
        assert run["outcome"] == "GENERATED"
        assert run["image_source"] == "DIRECT"
        assert run["recipe"]["slug"] == "torta-de-limao-cremosa"

        reset = client.post("/admin/auto-generation/stats/reset").json()
        assert reset["recipes_generated"] == 0


class TestPreview:
    def test_preview_returns_unpublished_draft(self, client: TestClient, harness: AdminHarness) -> None:
        response = client.post("/admin/recipes/preview", json={"idea": "torta de limão", "difficulty": "Fácil"})

        assert response.status_code == 200
        body = response.json()
        assert body["outcome"] == "GENERATED"
        assert body["draft"]["slug"] == "torta-de-limao-cremosa"
        assert body["attempts"] == 1
        assert harness.recipes.created == []
        assert "Fácil" in harness.text.prompts[0]

    def test_duplicate_preview_reports_attempts(self) -> None:
        text = ScriptedTextService(default=lambda prompt: recipe_payload(title="Bolo de Chocolate Cremoso"))
        harness = AdminHarness(text=text, existing_titles=["Bolo de Chocolate Molhado"])
        harness.install()
        try:
            with TestClient(app) as client:
                response = client.post("/admin/recipes/preview", json={"idea": "bolo de chocolate"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 409
        assert response.json()["detail"] == "could not generate a unique recipe after 5 attempts"
        assert len(text.prompts) == 5

    def test_blank_idea_rejected(self, client: TestClient) -> None:
        assert client.post("/admin/recipes/preview", json={"idea": ""}).status_code == 422
        assert client.post("/admin/recipes/preview", json={"idea": "   "}).status_code == 422

    def test_schema_error_is_bad_gateway(self) -> None:
        harness = AdminHarness(text=ScriptedTextService(MalformedResponseError("not json")))
        harness.install()
        try:
            with TestClient(app) as client:
                response = client.post("/admin/recipes/preview", json={"idea": "torta de limão"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 502


class TestPublishDraft:
    def test_publishes_with_fresh_slug(self, client: TestClient, harness: AdminHarness) -> None:
        draft = client.post("/admin/recipes/preview", json={"idea": "torta de limão"}).json()["draft"]
        client.post("/admin/auto-generation/run")  # takes the suggested slug

        response = client.post("/admin/recipes", json=draft)

        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "torta-de-limao-cremosa-1"
        assert body["published"] is True

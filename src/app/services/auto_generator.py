# src/app/services/auto_generator.py
"""
Auto-generation scheduler.

Publishes one recipe every `generation_interval_minutes` while the settings
row says auto-generation is enabled. All state lives on the scheduler
instance; the FastAPI app owns a single instance (see src.app.deps).
"""
from __future__ import annotations

import asyncio
import logging
import random
import threading
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from starlette.concurrency import run_in_threadpool

from src.app.domain.errors import DuplicateRecipeError, PersistenceError
from src.app.domain.models import (
    CycleResult,
    CycleStatus,
    DEFAULT_INTERVAL_MINUTES,
    GenerationOutcome,
    SchedulerState,
    SessionStats,
    compute_seconds_until_next,
)
from src.app.infra.db.base import SettingsRepository
from src.app.services.image_producer import ImageProducer
from src.app.services.recipe_generator import RecipeGenerator
from src.app.services.recipe_ideas import pick_recipe_idea
from src.app.services.recipe_publisher import RecipePublisher

log = logging.getLogger("auto_generator")

DEFAULT_MAX_ATTEMPTS = 5

Clock = Callable[[], datetime]
Sleep = Callable[[float], Awaitable[None]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AutoGenerationScheduler:
    """
    STOPPED/RUNNING state machine around a repeating asyncio timer task.

    - start(): runs one cycle right away, then arms the timer
    - tick(): re-reads settings; runs a cycle or stops when disabled
    - stop(): cancels future ticks only; an in-flight cycle completes
    - run_cycle(): single-flight; overlapping requests are SKIPPED
    """

    def __init__(
        self,
        settings_repository: SettingsRepository,
        generator: RecipeGenerator,
        image_producer: ImageProducer,
        publisher: RecipePublisher,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Clock = _utcnow,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings_repository
        self._generator = generator
        self._images = image_producer
        self._publisher = publisher
        self.max_attempts = max(1, max_attempts)
        self._clock = clock
        self._sleep = sleep
        self._rng = rng or random.Random()

        self.state = SchedulerState.STOPPED
        self.interval_minutes = DEFAULT_INTERVAL_MINUTES
        self._timer: Optional[asyncio.Task[None]] = None
        self._cycle_lock = asyncio.Lock()

        self._stats_lock = threading.Lock()
        self._recipes_generated = 0
        self._session_start_time = self._clock()

    # ---- state -------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    @property
    def has_timer(self) -> bool:
        return self._timer is not None

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle_lock.locked()

    @property
    def stats(self) -> SessionStats:
        with self._stats_lock:
            return SessionStats(
                recipes_generated=self._recipes_generated,
                session_start_time=self._session_start_time,
            )

    def reset_stats(self) -> SessionStats:
        with self._stats_lock:
            self._recipes_generated = 0
            self._session_start_time = self._clock()
        log.info("autogen.stats_reset")
        return self.stats

    async def seconds_until_next_generation(self) -> Optional[int]:
        settings = await run_in_threadpool(self._settings.read)
        return compute_seconds_until_next(settings, self._clock())

    # ---- transitions -------------------------------------------------------

    async def start(self) -> bool:
        """
        Enter RUNNING when the settings say enabled.

        Returns:
            True if the scheduler is now running
        """
        settings = await run_in_threadpool(self._settings.read)
        if not settings.auto_generation_enabled:
            log.info("autogen.start_skipped reason=disabled")
            self.stop()
            return False

        self._cancel_timer()
        self.interval_minutes = settings.generation_interval_minutes
        self.state = SchedulerState.RUNNING
        log.info("autogen.started interval_minutes=%s", self.interval_minutes)

        await self.run_cycle()

        # stop() may have been called while the first cycle ran.
        if self.state is SchedulerState.RUNNING:
            self._cancel_timer()
            self._timer = asyncio.create_task(
                self._run_timer(self.interval_minutes * 60),
                name="auto-generation-timer",
            )
        return self.is_running

    def stop(self) -> None:
        """Idempotent."""
        was_running = self.is_running or self._timer is not None
        self._cancel_timer()
        self.state = SchedulerState.STOPPED
        if was_running:
            log.info("autogen.stopped")

    async def restart(self) -> bool:
        self.stop()
        return await self.start()

    async def shutdown(self) -> None:
        """Stop and wait for an in-flight cycle to finish."""
        self.stop()
        async with self._cycle_lock:
            pass

    async def tick(self) -> CycleResult:
        try:
            settings = await run_in_threadpool(self._settings.read)
        except PersistenceError as exc:
            log.error("autogen.tick_skipped reason=settings_unavailable error=%s", exc)
            return CycleResult(status=CycleStatus.SKIPPED, reason=str(exc))

        if not settings.auto_generation_enabled:
            log.info("autogen.tick_disabled")
            self.stop()
            return CycleResult(status=CycleStatus.SKIPPED, reason="auto-generation disabled")

        if not self.is_running:
            return CycleResult(status=CycleStatus.SKIPPED, reason="scheduler stopped")

        return await self.run_cycle()

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None and not timer.done():
            timer.cancel()

    async def _run_timer(self, interval_seconds: float) -> None:
        while True:
            await self._sleep(interval_seconds)
            try:
                # Shielded so cancelling the timer never interrupts a cycle.
                await asyncio.shield(self.tick())
            except Exception as exc:
                log.exception("autogen.tick_failed error=%s", exc)

    # ---- cycle -------------------------------------------------------------

    async def run_cycle(self) -> CycleResult:
        if self._cycle_lock.locked():
            log.warning("autogen.cycle_skipped reason=in_flight")
            return CycleResult(status=CycleStatus.SKIPPED, reason="a generation cycle is already running")

        async with self._cycle_lock:
            try:
                return await run_in_threadpool(self._cycle)
            except Exception as exc:
                log.exception("autogen.cycle_failed error=%s", exc)
                return CycleResult(status=CycleStatus.FAILED, reason=str(exc))

    def _generate_unique(self) -> GenerationOutcome:
        last_title = ""
        for attempt in range(1, self.max_attempts + 1):
            idea = pick_recipe_idea(self._rng)
            try:
                outcome = self._generator.generate(idea)
            except DuplicateRecipeError as exc:
                last_title = exc.title
                log.info(
                    "autogen.duplicate attempt=%d/%d idea=%r title=%r",
                    attempt,
                    self.max_attempts,
                    idea,
                    exc.title,
                )
                continue
            outcome.attempts = attempt
            return outcome
        raise DuplicateRecipeError(last_title, attempts=self.max_attempts)

    def _cycle(self) -> CycleResult:
        outcome = self._generate_unique()
        image = self._images.produce(outcome.recipe.title)
        recipe = self._publisher.publish(outcome.recipe, image.url, published=True)

        with self._stats_lock:
            self._recipes_generated += 1

        try:
            self._settings.update_last_generation_timestamp(self._clock())
        except PersistenceError as exc:
            log.warning("autogen.timestamp_not_saved error=%s", exc)

        log.info(
            "autogen.cycle_published slug=%s kind=%s image=%s attempts=%d",
            recipe.slug,
            outcome.kind.value,
            image.source.value,
            outcome.attempts,
        )
        return CycleResult(status=CycleStatus.PUBLISHED, recipe=recipe, outcome=outcome, image=image)

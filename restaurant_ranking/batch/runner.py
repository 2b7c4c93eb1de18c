from __future__ import annotations

import asyncio
import logging
import time

import numpy as np

from ..errors import ConfigurationError, DimensionMismatch, ProviderError
from ..scoring.ambiance import AmbianceScorer
from ..scoring.profiles import AMBIANCE_PROFILE, ScoringProfile
from ..tags.models import RestaurantRecord
from .config import DEFAULT_BATCH_CONFIG, BatchConfig
from .sink import RestaurantSource, ScoreSink
from .stats import BatchSummary, OutcomeStatus, RestaurantOutcome, RunState

logger = logging.getLogger(__name__)


class BatchRunner:
    """Scores every restaurant against one profile and persists the result.

    The run moves FETCH_PAGE -> PROCESS_PAGE -> FETCH_PAGE ... until a short
    or empty page ends it in DONE. Preflight problems (credentials, unknown
    category, ideal vector failure) end it in FATAL before any restaurant is
    touched. ``request_stop()`` ends it in CANCELLED once the current page
    has finished.

    Scores are overwritten, never accumulated, so running twice over the
    same data gives the same scores.
    """

    def __init__(
        self,
        restaurants: RestaurantSource,
        scorer: AmbianceScorer,
        sink: ScoreSink,
        profile: ScoringProfile = AMBIANCE_PROFILE,
        config: BatchConfig = DEFAULT_BATCH_CONFIG,
    ) -> None:
        if config.page_size < 1 or config.concurrency < 1:
            raise ConfigurationError("page_size and concurrency must be at least 1")
        if config.start_from < 0 or (config.limit is not None and config.limit < 0):
            raise ConfigurationError("start_from and limit must not be negative")
        self._restaurants = restaurants
        self._scorer = scorer
        self._sink = sink
        self._profile = profile
        self._config = config
        self._stop = asyncio.Event()
        self.state = RunState.IDLE

    def request_stop(self) -> None:
        if not self._stop.is_set():
            logger.warning("Stop requested; finishing the current page")
        self._stop.set()

    async def _preflight(self) -> np.ndarray:
        self._scorer.check_ready()
        if not await self._restaurants.has_category(self._profile.category):
            raise ConfigurationError(f"tag category {self._profile.category!r} does not exist")
        return await self._scorer.compute_ideal_vector(self._profile.reference_tags)

    async def run(self) -> BatchSummary:
        summary = BatchSummary(profile=self._profile.name, score_field=self._profile.score_field)
        started = time.perf_counter()

        try:
            ideal_vector = await self._preflight()
        except (ConfigurationError, DimensionMismatch, ProviderError) as exc:
            logger.error("Cannot start %s run: %s", self._profile.name, exc)
            return self._fatal(summary, started, str(exc))
        except Exception as exc:
            logger.error("Cannot start %s run: %s", self._profile.name, exc, exc_info=True)
            return self._fatal(summary, started, f"{type(exc).__name__}: {exc}")

        total = await self._restaurants.count_restaurants()
        logger.info(
            "Scoring %s for %d restaurants (page size %d, concurrency %d)",
            self._profile.score_field,
            total,
            self._config.page_size,
            self._config.concurrency,
        )

        semaphore = asyncio.Semaphore(self._config.concurrency)
        offset = self._config.start_from
        remaining = self._config.limit

        while True:
            if self._stop.is_set():
                self.state = RunState.CANCELLED
                break

            self.state = RunState.FETCH_PAGE
            size = self._config.page_size if remaining is None else min(self._config.page_size, remaining)
            if size <= 0:
                self.state = RunState.DONE
                break
            page = await self._restaurants.fetch_restaurants(offset, size)
            if not page:
                self.state = RunState.DONE
                break

            self.state = RunState.PROCESS_PAGE
            summary.pages += 1
            logger.info("Processing page %d (%d restaurants)", summary.pages, len(page))
            outcomes = await asyncio.gather(
                *(self._guarded(semaphore, restaurant, ideal_vector) for restaurant in page)
            )
            for outcome in outcomes:
                summary.add(outcome)

            failed = sum(1 for o in outcomes if o.status is OutcomeStatus.FAILED)
            logger.info("Page %d complete: %d ok, %d failed", summary.pages, len(outcomes) - failed, failed)

            offset += len(page)
            if remaining is not None:
                remaining -= len(page)
            if len(page) < size:
                self.state = RunState.DONE
                break

        summary.state = self.state
        summary.duration_s = time.perf_counter() - started
        logger.info(
            "Run %s: %d processed, %d succeeded, %d failed, %d skipped, average score %.4f",
            summary.state.value,
            summary.processed,
            summary.succeeded,
            summary.failed,
            summary.skipped,
            summary.average_score,
        )
        return summary

    def _fatal(self, summary: BatchSummary, started: float, error: str) -> BatchSummary:
        self.state = summary.state = RunState.FATAL
        summary.error = error
        summary.duration_s = time.perf_counter() - started
        return summary

    async def _guarded(
        self,
        semaphore: asyncio.Semaphore,
        restaurant: RestaurantRecord,
        ideal_vector: np.ndarray,
    ) -> RestaurantOutcome:
        async with semaphore:
            return await self._process_restaurant(restaurant, ideal_vector)

    async def _process_restaurant(self, restaurant: RestaurantRecord, ideal_vector: np.ndarray) -> RestaurantOutcome:
        started = time.perf_counter()
        field_name = self._profile.score_field

        if self._config.skip_existing and restaurant.scores.get(field_name) is not None:
            return RestaurantOutcome(
                restaurant_id=restaurant.id,
                name=restaurant.name,
                status=OutcomeStatus.SKIPPED,
                score=restaurant.scores[field_name],
            )

        try:
            result = await self._scorer.evaluate(restaurant.id, self._profile.category, ideal_vector)
            await self._sink.write_score(restaurant.id, field_name, result.score)
        except Exception as exc:
            logger.error(
                "Failed to score restaurant %s (%s): %s",
                restaurant.id,
                restaurant.name,
                exc,
                exc_info=True,
            )
            return RestaurantOutcome(
                restaurant_id=restaurant.id,
                name=restaurant.name,
                status=OutcomeStatus.FAILED,
                error=f"{type(exc).__name__}: {exc}",
                duration_ms=(time.perf_counter() - started) * 1000,
            )

        return RestaurantOutcome(
            restaurant_id=restaurant.id,
            name=restaurant.name,
            status=OutcomeStatus.SUCCEEDED,
            score=result.score,
            tag_count=result.tag_count,
            duration_ms=(time.perf_counter() - started) * 1000,
        )

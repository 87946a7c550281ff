from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta

from issue_scout.errors import PersistenceError
from issue_scout.services.ingestion_service import IngestionService
from issue_scout.services.retention_service import RetentionEnforcer
from issue_scout.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

CYCLE_INTERVAL_SECONDS = 3600.0


class SchedulerState(str, enum.Enum):
    RUNNING = "running"
    SLEEPING = "sleeping"


class CycleScheduler:
    """Two-state loop: RUNNING crawls every category once, SLEEPING waits out the interval.

    There is no terminal state; ``run_forever`` only returns if the task is
    cancelled or the process is killed.
    """

    def __init__(
        self,
        ingestion: IngestionService,
        retention: RetentionEnforcer,
        categories: list[str],
        interval_seconds: float = CYCLE_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._ingestion = ingestion
        self._retention = retention
        self._categories = list(categories)
        self._interval = interval_seconds
        self._sleep = sleep
        self.state = SchedulerState.RUNNING
        self.cycles_completed = 0

    async def run_cycle(self) -> dict:
        logger.info("Starting scrape cycle at %s", utcnow().isoformat(timespec="seconds"))
        summary: dict = {"categories": {}, "retention": None}

        for category in self._categories:
            logger.info("--- Category: %s ---", category)
            try:
                summary["categories"][category] = await self._ingestion.run_category(category)
            except Exception:
                logger.exception("Category %s failed; moving on", category)

        try:
            summary["retention"] = await self._retention.enforce()
        except PersistenceError as exc:
            logger.error("Failed to clean up database: %s", exc)
        except Exception:
            logger.exception("Unexpected error during retention")

        self.cycles_completed += 1
        return summary

    async def step(self) -> None:
        if self.state is SchedulerState.RUNNING:
            await self.run_cycle()
            next_run = utcnow() + timedelta(seconds=self._interval)
            logger.info("Scrape cycle complete. Sleeping until %s", next_run.isoformat(timespec="seconds"))
            self.state = SchedulerState.SLEEPING
        else:
            await self._sleep(self._interval)
            self.state = SchedulerState.RUNNING

    async def run_forever(self) -> None:
        while True:
            await self.step()

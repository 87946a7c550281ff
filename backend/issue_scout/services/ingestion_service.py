from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from issue_scout.config import Settings, settings as default_settings
from issue_scout.db import queries
from issue_scout.errors import FetchError, PersistenceError
from issue_scout.services.discovery_service import CandidateDiscoverer, RepoRef
from issue_scout.services.metric_fetcher import MetricFetcher
from issue_scout.services.score_engine import score_snapshot

logger = logging.getLogger(__name__)


class IngestionService:
    def __init__(
        self,
        discoverer: CandidateDiscoverer,
        fetcher: MetricFetcher,
        settings: Settings | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._discoverer = discoverer
        self._fetcher = fetcher
        self._settings = settings or default_settings
        self._sleep = sleep

    async def process_repo(self, ref: RepoRef, category: str) -> bool:
        """Fetch, score and save one repository. Returns True if it was saved."""
        logger.info("Processing %s (https://github.com/%s)", ref.full_name, ref.full_name)
        try:
            snapshot = await self._fetcher.fetch(ref.owner, ref.name)
        except FetchError as exc:
            logger.warning("Fetch failed for %s: %s", ref.full_name, exc)
            return False

        result = score_snapshot(snapshot, category, min_stars=self._settings.min_stars)
        if result is None:
            stars = snapshot.stars if snapshot is not None else 0
            logger.info("Skipping %s: no data or too few stars (%d)", ref.full_name, stars)
            return False

        try:
            await queries.save_scored_repository(result.repository, result.issues)
        except PersistenceError as exc:
            logger.error("Database error for %s: %s", ref.full_name, exc)
            return False
        return True

    async def run_category(self, category: str) -> dict:
        """Discover and ingest repositories for one category. Returns summary stats."""
        target = self._settings.repos_per_language
        stats = {"discovered": 0, "saved": 0}
        seen: set[str] = set()

        # Outcomes go back to the discoverer so only saved repositories fill the target.
        candidates = self._discoverer.discover(category, target, seen)
        saved = None
        try:
            while True:
                try:
                    ref = await candidates.asend(saved)
                except StopAsyncIteration:
                    break
                stats["discovered"] += 1
                saved = await self.process_repo(ref, category)
                if saved:
                    stats["saved"] += 1
                    logger.info("[%d/%d] Saved %s for %s", stats["saved"], target, ref.full_name, category)
                await self._sleep(self._settings.politeness_delay_seconds)
        finally:
            await candidates.aclose()

        logger.info("Category %s complete: %s", category, stats)
        return stats

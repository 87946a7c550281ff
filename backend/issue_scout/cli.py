from __future__ import annotations

import asyncio
import logging

import typer

from issue_scout.config import settings
from issue_scout.errors import ConfigError

app = typer.Typer(help="Good-first-issue scraper and scorer")
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _require(*fields: str) -> None:
    try:
        settings.require(*fields)
    except ConfigError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


async def _init() -> None:
    from issue_scout.db.connection import init_db
    await init_db()
    logger.info("Database connected")


async def _close() -> None:
    from issue_scout.db.connection import close_db
    await close_db()


def _build_scheduler(client):
    from issue_scout.services.discovery_service import CandidateDiscoverer
    from issue_scout.services.ingestion_service import IngestionService
    from issue_scout.services.metric_fetcher import MetricFetcher
    from issue_scout.services.retention_service import RetentionEnforcer
    from issue_scout.services.scheduler import CycleScheduler

    ingestion = IngestionService(
        discoverer=CandidateDiscoverer(client, page_size=settings.search_page_size),
        fetcher=MetricFetcher(client, window_days=settings.commit_window_days),
        settings=settings,
    )
    return CycleScheduler(
        ingestion=ingestion,
        retention=RetentionEnforcer(settings.max_issues, settings.max_repos),
        categories=settings.languages,
        interval_seconds=settings.cycle_interval_seconds,
    )


@app.command()
def serve() -> None:
    """Run the scraper forever: one full cycle, then sleep, then repeat."""
    _require("github_token", "database_url")

    async def _run() -> None:
        from issue_scout.services.github_client import GitHubClient
        await _init()
        client = GitHubClient(settings)
        try:
            await _build_scheduler(client).run_forever()
        finally:
            await client.close()
            await _close()

    asyncio.run(_run())


@app.command()
def cycle() -> None:
    """Run a single scrape cycle (all languages, then retention) and exit."""
    _require("github_token", "database_url")

    async def _run() -> None:
        from issue_scout.services.github_client import GitHubClient
        await _init()
        client = GitHubClient(settings)
        try:
            summary = await _build_scheduler(client).run_cycle()
        finally:
            await client.close()
            await _close()
        typer.echo(f"Cycle complete: {summary}")

    asyncio.run(_run())


@app.command()
def prune() -> None:
    """Enforce the retention caps on the stored dataset."""
    _require("database_url")

    async def _run() -> None:
        from issue_scout.errors import PersistenceError
        from issue_scout.services.retention_service import RetentionEnforcer
        await _init()
        try:
            issues_pruned, repos_pruned = await RetentionEnforcer(
                settings.max_issues, settings.max_repos
            ).enforce()
        except PersistenceError as exc:
            typer.echo(f"Retention failed: {exc}", err=True)
            raise typer.Exit(code=1) from exc
        finally:
            await _close()
        typer.echo(f"Pruned {issues_pruned} issues and {repos_pruned} repos")

    asyncio.run(_run())


if __name__ == "__main__":
    app()

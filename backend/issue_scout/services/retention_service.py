from __future__ import annotations

import logging

import aiosqlite

from issue_scout.db import queries
from issue_scout.db.connection import transaction
from issue_scout.errors import PersistenceError

logger = logging.getLogger(__name__)

MAX_ISSUES = 2000
MAX_REPOS = 200


class RetentionEnforcer:
    """Caps the stored dataset at ``max_issues`` issues and ``max_repos`` repositories."""

    def __init__(self, max_issues: int = MAX_ISSUES, max_repos: int = MAX_REPOS) -> None:
        self.max_issues = max_issues
        self.max_repos = max_repos

    async def enforce(self) -> tuple[int, int]:
        """Prune oldest issues, then least recently active repositories with their issues.

        Runs as a single transaction. Returns (issues_pruned, repos_pruned);
        raises PersistenceError with nothing deleted if any step fails.
        """
        logger.info("Enforcing database limits...")
        try:
            async with transaction():
                issues_pruned = await queries.prune_issues_beyond(self.max_issues)
                evicted = await queries.repos_beyond(self.max_repos)
                for full_name in evicted:
                    await queries.delete_repo_with_issues(full_name)
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Retention pass rolled back: {exc}") from exc

        logger.info("Pruned %d old issues (max %d)", issues_pruned, self.max_issues)
        logger.info("Pruned %d old repos (max %d)", len(evicted), self.max_repos)
        return issues_pruned, len(evicted)

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Protocol

from pydantic import ValidationError

from issue_scout.errors import DecodeError, UpstreamDataError
from issue_scout.models.snapshot import RepositorySnapshot
from issue_scout.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

# Sample sizes: 30 most recent open issues, 20 most recent merged PRs.
REPOSITORY_QUERY = """
query($owner: String!, $name: String!, $since: GitTimestamp!) {
  repository(owner: $owner, name: $name) {
    stargazerCount
    forkCount
    pushedAt
    mentionableUsers(first: 10) { totalCount }
    codeOwnersFile: object(expression: "HEAD:CODEOWNERS") {
      ... on Blob { byteSize }
    }
    srcFolder: object(expression: "HEAD:src/") {
      ... on Tree { entries { name extension } }
    }
    defaultBranchRef {
      target {
        ... on Commit { history(since: $since) { totalCount } }
      }
    }
    recentIssues: issues(last: 30, states: OPEN) {
      nodes {
        title
        url
        createdAt
        assignees { totalCount }
        projectsV2(first: 1) { nodes { id } }
        labels(first: 5) { nodes { name } }
        comments(first: 1) { nodes { createdAt } }
      }
    }
    recentPRs: pullRequests(last: 20, states: MERGED) {
      nodes {
        createdAt
        mergedAt
        additions
        deletions
        changedFiles
        totalCommentsCount
        labels(first: 5) { nodes { name } }
      }
    }
  }
}
"""


class GraphQLClient(Protocol):
    async def graphql(self, query: str, variables: dict) -> dict: ...


class MetricFetcher:
    def __init__(
        self,
        client: GraphQLClient,
        window_days: int = 30,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._client = client
        self._window = timedelta(days=window_days)
        self._clock = clock

    async def fetch(self, owner: str, name: str) -> RepositorySnapshot | None:
        """Fetch a snapshot of ``owner/name``.

        Returns None when GitHub has no data for the repository (deleted,
        renamed away, private). Raises a FetchError subclass otherwise.
        """
        fetched_at = self._clock()
        since = fetched_at - self._window
        payload = await self._client.graphql(
            REPOSITORY_QUERY,
            {"owner": owner, "name": name, "since": since.isoformat()},
        )

        errors = payload.get("errors")
        if errors:
            raise UpstreamDataError(f"GraphQL error for {owner}/{name}: {errors}")

        data = payload.get("data") or {}
        node = data.get("repository") if isinstance(data, dict) else None
        if node is None:
            logger.info("No repository data for %s/%s", owner, name)
            return None

        try:
            return RepositorySnapshot.from_graphql(owner, name, node, fetched_at)
        except (ValidationError, AttributeError, TypeError) as exc:
            raise DecodeError(f"Unexpected repository shape for {owner}/{name}") from exc

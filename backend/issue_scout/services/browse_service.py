from __future__ import annotations

import json
import logging

from issue_scout.db import queries
from issue_scout.models.schemas import (
    IssueListResponse,
    IssueSummary,
    RepoDetailResponse,
    RepoListResponse,
    RepoSummary,
)

logger = logging.getLogger(__name__)


def _row_to_repo(row) -> RepoSummary:
    return RepoSummary(
        full_name=row["full_name"],
        name=row["name"],
        stars=row["stars"],
        forks=row["forks"],
        language=row["language"],
        last_active=row["last_active"],
        health_score=row["health_score"],
        health=json.loads(row["health_json"]) if row["health_json"] else {},
    )


def _row_to_issue(row, language: str | None = None) -> IssueSummary:
    labels = json.loads(row["labels"]) if row["labels"] else {}
    quality = labels.get("issue_quality", {})
    return IssueSummary(
        url=row["url"],
        repo_full_name=row["repo_id"],
        title=row["title"],
        difficulty_score=row["difficulty_score"],
        tags=labels.get("tags", []),
        has_project_overhead=bool(quality.get("has_project_overhead")),
        created_at=row["created_at"],
        language=language,
    )


async def list_repos(
    language: str | None = None,
    q: str | None = None,
    sort_by: str = "active",
    page: int = 1,
    per_page: int = 10,
) -> RepoListResponse:
    offset = (page - 1) * per_page
    rows, total_count = await queries.list_repos(
        language=language, q=q, sort_by=sort_by, limit=per_page, offset=offset
    )
    return RepoListResponse(
        total_count=total_count,
        page=page,
        per_page=per_page,
        items=[_row_to_repo(row) for row in rows],
    )


async def list_issues(
    language: str | None = None,
    q: str | None = None,
    min_difficulty: float | None = None,
    max_difficulty: float | None = None,
    page: int = 1,
    per_page: int = 10,
) -> IssueListResponse:
    offset = (page - 1) * per_page
    rows, total_count = await queries.list_issues(
        language=language,
        q=q,
        min_difficulty=min_difficulty,
        max_difficulty=max_difficulty,
        limit=per_page,
        offset=offset,
    )
    return IssueListResponse(
        total_count=total_count,
        page=page,
        per_page=per_page,
        items=[_row_to_issue(row, row["language"]) for row in rows],
    )


async def repo_detail(owner: str, name: str) -> RepoDetailResponse | None:
    row = await queries.get_repo(f"{owner}/{name}")
    if row is None:
        logger.debug("Repo %s/%s not found", owner, name)
        return None
    repo = _row_to_repo(row)
    issue_rows = await queries.get_issues_for_repo(repo.full_name)
    return RepoDetailResponse(
        repo=repo,
        issues=[_row_to_issue(r, repo.language) for r in issue_rows],
    )

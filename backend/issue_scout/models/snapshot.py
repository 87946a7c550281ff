"""Typed view of the GraphQL ``repository`` node.

Every field has a default so scoring never has to probe a raw JSON tree:
missing counts are 0, missing lists are empty, and missing or malformed
timestamps are None.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from issue_scout.utils.timeutil import parse_timestamp


def _nodes(container: Any) -> list[dict]:
    if not isinstance(container, dict):
        return []
    nodes = container.get("nodes") or []
    return [n for n in nodes if isinstance(n, dict)]


def _total(container: Any) -> int:
    if not isinstance(container, dict):
        return 0
    return container.get("totalCount") or 0


def _label_names(node: dict) -> list[str]:
    return [lbl["name"] for lbl in _nodes(node.get("labels")) if isinstance(lbl.get("name"), str)]


class IssueCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = "Untitled"
    url: str = ""
    created_at: datetime | None = None
    assignee_count: int = 0
    labels: list[str] = Field(default_factory=list)
    has_project_board: bool = False
    first_comment_at: datetime | None = None

    @classmethod
    def from_node(cls, node: dict) -> IssueCandidate:
        comments = _nodes(node.get("comments"))
        return cls(
            title=node.get("title") or "Untitled",
            url=node.get("url") or "",
            created_at=parse_timestamp(node.get("createdAt")),
            assignee_count=_total(node.get("assignees")),
            labels=_label_names(node),
            has_project_board=bool(_nodes(node.get("projectsV2"))),
            first_comment_at=parse_timestamp(comments[0].get("createdAt")) if comments else None,
        )


class PullRequestFact(BaseModel):
    model_config = ConfigDict(frozen=True)

    created_at: datetime | None = None
    merged_at: datetime | None = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    comment_count: int = 0
    labels: list[str] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: dict) -> PullRequestFact:
        return cls(
            created_at=parse_timestamp(node.get("createdAt")),
            merged_at=parse_timestamp(node.get("mergedAt")),
            additions=node.get("additions") or 0,
            deletions=node.get("deletions") or 0,
            changed_files=node.get("changedFiles") or 0,
            comment_count=node.get("totalCommentsCount") or 0,
            labels=_label_names(node),
        )


class RepositorySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    full_name: str
    stars: int = 0
    forks: int = 0
    pushed_at: datetime | None = None
    commits_30d: int = 0
    mentionable_users: int = 0
    ownership_file_size: int = 0
    # One entry per immediate child of src/; "" when the entry has no extension.
    source_extensions: list[str] = Field(default_factory=list)
    issues: list[IssueCandidate] = Field(default_factory=list)
    pull_requests: list[PullRequestFact] = Field(default_factory=list)
    fetched_at: datetime

    @classmethod
    def from_graphql(
        cls, owner: str, name: str, node: dict, fetched_at: datetime
    ) -> RepositorySnapshot:
        branch = node.get("defaultBranchRef") or {}
        history = (branch.get("target") or {}).get("history")
        codeowners = node.get("codeOwnersFile") or {}
        src_folder = node.get("srcFolder") or {}
        return cls(
            owner=owner,
            name=name,
            full_name=f"{owner}/{name}",
            stars=node.get("stargazerCount") or 0,
            forks=node.get("forkCount") or 0,
            pushed_at=parse_timestamp(node.get("pushedAt")),
            commits_30d=_total(history),
            mentionable_users=_total(node.get("mentionableUsers")),
            ownership_file_size=codeowners.get("byteSize") or 0,
            source_extensions=[
                entry.get("extension") or ""
                for entry in src_folder.get("entries") or []
                if isinstance(entry, dict)
            ],
            issues=[IssueCandidate.from_node(n) for n in _nodes(node.get("recentIssues"))],
            pull_requests=[PullRequestFact.from_node(n) for n in _nodes(node.get("recentPRs"))],
            fetched_at=fetched_at,
        )

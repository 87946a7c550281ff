from __future__ import annotations

from pydantic import BaseModel, Field


class RepoSummary(BaseModel):
    full_name: str
    name: str
    stars: int = 0
    forks: int = 0
    language: str = ""
    last_active: str = ""
    health_score: float = 0.0
    health: dict = Field(default_factory=dict)


class IssueSummary(BaseModel):
    url: str
    repo_full_name: str
    title: str
    difficulty_score: float | None = None
    tags: list[str] = Field(default_factory=list)
    has_project_overhead: bool = False
    created_at: str = ""
    language: str | None = None


class RepoListResponse(BaseModel):
    total_count: int = 0
    page: int = 1
    per_page: int = 10
    items: list[RepoSummary] = Field(default_factory=list)


class IssueListResponse(BaseModel):
    total_count: int = 0
    page: int = 1
    per_page: int = 10
    items: list[IssueSummary] = Field(default_factory=list)


class RepoDetailResponse(BaseModel):
    repo: RepoSummary
    issues: list[IssueSummary] = Field(default_factory=list)

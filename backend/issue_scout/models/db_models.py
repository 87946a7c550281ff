from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class HealthBreakdown:
    commits_30d: int = 0
    response_time_avg_hrs: float = 0.0
    response_sample_size: int = 0
    pr_merge_avg_hrs: float = 0.0
    solo_maintainer: bool = False
    has_codeowners: bool = False
    response_24h_rate: float = 0.0
    quick_wins_count: int = 0
    gfi_conversions: int = 0
    total_recent_merged_prs: int = 0
    src_extensions: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Nested layout stored in repos.health_json."""
        return {
            "commits_30d": self.commits_30d,
            "response_time_avg_hrs": self.response_time_avg_hrs,
            "response_sample_size": self.response_sample_size,
            "pr_merge_avg_hrs": self.pr_merge_avg_hrs,
            "maintainer_quality": {
                "solo_maintainer": self.solo_maintainer,
                "has_codeowners": self.has_codeowners,
                "response_24h_rate": self.response_24h_rate,
            },
            "success_indicators": {
                "quick_wins_count": self.quick_wins_count,
                "gfi_conversions": self.gfi_conversions,
                "total_recent_merged_prs": self.total_recent_merged_prs,
            },
            "src_extensions": dict(self.src_extensions),
        }


@dataclass
class ScoredRepository:
    full_name: str
    name: str
    stars: int
    forks: int
    language: str
    last_active: datetime
    health_score: float
    health: HealthBreakdown = field(default_factory=HealthBreakdown)


@dataclass
class ScoredIssue:
    url: str
    repo_id: str
    title: str
    difficulty_score: float | None
    created_at: datetime
    tags: list[str] = field(default_factory=list)
    has_project_overhead: bool = False

    def labels_blob(self) -> dict:
        return {
            "tags": list(self.tags),
            "issue_quality": {"has_project_overhead": self.has_project_overhead},
        }

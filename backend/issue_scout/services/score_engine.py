from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field

from issue_scout.models.db_models import HealthBreakdown, ScoredIssue, ScoredRepository
from issue_scout.models.snapshot import IssueCandidate, PullRequestFact, RepositorySnapshot
from issue_scout.utils.timeutil import whole_hours_between

MIN_STARS = 10
NEUTRAL_HEALTH_SCORE = 50.0
QUICK_RESPONSE_HOURS = 24.0
QUICK_WIN_HOURS = 48.0
SOLO_MAINTAINER_THRESHOLD = 3
GFI_LABEL = "good first issue"

# Weights applied to the log-compressed PR averages.
LINES_WEIGHT = 0.4
FILES_WEIGHT = 0.3
COMMENTS_WEIGHT = 0.2
DAYS_WEIGHT = 0.1
DIFFICULTY_SCALE = 10.0


@dataclass
class ResponseStats:
    avg_hours: float = 0.0
    under_24h_rate: float = 0.0
    sample_size: int = 0


@dataclass
class PullRequestStats:
    difficulty: float | None = None
    merge_avg_hours: float = 0.0
    quick_wins: int = 0
    gfi_conversions: int = 0
    sample_size: int = 0


@dataclass
class ScoreResult:
    repository: ScoredRepository
    issues: list[ScoredIssue] = field(default_factory=list)


def issue_response_stats(issues: list[IssueCandidate]) -> ResponseStats:
    """Average first-response latency over issues that have a first comment."""
    total_hours = 0.0
    count = 0
    under_24h = 0
    for issue in issues:
        if issue.created_at is None or issue.first_comment_at is None:
            continue
        hours = whole_hours_between(issue.created_at, issue.first_comment_at)
        total_hours += hours
        count += 1
        if hours < QUICK_RESPONSE_HOURS:
            under_24h += 1

    if count == 0:
        return ResponseStats()
    return ResponseStats(
        avg_hours=total_hours / count,
        under_24h_rate=under_24h / count * 100.0,
        sample_size=count,
    )


def pull_request_stats(pull_requests: list[PullRequestFact]) -> PullRequestStats:
    """Difficulty estimate from the merged-PR sample.

    Only PRs with both a creation and a merge timestamp count. Per-PR
    averages of changed lines, changed files, comments and merge days are
    each passed through ln(x + 1) before weighting, then scaled by 10.
    """
    merge_hours_total = 0.0
    total_lines = 0.0
    total_files = 0.0
    total_comments = 0.0
    count = 0
    quick_wins = 0
    gfi_conversions = 0

    for pr in pull_requests:
        if pr.created_at is None or pr.merged_at is None:
            continue
        hours = whole_hours_between(pr.created_at, pr.merged_at)
        merge_hours_total += hours
        if hours < QUICK_WIN_HOURS:
            quick_wins += 1
        if any(GFI_LABEL in label.lower() for label in pr.labels):
            gfi_conversions += 1
        total_lines += pr.additions + pr.deletions
        total_files += pr.changed_files
        total_comments += pr.comment_count
        count += 1

    if count == 0:
        return PullRequestStats()

    merge_avg = merge_hours_total / count
    raw = (
        LINES_WEIGHT * math.log(total_lines / count + 1)
        + FILES_WEIGHT * math.log(total_files / count + 1)
        + COMMENTS_WEIGHT * math.log(total_comments / count + 1)
        + DAYS_WEIGHT * math.log(merge_avg / 24.0 + 1)
    )
    return PullRequestStats(
        difficulty=raw * DIFFICULTY_SCALE,
        merge_avg_hours=merge_avg,
        quick_wins=quick_wins,
        gfi_conversions=gfi_conversions,
        sample_size=count,
    )


def extension_histogram(extensions: list[str]) -> dict[str, int]:
    return dict(Counter(ext for ext in extensions if ext))


def health_from_difficulty(difficulty: float | None) -> float:
    # Not clamped: a large difficulty legitimately drives health below zero.
    if difficulty is None:
        return NEUTRAL_HEALTH_SCORE
    return 100.0 - difficulty


def score_snapshot(
    snapshot: RepositorySnapshot | None,
    category: str,
    min_stars: int = MIN_STARS,
) -> ScoreResult | None:
    """Turn a fetched snapshot into persistable records.

    Returns None when there is nothing to persist: no snapshot, or a
    repository below ``min_stars``. Pure; identical input gives identical
    output.
    """
    if snapshot is None or snapshot.stars < min_stars:
        return None

    unassigned = [i for i in snapshot.issues if i.assignee_count == 0]
    responses = issue_response_stats(unassigned)
    prs = pull_request_stats(snapshot.pull_requests)

    breakdown = HealthBreakdown(
        commits_30d=snapshot.commits_30d,
        response_time_avg_hrs=responses.avg_hours,
        response_sample_size=responses.sample_size,
        pr_merge_avg_hrs=prs.merge_avg_hours,
        solo_maintainer=snapshot.mentionable_users < SOLO_MAINTAINER_THRESHOLD,
        has_codeowners=snapshot.ownership_file_size > 0,
        response_24h_rate=responses.under_24h_rate,
        quick_wins_count=prs.quick_wins,
        gfi_conversions=prs.gfi_conversions,
        total_recent_merged_prs=prs.sample_size,
        src_extensions=extension_histogram(snapshot.source_extensions),
    )

    repository = ScoredRepository(
        full_name=snapshot.full_name,
        name=snapshot.name,
        stars=snapshot.stars,
        forks=snapshot.forks,
        language=category,
        last_active=snapshot.pushed_at or snapshot.fetched_at,
        health_score=health_from_difficulty(prs.difficulty),
        health=breakdown,
    )

    issues = [
        ScoredIssue(
            url=issue.url,
            repo_id=snapshot.full_name,
            title=issue.title,
            difficulty_score=prs.difficulty,
            created_at=issue.created_at or snapshot.fetched_at,
            tags=list(issue.labels),
            has_project_overhead=issue.has_project_board,
        )
        for issue in unassigned
        if issue.url
    ]
    return ScoreResult(repository=repository, issues=issues)

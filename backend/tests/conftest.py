from datetime import datetime, timezone

import pytest
import pytest_asyncio

from issue_scout.db.connection import close_db, get_db, init_db
from issue_scout.models.db_models import ScoredIssue, ScoredRepository
from issue_scout.models.snapshot import RepositorySnapshot

FETCHED_AT = datetime(2026, 2, 17, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def db():
    """Initialize an in-memory SQLite DB for tests."""
    await init_db(":memory:")
    conn = await get_db()
    yield conn
    await close_db()


@pytest.fixture
def fetched_at():
    return FETCHED_AT


@pytest.fixture
def repository_node():
    """A GraphQL ``repository`` node as GitHub returns it."""
    return {
        "stargazerCount": 50,
        "forkCount": 7,
        "pushedAt": "2026-02-15T12:00:00Z",
        "mentionableUsers": {"totalCount": 2},
        "codeOwnersFile": {"byteSize": 120},
        "srcFolder": {
            "entries": [
                {"name": "main.rs", "extension": ".rs"},
                {"name": "lib.rs", "extension": ".rs"},
                {"name": "build.py", "extension": ".py"},
                {"name": "util", "extension": ""},
            ]
        },
        "defaultBranchRef": {"target": {"history": {"totalCount": 42}}},
        "recentIssues": {
            "nodes": [
                {
                    "title": "Typo in README",
                    "url": "https://github.com/owner/repo/issues/1",
                    "createdAt": "2026-02-01T00:00:00Z",
                    "assignees": {"totalCount": 0},
                    "projectsV2": {"nodes": []},
                    "labels": {"nodes": [{"name": "good first issue"}, {"name": "docs"}]},
                    "comments": {"nodes": [{"createdAt": "2026-02-01T10:00:00Z"}]},
                },
                {
                    "title": "Already taken",
                    "url": "https://github.com/owner/repo/issues/2",
                    "createdAt": "2026-02-02T00:00:00Z",
                    "assignees": {"totalCount": 1},
                    "projectsV2": {"nodes": []},
                    "labels": {"nodes": [{"name": "good first issue"}]},
                    "comments": {"nodes": [{"createdAt": "2026-02-05T00:00:00Z"}]},
                },
                {
                    "title": "Add CLI flag",
                    "url": "https://github.com/owner/repo/issues/3",
                    "createdAt": "2026-02-03T00:00:00Z",
                    "assignees": {"totalCount": 0},
                    "projectsV2": {"nodes": [{"id": "PVT_1"}]},
                    "labels": {"nodes": [{"name": "good first issue"}]},
                    "comments": {"nodes": []},
                },
                {
                    "title": "No url",
                    "url": "",
                    "createdAt": "2026-02-04T00:00:00Z",
                    "assignees": {"totalCount": 0},
                },
            ]
        },
        "recentPRs": {
            "nodes": [
                {
                    "createdAt": "2026-02-10T00:00:00Z",
                    "mergedAt": "2026-02-10T00:00:00Z",
                    "additions": 10,
                    "deletions": 0,
                    "changedFiles": 1,
                    "totalCommentsCount": 0,
                    "labels": {"nodes": []},
                }
            ]
        },
    }


@pytest.fixture
def snapshot(repository_node):
    return RepositorySnapshot.from_graphql("owner", "repo", repository_node, FETCHED_AT)


@pytest.fixture
def make_snapshot():
    def _make(full_name="owner/repo", stars=50, **fields):
        owner, name = full_name.split("/")
        fields.setdefault("fetched_at", FETCHED_AT)
        return RepositorySnapshot(
            owner=owner, name=name, full_name=full_name, stars=stars, **fields
        )

    return _make


@pytest.fixture
def make_repo():
    def _make(full_name="owner/repo", last_active="2026-02-15T00:00:00Z", **fields):
        defaults = {
            "name": full_name.split("/")[1],
            "stars": 100,
            "forks": 10,
            "language": "Python",
            "health_score": 80.0,
        }
        defaults.update(fields)
        return ScoredRepository(
            full_name=full_name,
            last_active=datetime.fromisoformat(last_active.replace("Z", "+00:00")),
            **defaults,
        )

    return _make


@pytest.fixture
def make_issue():
    def _make(url, repo_id="owner/repo", created_at="2026-02-01T00:00:00Z", **fields):
        defaults = {"title": "An issue", "difficulty_score": 12.5}
        defaults.update(fields)
        return ScoredIssue(
            url=url,
            repo_id=repo_id,
            created_at=datetime.fromisoformat(created_at.replace("Z", "+00:00")),
            **defaults,
        )

    return _make

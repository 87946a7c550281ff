from __future__ import annotations

import json

import aiosqlite

from issue_scout.db.connection import get_db, transaction
from issue_scout.errors import PersistenceError
from issue_scout.models.db_models import ScoredIssue, ScoredRepository
from issue_scout.utils.timeutil import format_timestamp, utcnow

REPO_SORTS = {
    "active": "last_active DESC, full_name",
    "health": "health_score DESC, full_name",
    "stars": "stars DESC, full_name",
}


# Writes below run inside the caller's transaction and never commit themselves.

async def upsert_repo(repo: ScoredRepository) -> None:
    db = await get_db()
    await db.execute(
        """INSERT INTO repos (full_name, name, stars, forks, health_score, language,
                              last_active, health_json, scraped_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
           ON CONFLICT(full_name) DO UPDATE SET
               name=excluded.name, stars=excluded.stars, forks=excluded.forks,
               health_score=excluded.health_score, language=excluded.language,
               last_active=excluded.last_active, health_json=excluded.health_json,
               scraped_at=excluded.scraped_at""",
        (repo.full_name, repo.name, repo.stars, repo.forks, repo.health_score,
         repo.language, format_timestamp(repo.last_active),
         json.dumps(repo.health.to_dict(), sort_keys=True),
         format_timestamp(utcnow())),
    )


async def upsert_issue(issue: ScoredIssue) -> None:
    db = await get_db()
    await db.execute(
        """INSERT INTO issues (url, repo_id, title, difficulty_score, labels, created_at)
           VALUES (?, ?, ?, ?, ?, ?)
           ON CONFLICT(url) DO UPDATE SET
               repo_id=excluded.repo_id, title=excluded.title,
               difficulty_score=excluded.difficulty_score, labels=excluded.labels,
               created_at=excluded.created_at""",
        (issue.url, issue.repo_id, issue.title, issue.difficulty_score,
         json.dumps(issue.labels_blob(), sort_keys=True),
         format_timestamp(issue.created_at)),
    )


async def save_scored_repository(repo: ScoredRepository, issues: list[ScoredIssue]) -> None:
    """Upsert a repository and its issues atomically. Raises PersistenceError."""
    try:
        async with transaction():
            await upsert_repo(repo)
            for issue in issues:
                await upsert_issue(issue)
    except aiosqlite.Error as exc:
        raise PersistenceError(f"Failed to save {repo.full_name}: {exc}") from exc


async def prune_issues_beyond(keep: int) -> int:
    """Delete every issue except the ``keep`` most recently created. Returns rows deleted."""
    db = await get_db()
    cursor = await db.execute(
        """DELETE FROM issues WHERE url IN (
               SELECT url FROM issues
               ORDER BY created_at DESC, url
               LIMIT -1 OFFSET ?
           )""",
        (keep,),
    )
    return cursor.rowcount


async def repos_beyond(keep: int) -> list[str]:
    """full_names of every repository except the ``keep`` most recently active."""
    db = await get_db()
    cursor = await db.execute(
        """SELECT full_name FROM repos
           ORDER BY last_active DESC, full_name
           LIMIT -1 OFFSET ?""",
        (keep,),
    )
    rows = await cursor.fetchall()
    return [row["full_name"] for row in rows]


async def delete_repo_with_issues(full_name: str) -> None:
    db = await get_db()
    await db.execute("DELETE FROM issues WHERE repo_id = ?", (full_name,))
    await db.execute("DELETE FROM repos WHERE full_name = ?", (full_name,))


async def get_repo(full_name: str) -> aiosqlite.Row | None:
    db = await get_db()
    cursor = await db.execute("SELECT * FROM repos WHERE full_name = ?", (full_name,))
    return await cursor.fetchone()


async def get_issues_for_repo(full_name: str) -> list[aiosqlite.Row]:
    db = await get_db()
    cursor = await db.execute(
        "SELECT * FROM issues WHERE repo_id = ? ORDER BY created_at DESC, url",
        (full_name,),
    )
    return await cursor.fetchall()


async def count_repos() -> int:
    db = await get_db()
    cursor = await db.execute("SELECT COUNT(*) FROM repos")
    row = await cursor.fetchone()
    return row[0] if row else 0


async def count_issues() -> int:
    db = await get_db()
    cursor = await db.execute("SELECT COUNT(*) FROM issues")
    row = await cursor.fetchone()
    return row[0] if row else 0


async def list_repos(
    language: str | None = None,
    q: str | None = None,
    sort_by: str = "active",
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[aiosqlite.Row], int]:
    where_clauses: list[str] = []
    params: list = []
    if language:
        where_clauses.append("language = ?")
        params.append(language)
    if q:
        where_clauses.append("LOWER(full_name) LIKE ?")
        params.append(f"%{q.lower()}%")
    where = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
    order = REPO_SORTS.get(sort_by, REPO_SORTS["active"])

    db = await get_db()
    cursor = await db.execute(f"SELECT COUNT(*) FROM repos {where}", params)
    row = await cursor.fetchone()
    total_count = row[0] if row else 0

    cursor = await db.execute(
        f"SELECT * FROM repos {where} ORDER BY {order} LIMIT ? OFFSET ?",
        [*params, limit, offset],
    )
    return await cursor.fetchall(), total_count


async def list_issues(
    language: str | None = None,
    q: str | None = None,
    min_difficulty: float | None = None,
    max_difficulty: float | None = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[aiosqlite.Row], int]:
    where_clauses: list[str] = []
    params: list = []
    if language:
        where_clauses.append("r.language = ?")
        params.append(language)
    if q:
        where_clauses.append("(LOWER(i.title) LIKE ? OR LOWER(i.repo_id) LIKE ?)")
        params.extend([f"%{q.lower()}%"] * 2)
    if min_difficulty is not None:
        where_clauses.append("i.difficulty_score >= ?")
        params.append(min_difficulty)
    if max_difficulty is not None:
        where_clauses.append("i.difficulty_score <= ?")
        params.append(max_difficulty)
    where = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

    db = await get_db()
    cursor = await db.execute(
        f"SELECT COUNT(*) FROM issues i JOIN repos r ON i.repo_id = r.full_name {where}",
        params,
    )
    row = await cursor.fetchone()
    total_count = row[0] if row else 0

    cursor = await db.execute(
        f"""SELECT i.url, i.repo_id, i.title, i.difficulty_score, i.labels, i.created_at,
                   r.language, r.health_score
            FROM issues i
            JOIN repos r ON i.repo_id = r.full_name
            {where}
            ORDER BY i.created_at DESC, i.url
            LIMIT ? OFFSET ?""",
        [*params, limit, offset],
    )
    return await cursor.fetchall(), total_count

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from issue_scout.config import settings

_db: aiosqlite.Connection | None = None
_SCHEMA_PATH = Path(__file__).parent / "schema.sql"
_URL_PREFIXES = ("sqlite+aiosqlite:///", "sqlite:///")


def sqlite_path(database_url: str) -> str:
    """Accept 'sqlite:///path', 'sqlite+aiosqlite:///path', a bare path, or ':memory:'."""
    for prefix in _URL_PREFIXES:
        if database_url.startswith(prefix):
            return database_url[len(prefix):]
    return database_url


async def init_db(database_url: str | None = None) -> None:
    global _db
    db_path = sqlite_path(database_url or settings.database_url)
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    _db = await aiosqlite.connect(db_path)
    _db.row_factory = aiosqlite.Row
    if db_path != ":memory:":
        await _db.execute("PRAGMA journal_mode=WAL")
    await _db.execute("PRAGMA foreign_keys=ON")
    schema_sql = _SCHEMA_PATH.read_text()
    await _db.executescript(schema_sql)
    await _db.commit()


async def get_db() -> aiosqlite.Connection:
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _db


@asynccontextmanager
async def transaction() -> AsyncIterator[aiosqlite.Connection]:
    """Unit of work: commit everything executed inside the block, or nothing."""
    db = await get_db()
    try:
        yield db
        await db.commit()
    except BaseException:
        await db.rollback()
        raise


async def close_db() -> None:
    global _db
    if _db is not None:
        await _db.close()
        _db = None

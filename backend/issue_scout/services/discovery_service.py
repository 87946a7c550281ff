from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import NamedTuple, Protocol

from issue_scout.errors import DecodeError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TARGET_COUNT = 20
DEFAULT_PAGE_SIZE = 30


class SearchClient(Protocol):
    async def search_issues(self, query: str, page: int = 1, per_page: int = 30) -> dict: ...


class RepoRef(NamedTuple):
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, full_name: str) -> RepoRef | None:
        parts = full_name.split("/")
        if len(parts) != 2 or not all(parts):
            return None
        return cls(parts[0], parts[1])


def repo_full_name_from_url(repository_url: str) -> str:
    """'https://api.github.com/repos/owner/name' -> 'owner/name' ('' if no /repos/ part)."""
    _, sep, tail = repository_url.partition("/repos/")
    return tail if sep else ""


def good_first_issue_query(category: str) -> str:
    return f'is:issue is:open label:"good first issue" language:{category}'


class CandidateDiscoverer:
    def __init__(self, client: SearchClient, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._client = client
        self._page_size = page_size

    async def discover(
        self,
        category: str,
        target_count: int = DEFAULT_TARGET_COUNT,
        seen: set[str] | None = None,
    ) -> AsyncGenerator[RepoRef, bool | None]:
        """Yield distinct repositories with open good-first-issues until ``target_count`` are accepted.

        The caller reports each outcome with ``asend(saved)``; only a sent
        ``False`` leaves the slot open, so plain ``async for`` iteration
        counts every yield. ``seen`` is the caller's dedup set for this
        category and cycle; it is updated in place. Paging stops on an empty
        page, or abandons the category on a transport or decode failure.
        """
        if seen is None:
            seen = set()
        query = good_first_issue_query(category)
        accepted = 0
        page = 1

        while accepted < target_count:
            try:
                payload = await self._client.search_issues(
                    query, page=page, per_page=self._page_size
                )
                items = payload.get("items")
                if not isinstance(items, list):
                    raise DecodeError(f"Search response page {page} has no items list")
            except (TransportError, DecodeError) as exc:
                logger.warning("Abandoning %s after page %d: %s", category, page, exc)
                return

            if not items:
                logger.info("No more results for %s on page %d", category, page)
                return

            for item in items:
                if accepted >= target_count:
                    return
                url = item.get("repository_url") if isinstance(item, dict) else None
                full_name = repo_full_name_from_url(url or "")
                if not full_name or full_name in seen:
                    continue
                seen.add(full_name)

                ref = RepoRef.parse(full_name)
                if ref is None:
                    continue
                saved = yield ref
                if saved is not False:
                    accepted += 1

            page += 1

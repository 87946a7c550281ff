from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from issue_scout.config import Settings, settings as default_settings
from issue_scout.errors import DecodeError, TransportError

logger = logging.getLogger(__name__)


class RateLimitTracker:
    def __init__(self) -> None:
        self.remaining: int = -1
        self.limit: int = -1
        self.reset_at: datetime | None = None

    def update(self, headers: httpx.Headers) -> None:
        previous_mode = self.budget_mode
        try:
            if "x-ratelimit-remaining" in headers:
                self.remaining = int(headers["x-ratelimit-remaining"])
            if "x-ratelimit-limit" in headers:
                self.limit = int(headers["x-ratelimit-limit"])
            if "x-ratelimit-reset" in headers:
                ts = int(headers["x-ratelimit-reset"])
                self.reset_at = datetime.fromtimestamp(ts, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            logger.warning("Ignoring malformed rate-limit headers: %s", {
                k: v for k, v in headers.items() if k.startswith("x-ratelimit-")
            })
            return
        if self.budget_mode == "minimal" and previous_mode != "minimal":
            logger.warning("GitHub rate limit nearly exhausted: %s", self.to_dict())

    @property
    def budget_mode(self) -> str:
        if self.remaining < 0:
            return "full"
        if self.remaining > 200:
            return "full"
        if self.remaining > 50:
            return "conserve"
        return "minimal"

    def to_dict(self) -> dict:
        return {
            "remaining": self.remaining,
            "limit": self.limit,
            "reset_at": self.reset_at.isoformat() if self.reset_at else None,
        }


class GitHubClient:
    """Thin transport over the REST search API and the GraphQL endpoint.

    All httpx failures surface as TransportError and undecodable bodies as
    DecodeError, so callers only deal with the issue-scout error taxonomy.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or default_settings
        headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": self._settings.user_agent,
        }
        if self._settings.github_token:
            headers["Authorization"] = f"Bearer {self._settings.github_token}"
        self._client = httpx.AsyncClient(
            base_url=self._settings.github_api_base,
            headers=headers,
            timeout=self._settings.http_timeout,
            transport=transport,
        )
        self.rate_limit = RateLimitTracker()

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, url, **kwargs)
            self.rate_limit.update(resp.headers)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> dict:
        try:
            data = resp.json()
        except ValueError as exc:
            raise DecodeError(f"Invalid JSON from {resp.request.url}") from exc
        if not isinstance(data, dict):
            raise DecodeError(f"Expected a JSON object from {resp.request.url}")
        return data

    async def search_issues(
        self, query: str, page: int = 1, per_page: int = 30
    ) -> dict:
        resp = await self._send(
            "GET",
            "/search/issues",
            params={"q": query, "page": page, "per_page": per_page},
        )
        return self._json(resp)

    async def graphql(self, query: str, variables: dict) -> dict:
        resp = await self._send(
            "POST",
            self._settings.github_graphql_url,
            json={"query": query, "variables": variables},
        )
        return self._json(resp)

    async def close(self) -> None:
        await self._client.aclose()

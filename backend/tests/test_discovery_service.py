import pytest

from issue_scout.errors import DecodeError, TransportError
from issue_scout.services.discovery_service import (
    CandidateDiscoverer,
    RepoRef,
    good_first_issue_query,
    repo_full_name_from_url,
)


class FakeSearchClient:
    def __init__(self, pages):
        self.pages = pages
        self.requests = []

    async def search_issues(self, query, page=1, per_page=30):
        self.requests.append((query, page, per_page))
        if page > len(self.pages):
            return {"items": []}
        result = self.pages[page - 1]
        if isinstance(result, Exception):
            raise result
        return result


def _item(full_name):
    return {"repository_url": f"https://api.github.com/repos/{full_name}"}


def _page(*full_names):
    return {"items": [_item(n) for n in full_names]}


async def _collect(discoverer, category="Rust", target_count=20, seen=None):
    return [ref async for ref in discoverer.discover(category, target_count, seen)]


def test_repo_full_name_from_url():
    assert repo_full_name_from_url("https://api.github.com/repos/a/b") == "a/b"
    assert repo_full_name_from_url("https://example.com/a/b") == ""
    assert repo_full_name_from_url("") == ""


def test_repo_ref_parse():
    assert RepoRef.parse("a/b") == RepoRef("a", "b")
    assert RepoRef.parse("a/b").full_name == "a/b"
    assert RepoRef.parse("a/b/c") is None
    assert RepoRef.parse("a/") is None


@pytest.mark.asyncio
async def test_query_and_page_size():
    client = FakeSearchClient([_page("a/one")])
    await _collect(CandidateDiscoverer(client, page_size=30), category="Python")
    query, page, per_page = client.requests[0]
    assert query == good_first_issue_query("Python")
    assert 'label:"good first issue"' in query
    assert "is:open" in query
    assert "language:Python" in query
    assert page == 1
    assert per_page == 30


@pytest.mark.asyncio
async def test_deduplicates_within_category():
    client = FakeSearchClient([_page("a/one", "a/one", "b/two"), _page("b/two", "c/three")])
    refs = await _collect(CandidateDiscoverer(client))
    assert [r.full_name for r in refs] == ["a/one", "b/two", "c/three"]


@pytest.mark.asyncio
async def test_caps_at_target_count_and_stops_paging():
    client = FakeSearchClient([_page("a/1", "a/2", "a/3", "a/4"), _page("b/1")])
    refs = await _collect(CandidateDiscoverer(client), target_count=2)
    assert [r.full_name for r in refs] == ["a/1", "a/2"]
    assert len(client.requests) == 1


@pytest.mark.asyncio
async def test_rejected_candidates_keep_their_slot_open():
    client = FakeSearchClient([_page("a/1", "a/2", "a/3"), _page("b/1", "b/2")])
    candidates = CandidateDiscoverer(client).discover("Rust", target_count=2)

    first = await candidates.asend(None)
    second = await candidates.asend(False)
    third = await candidates.asend(True)
    fourth = await candidates.asend(False)
    with pytest.raises(StopAsyncIteration):
        await candidates.asend(True)

    assert [r.full_name for r in (first, second, third, fourth)] == ["a/1", "a/2", "a/3", "b/1"]
    assert [p for _, p, _ in client.requests] == [1, 2]


@pytest.mark.asyncio
async def test_pages_sequentially_until_empty_page():
    client = FakeSearchClient([_page("a/1"), _page("a/2"), {"items": []}, _page("a/3")])
    refs = await _collect(CandidateDiscoverer(client))
    assert [r.full_name for r in refs] == ["a/1", "a/2"]
    assert [p for _, p, _ in client.requests] == [1, 2, 3]


@pytest.mark.asyncio
async def test_transport_error_abandons_category():
    client = FakeSearchClient([_page("a/1"), TransportError("timeout"), _page("a/3")])
    refs = await _collect(CandidateDiscoverer(client))
    assert [r.full_name for r in refs] == ["a/1"]
    assert len(client.requests) == 2


@pytest.mark.asyncio
async def test_decode_error_abandons_category():
    client = FakeSearchClient([DecodeError("bad json")])
    assert await _collect(CandidateDiscoverer(client)) == []
    assert len(client.requests) == 1


@pytest.mark.asyncio
async def test_missing_items_list_abandons_category():
    client = FakeSearchClient([{"message": "API rate limit exceeded"}, _page("a/1")])
    assert await _collect(CandidateDiscoverer(client)) == []


@pytest.mark.asyncio
async def test_skips_empty_and_malformed_identifiers():
    client = FakeSearchClient([
        {"items": [{"repository_url": ""}, {}, _item("a/b/c"), "junk", _item("ok/repo")]}
    ])
    refs = await _collect(CandidateDiscoverer(client))
    assert refs == [RepoRef("ok", "repo")]


@pytest.mark.asyncio
async def test_uses_caller_seen_set():
    seen = {"a/1"}
    client = FakeSearchClient([_page("a/1", "a/2")])
    refs = await _collect(CandidateDiscoverer(client), seen=seen)
    assert [r.full_name for r in refs] == ["a/2"]
    assert seen == {"a/1", "a/2"}


@pytest.mark.asyncio
async def test_fresh_seen_set_per_call():
    client = FakeSearchClient([_page("a/1")])
    discoverer = CandidateDiscoverer(client)
    first = await _collect(discoverer, category="Rust")
    second = await _collect(discoverer, category="Go")
    assert first == second == [RepoRef("a", "1")]

"""
Page fetcher tests — run against MemoryGameStore and small hand-written
stores so the predicate and paging logic are checked without a database.
"""
import pytest

from app.errors import StoreError
from app.query import Predicate, QuerySpec, SortDirection, build_predicate, compile_query, fetch


# ---------------------------------------------------------------------------
# Predicate
# ---------------------------------------------------------------------------

def test_predicate_is_a_conjunction():
    """A record must satisfy every filter to match."""
    predicate = Predicate(filters={"genre": frozenset({"rpg"}), "platform": frozenset({"pc"})})
    assert predicate.matches({"genre": "rpg", "platform": "pc"})
    assert not predicate.matches({"genre": "rpg", "platform": "switch"})
    assert not predicate.matches({"genre": "action", "platform": "pc"})


def test_predicate_search_is_case_insensitive_substring():
    """Search matches a case-insensitive substring of the title."""
    predicate = Predicate(search="CAT")
    assert predicate.matches({"title": "Cat Quest"})
    assert predicate.matches({"title": "Catherine"})
    assert not predicate.matches({"title": "Hades"})
    assert not predicate.matches({"title": None})


def test_empty_predicate_matches_everything():
    """A predicate without filters or search matches any record."""
    assert Predicate().matches({"title": "anything"})


def test_build_predicate_ignores_pagination_and_sort():
    """Page and sort do not change which records match."""
    a = compile_query({"genre": "rpg", "q": "cat", "page": "1", "sort": "asc"})
    b = compile_query({"genre": "rpg", "q": "cat", "page": "4", "sort": "desc"})
    assert build_predicate(a) == build_predicate(b)


# ---------------------------------------------------------------------------
# fetch
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_fetch_first_page_newest_first(memory_store):
    """The default fetch returns the newest releases first."""
    result = await fetch(memory_store, QuerySpec(limit=3))
    assert result.total == 7
    assert [r["title"] for r in result.items] == ["Stray", "Forza Horizon 5", "Hades"]


@pytest.mark.asyncio
async def test_fetch_ascending_second_page(memory_store):
    """Ascending sort with an offset returns the right slice."""
    result = await fetch(memory_store, QuerySpec(page=2, limit=2, sort=SortDirection.ASC))
    assert [r["title"] for r in result.items] == ["Celeste", "Cat Quest II"]


@pytest.mark.asyncio
async def test_fetch_filters_and_search_combine(memory_store):
    """Filters and search narrow the same result set together."""
    spec = compile_query({"genre": "rpg,puzzle", "q": "quest"})
    result = await fetch(memory_store, spec)
    assert result.total == 2
    assert {r["title"] for r in result.items} == {"Cat Quest", "Cat Quest II"}


@pytest.mark.asyncio
async def test_fetch_past_last_page_is_empty(memory_store):
    """A page beyond the data returns no items but the full total."""
    result = await fetch(memory_store, QuerySpec(page=5, limit=3))
    assert result.items == []
    assert result.total == 7


class _FailingStore:
    async def count(self, predicate):
        raise StoreError("down")

    async def query(self, predicate, sort, offset, limit):  # pragma: no cover
        return []


class _DriftingStore:
    """count() and query() disagree, as under concurrent writes."""

    async def count(self, predicate):
        return 1

    async def query(self, predicate, sort, offset, limit):
        return [{"id": 1}, {"id": 2}]


@pytest.mark.asyncio
async def test_store_errors_propagate():
    """StoreError from the store reaches the caller unchanged."""
    with pytest.raises(StoreError):
        await fetch(_FailingStore(), QuerySpec())


@pytest.mark.asyncio
async def test_count_and_query_mismatch_is_tolerated():
    """A count that disagrees with the page query is reported as-is."""
    result = await fetch(_DriftingStore(), QuerySpec())
    assert result.total == 1
    assert len(result.items) == 2

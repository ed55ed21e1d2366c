"""
GamesClient tests — the HTTP half of the client, run against the real app
through ASGITransport, plus mocked transports for failure shapes.
"""
import httpx
import pytest
from httpx import AsyncClient

from app.client import ClientQueryState, GamesClient, QueryStatus
from app.errors import FetchError, StoreError
from app.query import QuerySpec, compile_query
from app.stores import SqlGameStore


@pytest.fixture
def games_client(async_client: AsyncClient) -> GamesClient:
    return GamesClient(async_client)


def _mock_client(handler) -> GamesClient:
    http = AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    return GamesClient(http)


# ---------------------------------------------------------------------------
# fetch_page against the app
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_fetch_page_round_trips_spec(games_client: GamesClient, seeded):
    """A compiled spec sent over HTTP comes back as the matching envelope."""
    spec = compile_query({"genre": "rpg,puzzle", "q": "cat", "limit": "2"})
    envelope = await games_client.fetch_page(spec)
    assert envelope.total == 3
    assert envelope.total_pages == 2
    assert envelope.limit == 2
    assert [i["title"] for i in envelope.items] == ["Cat Quest II", "Cat Quest"]


@pytest.mark.asyncio
async def test_fetch_page_empty_result(games_client: GamesClient):
    """An empty catalog parses into an empty envelope with totalPages 0."""
    envelope = await games_client.fetch_page(QuerySpec())
    assert envelope.empty is True
    assert envelope.total_pages == 0


@pytest.mark.asyncio
async def test_client_state_end_to_end(games_client: GamesClient, seeded):
    """ClientQueryState drives the real API through filter and search edits."""
    async with ClientQueryState(
        games_client.fetch_page, spec=QuerySpec(limit=2), debounce_seconds=0.01
    ) as state:
        await state.settle()
        assert state.total == 7
        state.set_filter("platform", "switch")
        state.type_search("cele")
        state.flush_search()
        await state.settle()
        assert state.status is QueryStatus.READY
        assert [i["title"] for i in state.items] == ["Celeste"]


# ---------------------------------------------------------------------------
# Failure shapes
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_server_error_becomes_fetch_error():
    """A 500 body is surfaced as FetchError carrying status and message."""
    client = _mock_client(
        lambda request: httpx.Response(500, json={"success": False, "message": "store down"})
    )
    with pytest.raises(FetchError) as excinfo:
        await client.fetch_page(QuerySpec())
    assert excinfo.value.status_code == 500
    assert excinfo.value.message == "store down"


@pytest.mark.asyncio
async def test_unsuccessful_body_becomes_fetch_error():
    """A 200 with success=false is treated as a failure."""
    client = _mock_client(lambda request: httpx.Response(200, json={"success": False}))
    with pytest.raises(FetchError):
        await client.fetch_page(QuerySpec())


@pytest.mark.asyncio
async def test_non_json_body_becomes_fetch_error():
    """A body that is not JSON raises FetchError instead of a parse error."""
    client = _mock_client(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(FetchError):
        await client.fetch_page(QuerySpec())


@pytest.mark.asyncio
async def test_transport_error_becomes_fetch_error():
    """Connection failures are mapped to FetchError."""
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _mock_client(refuse)
    with pytest.raises(FetchError):
        await client.fetch_page(QuerySpec())


@pytest.mark.asyncio
async def test_request_carries_serialised_spec():
    """The request query string carries every dimension of the spec."""
    seen = {}

    def handler(request):
        seen["params"] = request.url.params
        spec = QuerySpec()
        return httpx.Response(200, json={
            "success": True, "page": spec.page, "limit": spec.limit, "total": 0,
            "totalPages": 0, "count": 0, "empty": True, "items": [],
        })

    client = _mock_client(handler)
    spec = compile_query({"genre": "rpg,puzzle", "q": "cat", "sort": "asc", "page": "2"})
    await client.fetch_page(spec)
    assert seen["params"].get_list("genre") == ["puzzle", "rpg"]
    assert seen["params"]["q"] == "cat"
    assert seen["params"]["sort"] == "asc"
    assert seen["params"]["page"] == "2"


@pytest.mark.asyncio
async def test_owned_http_client_is_closed():
    """A client that created its own httpx client closes it on exit."""
    client = GamesClient(base_url="http://test")
    async with client:
        pass
    assert client._http.is_closed


@pytest.mark.asyncio
async def test_client_state_errors_on_500_and_keeps_items(games_client: GamesClient, monkeypatch):
    """A server-side store failure puts the state in errored with the old envelope kept."""
    async with ClientQueryState(games_client.fetch_page) as state:
        await state.settle()
        assert state.status is QueryStatus.READY

        async def broken_count(self, predicate):
            raise StoreError("Game store unavailable")

        monkeypatch.setattr(SqlGameStore, "count", broken_count)
        state.set_sort("asc")
        await state.settle()
        assert state.status is QueryStatus.ERRORED
        assert isinstance(state.error, FetchError)
        assert state.error.status_code == 500
        assert state.envelope is not None
        assert state.envelope.empty is True

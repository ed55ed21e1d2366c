"""
Client-side list state — keeps a view in sync with the games listing.

Design notes
------------
- One ``ClientQueryState`` per mounted view.  It owns the current
  ``QuerySpec``, the search input buffer, the envelope on display, a
  status and the last error.  Pass it by reference to whatever renders
  or edits the view; there is no module-level instance.
- Edits go through the pure ``apply_edit`` reducer.  A fetch is issued
  only when the reduced spec differs from the last requested one.
- Every fetch runs as its own task tagged with a sequence number.  A
  result (or failure) is applied only if its number is still the latest
  issued; anything older is dropped, even if it arrives after a newer
  result was already shown.
- Search keystrokes only touch ``search_input``.  Each keystroke cancels
  the pending debounce timer and arms a new one, so exactly one commit
  fires per quiet period.
- A failed fetch keeps the previous envelope on display and sets
  ``error``; the view always has something to render.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from app.client.edits import CommitSearch, Edit, SetFilter, SetLimit, SetPage, SetSort, apply_edit
from app.config import settings
from app.query.compiler import QueryCompiler, QuerySpec, SortDirection, get_compiler
from app.query.envelope import ResultEnvelope

logger = logging.getLogger(__name__)

FetchPage = Callable[[QuerySpec], Awaitable[ResultEnvelope]]
Listener = Callable[["ClientQueryState"], None]


class QueryStatus(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


class ClientQueryState:
    """
    Live list state driving repeated page fetches.

    *fetch_page* is any coroutine function taking a ``QuerySpec`` and
    returning a ``ResultEnvelope`` (``GamesClient.fetch_page`` across
    HTTP, or a local stand-in).  Must be mounted from inside a running
    event loop.

    The initial *spec* and every edit are compiled with *compiler* (the
    settings-configured one by default), so the state never holds a spec
    the server would rewrite.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        *,
        spec: QuerySpec | None = None,
        debounce_seconds: float | None = None,
        compiler: QueryCompiler | None = None,
    ) -> None:
        self._fetch_page = fetch_page
        self._compiler = compiler or get_compiler()
        self._spec = self._compiler.compile(spec.to_params() if spec is not None else {})
        self.debounce_seconds = (
            settings.SEARCH_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )

        self.search_input: str = self._spec.search or ""
        self.status = QueryStatus.IDLE
        self.envelope: ResultEnvelope | None = None
        self.error: Exception | None = None

        self._mounted = False
        self._issued = 0
        self._requested: QuerySpec | None = None
        self._debounce: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def spec(self) -> QuerySpec:
        return self._spec

    @property
    def items(self) -> list[dict[str, Any]]:
        return list(self.envelope.items) if self.envelope else []

    @property
    def total(self) -> int:
        return self.envelope.total if self.envelope else 0

    @property
    def total_pages(self) -> int:
        return self.envelope.total_pages if self.envelope else 0

    @property
    def is_loading(self) -> bool:
        return self.status is QueryStatus.LOADING

    @property
    def search_pending(self) -> bool:
        """True while typed search text is waiting for the quiet period."""
        return self._debounce is not None

    @property
    def requests_issued(self) -> int:
        return self._issued

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mount(self) -> None:
        """Start tracking: issues the first fetch."""
        self._mounted = True
        self._request(self._spec, force=True)

    def unmount(self) -> None:
        """Stop tracking: cancels the debounce timer and in-flight fetches."""
        self._mounted = False
        self._cancel_debounce()
        # Bumping the sequence makes any straggler stale.
        self._issued += 1
        for task in list(self._tasks):
            task.cancel()
        self.status = QueryStatus.IDLE

    async def __aenter__(self) -> "ClientQueryState":
        self.mount()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.unmount()
        await self.settle()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* after every state change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def settle(self) -> None:
        """Wait until no fetch is in flight.  Pending search commits are not awaited."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def set_page(self, page: int) -> None:
        self._dispatch(SetPage(page))

    def next_page(self) -> None:
        if self.envelope is not None and self._spec.page >= self.envelope.total_pages:
            return
        self.set_page(self._spec.page + 1)

    def previous_page(self) -> None:
        self.set_page(max(1, self._spec.page - 1))

    def set_limit(self, limit: int) -> None:
        self._dispatch(SetLimit(limit))

    def set_filter(self, key: str, values: Any) -> None:
        self._dispatch(SetFilter(key, values))

    def clear_filter(self, key: str) -> None:
        self._dispatch(SetFilter(key, None))

    def set_sort(self, direction: SortDirection | str) -> None:
        self._dispatch(SetSort(direction))

    def type_search(self, text: str) -> None:
        """Record a keystroke; the commit happens after the quiet period."""
        self.search_input = text
        self._cancel_debounce()
        loop = asyncio.get_running_loop()
        self._debounce = loop.call_later(self.debounce_seconds, self._commit_search)
        self._notify()

    def flush_search(self) -> None:
        """Commit the search input now (e.g. on Enter)."""
        self._cancel_debounce()
        self._commit_search()

    def refresh(self) -> None:
        """Re-fetch the current spec even if it was already requested."""
        self._request(self._spec, force=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _cancel_debounce(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None

    def _commit_search(self) -> None:
        self._debounce = None
        self._dispatch(CommitSearch(self.search_input))

    def _dispatch(self, edit: Edit) -> None:
        new_spec = apply_edit(self._spec, edit, self._compiler)
        if new_spec == self._spec:
            return
        self._spec = new_spec
        self._request(new_spec)

    def _request(self, spec: QuerySpec, force: bool = False) -> None:
        if not self._mounted:
            self._notify()
            return
        if not force and spec == self._requested:
            self._notify()
            return

        self._issued += 1
        token = self._issued
        self._requested = spec
        self.status = QueryStatus.LOADING

        task = asyncio.get_running_loop().create_task(self._run(token, spec))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._notify()

    async def _run(self, token: int, spec: QuerySpec) -> None:
        try:
            envelope = await self._fetch_page(spec)
        except Exception as exc:
            if token != self._issued:
                logger.debug("Dropping failure of superseded request #%d", token)
                return
            logger.warning("List request #%d failed: %s", token, exc)
            self.error = exc
            self.status = QueryStatus.ERRORED
            self._notify()
            return

        if token != self._issued:
            logger.debug("Dropping stale response #%d (latest is #%d)", token, self._issued)
            return
        self.envelope = envelope
        self.error = None
        self.status = QueryStatus.READY
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

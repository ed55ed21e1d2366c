"""
Page fetcher — runs a ``QuerySpec`` against a record store.

The store is an external collaborator: anything exposing async ``count``
and ``query`` with the signatures of ``RecordStore`` can be plugged in
(``SqlGameStore`` in production, ``MemoryGameStore`` in tooling/tests).

The two store calls are deliberately not wrapped in a transaction.  If
concurrent writes make ``total`` and ``items`` disagree, the envelope
simply reports what each call saw.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, NamedTuple, Protocol

from app.query.compiler import SEARCH_FIELD, QuerySpec, SortDirection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Predicate:
    """
    Record-store filter: every filter must hold (conjunction) and, when
    *search* is set, the searchable field must contain it (case-insensitive).
    """

    filters: Mapping[str, frozenset[str]] = field(default_factory=dict)
    search: str | None = None

    def matches(self, record: Mapping[str, Any]) -> bool:
        for key, accepted in self.filters.items():
            if record.get(key) not in accepted:
                return False
        if self.search is not None:
            haystack = record.get(SEARCH_FIELD) or ""
            if self.search.lower() not in str(haystack).lower():
                return False
        return True


class RecordStore(Protocol):
    async def count(self, predicate: Predicate) -> int: ...

    async def query(
        self,
        predicate: Predicate,
        sort: SortDirection,
        offset: int,
        limit: int,
    ) -> Sequence[dict[str, Any]]: ...


class FetchResult(NamedTuple):
    items: list[dict[str, Any]]
    total: int


def build_predicate(spec: QuerySpec) -> Predicate:
    """Translate the filter/search part of *spec* into a store predicate."""
    return Predicate(filters=dict(spec.filters), search=spec.search)


async def fetch(store: RecordStore, spec: QuerySpec) -> FetchResult:
    """
    Return one page of records matching *spec* plus the unpaginated total.

    Store exceptions propagate unchanged.
    """
    predicate = build_predicate(spec)
    total = await store.count(predicate)
    items = await store.query(predicate, spec.sort, spec.offset, spec.limit)
    logger.debug(
        "Fetched page=%d limit=%d: %d item(s) of %d", spec.page, spec.limit, len(items), total
    )
    return FetchResult(items=list(items), total=max(0, total))

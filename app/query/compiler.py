"""
Query compiler — turns loosely-typed list parameters into a ``QuerySpec``.

Design notes
------------
- The compiler never raises on malformed input.  Every parameter degrades
  to its default: the list endpoint is public and read-only, so a bad
  ``page`` or ``sort`` token is not worth a 422.
- Filter values may arrive as a single string, a comma-separated string,
  or a list (repeated query keys).  All three shapes are flattened into a
  frozenset.  A filter that ends up empty is dropped, because "field
  omitted" and "field restricted to nothing" must never be confused.
- ``QuerySpec.to_params()`` produces raw params that compile back into an
  equal spec, so the client can ship a spec over HTTP and the server can
  re-normalize it without drift.
"""
from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from app.config import settings

SORT_FIELD = "release_date"
SEARCH_FIELD = "title"

# Raw parameter names read from the request.
PAGE_PARAM = "page"
LIMIT_PARAM = "limit"
SORT_PARAM = "sort"
SEARCH_PARAMS = ("q", "search")

# Largest row offset a signed 64-bit database integer can hold.
MAX_OFFSET = 2**63 - 1


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class QuerySpec:
    """Normalized list request.  Immutable once built."""

    page: int = 1
    limit: int = 20
    filters: Mapping[str, frozenset[str]] = field(default_factory=dict)
    search: str | None = None
    sort: SortDirection = SortDirection.DESC

    @property
    def offset(self) -> int:
        """Number of matching records skipped before this page."""
        return (self.page - 1) * self.limit

    def to_params(self) -> dict[str, Any]:
        """Serialise back into raw request parameters."""
        params: dict[str, Any] = {
            PAGE_PARAM: self.page,
            LIMIT_PARAM: self.limit,
            SORT_PARAM: self.sort.value,
        }
        for key in sorted(self.filters):
            params[key] = sorted(self.filters[key])
        if self.search is not None:
            params[SEARCH_PARAMS[0]] = self.search
        return params

    def cache_key(self) -> str:
        """Stable string encoding every dimension that affects the result."""
        filters = ";".join(
            f"{key}={','.join(sorted(self.filters[key]))}" for key in sorted(self.filters)
        )
        return f"{self.page}:{self.limit}:{self.sort.value}:{filters}:{self.search or ''}"


# ---------------------------------------------------------------------------
# Normalisation helpers (shared with the client-side edit reducer)
# ---------------------------------------------------------------------------

def parse_int(value: Any, default: int) -> int:
    """Parse *value* as an integer, returning *default* when it is not one."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def normalize_values(value: Any) -> frozenset[str]:
    """Flatten a raw filter value into a set of non-empty, trimmed strings."""
    if value is None:
        return frozenset()
    if isinstance(value, str):
        items: Iterable[Any] = [value]
    elif isinstance(value, Iterable):
        items = value
    else:
        items = [str(value)]

    values: set[str] = set()
    for item in items:
        if item is None:
            continue
        for part in str(item).split(","):
            part = part.strip()
            if part:
                values.add(part)
    return frozenset(values)


def normalize_search(value: Any) -> str | None:
    """Return the trimmed search text, or None when nothing remains."""
    if isinstance(value, (list, tuple)):
        value = value[-1] if value else None
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_sort(value: Any, default: SortDirection) -> SortDirection:
    if isinstance(value, (list, tuple)):
        value = value[-1] if value else None
    if isinstance(value, SortDirection):
        return value
    if isinstance(value, str):
        token = value.strip().lower()
        for direction in SortDirection:
            if direction.value == token:
                return direction
    return default


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------

class QueryCompiler:
    """
    Configured compiler for one listing.

    Attributes
    ----------
    filter_fields:
        Keys recognised as equals/in-set filters.  Any other raw key is
        ignored.
    default_limit:
        Page size used when ``limit`` is missing or not a number.
    max_limit:
        Hard ceiling on the page size regardless of what the caller asks.
    max_page:
        Hard ceiling on the page number.  Pages past the data are empty,
        but the offset must still fit a 64-bit database integer.
    default_sort:
        Direction used when ``sort`` is missing or not a known token.
    """

    def __init__(
        self,
        filter_fields: Iterable[str] = ("genre", "platform"),
        default_limit: int = 20,
        max_limit: int = 100,
        max_page: int = 1_000_000,
        default_sort: SortDirection | str = SortDirection.DESC,
    ) -> None:
        self.filter_fields = tuple(filter_fields)
        self.max_limit = max(1, max_limit)
        self.default_limit = min(max(1, default_limit), self.max_limit)
        self.max_page = min(max(1, max_page), MAX_OFFSET // self.max_limit + 1)
        self.default_sort = parse_sort(default_sort, SortDirection.DESC)

    def compile(self, raw: Mapping[str, Any]) -> QuerySpec:
        page = parse_int(_single(raw.get(PAGE_PARAM)), 1)
        page = min(max(1, page), self.max_page)
        limit = parse_int(_single(raw.get(LIMIT_PARAM)), self.default_limit)
        limit = min(max(1, limit), self.max_limit)

        filters: dict[str, frozenset[str]] = {}
        for key in self.filter_fields:
            values = normalize_values(raw.get(key))
            if values:
                filters[key] = values

        search = None
        for name in SEARCH_PARAMS:
            if name in raw:
                search = normalize_search(raw[name])
                break

        return QuerySpec(
            page=page,
            limit=limit,
            filters=filters,
            search=search,
            sort=parse_sort(raw.get(SORT_PARAM), self.default_sort),
        )


def _single(value: Any) -> Any:
    # Repeated keys keep the last occurrence, like most form parsers.
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


@lru_cache(maxsize=1)
def get_compiler() -> QueryCompiler:
    """Return the compiler configured from application settings."""
    return QueryCompiler(
        filter_fields=settings.FILTER_FIELDS,
        default_limit=settings.DEFAULT_PAGE_SIZE,
        max_limit=settings.MAX_PAGE_SIZE,
        max_page=settings.MAX_PAGE,
        default_sort=settings.DEFAULT_SORT,
    )


def compile_query(raw: Mapping[str, Any]) -> QuerySpec:
    """Compile *raw* with the settings-configured compiler."""
    return get_compiler().compile(raw)

"""
User edits and the pure reducer that applies them to a ``QuerySpec``.

``apply_edit(spec, edit)`` returns a new spec compiled under the same
rules as a server request, or *spec* itself when the edit changes
nothing, so callers can compare the result with the last requested spec
and skip redundant fetches.  Any change to a filter, the
sort, the page size or the committed search text moves back to page 1.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Union

from app.query.compiler import (
    QueryCompiler,
    QuerySpec,
    SortDirection,
    get_compiler,
    normalize_search,
    normalize_values,
    parse_int,
    parse_sort,
)


@dataclass(frozen=True)
class SetPage:
    page: int


@dataclass(frozen=True)
class SetLimit:
    limit: int


@dataclass(frozen=True)
class SetFilter:
    key: str
    values: Any = None


@dataclass(frozen=True)
class SetSort:
    direction: SortDirection | str


@dataclass(frozen=True)
class CommitSearch:
    text: str | None


Edit = Union[SetPage, SetLimit, SetFilter, SetSort, CommitSearch]


def _first_page(spec: QuerySpec, **changes: Any) -> QuerySpec:
    return replace(spec, page=1, **changes)


def _reduce(spec: QuerySpec, edit: Edit) -> QuerySpec:
    if isinstance(edit, SetPage):
        page = max(1, parse_int(edit.page, spec.page))
        return spec if page == spec.page else replace(spec, page=page)

    if isinstance(edit, SetLimit):
        limit = max(1, parse_int(edit.limit, spec.limit))
        return spec if limit == spec.limit else _first_page(spec, limit=limit)

    if isinstance(edit, SetFilter):
        values = normalize_values(edit.values)
        if spec.filters.get(edit.key, frozenset()) == values:
            return spec
        filters = {k: v for k, v in spec.filters.items() if k != edit.key}
        if values:
            filters[edit.key] = values
        return _first_page(spec, filters=filters)

    if isinstance(edit, SetSort):
        direction = parse_sort(edit.direction, spec.sort)
        return spec if direction == spec.sort else _first_page(spec, sort=direction)

    if isinstance(edit, CommitSearch):
        search = normalize_search(edit.text)
        return spec if search == spec.search else _first_page(spec, search=search)

    raise TypeError(f"Unknown edit: {edit!r}")


def apply_edit(
    spec: QuerySpec,
    edit: Edit,
    compiler: QueryCompiler | None = None,
) -> QuerySpec:
    """
    Apply *edit* to *spec* under the same rules the server compiles with.

    The reduced spec is re-compiled, so an over-cap limit or page is
    clamped and a filter key the listing does not recognise is dropped
    before anything is requested.  An edit whose compiled result leaves
    the view unchanged returns *spec* itself.
    """
    compiler = compiler or get_compiler()
    reduced = _reduce(spec, edit)
    if reduced is spec:
        return spec

    new_spec = compiler.compile(reduced.to_params())
    if isinstance(edit, SetPage):
        return spec if new_spec.page == spec.page else new_spec
    if replace(new_spec, page=spec.page) == spec:
        return spec
    return new_spec

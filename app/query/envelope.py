"""Result envelope returned by the list endpoint."""
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.query.compiler import QuerySpec


class ResultEnvelope(BaseModel):
    """
    One page of a list query plus paging metadata.

    ``empty`` marks a successful query with no matching items; it is not
    an error condition.  ``total_pages`` is serialised as ``totalPages``
    and is 0 when nothing matches.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success: bool = True
    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")
    count: int
    empty: bool
    items: list[dict[str, Any]] = []


def total_pages(total: int, limit: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / limit)


def build_envelope(spec: QuerySpec, total: int, items: list[dict[str, Any]]) -> ResultEnvelope:
    return ResultEnvelope(
        page=spec.page,
        limit=spec.limit,
        total=total,
        total_pages=total_pages(total, spec.limit),
        count=len(items),
        empty=not items,
        items=items,
    )

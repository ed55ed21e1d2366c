"""
Record stores — collaborators the page fetcher can run against.

``SqlGameStore`` is the production store: it translates a ``Predicate``
into SQLAlchemy clauses over the ``games`` table.  ``MemoryGameStore``
keeps records in a list and evaluates ``Predicate.matches`` directly; it
is used by the seeder preview and by tests that exercise the fetcher
without a database.

Both order by ``release_date`` in the requested direction with ``id`` as
tie-breaker, so a given spec always yields the same slice.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from sqlalchemy import asc, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import StoreError
from app.models import Game
from app.query.compiler import SortDirection
from app.query.fetcher import Predicate

logger = logging.getLogger(__name__)

# Filter keys the SQL store knows how to translate; guards against arbitrary
# attribute access on the model.
_FILTER_COLUMNS = {
    "genre": Game.genre,
    "platform": Game.platform,
}


def game_to_dict(game: Game) -> dict:
    """Serialise a Game ORM instance to a plain dict."""
    return {
        "id": game.id,
        "title": game.title,
        "genre": game.genre,
        "platform": game.platform,
        "release_date": game.release_date.isoformat() if game.release_date else None,
        "summary": game.summary,
        "created_at": game.created_at.isoformat() if game.created_at else None,
    }


# ---------------------------------------------------------------------------
# SQL store
# ---------------------------------------------------------------------------

class SqlGameStore:
    """Read-only ``RecordStore`` over the ``games`` table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _where(self, predicate: Predicate) -> list:
        clauses = []
        for key, values in predicate.filters.items():
            column = _FILTER_COLUMNS.get(key)
            if column is None:
                raise StoreError(f"Unsupported filter field: {key!r}")
            clauses.append(column.in_(sorted(values)))
        if predicate.search is not None:
            clauses.append(
                func.lower(Game.title).contains(predicate.search.lower(), autoescape=True)
            )
        return clauses

    async def count(self, predicate: Predicate) -> int:
        q = select(func.count()).select_from(Game).where(*self._where(predicate))
        try:
            return (await self.db.execute(q)).scalar_one()
        except SQLAlchemyError as exc:
            logger.exception("Game count failed")
            raise StoreError("Game store unavailable") from exc

    async def query(
        self,
        predicate: Predicate,
        sort: SortDirection,
        offset: int,
        limit: int,
    ) -> list[dict]:
        direction = desc if sort is SortDirection.DESC else asc
        q = (
            select(Game)
            .where(*self._where(predicate))
            .order_by(direction(Game.release_date), direction(Game.id))
            .offset(offset)
            .limit(limit)
        )
        try:
            result = await self.db.execute(q)
        except SQLAlchemyError as exc:
            logger.exception("Game query failed")
            raise StoreError("Game store unavailable") from exc
        return [game_to_dict(g) for g in result.scalars().all()]


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

def _sort_key(record: Mapping[str, Any]) -> tuple:
    released = record.get("release_date")
    if isinstance(released, date):
        released = released.isoformat()
    return (released or "", record.get("id") or 0)


class MemoryGameStore:
    """``RecordStore`` over an in-process list of record dicts."""

    def __init__(self, records: Iterable[Mapping[str, Any]] = ()) -> None:
        self.records: list[dict[str, Any]] = [dict(r) for r in records]

    def _matching(self, predicate: Predicate) -> list[dict[str, Any]]:
        return [r for r in self.records if predicate.matches(r)]

    async def count(self, predicate: Predicate) -> int:
        return len(self._matching(predicate))

    async def query(
        self,
        predicate: Predicate,
        sort: SortDirection,
        offset: int,
        limit: int,
    ) -> Sequence[dict[str, Any]]:
        rows = sorted(
            self._matching(predicate),
            key=_sort_key,
            reverse=sort is SortDirection.DESC,
        )
        return rows[offset:offset + limit]

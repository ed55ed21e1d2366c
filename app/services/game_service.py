"""
Game service — business logic for the Game aggregate.

Design notes
------------
- ``list_games`` is the server half of the list-query pipeline: the
  router compiles the request into a ``QuerySpec``; this module runs it
  through the page fetcher against ``SqlGameStore`` and wraps the result
  in a ``ResultEnvelope``.
- List envelopes are cached per spec (cache-aside).  The key encodes
  every spec dimension, so two requests share an entry only when they
  would produce the same page.
- Empty pages are cached too: "no matches" is a normal result.
- Service functions flush but do not commit; ``get_db`` owns the
  transaction.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import cache
from app.config import settings
from app.models import Game
from app.query import QuerySpec, ResultEnvelope, build_envelope, fetch
from app.schemas import GameCreate
from app.stores import SqlGameStore, game_to_dict

logger = logging.getLogger(__name__)


async def list_games(db: AsyncSession, spec: QuerySpec) -> ResultEnvelope:
    """
    Return one page of games matching *spec*.

    Two SQL statements are issued on a cache miss (COUNT and the page
    SELECT); none on a hit.  ``StoreError`` propagates to the caller.
    """
    cache_key = cache.list_key(spec.cache_key())
    cached = await cache.get(cache_key)
    if cached:
        return ResultEnvelope.model_validate(cached)

    result = await fetch(SqlGameStore(db), spec)
    envelope = build_envelope(spec, result.total, result.items)
    await cache.set(cache_key, envelope.model_dump(by_alias=True), ttl=settings.CACHE_TTL_LIST)
    return envelope


async def get_game(db: AsyncSession, game_id: int) -> dict | None:
    """Return the game dict for *game_id*, or None when it does not exist."""
    cache_key = cache.detail_key(game_id)
    cached = await cache.get(cache_key)
    if cached:
        return cached

    game = await db.get(Game, game_id)
    if game is None:
        return None
    data = game_to_dict(game)
    await cache.set(cache_key, data, ttl=settings.CACHE_TTL_DETAIL)
    return data


async def create_game(db: AsyncSession, data: GameCreate) -> dict:
    """Insert a game and invalidate every cached list page."""
    game = Game(**data.model_dump())
    db.add(game)
    await db.flush()
    await db.refresh(game)
    logger.info("Created game id=%d title=%r", game.id, game.title)

    await cache.invalidate_games()
    return game_to_dict(game)

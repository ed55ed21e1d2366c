from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import cache
from app.database import get_db
from app.models import Game
from app.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])


async def _count_by(db: AsyncSession, column) -> dict[str, int]:
    rows = (await db.execute(select(column, func.count()).group_by(column))).all()
    return {value: count for value, count in rows}


@router.get("", response_model=MetricsResponse)
async def get_metrics(db: AsyncSession = Depends(get_db)):
    total_games = (await db.execute(select(func.count()).select_from(Game))).scalar_one()

    return MetricsResponse(
        total_games=total_games,
        games_by_genre=await _count_by(db, Game.genre),
        games_by_platform=await _count_by(db, Game.platform),
        cache_info=cache.stats,
    )

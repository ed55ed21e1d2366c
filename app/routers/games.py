from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_compiler, raw_query_params
from app.query import QueryCompiler, ResultEnvelope
from app.schemas import ErrorResponse, GameCreate, GameResponse
from app.services import game_service

router = APIRouter(prefix="/api/v1/games", tags=["games"])


@router.get(
    "",
    response_model=ResultEnvelope,
    responses={500: {"model": ErrorResponse}},
)
async def list_games(
    raw: dict[str, Any] = Depends(raw_query_params),
    compiler: QueryCompiler = Depends(get_compiler),
    db: AsyncSession = Depends(get_db),
):
    """List games.  An empty page is a 200 with ``items: []``."""
    return await game_service.list_games(db, compiler.compile(raw))


@router.get("/{game_id}", response_model=GameResponse)
async def get_game(game_id: int, db: AsyncSession = Depends(get_db)):
    game = await game_service.get_game(db, game_id)
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")
    return game


@router.post("", status_code=201, response_model=GameResponse)
async def create_game(data: GameCreate, db: AsyncSession = Depends(get_db)):
    return await game_service.create_game(db, data)

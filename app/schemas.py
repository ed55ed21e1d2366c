from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


# --- Game ---

class GameBase(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    genre: str = Field(min_length=1, max_length=100)
    platform: str = Field(min_length=1, max_length=100)
    release_date: date
    summary: str | None = None


class GameCreate(GameBase):
    pass


class GameResponse(GameBase):
    id: int
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# --- Errors ---

class ErrorResponse(BaseModel):
    success: bool = False
    message: str


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_games: int
    games_by_genre: dict[str, int] = {}
    games_by_platform: dict[str, int] = {}
    cache_info: dict = {}

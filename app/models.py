from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


# ---------------------------------------------------------------------------
# Game
# ---------------------------------------------------------------------------
class Game(Base):
    __tablename__ = "games"

    __table_args__ = (
        # Default listing: newest releases first, id as the tie-breaker
        Index("ix_games_release_date_id", "release_date", "id"),
        # Filtered listings (genre / platform dropdowns)
        Index("ix_games_genre_release_date", "genre", "release_date"),
        Index("ix_games_platform_release_date", "platform", "release_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    genre: Mapped[str] = mapped_column(String(100), nullable=False)
    platform: Mapped[str] = mapped_column(String(100), nullable=False)
    release_date: Mapped[date] = mapped_column(Date, nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

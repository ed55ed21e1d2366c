from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.middleware import install_query_counter


class Base(DeclarativeBase):
    pass


def make_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine with the per-request query counter attached."""
    catalog_engine = create_async_engine(url, **kwargs)
    install_query_counter(catalog_engine)
    return catalog_engine


def make_session_factory(catalog_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(catalog_engine, class_=AsyncSession, expire_on_commit=False)


# Module-level engine; tests swap in their own via dependency overrides.
engine = make_engine(settings.DATABASE_URL, echo=settings.DEBUG, pool_pre_ping=True)
async_session = make_session_factory(engine)


async def create_tables(catalog_engine: AsyncEngine, *, drop_first: bool = False) -> None:
    """Create the catalog schema on *catalog_engine*."""
    import app.models  # noqa: F401  (registers tables on Base.metadata)

    async with catalog_engine.begin() as conn:
        if drop_first:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    """Yield a session per request; commit on success, roll back on error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

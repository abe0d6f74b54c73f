"""Async engine and session management for the local snapshot cache."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from streamtracker.config import settings


engine = create_async_engine(settings.local_cache_url, echo=settings.debug)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""
    pass


async def init_db(bind: AsyncEngine = engine):
    """Create all tables. The cache is disposable, so no migrations."""
    # Register tables on the metadata
    from streamtracker.models import tables  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

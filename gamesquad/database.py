"""
GameSquad database layer - SQLite for the shared watchlist
"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from pathlib import Path

from .config import get_settings


def get_database_url() -> str:
    """Get SQLite database URL"""
    settings = get_settings()
    if settings.database_url:
        return settings.database_url
    db_path = Path(settings.data_dir) / 'gamesquad.db'
    return f"sqlite+aiosqlite:///{db_path}"


def create_engine_for(url: str):
    return create_async_engine(
        url,
        echo=False,
        # SQLite specific settings
        connect_args={"check_same_thread": False}
    )


def create_session_factory(bind) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False
    )


# SQLite async engine
engine = create_engine_for(get_database_url())

AsyncSessionLocal = create_session_factory(engine)

Base = declarative_base()


async def init_db(bind=None):
    """Create all tables."""
    # Register models on Base.metadata
    from . import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(bind=None):
    """Close database connections."""
    await (bind or engine).dispose()

"""
Database engine and session factory.

Engines are built explicitly and handed to the store; nothing here
holds module-level connection state.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from billpay.models.base import Base


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create async engine for the given URL.

    In-memory SQLite gets a StaticPool so every session sees the same
    database.

    Args:
        database_url: SQLAlchemy async URL
        echo: Log SQL statements

    Returns:
        AsyncEngine
    """
    in_memory = database_url.startswith("sqlite") and (
        ":memory:" in database_url or database_url.endswith("://")
    )
    if in_memory:
        return create_async_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(database_url, echo=echo)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")

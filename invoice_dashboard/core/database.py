# ============================================================================
# core/database.py - Async Engine, Sessions and Declarative Base
# ============================================================================

from typing import AsyncIterator
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from invoice_dashboard.core.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.SQL_ECHO,
    pool_pre_ping=True,
)
async_session_maker = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """Request-scoped session; closed when the request finishes."""
    async with async_session_maker() as session:
        yield session


async def init_db():
    # Register every table on Base.metadata before create_all
    import invoice_dashboard.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import AsyncIterator, Iterator

import pytest

# Settings are read at import time; keep the module-level engine off Postgres.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./invoice_dashboard_test.db")

pytest.importorskip("aiosqlite")

from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import invoice_dashboard.models  # noqa: F401
from invoice_dashboard.core.cache import view_cache
from invoice_dashboard.core.database import Base, get_db
from invoice_dashboard.main import app, get_current_user
from invoice_dashboard.models.invoice import Invoice
from invoice_dashboard.models.user import User


@pytest.fixture(autouse=True)
def clear_view_cache() -> Iterator[None]:
    view_cache.clear()
    yield
    view_cache.clear()


@pytest.fixture
def session_maker(tmp_path: Path) -> Iterator[async_sessionmaker]:
    # NullPool: connections never outlive the event loop that opened them
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'dashboard.db'}", poolclass=NullPool)

    async def _create_schema() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create_schema())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def seed(session_maker: async_sessionmaker):
    def _seed(*rows: object) -> None:
        async def _add() -> None:
            async with session_maker() as db:
                db.add_all(list(rows))
                await db.commit()

        asyncio.run(_add())

    return _seed


@pytest.fixture
def fetch_invoices(session_maker: async_sessionmaker):
    def _fetch() -> list[Invoice]:
        async def _query() -> list[Invoice]:
            from sqlalchemy import select

            async with session_maker() as db:
                result = await db.execute(select(Invoice).order_by(Invoice.date, Invoice.id))
                return list(result.scalars().all())

        return asyncio.run(_query())

    return _fetch


@pytest.fixture
def client(session_maker: async_sessionmaker) -> Iterator[TestClient]:
    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: User(id="user-1", email="user@nextmail.com", name="User")
    yield TestClient(app, follow_redirects=False)
    app.dependency_overrides.clear()


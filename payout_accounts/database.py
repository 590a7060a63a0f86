"""Database engine and session management."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from payout_accounts.config import settings
from payout_accounts.models.account import Base


def build_engine(url: str, **kwargs: Any) -> AsyncEngine:
    """
    Async engine for `url`.

    SQLite gets foreign keys switched on, and in-memory databases share one
    connection so the API and the outbox worker see the same data.
    """
    parsed = make_url(url)
    is_sqlite = parsed.get_backend_name() == "sqlite"
    if is_sqlite and parsed.database in (None, "", ":memory:"):
        kwargs.setdefault("poolclass", StaticPool)

    engine = create_async_engine(url, echo=False, **kwargs)

    if is_sqlite:
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url)
async_session = build_session_factory(engine)


async def init_db(bind: AsyncEngine = engine):
    """Create all tables. Safe to call multiple times (CREATE IF NOT EXISTS)."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session

"""Database session management."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel


def create_session_factory(url: str, echo: bool = False) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Build an async engine and its session factory."""
    kwargs: dict = {}
    if url.startswith("sqlite") and url.split("://", 1)[-1].strip("/") in ("", ":memory:"):
        # one shared connection, otherwise every session sees an empty database
        kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    engine = create_async_engine(url, echo=echo, future=True, **kwargs)
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Initialize database tables."""
    from . import models  # noqa: F401  register tables on the metadata

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

"""
Async SQLAlchemy engine & session factory.

PostgreSQL (asyncpg) in production; aiosqlite for local runs and tests.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hrledger.core.config import settings


def build_engine_args(url: str) -> dict[str, Any]:
    """Pool settings differ between a server database and SQLite."""
    args: dict[str, Any] = {"echo": False, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        args.update({"pool_size": 20, "max_overflow": 10, "pool_recycle": 300})
    elif url.startswith("sqlite"):
        args["connect_args"] = {"check_same_thread": False}
    return args


engine = create_async_engine(settings.DATABASE_URL, **build_engine_args(settings.DATABASE_URL))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

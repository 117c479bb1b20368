"""Database engine and session factory creation."""

import os
from pathlib import Path
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from gallery.config import CatalogConfig
from gallery.infrastructure.persistence.tables import metadata


def _expand_sqlite_path(url: str) -> str:
    """Expand ~ in SQLite URLs and ensure parent directory exists."""
    if not url.startswith("sqlite") or ":memory:" in url or "///" not in url:
        return url

    # Extract path from URL (sqlite+aiosqlite:///path or sqlite:///path)
    prefix_end = url.index("///") + 3
    prefix = url[:prefix_end]
    path = url[prefix_end:]

    abs_path = os.path.abspath(os.path.expanduser(path))
    Path(abs_path).parent.mkdir(parents=True, exist_ok=True)

    return f"{prefix}{abs_path}"


def create_db_engine(config: CatalogConfig) -> AsyncEngine:
    """Create async database engine.

    Handles SQLite and PostgreSQL with appropriate settings.
    """
    url = _expand_sqlite_path(config.url)

    if url.startswith("sqlite"):
        engine_kwargs: dict[str, Any] = {
            "echo": config.echo,
            # Use StaticPool for SQLite to allow same connection across threads
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    else:
        engine_kwargs = {
            "echo": config.echo,
            "pool_pre_ping": True,
            "pool_size": 5,
            "max_overflow": 10,
        }

    return create_async_engine(url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory for dependency injection."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create missing tables. The catalog schema is a single table, so no migrations."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

"""Async database engine and session management.

The engine and session factory are constructed once at startup by
``init_engine`` and released by ``dispose_engine``.
"""

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the current async engine.

    Raises:
        RuntimeError: If the engine has not been initialized.
    """
    if _engine is None:
        msg = "Database engine not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the current session factory.

    Raises:
        RuntimeError: If the engine has not been initialized.
    """
    if _session_factory is None:
        msg = "Session factory not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _session_factory


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_engine(database_url: str, *, schema: str | None = None, **kwargs: Any) -> AsyncEngine:
    """Create and store the async engine and session factory.

    Args:
        database_url: Async connection string (asyncpg in production,
            aiosqlite for local runs and tests).
        schema: Optional PostgreSQL schema for isolated environments.
        **kwargs: Additional arguments passed to create_async_engine.

    Returns:
        The created async engine.
    """
    global _engine, _session_factory  # noqa: PLW0603
    is_sqlite = database_url.startswith("sqlite")
    if schema is not None and not is_sqlite:
        connect_args = kwargs.pop("connect_args", {})
        if not isinstance(connect_args, dict):
            msg = "connect_args must be a dict"
            raise TypeError(msg)
        connect_args["server_settings"] = {"search_path": f"{schema},public"}
        kwargs["connect_args"] = connect_args
    if not is_sqlite and kwargs.get("poolclass") is not StaticPool:
        kwargs.setdefault("pool_size", 10)
        kwargs.setdefault("max_overflow", 5)
    _engine = create_async_engine(database_url, **kwargs)
    if is_sqlite:
        # site_files / site_views rely on ON DELETE CASCADE
        event.listen(_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


async def dispose_engine() -> None:
    """Dispose of the async engine and release connections."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None

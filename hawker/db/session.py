from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from hawker.core.config import Settings


def build_engine(database_url: str, *, lock_timeout_ms: int = 0) -> AsyncEngine:
    url = make_url(database_url)
    kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if url.get_backend_name() == "postgresql":
        kwargs["pool_size"] = 10
        kwargs["max_overflow"] = 10
        if url.get_driver_name() == "asyncpg" and lock_timeout_ms > 0:
            kwargs["connect_args"] = {"server_settings": {"lock_timeout": str(lock_timeout_ms)}}
    engine = create_async_engine(url, **kwargs)
    if url.get_backend_name() == "sqlite":
        _enable_sqlite_savepoints(engine)
    return engine


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    # The sqlite3 driver defers BEGIN on its own, which breaks SAVEPOINT nesting.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False)


def engine_from_settings(settings: Settings) -> AsyncEngine:
    return build_engine(settings.database_url, lock_timeout_ms=settings.db_lock_timeout_ms)

"""Database connection pool shared by every request."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .errors import DatabaseConnectionError
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

_ASYNC_DRIVERNAME = "postgresql+psycopg"


def resolve_database_url(raw_url: str) -> URL:
    """Parse ``raw_url`` and make sure it targets the async psycopg driver."""

    url = make_url(raw_url)
    if url.drivername in {"postgres", "postgresql"}:
        url = url.set(drivername=_ASYNC_DRIVERNAME)
    return url


class ConnectionProvider:
    """Lazily create one connection pool and hand out pooled connections.

    The engine is built on the first :meth:`acquire` call and reused for the
    lifetime of the process. Concurrent first callers wait on the same lock
    and observe the same engine.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        engine_factory: Callable[..., AsyncEngine] = create_async_engine,
    ) -> None:
        self._settings = settings
        self._engine_factory = engine_factory
        self._engine: AsyncEngine | None = None
        self._lock = asyncio.Lock()

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    async def get_engine(self) -> AsyncEngine:
        if self._engine is not None:
            return self._engine
        async with self._lock:
            if self._engine is None:
                self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> AsyncEngine:
        settings = self.settings
        if not settings.database_url:
            raise DatabaseConnectionError("DATABASE_URL not configured")
        try:
            url = resolve_database_url(settings.database_url)
        except (SQLAlchemyError, ValueError) as exc:
            raise DatabaseConnectionError("DATABASE_URL is not a valid database URL") from exc
        if url.get_backend_name() != "postgresql":
            raise DatabaseConnectionError(
                f"DATABASE_URL must use PostgreSQL, got '{url.get_backend_name()}'"
            )
        logger.info(
            "Creating database pool for %s", url.render_as_string(hide_password=True)
        )
        try:
            return self._engine_factory(
                url,
                pool_size=settings.pool_size,
                max_overflow=settings.max_overflow,
                pool_timeout=settings.pool_timeout,
                pool_pre_ping=True,
            )
        except (SQLAlchemyError, ImportError, TypeError) as exc:
            logger.error("Database pool creation failed: %s", type(exc).__name__)
            raise DatabaseConnectionError("Unable to create the database pool") from exc

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[Any]:
        """Yield a ``psycopg.AsyncConnection`` checked out from the pool."""

        engine = await self.get_engine()
        try:
            conn = await engine.connect()
        except (SQLAlchemyError, psycopg.Error, OSError) as exc:
            logger.error("Database connection failed: %s", type(exc).__name__)
            raise DatabaseConnectionError("Unable to connect to the database") from exc
        try:
            raw = await conn.get_raw_connection()
            yield raw.driver_connection
        finally:
            await conn.close()

    async def dispose(self) -> None:
        """Close every pooled connection; the next acquire builds a new pool."""

        async with self._lock:
            engine, self._engine = self._engine, None
        if engine is not None:
            await engine.dispose()


_provider = ConnectionProvider()


def get_connection_provider() -> ConnectionProvider:
    """Return the process-wide connection provider."""

    return _provider


__all__ = [
    "ConnectionProvider",
    "get_connection_provider",
    "resolve_database_url",
]

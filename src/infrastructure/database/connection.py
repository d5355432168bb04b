# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection registry using SQLAlchemy async.

One AsyncEngine is kept per database name for the whole process. Engines
are created lazily on first use; concurrent first requests for the same
database share a single establishment attempt.

Uses SQLAlchemy 2.0 async API with the asyncpg driver (aiosqlite for
file-backed development and test databases).

Example:
    from src.infrastructure.database.connection import ConnectionRegistry
    from src.infrastructure.database.naming import database_name

    registry = ConnectionRegistry(settings.database)

    engine = await registry.acquire(database_name(7))

    # At application shutdown
    await registry.release_all()
"""

import asyncio
import logging
import re
from functools import partial
from typing import TYPE_CHECKING, Awaitable, Callable

from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

if TYPE_CHECKING:
    from src.core.config.settings import DatabaseSettings

logger = logging.getLogger(__name__)

ConnectFn = Callable[[str], Awaitable[AsyncEngine]]

_IDENTIFIER = re.compile(r"^[A-Za-z0-9_]+$")


async def ensure_postgres_database(settings: "DatabaseSettings", database_name: str) -> None:
    """Create a PostgreSQL database if it does not exist yet.

    PostgreSQL has no implicit database creation, so the first connection
    to a site database issues CREATE DATABASE through the maintenance
    database.

    Args:
        settings: Database server settings.
        database_name: Name of the database to create.

    Raises:
        ValueError: If the name is not a plain identifier.
        SQLAlchemyError: If the server is unreachable or refuses the request.
    """
    if not _IDENTIFIER.match(database_name):
        raise ValueError(f"Invalid database name: {database_name!r}")

    admin_engine = create_async_engine(
        settings.maintenance_url,
        isolation_level="AUTOCOMMIT",
        poolclass=NullPool,
        connect_args={"timeout": settings.connect_timeout},
    )
    exists_query = text("SELECT 1 FROM pg_database WHERE datname = :name")

    try:
        async with admin_engine.connect() as conn:
            if await conn.scalar(exists_query, {"name": database_name}):
                return
            try:
                await conn.execute(text(f'CREATE DATABASE "{database_name}"'))
                logger.info("Created database %s", database_name)
            except ProgrammingError:
                # Another process may have created it in the meantime
                if not await conn.scalar(exists_query, {"name": database_name}):
                    raise
    finally:
        await admin_engine.dispose()


async def create_database_engine(
    settings: "DatabaseSettings", database_name: str
) -> AsyncEngine:
    """Open a verified async engine for one database.

    Args:
        settings: Database server settings.
        database_name: Name of the database to connect to.

    Returns:
        AsyncEngine that has completed one round trip to the database.

    Raises:
        SQLAlchemyError: If the database is unreachable or credentials
            are rejected.
    """
    url = settings.url_for(database_name)

    if settings.is_sqlite:
        # The database file is created on first connect
        settings.sqlite_directory.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(
            url,
            echo=settings.echo,
            connect_args={"timeout": settings.connect_timeout},
        )
    else:
        await ensure_postgres_database(settings, database_name)
        engine = create_async_engine(
            url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
            echo=settings.echo,
            connect_args={"timeout": settings.connect_timeout},
        )

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except BaseException:
        await engine.dispose()
        raise

    return engine


class ConnectionRegistry:
    """Process-wide cache of database engines keyed by database name.

    The registry owns two maps: established engines, and establishment
    tasks still in flight. A failed establishment leaves neither map
    holding the name, so the next acquire() starts a fresh attempt.
    The registry never retries on its own.

    All map mutations happen between await points on one event loop, so
    the check-then-insert in acquire() cannot interleave with another
    caller.

    Attributes:
        settings: Database server settings.

    Example:
        registry = ConnectionRegistry(settings.database)
        engine = await registry.acquire("nextcms_site7")
    """

    def __init__(
        self,
        settings: "DatabaseSettings",
        connect: ConnectFn | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            settings: Database server settings.
            connect: Optional coroutine function opening an engine for a
                database name. Defaults to create_database_engine().
        """
        self.settings = settings
        self._connect = connect or partial(create_database_engine, settings)
        self._engines: dict[str, AsyncEngine] = {}
        self._pending: dict[str, asyncio.Task[AsyncEngine]] = {}

    @property
    def prefix(self) -> str:
        """Prefix shared by every database name."""
        return self.settings.name_prefix

    @property
    def cached_names(self) -> list[str]:
        """Names of databases with an established engine."""
        return list(self._engines)

    def __contains__(self, database_name: object) -> bool:
        return database_name in self._engines

    def __len__(self) -> int:
        return len(self._engines)

    async def acquire(self, database_name: str) -> AsyncEngine:
        """Get the engine for a database, connecting on first use.

        Args:
            database_name: Name of the database.

        Returns:
            The cached AsyncEngine for the database. Repeated calls return
            the same object.

        Raises:
            SQLAlchemyError: If the connection attempt fails. Every caller
                waiting on that attempt receives the same error.
        """
        engine = self._engines.get(database_name)
        if engine is not None:
            return engine

        task = self._pending.get(database_name)
        if task is None:
            task = asyncio.ensure_future(self._establish(database_name))
            self._pending[database_name] = task

        # One cancelled waiter must not cancel the attempt shared by the rest
        return await asyncio.shield(task)

    async def _establish(self, database_name: str) -> AsyncEngine:
        logger.debug("Connecting to database %s", database_name)
        try:
            engine = await self._connect(database_name)
        except Exception as e:
            logger.error("Connection to database %s failed: %s", database_name, e)
            raise
        finally:
            self._pending.pop(database_name, None)

        self._engines[database_name] = engine
        logger.info("Connected to database %s", database_name)
        return engine

    async def check_connection(self, database_name: str) -> bool:
        """Check if a database is reachable.

        Args:
            database_name: Name of the database.

        Returns:
            True if the database is reachable, False otherwise.
        """
        try:
            engine = await self.acquire(database_name)
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError):
            return False

    async def release(self, database_name: str) -> None:
        """Dispose the engine of one database and forget it.

        Args:
            database_name: Name of the database.
        """
        engine = self._engines.pop(database_name, None)
        if engine is not None:
            await engine.dispose()
            logger.info("Disconnected from database %s", database_name)

    async def release_all(self) -> None:
        """Dispose every engine and clear the registry.

        In-flight establishments are awaited first so that no engine is
        cached after this returns. Meant for application shutdown and test
        teardown, never for request handling.
        """
        if self._pending:
            await asyncio.gather(*self._pending.values(), return_exceptions=True)
        self._pending.clear()

        for database_name in list(self._engines):
            await self.release(database_name)

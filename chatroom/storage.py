"""
Database connection: async SQLAlchemy engine, session factory and schema setup
"""

from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator

from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import ArgumentError, InvalidRequestError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from . import tables  # noqa: F401  registers the tables on SQLModel.metadata
from .errors import ChatError, ConfigurationError, UpstreamStorageError
from .logger import get_logger, log_system_event

logger = get_logger()


class Database:
    """Engine plus session factory shared by the registry and message store"""

    def __init__(self, engine: AsyncEngine, name: str):
        self.engine = engine
        self.name = name
        self._session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self._closed:
            raise UpstreamStorageError("Database is closed")
        async with self._session_factory() as session:
            yield session

    async def init_db(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def close(self):
        self._closed = True
        await self.engine.dispose()
        log_system_event("database_closed", f"database={self.name}")


def _engine_options(url) -> dict:
    if not url.drivername.startswith("sqlite"):
        return {}
    # only SQLite needs that arg
    options = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        # Every session must see the same in-memory database
        options["poolclass"] = StaticPool
    return options


async def connect(database_url: str) -> Database:
    """
    Open the database named by database_url and create missing tables

    Args:
        database_url: SQLAlchemy URL with an async driver,
            e.g. sqlite+aiosqlite:///chat.db

    Returns:
        Connected Database

    Raises:
        ConfigurationError: the url is malformed or names no async driver
        UpstreamStorageError: the database cannot be reached
    """
    try:
        url = make_url(database_url)
        engine = create_async_engine(url, **_engine_options(url))
    except (ArgumentError, InvalidRequestError, ImportError) as e:
        raise ConfigurationError(f"Unusable DATABASE_URL {database_url!r}: {e}")

    database = Database(engine, url.database or url.drivername)
    with storage_operation("init_db"):
        await database.init_db()

    log_system_event("database_connected", f"driver={url.drivername} database={database.name}")
    return database


@contextmanager
def storage_operation(operation: str):
    """
    Surface any driver failure inside the block as UpstreamStorageError

    Args:
        operation: Name used in the log line
    """
    try:
        yield
    except UpstreamStorageError as e:
        logger.error(f"Storage operation {operation} failed: {e}")
        raise
    except ChatError:
        raise
    except Exception as e:
        logger.error(f"Storage operation {operation} failed: {e!r}")
        raise UpstreamStorageError() from e

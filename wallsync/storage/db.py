"""Engine and session setup for the local catalog database."""

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from wallsync.config import config
from wallsync.logging import get_logger

logger = get_logger(__name__)

# Milliseconds a writer waits on a locked database before SQLite gives up.
SQLITE_BUSY_TIMEOUT_MS = 5000

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    """Declarative base for catalog, interaction and sync tables."""


def configure_sqlite(engine: AsyncEngine) -> None:
    """Apply connection pragmas to every new SQLite connection.

    Sync writes, interaction logging and maintenance sweeps share one
    file, so connections use WAL and wait on locks instead of failing
    with "database is locked".
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
            cursor.execute("PRAGMA synchronous=NORMAL")
        finally:
            cursor.close()


def get_engine() -> AsyncEngine:
    """Get the process-wide engine, creating it from config on first use.

    Returns:
        AsyncEngine bound to ``config.database_url``
    """
    global _engine

    if _engine is None:
        url = make_url(config.database_url)
        logger.info(f"Opening catalog database {url.render_as_string(hide_password=True)}")
        _engine = create_async_engine(url, echo=config.log_level == "DEBUG")
        configure_sqlite(_engine)

    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)

    return _session_factory


async def create_tables() -> None:
    """Create any missing tables. Existing tables and rows are left alone."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Catalog schema ready ({len(Base.metadata.tables)} tables)")


async def close_engine() -> None:
    """Dispose the engine so the next ``get_engine`` call reconnects."""
    global _engine, _session_factory

    if _engine is None:
        return

    logger.info("Closing catalog database")
    await _engine.dispose()
    _engine = None
    _session_factory = None

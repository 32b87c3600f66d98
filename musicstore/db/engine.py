import logging
import time

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from musicstore.config import settings

logger = logging.getLogger(__name__)

SLOW_QUERY_THRESHOLD = 0.5  # seconds

# asyncpg behind a transaction-mode pooler cannot keep prepared statements
_POSTGRES_OPTIONS = {
    "pool_pre_ping": True,
    "pool_recycle": 300,
    "connect_args": {"statement_cache_size": 0, "prepared_statement_cache_size": 0},
}


def _enable_sqlite_foreign_keys(sync_engine: Engine) -> None:
    # Review cascades and purchase detachment depend on FK enforcement.
    @event.listens_for(sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _log_slow_queries(sync_engine: Engine, threshold: float) -> None:
    @event.listens_for(sync_engine, "before_cursor_execute")
    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info["query_start_time"] = time.monotonic()

    @event.listens_for(sync_engine, "after_cursor_execute")
    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        start = conn.info.pop("query_start_time", None)
        if start is None:
            return
        elapsed = time.monotonic() - start
        if elapsed >= threshold:
            logger.warning(
                "SLOW QUERY (%.3fs): %s | params=%s",
                elapsed,
                statement[:500],
                str(parameters)[:200] if parameters else None,
            )


def build_engine(url: str, *, echo: bool = False, slow_query_threshold: float = SLOW_QUERY_THRESHOLD, **kwargs) -> AsyncEngine:
    """Create the catalog's async engine for ``url``.

    Postgres gets pooler-safe asyncpg options, SQLite gets foreign keys
    switched on, and every backend logs queries slower than the threshold.
    Extra keyword arguments go straight to ``create_async_engine``.
    """
    options: dict = {"echo": echo}
    if url.startswith("postgresql+asyncpg://"):
        options.update(_POSTGRES_OPTIONS)
    options.update(kwargs)

    new_engine = create_async_engine(url, **options)
    if new_engine.dialect.name == "sqlite":
        _enable_sqlite_foreign_keys(new_engine.sync_engine)
    _log_slow_queries(new_engine.sync_engine, slow_query_threshold)
    return new_engine


engine = build_engine(settings.DATABASE_URL, echo=settings.APP_DEBUG)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

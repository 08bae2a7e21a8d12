"""Async SQLAlchemy engine, session factory and store dependencies.

``build_db`` is a lifespan dependency: it creates the engine + session
factory, creates missing tables, attaches both to ``app.state``, and
disposes the engine on shutdown.  Per-request dependencies read from
``app.state``.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from supportchat.configs.config import AppConfig, get_app_config
from supportchat.configs.system import ThirdPartyConfig
from supportchat.infra.lifespan import get_app
from supportchat.infra.telemetry import instrument_sqlalchemy

from .models import Base
from .store import ConversationStore

logger = logging.getLogger(__name__)

_SQLITE_BACKEND = "sqlite"


def _configure_sqlite_connection(dbapi_connection: Any, _record: Any) -> None:
    # Hand transaction control to SQLAlchemy so the "begin" hook below
    # decides how each transaction starts.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_immediate(conn: Any) -> None:
    # SQLite ignores FOR UPDATE; taking the write lock at BEGIN is what
    # serialises read-modify-write transactions instead.
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine(config: ThirdPartyConfig) -> AsyncEngine:
    """Create the async engine for ``config.database_uri``.

    SQLite connections get ``PRAGMA foreign_keys=ON`` so cascade deletes
    behave as they do on PostgreSQL, and every transaction starts with
    ``BEGIN IMMEDIATE``.  SQLite has no row locks, so the database-wide
    write lock taken up front is what keeps concurrent appends to one
    conversation from reading the same ``updated_at``.
    """
    url = make_url(config.database_uri)
    kwargs: dict[str, Any] = {"pool_pre_ping": True, "echo": config.database_echo}
    if url.get_backend_name() != _SQLITE_BACKEND:
        kwargs["pool_size"] = config.database_pool_size
        kwargs["max_overflow"] = config.database_max_overflow

    engine = create_async_engine(url, **kwargs)
    if url.get_backend_name() == _SQLITE_BACKEND:
        event.listen(engine.sync_engine, "connect", _configure_sqlite_connection)
        event.listen(engine.sync_engine, "begin", _begin_sqlite_immediate)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ---------------------------------------------------------------------------
# Lifespan dependency
# ---------------------------------------------------------------------------


async def build_db(
    app: Annotated[FastAPI, Depends(get_app)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[None, None]:
    """Create engine + session factory, attach to ``app.state``."""
    engine = create_engine(config.third_party)
    instrument_sqlalchemy(engine)
    await create_tables(engine)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    logger.info("Database ready (%s)", engine.url.render_as_string(hide_password=True))
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Database engine disposed")


# ---------------------------------------------------------------------------
# Per-request dependencies: read from app.state
# ---------------------------------------------------------------------------


def get_session_factory(
    request: Request,
) -> async_sessionmaker[AsyncSession]:
    """Return the ``async_sessionmaker`` from ``app.state``."""
    return request.app.state.session_factory


def get_conversation_store(
    sf: Annotated[
        async_sessionmaker[AsyncSession],
        Depends(get_session_factory),
    ],
) -> ConversationStore:
    """Return a conversation store bound to the app's session factory."""
    return ConversationStore(sf)

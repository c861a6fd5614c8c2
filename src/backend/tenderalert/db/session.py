"""
Async engine and session handling.

The engine is built on first use, so importing the app (or a test module)
never opens a connection. Request handlers get a session through
``get_db``; batch jobs open their own with ``get_db_context``, one per
unit of work.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tenderalert.core.config import Settings, get_settings
from tenderalert.core.logging import get_logger

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_options(settings: Settings) -> tuple[str, dict[str, Any]]:
    # asyncpg wants ssl as a connect arg rather than a query parameter
    url = settings.database_url.replace("?sslmode=require", "")
    options: dict[str, Any] = {"echo": settings.database_echo, "pool_pre_ping": True}

    if url.startswith("postgresql"):
        options |= {
            "pool_size": settings.database_pool_size,
            "max_overflow": settings.database_max_overflow,
            "pool_timeout": settings.database_pool_timeout,
            "pool_recycle": 300,
            "connect_args": {
                "ssl": settings.database_ssl,
                "server_settings": {"application_name": settings.app_name},
            },
        }
    return url, options


def get_engine() -> AsyncEngine:
    global _engine

    if _engine is None:
        settings = get_settings()
        url, options = _engine_options(settings)
        _engine = create_async_engine(url, **options)
        logger.info("Database engine created", dialect=_engine.dialect.name, pool_size=options.get("pool_size"))
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Shared factory; also a FastAPI dependency so the batch runner can be handed another one."""
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


@asynccontextmanager
async def get_db_context(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    One session, one transaction: commit on a clean exit, roll back on error.

    Example:
        async with get_db_context() as db:
            stats = await check_subscription_expiry(db)
    """
    factory = session_factory or get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session dependency."""
    async with get_db_context() as session:
        yield session


async def close_db() -> None:
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database engine disposed")

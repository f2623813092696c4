"""Async SQLAlchemy engine and read-only session factory for report queries."""

import logging
from urllib.parse import urlsplit

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config.settings import settings

logger = logging.getLogger(__name__)

_LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1", "db"}
_SCHEME_ALIASES = ("postgres://", "postgresql://")


def normalize_database_url(url: str) -> str:
    """Rewrite a Postgres URL for the async psycopg driver.

    Hosted databases get ``sslmode=require`` unless the URL already sets it.
    """
    for alias in _SCHEME_ALIASES:
        if url.startswith(alias):
            url = "postgresql+psycopg://" + url[len(alias):]
            break
    host = urlsplit(url).hostname or ""
    if host and host not in _LOCAL_HOSTS and "sslmode=" not in url:
        url += ("&" if "?" in url else "?") + "sslmode=require"
    return url


engine = create_async_engine(
    normalize_database_url(settings.database_url),
    echo=settings.database_echo,
    pool_size=settings.database_pool_size,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncSession:
    """Yield a session for one report request; reports never write."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.rollback()


async def dispose_engine() -> None:
    await engine.dispose()
    logger.info("Database engine disposed")

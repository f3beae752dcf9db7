"""Async database access for the daily_wellness and coaching_ledger tables."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from coachkernel.config import settings

_ASYNC_PREFIXES = ("postgres://", "postgresql://")


def async_database_url(url: str) -> str:
    """Force the asyncpg driver onto plain Postgres URLs (e.g. from a PaaS)."""
    for prefix in _ASYNC_PREFIXES:
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


engine = create_async_engine(async_database_url(settings.database_url), pool_pre_ping=True)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncSession:  # type: ignore[misc]
    async with async_session() as session:
        yield session

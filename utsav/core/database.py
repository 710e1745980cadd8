"""
Async database engine and session dependency.

The session is committed when the request handler returns normally and
rolled back when it raises.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from utsav.core.config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite does not support pool_size / max_overflow
    if url.startswith("sqlite"):
        return {"echo": False}
    return {"echo": False, "pool_size": 10, "max_overflow": 20, "pool_pre_ping": True}


engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a transactional session for one request."""
    async with SessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

"""Process-wide async engine and per-request sessions."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

ENGINE_DEFAULTS: dict[str, Any] = {
    "pool_size": 20,
    "max_overflow": 10,
    "pool_pre_ping": True,
}

_engine: AsyncEngine | None = None
_sessions: async_sessionmaker[AsyncSession] | None = None


def _not_initialized() -> RuntimeError:
    return RuntimeError("Database not initialized. Call init_db() first.")


async def init_db(url: str, **engine_kwargs: Any) -> None:  # noqa: ANN401
    """Create the engine; ``engine_kwargs`` override ``ENGINE_DEFAULTS``."""
    global _engine, _sessions  # noqa: PLW0603
    _engine = create_async_engine(url, **{**ENGINE_DEFAULTS, **engine_kwargs})
    # Objects stay readable after commit; handlers serialise them afterwards
    _sessions = async_sessionmaker(_engine, expire_on_commit=False)


async def close_db() -> None:
    global _engine, _sessions  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessions = None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session, and so one transaction, per request.

    Nothing is committed here. Handlers commit explicitly after a successful
    mutation; if the handler raises, the transaction is rolled back.
    """
    if _sessions is None:
        raise _not_initialized()
    async with _sessions() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise

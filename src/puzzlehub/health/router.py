"""Liveness, readiness and version probes."""

from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from puzzlehub.config import Settings, get_settings
from puzzlehub.database import get_session
from puzzlehub.db.models import Puzzle
from puzzlehub.redis_client import ping_redis

router = APIRouter()


async def _probe(check: Callable[[], Awaitable[object]]) -> str:
    try:
        await check()
    except Exception as exc:  # noqa: BLE001
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe: database reachable, schema migrated, Redis answering."""

    async def redis_check() -> None:
        if not await ping_redis():
            msg = "no PONG"
            raise RuntimeError(msg)

    checks: dict[str, str] = {
        "database": await _probe(lambda: db.execute(text("SELECT 1"))),
        "schema": await _probe(lambda: db.execute(select(Puzzle.id).limit(1))),
        "redis": await _probe(redis_check),
    }
    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version(settings: Settings = Depends(get_settings)) -> dict[str, str]:  # noqa: B008
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }

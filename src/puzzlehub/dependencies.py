"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from puzzlehub.config import Settings, get_settings
from puzzlehub.database import get_session
from puzzlehub.db.protocols import Storage
from puzzlehub.db.repositories import SqlStorage
from puzzlehub.puzzles.service import PuzzleService


async def get_storage(db: AsyncSession = Depends(get_session)) -> AsyncGenerator[Storage, None]:
    """Yield the per-request stores, all sharing one session."""
    yield SqlStorage(db)


def get_puzzle_service(
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> PuzzleService:
    return PuzzleService(storage, settings)

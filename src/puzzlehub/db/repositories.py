"""
SQLAlchemy implementations of the store protocols.

All stores of one ``SqlStorage`` share a single ``AsyncSession`` and
therefore a single transaction. Stores only flush; the route handler
commits once the whole operation succeeded.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import and_, delete, exists, func, or_, select, update
from sqlalchemy.exc import MultipleResultsFound, SQLAlchemyError

from puzzlehub.db.models import Puzzle, PuzzleCompletion, User
from puzzlehub.db.protocols import PuzzleQuery
from puzzlehub.errors import InconsistencyError, StorageError

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as StorageError."""
    try:
        yield
    except MultipleResultsFound as e:
        msg = f"{operation}: more than one row matched"
        raise InconsistencyError(msg) from e
    except SQLAlchemyError as e:
        logger.error("storage_error", operation=operation, error=str(e))
        msg = f"{operation} failed"
        raise StorageError(msg) from e


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class SqlUserStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, user_id: int) -> User | None:
        with _storage_errors("user.get"):
            return await self.db.get(User, user_id)

    async def find_by_email(self, email: str) -> User | None:
        """Case-insensitive lookup."""
        with _storage_errors("user.find_by_email"):
            result = await self.db.execute(select(User).where(func.lower(User.email) == email.lower()))
            return result.scalar_one_or_none()

    async def create(self, user: User) -> User:
        with _storage_errors("user.create"):
            self.db.add(user)
            await self.db.flush()
            return user


# ---------------------------------------------------------------------------
# Puzzles
# ---------------------------------------------------------------------------


def _apply_query(stmt: Select, query: PuzzleQuery) -> Select:  # type: ignore[type-arg]
    """Translate a PuzzleQuery into WHERE / ORDER BY clauses."""
    if query.official:
        stmt = stmt.where(Puzzle.author_id.is_(None))
    if query.author_id is not None:
        stmt = stmt.where(Puzzle.author_id == query.author_id)
    if query.completed_by is not None:
        stmt = stmt.where(
            exists().where(
                and_(
                    PuzzleCompletion.puzzle_id == Puzzle.id,
                    PuzzleCompletion.user_id == query.completed_by,
                    PuzzleCompletion.completed.is_(True),
                )
            )
        )
    if query.search_term:
        stmt = stmt.where(
            or_(
                Puzzle.title.icontains(query.search_term, autoescape=True),
                Puzzle.description.icontains(query.search_term, autoescape=True),
            )
        )
    if query.difficulty_range is not None:
        low, high = query.difficulty_range
        stmt = stmt.where(Puzzle.difficulty >= low, Puzzle.difficulty < high)

    if query.order_by == "created_at":
        stmt = stmt.order_by(Puzzle.created_at.desc(), Puzzle.id.desc())
    elif query.order_by == "likes":
        stmt = stmt.order_by(Puzzle.likes.desc(), Puzzle.id)
    else:
        stmt = stmt.order_by(Puzzle.id)
    return stmt


class SqlPuzzleStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, puzzle_id: int, *, lock: bool = False) -> Puzzle | None:
        """Fetch a puzzle; with ``lock`` the row stays locked until commit/rollback."""
        stmt = select(Puzzle).where(Puzzle.id == puzzle_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        with _storage_errors("puzzle.get"):
            result = await self.db.execute(stmt)
            return result.scalar_one_or_none()

    async def find_by_short_key(self, author_id: int | None, short_key: str) -> Puzzle | None:
        author_clause = Puzzle.author_id.is_(None) if author_id is None else Puzzle.author_id == author_id
        with _storage_errors("puzzle.find_by_short_key"):
            result = await self.db.execute(select(Puzzle).where(author_clause, Puzzle.short_key == short_key))
            return result.scalar_one_or_none()

    async def find(self, query: PuzzleQuery) -> list[Puzzle]:
        with _storage_errors("puzzle.find"):
            result = await self.db.execute(_apply_query(select(Puzzle), query))
            return list(result.scalars().all())

    async def create(self, puzzle: Puzzle) -> Puzzle:
        with _storage_errors("puzzle.create"):
            self.db.add(puzzle)
            await self.db.flush()
            return puzzle

    async def update(self, puzzle_id: int, patch: dict[str, Any]) -> Puzzle:
        """Apply all fields of ``patch`` in one UPDATE statement."""
        with _storage_errors("puzzle.update"):
            await self.db.execute(update(Puzzle).where(Puzzle.id == puzzle_id).values(**patch))
            puzzle = await self.db.get(Puzzle, puzzle_id, populate_existing=True)
        if puzzle is None:
            msg = f"Puzzle {puzzle_id} vanished during update"
            raise InconsistencyError(msg)
        return puzzle

    async def delete(self, puzzle_id: int) -> bool:
        with _storage_errors("puzzle.delete"):
            result = await self.db.execute(delete(Puzzle).where(Puzzle.id == puzzle_id))
            return (result.rowcount or 0) > 0  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Completion records
# ---------------------------------------------------------------------------


class SqlCompletionStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, puzzle_id: int, user_id: int) -> PuzzleCompletion | None:
        with _storage_errors("completion.get"):
            result = await self.db.execute(
                select(PuzzleCompletion).where(
                    PuzzleCompletion.puzzle_id == puzzle_id,
                    PuzzleCompletion.user_id == user_id,
                )
            )
            return result.scalar_one_or_none()

    async def create(self, completion: PuzzleCompletion) -> PuzzleCompletion:
        with _storage_errors("completion.create"):
            self.db.add(completion)
            await self.db.flush()
            return completion

    async def update(self, puzzle_id: int, user_id: int, patch: dict[str, Any]) -> int:
        with _storage_errors("completion.update"):
            result = await self.db.execute(
                update(PuzzleCompletion)
                .where(
                    PuzzleCompletion.puzzle_id == puzzle_id,
                    PuzzleCompletion.user_id == user_id,
                )
                .values(**patch)
            )
            return result.rowcount or 0  # type: ignore[attr-defined]


class SqlStorage:
    """All stores bound to one session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.users = SqlUserStore(db)
        self.puzzles = SqlPuzzleStore(db)
        self.completions = SqlCompletionStore(db)

    async def commit(self) -> None:
        with _storage_errors("commit"):
            await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

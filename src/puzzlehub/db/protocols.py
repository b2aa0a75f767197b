"""
Store interfaces consumed by the puzzle engine and the authenticator.

The engine only talks to these protocols. ``puzzlehub.db.repositories``
provides the SQLAlchemy implementations; any object with the same shape
(for instance an in-memory store in tests) can be substituted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

from puzzlehub.db.models import Puzzle, PuzzleCompletion, User

PuzzleOrder = Literal["id", "created_at", "likes"]


@dataclass(frozen=True)
class PuzzleQuery:
    """Predicate and ordering for ``PuzzleStore.find``.

    All set fields are combined with AND. ``search_term`` matches title OR
    description as a case-insensitive substring. ``difficulty_range`` is
    half-open ``[min, max)``; puzzles without a difficulty never match it.
    """

    official: bool = False
    author_id: int | None = None
    completed_by: int | None = None
    search_term: str | None = None
    difficulty_range: tuple[float, float] | None = None
    order_by: PuzzleOrder = "id"


@runtime_checkable
class UserStore(Protocol):
    """Persistence for user accounts."""

    async def get(self, user_id: int) -> User | None: ...

    async def find_by_email(self, email: str) -> User | None: ...

    async def create(self, user: User) -> User: ...


@runtime_checkable
class PuzzleStore(Protocol):
    """Persistence for puzzle aggregates."""

    async def get(self, puzzle_id: int, *, lock: bool = False) -> Puzzle | None:
        """Fetch one puzzle; ``lock`` holds a row lock until the transaction ends."""
        ...

    async def find_by_short_key(self, author_id: int | None, short_key: str) -> Puzzle | None: ...

    async def find(self, query: PuzzleQuery) -> list[Puzzle]: ...

    async def create(self, puzzle: Puzzle) -> Puzzle: ...

    async def update(self, puzzle_id: int, patch: dict[str, Any]) -> Puzzle: ...

    async def delete(self, puzzle_id: int) -> bool: ...


@runtime_checkable
class CompletionStore(Protocol):
    """Persistence for per-(puzzle, user) completion records."""

    async def get(self, puzzle_id: int, user_id: int) -> PuzzleCompletion | None:
        """Fetch the single record for the pair.

        Raises InconsistencyError if more than one record matches.
        """
        ...

    async def create(self, completion: PuzzleCompletion) -> PuzzleCompletion: ...

    async def update(self, puzzle_id: int, user_id: int, patch: dict[str, Any]) -> int:
        """Apply ``patch`` to every record of the pair; return the match count."""
        ...


class Storage(Protocol):
    """Per-request bundle of stores sharing one transaction."""

    users: UserStore
    puzzles: PuzzleStore
    completions: CompletionStore

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...

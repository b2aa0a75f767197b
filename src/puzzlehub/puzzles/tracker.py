"""Completion tracking: download and completion transitions per (puzzle, user)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog

from puzzlehub.db.models import Puzzle, PuzzleCompletion
from puzzlehub.db.protocols import CompletionStore, PuzzleStore
from puzzlehub.errors import (
    CompletionInconsistency,
    DownloadInconsistency,
    NotFound,
    PartialWriteInconsistency,
    StorageError,
)
from puzzlehub.puzzles.difficulty import new_average, next_likes, score

logger = structlog.get_logger()


@dataclass(frozen=True)
class CompletionSample:
    """One player's result for a puzzle."""

    time: float
    liked: bool
    difficulty_rating: int
    components_used: int = 0
    nands_used: int = 0


class CompletionTracker:
    """Owns the "first download creates a record" and "complete marks it done" transitions.

    Writes happen in a fixed order: completion record first, then the puzzle
    aggregate. The puzzle row is read with ``lock=True`` so that concurrent
    updates of the same aggregate are serialised by the store.
    """

    def __init__(
        self,
        puzzles: PuzzleStore,
        completions: CompletionStore,
        *,
        likes_legacy_parity: bool = False,
    ) -> None:
        self.puzzles = puzzles
        self.completions = completions
        self.likes_legacy_parity = likes_legacy_parity

    async def _get_puzzle(self, puzzle_id: int) -> Puzzle:
        puzzle = await self.puzzles.get(puzzle_id, lock=True)
        if puzzle is None:
            msg = f"Puzzle {puzzle_id} not found"
            raise NotFound(msg)
        return puzzle

    async def _write_aggregate(
        self,
        puzzle_id: int,
        user_id: int,
        patch: dict[str, Any],
        error_cls: type[PartialWriteInconsistency],
    ) -> Puzzle:
        """Second write of a transition; a failure here leaves the record written."""
        try:
            return await self.puzzles.update(puzzle_id, patch)
        except StorageError as e:
            logger.error(
                f"{error_cls.operation}_inconsistency",
                puzzle_id=puzzle_id,
                user_id=user_id,
                fields=sorted(patch),
                error=str(e),
            )
            raise error_cls(puzzle_id, user_id) from e

    async def record_download(self, puzzle_id: int, user_id: int) -> tuple[PuzzleCompletion, Puzzle]:
        """Create the completion record on first download and count the download.

        Repeated downloads by the same user return the existing record and
        leave ``downloads`` untouched.
        """
        puzzle = await self._get_puzzle(puzzle_id)

        existing = await self.completions.get(puzzle_id, user_id)
        if existing is not None:
            return existing, puzzle

        now = datetime.now(timezone.utc)
        completion = await self.completions.create(
            PuzzleCompletion(
                puzzle_id=puzzle_id,
                user_id=user_id,
                completed=False,
                liked=None,
                time_taken=None,
                components_used=None,
                nands_used=None,
                difficulty_rating=None,
                created_at=now,
                completed_at=None,
            )
        )
        puzzle = await self._write_aggregate(
            puzzle_id,
            user_id,
            {"downloads": puzzle.downloads + 1, "updated_at": now},
            DownloadInconsistency,
        )
        logger.info("puzzle_downloaded", puzzle_id=puzzle_id, user_id=user_id, downloads=puzzle.downloads)
        return completion, puzzle

    async def record_completion(self, puzzle_id: int, user_id: int, sample: CompletionSample) -> PuzzleCompletion:
        """Mark the user's record completed and fold the sample into the aggregate.

        A record that is already completed is returned unchanged and the
        aggregate is not touched again. A completion without a prior download
        creates the record directly (downloads are not incremented).
        """
        puzzle = await self._get_puzzle(puzzle_id)

        existing = await self.completions.get(puzzle_id, user_id)
        if existing is not None and existing.completed:
            logger.info("puzzle_already_completed", puzzle_id=puzzle_id, user_id=user_id)
            return existing

        now = datetime.now(timezone.utc)
        record_patch: dict[str, Any] = {
            "completed": True,
            "liked": sample.liked,
            "time_taken": sample.time,
            "components_used": sample.components_used,
            "nands_used": sample.nands_used,
            "difficulty_rating": sample.difficulty_rating,
            "completed_at": now,
        }
        if existing is None:
            completion = await self.completions.create(
                PuzzleCompletion(puzzle_id=puzzle_id, user_id=user_id, created_at=now, **record_patch)
            )
        else:
            await self.completions.update(puzzle_id, user_id, record_patch)
            completion = await self.completions.get(puzzle_id, user_id) or existing

        # Running stats use the aggregate as it was before this completion
        average_time = new_average(puzzle.average_time, puzzle.completions, sample.time)
        puzzle = await self._write_aggregate(
            puzzle_id,
            user_id,
            {
                "completions": puzzle.completions + 1,
                "average_time": average_time,
                "difficulty": score(average_time, sample.difficulty_rating),
                "likes": next_likes(puzzle.likes, sample.liked, legacy_parity=self.likes_legacy_parity),
                "updated_at": now,
            },
            CompletionInconsistency,
        )
        logger.info(
            "puzzle_completed",
            puzzle_id=puzzle_id,
            user_id=user_id,
            completions=puzzle.completions,
            average_time=puzzle.average_time,
            difficulty=puzzle.difficulty,
        )
        return completion

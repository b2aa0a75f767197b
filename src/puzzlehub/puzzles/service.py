"""Puzzle service: the operations exposed to the transport layer."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from puzzlehub.config import Settings
from puzzlehub.db.models import Puzzle, PuzzleCompletion
from puzzlehub.db.protocols import Storage
from puzzlehub.errors import InconsistencyError, InvalidArgument
from puzzlehub.puzzles.buckets import DifficultyRanges
from puzzlehub.puzzles.catalog import CatalogQuery, SearchCriteria
from puzzlehub.puzzles.codec import GameDataCodec
from puzzlehub.puzzles.enricher import MetadataEnricher
from puzzlehub.puzzles.schemas import (
    DownloadResponse,
    PuzzleMetadata,
    PuzzleSubmitRequest,
)
from puzzlehub.puzzles.tracker import CompletionSample, CompletionTracker

logger = structlog.get_logger()


class PuzzleService:
    """Composes tracker, enricher and catalog over one request's storage."""

    def __init__(
        self,
        storage: Storage,
        settings: Settings,
        codec: GameDataCodec | None = None,
    ) -> None:
        self.storage = storage
        self.codec = codec or GameDataCodec()
        self.rating_labels = settings.rating_labels
        self.enricher = MetadataEnricher(storage.completions, settings.rating_labels)
        self.catalog = CatalogQuery(
            storage.puzzles,
            self.enricher,
            DifficultyRanges(settings.difficulty_ranges),
        )
        self.tracker = CompletionTracker(
            storage.puzzles,
            storage.completions,
            likes_legacy_parity=settings.likes_legacy_parity,
        )

    # --- Reads ---

    async def list(self, category: str, viewer_id: int) -> list[PuzzleMetadata]:
        return await self.catalog.list(category, viewer_id)

    async def search(self, criteria: SearchCriteria, viewer_id: int) -> list[PuzzleMetadata]:
        return await self.catalog.search(criteria, viewer_id)

    # --- Writes ---

    async def submit(self, submission: PuzzleSubmitRequest, author_id: int) -> Puzzle:
        """Create a puzzle owned by ``author_id``.

        The author's current display name is copied onto the puzzle and is
        not updated if the author renames later.
        """
        author = await self.storage.users.get(author_id)
        if author is None:
            msg = f"Authenticated user {author_id} has no user record"
            raise InconsistencyError(msg)

        if await self.storage.puzzles.find_by_short_key(author_id, submission.short_key) is not None:
            msg = f"Short key '{submission.short_key}' is already used by one of your puzzles"
            raise InvalidArgument(msg)

        puzzle = await self.storage.puzzles.create(
            Puzzle(
                short_key=submission.short_key,
                title=submission.title,
                description=submission.description,
                data=submission.data,
                minimum_components=submission.minimum_components,
                author_id=author.id,
                author_name=author.display_name,
                completions=0,
                downloads=0,
                likes=0,
                average_time=None,
                difficulty=None,
                created_at=datetime.now(timezone.utc),
            )
        )
        logger.info("puzzle_submitted", puzzle_id=puzzle.id, author_id=author_id, short_key=puzzle.short_key)
        return puzzle

    async def download(self, puzzle_id: int, viewer_id: int) -> DownloadResponse:
        """Decode the puzzle's game data and register the viewer's download."""
        completion, puzzle = await self.tracker.record_download(puzzle_id, viewer_id)
        try:
            game = self.codec.decode(puzzle.data)
        except ValueError as e:
            msg = f"Stored game data of puzzle {puzzle_id} is unreadable"
            raise InconsistencyError(msg) from e
        return DownloadResponse(game=game, meta=self.enricher.project(puzzle, completion))

    async def complete(self, puzzle_id: int, viewer_id: int, sample: CompletionSample) -> PuzzleCompletion:
        if sample.difficulty_rating not in self.rating_labels:
            msg = f"Unknown difficulty rating {sample.difficulty_rating}; expected one of {sorted(self.rating_labels)}"
            raise InvalidArgument(msg)
        return await self.tracker.record_completion(puzzle_id, viewer_id, sample)

    async def delete(self, puzzle_id: int, author_id: int) -> bool:
        """Delete an owned puzzle.

        Returns False, without raising, if the puzzle is absent or owned by
        someone else. Completion records of the puzzle are left in place.
        """
        puzzle = await self.storage.puzzles.get(puzzle_id)
        if puzzle is None or puzzle.author_id != author_id:
            return False
        deleted = await self.storage.puzzles.delete(puzzle_id)
        if deleted:
            logger.info("puzzle_deleted", puzzle_id=puzzle_id, author_id=author_id)
        return deleted

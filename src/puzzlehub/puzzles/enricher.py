"""Viewer-scoped puzzle metadata."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from puzzlehub.db.models import Puzzle, PuzzleCompletion
from puzzlehub.db.protocols import CompletionStore
from puzzlehub.puzzles.buckets import rating_label
from puzzlehub.puzzles.schemas import PuzzleMetadata


class MetadataEnricher:
    """Join a puzzle aggregate with one viewer's completion record."""

    def __init__(self, completions: CompletionStore, rating_labels: Mapping[int, str]) -> None:
        self.completions = completions
        self.rating_labels = rating_labels

    def project(self, puzzle: Puzzle, completion: PuzzleCompletion | None) -> PuzzleMetadata:
        """Build the projection from an already-fetched record (no I/O)."""
        return PuzzleMetadata(
            id=puzzle.id,
            short_key=puzzle.short_key,
            title=puzzle.title,
            description=puzzle.description,
            minimum_components=puzzle.minimum_components,
            author_id=puzzle.author_id,
            author_name=puzzle.author_name,
            completions=puzzle.completions,
            downloads=puzzle.downloads,
            likes=puzzle.likes,
            average_time=puzzle.average_time,
            difficulty=puzzle.difficulty,
            created_at=puzzle.created_at,
            completed=bool(completion and completion.completed),
            liked=bool(completion and completion.liked),
            difficulty_rating=rating_label(self.rating_labels, completion.difficulty_rating) if completion else None,
        )

    async def enrich(self, puzzle: Puzzle, viewer_id: int) -> PuzzleMetadata:
        completion = await self.completions.get(puzzle.id, viewer_id)
        return self.project(puzzle, completion)

    async def enrich_many(self, puzzles: Iterable[Puzzle], viewer_id: int) -> list[PuzzleMetadata]:
        """Enrich each puzzle independently, preserving order."""
        return [await self.enrich(puzzle, viewer_id) for puzzle in puzzles]

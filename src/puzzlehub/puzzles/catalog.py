"""Category listings and search over the puzzle catalog."""

from __future__ import annotations

from dataclasses import dataclass

from puzzlehub.db.protocols import PuzzleQuery, PuzzleStore
from puzzlehub.errors import InvalidArgument
from puzzlehub.puzzles.buckets import ANY, DifficultyRanges, in_duration_bucket, validate_duration
from puzzlehub.puzzles.enricher import MetadataEnricher
from puzzlehub.puzzles.schemas import PuzzleMetadata

FIXED_CATEGORIES = ("official", "completed", "mine", "new", "top-rated")
DIFFICULTY_CATEGORIES = ("easy", "medium", "hard")
CATEGORIES = FIXED_CATEGORIES + DIFFICULTY_CATEGORIES


@dataclass(frozen=True)
class SearchCriteria:
    search_term: str = ""
    duration: str = ANY
    difficulty: str = ANY
    include_completed: bool = True


class CatalogQuery:
    """Builds store queries and applies enrichment and in-memory filters."""

    def __init__(self, puzzles: PuzzleStore, enricher: MetadataEnricher, ranges: DifficultyRanges) -> None:
        self.puzzles = puzzles
        self.enricher = enricher
        self.ranges = ranges

    def _category_query(self, category: str, viewer_id: int) -> PuzzleQuery:
        if category == "official":
            return PuzzleQuery(official=True)
        if category == "completed":
            return PuzzleQuery(completed_by=viewer_id)
        if category == "mine":
            return PuzzleQuery(author_id=viewer_id)
        if category == "new":
            return PuzzleQuery(order_by="created_at")
        if category == "top-rated":
            return PuzzleQuery(order_by="likes")
        if category in DIFFICULTY_CATEGORIES:
            return PuzzleQuery(difficulty_range=self.ranges.get(category).as_tuple())
        msg = f"Invalid category '{category}'. Must be one of: {', '.join(CATEGORIES)}"
        raise InvalidArgument(msg)

    async def list(self, category: str, viewer_id: int) -> list[PuzzleMetadata]:
        query = self._category_query(category, viewer_id)
        puzzles = await self.puzzles.find(query)
        return await self.enricher.enrich_many(puzzles, viewer_id)

    async def search(self, criteria: SearchCriteria, viewer_id: int) -> list[PuzzleMetadata]:
        """Substring search, then: enrich, completed filter, difficulty filter, duration filter.

        Bucket names are validated before touching storage.
        """
        difficulty_range = None if criteria.difficulty == ANY else self.ranges.get(criteria.difficulty)
        if criteria.duration != ANY:
            validate_duration(criteria.duration)

        puzzles = await self.puzzles.find(PuzzleQuery(search_term=criteria.search_term or None))
        results = await self.enricher.enrich_many(puzzles, viewer_id)

        if not criteria.include_completed:
            results = [p for p in results if not p.completed]
        if difficulty_range is not None:
            results = [p for p in results if difficulty_range.contains(p.difficulty)]
        if criteria.duration != ANY:
            results = [p for p in results if in_duration_bucket(p.average_time, criteria.duration)]
        return results

"""Named buckets over aggregate statistics.

Difficulty buckets come from configuration (``Settings.difficulty_ranges``);
duration buckets are fixed thresholds on the average solve time in seconds.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from puzzlehub.errors import InvalidArgument

ANY = "any"

SHORT_MAX_SECONDS = 120
LONG_MIN_SECONDS = 600

DURATION_BUCKETS = ("short", "medium", "long")


@dataclass(frozen=True)
class DifficultyRange:
    """Half-open interval ``[low, high)`` over the difficulty score."""

    low: float
    high: float

    def contains(self, value: float | None) -> bool:
        return value is not None and self.low <= value < self.high

    def as_tuple(self) -> tuple[float, float]:
        return (self.low, self.high)


class DifficultyRanges:
    """Lookup table of named difficulty ranges."""

    def __init__(self, table: Mapping[str, tuple[float, float]]) -> None:
        self._ranges = {name: DifficultyRange(float(low), float(high)) for name, (low, high) in table.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._ranges

    def names(self) -> list[str]:
        return list(self._ranges)

    def get(self, name: str) -> DifficultyRange:
        """Return the named range or raise InvalidArgument."""
        try:
            return self._ranges[name]
        except KeyError:
            msg = f"Unknown difficulty '{name}'. Must be one of: {', '.join([ANY, *self._ranges])}"
            raise InvalidArgument(msg) from None


def validate_duration(bucket: str) -> None:
    if bucket not in DURATION_BUCKETS:
        msg = f"Unknown duration '{bucket}'. Must be one of: {', '.join([ANY, *DURATION_BUCKETS])}"
        raise InvalidArgument(msg)


def in_duration_bucket(average_time: float | None, bucket: str) -> bool:
    """True if ``average_time`` falls in the named bucket.

    short is < 120 s, long is > 600 s, medium is [120, 600] inclusive.
    Puzzles that were never completed (no average) match no bucket.
    """
    validate_duration(bucket)
    if average_time is None:
        return False
    if bucket == "short":
        return average_time < SHORT_MAX_SECONDS
    if bucket == "long":
        return average_time > LONG_MIN_SECONDS
    return SHORT_MAX_SECONDS <= average_time <= LONG_MIN_SECONDS


def rating_label(labels: Mapping[int, str], rating: int | None) -> str | None:
    """Human-readable label for a player's own difficulty rating, if any."""
    if rating is None or rating < 0:
        return None
    return labels.get(rating)

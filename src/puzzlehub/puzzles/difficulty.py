"""Difficulty estimation: running averages and the logistic difficulty score.

Pure functions, no I/O. The constants here MUST stay fixed so that stored
scores remain reproducible from the same inputs.
"""

from __future__ import annotations

import math

# Controls how quickly the score saturates towards +/-1
DIFFICULTY_SCALE = 300.0

# Largest float strictly below 1.0; keeps saturated scores inside (-1, 1)
_SCORE_LIMIT = math.nextafter(1.0, 0.0)


def new_average(prior_average: float | None, prior_count: int, sample: float) -> float:
    """Incremental mean after adding one sample.

    ``prior_average`` is ignored (treated as 0) when ``prior_count`` is 0 or
    the average was never set.
    """
    if prior_count < 0:
        msg = f"prior_count must be >= 0, got {prior_count}"
        raise ValueError(msg)
    prior = prior_average if prior_average is not None else 0.0
    return (prior * prior_count + sample) / (prior_count + 1)


def score(average_time: float, difficulty_rating: float) -> float:
    """Map ``average_time * difficulty_rating`` onto (-1, 1).

    ``2 * (1 / (1 + e^(-(t*r)/300)) - 0.5)``: 0 maps to exactly 0 and the
    score rises monotonically with the product.
    """
    x = (average_time * difficulty_rating) / DIFFICULTY_SCALE
    try:
        logistic = 1 / (1 + math.exp(-x))
    except OverflowError:
        # e^(-x) overflows only for very negative x
        logistic = 0.0
    value = 2 * (logistic - 0.5)
    return min(max(value, -_SCORE_LIMIT), _SCORE_LIMIT)


def next_likes(likes: int, liked: bool, *, legacy_parity: bool = False) -> int:
    """Like counter after a completion.

    With ``legacy_parity`` the historical rule is reproduced: the counter is
    set to 1 whenever ``likes + liked`` is non-zero and to 0 otherwise.
    """
    if legacy_parity:
        return 1 if likes + int(liked) else 0
    return likes + (1 if liked else 0)

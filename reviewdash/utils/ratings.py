"""
Rating helpers.

Averaging and rounding rules shared by normalization and aggregation.
All ratings are on the Hostaway 0-10 scale.
"""

import math
from typing import Any, Iterable, List, Optional


def round_half_up(value: float, digits: int = 1) -> float:
    """
    Round to `digits` decimals, ties going up (2.25 -> 2.3, not banker's 2.2).
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_half_up_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_valid_rating(value: Any) -> bool:
    """True for real numbers that are not NaN (bools excluded)."""
    if value is None or isinstance(value, bool):
        return False
    if not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def mean(values: List[float]) -> float:
    return sum(values) / len(values)


def calculate_average_rating(categories: Optional[Iterable[Any]]) -> Optional[float]:
    """
    Calculate the overall rating from per-category ratings.

    Args:
        categories: CategoryRating objects or dicts with a "rating" key.
            Entries with a missing, null, non-numeric or NaN rating are ignored.

    Returns:
        Mean of the valid ratings rounded half-up to 1 decimal,
        or None when no valid rating remains.
    """
    if not categories:
        return None

    valid_ratings = []
    for entry in categories:
        if isinstance(entry, dict):
            rating = entry.get("rating")
        else:
            rating = getattr(entry, "rating", None)

        if is_valid_rating(rating):
            valid_ratings.append(rating)

    if not valid_ratings:
        return None

    return round_half_up(mean(valid_ratings))

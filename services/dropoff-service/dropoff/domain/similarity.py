"""Address similarity and the distance strategies built on it.

There is no geocoding yet: the distance between two addresses is derived from
how alike their text is. ``DistanceStrategy`` is the seam where a real
geodistance implementation plugs in.
"""

from __future__ import annotations

import math
from typing import Protocol

MAX_PSEUDO_DISTANCE_KM = 2.0


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance with unit costs for insertion, deletion and substitution."""
    # rows follow b, columns follow a
    table = [[0] * (len(a) + 1) for _ in range(len(b) + 1)]
    for i in range(len(a) + 1):
        table[0][i] = i
    for j in range(len(b) + 1):
        table[j][0] = j

    for j in range(1, len(b) + 1):
        for i in range(1, len(a) + 1):
            substitution = 0 if a[i - 1] == b[j - 1] else 1
            table[j][i] = min(
                table[j][i - 1] + 1,
                table[j - 1][i] + 1,
                table[j - 1][i - 1] + substitution,
            )
    return table[len(b)][len(a)]


def similarity(a: str, b: str) -> float:
    """Return a score in ``[0, 1]`` where 1.0 means identical strings.

    Comparison is case-sensitive; lower-case both sides first for
    case-insensitive matching.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - edit_distance(a, b)) / longest


def round_half_up(value: float, places: int = 2) -> float:
    factor = 10**places
    return math.floor(value * factor + 0.5) / factor


class DistanceStrategy(Protocol):
    """Estimates the distance in kilometres between two free-text addresses."""

    def distance_km(self, origin: str, destination: str) -> float: ...


class TextSimilarityDistance:
    """Maps address similarity onto ``[0, 2]`` km: identical text is 0 km, nothing in common is 2 km."""

    def __init__(self, max_distance_km: float = MAX_PSEUDO_DISTANCE_KM) -> None:
        self._max_distance_km = max_distance_km

    def distance_km(self, origin: str, destination: str) -> float:
        score = similarity(origin.lower(), destination.lower())
        return round_half_up((1 - score) * self._max_distance_km)

"""Random source contract consumed by the story engine.

The engine never owns randomness. Every probability and selection goes
through an object satisfying :class:`RNG`, threaded explicitly through each
call so that a fixed seed and a fixed call order replay identically.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Protocol, TypeVar

T = TypeVar("T")


class RNG(Protocol):
    def next(self) -> float: ...

    def chance(self, probability: float) -> bool: ...

    def next_int(self, low: int, high: int) -> int: ...

    def pick(self, items: Sequence[T]) -> T: ...

    def pick_weighted(self, items: Sequence[tuple[T, float]]) -> T: ...


class SeededRNG:
    """Deterministic :class:`RNG` over :class:`random.Random`.

    String seeds are hashed by ``random.Random`` itself, so the stream does
    not depend on ``PYTHONHASHSEED``.
    """

    def __init__(self, seed: str | int):
        self.seed = seed
        self._random = random.Random(seed)

    def next(self) -> float:
        return self._random.random()

    def chance(self, probability: float) -> bool:
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"chance: probability must be in [0, 1], got {probability}")
        return self.next() < probability

    def next_int(self, low: int, high: int) -> int:
        """Uniform integer in ``[low, high]``, both inclusive."""
        if low > high:
            raise ValueError(f"next_int: low ({low}) must be <= high ({high})")
        return low + int(self.next() * (high - low + 1))

    def pick(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("pick: items must not be empty")
        return items[self.next_int(0, len(items) - 1)]

    def pick_weighted(self, items: Sequence[tuple[T, float]]) -> T:
        if not items:
            raise ValueError("pick_weighted: items must not be empty")
        total = 0.0
        for _, weight in items:
            if weight < 0:
                raise ValueError(f"pick_weighted: weight must be non-negative, got {weight}")
            total += weight
        if total <= 0:
            raise ValueError("pick_weighted: total weight must be positive")

        threshold = self.next() * total
        for item, weight in items:
            threshold -= weight
            if threshold < 0:
                return item
        # Float rounding can leave a sliver past the last bucket.
        return items[-1][0]

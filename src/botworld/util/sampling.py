"""Discrete weighted sampling.

All weighted rolls in the simulation (specializations, Beer Base power
tiers) go through :class:`WeightedTable` so the distributions are data,
not if/elif chains.
"""

from __future__ import annotations

import random
from bisect import bisect_right
from itertools import accumulate
from typing import Generic, Iterable, Sequence, TypeVar

T = TypeVar("T")


class WeightedTable(Generic[T]):
    """An ordered list of ``(weight, value)`` pairs sampled by one uniform draw.

    Weights need not sum to 1; they are normalised on construction.  The
    draw walks the cumulative thresholds in the given order, so the table
    order is part of its definition.

    Usage:
        table = WeightedTable([(0.5, "a"), (0.5, "b")])
        table.pick(random.Random(1))
    """

    def __init__(self, entries: Iterable[tuple[float, T]]) -> None:
        pairs = list(entries)
        if not pairs:
            raise ValueError("WeightedTable needs at least one entry")
        if any(w < 0 for w, _ in pairs):
            raise ValueError("WeightedTable weights must be non-negative")
        total = sum(w for w, _ in pairs)
        if total <= 0:
            raise ValueError("WeightedTable weights must not all be zero")
        self._values: list[T] = [v for _, v in pairs]
        self._weights: list[float] = [w / total for w, _ in pairs]
        self._thresholds: list[float] = list(accumulate(self._weights))

    @property
    def values(self) -> Sequence[T]:
        return tuple(self._values)

    def probability(self, value: T) -> float:
        """Total normalised weight carried by *value*."""
        return sum(w for w, v in zip(self._weights, self._values) if v == value)

    def select(self, roll: float) -> T:
        """Map a roll in ``[0, 1)`` onto a value."""
        idx = bisect_right(self._thresholds, roll)
        # float accumulation can leave the last threshold a hair under 1.0
        return self._values[min(idx, len(self._values) - 1)]

    def pick(self, rng: random.Random) -> T:
        return self.select(rng.random())

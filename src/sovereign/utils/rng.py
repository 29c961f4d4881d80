"""Randomness helpers for the simulation core.

Combat is deterministic and never draws random numbers.  The two places that
do (scout-report fuzzing and the scout-loss roll) accept any object with the
:class:`RandomSource` shape so tests can inject a seeded ``random.Random``.
Production callers get an OS-entropy source that cannot be seeded.

Examples:
    >>> rng = random.Random(7)
    >>> 80 <= fuzz(rng, 100) <= 120
    True
    >>> round_half_up(2.5)
    3
"""

from __future__ import annotations

import math
import random
from typing import Protocol


class RandomSource(Protocol):
    """The subset of :class:`random.Random` the engine relies on."""

    def random(self) -> float: ...

    def uniform(self, a: float, b: float) -> float: ...


def default_rng() -> RandomSource:
    """Return an unseedable source backed by ``os.urandom``."""
    return random.SystemRandom()


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values.

    Python's built-in :func:`round` uses banker's rounding (``round(2.5) == 2``),
    which would shave units off NPC garrisons at exact halves.
    """
    return math.floor(value + 0.5)


def fuzz(rng: RandomSource, value: float, low: float = 0.8, high: float = 1.2) -> int:
    """Scale ``value`` by an independent uniform draw from ``[low, high]`` and round."""
    if low > high:
        raise ValueError(f"low must not exceed high, got {low} > {high}")
    return round_half_up(value * rng.uniform(low, high))


def roll_below(rng: RandomSource, probability: float) -> bool:
    """Return ``True`` with the given probability (clamped to ``[0, 1]``)."""
    return rng.random() < min(max(probability, 0.0), 1.0)

"""Utility functions for the Sovereign simulation core."""

from sovereign.utils.rng import (
    RandomSource,
    default_rng,
    fuzz,
    roll_below,
    round_half_up,
)

__all__ = [
    "RandomSource",
    "default_rng",
    "fuzz",
    "roll_below",
    "round_half_up",
]

"""Unit tests for randomness helpers."""

import random

import pytest
from hypothesis import given
from hypothesis import strategies as st

from sovereign.utils.rng import default_rng, fuzz, roll_below, round_half_up


class FixedSource:
    """Returns the same draw every time."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value

    def uniform(self, a, b):
        return a + (b - a) * self.value


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        ("value", "expected"), [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (7.0, 7), (0.0, 0)]
    )
    def test_halves_round_up(self, value, expected):
        assert round_half_up(value) == expected


class TestFuzz:
    def test_uses_the_drawn_factor(self):
        assert fuzz(FixedSource(0.0), 100) == 80
        assert fuzz(FixedSource(1.0), 100) == 120
        assert fuzz(FixedSource(0.5), 100) == 100

    def test_rejects_inverted_band(self):
        with pytest.raises(ValueError, match="low must not exceed high"):
            fuzz(random.Random(1), 100, low=1.2, high=0.8)

    @given(seed=st.integers(min_value=0, max_value=2**32), value=st.integers(0, 10_000))
    def test_stays_inside_band(self, seed, value):
        result = fuzz(random.Random(seed), value)
        assert round_half_up(value * 0.8) <= result <= round_half_up(value * 1.2)


class TestRollBelow:
    def test_zero_probability_never_fires(self):
        assert roll_below(FixedSource(0.0), 0.0) is False

    def test_certain_probability_always_fires(self):
        assert roll_below(FixedSource(0.999), 1.0) is True

    def test_probability_is_clamped(self):
        assert roll_below(FixedSource(0.5), 7.0) is True
        assert roll_below(FixedSource(0.0), -1.0) is False

    def test_compares_strictly(self):
        assert roll_below(FixedSource(0.25), 0.25) is False
        assert roll_below(FixedSource(0.24), 0.25) is True


class TestDefaultRng:
    def test_is_system_random(self):
        assert isinstance(default_rng(), random.SystemRandom)

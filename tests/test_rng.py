"""
Tests for the seeded linear congruential generator.
"""

import pytest

from blockevo.genome.rng import LCG_MODULUS, SeededRandom


class TestSeededRandom:
    """Stream values and helpers."""

    def test_first_values_follow_the_recurrence(self):
        rng = SeededRandom(0)
        assert rng.random() == pytest.approx(49297 / 233280)
        expected_seed = (49297 * 9301 + 49297) % 233280
        assert rng.random() == pytest.approx(expected_seed / 233280)

    def test_identical_seeds_give_identical_streams(self):
        a, b = SeededRandom(12345), SeededRandom(12345)
        assert [a.random() for _ in range(50)] == [b.random() for _ in range(50)]

    def test_values_stay_in_unit_interval(self):
        rng = SeededRandom(987654321)
        for _ in range(1000):
            value = rng.random()
            assert 0.0 <= value < 1.0
            assert rng.seed < LCG_MODULUS

    def test_random_int_is_half_open(self):
        rng = SeededRandom(42)
        values = {rng.random_int(2, 5) for _ in range(500)}
        assert values == {2, 3, 4}

    def test_random_float_range(self):
        rng = SeededRandom(3)
        for _ in range(200):
            assert 0.12 <= rng.random_float(0.12, 0.35) < 0.35

    def test_choice(self):
        rng = SeededRandom(9)
        items = ["a", "b", "c"]
        assert rng.choice(items) in items
        with pytest.raises(IndexError):
            rng.choice([])

"""
Unit Tests for the Numeric Series Helpers.
"""

import math

import pytest

from laborwatch.utils.stats_utils import (
    coefficient_of_variation,
    least_squares_slope,
    recent_mean,
    safe_mean,
    safe_std,
)


class TestSafeStats:
    """Tests for safe_mean and safe_std."""

    def test_mean(self):
        assert safe_mean([1.0, 2.0, 3.0]) == pytest.approx(2.0)

    def test_empty_mean_uses_default(self):
        assert safe_mean([]) == 0.0
        assert safe_mean([], default=-1.0) == -1.0

    def test_std_is_population(self):
        assert safe_std([4.0, 6.0]) == pytest.approx(1.0)

    def test_std_single_value(self):
        assert safe_std([5.0]) == 0.0

    def test_returns_python_float(self):
        assert type(safe_mean([1, 2])) is float


class TestCoefficientOfVariation:
    """Tests for coefficient_of_variation."""

    def test_constant_series(self):
        assert coefficient_of_variation([5.0, 5.0, 5.0]) == 0.0

    def test_value(self):
        assert coefficient_of_variation([4.0, 6.0]) == pytest.approx(0.2)

    def test_degenerate_series_is_inf(self):
        assert math.isinf(coefficient_of_variation([]))
        assert math.isinf(coefficient_of_variation([0.0, 0.0]))


class TestSeriesHelpers:
    """Tests for recent_mean and least_squares_slope."""

    def test_recent_mean(self):
        assert recent_mean([10.0, 1.0, 2.0, 3.0], 3) == pytest.approx(2.0)

    def test_recent_mean_short_series(self):
        assert recent_mean([4.0], 3) == pytest.approx(4.0)

    def test_slope(self):
        assert least_squares_slope([1.0, 3.0, 5.0]) == pytest.approx(2.0)

    def test_slope_too_short(self):
        assert least_squares_slope([7.0]) == 0.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Time Series Statistics Tests.

============================================================
PURPOSE
============================================================
Tests for the numeric primitives behind source scoring.

TEST CATEGORIES:
- Mean / stddev / returns
- Correlation
- Trend classification
- Optimal lag search (including its tie-break)
- Score helpers

============================================================
"""

import math
from unittest.mock import patch

import pytest

from sentiment.models import Trend
from sentiment.statistics import (
    calculate_optimal_lag,
    calculate_trend,
    correlation,
    get_significance,
    mean,
    normalize_score,
    period_returns,
    period_to_days,
    stddev,
)


IRREGULAR = [1.0, 5.0, 2.0, 8.0, 3.0, 9.0, 4.0, 7.0, 2.0, 6.0]


# ============================================================
# BASIC STATISTICS
# ============================================================

class TestBasics:
    """Tests for mean, stddev and period returns."""

    def test_mean_empty(self):
        assert mean([]) == 0.0

    def test_stddev_empty(self):
        assert stddev([]) == 0.0

    def test_stddev_population(self):
        assert stddev([2, 4, 4, 4, 5, 5, 7, 9]) == 2.0

    def test_stddev_with_given_mean(self):
        assert stddev([1, 3], mean_value=2) == 1.0

    def test_period_returns(self):
        assert period_returns([100, 110, 99]) == pytest.approx([0.1, -0.1])

    def test_period_returns_skips_zero_base(self):
        assert period_returns([0, 10, 20]) == pytest.approx([1.0])


# ============================================================
# CORRELATION
# ============================================================

class TestCorrelation:
    """Tests for Pearson correlation."""

    def test_symmetric(self):
        x = [1, 3, 2, 5, 4]
        y = [2, 1, 4, 3, 6]

        assert correlation(x, y) == correlation(y, x)

    def test_self_correlation_is_one(self):
        assert correlation(IRREGULAR, IRREGULAR) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert correlation([1, 2, 3, 4], [8, 6, 4, 2]) == pytest.approx(-1.0)

    def test_fewer_than_three_points(self):
        assert correlation([1, 2], [2, 4]) == 0.0

    def test_zero_variance(self):
        assert correlation([5, 5, 5, 5], [1, 2, 3, 4]) == 0.0

    def test_uses_common_prefix(self):
        assert correlation([1, 2, 3, 100], [2, 4, 6]) == pytest.approx(1.0)

    def test_custom_min_points(self):
        assert correlation([1, 2, 3], [1, 2, 3], min_points=4) == 0.0


# ============================================================
# TREND
# ============================================================

class TestCalculateTrend:
    """Tests for trend classification on newest-first values."""

    def test_rising(self):
        assert calculate_trend([110, 105, 100, 90, 85, 80]) is Trend.RISING

    def test_falling(self):
        assert calculate_trend([80, 85, 90, 100, 105, 110]) is Trend.FALLING

    def test_within_threshold_is_stable(self):
        assert calculate_trend([102, 101, 100, 100, 100, 100]) is Trend.STABLE

    def test_older_average_zero_is_stable(self):
        assert calculate_trend([1000, 500, 0, 0]) is Trend.STABLE

    def test_too_few_values(self):
        assert calculate_trend([]) is Trend.STABLE
        assert calculate_trend([42]) is Trend.STABLE

    def test_window_shrinks_for_short_series(self):
        # w = min(3, 2 // 2) = 1
        assert calculate_trend([120, 100]) is Trend.RISING

    def test_custom_threshold(self):
        values = [104, 100]

        assert calculate_trend(values, threshold=0.05) is Trend.STABLE
        assert calculate_trend(values, threshold=0.01) is Trend.RISING

    def test_avg_periods(self):
        values = [200, 100, 100, 100, 100, 100]

        assert calculate_trend(values, avg_periods=1) is Trend.RISING
        assert calculate_trend(values, avg_periods=3) is Trend.RISING
        assert calculate_trend([104, 100, 100, 100], avg_periods=2) is Trend.STABLE


# ============================================================
# OPTIMAL LAG
# ============================================================

class TestOptimalLag:
    """Tests for the ascending optimal-lag scan."""

    def test_self_lag_is_zero(self):
        assert calculate_optimal_lag(IRREGULAR, IRREGULAR, max_lag=3) == 0

    def test_max_lag_zero(self):
        assert calculate_optimal_lag(IRREGULAR, IRREGULAR, max_lag=0) == 0

    def test_detects_leading_series(self):
        leader = IRREGULAR + [5.0, 1.0]
        follower = [0.0, 0.0] + leader[:-2]

        assert calculate_optimal_lag(leader, follower, max_lag=4) == 2

    def test_detects_lagging_series(self):
        follower = [0.0, 0.0] + IRREGULAR[:-2]

        assert calculate_optimal_lag(follower, IRREGULAR, max_lag=4) == -2

    def test_tie_keeps_most_negative_lag(self):
        """Equal correlations: the first lag in the ascending scan wins."""
        with patch("sentiment.statistics.correlation", return_value=0.5):
            assert calculate_optimal_lag(IRREGULAR, IRREGULAR, max_lag=3) == -3

    def test_linear_series_ties_at_every_lag(self):
        linear = [float(i) for i in range(10)]

        assert calculate_optimal_lag(linear, linear, max_lag=2) == -2

    def test_too_few_pairs(self):
        assert calculate_optimal_lag([1, 2], [2, 1], max_lag=3) == 0


# ============================================================
# HELPERS
# ============================================================

class TestHelpers:
    """Tests for score helpers and period parsing."""

    def test_normalize_score(self):
        assert normalize_score(5, 0, 10) == 50.0
        assert normalize_score(-5, 0, 10) == 0.0
        assert normalize_score(15, 0, 10) == 100.0

    def test_normalize_zero_range(self):
        assert normalize_score(3, 3, 3) == 50.0

    @pytest.mark.parametrize("score, label", [
        (10, "very negative"),
        (20, "negative"),
        (50, "neutral"),
        (60, "positive"),
        (80, "very positive"),
    ])
    def test_get_significance(self, score, label):
        assert get_significance(score) == label

    @pytest.mark.parametrize("period, days", [
        ("24h", 1.0),
        ("7d", 7),
        ("2w", 14),
        ("3m", 90),
        ("1y", 365),
    ])
    def test_period_to_days(self, period, days):
        assert math.isclose(period_to_days(period), days)

    @pytest.mark.parametrize("period", ["", "week", "7", "d7", None])
    def test_period_to_days_default(self, period):
        assert period_to_days(period) == 7

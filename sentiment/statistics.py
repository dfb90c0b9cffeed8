"""
Time Series Statistics - Pure numeric primitives used by the scorers.

None of these functions raise on sparse input. Too few points yield a
neutral value instead: correlation 0, trend STABLE, lag 0.

Ordering conventions:
- calculate_trend() expects values NEWEST FIRST
- correlation() and calculate_optimal_lag() compare series index by index,
  so both inputs must share the same ordering
"""

import math
import re
from typing import List, Optional, Sequence

from .models import Trend


DEFAULT_TREND_THRESHOLD = 0.05
DEFAULT_AVG_PERIODS = 3
DEFAULT_MAX_LAG = 7
MIN_DATA_POINTS = 3
DEFAULT_PERIOD_DAYS = 7


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def stddev(values: Sequence[float], mean_value: Optional[float] = None) -> float:
    """Population standard deviation. Empty input gives 0."""
    n = len(values)
    if n == 0:
        return 0.0
    if mean_value is None:
        mean_value = mean(values)
    variance = sum((v - mean_value) ** 2 for v in values) / n
    return math.sqrt(variance)


def period_returns(prices: Sequence[float]) -> List[float]:
    """
    Period-over-period relative changes of an oldest-first price series.

    Steps starting from a zero price are skipped.
    """
    returns = []
    for i in range(1, len(prices)):
        prev = prices[i - 1]
        if prev == 0:
            continue
        returns.append((prices[i] - prev) / prev)
    return returns


def correlation(
    x: Sequence[float],
    y: Sequence[float],
    min_points: int = MIN_DATA_POINTS,
) -> float:
    """
    Pearson correlation over the first min(len(x), len(y)) elements.

    Returns 0 when fewer than min_points are available or either
    series has zero variance.
    """
    n = min(len(x), len(y))
    if n < min_points:
        return 0.0

    x_mean = sum(x[:n]) / n
    y_mean = sum(y[:n]) / n

    numerator = 0.0
    x_variance = 0.0
    y_variance = 0.0
    for i in range(n):
        x_diff = x[i] - x_mean
        y_diff = y[i] - y_mean
        numerator += x_diff * y_diff
        x_variance += x_diff * x_diff
        y_variance += y_diff * y_diff

    if x_variance == 0 or y_variance == 0:
        return 0.0

    return numerator / math.sqrt(x_variance * y_variance)


def calculate_trend(
    values: Sequence[float],
    threshold: float = DEFAULT_TREND_THRESHOLD,
    avg_periods: int = DEFAULT_AVG_PERIODS,
) -> Trend:
    """
    Classify a newest-first series as rising, falling or stable.

    Compares the mean of the first w values with the mean of the last
    w values, where w = min(avg_periods, len(values) // 2).
    """
    if len(values) < 2:
        return Trend.STABLE

    window = min(avg_periods, len(values) // 2)
    if window < 1:
        return Trend.STABLE

    recent_avg = sum(values[:window]) / window
    older_avg = sum(values[len(values) - window:]) / window

    if older_avg == 0:
        return Trend.STABLE

    pct_change = (recent_avg - older_avg) / older_avg

    if pct_change > threshold:
        return Trend.RISING
    elif pct_change < -threshold:
        return Trend.FALLING
    return Trend.STABLE


def calculate_optimal_lag(
    series1: Sequence[float],
    series2: Sequence[float],
    max_lag: int = DEFAULT_MAX_LAG,
    min_points: int = MIN_DATA_POINTS,
) -> int:
    """
    Lag at which |correlation(series1[i], series2[i + lag])| is largest.

    Lags are scanned in ascending order from -max_lag to +max_lag and only
    a strictly greater correlation replaces the current best, so ties keep
    the earliest (most negative) lag. This rule is part of the contract:
    results must be reproducible.

    Returns 0 when no lag has at least min_points overlapping pairs.
    Positive lag means series1 leads series2.
    """
    best_lag = 0
    best_correlation = 0.0

    for lag in range(-max_lag, max_lag + 1):
        xs: List[float] = []
        ys: List[float] = []
        for i in range(len(series1)):
            j = i + lag
            if 0 <= j < len(series2):
                xs.append(series1[i])
                ys.append(series2[j])

        if len(xs) < min_points:
            continue

        corr = abs(correlation(xs, ys, min_points))
        if corr > best_correlation:
            best_correlation = corr
            best_lag = lag

    return best_lag


def normalize_score(score: float, min_value: float, max_value: float) -> float:
    """Rescale score from [min_value, max_value] to 0-100 (50 for a zero range)."""
    if max_value == min_value:
        return 50.0
    clamped = max(min_value, min(max_value, score))
    return (clamped - min_value) / (max_value - min_value) * 100


def get_significance(score: float) -> str:
    """Label a 0-100 score."""
    if score < 20:
        return "very negative"
    if score < 40:
        return "negative"
    if score < 60:
        return "neutral"
    if score < 80:
        return "positive"
    return "very positive"


_PERIOD_RE = re.compile(r"^(\d+)([hdwmy])$")
_UNIT_DAYS = {
    "h": 1 / 24,
    "d": 1,
    "w": 7,
    "m": 30,
    "y": 365,
}


def period_to_days(period: str) -> float:
    """Convert '12h', '7d', '2w', '3m', '1y' to days. Unparseable input gives 7."""
    match = _PERIOD_RE.match(period or "")
    if not match:
        return DEFAULT_PERIOD_DAYS
    value, unit = match.groups()
    return int(value) * _UNIT_DAYS[unit]

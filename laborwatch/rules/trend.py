"""
Trend Analyzer.

Classifies the direction of an ordered numeric series: contraction
durations, start-to-start intervals, or intensity ratings.

Algorithm:
    1. Require at least 3 points (otherwise there is no trend)
    2. Split the series in half; for odd lengths the middle element belongs
       to the first half
    3. Compare the mean of the second half to the mean of the first half
    4. A difference within 5% of the series mean magnitude is "stable"

The reported first/last values are the raw endpoints of the series, not the
half-means, so a noisy but trending series still reads naturally as
"X → Y".

Interpretation is left to the caller: a decreasing interval trend means
labor is intensifying, while a decreasing duration trend means it is easing.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from laborwatch.config import ANALYSIS
from laborwatch.utils.stats_utils import least_squares_slope, safe_mean

# Configure module logger
logger = logging.getLogger(__name__)


class TrendAnalysisError(Exception):
    """Raised when a trend is requested over non-finite values."""
    pass


class TrendDirection(Enum):
    """Direction of a series."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


@dataclass(frozen=True)
class TrendResult:
    """
    Direction of a numeric series.

    Attributes:
        direction: increasing, decreasing or stable.
        first_value: The literal first element of the series.
        last_value: The literal last element of the series.
        first_half_mean: Mean of the earlier half.
        second_half_mean: Mean of the later half.
        slope: Least-squares change per step (used for projections).
    """

    direction: TrendDirection
    first_value: float
    last_value: float
    first_half_mean: float
    second_half_mean: float
    slope: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "direction": self.direction.value,
            "firstValue": self.first_value,
            "lastValue": self.last_value,
            "firstHalfMean": self.first_half_mean,
            "secondHalfMean": self.second_half_mean,
            "slope": self.slope,
        }

    def __repr__(self) -> str:
        return (
            f"TrendResult({self.direction.value}, "
            f"{self.first_value:g} -> {self.last_value:g})"
        )


def get_trend(
    series: Sequence[float],
    tolerance: float = ANALYSIS.TREND_RELATIVE_TOLERANCE
) -> Optional[TrendResult]:
    """
    Classify the direction of an ordered series.

    Args:
        series: Ordered values (e.g. durations in seconds).
        tolerance: Relative band, as a fraction of the series mean
            magnitude, inside which the series is "stable".

    Returns:
        TrendResult, or None if the series has fewer than 3 points.

    Raises:
        TrendAnalysisError: If the series contains NaN or infinity.

    Example:
        >>> trend = get_trend([30, 40, 50, 60, 70])
        >>> trend.direction
        <TrendDirection.INCREASING: 'increasing'>
        >>> trend.first_value, trend.last_value
        (30, 70)
    """
    n = len(series)
    if n < ANALYSIS.TREND_MIN_POINTS:
        return None

    values = list(series)
    if not all(math.isfinite(v) for v in values):
        raise TrendAnalysisError(f"Trend series contains non-finite values: {values}")

    split = (n + 1) // 2
    first_half_mean = safe_mean(values[:split])
    second_half_mean = safe_mean(values[split:])
    delta = second_half_mean - first_half_mean
    band = abs(safe_mean(values)) * tolerance

    if abs(delta) <= band:
        direction = TrendDirection.STABLE
    elif delta > 0:
        direction = TrendDirection.INCREASING
    else:
        direction = TrendDirection.DECREASING

    result = TrendResult(
        direction=direction,
        first_value=values[0],
        last_value=values[-1],
        first_half_mean=first_half_mean,
        second_half_mean=second_half_mean,
        slope=least_squares_slope(values),
    )
    logger.debug(f"Trend over {n} points: {result!r}")
    return result


__all__ = [
    'TrendAnalysisError',
    'TrendDirection',
    'TrendResult',
    'get_trend',
]

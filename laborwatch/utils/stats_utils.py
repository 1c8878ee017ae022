"""
Small numeric helpers for contraction series.

Durations and intervals arrive as plain Python lists; these helpers wrap
numpy so that empty input falls back to a default instead of producing a
NaN with a RuntimeWarning.

Functions:
    safe_mean: Mean with fallback for empty input
    safe_std: Population standard deviation with fallback
    coefficient_of_variation: std / mean (inf when the mean is not positive)
    recent_mean: Mean of the last N values
    least_squares_slope: Per-step slope of a series

Example:
    >>> from laborwatch.utils.stats_utils import safe_mean, coefficient_of_variation
    >>> safe_mean([])
    0.0
    >>> round(coefficient_of_variation([4.0, 6.0]), 2)
    0.2
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


def safe_mean(values: Sequence[float], default: float = 0.0) -> float:
    """
    Calculate the mean, with fallback for empty input.

    Args:
        values: Input values.
        default: Value to return if there are no values.

    Returns:
        Mean of the values, or default.
    """
    if len(values) == 0:
        return default
    return float(np.mean(np.asarray(values, dtype=float)))


def safe_std(values: Sequence[float], default: float = 0.0) -> float:
    """
    Calculate the population standard deviation (ddof=0).

    Args:
        values: Input values.
        default: Value to return if there are fewer than 2 values.

    Returns:
        Standard deviation of the values, or default.
    """
    if len(values) < 2:
        return default
    return float(np.std(np.asarray(values, dtype=float)))


def coefficient_of_variation(values: Sequence[float]) -> float:
    """
    Coefficient of variation (std / mean).

    Lower is more regular. Returns ``math.inf`` when the mean is zero or
    negative, so an empty or degenerate series never reads as "regular".

    Example:
        >>> coefficient_of_variation([5.0, 5.0, 5.0])
        0.0
    """
    mean = safe_mean(values)
    if mean <= 0:
        return math.inf
    return safe_std(values) / mean


def recent_mean(values: Sequence[float], n: int, default: float = 0.0) -> float:
    """Mean of the last ``n`` values."""
    return safe_mean(list(values)[-n:], default=default)


def least_squares_slope(values: Sequence[float]) -> float:
    """
    Slope of the least-squares line through (index, value).

    Args:
        values: At least 2 values.

    Returns:
        Change per step. 0.0 for fewer than 2 values.
    """
    if len(values) < 2:
        return 0.0
    y = np.asarray(values, dtype=float)
    x = np.arange(len(y), dtype=float)
    slope, _intercept = np.polyfit(x, y, 1)
    return float(slope)


__all__ = [
    'safe_mean',
    'safe_std',
    'coefficient_of_variation',
    'recent_mean',
    'least_squares_slope',
]

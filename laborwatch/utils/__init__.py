"""
Utility functions for LaborWatch.

This package contains reusable helpers organized by domain:
- stats_utils: Numeric helpers over duration and interval series
- formatting: Text labels for durations, intervals and time ranges

Usage:
    from laborwatch.utils import safe_mean, format_range
"""

from laborwatch.utils.stats_utils import (
    coefficient_of_variation,
    least_squares_slope,
    recent_mean,
    safe_mean,
    safe_std,
)
from laborwatch.utils.formatting import (
    format_duration,
    format_duration_short,
    format_interval,
    format_range,
    format_rest_time,
    stage_label,
)

__all__ = [
    'coefficient_of_variation',
    'least_squares_slope',
    'recent_mean',
    'safe_mean',
    'safe_std',
    'format_duration',
    'format_duration_short',
    'format_interval',
    'format_range',
    'format_rest_time',
    'stage_label',
]

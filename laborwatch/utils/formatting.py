"""
Text formatting helpers for durations, intervals and time ranges.

These produce the short labels that appear in advice text and range
recommendations. Negative inputs are treated as zero.

Example:
    >>> format_duration(83)
    '1:23'
    >>> format_range(30, 120)
    '30 min – 2h'
"""

from __future__ import annotations

import math
from typing import Optional

from laborwatch.data.models import LaborStage


def format_duration(seconds: float) -> str:
    """Format seconds as ``M:SS`` (e.g. "1:23", "12:05")."""
    seconds = max(0.0, seconds)
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins}:{secs:02d}"


def format_duration_short(seconds: float) -> str:
    """Format seconds as "Xm Ys", "Xm" or "Ys"."""
    seconds = max(0.0, seconds)
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    if mins == 0:
        return f"{secs}s"
    if secs == 0:
        return f"{mins}m"
    return f"{mins}m {secs}s"


def format_interval(minutes: float) -> str:
    """Format fractional minutes as "Xm Ys"."""
    minutes = max(0.0, minutes)
    mins = int(math.floor(minutes))
    secs = int(round((minutes - mins) * 60))
    if secs == 60:
        mins, secs = mins + 1, 0
    if mins == 0:
        return f"{secs}s"
    if secs == 0:
        return f"{mins}m"
    return f"{mins}m {secs}s"


def format_rest_time(seconds: float, show_seconds: bool = False) -> str:
    """
    Format a rest period with a unit that suits its length.

    - under 1 hour: ``M:SS``
    - under 1 day: ``Xh Ym`` (``Xh Ym Zs`` with ``show_seconds``)
    - otherwise: ``Xd Yh``
    """
    seconds = max(0.0, seconds)
    total_minutes = int(seconds // 60)
    if total_minutes < 60:
        return f"{total_minutes}:{int(seconds % 60):02d}"
    if total_minutes < 1440:
        hours, mins = divmod(total_minutes, 60)
        if show_seconds:
            return f"{hours}h {mins}m {int(seconds % 60)}s"
        return f"{hours}h" if mins == 0 else f"{hours}h {mins}m"
    days = total_minutes // 1440
    hours = (total_minutes % 1440) // 60
    return f"{days}d" if hours == 0 else f"{days}d {hours}h"


def _format_minutes_unit(minutes: float) -> str:
    if minutes < 60:
        return f"{minutes:g} min"
    hours = minutes / 60
    if hours == math.floor(hours):
        return f"{int(hours)}h"
    return f"{hours:.1f}h"


def format_range(min_minutes: float, max_minutes: float) -> str:
    """
    Format a minute range for recommendations.

    Args:
        min_minutes: Lower bound in minutes.
        max_minutes: Upper bound in minutes.

    Returns:
        "now" when both bounds are zero or negative, a single unit when the
        bounds are equal, otherwise "A – B" (minutes below an hour, hours
        above).

    Example:
        >>> format_range(0, 0)
        'now'
        >>> format_range(90, 90)
        '1.5h'
    """
    if min_minutes <= 0 and max_minutes <= 0:
        return "now"
    if min_minutes == max_minutes:
        return _format_minutes_unit(min_minutes)
    return f"{_format_minutes_unit(min_minutes)} – {_format_minutes_unit(max_minutes)}"


def stage_label(stage: Optional[LaborStage]) -> str:
    """Display label for a stage ("Unknown" when there is no estimate)."""
    if stage is None:
        return "Unknown"
    return stage.label


__all__ = [
    'format_duration',
    'format_duration_short',
    'format_interval',
    'format_range',
    'format_rest_time',
    'stage_label',
]

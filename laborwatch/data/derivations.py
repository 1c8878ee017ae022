"""
Derivations over single contractions and the event log.

Elapsed time, duration, start-to-start interval, rest time, and the
water-break lookups every analysis needs.

Conventions:
    - Durations are in seconds, intervals in minutes.
    - Open contractions and untimed contractions report a duration of 0.0.
      Callers that aggregate durations must filter with ``timed()`` first.
    - Intervals are start-to-start and never negative. Callers pass
      contractions already sorted by start time.
    - Every "now" is passed in explicitly so that all values computed for
      one frame agree with each other.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from laborwatch.data.models import Contraction, LaborEvent, LaborEventType


def is_open(contraction: Contraction) -> bool:
    """True if the contraction has no end time yet."""
    return contraction.end is None


def duration_seconds(contraction: Contraction) -> float:
    """
    Duration of a closed, timed contraction in seconds.

    Open contractions and untimed contractions return 0.0.

    Example:
        >>> duration_seconds(c)  # c lasted one minute
        60.0
    """
    if contraction.end is None or contraction.untimed:
        return 0.0
    return max(0.0, (contraction.end - contraction.start).total_seconds())


def elapsed_seconds(contraction: Contraction, now: datetime) -> float:
    """
    Seconds elapsed for a contraction as of ``now``.

    For an open contraction this is ``now - start`` (floored at 0, so a
    slightly skewed clock never shows a negative timer). For a closed one it
    is the recorded duration.
    """
    if contraction.end is not None:
        return duration_seconds(contraction)
    return max(0.0, (now - contraction.start).total_seconds())


def interval_minutes(earlier: Contraction, later: Contraction) -> float:
    """Start-to-start gap between two consecutive contractions, in minutes."""
    return max(0.0, (later.start - earlier.start).total_seconds() / 60.0)


def rest_between_seconds(current: Contraction, following: Contraction) -> float:
    """
    Rest between the end of ``current`` and the start of ``following``.

    Returns 0.0 while ``current`` is still open.
    """
    if current.end is None:
        return 0.0
    return max(0.0, (following.start - current.end).total_seconds())


def rest_seconds(contractions: Sequence[Contraction], now: datetime) -> float:
    """Seconds since the most recent completed contraction ended."""
    closed = completed(contractions)
    if not closed:
        return 0.0
    return max(0.0, (now - closed[-1].end).total_seconds())


def completed(contractions: Sequence[Contraction]) -> list[Contraction]:
    """Closed contractions (timed or untimed), order preserved."""
    return [c for c in contractions if c.end is not None]


def timed(contractions: Sequence[Contraction]) -> list[Contraction]:
    """Closed contractions that carry a real duration."""
    return [c for c in contractions if c.end is not None and not c.untimed]


def interval_series(contractions: Sequence[Contraction]) -> list[float]:
    """All consecutive start-to-start intervals, in minutes."""
    return [
        interval_minutes(contractions[i - 1], contractions[i])
        for i in range(1, len(contractions))
    ]


def duration_series(contractions: Sequence[Contraction]) -> list[float]:
    """Durations of the timed contractions, in seconds."""
    return [duration_seconds(c) for c in timed(contractions)]


def has_water_break(events: Sequence[LaborEvent]) -> bool:
    """True if any water-break event is recorded."""
    return any(e.type == LaborEventType.WATER_BREAK for e in events)


def latest_water_break(events: Sequence[LaborEvent]) -> Optional[LaborEvent]:
    """
    The most recent water-break event.

    A second water-break entry is a correction of the first, so the latest
    timestamp wins.
    """
    water = [e for e in events if e.type == LaborEventType.WATER_BREAK]
    if not water:
        return None
    return max(water, key=lambda e: e.timestamp)


def hours_since_water_break(
    events: Sequence[LaborEvent],
    now: datetime
) -> Optional[float]:
    """Hours since the most recent water break, or None if there is none."""
    event = latest_water_break(events)
    if event is None:
        return None
    return max(0.0, (now - event.timestamp).total_seconds() / 3600.0)


__all__ = [
    'is_open',
    'duration_seconds',
    'elapsed_seconds',
    'interval_minutes',
    'rest_between_seconds',
    'rest_seconds',
    'completed',
    'timed',
    'interval_series',
    'duration_series',
    'has_water_break',
    'latest_water_break',
    'hours_since_water_break',
]

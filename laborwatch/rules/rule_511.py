"""
5-1-1 Rule Checker.

The "5-1-1" heuristic says it is time to head in when contractions are
5 minutes apart, last 1 minute, and the pattern has held for 1 hour. All
three numbers come from ThresholdConfig; nothing here assumes 5, 1 or 1.

This module provides:
    - check_511_rule: Is the rule met right now, and how close is each part?
    - estimate_time_to_511: Projected minutes until the rule is met, from the
      duration and interval trends.

Untimed contractions count towards intervals but never towards durations.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional, Sequence

from laborwatch.config import ANALYSIS, ThresholdConfig
from laborwatch.data.derivations import (
    completed,
    duration_series,
    interval_series,
)
from laborwatch.data.models import Contraction
from laborwatch.data.sessions import get_latest_session, get_session_filtered_intervals
from laborwatch.rules.trend import get_trend
from laborwatch.utils.stats_utils import recent_mean, safe_mean

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rule511Progress:
    """
    Per-criterion progress towards the rule.

    Attributes:
        interval_ok: Average interval is at or below the threshold.
        interval_value: Average interval in minutes (0 when unknown).
        duration_ok: Average timed duration is at or above the threshold.
        duration_value: Average duration in seconds.
        sustained_ok: The pattern spans at least the sustained period.
        sustained_value: Span in minutes.
    """

    interval_ok: bool = False
    interval_value: float = 0.0
    duration_ok: bool = False
    duration_value: float = 0.0
    sustained_ok: bool = False
    sustained_value: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "intervalOk": self.interval_ok,
            "intervalValue": self.interval_value,
            "durationOk": self.duration_ok,
            "durationValue": self.duration_value,
            "sustainedOk": self.sustained_ok,
            "sustainedValue": self.sustained_value,
        }


@dataclass(frozen=True)
class Rule511Result:
    """
    Result of the 5-1-1 check.

    Attributes:
        met: All three criteria hold.
        met_at: When the sustained period was completed (None if not met).
        progress: Per-criterion detail.
    """

    met: bool
    met_at: Optional[datetime]
    progress: Rule511Progress

    def __repr__(self) -> str:
        return f"Rule511Result(met={self.met}, progress={self.progress})"


def _span_minutes(contractions: Sequence[Contraction]) -> float:
    if len(contractions) < 2:
        return 0.0
    return (contractions[-1].start - contractions[0].start).total_seconds() / 60.0


def check_511_rule(
    contractions: Sequence[Contraction],
    threshold: ThresholdConfig,
    now: datetime
) -> Rule511Result:
    """
    Check whether the configured 5-1-1 rule is met.

    Algorithm:
        1. Take closed contractions that started within ``sustained_minutes``
           of ``now``
        2. If fewer than 3 fall in that window, report progress from the
           last three durations and intervals (never met)
        3. Otherwise average durations (timed only) and intervals within the
           window and check the span against the sustained period

    Args:
        contractions: Contractions sorted by start time.
        threshold: Rule thresholds.
        now: Current time for this frame.

    Returns:
        Rule511Result with per-criterion progress.

    Example:
        >>> result = check_511_rule(log, ThresholdConfig(), now)
        >>> result.progress.interval_ok
        True
    """
    closed = completed(contractions)

    if len(closed) < ANALYSIS.RULE_511_MIN_CONTRACTIONS:
        return Rule511Result(met=False, met_at=None, progress=Rule511Progress())

    window = timedelta(minutes=threshold.sustained_minutes)
    recent = [c for c in closed if now - c.start <= window]
    total_span = _span_minutes(closed)

    if len(recent) < ANALYSIS.RULE_511_MIN_CONTRACTIONS:
        n = ANALYSIS.RULE_511_RECENT_COUNT
        avg_duration = recent_mean(duration_series(closed), n)
        avg_interval = recent_mean(interval_series(closed), n, default=math.inf)
        return Rule511Result(
            met=False,
            met_at=None,
            progress=Rule511Progress(
                interval_ok=avg_interval <= threshold.interval_minutes,
                interval_value=0.0 if math.isinf(avg_interval) else avg_interval,
                duration_ok=avg_duration >= threshold.duration_seconds,
                duration_value=avg_duration,
                sustained_ok=False,
                sustained_value=total_span,
            ),
        )

    avg_duration = safe_mean(duration_series(recent))
    avg_interval = safe_mean(interval_series(recent), default=math.inf)

    interval_ok = avg_interval <= threshold.interval_minutes
    duration_ok = avg_duration >= threshold.duration_seconds
    span = _span_minutes(recent)
    sustained_ok = span >= threshold.sustained_minutes

    met = interval_ok and duration_ok and sustained_ok
    met_at = recent[0].start + window if met else None

    logger.debug(
        f"5-1-1 check: interval {avg_interval:.1f} min ({interval_ok}), "
        f"duration {avg_duration:.0f}s ({duration_ok}), "
        f"span {span:.0f} min ({sustained_ok}) -> met={met}"
    )

    return Rule511Result(
        met=met,
        met_at=met_at,
        progress=Rule511Progress(
            interval_ok=interval_ok,
            interval_value=0.0 if math.isinf(avg_interval) else avg_interval,
            duration_ok=duration_ok,
            duration_value=avg_duration,
            sustained_ok=sustained_ok,
            sustained_value=span,
        ),
    )


def estimate_time_to_511(
    contractions: Sequence[Contraction],
    threshold: ThresholdConfig,
    gap_minutes: float = 0
) -> Optional[int]:
    """
    Estimate minutes until the 5-1-1 rule is met, from current trends.

    Only the latest session is used when ``gap_minutes`` is positive.

    Returns:
        0 when the pattern is already met and sustained; the remaining
        sustained minutes when the averages are met but the span is short;
        otherwise a projection from the duration and interval slopes.
        None when there is not enough data (fewer than 4 closed
        contractions or no trend), when either criterion is not converging,
        or when the projection exceeds 4 hours.

    Example:
        >>> estimate_time_to_511(log, ThresholdConfig(), gap_minutes=30)
        45
    """
    closed = completed(contractions)
    if gap_minutes > 0:
        closed = get_latest_session(closed, gap_minutes)
    if len(closed) < ANALYSIS.ESTIMATE_MIN_CONTRACTIONS:
        return None

    durations = duration_series(closed)
    intervals = get_session_filtered_intervals(closed, gap_minutes)

    duration_trend = get_trend(durations)
    interval_trend = get_trend(intervals)
    if duration_trend is None or interval_trend is None:
        return None

    n = ANALYSIS.ESTIMATE_ROLLING_COUNT
    avg_recent_duration = recent_mean(durations, n)
    avg_recent_interval = recent_mean(intervals, n)

    if (avg_recent_duration >= threshold.duration_seconds
            and avg_recent_interval <= threshold.interval_minutes):
        span = _span_minutes(closed)
        if span >= threshold.sustained_minutes:
            return 0
        return round(threshold.sustained_minutes - span)

    steps_to_interval = math.inf
    steps_to_duration = math.inf

    if avg_recent_interval <= threshold.interval_minutes:
        steps_to_interval = 0.0
    elif interval_trend.slope < 0:
        steps_to_interval = (
            (avg_recent_interval - threshold.interval_minutes) / abs(interval_trend.slope)
        )

    if avg_recent_duration >= threshold.duration_seconds:
        steps_to_duration = 0.0
    elif duration_trend.slope > 0:
        steps_to_duration = (
            (threshold.duration_seconds - avg_recent_duration) / duration_trend.slope
        )

    # Both criteria must converge for the rule to trigger
    if math.isinf(steps_to_interval) or math.isinf(steps_to_duration):
        return None

    estimated = max(steps_to_interval, steps_to_duration) * safe_mean(intervals)
    if estimated > ANALYSIS.ESTIMATE_CAP_MINUTES:
        logger.debug(f"Time-to-rule projection {estimated:.0f} min is beyond the cap")
        return None

    return round(estimated)


__all__ = [
    'Rule511Progress',
    'Rule511Result',
    'check_511_rule',
    'estimate_time_to_511',
]

"""
Reference Labor Stage Estimator.

Maps recent contraction statistics to a labor stage using the configured
StageThreshold table. The departure advisor treats the stage as an opaque
input, so a host may substitute its own classifier; this one is what
``get_session_stats`` uses by default.

Algorithm:
    1. Average the durations of the last 4 timed contractions
    2. Average the intervals among the last 4 closed contractions
       (untimed contractions still mark real event timing)
    3. Walk the stages from most to least advanced and return the first
       whose max interval and min duration are both satisfied
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Sequence

from laborwatch.config import ANALYSIS, DEFAULT_STAGE_THRESHOLDS, StageThreshold
from laborwatch.data.derivations import completed, duration_series, interval_series, timed
from laborwatch.data.models import Contraction, LaborStage
from laborwatch.utils.stats_utils import safe_mean

logger = logging.getLogger(__name__)

STAGE_ORDER = (
    LaborStage.TRANSITION,
    LaborStage.ACTIVE,
    LaborStage.EARLY,
    LaborStage.PRE_LABOR,
)


@dataclass(frozen=True)
class StageDuration:
    """Current stage and how long it has lasted, in minutes."""

    stage: LaborStage
    minutes_in_stage: float


def estimate_stage(
    contractions: Sequence[Contraction],
    stage_thresholds: Mapping[LaborStage, StageThreshold] = DEFAULT_STAGE_THRESHOLDS
) -> Optional[LaborStage]:
    """
    Estimate the labor stage from the most recent contractions.

    Args:
        contractions: Contractions sorted by start time (open ones ignored).
        stage_thresholds: Stage pattern table.

    Returns:
        The most advanced stage whose pattern matches, or None with fewer
        than 2 closed or 2 timed contractions.
    """
    closed = completed(contractions)
    if len(closed) < 2:
        return None

    timed_closed = timed(closed)
    if len(timed_closed) < 2:
        return None

    window = ANALYSIS.STAGE_WINDOW
    avg_duration = safe_mean(duration_series(timed_closed[-window:]))
    avg_interval = safe_mean(interval_series(closed[-window:]), default=math.inf)

    for stage in STAGE_ORDER:
        config = stage_thresholds.get(stage)
        if config is None:
            continue
        if avg_interval <= config.max_interval_min and avg_duration >= config.min_duration_sec:
            return stage
    return LaborStage.PRE_LABOR


def get_time_in_current_stage(
    contractions: Sequence[Contraction],
    stage_thresholds: Mapping[LaborStage, StageThreshold] = DEFAULT_STAGE_THRESHOLDS,
    now: Optional[datetime] = None,
    use_current_time: bool = False
) -> Optional[StageDuration]:
    """
    Estimate how long the current stage has lasted.

    Walks backward with a rolling window of up to 4 contractions to find
    where the current stage first appeared.

    Args:
        contractions: Contractions sorted by start time.
        stage_thresholds: Stage pattern table.
        now: Current time; required when ``use_current_time`` is True.
        use_current_time: Measure up to ``now`` instead of the end of the
            last recorded contraction.

    Returns:
        StageDuration, or None if there is not enough data.
    """
    closed = completed(contractions)
    if len(closed) < 2:
        return None

    current = estimate_stage(closed, stage_thresholds)
    if current is None:
        return None

    stage_start = closed[-1].start
    for i in range(len(closed) - 1, 0, -1):
        window_start = max(0, i - (ANALYSIS.STAGE_WINDOW - 1))
        window_stage = estimate_stage(closed[window_start:i + 1], stage_thresholds)
        if window_stage != current:
            break
        stage_start = closed[window_start].start

    if use_current_time:
        if now is None:
            raise ValueError("now is required when use_current_time is True")
        endpoint = now
    else:
        endpoint = closed[-1].end

    minutes = max(0.0, (endpoint - stage_start).total_seconds() / 60.0)
    logger.debug(f"Stage {current.value} for {minutes:.0f} min")
    return StageDuration(stage=current, minutes_in_stage=minutes)


__all__ = [
    'STAGE_ORDER',
    'StageDuration',
    'estimate_stage',
    'get_time_in_current_stage',
]

"""
Recompute Entry Point.

The host application calls ``recompute`` on its display tick and whenever
the log changes. Each call runs the whole pipeline for one frame, with a
single ``now`` shared by every derivation, and returns everything the
presentation layer renders:

    log -> validate -> stats -> time-to-5-1-1 -> Braxton Hicks assessment
        -> departure advice -> range estimate -> trends -> tips

There is no state between calls. Identical inputs give identical output.

Example:
    >>> settings = EngineSettings.from_dict(saved_settings)
    >>> snapshot = recompute(log.contractions, log.events, settings, now)
    >>> snapshot.advice.urgency.value
    'start-preparing'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import AbstractSet, Any, List, Optional, Sequence, Tuple

from laborwatch.analysis.advisor import (
    DepartureAdvice,
    RangeEstimate,
    get_departure_advice,
    get_range_estimate,
)
from laborwatch.analysis.braxton_hicks import BHAssessment, assess_braxton_hicks
from laborwatch.analysis.statistics import SessionStats, get_session_stats
from laborwatch.analysis.tips import ClinicalTip, get_relevant_tips
from laborwatch.config import EngineSettings, StageTimeBasis
from laborwatch.data.derivations import (
    completed,
    duration_series,
    elapsed_seconds,
    hours_since_water_break,
    rest_seconds,
)
from laborwatch.data.loader import validate_log
from laborwatch.data.models import Contraction, LaborEvent, LaborStage
from laborwatch.data.sessions import get_latest_session, get_session_filtered_intervals
from laborwatch.rules.rule_511 import estimate_time_to_511
from laborwatch.rules.stage import StageDuration, get_time_in_current_stage
from laborwatch.rules.trend import TrendResult, get_trend

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass
class EngineSnapshot:
    """
    Everything computed for one frame.

    Attributes:
        now: The frame time every field was computed against.
        stats: Session statistics.
        estimated_minutes_to_511: Projection, or None.
        braxton_hicks: Braxton Hicks assessment.
        advice: Departure advice.
        range_estimate: Departure time window.
        interval_trend: Trend of within-session intervals.
        duration_trend: Trend of timed durations in the latest session.
        stage_duration: Current stage and time spent in it.
        typical_stage_duration_min: Typical (low, high) minutes for that stage
            and the configured parity.
        tips: Tips to show.
        active_elapsed_seconds: Elapsed time of the open contraction, if any.
        rest_seconds: Time since the last contraction ended.
        hours_since_water_break: Hours since the latest water break, if any.
    """

    now: datetime
    stats: SessionStats
    estimated_minutes_to_511: Optional[int]
    braxton_hicks: BHAssessment
    advice: DepartureAdvice
    range_estimate: RangeEstimate
    interval_trend: Optional[TrendResult] = None
    duration_trend: Optional[TrendResult] = None
    stage_duration: Optional[StageDuration] = None
    typical_stage_duration_min: Optional[Tuple[float, float]] = None
    tips: List[ClinicalTip] = field(default_factory=list)
    active_elapsed_seconds: Optional[float] = None
    rest_seconds: float = 0.0
    hours_since_water_break: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "now": self.now.isoformat(),
            "stats": self.stats.to_dict(),
            "estimatedMinutesTo511": self.estimated_minutes_to_511,
            "braxtonHicks": self.braxton_hicks.to_dict(),
            "advice": self.advice.to_dict(),
            "rangeEstimate": self.range_estimate.to_dict(),
            "intervalTrend": self.interval_trend.to_dict() if self.interval_trend else None,
            "durationTrend": self.duration_trend.to_dict() if self.duration_trend else None,
            "stageDuration": (
                {
                    "stage": self.stage_duration.stage.value,
                    "minutesInStage": self.stage_duration.minutes_in_stage,
                }
                if self.stage_duration else None
            ),
            "typicalStageDurationMin": (
                list(self.typical_stage_duration_min)
                if self.typical_stage_duration_min else None
            ),
            "tips": [tip.to_dict() for tip in self.tips],
            "activeElapsedSeconds": self.active_elapsed_seconds,
            "restSeconds": self.rest_seconds,
            "hoursSinceWaterBreak": self.hours_since_water_break,
        }


def recompute(
    contractions: Sequence[Contraction],
    events: Sequence[LaborEvent],
    settings: Optional[EngineSettings],
    now: datetime,
    previous_stage: Optional[LaborStage] = None,
    dismissed_tips: AbstractSet[str] = frozenset()
) -> EngineSnapshot:
    """
    Run the full analysis for one frame.

    Args:
        contractions: Contractions sorted by start time.
        events: Labor events.
        settings: Engine settings (None for defaults).
        now: Frame time, shared by every derivation.
        previous_stage: Stage from the previous frame, for "stage entered"
            tips.
        dismissed_tips: Tip ids the user has dismissed.

    Returns:
        EngineSnapshot for this frame.

    Raises:
        LogValidationError: If the log violates the log contract.
    """
    if settings is None:
        settings = EngineSettings()

    validate_log(contractions)

    gap = settings.gap_threshold_minutes
    stats = get_session_stats(contractions, settings.threshold, now, settings.stage_thresholds)
    estimate = estimate_time_to_511(contractions, settings.threshold, gap)

    assessment = assess_braxton_hicks(
        contractions, events, settings.bh_thresholds, gap_minutes=gap
    )
    advice = get_departure_advice(
        contractions,
        events,
        stats,
        settings.hospital_advisor,
        now,
        settings.stage_thresholds,
        estimate,
    )
    range_estimate = get_range_estimate(
        contractions,
        events,
        stats,
        settings.hospital_advisor,
        settings.progression_rate,
        estimate,
        gap_minutes=gap,
    )

    closed = completed(contractions)
    latest = get_latest_session(closed, gap)
    interval_trend = get_trend(get_session_filtered_intervals(closed, gap))
    duration_trend = get_trend(duration_series(latest))

    stage_duration = get_time_in_current_stage(
        contractions,
        settings.stage_thresholds,
        now=now,
        use_current_time=settings.stage_time_basis == StageTimeBasis.CURRENT_TIME,
    )
    typical = (
        settings.stage_thresholds[stage_duration.stage].typical_duration(settings.parity)
        if stage_duration is not None else None
    )

    tips = get_relevant_tips(
        contractions,
        events,
        stats.labor_stage,
        previous_stage,
        now,
        dismissed=dismissed_tips,
        thresholds=settings.bh_thresholds,
    )

    active = contractions[-1] if contractions and contractions[-1].is_open else None

    snapshot = EngineSnapshot(
        now=now,
        stats=stats,
        estimated_minutes_to_511=estimate,
        braxton_hicks=assessment,
        advice=advice,
        range_estimate=range_estimate,
        interval_trend=interval_trend,
        duration_trend=duration_trend,
        stage_duration=stage_duration,
        typical_stage_duration_min=typical,
        tips=tips,
        active_elapsed_seconds=elapsed_seconds(active, now) if active is not None else None,
        rest_seconds=rest_seconds(contractions, now),
        hours_since_water_break=hours_since_water_break(events, now),
    )
    logger.debug(
        f"Recomputed frame at {now.isoformat()}: {stats.total_contractions} contractions, "
        f"advice={advice.urgency.value}"
    )
    return snapshot


__all__ = [
    'EngineSnapshot',
    'recompute',
]

"""
Hospital Departure Advisor.

Turns the current contraction pattern into a "when should we leave?"
answer, in two shapes that share the same inputs:

    - get_departure_advice: a discrete urgency tier with a headline
    - get_range_estimate: an earliest/likely/latest window in minutes

Decision ladder (first match wins, most urgent first):

    1. < 2 completed contractions or no stage  -> not-yet ("Keep tracking")
    2. Stage is transition                      -> go-now (any risk appetite)
    3. Water broke and stage is active          -> time-to-go
    4. Water broke                              -> start-preparing (call provider)
    5. 5-1-1 rule met                           -> by risk appetite
    6. Estimated time to 5-1-1 under 60 min     -> by risk appetite, with buffer
    7. Stage is active                          -> by risk appetite
    8. Stage is early                           -> start-preparing if conservative
    9. Otherwise                                -> not-yet

Low-data situations are ordinary results, never exceptions: the caller
always has something to show.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Final, List, Mapping, Optional, Sequence

from laborwatch.analysis.statistics import SessionStats
from laborwatch.config import (
    ANALYSIS,
    RATE_MULTIPLIERS,
    HospitalAdvisorConfig,
    ProgressionRate,
    RiskAppetite,
    StageThreshold,
)
from laborwatch.data.derivations import completed, has_water_break, hours_since_water_break
from laborwatch.data.models import Contraction, LaborEvent, LaborStage
from laborwatch.data.sessions import get_session_filtered_intervals
from laborwatch.rules.trend import TrendDirection, get_trend
from laborwatch.utils.formatting import format_range

# Configure module logger
logger = logging.getLogger(__name__)


class DepartureUrgency(Enum):
    """Urgency tiers, least to most urgent."""

    NOT_YET = "not-yet"
    START_PREPARING = "start-preparing"
    TIME_TO_GO = "time-to-go"
    GO_NOW = "go-now"


class Confidence(Enum):
    """Confidence of a range estimate."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# =============================================================================
# Risk Appetite Maps
# =============================================================================

RULE_MET_URGENCY: Final[Dict[RiskAppetite, DepartureUrgency]] = {
    RiskAppetite.CONSERVATIVE: DepartureUrgency.GO_NOW,
    RiskAppetite.MODERATE: DepartureUrgency.TIME_TO_GO,
    RiskAppetite.RELAXED: DepartureUrgency.START_PREPARING,
}

TIGHT_ESTIMATE_URGENCY: Final[Dict[RiskAppetite, DepartureUrgency]] = {
    RiskAppetite.CONSERVATIVE: DepartureUrgency.TIME_TO_GO,
    RiskAppetite.MODERATE: DepartureUrgency.START_PREPARING,
    RiskAppetite.RELAXED: DepartureUrgency.NOT_YET,
}

ACTIVE_STAGE_URGENCY: Final[Dict[RiskAppetite, DepartureUrgency]] = {
    RiskAppetite.CONSERVATIVE: DepartureUrgency.TIME_TO_GO,
    RiskAppetite.MODERATE: DepartureUrgency.START_PREPARING,
    RiskAppetite.RELAXED: DepartureUrgency.NOT_YET,
}

HEADLINES: Final[Dict[DepartureUrgency, str]] = {
    DepartureUrgency.GO_NOW: "Go now",
    DepartureUrgency.TIME_TO_GO: "Time to go",
    DepartureUrgency.START_PREPARING: "Start preparing",
    DepartureUrgency.NOT_YET: "Not yet",
}


# =============================================================================
# Result Types
# =============================================================================

@dataclass
class DepartureAdvice:
    """
    Departure recommendation.

    Attributes:
        urgency: Urgency tier.
        headline: Short headline for display.
        detail: One or two sentences of explanation.
        buffer_minutes: Minutes of slack before leaving (None when not
            applicable).
        estimated_departure_time: Suggested departure time (None when not
            applicable).
        factors: Plain-language evidence behind the advice.
        provider_phone: Provider number from the configuration, untouched.
    """

    urgency: DepartureUrgency
    headline: str
    detail: str
    buffer_minutes: Optional[float] = None
    estimated_departure_time: Optional[datetime] = None
    factors: List[str] = field(default_factory=list)
    provider_phone: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "urgency": self.urgency.value,
            "headline": self.headline,
            "detail": self.detail,
            "bufferMinutes": self.buffer_minutes,
            "estimatedDepartureTime": (
                self.estimated_departure_time.isoformat()
                if self.estimated_departure_time else None
            ),
            "factors": list(self.factors),
            "providerPhone": self.provider_phone,
        }

    def __repr__(self) -> str:
        return f"DepartureAdvice({self.urgency.value}: {self.headline!r})"


@dataclass
class RangeEstimate:
    """
    Time window until the user should head in, in minutes from now.

    Travel time has already been subtracted; a 0 bound means "now".
    """

    earliest_minutes: int
    likely_minutes: int
    latest_minutes: int
    confidence: Confidence
    recommendation: str
    pattern_summary: str
    trend_summary: Optional[str] = None
    factors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "earliestMinutes": self.earliest_minutes,
            "likelyMinutes": self.likely_minutes,
            "latestMinutes": self.latest_minutes,
            "confidence": self.confidence.value,
            "recommendation": self.recommendation,
            "patternSummary": self.pattern_summary,
            "trendSummary": self.trend_summary,
            "factors": list(self.factors),
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _format_minutes(value: float) -> str:
    return f"{value:g}"


# =============================================================================
# Departure Advice
# =============================================================================

def _evidence(
    stats: SessionStats,
    events: Sequence[LaborEvent],
    config: HospitalAdvisorConfig,
    now: datetime
) -> List[str]:
    factors = []
    if stats.avg_interval_min > 0:
        factors.append(f"Contractions ~{stats.avg_interval_min:.1f} min apart")
    if stats.avg_duration_sec > 0:
        factors.append(f"~{_round_half_up(stats.avg_duration_sec)}s avg duration")
    hours = hours_since_water_break(events, now)
    if hours is not None:
        factors.append(f"Water broke {hours:.1f} hours ago")
    factors.append(f"Travel time: {_format_minutes(config.travel_time_minutes)} min")
    return factors


def get_departure_advice(
    contractions: Sequence[Contraction],
    events: Sequence[LaborEvent],
    stats: SessionStats,
    config: HospitalAdvisorConfig,
    now: datetime,
    stage_thresholds: Optional[Mapping[LaborStage, StageThreshold]] = None,
    estimated_minutes_to_511: Optional[float] = None
) -> DepartureAdvice:
    """
    Recommend when to leave for the hospital.

    Args:
        contractions: Contractions sorted by start time.
        events: Labor events.
        stats: Precomputed session statistics; ``stats.labor_stage`` is
            taken as given.
        config: Travel time, risk appetite and provider phone.
        now: Frame time. Departure times and water-break age are measured
            from it.
        stage_thresholds: Stage table the stage estimate was made with.
            Only its hospital/home location hint is read.
        estimated_minutes_to_511: Projected minutes until the 5-1-1 rule is
            met, or None.

    Returns:
        DepartureAdvice. Every branch fills ``factors``.

    Example:
        >>> advice = get_departure_advice(log, events, stats, HospitalAdvisorConfig(), now)
        >>> advice.urgency
        <DepartureUrgency.GO_NOW: 'go-now'>
    """
    closed = completed(contractions)
    stage = stats.labor_stage
    phone = config.provider_phone
    travel = config.travel_time_minutes

    # Rule 1: not enough to go on
    if len(closed) < ANALYSIS.ADVICE_MIN_CONTRACTIONS or stage is None:
        if len(closed) < ANALYSIS.ADVICE_MIN_CONTRACTIONS:
            reasons = ["Fewer than 2 completed contractions"]
        else:
            # the stage classifier needs two contractions with a measured duration
            reasons = [
                "Fewer than 2 completed contractions with a measured duration",
                "No labor stage estimate yet",
            ]
        return DepartureAdvice(
            urgency=DepartureUrgency.NOT_YET,
            headline="Keep tracking",
            detail="Not enough data yet to assess. Keep timing contractions to build a pattern.",
            factors=reasons,
            provider_phone=phone,
        )

    factors = _evidence(stats, events, config, now)
    water_broke = has_water_break(events)

    # Rule 2: transition overrides risk appetite
    if stage == LaborStage.TRANSITION:
        advice = DepartureAdvice(
            urgency=DepartureUrgency.GO_NOW,
            headline="Go now",
            detail="You appear to be in transition. If you are not at the hospital, go immediately.",
            buffer_minutes=0,
            estimated_departure_time=now,
            factors=factors,
            provider_phone=phone,
        )

    # Rules 3-4: water broken
    elif water_broke and stage == LaborStage.ACTIVE:
        advice = DepartureAdvice(
            urgency=DepartureUrgency.TIME_TO_GO,
            headline="Time to go",
            detail="Your water has broken and contractions are active. "
                   "Call your provider, then head in.",
            buffer_minutes=travel,
            estimated_departure_time=now + timedelta(minutes=travel),
            factors=factors,
            provider_phone=phone,
        )

    elif water_broke:
        advice = DepartureAdvice(
            urgency=DepartureUrgency.START_PREPARING,
            headline="Call your provider",
            detail="Your water has broken. Call your provider; they will advise "
                   "whether to come in now or wait.",
            factors=factors,
            provider_phone=phone,
        )

    # Rule 5: 5-1-1 met
    elif stats.rule_511_met:
        urgency = RULE_MET_URGENCY[config.risk_appetite]
        advice = DepartureAdvice(
            urgency=urgency,
            headline=HEADLINES[urgency],
            detail="The 5-1-1 pattern is met. Contractions are regular, close and sustained.",
            buffer_minutes=0,
            estimated_departure_time=now,
            factors=factors + ["5-1-1 rule met"],
            provider_phone=phone,
        )

    # Rule 6: 5-1-1 expected within the hour
    elif (estimated_minutes_to_511 is not None
          and estimated_minutes_to_511 < ANALYSIS.TIGHT_ESTIMATE_MINUTES):
        urgency = TIGHT_ESTIMATE_URGENCY[config.risk_appetite]
        buffer = max(0.0, estimated_minutes_to_511 - travel)
        estimate_text = _format_minutes(estimated_minutes_to_511)
        if urgency == DepartureUrgency.TIME_TO_GO:
            detail = f"Estimated {estimate_text} min until 5-1-1 pattern. Leave soon."
        else:
            detail = (f"Contractions are progressing. "
                      f"Estimated {estimate_text} min until 5-1-1 pattern.")
        advice = DepartureAdvice(
            urgency=urgency,
            headline=HEADLINES[urgency],
            detail=detail,
            buffer_minutes=buffer,
            estimated_departure_time=(
                None if urgency == DepartureUrgency.NOT_YET
                else now + timedelta(minutes=buffer)
            ),
            factors=factors + [f"~{estimate_text} min to 5-1-1"],
            provider_phone=phone,
        )

    # Rule 7: active labor, no tight estimate
    elif stage == LaborStage.ACTIVE:
        urgency = ACTIVE_STAGE_URGENCY[config.risk_appetite]
        detail = "Contractions suggest active labor. Have your hospital bag ready."
        if stage_thresholds and stage in stage_thresholds:
            detail += f" This stage is usually spent at: {stage_thresholds[stage].location}."
        advice = DepartureAdvice(
            urgency=urgency,
            headline=HEADLINES[urgency],
            detail=detail,
            factors=factors,
            provider_phone=phone,
        )

    # Rule 8: early labor
    elif stage == LaborStage.EARLY:
        if config.risk_appetite == RiskAppetite.CONSERVATIVE:
            urgency, headline = DepartureUrgency.START_PREPARING, "Start preparing"
        else:
            urgency, headline = DepartureUrgency.NOT_YET, "Stay comfortable"
        advice = DepartureAdvice(
            urgency=urgency,
            headline=headline,
            detail="Early labor can take a while. Stay home, rest, hydrate and keep timing.",
            factors=factors,
            provider_phone=phone,
        )

    # Rule 9: fallback
    else:
        advice = DepartureAdvice(
            urgency=DepartureUrgency.NOT_YET,
            headline="Stay comfortable",
            detail="Contractions are still irregular. Continue normal activities and keep timing.",
            factors=factors,
            provider_phone=phone,
        )

    logger.debug(
        f"Departure advice: {advice.urgency.value} "
        f"(stage={stage.value}, appetite={config.risk_appetite.value})"
    )
    return advice


# =============================================================================
# Range Estimate
# =============================================================================

def _confidence(count: int) -> Confidence:
    if count >= ANALYSIS.CONFIDENCE_HIGH_COUNT:
        return Confidence.HIGH
    if count >= ANALYSIS.CONFIDENCE_MEDIUM_COUNT:
        return Confidence.MEDIUM
    return Confidence.LOW


def _trend_summary(
    closed: Sequence[Contraction],
    stats: SessionStats,
    gap_minutes: float
) -> Optional[str]:
    if len(closed) < ANALYSIS.TREND_SUMMARY_MIN_CONTRACTIONS:
        return None
    trend = get_trend(get_session_filtered_intervals(closed, gap_minutes))
    if trend is None:
        return None
    span = f"{trend.first_value:.0f} → {trend.last_value:.0f} min apart"
    if trend.direction == TrendDirection.DECREASING:
        return f"Getting closer together ({span})"
    if trend.direction == TrendDirection.INCREASING:
        return f"Spacing out ({span})"
    return f"Steady pace, ~{stats.avg_interval_min:.0f} min apart"


def get_range_estimate(
    contractions: Sequence[Contraction],
    events: Sequence[LaborEvent],
    stats: SessionStats,
    config: HospitalAdvisorConfig,
    progression_rate: ProgressionRate,
    estimated_minutes_to_511: Optional[float] = None,
    gap_minutes: float = 0
) -> RangeEstimate:
    """
    Estimate a window, in minutes, until it is time to head in.

    Follows the same ladder as get_departure_advice. Base estimates are
    scaled by the RATE_MULTIPLIERS row for ``progression_rate``; when a
    time-to-5-1-1 projection drives the range, travel time is subtracted
    and each bound is floored at 0.

    Args:
        contractions: Contractions sorted by start time.
        events: Labor events.
        stats: Precomputed session statistics.
        config: Departure advisor configuration.
        progression_rate: Assumed progression speed.
        estimated_minutes_to_511: Projected minutes to the 5-1-1 rule, or None.
        gap_minutes: Session gap for the trend summary (0 disables).

    Returns:
        RangeEstimate with confidence, narrative and factors.
    """
    closed = completed(contractions)
    water_broke = has_water_break(events)
    mult = RATE_MULTIPLIERS[progression_rate]
    travel = config.travel_time_minutes
    confidence = _confidence(len(closed))

    if stats.avg_interval_min > 0:
        pattern_summary = (
            f"~{stats.avg_interval_min:.0f} min between contractions, "
            f"~{_round_half_up(stats.avg_duration_sec)}s each"
        )
    else:
        pattern_summary = "Not enough data for pattern analysis"

    trend_summary = _trend_summary(closed, stats, gap_minutes)

    factors = []
    if water_broke:
        factors.append("Water has broken")
    if travel > 0:
        factors.append(f"{_format_minutes(travel)} min travel time accounted for")
    factors.append(f"Assumed progression: {progression_rate.value}")

    def build(earliest: float, likely: float, latest: float, recommendation: str,
              confidence: Confidence = confidence, extra: Sequence[str] = ()) -> RangeEstimate:
        return RangeEstimate(
            earliest_minutes=int(earliest),
            likely_minutes=int(likely),
            latest_minutes=int(latest),
            confidence=confidence,
            recommendation=recommendation,
            pattern_summary=pattern_summary,
            trend_summary=trend_summary,
            factors=factors + list(extra),
        )

    stage = stats.labor_stage

    if len(closed) < ANALYSIS.RANGE_MIN_CONTRACTIONS or stage is None:
        return RangeEstimate(
            earliest_minutes=0,
            likely_minutes=0,
            latest_minutes=0,
            confidence=Confidence.LOW,
            recommendation="Keep tracking to build a pattern",
            pattern_summary=pattern_summary,
            trend_summary=trend_summary,
            factors=["Fewer than 3 contractions recorded"],
        )

    if stage == LaborStage.TRANSITION:
        estimate = build(0, 0, 0, "Go to hospital now" if water_broke
                         else "You should be at the hospital")

    elif stage == LaborStage.ACTIVE and water_broke:
        estimate = build(0, 0, _round_half_up(30 * mult.slow), "Head to hospital now")

    elif stats.rule_511_met:
        recommendation = (
            f"Plan to arrive within {_format_minutes(travel)} min" if travel > 0
            else "Plan to be at hospital soon"
        )
        estimate = build(0, travel, travel + 30, recommendation,
                         extra=["5-1-1 pattern is met"])

    elif estimated_minutes_to_511 is not None and estimated_minutes_to_511 > 0:
        base = estimated_minutes_to_511
        earliest = _round_half_up(base * mult.fast)
        likely = _round_half_up(base * mult.avg)
        latest = _round_half_up(base * mult.slow)
        if travel > 0:
            recommendation = f"Plan to be at hospital within ~{format_range(earliest, latest)}"
        else:
            recommendation = f"Estimated ~{format_range(earliest, latest)} until hospital-worthy pattern"
        estimate = build(
            max(0, earliest - travel),
            max(0, likely - travel),
            max(0, latest - travel),
            recommendation,
        )

    elif stage == LaborStage.ACTIVE:
        recommendation = (
            f"Active labor: plan to leave within ~{format_range(30, 120)}" if travel > 0
            else "Active labor: have your hospital bag ready"
        )
        estimate = build(
            _round_half_up(30 * mult.fast),
            _round_half_up(60 * mult.avg),
            _round_half_up(120 * mult.slow),
            recommendation,
            confidence=Confidence.LOW,
        )

    elif stage == LaborStage.EARLY:
        estimate = build(
            _round_half_up(60 * mult.fast),
            _round_half_up(180 * mult.avg),
            _round_half_up(720 * mult.slow),
            "Early labor: stay home, rest and hydrate",
            confidence=Confidence.LOW,
        )

    else:
        estimate = build(0, 0, 0, "Contractions are irregular; continue normal activities",
                         confidence=Confidence.LOW)

    logger.debug(
        f"Range estimate: {estimate.earliest_minutes}-{estimate.latest_minutes} min "
        f"(likely {estimate.likely_minutes}, {estimate.confidence.value})"
    )
    return estimate


__all__ = [
    'ACTIVE_STAGE_URGENCY',
    'HEADLINES',
    'RULE_MET_URGENCY',
    'TIGHT_ESTIMATE_URGENCY',
    'Confidence',
    'DepartureAdvice',
    'DepartureUrgency',
    'RangeEstimate',
    'get_departure_advice',
    'get_range_estimate',
]

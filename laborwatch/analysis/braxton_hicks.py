"""
Braxton Hicks Assessment.

Scores a contraction log against six weighted criteria to tell practice
(Braxton Hicks) contractions apart from real labor.

Key differentiators:
    - Braxton Hicks: irregular, felt in front, stable or fading intensity,
      not getting closer
    - Real labor: regular, back or wrapping, intensifying, getting longer
      and closer; a broken water is a strong real-labor signal

Criteria and weights (total 100):
    1. Regular timing      15   interval coefficient of variation
    2. Growing intensity   10   trend of intensity ratings
    3. Lasting longer      10   trend of timed durations
    4. Getting closer      15   trend of intervals
    5. Location            10   share of back/wrapping ratings
    6. Water broke         40   present => real labor; absent is neutral

Scoring:
    score = 50 + (sum of real-labor weights - sum of braxton-hicks weights) / 2

    Inconclusive criteria contribute nothing, so an all-inconclusive log
    scores 50. The verdict bands come from BHThresholds.

Below 4 closed contractions no verdict is produced at all: the result is
``requires_more=True`` with an empty criteria list.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence

from laborwatch.config import ANALYSIS, BHThresholds
from laborwatch.data.derivations import completed, duration_series, has_water_break
from laborwatch.data.models import Contraction, ContractionLocation, LaborEvent
from laborwatch.data.sessions import get_latest_session, get_session_filtered_intervals
from laborwatch.rules.trend import TrendDirection, get_trend
from laborwatch.utils.stats_utils import coefficient_of_variation

# Configure module logger
logger = logging.getLogger(__name__)


class CriterionResult(Enum):
    """Reading of a single criterion."""

    REAL_LABOR = "real-labor"
    BRAXTON_HICKS = "braxton-hicks"
    INCONCLUSIVE = "inconclusive"


class BHVerdict(Enum):
    """Overall verdict."""

    LIKELY_BRAXTON_HICKS = "likely-braxton-hicks"
    UNCERTAIN = "uncertain"
    LIKELY_REAL_LABOR = "likely-real-labor"


@dataclass(frozen=True)
class BHCriterion:
    """
    One evaluated criterion.

    Attributes:
        name: Short criterion name (e.g. "Regular timing").
        description: The question the criterion answers.
        result: real-labor, braxton-hicks or inconclusive.
        weight: Contribution weight.
        detail: Plain-language evidence for the reading.
    """

    name: str
    description: str
    result: CriterionResult
    weight: float
    detail: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "result": self.result.value,
            "weight": self.weight,
            "detail": self.detail,
        }


@dataclass
class BHAssessment:
    """
    Full Braxton Hicks assessment.

    Attributes:
        requires_more: True when there are fewer than 4 closed contractions.
        score: 0-100, higher means more likely real labor (None when
            requires_more).
        verdict: Verdict band (None when requires_more).
        criteria: The six evaluated criteria (empty when requires_more).
    """

    requires_more: bool
    score: Optional[int] = None
    verdict: Optional[BHVerdict] = None
    criteria: List[BHCriterion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "requiresMore": self.requires_more,
            "score": self.score,
            "verdict": self.verdict.value if self.verdict else None,
            "criteria": [c.to_dict() for c in self.criteria],
        }

    def __repr__(self) -> str:
        if self.requires_more:
            return "BHAssessment(requires_more=True)"
        return f"BHAssessment(score={self.score}, verdict={self.verdict.value})"


def _regular_timing(intervals: Sequence[float], thresholds: BHThresholds) -> BHCriterion:
    name = "Regular timing"
    description = "Are contractions coming at regular intervals?"
    weight = ANALYSIS.WEIGHT_REGULAR_TIMING

    if len(intervals) < ANALYSIS.BH_MIN_INTERVALS_FOR_REGULARITY:
        return BHCriterion(name, description, CriterionResult.INCONCLUSIVE, weight,
                           "Need more contractions to judge regularity")

    cv = coefficient_of_variation(intervals)
    if cv < thresholds.regularity_cv_low:
        return BHCriterion(name, description, CriterionResult.REAL_LABOR, weight,
                           f"Contractions are coming at predictable intervals (variation {cv:.2f})")
    if cv > thresholds.regularity_cv_high:
        cv_text = "very high" if math.isinf(cv) else f"{cv:.2f}"
        return BHCriterion(name, description, CriterionResult.BRAXTON_HICKS, weight,
                           f"Timing is irregular, spacing varies widely (variation {cv_text})")
    return BHCriterion(name, description, CriterionResult.INCONCLUSIVE, weight,
                       f"Timing is somewhat regular but still varies (variation {cv:.2f})")


def _growing_intensity(contractions: Sequence[Contraction]) -> BHCriterion:
    name = "Growing intensity"
    description = "Are contractions getting stronger over time?"
    weight = ANALYSIS.WEIGHT_GROWING_INTENSITY

    ratings = [float(c.intensity) for c in contractions if c.intensity is not None]
    trend = get_trend(ratings)
    if trend is None:
        return BHCriterion(name, description, CriterionResult.INCONCLUSIVE, weight,
                           "Need more intensity ratings; rate after each contraction")

    if trend.direction == TrendDirection.INCREASING:
        return BHCriterion(name, description, CriterionResult.REAL_LABOR, weight,
                           f"Each contraction feels stronger: {trend.first_value:.0f} → {trend.last_value:.0f}")
    if trend.direction == TrendDirection.DECREASING:
        return BHCriterion(name, description, CriterionResult.BRAXTON_HICKS, weight,
                           "Contractions are getting milder")
    return BHCriterion(name, description, CriterionResult.BRAXTON_HICKS, weight,
                       "Intensity staying about the same")


def _lasting_longer(contractions: Sequence[Contraction]) -> BHCriterion:
    name = "Lasting longer"
    description = "Is each contraction lasting longer than the last?"
    weight = ANALYSIS.WEIGHT_LASTING_LONGER

    # untimed contractions have no meaningful duration
    trend = get_trend(duration_series(contractions))
    if trend is None:
        return BHCriterion(name, description, CriterionResult.INCONCLUSIVE, weight,
                           "Need at least 3 timed contractions")

    first, last = round(trend.first_value), round(trend.last_value)
    if trend.direction == TrendDirection.INCREASING:
        return BHCriterion(name, description, CriterionResult.REAL_LABOR, weight,
                           f"Each contraction lasting longer: {first}s → {last}s")
    if trend.direction == TrendDirection.DECREASING:
        return BHCriterion(name, description, CriterionResult.BRAXTON_HICKS, weight,
                           f"Each contraction getting shorter: {first}s → {last}s")
    return BHCriterion(name, description, CriterionResult.BRAXTON_HICKS, weight,
                       "Each contraction lasting about the same")


def _getting_closer(intervals: Sequence[float]) -> BHCriterion:
    name = "Getting closer"
    description = "Are contractions getting closer together over time?"
    weight = ANALYSIS.WEIGHT_GETTING_CLOSER

    trend = get_trend(intervals)
    if trend is None:
        return BHCriterion(name, description, CriterionResult.INCONCLUSIVE, weight,
                           "Need more contractions to see a spacing trend")

    span = f"{trend.first_value:.0f} min → {trend.last_value:.0f} min apart"
    if trend.direction == TrendDirection.DECREASING:
        return BHCriterion(name, description, CriterionResult.REAL_LABOR, weight,
                           f"Gap between contractions shrinking: {span}")
    if trend.direction == TrendDirection.INCREASING:
        return BHCriterion(name, description, CriterionResult.BRAXTON_HICKS, weight,
                           f"Gap between contractions growing: {span}")
    return BHCriterion(name, description, CriterionResult.BRAXTON_HICKS, weight,
                       "Gap between contractions staying about the same")


def _location(contractions: Sequence[Contraction], thresholds: BHThresholds) -> BHCriterion:
    name = "Location"
    description = "Where are contractions felt?"
    weight = ANALYSIS.WEIGHT_LOCATION

    rated = [c for c in contractions if c.location is not None]
    if not rated:
        return BHCriterion(name, description, CriterionResult.INCONCLUSIVE, weight,
                           "Need location data; mark front, back or wrapping after each contraction")

    back_or_wrapping = sum(
        1 for c in rated
        if c.location in (ContractionLocation.BACK, ContractionLocation.WRAPPING)
    )
    ratio = back_or_wrapping / len(rated)
    if ratio > thresholds.location_ratio_high:
        return BHCriterion(name, description, CriterionResult.REAL_LABOR, weight,
                           f"{round(ratio * 100)}% felt in back or wrapping")
    if ratio < thresholds.location_ratio_low:
        return BHCriterion(name, description, CriterionResult.BRAXTON_HICKS, weight,
                           "Mostly felt in front")
    return BHCriterion(name, description, CriterionResult.INCONCLUSIVE, weight,
                       "Mixed locations")


def _water_broke(events: Sequence[LaborEvent]) -> BHCriterion:
    name = "Water broke"
    description = "Has the water broken?"
    weight = ANALYSIS.WEIGHT_WATER_BROKE

    if has_water_break(events):
        return BHCriterion(name, description, CriterionResult.REAL_LABOR, weight,
                           "Water has broken")
    # absence is neutral, never a Braxton Hicks sign
    return BHCriterion(name, description, CriterionResult.INCONCLUSIVE, weight,
                       "No water break recorded")


def calculate_score(criteria: Sequence[BHCriterion]) -> int:
    """
    Combine criterion readings into a 0-100 score.

    Real-labor readings add half their weight to a neutral 50,
    Braxton Hicks readings subtract half, inconclusive ones do nothing.
    """
    real = sum(c.weight for c in criteria if c.result == CriterionResult.REAL_LABOR)
    braxton_hicks = sum(c.weight for c in criteria if c.result == CriterionResult.BRAXTON_HICKS)
    raw = ANALYSIS.BH_NEUTRAL_SCORE + (real - braxton_hicks) / 2.0
    return int(min(100.0, max(0.0, math.floor(raw + 0.5))))


def classify_score(score: float, thresholds: BHThresholds) -> BHVerdict:
    """
    Map a score to a verdict band.

    The real-labor band is checked first, so lowering
    ``verdict_real_threshold`` can only move a verdict towards real labor.
    """
    if score >= thresholds.verdict_real_threshold:
        return BHVerdict.LIKELY_REAL_LABOR
    if score <= thresholds.verdict_bh_threshold:
        return BHVerdict.LIKELY_BRAXTON_HICKS
    return BHVerdict.UNCERTAIN


def assess_braxton_hicks(
    contractions: Sequence[Contraction],
    events: Sequence[LaborEvent],
    thresholds: Optional[BHThresholds] = None,
    gap_minutes: Optional[float] = None
) -> BHAssessment:
    """
    Assess whether contractions are likely Braxton Hicks or real labor.

    Args:
        contractions: Contractions sorted by start time.
        events: Labor events.
        thresholds: Cut points (defaults to BHThresholds()).
        gap_minutes: When given, only the latest session is assessed.

    Returns:
        BHAssessment with score, verdict and six criteria, or
        ``requires_more=True`` with fewer than 4 closed contractions.

    Example:
        >>> result = assess_braxton_hicks(log, events, gap_minutes=30)
        >>> if not result.requires_more:
        ...     print(result.score, result.verdict.value)
        80 likely-real-labor
    """
    if thresholds is None:
        thresholds = BHThresholds()

    closed = completed(contractions)
    if gap_minutes is not None:
        closed = get_latest_session(closed, gap_minutes)

    if len(closed) < ANALYSIS.BH_MIN_CONTRACTIONS:
        return BHAssessment(requires_more=True)

    intervals = get_session_filtered_intervals(closed, gap_minutes or 0)

    criteria = [
        _regular_timing(intervals, thresholds),
        _growing_intensity(closed),
        _lasting_longer(closed),
        _getting_closer(intervals),
        _location(closed, thresholds),
        _water_broke(events),
    ]

    score = calculate_score(criteria)
    verdict = classify_score(score, thresholds)

    logger.debug(
        f"Braxton Hicks assessment over {len(closed)} contractions: "
        f"score={score}, verdict={verdict.value}"
    )

    return BHAssessment(
        requires_more=False,
        score=score,
        verdict=verdict,
        criteria=criteria,
    )


__all__ = [
    'BHAssessment',
    'BHCriterion',
    'BHVerdict',
    'CriterionResult',
    'assess_braxton_hicks',
    'calculate_score',
    'classify_score',
]

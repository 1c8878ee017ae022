"""
Contextual Clinical Tips.

A static catalogue of short tips, each with a trigger describing when it
applies. ``get_relevant_tips`` picks the applicable ones for the current
frame and orders them by category priority:

    safety > action > timing > comfort > education

Dismissed tips are passed in by the caller as a set of ids; this module
keeps no state of its own. ``dismiss_tip`` returns the updated set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import AbstractSet, Any, Dict, Final, FrozenSet, List, Optional, Sequence, Tuple

from laborwatch.config import ANALYSIS, BHThresholds
from laborwatch.data.derivations import completed, has_water_break, interval_series
from laborwatch.data.models import Contraction, ContractionLocation, LaborEvent, LaborEventType, LaborStage
from laborwatch.utils.stats_utils import coefficient_of_variation

logger = logging.getLogger(__name__)


class TipCategory(Enum):
    """Tip categories, in display priority order."""

    SAFETY = "safety"
    ACTION = "action"
    TIMING = "timing"
    COMFORT = "comfort"
    EDUCATION = "education"


CATEGORY_PRIORITY: Final[Dict[TipCategory, int]] = {
    category: rank for rank, category in enumerate(TipCategory)
}


class TriggerType(Enum):
    """What a tip reacts to."""

    STAGE = "stage"
    STAGE_ENTERED = "stage-entered"
    EVENT = "event"
    TIME_OF_DAY = "time-of-day"
    CONTRACTION_COUNT = "contraction-count"
    PATTERN = "pattern"


class DayPeriod(Enum):
    NIGHT = "night"
    DAY = "day"


class PatternCondition(Enum):
    BACK_LABOR = "back-labor"
    REGULAR = "regular"


@dataclass(frozen=True)
class TipTrigger:
    """
    Condition under which a tip applies.

    Only the fields relevant to ``type`` are set.
    """

    type: TriggerType
    stage: Optional[LaborStage] = None
    event: Optional[LaborEventType] = None
    period: Optional[DayPeriod] = None
    min_count: int = 0
    max_count: Optional[int] = None
    condition: Optional[PatternCondition] = None


@dataclass(frozen=True)
class ClinicalTip:
    """A single tip."""

    id: str
    text: str
    category: TipCategory
    trigger: TipTrigger

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "category": self.category.value,
            "trigger": self.trigger.type.value,
        }


def _stage(stage: LaborStage) -> TipTrigger:
    return TipTrigger(TriggerType.STAGE, stage=stage)


def _entered(stage: LaborStage) -> TipTrigger:
    return TipTrigger(TriggerType.STAGE_ENTERED, stage=stage)


_WATER = TipTrigger(TriggerType.EVENT, event=LaborEventType.WATER_BREAK)


CLINICAL_TIPS: Final[Tuple[ClinicalTip, ...]] = (
    ClinicalTip(
        "first-contraction",
        "Great start! Keep timing contractions to see if a pattern develops. "
        "Most first labors start slowly.",
        TipCategory.EDUCATION,
        TipTrigger(TriggerType.CONTRACTION_COUNT, min_count=1, max_count=2),
    ),
    ClinicalTip(
        "prelabor-normal",
        "Irregular contractions are normal and can come and go for days. "
        "If they stop when you move or rest, it may be Braxton Hicks.",
        TipCategory.EDUCATION,
        _stage(LaborStage.PRE_LABOR),
    ),
    ClinicalTip(
        "early-rest",
        "Early labor can last 6-12+ hours for first-time parents. "
        "Try to rest, especially if it is nighttime.",
        TipCategory.COMFORT,
        _stage(LaborStage.EARLY),
    ),
    ClinicalTip(
        "early-hydrate",
        "Stay hydrated and eat light snacks. You will need the energy for active labor.",
        TipCategory.COMFORT,
        _stage(LaborStage.EARLY),
    ),
    ClinicalTip(
        "early-activity",
        "Light activity like walking can help labor progress during the day.",
        TipCategory.COMFORT,
        _stage(LaborStage.EARLY),
    ),
    ClinicalTip(
        "early-timing",
        "You are likely still at home during early labor. "
        "Head to the hospital when contractions reach the 5-1-1 pattern.",
        TipCategory.TIMING,
        _stage(LaborStage.EARLY),
    ),
    ClinicalTip(
        "active-entered",
        "Active labor means steady progress. If you are not at the hospital yet, it is time to go.",
        TipCategory.ACTION,
        _entered(LaborStage.ACTIVE),
    ),
    ClinicalTip(
        "active-breathing",
        "Focus on slow, deep breathing through each contraction. "
        "In through the nose, out through the mouth.",
        TipCategory.COMFORT,
        _stage(LaborStage.ACTIVE),
    ),
    ClinicalTip(
        "active-duration",
        "Active labor typically lasts 3-5 hours for first-time parents. "
        "You are making real progress.",
        TipCategory.EDUCATION,
        _stage(LaborStage.ACTIVE),
    ),
    ClinicalTip(
        "transition-entered",
        "Transition is the shortest but most intense phase. You are almost there.",
        TipCategory.EDUCATION,
        _entered(LaborStage.TRANSITION),
    ),
    ClinicalTip(
        "transition-normal",
        "Feeling overwhelmed, nauseous, or shaky is normal during transition. "
        "It typically lasts 30 minutes to 2 hours.",
        TipCategory.COMFORT,
        _stage(LaborStage.TRANSITION),
    ),
    ClinicalTip(
        "water-note-color",
        "Note the color of the fluid. Clear or pale yellow is normal. "
        "Green or brown means call your provider immediately.",
        TipCategory.SAFETY,
        _WATER,
    ),
    ClinicalTip(
        "water-call-provider",
        "Contact your provider to let them know your water broke. "
        "They will advise on next steps.",
        TipCategory.ACTION,
        _WATER,
    ),
    ClinicalTip(
        "water-stats",
        "77-95% of people go into active labor within 24 hours of their water breaking.",
        TipCategory.EDUCATION,
        _WATER,
    ),
    ClinicalTip(
        "night-sleep",
        "Try to sleep between contractions if possible. "
        "Rest now will help you through active labor later.",
        TipCategory.COMFORT,
        TipTrigger(TriggerType.TIME_OF_DAY, period=DayPeriod.NIGHT),
    ),
    ClinicalTip(
        "back-labor",
        "Back labor can be eased by hands-and-knees position, hip squeezes, "
        "or a warm compress on your lower back.",
        TipCategory.COMFORT,
        TipTrigger(TriggerType.PATTERN, condition=PatternCondition.BACK_LABOR),
    ),
    ClinicalTip(
        "safety-call",
        "Call your provider immediately if: heavy bleeding, baby stops moving, "
        "severe headache with vision changes, or fever above 100.4°F.",
        TipCategory.SAFETY,
        TipTrigger(TriggerType.CONTRACTION_COUNT, min_count=1),
    ),
    ClinicalTip(
        "pattern-regular",
        "Your contractions are becoming more regular. "
        "This is a good sign that labor is progressing.",
        TipCategory.EDUCATION,
        TipTrigger(TriggerType.PATTERN, condition=PatternCondition.REGULAR),
    ),
)


def _is_night(now: datetime) -> bool:
    return now.hour >= ANALYSIS.NIGHT_START_HOUR or now.hour < ANALYSIS.NIGHT_END_HOUR


def _is_back_labor(closed: Sequence[Contraction], thresholds: BHThresholds) -> bool:
    rated = [c for c in closed if c.location is not None]
    if len(rated) < ANALYSIS.TIPS_BACK_LABOR_MIN_RATED:
        return False
    back = sum(
        1 for c in rated
        if c.location in (ContractionLocation.BACK, ContractionLocation.WRAPPING)
    )
    return back / len(rated) > thresholds.location_ratio_high


def _is_regular(closed: Sequence[Contraction], thresholds: BHThresholds) -> bool:
    if len(closed) < ANALYSIS.TIPS_REGULAR_MIN_CONTRACTIONS:
        return False
    return coefficient_of_variation(interval_series(closed)) < thresholds.regularity_cv_low


def get_relevant_tips(
    contractions: Sequence[Contraction],
    events: Sequence[LaborEvent],
    current_stage: Optional[LaborStage],
    previous_stage: Optional[LaborStage],
    now: datetime,
    dismissed: AbstractSet[str] = frozenset(),
    limit: int = ANALYSIS.TIPS_LIMIT,
    thresholds: Optional[BHThresholds] = None
) -> List[ClinicalTip]:
    """
    Select the tips that apply right now.

    Args:
        contractions: Contractions sorted by start time.
        events: Labor events.
        current_stage: Current stage estimate.
        previous_stage: Stage estimate from the previous frame; a change
            enables the "stage entered" tips.
        now: Current time, in the user's local timezone (drives the
            night-time tip).
        dismissed: Ids the user has already dismissed.
        limit: Maximum number of tips returned.
        thresholds: Cut points for the back-labor and regular-pattern tips.

    Returns:
        Up to ``limit`` tips, highest priority category first. Tips of equal
        priority keep catalogue order.

    Example:
        >>> tips = get_relevant_tips(log, events, LaborStage.EARLY, None, now)
        >>> [t.id for t in tips]
        ['safety-call', 'early-timing']
    """
    if thresholds is None:
        thresholds = BHThresholds()

    closed = completed(contractions)
    count = len(closed)
    water_broke = has_water_break(events)
    night = _is_night(now)
    stage_changed = current_stage is not None and current_stage != previous_stage
    back_labor = _is_back_labor(closed, thresholds)
    regular = _is_regular(closed, thresholds)

    def applies(trigger: TipTrigger) -> bool:
        if trigger.type == TriggerType.STAGE:
            return current_stage == trigger.stage
        if trigger.type == TriggerType.STAGE_ENTERED:
            return stage_changed and current_stage == trigger.stage
        if trigger.type == TriggerType.EVENT:
            return trigger.event == LaborEventType.WATER_BREAK and water_broke
        if trigger.type == TriggerType.TIME_OF_DAY:
            return night if trigger.period == DayPeriod.NIGHT else not night
        if trigger.type == TriggerType.CONTRACTION_COUNT:
            if count < trigger.min_count:
                return False
            return trigger.max_count is None or count <= trigger.max_count
        if trigger.type == TriggerType.PATTERN:
            if trigger.condition == PatternCondition.BACK_LABOR:
                return back_labor
            return trigger.condition == PatternCondition.REGULAR and regular
        return False

    candidates = [
        tip for tip in CLINICAL_TIPS
        if tip.id not in dismissed and applies(tip.trigger)
    ]
    candidates.sort(key=lambda tip: CATEGORY_PRIORITY[tip.category])

    selected = candidates[:max(0, limit)]
    logger.debug(f"{len(candidates)} tips apply, showing {[t.id for t in selected]}")
    return selected


def dismiss_tip(dismissed: AbstractSet[str], tip_id: str) -> FrozenSet[str]:
    """Return a new dismissed set that also contains ``tip_id``."""
    return frozenset(dismissed) | {tip_id}


__all__ = [
    'CATEGORY_PRIORITY',
    'CLINICAL_TIPS',
    'ClinicalTip',
    'DayPeriod',
    'PatternCondition',
    'TipCategory',
    'TipTrigger',
    'TriggerType',
    'dismiss_tip',
    'get_relevant_tips',
]

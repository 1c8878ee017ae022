"""
Session Statistics.

Builds the SessionStats value the departure advisor consumes: counts,
averages, last values, 5-1-1 progress and a stage estimate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from laborwatch.config import DEFAULT_STAGE_THRESHOLDS, StageThreshold, ThresholdConfig
from laborwatch.data.derivations import completed, duration_series, interval_series
from laborwatch.data.models import Contraction, LaborStage
from laborwatch.rules.rule_511 import Rule511Progress, check_511_rule
from laborwatch.rules.stage import estimate_stage
from laborwatch.utils.stats_utils import safe_mean

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionStats:
    """
    Derived statistics for a set of contractions.

    Attributes:
        total_contractions: Closed contractions, untimed included.
        avg_duration_sec: Mean duration of timed contractions.
        avg_interval_min: Mean start-to-start interval.
        last_duration_sec: Duration of the last timed contraction.
        last_interval_min: Most recent interval.
        rule_511_met: Whether the configured rule is met.
        rule_511_met_at: When it was met.
        rule_511_progress: Per-criterion progress.
        labor_stage: Stage estimate (None without enough data).
    """

    total_contractions: int = 0
    avg_duration_sec: float = 0.0
    avg_interval_min: float = 0.0
    last_duration_sec: float = 0.0
    last_interval_min: float = 0.0
    rule_511_met: bool = False
    rule_511_met_at: Optional[datetime] = None
    rule_511_progress: Rule511Progress = field(default_factory=Rule511Progress)
    labor_stage: Optional[LaborStage] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalContractions": self.total_contractions,
            "avgDurationSec": self.avg_duration_sec,
            "avgIntervalMin": self.avg_interval_min,
            "lastDurationSec": self.last_duration_sec,
            "lastIntervalMin": self.last_interval_min,
            "rule511Met": self.rule_511_met,
            "rule511MetAt": self.rule_511_met_at.isoformat() if self.rule_511_met_at else None,
            "rule511Progress": self.rule_511_progress.to_dict(),
            "laborStage": self.labor_stage.value if self.labor_stage else None,
        }


def get_session_stats(
    contractions: Sequence[Contraction],
    threshold: ThresholdConfig,
    now: datetime,
    stage_thresholds: Mapping[LaborStage, StageThreshold] = DEFAULT_STAGE_THRESHOLDS
) -> SessionStats:
    """
    Calculate session statistics.

    Args:
        contractions: Contractions sorted by start time.
        threshold: 5-1-1 rule thresholds.
        now: Current time for this frame.
        stage_thresholds: Stage pattern table.

    Returns:
        SessionStats. An empty log gives all-zero stats with no stage.
    """
    closed = completed(contractions)
    if not closed:
        return SessionStats()

    durations = duration_series(closed)
    intervals = interval_series(closed)
    rule = check_511_rule(closed, threshold, now)

    stats = SessionStats(
        total_contractions=len(closed),
        avg_duration_sec=safe_mean(durations),
        avg_interval_min=safe_mean(intervals),
        last_duration_sec=durations[-1] if durations else 0.0,
        last_interval_min=intervals[-1] if intervals else 0.0,
        rule_511_met=rule.met,
        rule_511_met_at=rule.met_at,
        rule_511_progress=rule.progress,
        labor_stage=estimate_stage(closed, stage_thresholds),
    )
    logger.debug(
        f"Session stats: {stats.total_contractions} contractions, "
        f"avg {stats.avg_interval_min:.1f} min apart, "
        f"avg {stats.avg_duration_sec:.0f}s, stage={stats.labor_stage}"
    )
    return stats


__all__ = [
    'SessionStats',
    'get_session_stats',
]

"""
Pattern rules for LaborWatch.

Modules:
    - trend: Direction of a duration, interval or intensity series
    - rule_511: The configurable 5-1-1 rule and time-to-rule projection
    - stage: Reference labor stage estimator

All rules are deterministic and report their evidence alongside the result.

Example:
    >>> from laborwatch.rules import check_511_rule, estimate_stage, get_trend
    >>> trend = get_trend([6.0, 5.0, 4.0, 4.0])
    >>> trend.direction.value
    'decreasing'
"""

from .trend import get_trend, TrendAnalysisError, TrendDirection, TrendResult
from .rule_511 import (
    check_511_rule,
    estimate_time_to_511,
    Rule511Progress,
    Rule511Result
)
from .stage import estimate_stage, get_time_in_current_stage, StageDuration

__all__ = [
    # Trend
    "get_trend",
    "TrendAnalysisError",
    "TrendDirection",
    "TrendResult",
    # 5-1-1 rule
    "check_511_rule",
    "estimate_time_to_511",
    "Rule511Progress",
    "Rule511Result",
    # Stage
    "estimate_stage",
    "get_time_in_current_stage",
    "StageDuration",
]

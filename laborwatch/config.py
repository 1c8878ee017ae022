"""
Centralized configuration for LaborWatch.

This module contains every tunable threshold and constant used by the
analysis code, so that none of them is hard-coded inside a computation.

Two kinds of configuration live here:
    - User-tunable settings (ThresholdConfig, BHThresholds,
      HospitalAdvisorConfig, StageThreshold, EngineSettings). These validate
      themselves on construction and raise ConfigurationError on misuse.
    - Fixed analysis constants (ANALYSIS, RATE_MULTIPLIERS,
      DEFAULT_STAGE_THRESHOLDS).

Usage:
    from laborwatch.config import ANALYSIS, EngineSettings

    settings = EngineSettings.from_dict(saved_settings)
    min_count = ANALYSIS.BH_MIN_CONTRACTIONS
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Final, Mapping, Optional, Tuple

from laborwatch.data.models import LaborStage

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when a configuration value is missing, malformed or out of range."""
    pass


def _require_number(name: str, value: Any, minimum: float = 0.0,
                    maximum: float = math.inf, allow_inf: bool = False) -> None:
    """Fail fast on a non-numeric, NaN or out-of-range setting."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if math.isnan(value) or (math.isinf(value) and not allow_inf):
        raise ConfigurationError(f"{name} must be finite, got {value!r}")
    if not minimum <= value <= maximum:
        raise ConfigurationError(
            f"{name} must be between {minimum} and {maximum}, got {value!r}"
        )


def _require_range(name: str, value: Any) -> None:
    """Fail fast unless the value is a (low, high) pair of minutes."""
    if not isinstance(value, tuple) or len(value) != 2:
        raise ConfigurationError(f"{name} must be a (low, high) pair, got {value!r}")
    low, high = value
    _require_number(f"{name}[0]", low)
    _require_number(f"{name}[1]", high)
    if low > high:
        raise ConfigurationError(f"{name} low ({low}) must not exceed high ({high})")


def _require_text(name: str, value: Any) -> None:
    if not isinstance(value, str):
        raise ConfigurationError(f"{name} must be a string, got {value!r}")


# =============================================================================
# Enumerated Settings
# =============================================================================

class RiskAppetite(Enum):
    """How early the user wants to be told to leave."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    RELAXED = "relaxed"


class ProgressionRate(Enum):
    """The user's belief about how quickly their labor will progress."""

    FASTER = "faster"
    AVERAGE = "average"
    SLOWER = "slower"


class Parity(Enum):
    """Pregnancy parity; selects the typical stage duration range."""

    FIRST_BABY = "first-baby"
    SUBSEQUENT = "subsequent"


class StageTimeBasis(Enum):
    """Endpoint used when measuring time spent in the current stage."""

    LAST_RECORDED = "last-recorded"
    CURRENT_TIME = "current-time"


# =============================================================================
# 5-1-1 Rule Thresholds
# =============================================================================

@dataclass(frozen=True)
class ThresholdConfig:
    """
    The "5-1-1" style readiness rule.

    Attributes:
        interval_minutes: Contractions must be at most this many minutes apart.
        duration_seconds: Each contraction must last at least this long.
        sustained_minutes: The pattern must hold for at least this long.
    """

    interval_minutes: float = 5.0
    duration_seconds: float = 60.0
    sustained_minutes: float = 60.0

    def __post_init__(self) -> None:
        _require_number("interval_minutes", self.interval_minutes)
        _require_number("duration_seconds", self.duration_seconds)
        _require_number("sustained_minutes", self.sustained_minutes)


# =============================================================================
# Braxton Hicks Assessment Thresholds
# =============================================================================

@dataclass(frozen=True)
class BHThresholds:
    """
    Cut points for the Braxton Hicks pattern assessment.

    Attributes:
        regularity_cv_low: Interval CV below this reads as regular (real labor).
        regularity_cv_high: Interval CV above this reads as irregular.
        location_ratio_high: Back/wrapping share above this reads as real labor.
        location_ratio_low: Back/wrapping share below this reads as Braxton Hicks.
        verdict_real_threshold: Score at or above this is "likely real labor".
        verdict_bh_threshold: Score at or below this (and under the real
            threshold) is "likely Braxton Hicks".
    """

    regularity_cv_low: float = 0.3
    regularity_cv_high: float = 0.6
    location_ratio_high: float = 0.5
    location_ratio_low: float = 0.5
    verdict_real_threshold: float = 60.0
    verdict_bh_threshold: float = 40.0

    def __post_init__(self) -> None:
        _require_number("regularity_cv_low", self.regularity_cv_low)
        _require_number("regularity_cv_high", self.regularity_cv_high)
        if self.regularity_cv_low > self.regularity_cv_high:
            raise ConfigurationError(
                f"regularity_cv_low ({self.regularity_cv_low}) must not exceed "
                f"regularity_cv_high ({self.regularity_cv_high})"
            )
        _require_number("location_ratio_high", self.location_ratio_high, maximum=1.0)
        _require_number("location_ratio_low", self.location_ratio_low, maximum=1.0)
        if self.location_ratio_low > self.location_ratio_high:
            raise ConfigurationError(
                f"location_ratio_low ({self.location_ratio_low}) must not exceed "
                f"location_ratio_high ({self.location_ratio_high})"
            )
        _require_number("verdict_real_threshold", self.verdict_real_threshold, maximum=100.0)
        _require_number("verdict_bh_threshold", self.verdict_bh_threshold, maximum=100.0)


# =============================================================================
# Hospital Departure Advisor
# =============================================================================

@dataclass(frozen=True)
class HospitalAdvisorConfig:
    """
    Departure advisor configuration.

    Attributes:
        travel_time_minutes: Door-to-door travel time to the hospital.
        risk_appetite: How early to recommend leaving.
        provider_phone: Opaque; handed back untouched in the advice.
    """

    travel_time_minutes: float = 30.0
    risk_appetite: RiskAppetite = RiskAppetite.MODERATE
    provider_phone: str = ""

    def __post_init__(self) -> None:
        _require_number("travel_time_minutes", self.travel_time_minutes)
        if not isinstance(self.risk_appetite, RiskAppetite):
            raise ConfigurationError(
                f"risk_appetite must be a RiskAppetite, got {self.risk_appetite!r}"
            )
        _require_text("provider_phone", self.provider_phone)


# =============================================================================
# Labor Stage Thresholds
# =============================================================================

@dataclass(frozen=True)
class StageThreshold:
    """
    Contraction pattern that qualifies for a labor stage.

    A stage applies when the recent average interval is at most
    ``max_interval_min`` and the recent average duration is at least
    ``min_duration_sec``.
    """

    max_interval_min: float
    min_duration_sec: float
    typical_duration_first_min: Tuple[float, float] = (0.0, 0.0)
    typical_duration_subsequent_min: Tuple[float, float] = (0.0, 0.0)
    location: str = "Home"
    description: str = ""
    cervix: str = ""
    contraction_pattern: str = ""

    def __post_init__(self) -> None:
        _require_number("max_interval_min", self.max_interval_min, allow_inf=True)
        _require_number("min_duration_sec", self.min_duration_sec)
        _require_range("typical_duration_first_min", self.typical_duration_first_min)
        _require_range("typical_duration_subsequent_min", self.typical_duration_subsequent_min)
        for name in ("location", "description", "cervix", "contraction_pattern"):
            _require_text(name, getattr(self, name))

    def typical_duration(self, parity: Parity) -> Tuple[float, float]:
        """Typical stage duration range in minutes for the given parity."""
        if parity == Parity.SUBSEQUENT:
            return self.typical_duration_subsequent_min
        return self.typical_duration_first_min


# Evidence-based defaults: Zhang et al. 2010, ACOG 2024
DEFAULT_STAGE_THRESHOLDS: Final[Dict[LaborStage, StageThreshold]] = {
    LaborStage.TRANSITION: StageThreshold(
        max_interval_min=3,
        min_duration_sec=60,
        typical_duration_first_min=(30, 120),
        typical_duration_subsequent_min=(15, 90),
        location="Hospital",
        description="Most intense phase, approaching full dilation",
        cervix="8–10 cm dilated",
        contraction_pattern="60-90s long, 1-3 min apart",
    ),
    LaborStage.ACTIVE: StageThreshold(
        max_interval_min=5,
        min_duration_sec=45,
        typical_duration_first_min=(60, 360),
        typical_duration_subsequent_min=(30, 240),
        location="Hospital",
        description="Strong, regular contractions with steady progress",
        cervix="6–10 cm dilated",
        contraction_pattern="45-60s long, 3-5 min apart",
    ),
    LaborStage.EARLY: StageThreshold(
        max_interval_min=30,
        min_duration_sec=30,
        typical_duration_first_min=(600, 1260),
        typical_duration_subsequent_min=(360, 840),
        location="Home",
        description="Regular contractions establishing a pattern",
        cervix="0–6 cm dilated",
        contraction_pattern="30-45s long, 5-30 min apart",
    ),
    LaborStage.PRE_LABOR: StageThreshold(
        max_interval_min=math.inf,
        min_duration_sec=0,
        location="Home",
        description="Irregular contractions that may start and stop",
        cervix="Minimal change",
        contraction_pattern="Irregular, may stop with rest or movement",
    ),
}


# =============================================================================
# Range Estimate Multipliers
# =============================================================================

@dataclass(frozen=True)
class RateMultipliers:
    """Multipliers applied to a base estimate for the earliest/likely/latest bounds."""

    fast: float
    avg: float
    slow: float


RATE_MULTIPLIERS: Final[Dict[ProgressionRate, RateMultipliers]] = {
    ProgressionRate.FASTER: RateMultipliers(fast=0.6, avg=0.8, slow=1.2),
    ProgressionRate.AVERAGE: RateMultipliers(fast=0.7, avg=1.0, slow=1.5),
    ProgressionRate.SLOWER: RateMultipliers(fast=0.8, avg=1.2, slow=2.0),
}


# =============================================================================
# Analysis Constants
# =============================================================================

@dataclass(frozen=True)
class AnalysisConstants:
    """Fixed analysis constants."""

    # Trend analyzer
    TREND_MIN_POINTS: int = 3
    TREND_RELATIVE_TOLERANCE: float = 0.05   # of the series mean magnitude

    # Braxton Hicks assessment
    BH_MIN_CONTRACTIONS: int = 4
    BH_MIN_INTERVALS_FOR_REGULARITY: int = 2
    WEIGHT_REGULAR_TIMING: float = 15.0
    WEIGHT_GROWING_INTENSITY: float = 10.0
    WEIGHT_LASTING_LONGER: float = 10.0
    WEIGHT_GETTING_CLOSER: float = 15.0
    WEIGHT_LOCATION: float = 10.0
    WEIGHT_WATER_BROKE: float = 40.0          # weights total 100
    BH_NEUTRAL_SCORE: float = 50.0

    # 5-1-1 rule and time-to-rule estimate
    RULE_511_MIN_CONTRACTIONS: int = 3
    RULE_511_RECENT_COUNT: int = 3
    ESTIMATE_MIN_CONTRACTIONS: int = 4
    ESTIMATE_ROLLING_COUNT: int = 4
    ESTIMATE_CAP_MINUTES: float = 240.0

    # Stage estimation
    STAGE_WINDOW: int = 4

    # Departure advisor
    ADVICE_MIN_CONTRACTIONS: int = 2
    RANGE_MIN_CONTRACTIONS: int = 3
    TREND_SUMMARY_MIN_CONTRACTIONS: int = 4
    TIGHT_ESTIMATE_MINUTES: float = 60.0
    CONFIDENCE_HIGH_COUNT: int = 10
    CONFIDENCE_MEDIUM_COUNT: int = 6

    # Contextual tips
    TIPS_LIMIT: int = 2
    TIPS_BACK_LABOR_MIN_RATED: int = 3
    TIPS_REGULAR_MIN_CONTRACTIONS: int = 4
    NIGHT_START_HOUR: int = 22
    NIGHT_END_HOUR: int = 6


ANALYSIS: Final[AnalysisConstants] = AnalysisConstants()


# =============================================================================
# Aggregate Settings
# =============================================================================

def _parse_enum(enum_cls: type, name: str, value: Any) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(
            f"{name} must be one of: {allowed}; got {value!r}"
        ) from None


def _parse_range(name: str, value: Any) -> Tuple[Any, ...]:
    # JSON arrays arrive as lists
    if not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"{name} must be a [low, high] array, got {value!r}")
    return tuple(value)


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    section = payload.get(key) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"{key} must be an object, got {type(section).__name__}")
    return section


@dataclass(frozen=True)
class EngineSettings:
    """
    Everything the analysis needs from the user's settings.

    Attributes:
        threshold: The 5-1-1 rule thresholds.
        bh_thresholds: Braxton Hicks assessment cut points.
        hospital_advisor: Departure advisor configuration.
        stage_thresholds: Stage patterns, keyed by LaborStage.
        progression_rate: Assumed progression for range estimates.
        gap_threshold_minutes: Session split gap (0 disables splitting).
        parity: First baby or subsequent.
        stage_time_basis: Endpoint for time-in-stage.
    """

    threshold: ThresholdConfig = field(default_factory=ThresholdConfig)
    bh_thresholds: BHThresholds = field(default_factory=BHThresholds)
    hospital_advisor: HospitalAdvisorConfig = field(default_factory=HospitalAdvisorConfig)
    stage_thresholds: Mapping[LaborStage, StageThreshold] = field(
        default_factory=lambda: dict(DEFAULT_STAGE_THRESHOLDS)
    )
    progression_rate: ProgressionRate = ProgressionRate.SLOWER
    gap_threshold_minutes: float = 30.0
    parity: Parity = Parity.FIRST_BABY
    stage_time_basis: StageTimeBasis = StageTimeBasis.LAST_RECORDED

    def __post_init__(self) -> None:
        _require_number("gap_threshold_minutes", self.gap_threshold_minutes)

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> EngineSettings:
        """
        Build settings from the persisted (camelCase) settings object.

        Missing keys fall back to defaults; unknown keys (display settings
        and the like) are ignored.

        Args:
            payload: Settings mapping, or None for all defaults.

        Returns:
            Validated EngineSettings.

        Raises:
            ConfigurationError: On any malformed or out-of-range value.

        Example:
            >>> settings = EngineSettings.from_dict({
            ...     "threshold": {"intervalMinutes": 4},
            ...     "hospitalAdvisor": {"riskAppetite": "conservative"},
            ... })
            >>> settings.threshold.interval_minutes
            4
        """
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise ConfigurationError(
                f"settings must be an object, got {type(payload).__name__}"
            )

        try:
            threshold_data = _section(payload, "threshold")
            default_threshold = ThresholdConfig()
            threshold = ThresholdConfig(
                interval_minutes=threshold_data.get(
                    "intervalMinutes", default_threshold.interval_minutes),
                duration_seconds=threshold_data.get(
                    "durationSeconds", default_threshold.duration_seconds),
                sustained_minutes=threshold_data.get(
                    "sustainedMinutes", default_threshold.sustained_minutes),
            )

            bh_data = _section(payload, "bhThresholds")
            default_bh = BHThresholds()
            bh_thresholds = BHThresholds(
                regularity_cv_low=bh_data.get("regularityCVLow", default_bh.regularity_cv_low),
                regularity_cv_high=bh_data.get("regularityCVHigh", default_bh.regularity_cv_high),
                location_ratio_high=bh_data.get("locationRatioHigh", default_bh.location_ratio_high),
                location_ratio_low=bh_data.get("locationRatioLow", default_bh.location_ratio_low),
                verdict_real_threshold=bh_data.get(
                    "verdictRealThreshold", default_bh.verdict_real_threshold),
                verdict_bh_threshold=bh_data.get(
                    "verdictBHThreshold", default_bh.verdict_bh_threshold),
            )

            advisor_data = _section(payload, "hospitalAdvisor")
            default_advisor = HospitalAdvisorConfig()
            hospital_advisor = HospitalAdvisorConfig(
                travel_time_minutes=advisor_data.get(
                    "travelTimeMinutes", default_advisor.travel_time_minutes),
                risk_appetite=_parse_enum(
                    RiskAppetite, "riskAppetite",
                    advisor_data.get("riskAppetite", default_advisor.risk_appetite.value)),
                provider_phone=advisor_data.get("providerPhone") or "",
            )

            stage_data = _section(payload, "stageThresholds")
            stage_thresholds: Dict[LaborStage, StageThreshold] = dict(DEFAULT_STAGE_THRESHOLDS)
            for key, overrides in stage_data.items():
                stage = _parse_enum(LaborStage, "stageThresholds key", key)
                if not isinstance(overrides, Mapping):
                    raise ConfigurationError(f"stageThresholds[{key!r}] must be an object")
                base = stage_thresholds[stage]
                stage_thresholds[stage] = StageThreshold(
                    max_interval_min=overrides.get("maxIntervalMin", base.max_interval_min),
                    min_duration_sec=overrides.get("minDurationSec", base.min_duration_sec),
                    typical_duration_first_min=_parse_range(
                        f"stageThresholds[{key!r}].typicalDurationFirstMin",
                        overrides.get("typicalDurationFirstMin", base.typical_duration_first_min)),
                    typical_duration_subsequent_min=_parse_range(
                        f"stageThresholds[{key!r}].typicalDurationSubsequentMin",
                        overrides.get("typicalDurationSubsequentMin",
                                      base.typical_duration_subsequent_min)),
                    location=overrides.get("location", base.location),
                    description=overrides.get("description", base.description),
                    cervix=overrides.get("cervix", base.cervix),
                    contraction_pattern=overrides.get(
                        "contractionPattern", base.contraction_pattern),
                )

            settings = cls(
                threshold=threshold,
                bh_thresholds=bh_thresholds,
                hospital_advisor=hospital_advisor,
                stage_thresholds=stage_thresholds,
                progression_rate=_parse_enum(
                    ProgressionRate, "advisorProgressionRate",
                    payload.get("advisorProgressionRate", ProgressionRate.SLOWER.value)),
                gap_threshold_minutes=payload.get("chartGapThresholdMin", 30.0),
                parity=_parse_enum(
                    Parity, "parity", payload.get("parity", Parity.FIRST_BABY.value)),
                stage_time_basis=_parse_enum(
                    StageTimeBasis, "stageTimeBasis",
                    payload.get("stageTimeBasis", StageTimeBasis.LAST_RECORDED.value)),
            )
        except ConfigurationError as e:
            logger.warning(f"Rejected settings: {e}")
            raise

        return settings


# =============================================================================
# Convenience Exports
# =============================================================================

__all__ = [
    'ANALYSIS',
    'DEFAULT_STAGE_THRESHOLDS',
    'RATE_MULTIPLIERS',
    'AnalysisConstants',
    'BHThresholds',
    'ConfigurationError',
    'EngineSettings',
    'HospitalAdvisorConfig',
    'Parity',
    'ProgressionRate',
    'RateMultipliers',
    'RiskAppetite',
    'StageThreshold',
    'StageTimeBasis',
    'ThresholdConfig',
]

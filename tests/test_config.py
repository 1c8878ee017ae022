"""
Unit Tests for Configuration.

Validation of the user-tunable settings and parsing of the persisted
settings object.
"""

import math

import pytest

from laborwatch.config import (
    ANALYSIS,
    DEFAULT_STAGE_THRESHOLDS,
    RATE_MULTIPLIERS,
    BHThresholds,
    ConfigurationError,
    EngineSettings,
    HospitalAdvisorConfig,
    Parity,
    ProgressionRate,
    RiskAppetite,
    StageThreshold,
    StageTimeBasis,
    ThresholdConfig,
)
from laborwatch.data.models import LaborStage


class TestDefaults:
    """Default values."""

    def test_threshold_defaults(self):
        threshold = ThresholdConfig()
        assert (threshold.interval_minutes, threshold.duration_seconds,
                threshold.sustained_minutes) == (5, 60, 60)

    def test_bh_defaults(self):
        bh = BHThresholds()
        assert bh.regularity_cv_low == 0.3
        assert bh.regularity_cv_high == 0.6
        assert bh.verdict_real_threshold == 60
        assert bh.verdict_bh_threshold == 40

    def test_advisor_defaults(self):
        advisor = HospitalAdvisorConfig()
        assert advisor.travel_time_minutes == 30
        assert advisor.risk_appetite == RiskAppetite.MODERATE

    def test_criterion_weights_total_100(self):
        total = (
            ANALYSIS.WEIGHT_REGULAR_TIMING
            + ANALYSIS.WEIGHT_GROWING_INTENSITY
            + ANALYSIS.WEIGHT_LASTING_LONGER
            + ANALYSIS.WEIGHT_GETTING_CLOSER
            + ANALYSIS.WEIGHT_LOCATION
            + ANALYSIS.WEIGHT_WATER_BROKE
        )
        assert total == pytest.approx(100.0)

    def test_stage_table_covers_every_stage(self):
        assert set(DEFAULT_STAGE_THRESHOLDS) == set(LaborStage)
        assert math.isinf(DEFAULT_STAGE_THRESHOLDS[LaborStage.PRE_LABOR].max_interval_min)

    def test_rate_multipliers(self):
        assert RATE_MULTIPLIERS[ProgressionRate.SLOWER].slow == 2.0
        for rate in ProgressionRate:
            m = RATE_MULTIPLIERS[rate]
            assert m.fast < m.avg < m.slow

    def test_typical_duration_by_parity(self):
        active = DEFAULT_STAGE_THRESHOLDS[LaborStage.ACTIVE]
        assert active.typical_duration(Parity.FIRST_BABY) == (60, 360)
        assert active.typical_duration(Parity.SUBSEQUENT) == (30, 240)


class TestValidation:
    """Configuration misuse fails fast."""

    def test_negative_threshold(self):
        with pytest.raises(ConfigurationError):
            ThresholdConfig(interval_minutes=-1)

    def test_nan_threshold(self):
        with pytest.raises(ConfigurationError):
            ThresholdConfig(duration_seconds=math.nan)

    def test_non_numeric_threshold(self):
        with pytest.raises(ConfigurationError):
            ThresholdConfig(sustained_minutes="60")

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            HospitalAdvisorConfig(travel_time_minutes=-10)

    def test_cv_low_above_high(self):
        with pytest.raises(ConfigurationError):
            BHThresholds(regularity_cv_low=0.7, regularity_cv_high=0.6)

    def test_verdict_out_of_range(self):
        with pytest.raises(ConfigurationError):
            BHThresholds(verdict_real_threshold=120)

    def test_location_ratio_out_of_range(self):
        with pytest.raises(ConfigurationError):
            BHThresholds(location_ratio_high=1.5)

    def test_risk_appetite_must_be_enum(self):
        with pytest.raises(ConfigurationError):
            HospitalAdvisorConfig(risk_appetite="reckless")

    def test_stage_threshold_negative_duration(self):
        with pytest.raises(ConfigurationError):
            StageThreshold(max_interval_min=5, min_duration_sec=-1)


class TestEngineSettingsFromDict:
    """Parsing of the persisted settings object."""

    def test_none_gives_defaults(self):
        assert EngineSettings.from_dict(None) == EngineSettings()

    def test_empty_gives_defaults(self):
        settings = EngineSettings.from_dict({})
        assert settings.threshold == ThresholdConfig()
        assert settings.progression_rate == ProgressionRate.SLOWER
        assert settings.gap_threshold_minutes == 30

    def test_overrides(self):
        settings = EngineSettings.from_dict({
            "threshold": {"intervalMinutes": 4},
            "bhThresholds": {"verdictRealThreshold": 70},
            "hospitalAdvisor": {
                "travelTimeMinutes": 45,
                "riskAppetite": "conservative",
                "providerPhone": "555-0100",
            },
            "advisorProgressionRate": "faster",
            "chartGapThresholdMin": 0,
            "parity": "subsequent",
            "stageTimeBasis": "current-time",
            "theme": "dark",
        })

        assert settings.threshold.interval_minutes == 4
        assert settings.threshold.duration_seconds == 60
        assert settings.bh_thresholds.verdict_real_threshold == 70
        assert settings.hospital_advisor.travel_time_minutes == 45
        assert settings.hospital_advisor.risk_appetite == RiskAppetite.CONSERVATIVE
        assert settings.hospital_advisor.provider_phone == "555-0100"
        assert settings.progression_rate == ProgressionRate.FASTER
        assert settings.gap_threshold_minutes == 0
        assert settings.parity == Parity.SUBSEQUENT
        assert settings.stage_time_basis == StageTimeBasis.CURRENT_TIME

    def test_stage_threshold_override(self):
        settings = EngineSettings.from_dict({
            "stageThresholds": {"active": {"maxIntervalMin": 8, "minDurationSec": 35}},
        })
        active = settings.stage_thresholds[LaborStage.ACTIVE]
        assert active.max_interval_min == 8
        assert active.min_duration_sec == 35
        assert active.location == "Hospital"
        assert settings.stage_thresholds[LaborStage.EARLY] == DEFAULT_STAGE_THRESHOLDS[LaborStage.EARLY]

    @pytest.mark.parametrize("overrides", [
        {"typicalDurationFirstMin": 5},
        {"typicalDurationSubsequentMin": [30]},
        {"typicalDurationFirstMin": ["an hour", 120]},
        {"typicalDurationFirstMin": [120, 60]},
        {"location": 3},
        {"cervix": None},
    ])
    def test_malformed_stage_override(self, overrides):
        with pytest.raises(ConfigurationError):
            EngineSettings.from_dict({"stageThresholds": {"active": overrides}})

    def test_typical_duration_override_from_json_array(self):
        settings = EngineSettings.from_dict({
            "stageThresholds": {"early": {"typicalDurationFirstMin": [480, 1200]}},
        })
        early = settings.stage_thresholds[LaborStage.EARLY]
        assert early.typical_duration(Parity.FIRST_BABY) == (480, 1200)

    def test_null_provider_phone_is_empty(self):
        settings = EngineSettings.from_dict({"hospitalAdvisor": {"providerPhone": None}})
        assert settings.hospital_advisor.provider_phone == ""

    def test_provider_phone_must_be_text(self):
        with pytest.raises(ConfigurationError):
            EngineSettings.from_dict({"hospitalAdvisor": {"providerPhone": 5550100}})

    def test_unknown_enum_value(self):
        with pytest.raises(ConfigurationError):
            EngineSettings.from_dict({"hospitalAdvisor": {"riskAppetite": "yolo"}})

    def test_unknown_stage_key(self):
        with pytest.raises(ConfigurationError):
            EngineSettings.from_dict({"stageThresholds": {"pushing": {}}})

    def test_negative_value_rejected_and_logged(self, caplog):
        with pytest.raises(ConfigurationError):
            EngineSettings.from_dict({"threshold": {"durationSeconds": -5}})
        assert "Rejected settings" in caplog.text

    def test_section_must_be_object(self):
        with pytest.raises(ConfigurationError):
            EngineSettings.from_dict({"threshold": [5, 60, 60]})

    def test_payload_must_be_mapping(self):
        with pytest.raises(ConfigurationError):
            EngineSettings.from_dict(["not", "a", "mapping"])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

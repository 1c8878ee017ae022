"""
Unit Tests for the 5-1-1 Rule and Stage Estimation.

Test Strategy:
    - Synthetic logs at a fixed base time with known spacing and durations
    - Boundary conditions of the sustained window
    - Untimed contractions excluded from every duration check
"""

import pytest

from conftest import at, contraction
from laborwatch.config import DEFAULT_STAGE_THRESHOLDS, StageThreshold, ThresholdConfig
from laborwatch.data.models import LaborStage
from laborwatch.rules.rule_511 import (
    Rule511Progress,
    Rule511Result,
    check_511_rule,
    estimate_time_to_511,
)
from laborwatch.rules.stage import (
    StageDuration,
    estimate_stage,
    get_time_in_current_stage,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def threshold() -> ThresholdConfig:
    """Default 5-1-1 thresholds."""
    return ThresholdConfig()


@pytest.fixture
def hour_of_four_minute() -> list:
    """Contractions every 4 min for a full hour, 65 s each."""
    return [contraction(i * 240, 65) for i in range(16)]


# =============================================================================
# 5-1-1 Rule Tests
# =============================================================================

class TestCheck511Rule:
    """Tests for check_511_rule."""

    def test_fewer_than_three_not_met(self, threshold):
        log = [contraction(0, 60), contraction(300, 60)]
        result = check_511_rule(log, threshold, at(600))

        assert isinstance(result, Rule511Result)
        assert result.met is False
        assert result.progress == Rule511Progress()

    def test_interval_and_duration_ok(self, threshold):
        log = [contraction(i * 240, 65) for i in range(4)]
        result = check_511_rule(log, threshold, at(3600))

        assert result.progress.interval_ok is True
        assert result.progress.duration_ok is True
        assert result.met is False

    def test_interval_too_long(self, threshold):
        log = [contraction(i * 600, 65) for i in range(3)]
        result = check_511_rule(log, threshold, at(3600))
        assert result.progress.interval_ok is False

    def test_duration_too_short(self, threshold):
        log = [contraction(i * 300, 30) for i in range(3)]
        result = check_511_rule(log, threshold, at(3600))
        assert result.progress.duration_ok is False

    def test_progress_values(self, threshold):
        log = [contraction(i * 240, 50) for i in range(3)]
        result = check_511_rule(log, threshold, at(3600))

        assert result.progress.interval_value == pytest.approx(4.0)
        assert result.progress.duration_value == pytest.approx(50.0)
        assert result.progress.sustained_value == pytest.approx(8.0)

    def test_met_when_sustained_for_full_window(self, threshold, hour_of_four_minute):
        now = at(15 * 240)
        result = check_511_rule(hour_of_four_minute, threshold, now)

        assert result.met is True
        assert result.met_at == at(3600)
        assert result.progress.sustained_ok is True

    def test_old_contractions_fall_back_to_last_three(self, threshold):
        """With nothing in the last hour, progress comes from the last three."""
        log = [contraction(i * 240, 65) for i in range(5)]
        result = check_511_rule(log, threshold, at(5 * 3600))

        assert result.met is False
        assert result.progress.interval_ok is True
        assert result.progress.duration_ok is True
        assert result.progress.sustained_ok is False
        assert result.progress.sustained_value == pytest.approx(16.0)

    def test_untimed_excluded_from_duration(self, threshold):
        log = [
            contraction(0, 65),
            contraction(240, 65),
            contraction(480, untimed=True),
            contraction(720, 65),
        ]
        result = check_511_rule(log, threshold, at(1800))
        assert result.progress.duration_ok is True
        assert result.progress.duration_value == pytest.approx(65.0)

    def test_thresholds_come_from_config(self):
        log = [contraction(i * 360, 50) for i in range(4)]
        strict = check_511_rule(log, ThresholdConfig(), at(1800))
        loose = check_511_rule(
            log, ThresholdConfig(interval_minutes=7, duration_seconds=45), at(1800)
        )
        assert strict.progress.interval_ok is False
        assert loose.progress.interval_ok is True
        assert loose.progress.duration_ok is True


class TestEstimateTimeTo511:
    """Tests for estimate_time_to_511."""

    def test_fewer_than_four_is_none(self, threshold):
        log = [contraction(i * 300, 65) for i in range(3)]
        assert estimate_time_to_511(log, threshold) is None

    def test_already_met_returns_zero(self, threshold, hour_of_four_minute):
        assert estimate_time_to_511(hour_of_four_minute, threshold) == 0

    def test_met_but_short_returns_remaining_minutes(self, threshold):
        log = [contraction(i * 240, 65) for i in range(6)]  # spans 20 min
        assert estimate_time_to_511(log, threshold) == 40

    def test_widely_spaced_is_not_zero(self, threshold):
        log = [contraction(i * 2820, 65) for i in range(4)]  # 47 min apart
        result = estimate_time_to_511(log, threshold)
        assert result is None or result > 0

    def test_converging_projection(self, threshold):
        # intervals 10, 9, 8, 7 min; durations rising 4 s per contraction
        starts = [0, 600, 1140, 1620, 2040]
        durations = [40, 44, 48, 52, 56]
        log = [contraction(s, d) for s, d in zip(starts, durations)]

        # interval steps (8.5 - 5) / 1 = 3.5 outlast duration steps (60 - 50) / 4
        assert estimate_time_to_511(log, threshold) == 30

    def test_not_converging_is_none(self, threshold):
        # spacing out while durations shrink
        starts = [0, 420, 900, 1440]
        durations = [50, 45, 40, 35]
        log = [contraction(s, d) for s, d in zip(starts, durations)]
        assert estimate_time_to_511(log, threshold) is None

    def test_uses_latest_session_only(self, threshold, hour_of_four_minute):
        later = [contraction(6 * 3600 + i * 600, 30, cid=f"n{i}") for i in range(4)]
        log = hour_of_four_minute + later

        assert estimate_time_to_511(log, threshold, gap_minutes=30) is None


# =============================================================================
# Stage Tests
# =============================================================================

class TestEstimateStage:
    """Tests for estimate_stage."""

    def test_fewer_than_two_is_none(self):
        assert estimate_stage([contraction(0, 45)]) is None

    def test_needs_two_timed(self):
        log = [contraction(0, 45), contraction(300, untimed=True)]
        assert estimate_stage(log) is None

    def test_pre_labor(self):
        log = [contraction(0, 25), contraction(1200, 25)]
        assert estimate_stage(log) == LaborStage.PRE_LABOR

    def test_early(self):
        log = [contraction(0, 35), contraction(480, 40), contraction(960, 38)]
        assert estimate_stage(log) == LaborStage.EARLY

    def test_active(self):
        log = [contraction(0, 50), contraction(240, 55), contraction(480, 52)]
        assert estimate_stage(log) == LaborStage.ACTIVE

    def test_transition(self):
        log = [contraction(0, 70), contraction(120, 75), contraction(240, 80)]
        assert estimate_stage(log) == LaborStage.TRANSITION

    def test_custom_thresholds(self):
        log = [contraction(0, 40), contraction(420, 38), contraction(840, 42)]
        custom = dict(DEFAULT_STAGE_THRESHOLDS)
        custom[LaborStage.ACTIVE] = StageThreshold(max_interval_min=8, min_duration_sec=35)

        assert estimate_stage(log, custom) == LaborStage.ACTIVE
        assert estimate_stage(log) == LaborStage.EARLY

    def test_untimed_excluded_from_duration(self):
        log = [
            contraction(0, 50),
            contraction(240, untimed=True),
            contraction(480, 55),
            contraction(720, 52),
        ]
        assert estimate_stage(log) == LaborStage.ACTIVE

    def test_uses_recent_window(self):
        early = [contraction(i * 900, 35, cid=f"e{i}") for i in range(4)]
        active = [contraction(3600 + i * 240, 60, cid=f"a{i}") for i in range(5)]
        assert estimate_stage(early + active) == LaborStage.ACTIVE


class TestTimeInCurrentStage:
    """Tests for get_time_in_current_stage."""

    def test_fewer_than_two_is_none(self):
        assert get_time_in_current_stage([contraction(0, 45)]) is None

    def test_whole_log_in_one_stage(self, active_log):
        result = get_time_in_current_stage(active_log)

        assert isinstance(result, StageDuration)
        assert result.stage == LaborStage.ACTIVE
        # first start to last end: 7 * 4 min + 1 min
        assert result.minutes_in_stage == pytest.approx(29.0)

    def test_current_time_basis(self, active_log):
        result = get_time_in_current_stage(
            active_log, DEFAULT_STAGE_THRESHOLDS, now=at(3600), use_current_time=True
        )
        assert result.minutes_in_stage == pytest.approx(60.0)

    def test_current_time_basis_requires_now(self, active_log):
        with pytest.raises(ValueError):
            get_time_in_current_stage(active_log, use_current_time=True)

    def test_stage_change_found_walking_back(self):
        early = [contraction(i * 600, 40, cid=f"e{i}") for i in range(4)]
        active = [contraction(2040 + i * 240, 60, cid=f"a{i}") for i in range(5)]
        result = get_time_in_current_stage(early + active)

        assert result.stage == LaborStage.ACTIVE
        # stage first seen in the window starting at 1800 s; last end is 3060 s
        assert result.minutes_in_stage == pytest.approx(21.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Integration Tests for the Recompute Entry Point.

Runs the full pipeline on synthetic logs and checks that the pieces agree
with each other and that a frame is a pure function of its inputs.
"""

import copy

import pytest

from conftest import at, contraction, water_break
from laborwatch import EngineSnapshot, recompute
from laborwatch.analysis.advisor import DepartureUrgency
from laborwatch.config import EngineSettings
from laborwatch.data.loader import LogValidationError
from laborwatch.data.models import LaborStage


class TestRecompute:
    """Tests for recompute."""

    def test_empty_log(self):
        snapshot = recompute([], [], None, at(0))

        assert isinstance(snapshot, EngineSnapshot)
        assert snapshot.stats.total_contractions == 0
        assert snapshot.estimated_minutes_to_511 is None
        assert snapshot.braxton_hicks.requires_more is True
        assert snapshot.advice.urgency == DepartureUrgency.NOT_YET
        assert snapshot.interval_trend is None
        assert snapshot.stage_duration is None
        assert snapshot.active_elapsed_seconds is None
        assert snapshot.rest_seconds == 0.0

    def test_active_log(self, active_log):
        now = at(8 * 240)
        snapshot = recompute(active_log, [], EngineSettings(), now)

        assert snapshot.stats.labor_stage == LaborStage.ACTIVE
        assert snapshot.stage_duration.stage == LaborStage.ACTIVE
        assert snapshot.braxton_hicks.requires_more is False
        assert snapshot.rest_seconds == pytest.approx(180.0)
        assert len(snapshot.tips) <= 2

    def test_water_break_in_active_labor(self, active_log):
        snapshot = recompute(active_log, [water_break(600)], None, at(8 * 240))

        assert snapshot.advice.urgency == DepartureUrgency.TIME_TO_GO
        assert snapshot.hours_since_water_break == pytest.approx((1920 - 600) / 3600)
        assert snapshot.tips[0].id == "water-note-color"

    def test_open_contraction_elapsed(self, active_log):
        log = active_log + [contraction(8 * 240, None)]
        snapshot = recompute(log, [], None, at(8 * 240 + 25))

        assert snapshot.active_elapsed_seconds == pytest.approx(25.0)
        # the open contraction does not count toward the statistics
        assert snapshot.stats.total_contractions == 8

    def test_invalid_log_raises(self):
        log = [contraction(0, None), contraction(300, None)]
        with pytest.raises(LogValidationError):
            recompute(log, [], None, at(600))

    def test_settings_from_dict(self, active_log):
        settings = EngineSettings.from_dict({
            "hospitalAdvisor": {"riskAppetite": "conservative", "providerPhone": "555-0100"},
        })
        snapshot = recompute(active_log, [], settings, at(8 * 240))

        assert snapshot.advice.provider_phone == "555-0100"
        assert snapshot.advice.urgency != DepartureUrgency.NOT_YET

    def test_current_time_basis(self, active_log):
        settings = EngineSettings.from_dict({"stageTimeBasis": "current-time"})
        snapshot = recompute(active_log, [], settings, at(3600))
        assert snapshot.stage_duration.minutes_in_stage == pytest.approx(60.0)

    def test_typical_stage_duration_follows_parity(self, active_log):
        first = recompute(active_log, [], None, at(8 * 240))
        later = recompute(
            active_log, [], EngineSettings.from_dict({"parity": "subsequent"}), at(8 * 240)
        )

        assert first.typical_stage_duration_min == (60, 360)
        assert later.typical_stage_duration_min == (30, 240)
        assert later.to_dict()["typicalStageDurationMin"] == [30, 240]

    def test_no_typical_duration_without_stage(self):
        assert recompute([], [], None, at(0)).typical_stage_duration_min is None

    def test_dismissed_tips_are_passed_through(self, active_log):
        snapshot = recompute(
            active_log, [], None, at(8 * 240), dismissed_tips=frozenset({"safety-call"})
        )
        assert "safety-call" not in [tip.id for tip in snapshot.tips]

    def test_same_inputs_same_output(self, real_labor_log):
        events = [water_break(300)]
        first = recompute(real_labor_log, events, None, at(1500)).to_dict()
        second = recompute(real_labor_log, events, None, at(1500)).to_dict()
        assert first == second

    def test_inputs_not_mutated(self, real_labor_log):
        events = [water_break(300)]
        log_before = copy.deepcopy(real_labor_log)
        events_before = copy.deepcopy(events)

        recompute(real_labor_log, events, None, at(1500))

        assert real_labor_log == log_before
        assert events == events_before

    def test_to_dict_shape(self, real_labor_log):
        data = recompute(real_labor_log, [], None, at(1500)).to_dict()

        assert data["now"] == at(1500).isoformat()
        assert set(data) >= {
            "stats", "estimatedMinutesTo511", "braxtonHicks", "advice",
            "rangeEstimate", "intervalTrend", "durationTrend", "stageDuration",
            "tips", "restSeconds",
        }
        assert data["intervalTrend"]["direction"] == "decreasing"
        assert data["durationTrend"]["direction"] == "increasing"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Unit Tests for the Session Log Loader.
"""

import json
from datetime import timezone

import pytest

from conftest import BASE, contraction
from laborwatch.config import EngineSettings
from laborwatch.data.loader import (
    LogValidationError,
    SessionLoadError,
    SessionLog,
    load_session,
    load_session_file,
    parse_timestamp,
    validate_log,
)
from laborwatch.data.models import (
    ContractionLocation,
    ContractionLogError,
    InvalidContractionError,
    LaborEventType,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def document() -> dict:
    """A small persisted session with one open contraction."""
    return {
        "contractions": [
            {"id": "a", "start": "2026-03-01T08:00:00Z", "end": "2026-03-01T08:01:00Z",
             "intensity": 3, "location": "back", "notes": ""},
            {"id": "b", "start": "2026-03-01T08:05:00Z", "end": "2026-03-01T08:05:00Z",
             "intensity": None, "location": None, "notes": "after the fact",
             "untimed": True},
            {"id": "c", "start": "2026-03-01T08:09:00Z", "end": None,
             "intensity": None, "location": None, "notes": ""},
        ],
        "events": [
            {"id": "w", "type": "water-break", "timestamp": "2026-03-01T08:03:00Z",
             "notes": ""},
        ],
        "sessionStartedAt": "2026-03-01T07:55:00Z",
        "paused": False,
        "settingsOverrides": {"threshold": {"intervalMinutes": 4}},
    }


# =============================================================================
# Loading
# =============================================================================

class TestLoadSession:
    """Tests for load_session."""

    def test_mapping(self, document):
        log = load_session(document)

        assert isinstance(log, SessionLog)
        assert [c.id for c in log.contractions] == ["a", "b", "c"]
        assert log.contractions[0].start == BASE
        assert log.contractions[0].location == ContractionLocation.BACK
        assert log.contractions[1].untimed is True
        assert log.contractions[2].is_open is True
        assert log.events[0].type == LaborEventType.WATER_BREAK
        assert log.session_started_at.hour == 7
        assert log.paused is False

    def test_json_text(self, document):
        log = load_session(json.dumps(document))
        assert len(log.contractions) == 3

    def test_settings_overrides_kept_raw(self, document):
        log = load_session(document)
        settings = EngineSettings.from_dict(log.settings_overrides)
        assert settings.threshold.interval_minutes == 4

    def test_empty_document(self):
        log = load_session({})
        assert log.contractions == []
        assert log.events == []
        assert log.session_started_at is None

    def test_to_dict_round_trip(self, document):
        log = load_session(document)
        again = load_session(log.to_dict())
        assert again.contractions == log.contractions
        assert again.events == log.events

    def test_invalid_json(self):
        with pytest.raises(SessionLoadError):
            load_session("{not json")

    def test_non_object_document(self):
        with pytest.raises(SessionLoadError):
            load_session("[1, 2, 3]")

    def test_missing_id(self, document):
        del document["contractions"][0]["id"]
        with pytest.raises(SessionLoadError, match="missing 'id'"):
            load_session(document)

    def test_bad_timestamp(self, document):
        document["contractions"][0]["start"] = "yesterday"
        with pytest.raises(SessionLoadError):
            load_session(document)

    def test_unknown_location(self, document):
        document["contractions"][0]["location"] = "side"
        with pytest.raises(SessionLoadError):
            load_session(document)

    def test_unknown_event_type(self, document):
        document["events"][0]["type"] = "hiccups"
        with pytest.raises(SessionLoadError):
            load_session(document)

    def test_end_before_start(self, document):
        document["contractions"][0]["end"] = "2026-03-01T07:59:00Z"
        with pytest.raises(InvalidContractionError):
            load_session(document)

    def test_intensity_out_of_range(self, document):
        document["contractions"][0]["intensity"] = 9
        with pytest.raises(InvalidContractionError):
            load_session(document)

    def test_untimed_must_be_boolean(self, document):
        document["contractions"][0]["untimed"] = "false"
        with pytest.raises(SessionLoadError, match="untimed"):
            load_session(document)

    def test_null_flags_are_false(self, document):
        document["contractions"][0]["untimed"] = None
        document["paused"] = None
        log = load_session(document)

        assert log.contractions[0].untimed is False
        assert log.paused is False

    def test_paused_must_be_boolean(self, document):
        document["paused"] = "no"
        with pytest.raises(SessionLoadError):
            load_session(document)

    def test_errors_share_base_class(self):
        with pytest.raises(ContractionLogError):
            load_session("{not json")

    def test_load_session_file(self, document, tmp_path):
        path = tmp_path / "session.json"
        path.write_text(json.dumps(document), encoding="utf-8")

        log = load_session_file(path)
        assert len(log.contractions) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(SessionLoadError):
            load_session_file(tmp_path / "missing.json")


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_z_suffix(self):
        assert parse_timestamp("2026-03-01T08:00:00Z") == BASE

    def test_naive_is_utc(self):
        parsed = parse_timestamp("2026-03-01T08:00:00")
        assert parsed.tzinfo == timezone.utc
        assert parsed == BASE

    def test_offset_preserved(self):
        parsed = parse_timestamp("2026-03-01T10:00:00+02:00")
        assert parsed == BASE

    def test_non_string(self):
        with pytest.raises(SessionLoadError):
            parse_timestamp(1700000000)


# =============================================================================
# Log Contract
# =============================================================================

class TestValidateLog:
    """Tests for validate_log."""

    def test_valid_log(self):
        validate_log([contraction(0), contraction(300), contraction(600, None)])

    def test_empty_log(self):
        validate_log([])

    def test_duplicate_ids(self):
        log = [contraction(0, cid="x"), contraction(300, cid="x")]
        with pytest.raises(LogValidationError, match="Duplicate"):
            validate_log(log)

    def test_unsorted(self):
        with pytest.raises(LogValidationError, match="sorted"):
            validate_log([contraction(300), contraction(0)])

    def test_two_open(self):
        log = [contraction(0, None), contraction(300, None)]
        with pytest.raises(LogValidationError):
            validate_log(log)

    def test_open_not_last(self):
        log = [contraction(0, None), contraction(300)]
        with pytest.raises(LogValidationError, match="latest"):
            validate_log(log)

    def test_violation_is_logged(self, caplog):
        with pytest.raises(LogValidationError):
            validate_log([contraction(300), contraction(0)])
        assert "out of order" in caplog.text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

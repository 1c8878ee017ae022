"""
Session Log Loader.

Parses the persisted session document into validated entities. This is the
one place where the contraction log is checked against its contract; the
analysis modules assume a log that has passed through here.

Document shape (JSON):
    {
        "contractions": [{"id", "start", "end", "intensity", "location",
                          "notes", "untimed"?}, ...],
        "events": [{"id", "type", "timestamp", "notes"}, ...],
        "sessionStartedAt": "2026-03-01T08:00:00Z" | null,
        "paused": false,
        "settingsOverrides": {...}          (optional)
    }

This module provides:
    - SessionLog: Dataclass for a loaded session
    - load_session: Parse a document (mapping or JSON text)
    - load_session_file: Parse a document from disk
    - validate_log: Check ordering, ids and the single-open rule

Example:
    >>> log = load_session(document)
    >>> print(f"{len(log.contractions)} contractions, paused={log.paused}")
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from laborwatch.data.models import (
    Contraction,
    ContractionLocation,
    ContractionLogError,
    LaborEvent,
    LaborEventType,
)

# Configure module logger
logger = logging.getLogger(__name__)


class SessionLoadError(ContractionLogError):
    """Raised when a session document cannot be parsed."""
    pass


class LogValidationError(ContractionLogError):
    """Raised when a parsed log violates the log contract."""
    pass


@dataclass
class SessionLog:
    """
    A loaded session.

    Attributes:
        contractions: Contractions sorted by start time.
        events: Labor events in recorded order.
        session_started_at: When tracking started, if recorded.
        paused: Whether tracking is paused.
        settings_overrides: Raw per-session settings, for
            ``EngineSettings.from_dict``.
    """

    contractions: list[Contraction] = field(default_factory=list)
    events: list[LaborEvent] = field(default_factory=list)
    session_started_at: Optional[datetime] = None
    paused: bool = False
    settings_overrides: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "contractions": [c.to_dict() for c in self.contractions],
            "events": [e.to_dict() for e in self.events],
            "sessionStartedAt": (
                self.session_started_at.isoformat() if self.session_started_at else None
            ),
            "paused": self.paused,
        }
        if self.settings_overrides:
            data["settingsOverrides"] = dict(self.settings_overrides)
        return data

    def __repr__(self) -> str:
        return (
            f"SessionLog(contractions={len(self.contractions)}, "
            f"events={len(self.events)}, paused={self.paused})"
        )


def parse_timestamp(value: Any, name: str = "timestamp") -> datetime:
    """
    Parse an ISO 8601 timestamp.

    A trailing ``Z`` is accepted. Naive timestamps are taken as UTC.

    Raises:
        SessionLoadError: If the value is not a valid ISO 8601 string.
    """
    if not isinstance(value, str):
        raise SessionLoadError(f"{name} must be an ISO 8601 string, got {value!r}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise SessionLoadError(f"{name} is not a valid ISO 8601 timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_flag(value: Any, name: str) -> bool:
    """JSON boolean or null (false); anything else is rejected."""
    if value is None:
        return False
    if not isinstance(value, bool):
        raise SessionLoadError(f"{name} must be true or false, got {value!r}")
    return value


def _parse_contraction(raw: Any, index: int) -> Contraction:
    if not isinstance(raw, Mapping):
        raise SessionLoadError(f"contractions[{index}] must be an object")
    try:
        contraction_id = raw["id"]
        start = parse_timestamp(raw["start"], f"contractions[{index}].start")
    except KeyError as e:
        raise SessionLoadError(f"contractions[{index}] is missing {e.args[0]!r}") from None

    end_raw = raw.get("end")
    end = parse_timestamp(end_raw, f"contractions[{index}].end") if end_raw is not None else None

    location_raw = raw.get("location")
    try:
        location = ContractionLocation(location_raw) if location_raw is not None else None
    except ValueError:
        raise SessionLoadError(
            f"contractions[{index}].location is not a known location: {location_raw!r}"
        ) from None

    intensity = raw.get("intensity")
    if intensity is not None and (isinstance(intensity, bool) or not isinstance(intensity, int)):
        raise SessionLoadError(f"contractions[{index}].intensity must be an integer")

    # InvalidContractionError from the entity itself propagates unchanged
    return Contraction(
        id=str(contraction_id),
        start=start,
        end=end,
        intensity=intensity,
        location=location,
        notes=str(raw.get("notes") or ""),
        untimed=_parse_flag(raw.get("untimed"), f"contractions[{index}].untimed"),
    )


def _parse_event(raw: Any, index: int) -> LaborEvent:
    if not isinstance(raw, Mapping):
        raise SessionLoadError(f"events[{index}] must be an object")
    try:
        event_id = raw["id"]
        event_type_raw = raw["type"]
        timestamp = parse_timestamp(raw["timestamp"], f"events[{index}].timestamp")
    except KeyError as e:
        raise SessionLoadError(f"events[{index}] is missing {e.args[0]!r}") from None

    try:
        event_type = LaborEventType(event_type_raw)
    except ValueError:
        raise SessionLoadError(
            f"events[{index}].type is not a known event type: {event_type_raw!r}"
        ) from None

    return LaborEvent(
        id=str(event_id),
        type=event_type,
        timestamp=timestamp,
        notes=str(raw.get("notes") or ""),
    )


def validate_log(contractions: Sequence[Contraction]) -> None:
    """
    Check a contraction list against the log contract.

    Rules:
        - ids are unique
        - starts are in non-decreasing order
        - at most one contraction is open, and only the last one

    Raises:
        LogValidationError: On the first violation found.
    """
    seen: set[str] = set()
    for c in contractions:
        if c.id in seen:
            logger.warning(f"Duplicate contraction id {c.id!r}")
            raise LogValidationError(f"Duplicate contraction id {c.id!r}")
        seen.add(c.id)

    for earlier, later in zip(contractions, contractions[1:]):
        if later.start < earlier.start:
            logger.warning(f"Contraction {later.id!r} is out of order")
            raise LogValidationError(
                f"Contractions must be sorted by start time: {later.id!r} "
                f"starts before {earlier.id!r}"
            )

    open_ids = [c.id for c in contractions if c.is_open]
    if len(open_ids) > 1:
        logger.warning(f"More than one open contraction: {open_ids}")
        raise LogValidationError(f"At most one contraction may be open, found {open_ids}")
    if open_ids and contractions[-1].id != open_ids[0]:
        logger.warning(f"Open contraction {open_ids[0]!r} is not the latest")
        raise LogValidationError(
            f"Only the latest contraction may be open, found {open_ids[0]!r}"
        )


def load_session(payload: Union[str, bytes, Mapping[str, Any]]) -> SessionLog:
    """
    Load a session document.

    Args:
        payload: The document as a mapping, or as JSON text.

    Returns:
        Validated SessionLog.

    Raises:
        SessionLoadError: If the document is malformed.
        InvalidContractionError: If a contraction violates its invariants.
        LogValidationError: If the log violates the log contract.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise SessionLoadError(f"Session document is not valid JSON: {e}") from e

    if not isinstance(payload, Mapping):
        raise SessionLoadError(
            f"Session document must be an object, got {type(payload).__name__}"
        )

    raw_contractions = payload.get("contractions") or []
    raw_events = payload.get("events") or []
    if not isinstance(raw_contractions, list) or not isinstance(raw_events, list):
        raise SessionLoadError("contractions and events must be arrays")

    contractions = [_parse_contraction(raw, i) for i, raw in enumerate(raw_contractions)]
    events = [_parse_event(raw, i) for i, raw in enumerate(raw_events)]
    validate_log(contractions)

    started_raw = payload.get("sessionStartedAt")
    overrides = payload.get("settingsOverrides") or {}
    if not isinstance(overrides, Mapping):
        raise SessionLoadError("settingsOverrides must be an object")

    log = SessionLog(
        contractions=contractions,
        events=events,
        session_started_at=(
            parse_timestamp(started_raw, "sessionStartedAt") if started_raw is not None else None
        ),
        paused=_parse_flag(payload.get("paused"), "paused"),
        settings_overrides=dict(overrides),
    )
    logger.debug(f"Loaded {log!r}")
    return log


def load_session_file(path: Union[str, Path]) -> SessionLog:
    """
    Load a session document from a JSON file.

    Raises:
        SessionLoadError: If the file cannot be read or parsed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SessionLoadError(f"Cannot read session file {path}: {e}") from e
    return load_session(text)


__all__ = [
    'LogValidationError',
    'SessionLoadError',
    'SessionLog',
    'load_session',
    'load_session_file',
    'parse_timestamp',
    'validate_log',
]

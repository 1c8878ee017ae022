"""
Contraction log data for LaborWatch.

Modules:
    models: Contraction and LaborEvent entities
    derivations: Durations, intervals, rest time and water-break lookups
    sessions: Splitting a log into sessions at long gaps
    loader: Parsing and validating the persisted session document

Usage:
    >>> from laborwatch.data import load_session, split_into_sessions
    >>> log = load_session(document)
    >>> sessions = split_into_sessions(log.contractions, gap_minutes=30)
"""

from .models import (
    Contraction,
    ContractionLocation,
    ContractionLogError,
    InvalidContractionError,
    LaborEvent,
    LaborEventType,
    LaborStage,
)
from .sessions import get_latest_session, get_session_filtered_intervals, split_into_sessions
from .loader import LogValidationError, SessionLoadError, SessionLog, load_session, validate_log

__all__ = [
    "Contraction",
    "ContractionLocation",
    "ContractionLogError",
    "InvalidContractionError",
    "LaborEvent",
    "LaborEventType",
    "LaborStage",
    "get_latest_session",
    "get_session_filtered_intervals",
    "split_into_sessions",
    "LogValidationError",
    "SessionLoadError",
    "SessionLog",
    "load_session",
    "validate_log",
]

"""
Contraction Log Entities.

Canonical shapes of the two things a user records while timing labor:

    - Contraction: one tightening, with start/end timestamps and optional
      intensity (1-5) and location ratings
    - LaborEvent: a discrete marker such as the water breaking

Both are frozen dataclasses. The analysis code only ever reads them; the
caller's data layer owns creation, editing, undo and persistence.

Example:
    >>> from datetime import datetime, timezone
    >>> c = Contraction(
    ...     id="c1",
    ...     start=datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc),
    ...     end=datetime(2026, 3, 1, 8, 1, tzinfo=timezone.utc),
    ...     intensity=3,
    ... )
    >>> c.is_open
    False
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


INTENSITY_MIN = 1
INTENSITY_MAX = 5


class ContractionLogError(Exception):
    """Base exception for malformed contraction log data."""
    pass


class InvalidContractionError(ContractionLogError):
    """Raised when a single contraction violates its invariants."""
    pass


class ContractionLocation(Enum):
    """Where the contraction is felt."""

    FRONT = "front"
    BACK = "back"
    WRAPPING = "wrapping"


class LaborEventType(Enum):
    """Discrete labor markers."""

    WATER_BREAK = "water-break"
    MUCUS_PLUG = "mucus-plug"
    BLOODY_SHOW = "bloody-show"
    CUSTOM = "custom"


class LaborStage(Enum):
    """
    Labor stages, ordered from least to most advanced.

    The stage estimate is produced by a stage classifier (see
    ``laborwatch.rules.stage`` for the reference one) and consumed by the
    departure advisor as an opaque input.
    """

    PRE_LABOR = "pre-labor"
    EARLY = "early"
    ACTIVE = "active"
    TRANSITION = "transition"

    @property
    def label(self) -> str:
        """Human-readable stage name."""
        labels = {
            LaborStage.PRE_LABOR: "Pre-labor",
            LaborStage.EARLY: "Early labor",
            LaborStage.ACTIVE: "Active labor",
            LaborStage.TRANSITION: "Transition",
        }
        return labels[self]


@dataclass(frozen=True)
class Contraction:
    """
    A single contraction.

    Attributes:
        id: Opaque unique identifier.
        start: When the contraction started (timezone-aware recommended).
        end: When it ended, or None while it is still in progress.
        intensity: Optional 1-5 rating (None = unrated).
        location: Optional location rating (None = unrated).
        notes: Free text.
        untimed: True for a contraction logged after the fact. Its start and
            end are equal and it carries no meaningful duration.

    Raises:
        InvalidContractionError: If end < start or intensity is outside 1-5.
    """

    id: str
    start: datetime
    end: Optional[datetime] = None
    intensity: Optional[int] = None
    location: Optional[ContractionLocation] = None
    notes: str = ""
    untimed: bool = False

    def __post_init__(self) -> None:
        """Validate timestamps and rating range."""
        if self.end is not None and self.end < self.start:
            raise InvalidContractionError(
                f"Contraction {self.id!r} ends before it starts "
                f"({self.end.isoformat()} < {self.start.isoformat()})"
            )
        if self.intensity is not None and not (
            INTENSITY_MIN <= self.intensity <= INTENSITY_MAX
        ):
            raise InvalidContractionError(
                f"Contraction {self.id!r} intensity must be "
                f"{INTENSITY_MIN}-{INTENSITY_MAX}, got {self.intensity}"
            )

    @property
    def is_open(self) -> bool:
        """True while the contraction is still in progress."""
        return self.end is None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted JSON shape."""
        data: dict[str, Any] = {
            "id": self.id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat() if self.end is not None else None,
            "intensity": self.intensity,
            "location": self.location.value if self.location else None,
            "notes": self.notes,
        }
        if self.untimed:
            data["untimed"] = True
        return data

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"Contraction(id={self.id}, start={self.start.isoformat()}, {status})"


@dataclass(frozen=True)
class LaborEvent:
    """
    A discrete labor marker.

    Attributes:
        id: Opaque unique identifier.
        type: Event type.
        timestamp: When it happened.
        notes: Free text.
    """

    id: str
    type: LaborEventType
    timestamp: datetime
    notes: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted JSON shape."""
        return {
            "id": self.id,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "notes": self.notes,
        }

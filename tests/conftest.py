"""
Shared fixtures for the LaborWatch test suite.

Every log is built at a fixed base time so that results never depend on the
wall clock.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

import pytest

# Add the repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from laborwatch.data.models import (
    Contraction,
    ContractionLocation,
    LaborEvent,
    LaborEventType,
)


BASE = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)


def contraction(
    start_offset_sec: float,
    duration_sec: Optional[float] = 60,
    intensity: Optional[int] = 3,
    location: Optional[str] = None,
    untimed: bool = False,
    cid: Optional[str] = None
) -> Contraction:
    """Build a contraction starting ``start_offset_sec`` after BASE."""
    start = BASE + timedelta(seconds=start_offset_sec)
    if untimed:
        end = start
    elif duration_sec is None:
        end = None
    else:
        end = start + timedelta(seconds=duration_sec)
    return Contraction(
        id=cid or f"c{int(start_offset_sec)}",
        start=start,
        end=end,
        intensity=intensity,
        location=ContractionLocation(location) if location else None,
        untimed=untimed,
    )


def water_break(offset_sec: float = 0, eid: str = "w1") -> LaborEvent:
    """Water-break event ``offset_sec`` after BASE."""
    return LaborEvent(
        id=eid,
        type=LaborEventType.WATER_BREAK,
        timestamp=BASE + timedelta(seconds=offset_sec),
    )


def at(offset_sec: float) -> datetime:
    """BASE plus an offset in seconds."""
    return BASE + timedelta(seconds=offset_sec)


@pytest.fixture
def make_contraction() -> Callable[..., Contraction]:
    return contraction


@pytest.fixture
def braxton_hicks_log() -> list[Contraction]:
    """Irregular (15, 5, 20 min), front-only, stable intensity 2 then 1."""
    return [
        contraction(0, 25, 2, "front"),
        contraction(900, 20, 2, "front"),
        contraction(1200, 28, 2, "front"),
        contraction(2400, 22, 1, "front"),
    ]


@pytest.fixture
def real_labor_log() -> list[Contraction]:
    """Intervals 6, 5, 4, 4 min, back/wrapping, intensity rising 2 to 5."""
    return [
        contraction(0, 40, 2, "back"),
        contraction(360, 50, 3, "wrapping"),
        contraction(660, 55, 4, "back"),
        contraction(900, 62, 5, "wrapping"),
        contraction(1140, 65, 5, "back"),
    ]


@pytest.fixture
def active_log() -> list[Contraction]:
    """Eight contractions every 4 min lasting 60 s (active labor pattern)."""
    return [contraction(i * 240, 60, 4, "back") for i in range(8)]

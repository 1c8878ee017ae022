"""
Session Windowing.

Splits a flat, start-sorted contraction list into time-contiguous sessions.
A new session begins whenever the start-to-start gap to the previous
contraction exceeds ``gap_minutes``. A ``gap_minutes`` of zero or less
disables splitting.

Analyses run on the latest session only, so a burst of practice
contractions days ago does not distort today's pattern.
"""

from __future__ import annotations

import logging
from typing import Sequence

from laborwatch.data.derivations import interval_minutes
from laborwatch.data.models import Contraction

logger = logging.getLogger(__name__)


def split_into_sessions(
    contractions: Sequence[Contraction],
    gap_minutes: float
) -> list[list[Contraction]]:
    """
    Split contractions into sessions separated by gaps above ``gap_minutes``.

    Args:
        contractions: Contractions sorted by start time.
        gap_minutes: Gap threshold in minutes. <= 0 disables splitting.

    Returns:
        List of sessions (each a new list). Empty input gives an empty list.

    Example:
        >>> sessions = split_into_sessions(log, gap_minutes=30)
        >>> [len(s) for s in sessions]
        [2, 3]
    """
    if not contractions:
        return []
    if gap_minutes <= 0:
        return [list(contractions)]

    sessions: list[list[Contraction]] = [[contractions[0]]]
    for previous, current in zip(contractions, contractions[1:]):
        if interval_minutes(previous, current) > gap_minutes:
            sessions.append([current])
        else:
            sessions[-1].append(current)

    logger.debug(
        f"Split {len(contractions)} contractions into {len(sessions)} sessions "
        f"(gap > {gap_minutes} min)"
    )
    return sessions


def get_latest_session(
    contractions: Sequence[Contraction],
    gap_minutes: float
) -> list[Contraction]:
    """
    Contractions of the most recent session.

    Returns everything when no gap exceeds the threshold or splitting is
    disabled.
    """
    sessions = split_into_sessions(contractions, gap_minutes)
    if not sessions:
        return []
    return sessions[-1]


def get_session_filtered_intervals(
    contractions: Sequence[Contraction],
    gap_minutes: float
) -> list[float]:
    """
    Start-to-start intervals (minutes) that fall within a session.

    The gap between two sessions is never counted as an interval. With
    ``gap_minutes <= 0`` every interval is kept.
    """
    intervals: list[float] = []
    for previous, current in zip(contractions, contractions[1:]):
        interval = interval_minutes(previous, current)
        if gap_minutes > 0 and interval > gap_minutes:
            continue
        intervals.append(interval)
    return intervals


__all__ = [
    'split_into_sessions',
    'get_latest_session',
    'get_session_filtered_intervals',
]

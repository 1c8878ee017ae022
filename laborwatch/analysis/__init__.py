"""
Analysis module for LaborWatch.

This module provides:
    - Session statistics
    - Braxton Hicks vs. real labor assessment
    - Hospital departure advice and range estimate
    - Contextual clinical tips

Usage:
    >>> from laborwatch.analysis import assess_braxton_hicks, get_departure_advice
    >>> assessment = assess_braxton_hicks(contractions, events)
    >>> advice = get_departure_advice(contractions, events, stats, config, now)
"""

from .statistics import get_session_stats, SessionStats
from .braxton_hicks import assess_braxton_hicks, BHAssessment, BHCriterion, BHVerdict, CriterionResult
from .advisor import (
    get_departure_advice,
    get_range_estimate,
    Confidence,
    DepartureAdvice,
    DepartureUrgency,
    RangeEstimate,
)
from .tips import get_relevant_tips, dismiss_tip, ClinicalTip, TipCategory

__all__ = [
    # Statistics
    'get_session_stats',
    'SessionStats',
    # Braxton Hicks
    'assess_braxton_hicks',
    'BHAssessment',
    'BHCriterion',
    'BHVerdict',
    'CriterionResult',
    # Departure advisor
    'get_departure_advice',
    'get_range_estimate',
    'Confidence',
    'DepartureAdvice',
    'DepartureUrgency',
    'RangeEstimate',
    # Tips
    'get_relevant_tips',
    'dismiss_tip',
    'ClinicalTip',
    'TipCategory',
]

"""
LaborWatch - Contraction Timing Decision Support.

Turns a time-ordered log of contractions and labor markers into:
- Session statistics and the 5-1-1 rule check
- A Braxton Hicks vs. real labor assessment
- A departure recommendation with a time-range estimate

Everything is a pure function of its inputs, including an explicit "now".
The host application owns timers, storage and rendering.

Modules:
    config: Centralized configuration and settings
    data: Contraction log entities, derivations, sessions and loading
    rules: Trend analysis, 5-1-1 rule and stage estimation
    analysis: Braxton Hicks assessment, departure advice, tips
    engine: One-call recompute for a display frame
    utils: Numeric and text helpers

Quick Start:
    >>> from laborwatch import EngineSettings, load_session, recompute
    >>> log = load_session(document)
    >>> snapshot = recompute(log.contractions, log.events, EngineSettings(), now)
    >>> snapshot.advice.headline
    'Start preparing'
"""

__version__ = "1.0.0"

# Expose main configuration
from laborwatch.config import (
    ANALYSIS,
    BHThresholds,
    ConfigurationError,
    EngineSettings,
    HospitalAdvisorConfig,
    ThresholdConfig,
)
from laborwatch.data import (
    Contraction,
    ContractionLocation,
    LaborEvent,
    LaborEventType,
    LaborStage,
    load_session,
)
from laborwatch.engine import EngineSnapshot, recompute

__all__ = [
    '__version__',
    'ANALYSIS',
    'BHThresholds',
    'ConfigurationError',
    'EngineSettings',
    'HospitalAdvisorConfig',
    'ThresholdConfig',
    'Contraction',
    'ContractionLocation',
    'LaborEvent',
    'LaborEventType',
    'LaborStage',
    'load_session',
    'EngineSnapshot',
    'recompute',
]

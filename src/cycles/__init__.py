"""Cyclecast cycle prediction & analytics engine.

This package turns a logged history of periods and symptoms into a
forward-looking prediction, backward-looking analytics, and per-day calendar
states.  The engine modules are pure: they read snapshots and return new
value records.

Core modules:
    base          — Canonical value records and calendar-day helpers
    config_loader — Load/validate/hot-reload cycle_config.yaml
    analytics     — Average cycle length, regularity, symptom counts
    prediction    — Next period, ovulation, fertile window
    calendar      — Per-day classification and month grids

Host modules (import directly):
    store         — Record store with JSON-file persistence
    service       — Recompute-on-write facade used by the presentation layer
"""

from src.cycles.analytics import CycleAnalytics
from src.cycles.base import (
    AnalyticsSummary,
    CalendarDay,
    CyclePrediction,
    CycleRecord,
    DayState,
    FlowIntensity,
    SymptomRecord,
    UserProfile,
    calendar_day,
)
from src.cycles.calendar import CalendarClassifier
from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.prediction import CyclePredictor

__all__ = [
    "CycleRecord",
    "SymptomRecord",
    "UserProfile",
    "FlowIntensity",
    "CyclePrediction",
    "AnalyticsSummary",
    "CalendarDay",
    "DayState",
    "calendar_day",
    "CycleAnalytics",
    "CyclePredictor",
    "CalendarClassifier",
    "CycleConfig",
    "get_cycle_config",
]

"""Canonical value records for the Cyclecast prediction & analytics engine.

Every record here is a plain, immutable value object.  The engine reads
snapshots of these records and produces new derived records; nothing in this
module holds a reference back into the record store.

All dates are calendar dates (``datetime.date``).  Use ``calendar_day()`` at
every boundary where a caller might hand in a ``datetime`` so that
time-of-day never leaks into day arithmetic.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from uuid import UUID

logger = logging.getLogger("cyclecast.cycles")


def calendar_day(value: date | datetime) -> date:
    """Strip time-of-day from a date-like value.

    A ``datetime`` is truncated to its own calendar date (no time zone
    conversion happens here; that is the persistence layer's job).

    Args:
        value: A ``date`` or ``datetime``.

    Returns:
        The calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    return value


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up."""
    return math.floor(value + 0.5)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class FlowIntensity(str, Enum):
    light = "light"
    medium = "medium"
    heavy = "heavy"


class Theme(str, Enum):
    light = "light"
    dark = "dark"


class DayState(str, Enum):
    """Calendar rendering state for a single day, highest priority first."""

    period = "period"
    fertile = "fertile"
    predicted_period = "predicted_period"
    none = "none"


# ---------------------------------------------------------------------------
# Logged records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CycleRecord:
    """One logged menstrual period.

    Attributes:
        cycle_id:       Opaque identity assigned by the store.
        start_date:     First day of bleeding.
        end_date:       Last day of bleeding, ``None`` while ongoing.
        flow_intensity: Reported flow.
        tags:           Free-text labels.
        notes:          Free text, unused by the engine.
    """

    cycle_id: UUID
    start_date: date
    end_date: date | None = None
    flow_intensity: FlowIntensity = FlowIntensity.medium
    tags: frozenset[str] = field(default_factory=frozenset)
    notes: str | None = None

    @property
    def is_ongoing(self) -> bool:
        return self.end_date is None

    @property
    def period_length(self) -> int | None:
        """Inclusive number of bleeding days, or None if still ongoing."""
        if self.end_date is None:
            return None
        return (self.end_date - self.start_date).days + 1


@dataclass(frozen=True)
class SymptomRecord:
    """One symptom observation.

    Attributes:
        symptom_id: Opaque identity assigned by the store.
        date:       Calendar day of the observation.
        type:       Symptom label (catalog entry or free text).
        intensity:  1–5.
        notes:      Free text, unused by the engine.
    """

    symptom_id: UUID
    date: date
    type: str
    intensity: int
    notes: str | None = None


@dataclass(frozen=True)
class NotificationPreferences:
    period_reminder: bool = True
    ovulation_reminder: bool = True
    pms_alert: bool = True


@dataclass(frozen=True)
class UserProfile:
    """Prediction baseline and preferences (exactly one per installation).

    ``average_cycle_length`` is only consulted when the history has no
    usable cycle gaps.  ``theme`` and ``notifications`` are presentation
    preferences and are ignored by the engine.
    """

    average_cycle_length: int
    average_period_length: int
    created_at: datetime
    last_period_date: date | None = None
    theme: Theme = Theme.light
    notifications: NotificationPreferences = field(default_factory=NotificationPreferences)


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CyclePrediction:
    """Forward-looking prediction derived from the most recent cycle.

    Attributes:
        next_period_date:     Most recent start + cycle length.
        ovulation_date:       Next period minus the luteal phase.
        fertile_window_start: Ovulation minus 5 days.
        fertile_window_end:   Ovulation plus 1 day.
        days_until_next:      Negative once the predicted date has passed.
        current_cycle_day:    1-indexed day within the current cycle.
        cycle_length:         Length the prediction was based on.
    """

    next_period_date: date
    ovulation_date: date
    fertile_window_start: date
    fertile_window_end: date
    days_until_next: int
    current_cycle_day: int
    cycle_length: int


@dataclass(frozen=True)
class AnalyticsSummary:
    """Backward-looking summary over the whole history.

    ``cycle_regularity`` is a heuristic 0–100 penalty score
    (``100 - 2 * variance``), not a statistical confidence measure.
    """

    average_cycle_length: int
    cycle_regularity: int
    common_symptoms: dict[str, int]
    period_duration: int
    recent_cycles: tuple[CycleRecord, ...]


@dataclass(frozen=True)
class CycleLengthPoint:
    """One usable cycle gap, labelled by the later cycle's start."""

    start_date: date
    length: int


@dataclass(frozen=True)
class CalendarDay:
    """One cell of a rendered month grid."""

    date: date
    day: int
    is_current_month: bool
    is_today: bool
    state: DayState
    has_symptoms: bool = False

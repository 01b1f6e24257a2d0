"""Calendar classification for rendering cycle state per day.

Each day is one of (highest priority first):

    period            inside a logged period; an ongoing period is drawn
                      as start + 5 days (display only)
    fertile           inside the predicted fertile window
    predicted_period  next predicted period start through +5 days
    none              otherwise

All comparisons are by calendar day and inclusive at both ends.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Sequence

from src.cycles.base import (
    CalendarDay,
    CyclePrediction,
    CycleRecord,
    DayState,
    SymptomRecord,
    calendar_day,
)
from src.cycles.config_loader import CycleConfig, get_cycle_config

logger = logging.getLogger("cyclecast.cycles.calendar")

# A month grid is always six full weeks
_GRID_DAYS = 42


def symptoms_on(day: date | datetime, symptoms: Sequence[SymptomRecord]) -> list[SymptomRecord]:
    """Return the symptoms logged on the given calendar day."""
    target = calendar_day(day)
    return [s for s in symptoms if calendar_day(s.date) == target]


class CalendarClassifier:
    """Classify dates against the cycle history and current prediction.

    Usage::

        classifier = CalendarClassifier()
        state = classifier.classify(date(2024, 2, 3), cycles, prediction)
        grid = classifier.month_grid(2024, 2, cycles, symptoms, prediction,
                                     today=date(2024, 2, 10))
    """

    def __init__(self, config: CycleConfig | None = None) -> None:
        self._config = config or get_cycle_config()

    def period_end(self, cycle: CycleRecord) -> date:
        """Last displayed day of a logged period."""
        if cycle.end_date is not None:
            return cycle.end_date
        return cycle.start_date + timedelta(days=self._config.period.assumed_open_period_days)

    def is_period_day(self, day: date | datetime, cycles: Sequence[CycleRecord]) -> bool:
        target = calendar_day(day)
        return any(c.start_date <= target <= self.period_end(c) for c in cycles)

    def is_fertile_day(
        self, day: date | datetime, prediction: CyclePrediction | None
    ) -> bool:
        if prediction is None:
            return False
        target = calendar_day(day)
        return prediction.fertile_window_start <= target <= prediction.fertile_window_end

    def is_predicted_period_day(
        self, day: date | datetime, prediction: CyclePrediction | None
    ) -> bool:
        if prediction is None:
            return False
        target = calendar_day(day)
        end = prediction.next_period_date + timedelta(
            days=self._config.period.predicted_period_days
        )
        return prediction.next_period_date <= target <= end

    def classify(
        self,
        day: date | datetime,
        cycles: Sequence[CycleRecord],
        prediction: CyclePrediction | None,
    ) -> DayState:
        """Return the rendering state for a single day.

        Args:
            day:        Date to classify; any time-of-day is discarded.
            cycles:     Logged cycle history.
            prediction: Current prediction, or None.

        Returns:
            DayState, resolved in priority order period > fertile > predicted.
        """
        if self.is_period_day(day, cycles):
            return DayState.period
        if self.is_fertile_day(day, prediction):
            return DayState.fertile
        if self.is_predicted_period_day(day, prediction):
            return DayState.predicted_period
        return DayState.none

    def month_grid(
        self,
        year: int,
        month: int,
        cycles: Sequence[CycleRecord],
        symptoms: Sequence[SymptomRecord],
        prediction: CyclePrediction | None,
        today: date | datetime,
    ) -> list[CalendarDay]:
        """Build a six-week grid for a month, starting on a Sunday.

        The grid begins on the Sunday on or before the 1st and always has
        42 cells, so it includes trailing/leading days of adjacent months.
        """
        today = calendar_day(today)
        first = date(year, month, 1)
        # weekday(): Monday=0 … Sunday=6; shift so Sunday starts the week
        start = first - timedelta(days=(first.weekday() + 1) % 7)
        symptom_days = {calendar_day(s.date) for s in symptoms}

        grid: list[CalendarDay] = []
        for offset in range(_GRID_DAYS):
            d = start + timedelta(days=offset)
            grid.append(
                CalendarDay(
                    date=d,
                    day=d.day,
                    is_current_month=d.month == month,
                    is_today=d == today,
                    state=self.classify(d, cycles, prediction),
                    has_symptoms=d in symptom_days,
                )
            )
        logger.debug("Built month grid for %04d-%02d starting %s", year, month, start)
        return grid

"""Cycle prediction engine.

Predicts, from the most recent logged period:
- Next period start date
- Ovulation date (a fixed luteal phase before the next period)
- Fertile window (5 days before ovulation through the day after)
- Days until the next period and the current cycle day

The cycle length comes from ``CycleAnalytics.average_cycle_length`` so that
prediction and analytics always agree.  With no usable history it falls back
to the profile's stated average.

This is a calendar heuristic only and makes no medical claim.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Sequence

from src.cycles.analytics import CycleAnalytics
from src.cycles.base import CyclePrediction, CycleRecord, UserProfile, calendar_day
from src.cycles.config_loader import CycleConfig, get_cycle_config

logger = logging.getLogger("cyclecast.cycles.prediction")


class CyclePredictor:
    """Predict the next period and fertile window.

    Usage::

        predictor = CyclePredictor()
        prediction = predictor.predict(profile, cycles, as_of=date(2024, 1, 20))
        if prediction is not None:
            print(prediction.next_period_date, prediction.days_until_next)
    """

    def __init__(self, config: CycleConfig | None = None) -> None:
        self._config = config or get_cycle_config()
        self._analytics = CycleAnalytics(self._config)

    def predict(
        self,
        profile: UserProfile | None,
        cycles: Sequence[CycleRecord],
        as_of: date | datetime,
    ) -> CyclePrediction | None:
        """Generate a prediction from the profile and cycle history.

        Args:
            profile: The user profile, or None if none has been created.
            cycles:  Full cycle history in any order.
            as_of:   "Now"; any time-of-day is discarded.

        Returns:
            CyclePrediction, or None when there is no profile or no history.
        """
        if profile is None or not cycles:
            return None

        pc = self._config.prediction
        today = calendar_day(as_of)

        most_recent = max(cycles, key=lambda c: c.start_date)
        cycle_length = self._analytics.average_cycle_length(
            cycles, fallback=profile.average_cycle_length
        )

        next_period = most_recent.start_date + timedelta(days=cycle_length)
        ovulation = next_period - timedelta(days=pc.luteal_phase_days)
        fertile_start = ovulation - timedelta(days=pc.fertile_days_before_ovulation)
        fertile_end = ovulation + timedelta(days=pc.fertile_days_after_ovulation)

        cycle_day = self.cycle_day_from_start(most_recent.start_date, today)

        prediction = CyclePrediction(
            next_period_date=next_period,
            ovulation_date=ovulation,
            fertile_window_start=fertile_start,
            fertile_window_end=fertile_end,
            days_until_next=(next_period - today).days,
            current_cycle_day=max(1, cycle_day),
            cycle_length=cycle_length,
        )
        logger.debug(
            "Predicted next period %s from %s (cycle length %d)",
            next_period, most_recent.start_date, cycle_length,
        )
        return prediction

    @staticmethod
    def cycle_day_from_start(period_start: date, query_date: date | datetime) -> int:
        """Return the cycle day number for a given date.

        Day 1 = first day of period.  Dates before the start give zero or
        negative numbers.
        """
        return (calendar_day(query_date) - period_start).days + 1

"""Tests for the cycle prediction engine."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from src.cycles.config_loader import CycleConfig
from src.cycles.prediction import CyclePredictor
from src.cycles.tests.conftest import TEST_DATE, make_cycle, make_profile


class TestCyclePredictor:
    def test_single_cycle_uses_profile_length(self, cycle_config: CycleConfig) -> None:
        predictor = CyclePredictor(cycle_config)
        prediction = predictor.predict(
            make_profile(average_cycle_length=28),
            [make_cycle(date(2024, 1, 1))],
            as_of=TEST_DATE,
        )
        assert prediction is not None
        assert prediction.next_period_date == date(2024, 1, 29)
        assert prediction.ovulation_date == date(2024, 1, 15)
        assert prediction.fertile_window_start == date(2024, 1, 10)
        assert prediction.fertile_window_end == date(2024, 1, 16)
        assert prediction.days_until_next == 9
        assert prediction.current_cycle_day == 20
        assert prediction.cycle_length == 28

    def test_no_profile_returns_none(self, cycle_config: CycleConfig) -> None:
        predictor = CyclePredictor(cycle_config)
        assert predictor.predict(None, [make_cycle(date(2024, 1, 1))], as_of=TEST_DATE) is None

    def test_empty_history_returns_none(self, cycle_config: CycleConfig) -> None:
        predictor = CyclePredictor(cycle_config)
        assert predictor.predict(make_profile(), [], as_of=TEST_DATE) is None

    def test_selects_latest_start_regardless_of_order(self, cycle_config: CycleConfig) -> None:
        # Oldest first on purpose
        cycles = [make_cycle(date(2024, 1, 1)), make_cycle(date(2024, 1, 30))]
        prediction = CyclePredictor(cycle_config).predict(
            make_profile(), cycles, as_of=date(2024, 2, 10)
        )
        assert prediction is not None
        assert prediction.cycle_length == 29
        assert prediction.next_period_date == date(2024, 2, 28)
        assert prediction.current_cycle_day == 12

    def test_out_of_range_gap_falls_back_to_profile(self, cycle_config: CycleConfig) -> None:
        cycles = [make_cycle(date(2024, 2, 20)), make_cycle(date(2024, 1, 1))]
        prediction = CyclePredictor(cycle_config).predict(
            make_profile(average_cycle_length=30), cycles, as_of=date(2024, 3, 1)
        )
        assert prediction is not None
        assert prediction.cycle_length == 30
        assert prediction.next_period_date == date(2024, 3, 21)

    def test_days_until_next_goes_negative_when_overdue(self, cycle_config: CycleConfig) -> None:
        prediction = CyclePredictor(cycle_config).predict(
            make_profile(), [make_cycle(date(2024, 1, 1))], as_of=date(2024, 2, 5)
        )
        assert prediction is not None
        assert prediction.days_until_next == -7
        assert prediction.current_cycle_day == 36

    def test_current_cycle_day_never_below_one(self, cycle_config: CycleConfig) -> None:
        prediction = CyclePredictor(cycle_config).predict(
            make_profile(), [make_cycle(date(2024, 1, 1))], as_of=date(2023, 12, 25)
        )
        assert prediction is not None
        assert prediction.current_cycle_day == 1

    def test_start_day_is_cycle_day_one(self, cycle_config: CycleConfig) -> None:
        prediction = CyclePredictor(cycle_config).predict(
            make_profile(), [make_cycle(date(2024, 1, 1))], as_of=date(2024, 1, 1)
        )
        assert prediction is not None
        assert prediction.current_cycle_day == 1
        assert prediction.days_until_next == 28

    def test_time_of_day_is_ignored(self, cycle_config: CycleConfig) -> None:
        predictor = CyclePredictor(cycle_config)
        cycles = [make_cycle(date(2024, 1, 1))]
        late = predictor.predict(make_profile(), cycles, as_of=datetime(2024, 1, 20, 23, 59))
        early = predictor.predict(make_profile(), cycles, as_of=datetime(2024, 1, 20, 0, 1))
        assert late == early
        assert late is not None
        assert late.days_until_next == 9

    @pytest.mark.parametrize("cycle_length", [21, 28, 35, 45])
    def test_fertile_window_always_spans_six_days(
        self, cycle_config: CycleConfig, cycle_length: int
    ) -> None:
        prediction = CyclePredictor(cycle_config).predict(
            make_profile(average_cycle_length=cycle_length),
            [make_cycle(date(2024, 3, 10))],
            as_of=date(2024, 3, 12),
        )
        assert prediction is not None
        assert prediction.fertile_window_end - prediction.fertile_window_start == timedelta(days=6)
        assert prediction.next_period_date - prediction.ovulation_date == timedelta(days=14)

    def test_regular_history_predicts_from_average(self, cycle_config: CycleConfig) -> None:
        starts = [date(2023, 7, 1) + timedelta(days=30 * i) for i in range(6)]
        cycles = [make_cycle(s) for s in starts]
        prediction = CyclePredictor(cycle_config).predict(
            make_profile(average_cycle_length=28), cycles, as_of=starts[-1] + timedelta(days=3)
        )
        assert prediction is not None
        assert prediction.cycle_length == 30
        assert prediction.next_period_date == starts[-1] + timedelta(days=30)
        assert prediction.days_until_next == 27
        assert prediction.current_cycle_day == 4


class TestCycleDayFromStart:
    def test_day_one_on_start(self) -> None:
        assert CyclePredictor.cycle_day_from_start(date(2024, 1, 1), date(2024, 1, 1)) == 1

    def test_before_start_is_not_positive(self) -> None:
        assert CyclePredictor.cycle_day_from_start(date(2024, 1, 1), date(2023, 12, 30)) == -1

    def test_accepts_datetime(self) -> None:
        assert CyclePredictor.cycle_day_from_start(
            date(2024, 1, 1), datetime(2024, 1, 10, 18, 30)
        ) == 10

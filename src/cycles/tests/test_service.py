"""Tests for the recompute-on-write cycle service."""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path

import pytest

from src.config import Settings
from src.cycles.base import DayState, Theme
from src.cycles.config_loader import CycleConfig
from src.cycles.service import CycleService
from src.cycles.store import CycleStore, ProfileNotInitializedError, StoreError
from src.main import create_service
from src.models.tracking import (
    CycleCreate,
    NotificationSettings,
    ProfileCreate,
    ProfileUpdate,
    SymptomCreate,
)
from src.cycles.tests.conftest import TEST_DATE, FlakyBackend


@pytest.fixture
def service(cycle_config: CycleConfig) -> CycleService:
    return CycleService(CycleStore(), config=cycle_config, clock=lambda: TEST_DATE)


class TestLogging:
    def test_no_prediction_before_first_log(self, service: CycleService) -> None:
        assert service.prediction is None
        assert service.profile is None
        assert service.analytics() is None

    def test_first_log_creates_profile_from_defaults(self, service: CycleService) -> None:
        service.log_period(CycleCreate(start_date=date(2024, 1, 1)))
        profile = service.profile
        assert profile is not None
        assert profile.average_cycle_length == 28
        assert profile.average_period_length == 5
        assert profile.last_period_date == date(2024, 1, 1)
        assert profile.theme == Theme.light

    def test_first_log_uses_stated_baseline(self, service: CycleService) -> None:
        service.log_period(
            CycleCreate(start_date=date(2024, 1, 1)),
            baseline=ProfileCreate(average_cycle_length=32, average_period_length=4),
        )
        assert service.profile is not None
        assert service.profile.average_cycle_length == 32
        assert service.prediction is not None
        assert service.prediction.next_period_date == date(2024, 2, 2)

    def test_baseline_ignored_once_profile_exists(self, service: CycleService) -> None:
        service.log_period(CycleCreate(start_date=date(2023, 12, 3)))
        service.log_period(
            CycleCreate(start_date=date(2024, 1, 1)),
            baseline=ProfileCreate(average_cycle_length=40),
        )
        assert service.profile is not None
        assert service.profile.average_cycle_length == 28
        assert service.profile.last_period_date == date(2023, 12, 3)

    def test_prediction_recomputed_after_each_log(self, service: CycleService) -> None:
        service.log_period(CycleCreate(start_date=date(2024, 1, 1)))
        first = service.prediction
        assert first is not None
        assert first.next_period_date == date(2024, 1, 29)

        service.log_period(CycleCreate(start_date=date(2023, 12, 1)))  # 31-day gap
        second = service.prediction
        assert second is not None
        assert second.cycle_length == 31
        assert second.next_period_date == date(2024, 2, 1)

    def test_symptoms_logged_and_counted(self, service: CycleService) -> None:
        service.log_period(CycleCreate(start_date=date(2024, 1, 1)))
        records = service.log_symptoms(
            [
                SymptomCreate(date=date(2024, 1, 2), type="Cramps", intensity=4),
                SymptomCreate(date=date(2024, 1, 3), type="Cramps", intensity=2),
            ]
        )
        service.log_symptom(SymptomCreate(date=date(2024, 1, 2), type="Headache", intensity=1))
        assert len(records) == 2

        summary = service.analytics()
        assert summary is not None
        assert summary.common_symptoms == {"Cramps": 2, "Headache": 1}
        assert [s.type for s in service.symptoms_for_date(date(2024, 1, 2))] == [
            "Cramps",
            "Headache",
        ]


class TestSettings:
    def test_update_requires_profile(self, service: CycleService) -> None:
        with pytest.raises(ProfileNotInitializedError):
            service.update_settings(ProfileUpdate(average_cycle_length=30))

    def test_update_changes_fallback_and_prediction(self, service: CycleService) -> None:
        service.log_period(CycleCreate(start_date=date(2024, 1, 1)))
        updated = service.update_settings(ProfileUpdate(average_cycle_length=35))
        assert updated.average_cycle_length == 35
        assert updated.average_period_length == 5
        assert service.prediction is not None
        assert service.prediction.next_period_date == date(2024, 2, 5)

    def test_update_preferences_only(self, service: CycleService) -> None:
        service.log_period(CycleCreate(start_date=date(2024, 1, 1)))
        created_at = service.profile.created_at if service.profile else None
        updated = service.update_settings(
            ProfileUpdate(theme="dark", notifications=NotificationSettings(pms_alert=False))
        )
        assert updated.theme == Theme.dark
        assert not updated.notifications.pms_alert
        assert updated.notifications.period_reminder
        assert updated.average_cycle_length == 28
        assert updated.created_at == created_at


class TestQueries:
    def test_classify_and_grid(self, service: CycleService) -> None:
        service.log_period(CycleCreate(start_date=date(2024, 1, 1), end_date=date(2024, 1, 5)))
        assert service.classify(date(2024, 1, 3)) == DayState.period
        assert service.classify(date(2024, 1, 12)) == DayState.fertile
        assert service.classify(date(2024, 1, 30)) == DayState.predicted_period

        grid = service.month_grid(2024, 1)
        assert len(grid) == 42
        assert [c.date for c in grid if c.is_today] == [TEST_DATE]

    def test_cycle_length_trend(self, service: CycleService) -> None:
        for start in (date(2023, 11, 3), date(2023, 12, 2), date(2024, 1, 1)):
            service.log_period(CycleCreate(start_date=start))
        assert [p.length for p in service.cycle_length_trend()] == [29, 30]

    def test_export_data_is_json_document(self, service: CycleService) -> None:
        service.log_period(CycleCreate(start_date=date(2024, 1, 1), tags=["Spotting"]))
        service.log_symptom(SymptomCreate(date=date(2024, 1, 2), type="Cramps", intensity=3))
        exported = json.loads(service.export_data())
        assert exported["version"] == "1.0"
        assert exported["cycles"][0]["start_date"] == "2024-01-01"
        assert exported["cycles"][0]["tags"] == ["Spotting"]
        assert exported["symptoms"][0]["type"] == "Cramps"
        assert exported["profile"]["average_cycle_length"] == 28
        assert "export_date" in exported

    def test_clear_all_data(self, service: CycleService) -> None:
        service.log_period(CycleCreate(start_date=date(2024, 1, 1)))
        service.clear_all_data()
        assert service.prediction is None
        assert service.profile is None
        assert service.analytics() is None
        assert service.classify(date(2024, 1, 2)) == DayState.none


class TestCreateService:
    def test_create_service_persists_to_data_file(self, tmp_path: Path) -> None:
        settings = Settings(data_file=tmp_path / "cyclecast.json")
        svc = create_service(settings, clock=lambda: TEST_DATE)
        svc.log_period(CycleCreate(start_date=date(2024, 1, 1)))

        reopened = create_service(settings, clock=lambda: TEST_DATE)
        assert reopened.prediction is not None
        assert reopened.prediction.next_period_date == date(2024, 1, 29)
        assert reopened.prediction.days_until_next == 9


class TestFailedPersistence:
    def test_failed_first_log_keeps_no_profile(
        self, tmp_path: Path, cycle_config: CycleConfig
    ) -> None:
        backend = FlakyBackend(tmp_path / "data.json")
        svc = CycleService(CycleStore(backend), config=cycle_config, clock=lambda: TEST_DATE)
        with pytest.raises(StoreError):
            svc.log_period(
                CycleCreate(start_date=date(2024, 1, 1)),
                baseline=ProfileCreate(average_cycle_length=32),
            )
        assert svc.profile is None
        assert svc.prediction is None
        assert svc.analytics() is None

    def test_retry_after_failed_first_log_uses_baseline(
        self, tmp_path: Path, cycle_config: CycleConfig
    ) -> None:
        backend = FlakyBackend(tmp_path / "data.json")
        svc = CycleService(CycleStore(backend), config=cycle_config, clock=lambda: TEST_DATE)
        entry = CycleCreate(start_date=date(2024, 1, 1))
        baseline = ProfileCreate(average_cycle_length=32)
        with pytest.raises(StoreError):
            svc.log_period(entry, baseline=baseline)

        backend.failing = False
        svc.log_period(entry, baseline=baseline)
        assert svc.profile is not None
        assert svc.profile.average_cycle_length == 32
        assert svc.prediction is not None
        assert svc.prediction.next_period_date == date(2024, 2, 2)

    def test_failed_later_log_keeps_prediction_in_step(
        self, tmp_path: Path, cycle_config: CycleConfig
    ) -> None:
        backend = FlakyBackend(tmp_path / "data.json", failing=False)
        svc = CycleService(CycleStore(backend), config=cycle_config, clock=lambda: TEST_DATE)
        svc.log_period(CycleCreate(start_date=date(2024, 1, 1)))
        before = svc.prediction

        backend.failing = True
        with pytest.raises(StoreError):
            svc.log_period(CycleCreate(start_date=date(2023, 12, 1)))
        assert svc.prediction == before
        assert svc.classify(date(2023, 12, 2)) == DayState.none


class TestServiceLogging:
    def test_log_symptom_logs_at_info(
        self, service: CycleService, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="cyclecast.cycles.service"):
            service.log_symptom(SymptomCreate(date=date(2024, 1, 2), type="Bloating", intensity=2))
        assert "Logged symptom 'Bloating' on 2024-01-02" in caplog.text

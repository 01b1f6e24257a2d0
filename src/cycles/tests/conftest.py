"""Shared fixtures and record builders for the cycle engine tests."""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from uuid import uuid4

import pytest

from src.cycles.base import (
    CyclePrediction,
    CycleRecord,
    FlowIntensity,
    SymptomRecord,
    UserProfile,
)
from src.cycles.config_loader import CycleConfig, load_cycle_config
from src.cycles.store import JsonFileBackend, StoreError
from src.models.tracking import ExportDocument

# Canonical "today" for deterministic tests
TEST_DATE = date(2024, 1, 20)


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------


def make_cycle(
    start: date,
    end: date | None = None,
    flow: FlowIntensity = FlowIntensity.medium,
    tags: frozenset[str] = frozenset(),
) -> CycleRecord:
    return CycleRecord(
        cycle_id=uuid4(),
        start_date=start,
        end_date=end,
        flow_intensity=flow,
        tags=tags,
    )


def make_symptom(d: date, type_: str, intensity: int = 3) -> SymptomRecord:
    return SymptomRecord(symptom_id=uuid4(), date=d, type=type_, intensity=intensity)


def make_profile(average_cycle_length: int = 28, average_period_length: int = 5) -> UserProfile:
    return UserProfile(
        average_cycle_length=average_cycle_length,
        average_period_length=average_period_length,
        created_at=datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc),
    )


def make_prediction(
    next_period: date,
    fertile_start: date,
    fertile_end: date,
    ovulation: date | None = None,
) -> CyclePrediction:
    """Hand-built prediction for classifier tests that need unusual windows."""
    return CyclePrediction(
        next_period_date=next_period,
        ovulation_date=ovulation or fertile_end,
        fertile_window_start=fertile_start,
        fertile_window_end=fertile_end,
        days_until_next=0,
        current_cycle_day=1,
        cycle_length=28,
    )


class FlakyBackend(JsonFileBackend):
    """JSON backend whose saves fail while ``failing`` is set."""

    def __init__(self, path: Path, failing: bool = True) -> None:
        super().__init__(path)
        self.failing = failing

    def save(self, document: ExportDocument) -> None:
        if self.failing:
            raise StoreError(f"Cannot write tracker data to {self.path}: disk full")
        super().save(document)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cycle_config() -> CycleConfig:
    """Load the real bundled cycle config for tests."""
    return load_cycle_config()


@pytest.fixture
def profile() -> UserProfile:
    return make_profile()

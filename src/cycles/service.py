"""Host-side service tying the record store to the engine.

Every mutation goes through here.  After each write that can change a
prediction (a period log or a settings edit) the prediction is recomputed
from a fresh store snapshot; it is never patched incrementally.  Analytics
are computed on demand.

"Today" comes from an injected clock so tests stay deterministic.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Iterable

from src.cycles.analytics import CycleAnalytics
from src.cycles.base import (
    AnalyticsSummary,
    CalendarDay,
    CycleLengthPoint,
    CyclePrediction,
    CycleRecord,
    DayState,
    SymptomRecord,
    UserProfile,
)
from src.cycles.calendar import CalendarClassifier, symptoms_on
from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.prediction import CyclePredictor
from src.cycles.store import CycleStore, ProfileNotInitializedError
from src.models.base import utc_now
from src.models.tracking import (
    CycleCreate,
    ProfileCreate,
    ProfileUpdate,
    SymptomCreate,
)

logger = logging.getLogger("cyclecast.cycles.service")


class CycleService:
    """Log periods and symptoms, and serve predictions, analytics, and calendars.

    Usage::

        service = CycleService(CycleStore())
        service.log_period(CycleCreate(start_date=date(2024, 1, 1)))
        print(service.prediction.next_period_date)
    """

    def __init__(
        self,
        store: CycleStore,
        config: CycleConfig | None = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._config = config or get_cycle_config()
        self._clock = clock
        self._analytics = CycleAnalytics(self._config)
        self._predictor = CyclePredictor(self._config)
        self._classifier = CalendarClassifier(self._config)
        self._prediction: CyclePrediction | None = None
        self.refresh_prediction()

    @property
    def config(self) -> CycleConfig:
        return self._config

    @property
    def prediction(self) -> CyclePrediction | None:
        """The prediction as of the last mutation (None without profile or history)."""
        return self._prediction

    @property
    def profile(self) -> UserProfile | None:
        return self._store.current_profile()

    # ------------------------------------------------------------------
    # Logging flow
    # ------------------------------------------------------------------

    def log_period(
        self, entry: CycleCreate, baseline: ProfileCreate | None = None
    ) -> CycleRecord:
        """Record a period, creating the profile on the very first log.

        Args:
            entry:    Validated period log.
            baseline: Optional stated averages for the new profile.  Ignored
                      once a profile exists (use ``update_settings``).

        Returns:
            The stored CycleRecord.

        Raises:
            StoreError: If the write cannot be saved; neither the record nor a
                new profile is kept.
        """
        new_profile = None
        if self._store.current_profile() is None:
            new_profile = self._new_profile(entry.start_date, baseline)

        record = self._store.append_cycle(entry, initial_profile=new_profile)
        if new_profile is not None and self._store.current_profile() is new_profile:
            logger.info(
                "Initialized profile (cycle %d days, period %d days)",
                new_profile.average_cycle_length, new_profile.average_period_length,
            )
        logger.info("Logged period starting %s", record.start_date)
        self.refresh_prediction()
        return record

    def log_symptom(self, entry: SymptomCreate) -> SymptomRecord:
        record = self._store.append_symptom(entry)
        logger.info("Logged symptom %r on %s", record.type, record.date)
        return record

    def log_symptoms(self, entries: Iterable[SymptomCreate]) -> list[SymptomRecord]:
        """Record several symptoms, typically all those ticked for one day."""
        records = [self._store.append_symptom(e) for e in entries]
        logger.info("Logged %d symptom(s)", len(records))
        return records

    def update_settings(self, update: ProfileUpdate) -> UserProfile:
        """Apply a settings edit to the existing profile.

        Raises:
            ProfileNotInitializedError: If no period has been logged yet.
        """
        current = self._store.current_profile()
        if current is None:
            raise ProfileNotInitializedError(
                "No profile exists yet; log a period first"
            )

        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        updated = UserProfile(
            average_cycle_length=changes.get("average_cycle_length", current.average_cycle_length),
            average_period_length=changes.get(
                "average_period_length", current.average_period_length
            ),
            created_at=current.created_at,
            last_period_date=current.last_period_date,
            theme=update.theme or current.theme,
            notifications=(
                update.notifications.to_preferences()
                if update.notifications is not None
                else current.notifications
            ),
        )
        self._store.set_profile(updated)
        logger.info("Updated settings: %s", ", ".join(sorted(changes)) or "no changes")
        self.refresh_prediction()
        return updated

    def refresh_prediction(self) -> CyclePrediction | None:
        """Recompute the prediction from a fresh snapshot and the clock.

        Called after every relevant write; hosts also call it when the
        calendar day rolls over so the day counters stay current.
        """
        snap = self._store.snapshot()
        self._prediction = self._predictor.predict(snap.profile, snap.cycles, self._clock())
        return self._prediction

    def clear_all_data(self) -> None:
        self._store.clear_all()
        self._prediction = None
        logger.info("Cleared all tracker data")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def analytics(self) -> AnalyticsSummary | None:
        """Analytics over the full history, or None before any period is logged."""
        snap = self._store.snapshot()
        if not snap.cycles:
            return None
        return self._analytics.summarize(snap.cycles, snap.symptoms, snap.profile)

    def cycle_length_trend(self) -> list[CycleLengthPoint]:
        return self._analytics.cycle_length_trend(self._store.snapshot().cycles)

    def symptoms_for_date(self, day: date | datetime) -> list[SymptomRecord]:
        return symptoms_on(day, self._store.snapshot().symptoms)

    def classify(self, day: date | datetime) -> DayState:
        return self._classifier.classify(day, self._store.snapshot().cycles, self._prediction)

    def month_grid(self, year: int, month: int) -> list[CalendarDay]:
        snap = self._store.snapshot()
        return self._classifier.month_grid(
            year, month, snap.cycles, snap.symptoms, self._prediction, today=self._clock()
        )

    def export_data(self) -> str:
        """Serialize everything (cycles, symptoms, profile) as a JSON document."""
        return self._store.to_document().model_dump_json(by_alias=True, indent=2)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_profile(self, start: date, baseline: ProfileCreate | None) -> UserProfile:
        defaults = self._config.profile_defaults
        stated = baseline or ProfileCreate()
        return UserProfile(
            average_cycle_length=stated.average_cycle_length or defaults.average_cycle_length,
            average_period_length=stated.average_period_length or defaults.average_period_length,
            created_at=utc_now(),
            last_period_date=start,
            theme=stated.theme or defaults.theme,
            notifications=(
                stated.notifications.to_preferences()
                if stated.notifications is not None
                else defaults.notifications
            ),
        )

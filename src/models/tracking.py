"""Pydantic models for the logging flow: period logs, symptom logs, profile
settings, and the persisted / exported data document.

These schemas are the only place records are validated.  The engine in
``src.cycles`` assumes it is handed records that already passed through here.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import Field, field_validator, model_validator

from src.cycles.base import (
    CycleRecord,
    FlowIntensity,
    NotificationPreferences,
    SymptomRecord,
    Theme,
    UserProfile,
)
from src.models.base import CyclecastBase, TimestampMixin, strip_time, utc_now

EXPORT_VERSION = "1.0"


# ---------- Period logs ----------

class CycleCreate(CyclecastBase):
    start_date: date
    end_date: date | None = None
    flow_intensity: FlowIntensity = FlowIntensity.medium
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def drop_time_of_day(cls, v: object) -> object:
        return strip_time(v)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        """Drop blank and repeated tags, keeping first-seen order."""
        seen: dict[str, None] = {}
        for tag in v:
            tag = tag.strip()
            if tag:
                seen.setdefault(tag, None)
        return list(seen)

    @field_validator("notes")
    @classmethod
    def blank_notes_to_none(cls, v: str | None) -> str | None:
        return v or None

    @model_validator(mode="after")
    def end_not_before_start(self) -> CycleCreate:
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError(
                f"end_date {self.end_date} is before start_date {self.start_date}"
            )
        return self


class CycleRead(CycleCreate):
    cycle_id: uuid.UUID

    def to_record(self) -> CycleRecord:
        return CycleRecord(
            cycle_id=self.cycle_id,
            start_date=self.start_date,
            end_date=self.end_date,
            flow_intensity=self.flow_intensity,
            tags=frozenset(self.tags),
            notes=self.notes,
        )

    @classmethod
    def from_record(cls, record: CycleRecord) -> CycleRead:
        return cls(
            cycle_id=record.cycle_id,
            start_date=record.start_date,
            end_date=record.end_date,
            flow_intensity=record.flow_intensity,
            tags=sorted(record.tags),
            notes=record.notes,
        )


# ---------- Symptom logs ----------

class SymptomCreate(CyclecastBase):
    symptom_date: date = Field(alias="date")
    type: str = Field(min_length=1)
    intensity: int = Field(ge=1, le=5)
    notes: str | None = None

    @field_validator("symptom_date", mode="before")
    @classmethod
    def drop_time_of_day(cls, v: object) -> object:
        return strip_time(v)

    @field_validator("notes")
    @classmethod
    def blank_notes_to_none(cls, v: str | None) -> str | None:
        return v or None


class SymptomRead(SymptomCreate):
    symptom_id: uuid.UUID

    def to_record(self) -> SymptomRecord:
        return SymptomRecord(
            symptom_id=self.symptom_id,
            date=self.symptom_date,
            type=self.type,
            intensity=self.intensity,
            notes=self.notes,
        )

    @classmethod
    def from_record(cls, record: SymptomRecord) -> SymptomRead:
        return cls(
            symptom_id=record.symptom_id,
            symptom_date=record.date,
            type=record.type,
            intensity=record.intensity,
            notes=record.notes,
        )


# ---------- Profile / settings ----------

class NotificationSettings(CyclecastBase):
    period_reminder: bool = True
    ovulation_reminder: bool = True
    pms_alert: bool = True

    def to_preferences(self) -> NotificationPreferences:
        return NotificationPreferences(
            period_reminder=self.period_reminder,
            ovulation_reminder=self.ovulation_reminder,
            pms_alert=self.pms_alert,
        )


class ProfileCreate(CyclecastBase):
    """Baseline supplied alongside the very first period log.

    Unset fields take the configured profile defaults.
    """

    average_cycle_length: int | None = Field(default=None, ge=20, le=45)
    average_period_length: int | None = Field(default=None, ge=2, le=10)
    theme: Theme | None = None
    notifications: NotificationSettings | None = None


class ProfileUpdate(ProfileCreate):
    pass


class ProfileRead(CyclecastBase, TimestampMixin):
    average_cycle_length: int = Field(ge=1)
    average_period_length: int = Field(ge=1)
    last_period_date: date | None = None
    theme: Theme = Theme.light
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)

    def to_profile(self) -> UserProfile:
        return UserProfile(
            average_cycle_length=self.average_cycle_length,
            average_period_length=self.average_period_length,
            created_at=self.created_at,
            last_period_date=self.last_period_date,
            theme=self.theme,
            notifications=self.notifications.to_preferences(),
        )

    @classmethod
    def from_profile(cls, profile: UserProfile) -> ProfileRead:
        n = profile.notifications
        return cls(
            average_cycle_length=profile.average_cycle_length,
            average_period_length=profile.average_period_length,
            created_at=profile.created_at,
            last_period_date=profile.last_period_date,
            theme=profile.theme,
            notifications=NotificationSettings(
                period_reminder=n.period_reminder,
                ovulation_reminder=n.ovulation_reminder,
                pms_alert=n.pms_alert,
            ),
        )


# ---------- Persisted / exported document ----------

class ExportDocument(CyclecastBase):
    """Everything the tracker knows, as written to disk and exported."""

    cycles: list[CycleRead] = Field(default_factory=list)
    symptoms: list[SymptomRead] = Field(default_factory=list)
    profile: ProfileRead | None = None
    export_date: datetime = Field(default_factory=utc_now)
    version: str = EXPORT_VERSION

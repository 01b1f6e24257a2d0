"""Shared Pydantic base models and utilities."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def strip_time(value: object) -> object:
    """Reduce a datetime to its calendar date; pass anything else through."""
    if isinstance(value, datetime):
        return value.date()
    return value


class CyclecastBase(BaseModel):
    """Base model with shared config for all Cyclecast schemas."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class TimestampMixin(BaseModel):
    created_at: datetime = Field(default_factory=utc_now)

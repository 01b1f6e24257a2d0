"""Cycle analytics engine.

Turns the logged history into backward-looking statistics:

- Average cycle length (mean of usable start-to-start gaps)
- Regularity score (heuristic variance penalty, 0–100)
- Symptom frequency counts
- Average period duration

A *usable gap* is the day difference between two consecutive period starts
(most recent first) that falls in ``1..max_usable_gap_days``.  Anything
outside that range is a mis-logged or missing cycle and is silently dropped,
never corrected.

The regularity score ``100 - 2 * variance`` is a display heuristic,
not a statistical confidence measure.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Sequence

from src.cycles.base import (
    AnalyticsSummary,
    CycleLengthPoint,
    CycleRecord,
    SymptomRecord,
    UserProfile,
    round_half_up,
)
from src.cycles.config_loader import CycleConfig, get_cycle_config

logger = logging.getLogger("cyclecast.cycles.analytics")


def most_recent_first(cycles: Iterable[CycleRecord]) -> list[CycleRecord]:
    """Return cycles ordered by start date, newest first.

    Callers usually hand in store order already, but nothing here relies on it.
    """
    return sorted(cycles, key=lambda c: c.start_date, reverse=True)


class CycleAnalytics:
    """Compute analytics over a snapshot of cycle and symptom records.

    Usage::

        analytics = CycleAnalytics()
        summary = analytics.summarize(cycles, symptoms, profile)
        print(summary.average_cycle_length, summary.cycle_regularity)
    """

    def __init__(self, config: CycleConfig | None = None) -> None:
        self._config = config or get_cycle_config()

    def usable_gaps(self, cycles: Sequence[CycleRecord]) -> list[int]:
        """Return the usable start-to-start gaps, most recent pair first.

        Args:
            cycles: Cycle history in any order.

        Returns:
            Gap lengths in days, each in ``1..max_usable_gap_days``.
        """
        max_gap = self._config.cycle_length.max_usable_gap_days
        ordered = most_recent_first(cycles)

        gaps: list[int] = []
        for later, earlier in zip(ordered, ordered[1:]):
            days_diff = (later.start_date - earlier.start_date).days
            if 0 < days_diff <= max_gap:
                gaps.append(days_diff)
            else:
                logger.debug(
                    "Excluding gap of %d days between %s and %s",
                    days_diff, earlier.start_date, later.start_date,
                )
        return gaps

    def average_cycle_length(
        self,
        cycles: Sequence[CycleRecord],
        fallback: int | None = None,
    ) -> int:
        """Mean of the usable gaps, rounded half-up.

        Args:
            cycles:   Cycle history in any order.
            fallback: Returned when there is no usable gap.  Defaults to the
                      configured ``default_cycle_length`` (28).

        Returns:
            Average cycle length in whole days.
        """
        if fallback is None:
            fallback = self._config.prediction.default_cycle_length

        gaps = self.usable_gaps(cycles)
        if not gaps:
            logger.debug("No usable cycle gaps; falling back to %d days", fallback)
            return fallback
        return round_half_up(sum(gaps) / len(gaps))

    def regularity(self, gaps: Sequence[int], average: int) -> int:
        """Heuristic regularity score in ``[0, 100]``.

        Variance is taken around ``average`` (the rounded mean, or the
        fallback) and counts as zero with fewer than two gaps.
        """
        if len(gaps) > 1:
            variance = sum((g - average) ** 2 for g in gaps) / len(gaps)
        else:
            variance = 0.0
        score = 100 - self._config.variance_penalty * variance
        return round_half_up(min(100.0, max(0.0, score)))

    def period_duration(self, cycles: Sequence[CycleRecord]) -> int:
        """Average inclusive period length over cycles with a known end."""
        lengths = [c.period_length for c in cycles if c.period_length is not None]
        if not lengths:
            return self._config.period.default_duration_days
        return round_half_up(sum(lengths) / len(lengths))

    def recent_cycles(self, cycles: Sequence[CycleRecord]) -> tuple[CycleRecord, ...]:
        """The configured number (6) of most recent cycles, newest first."""
        return tuple(most_recent_first(cycles)[: self._config.cycle_length.recent_cycles])

    def summarize(
        self,
        cycles: Sequence[CycleRecord],
        symptoms: Sequence[SymptomRecord],
        profile: UserProfile | None = None,
    ) -> AnalyticsSummary:
        """Build the full analytics summary.

        Args:
            cycles:   Cycle history in any order.
            symptoms: Symptom history (may be empty).
            profile:  Supplies the fallback cycle length when present.

        Returns:
            AnalyticsSummary.
        """
        fallback = (
            profile.average_cycle_length
            if profile is not None
            else self._config.prediction.default_cycle_length
        )
        average = self.average_cycle_length(cycles, fallback)
        gaps = self.usable_gaps(cycles)

        return AnalyticsSummary(
            average_cycle_length=average,
            cycle_regularity=self.regularity(gaps, average),
            common_symptoms=dict(Counter(s.type for s in symptoms)),
            period_duration=self.period_duration(cycles),
            recent_cycles=self.recent_cycles(cycles),
        )

    def cycle_length_trend(self, cycles: Sequence[CycleRecord]) -> list[CycleLengthPoint]:
        """Usable gaps across the recent cycles, oldest first, for charting.

        Each point is labelled with the start date of the later cycle.
        """
        max_gap = self._config.cycle_length.max_usable_gap_days
        chronological = list(reversed(self.recent_cycles(cycles)))

        points: list[CycleLengthPoint] = []
        for current, nxt in zip(chronological, chronological[1:]):
            days_diff = (nxt.start_date - current.start_date).days
            if 0 < days_diff <= max_gap:
                points.append(CycleLengthPoint(start_date=nxt.start_date, length=days_diff))
        return points

    @staticmethod
    def top_symptoms(counts: dict[str, int], limit: int = 5) -> list[tuple[str, int]]:
        """Most frequent symptoms, highest count first (ties keep input order)."""
        ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
        return ranked[:limit]

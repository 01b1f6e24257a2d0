"""Record store for cycles, symptoms, and the user profile.

The store owns the only mutable state in Cyclecast.  The engine never sees it
directly: callers take an immutable ``StoreSnapshot`` and hand its tuples to
the analytics, prediction, and calendar components.

Writes are serialized with a single lock (one writer at a time) and, when a
backend is attached, saved before the change becomes visible in memory.
``JsonFileBackend`` stores dates as ISO calendar dates so they round-trip
without time-zone drift.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from pydantic import ValidationError

from src.cycles.base import CycleRecord, SymptomRecord, UserProfile
from src.models.tracking import (
    CycleCreate,
    CycleRead,
    ExportDocument,
    ProfileRead,
    SymptomCreate,
    SymptomRead,
)

logger = logging.getLogger("cyclecast.cycles.store")


class StoreError(RuntimeError):
    """Raised when persisted data cannot be read or written."""


class ProfileNotInitializedError(LookupError):
    """Raised when a profile operation needs a profile that does not exist yet."""


@dataclass(frozen=True)
class StoreSnapshot:
    """A consistent, read-only view of the store at one point in time.

    Attributes:
        cycles:   Cycle records, most recent start first.
        symptoms: Symptom records, most recent date first.
        profile:  The user profile, or None before the first period log.
    """

    cycles: tuple[CycleRecord, ...]
    symptoms: tuple[SymptomRecord, ...]
    profile: UserProfile | None


# ---------------------------------------------------------------------------
# Persistence backend
# ---------------------------------------------------------------------------


class JsonFileBackend:
    """Persist the store as a single JSON document on disk.

    Usage::

        backend = JsonFileBackend(Path("~/.cyclecast/data.json").expanduser())
        store = CycleStore(backend)
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> ExportDocument | None:
        """Read the document, or return None if nothing has been saved yet.

        Raises:
            StoreError: If the file exists but is not a valid document.
        """
        if not self.path.exists():
            return None
        try:
            return ExportDocument.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            raise StoreError(f"Cannot read tracker data from {self.path}: {exc}") from exc

    def save(self, document: ExportDocument) -> None:
        """Write the document atomically (temp file, then rename).

        Raises:
            StoreError: If the file cannot be written.
        """
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(document.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as exc:
            raise StoreError(f"Cannot write tracker data to {self.path}: {exc}") from exc

    def delete(self) -> None:
        """Remove the data file if it exists.

        Raises:
            StoreError: If the file exists but cannot be removed.
        """
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot delete tracker data at {self.path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class CycleStore:
    """In-memory record store with optional persistence.

    Cycles and symptoms are append-only; the only destructive operation is
    ``clear_all()``.

    Every write builds the new record lists, hands them to the backend, and
    only then swaps them in.  The lists held by the store are never mutated
    in place, so a reader always sees the last committed state, and a write
    the backend rejects leaves memory untouched.
    """

    def __init__(self, backend: JsonFileBackend | None = None) -> None:
        self._backend = backend
        # Re-entrant: a backend reading the store mid-write sees committed state
        self._lock = threading.RLock()
        self._cycles: list[CycleRecord] = []
        self._symptoms: list[SymptomRecord] = []
        self._profile: UserProfile | None = None

        if backend is not None:
            document = backend.load()
            if document is not None:
                self._restore(document)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def all_cycles(self) -> tuple[CycleRecord, ...]:
        with self._lock:
            return tuple(self._cycles)

    def all_symptoms(self) -> tuple[SymptomRecord, ...]:
        with self._lock:
            return tuple(self._symptoms)

    def current_profile(self) -> UserProfile | None:
        with self._lock:
            return self._profile

    def snapshot(self) -> StoreSnapshot:
        with self._lock:
            return StoreSnapshot(
                cycles=tuple(self._cycles),
                symptoms=tuple(self._symptoms),
                profile=self._profile,
            )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def append_cycle(
        self, entry: CycleCreate, initial_profile: UserProfile | None = None
    ) -> CycleRecord:
        """Append a validated period log and return the stored record.

        Args:
            entry:           Validated period log.
            initial_profile: Committed in the same write when the store has
                             no profile yet; ignored otherwise.

        Raises:
            StoreError: If the backend rejects the write (nothing is applied).
        """
        record = CycleRead(cycle_id=uuid4(), **entry.model_dump()).to_record()
        with self._lock:
            cycles = sorted([*self._cycles, record], key=lambda c: c.start_date, reverse=True)
            profile = self._profile if self._profile is not None else initial_profile
            self._commit(cycles, self._symptoms, profile)
        logger.debug("Appended cycle %s starting %s", record.cycle_id, record.start_date)
        return record

    def append_symptom(self, entry: SymptomCreate) -> SymptomRecord:
        """Append a validated symptom log and return the stored record."""
        record = SymptomRead(symptom_id=uuid4(), **entry.model_dump()).to_record()
        with self._lock:
            symptoms = sorted([*self._symptoms, record], key=lambda s: s.date, reverse=True)
            self._commit(self._cycles, symptoms, self._profile)
        logger.debug("Appended symptom %r on %s", record.type, record.date)
        return record

    def set_profile(self, profile: UserProfile) -> None:
        with self._lock:
            self._commit(self._cycles, self._symptoms, profile)

    def clear_all(self) -> None:
        """Delete every cycle, symptom, and the profile, including on disk.

        Raises:
            StoreError: If the data file cannot be removed (nothing is cleared).
        """
        with self._lock:
            if self._backend is not None:
                try:
                    self._backend.delete()
                except StoreError as exc:
                    logger.warning("Clear not applied, tracker data kept: %s", exc)
                    raise
            self._cycles = []
            self._symptoms = []
            self._profile = None

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_document(self) -> ExportDocument:
        with self._lock:
            return self._build_document(self._cycles, self._symptoms, self._profile)

    @staticmethod
    def _build_document(
        cycles: list[CycleRecord],
        symptoms: list[SymptomRecord],
        profile: UserProfile | None,
    ) -> ExportDocument:
        return ExportDocument(
            cycles=[CycleRead.from_record(c) for c in cycles],
            symptoms=[SymptomRead.from_record(s) for s in symptoms],
            profile=ProfileRead.from_profile(profile) if profile else None,
        )

    def _restore(self, document: ExportDocument) -> None:
        self._cycles = sorted(
            (c.to_record() for c in document.cycles),
            key=lambda c: c.start_date,
            reverse=True,
        )
        self._symptoms = sorted(
            (s.to_record() for s in document.symptoms),
            key=lambda s: s.date,
            reverse=True,
        )
        self._profile = document.profile.to_profile() if document.profile else None
        logger.info(
            "Restored %d cycles and %d symptoms (format v%s)",
            len(self._cycles), len(self._symptoms), document.version,
        )

    def _commit(
        self,
        cycles: list[CycleRecord],
        symptoms: list[SymptomRecord],
        profile: UserProfile | None,
    ) -> None:
        # Caller holds self._lock; state is swapped in only after a successful save
        if self._backend is not None:
            try:
                self._backend.save(self._build_document(cycles, symptoms, profile))
            except StoreError as exc:
                logger.warning("Write not applied, tracker data unchanged: %s", exc)
                raise
        self._cycles = cycles
        self._symptoms = symptoms
        self._profile = profile

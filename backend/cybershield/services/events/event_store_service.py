# backend/cybershield/services/events/event_store_service.py

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Type, TypeVar
from datetime import datetime
import logging
import threading

from pydantic import ValidationError

from cybershield.core.errors import InternalInconsistency, InvalidInput, NotFound
from cybershield.schemas.records import (
    Alert,
    DeepfakeAnalysis,
    HoneypotLog,
    PhishingAnalysis,
    STATS_COUNTERS,
    StoredRecord,
    SystemStats,
    Threat,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=StoredRecord)

RECORD_TYPES = (PhishingAnalysis, DeepfakeAnalysis, HoneypotLog, Threat, Alert)


class _Table:
    """One record type: id counter + rows keyed by id."""

    def __init__(self) -> None:
        self.next_id = 1
        self.rows: Dict[int, StoredRecord] = {}


class EventStore:
    """
    In-memory, append-only store for every record the dashboard keeps,
    plus the SystemStats singleton.

    - ids are per-type, start at 1 and strictly increase in insertion order
    - id and timestamp are assigned here and never change afterwards
    - every read hands out a deep copy, so callers can't mutate stored rows
    - one re-entrant lock serializes all writes and counter updates;
      `atomic()` lets a caller group several of them into one critical section
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._tables: Dict[type, _Table] = {kind: _Table() for kind in RECORD_TYPES}
        self._stats = SystemStats(updated_at=clock())

    @contextmanager
    def atomic(self) -> Iterator["EventStore"]:
        with self._lock:
            yield self

    def _table(self, kind: type) -> _Table:
        try:
            return self._tables[kind]
        except KeyError:
            raise InvalidInput(f"Unknown record type {kind!r}")

    # --------------------------------------------------------
    # Create / store
    # --------------------------------------------------------
    def store_record(self, record: R) -> R:
        """
        Insert a record and return the stored copy with id + timestamp set.
        Whatever id/timestamp the caller passed in is ignored.
        """
        kind = type(record)
        with self._lock:
            table = self._table(kind)
            stored = record.model_copy(
                update={
                    "id": table.next_id,
                    kind.TIMESTAMP_FIELD: self._clock(),
                },
                deep=True,
            )
            table.rows[stored.id] = stored
            table.next_id += 1
            return stored.model_copy(deep=True)

    # --------------------------------------------------------
    # Read single
    # --------------------------------------------------------
    def get_record(self, kind: Type[R], record_id: int) -> R:
        with self._lock:
            row = self._table(kind).rows.get(record_id)
            if row is None:
                raise NotFound(kind.__name__, record_id)
            return row.model_copy(deep=True)

    def ensure_exists(self, kind: type, record_id: int) -> None:
        """Used before writing a reference to `record_id` into another record."""
        with self._lock:
            if record_id not in self._table(kind).rows:
                raise InternalInconsistency(
                    f"Reference to missing {kind.__name__} {record_id}"
                )

    # --------------------------------------------------------
    # Read list
    # --------------------------------------------------------
    def list_records(
        self,
        kind: Type[R],
        where: Optional[Callable[[R], bool]] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[R]:
        """
        Newest first: timestamp desc, ties broken by id desc.
        Returns [] on an empty table or an out-of-range offset.
        """
        if limit < 0 or offset < 0:
            raise InvalidInput("limit and offset must be >= 0")

        with self._lock:
            rows = list(self._table(kind).rows.values())
            if where is not None:
                rows = [r for r in rows if where(r)]
            rows.sort(
                key=lambda r: (getattr(r, kind.TIMESTAMP_FIELD), r.id),
                reverse=True,
            )
            return [r.model_copy(deep=True) for r in rows[offset:offset + limit]]

    def count_records(
        self, kind: type, where: Optional[Callable[[Any], bool]] = None
    ) -> int:
        with self._lock:
            rows = self._table(kind).rows.values()
            if where is None:
                return len(rows)
            return sum(1 for r in rows if where(r))

    # --------------------------------------------------------
    # Partial update
    # --------------------------------------------------------
    def update_record_field(
        self, kind: Type[R], record_id: int, field: str, value: Any
    ) -> R:
        if field in ("id", kind.TIMESTAMP_FIELD):
            raise InvalidInput(f"{kind.__name__}.{field} is immutable")
        if field not in kind.model_fields:
            raise InvalidInput(f"{kind.__name__} has no field {field!r}")

        with self._lock:
            table = self._table(kind)
            row = table.rows.get(record_id)
            if row is None:
                raise NotFound(kind.__name__, record_id)
            if field in kind.ONE_WAY_FIELDS and getattr(row, field) and not value:
                raise InvalidInput(f"{kind.__name__}.{field} cannot be cleared once set")
            try:
                updated = kind.model_validate({**row.model_dump(), field: value})
            except ValidationError as exc:
                raise InvalidInput(f"Invalid value for {kind.__name__}.{field}: {exc}") from exc
            table.rows[record_id] = updated
            return updated.model_copy(deep=True)

    def update_records_where(
        self, kind: type, where: Callable[[Any], bool], field: str, value: Any
    ) -> int:
        """Set `field` on every matching row; returns how many rows changed."""
        changed = 0
        with self._lock:
            for record_id, row in list(self._table(kind).rows.items()):
                if where(row):
                    self.update_record_field(kind, record_id, field, value)
                    changed += 1
        return changed

    # --------------------------------------------------------
    # System stats singleton
    # --------------------------------------------------------
    def get_stats(self) -> SystemStats:
        with self._lock:
            return self._stats.model_copy()

    def increment_stats(self, **deltas: int) -> SystemStats:
        """
        Read-modify-write on the singleton, e.g. increment_stats(honeypot_hits=1).
        Counters never go down.
        """
        with self._lock:
            current = self._stats.model_dump()
            for name, delta in deltas.items():
                if name not in STATS_COUNTERS:
                    raise InternalInconsistency(f"Unknown stats counter {name!r}")
                new_value = current[name] + delta
                if delta < 0 or new_value < 0:
                    raise InternalInconsistency(
                        f"Stats counter {name} would drop from {current[name]} to {new_value}"
                    )
                current[name] = new_value
            current["updated_at"] = self._clock()
            self._stats = SystemStats(**current)
            return self._stats.model_copy()


event_store = EventStore()

"""
In-memory record store tagged with the schema version its records satisfy.

A store is owned by exactly one active API version.  Migration never edits a
store in place: it reads a deep-copied snapshot and builds a brand-new store,
so the old one stays readable and writable until it is discarded.
Every write bumps ``revision``, which lets a publisher detect writes that
landed after its snapshot was taken.
"""

from __future__ import annotations

import copy
import threading
from typing import Any, Dict, Iterator, Mapping, Optional

Record = Dict[str, Any]


class RecordStore:
    """Mapping of record id -> record, tagged with a schema version."""

    def __init__(
        self, version: int, records: Optional[Mapping[str, Record]] = None
    ) -> None:
        self._version = version
        self._records: dict[str, Record] = {}
        self._lock = threading.Lock()
        self._revision = 0
        for record_id, record in (records or {}).items():
            self._put(record_id, record)

    @property
    def version(self) -> int:
        return self._version

    @property
    def revision(self) -> int:
        """Count of writes made through ``put`` and ``delete``."""
        with self._lock:
            return self._revision

    def get(self, record_id: str) -> Optional[Record]:
        with self._lock:
            return self._records.get(record_id)

    def put(self, record_id: str, record: Record) -> None:
        """Insert or replace the record stored under *record_id*."""
        with self._lock:
            self._put(record_id, record)
            self._revision += 1

    def delete(self, record_id: str) -> bool:
        with self._lock:
            removed = self._records.pop(record_id, None) is not None
            if removed:
                self._revision += 1
            return removed

    def all(self) -> list[Record]:
        with self._lock:
            return list(self._records.values())

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._records)

    def snapshot(self) -> dict[str, Record]:
        """Return a deep copy of every record, taken under the store lock."""
        with self._lock:
            return copy.deepcopy(self._records)

    def _put(self, record_id: str, record: Record) -> None:
        if not isinstance(record_id, str) or not record_id:
            raise ValueError(f"Record id must be a non-empty string, got {record_id!r}")
        if not isinstance(record, dict):
            raise TypeError(
                f"Record '{record_id}' must be a dict, got {type(record).__name__}"
            )
        self._records[record_id] = record

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        with self._lock:
            return record_id in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordStore):
            return NotImplemented
        return self.version == other.version and self.snapshot() == other.snapshot()

    def __repr__(self) -> str:
        return f"RecordStore(version={self._version}, records={len(self)})"

"""
State migrator: carries a whole record store across schema versions.

Migration is all-or-nothing from the caller's point of view.  Every record
is pushed through the full step chain into a brand-new store; if any record
fails, the migration aborts with ``RecordMigrationError`` and no partial
store is returned.  The source store is never edited.

``VersionedState`` owns the live store for the active API version and
publishes a migrated store with a single reference swap.  Transitions are
serialized, so two migrations never race to produce the current store.  A
transition whose source store was written to after its snapshot is
rejected with ``StaleSnapshotError`` instead of publishing a store that
lacks those writes.

Usage::

    from versionaware.migrator import StateMigrator, VersionedState

    migrator = StateMigrator(migrations)
    v4_store = migrator.migrate(v3_store, 4)

    state = VersionedState(v1_store, migrator)
    state.transition(4)
    state.current().version  # -> 4
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from typing import Optional

from versionaware.config import get_config
from versionaware.errors import (
    RecordMigrationError,
    StaleSnapshotError,
    VersionAwareError,
)
from versionaware.logger import MigrationLogger
from versionaware.migrations import MigrationRegistry, MigrationStep, Record
from versionaware.otel import emit_migration_completed, emit_migration_failed
from versionaware.store import RecordStore

logger = logging.getLogger(__name__)


class StateMigrator:
    """Applies migration chains to record stores."""

    def __init__(
        self,
        migrations: MigrationRegistry,
        events: Optional[MigrationLogger] = None,
        emit_events: Optional[bool] = None,
    ) -> None:
        self._migrations = migrations
        self._events = events or MigrationLogger()
        if emit_events is None:
            emit_events = get_config().emit_span_events
        self._emit_events = emit_events

    def migrate(self, store: RecordStore, target_version: int) -> RecordStore:
        """Return a new store holding every record of *store* at *target_version*.

        Raises:
            NoPathError: If the step chain to *target_version* is incomplete.
            RecordMigrationError: If any record's transform fails.
        """
        source_version = store.version
        try:
            chain = self._migrations.chain_from(source_version, target_version)
            snapshot = store.snapshot()
            self._events.log_migration_started(
                source_version, target_version, len(snapshot), steps=len(chain)
            )

            started = time.monotonic()
            migrated = {
                record_id: self._migrate_record(record_id, record, chain)
                for record_id, record in snapshot.items()
            }
            result = RecordStore(target_version, migrated)
        except VersionAwareError as exc:
            self._events.log_migration_failed(
                source_version,
                target_version,
                str(exc),
                record_id=getattr(exc, "record_id", None),
            )
            if self._emit_events:
                emit_migration_failed(source_version, target_version, exc)
            raise

        duration = round(time.monotonic() - started, 6)
        self._events.log_migration_completed(
            source_version, target_version, len(result), duration_seconds=duration
        )
        if self._emit_events:
            emit_migration_completed(
                source_version, target_version, len(result), len(chain)
            )
        return result

    @staticmethod
    def _migrate_record(
        record_id: str, record: Record, chain: list[MigrationStep]
    ) -> Record:
        current = record
        for step in chain:
            try:
                current = step.apply(copy.deepcopy(current))
                if not isinstance(current, dict):
                    raise TypeError(
                        f"transform returned {type(current).__name__}, expected dict"
                    )
            except Exception as exc:
                raise RecordMigrationError(
                    record_id, step.from_version, step.to_version, exc
                ) from exc
        return current


class VersionedState:
    """Holds the live store and swaps it atomically on version transitions."""

    def __init__(
        self,
        store: RecordStore,
        migrator: StateMigrator,
        events: Optional[MigrationLogger] = None,
    ) -> None:
        self._store = store
        self._migrator = migrator
        self._events = events or MigrationLogger()
        self._publish_lock = threading.Lock()
        self._migration_lock = threading.Lock()

    def current(self) -> RecordStore:
        """Return the published store."""
        with self._publish_lock:
            return self._store

    @property
    def version(self) -> int:
        return self.current().version

    def transition(self, target_version: int) -> RecordStore:
        """Migrate the live store to *target_version* and publish it.

        The previous store stays published and usable until the new one is
        complete.  On failure nothing is published and the error propagates.

        Raises:
            StaleSnapshotError: If the live store was written to after the
                migration snapshot was taken.
        """
        with self._migration_lock:
            source = self.current()
            revision = source.revision
            migrated = self._migrator.migrate(source, target_version)
            with self._publish_lock:
                actual = source.revision
                if actual != revision:
                    error = StaleSnapshotError(
                        source.version, target_version, revision, actual
                    )
                    logger.warning("Transition discarded: %s", error)
                    self._events.log_migration_failed(
                        source.version, target_version, str(error)
                    )
                    raise error
                self._store = migrated
            logger.info(
                "Published store v%d (was v%d, %d records)",
                migrated.version,
                source.version,
                len(migrated),
            )
            self._events.log_state_published(source.version, migrated.version)
            return migrated

"""
Structured logging for migration events.

Outputs one JSON object per event (or a plain ``key=value`` line when
``log_format`` is ``text``) on the ``versionaware.events`` logger.  Only
state-changing events are logged here; per-field compatibility detail goes
through module loggers and OTel span events instead.

Logged events:
- migration.started
- migration.completed
- migration.failed
- state.published

Usage:
    from versionaware.logger import MigrationLogger

    events = MigrationLogger()
    events.log_migration_started(from_version=3, to_version=4, record_count=10)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from versionaware.config import get_config

_events_logger = logging.getLogger("versionaware.events")
_events_logger.setLevel(logging.INFO)

# Default handler writes one line per event to stdout
if not _events_logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    _events_logger.addHandler(handler)


class MigrationLogger:
    """
    Structured logger for state migration events.

    Each entry carries ``timestamp``, ``level``, ``event`` and ``service``
    plus event-specific version and count fields.
    """

    def __init__(
        self,
        service_name: Optional[str] = None,
        log_format: Optional[str] = None,
        extra_labels: Optional[Dict[str, str]] = None,
    ):
        config = get_config()
        self.service_name = service_name or config.service_name
        self.log_format = log_format or config.log_format
        self.extra_labels = extra_labels or {}
        self._logger = _events_logger
        self._logger.setLevel(config.log_level.upper())

    def _emit(self, event: str, level: str = "info", **fields: Any) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "service": self.service_name,
        }
        entry.update({k: v for k, v in fields.items() if v is not None})
        if self.extra_labels:
            entry["labels"] = self.extra_labels

        if self.log_format == "text":
            line = " ".join(f"{k}={v}" for k, v in entry.items())
        else:
            line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(line)
        elif level == "warn":
            self._logger.warning(line)
        else:
            self._logger.info(line)

    def log_migration_started(
        self, from_version: int, to_version: int, record_count: int, steps: int = 0
    ) -> None:
        """Log the start of a store migration."""
        self._emit(
            event="migration.started",
            from_version=from_version,
            to_version=to_version,
            record_count=record_count,
            steps=steps,
        )

    def log_migration_completed(
        self,
        from_version: int,
        to_version: int,
        record_count: int,
        duration_seconds: Optional[float] = None,
    ) -> None:
        """Log a migration that produced a complete new store."""
        self._emit(
            event="migration.completed",
            from_version=from_version,
            to_version=to_version,
            record_count=record_count,
            duration_seconds=duration_seconds,
        )

    def log_migration_failed(
        self,
        from_version: int,
        to_version: int,
        error: str,
        record_id: Optional[str] = None,
    ) -> None:
        """Log an aborted migration; the source store is left untouched."""
        self._emit(
            event="migration.failed",
            level="error",
            from_version=from_version,
            to_version=to_version,
            record_id=record_id,
            error=error,
        )

    def log_state_published(self, from_version: int, to_version: int) -> None:
        """Log the swap of the live store to a new version."""
        self._emit(
            event="state.published",
            from_version=from_version,
            to_version=to_version,
        )

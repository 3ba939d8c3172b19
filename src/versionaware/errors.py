"""
Exception taxonomy for versionaware.

Every error here reflects a configuration or data defect rather than a
transient condition, so nothing in the package retries.  Callers fix the
registry, schema or transform and re-invoke.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from versionaware.schema import CompatibilityReport, FieldIncompatibility


class VersionAwareError(Exception):
    """Base class for all versionaware errors."""


# ---------------------------------------------------------------------------
# Schema registry misuse
# ---------------------------------------------------------------------------


class DuplicateVersionError(VersionAwareError):
    """Raised when a schema version is registered twice."""

    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"Schema version {version} is already registered")


class OutOfOrderVersionError(VersionAwareError):
    """Raised when a version is not strictly greater than the latest one."""

    def __init__(self, version: int, latest: int) -> None:
        self.version = version
        self.latest = latest
        super().__init__(
            f"Schema version {version} registered out of order "
            f"(latest is {latest})"
        )


class EmptyRegistryError(VersionAwareError):
    """Raised when the latest schema is requested from an empty registry."""

    def __init__(self) -> None:
        super().__init__("No schema versions registered")


class UnknownVersionError(VersionAwareError):
    """Raised when a version is referenced but was never registered."""

    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"Schema version {version} is not registered")


# ---------------------------------------------------------------------------
# Compatibility
# ---------------------------------------------------------------------------


class IncompatibleSchemaError(VersionAwareError):
    """Raised when a schema pair fails a compatibility check.

    Carries the full report so every breaking field can be fixed in one pass.
    """

    def __init__(self, report: "CompatibilityReport") -> None:
        self.report = report
        fields = ", ".join(i.field for i in report.incompatibilities)
        super().__init__(
            f"Schema v{report.new_version} is not {report.direction.value}-"
            f"compatible with v{report.old_version}: [{fields}]"
        )

    @property
    def incompatibilities(self) -> list["FieldIncompatibility"]:
        return list(self.report.incompatibilities)


# ---------------------------------------------------------------------------
# Migration configuration
# ---------------------------------------------------------------------------


class ChainGapError(VersionAwareError):
    """Raised when a migration step would break the linear chain."""

    def __init__(self, from_version: int, to_version: int, reason: str) -> None:
        self.from_version = from_version
        self.to_version = to_version
        self.reason = reason
        super().__init__(
            f"Cannot register migration step {from_version} -> {to_version}: {reason}"
        )


class NoPathError(VersionAwareError):
    """Raised when no complete chain of steps connects two versions."""

    def __init__(
        self,
        from_version: int,
        to_version: int,
        missing: Optional[list[int]] = None,
    ) -> None:
        self.from_version = from_version
        self.to_version = to_version
        self.missing = list(missing or [])
        if self.missing:
            gaps = ", ".join(f"{v} -> {v + 1}" for v in self.missing)
            detail = f"missing step(s): {gaps}"
        else:
            detail = "downgrades are not supported"
        super().__init__(
            f"No migration path from version {from_version} to "
            f"{to_version} ({detail})"
        )


# ---------------------------------------------------------------------------
# Migration execution
# ---------------------------------------------------------------------------


class RecordMigrationError(VersionAwareError):
    """Raised when a single record fails to transform.

    Aborts the whole migration; the source store is left untouched.
    """

    def __init__(
        self,
        record_id: str,
        from_version: int,
        to_version: int,
        cause: BaseException,
    ) -> None:
        self.record_id = record_id
        self.from_version = from_version
        self.to_version = to_version
        self.cause = cause
        super().__init__(
            f"Record '{record_id}' failed migration step "
            f"{from_version} -> {to_version}: {cause!r}"
        )


class StaleSnapshotError(VersionAwareError):
    """Raised when the live store was written to while it was being migrated.

    The migrated store is discarded; re-run the transition once writes to the
    old store have stopped.
    """

    def __init__(
        self,
        from_version: int,
        to_version: int,
        expected_revision: int,
        actual_revision: int,
    ) -> None:
        self.from_version = from_version
        self.to_version = to_version
        self.expected_revision = expected_revision
        self.actual_revision = actual_revision
        super().__init__(
            f"Store v{from_version} changed during migration to v{to_version} "
            f"(revision {expected_revision} -> {actual_revision}); "
            f"nothing was published"
        )

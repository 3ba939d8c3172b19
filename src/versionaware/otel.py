"""
OTel span event emission helpers for compatibility checks and migrations.

Events are attached to the current span; nothing is recorded when the
current span is not recording (e.g. no SDK configured).

Usage::

    from versionaware.otel import (
        emit_compatibility_check,
        emit_migration_completed,
        emit_migration_failed,
    )

    emit_compatibility_check(report)
"""

from __future__ import annotations

from opentelemetry import trace as otel_trace

from versionaware.schema import CompatibilityReport


def add_span_event(
    name: str, attributes: dict[str, str | int | float | bool]
) -> None:
    """Add an event to the current OTel span if it is recording.

    Args:
        name: Event name (e.g. ``"schema.compatibility.check"``).
        attributes: Flat dict of span event attributes.
    """
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


def emit_compatibility_check(report: CompatibilityReport) -> None:
    """Emit a span event for a compatibility check.

    Event name: ``schema.compatibility.check``
    """
    attrs: dict[str, str | int | float | bool] = {
        "schema.direction": report.direction.value,
        "schema.old_version": report.old_version,
        "schema.new_version": report.new_version,
        "schema.compatible": report.compatible,
        "schema.fields_checked": report.fields_checked,
        "schema.incompatibility_count": len(report.incompatibilities),
        "schema.message": report.message,
    }
    if report.incompatibilities:
        attrs["schema.incompatible_fields"] = ",".join(report.fields())

    add_span_event("schema.compatibility.check", attrs)


def emit_migration_completed(
    from_version: int, to_version: int, record_count: int, steps: int
) -> None:
    """Event name: ``state.migration.completed``"""
    add_span_event(
        "state.migration.completed",
        {
            "migration.from_version": from_version,
            "migration.to_version": to_version,
            "migration.record_count": record_count,
            "migration.steps": steps,
        },
    )


def emit_migration_failed(
    from_version: int, to_version: int, error: Exception
) -> None:
    """Event name: ``state.migration.failed``"""
    attrs: dict[str, str | int | float | bool] = {
        "migration.from_version": from_version,
        "migration.to_version": to_version,
        "migration.error_type": type(error).__name__,
        "migration.error": str(error),
    }
    record_id = getattr(error, "record_id", None)
    if record_id is not None:
        attrs["migration.record_id"] = record_id

    add_span_event("state.migration.failed", attrs)

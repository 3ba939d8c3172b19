"""
Structural compatibility checker for schema versions.

Exposes two distinct guarantees, never conflated:

- **backward** (migration-safety): data written against the older schema
  can be carried into the newer one.  Removed fields, narrowed kinds,
  optional fields made required and new required fields without a default
  all break it.
- **substitution** (structural subtyping): a candidate schema can be used
  wherever the expected schema is.  Extra candidate fields are fine;
  missing required fields, wider kinds and loosened optionality break it.

Reports always list every incompatibility, not just the first.  Nested
``record`` fields and array ``items`` are compared recursively using
dot-paths (``address.city``, ``tags[]``).

API operations are compared the same way: a removed operation breaks both
guarantees, parameters are checked against what callers send
(contravariant) and results against what callers read (covariant).
Operation members are reported as ``addPerson:person.birth`` and
``getPerson:return``.

Usage::

    from versionaware.checker import CompatibilityChecker

    checker = CompatibilityChecker()
    report = checker.check_backward_compatible(v3, v4)
    checker.is_backward_compatible(v3, v4)  # raises IncompatibleSchemaError
"""

from __future__ import annotations

import logging
from typing import Optional

from versionaware.config import get_config
from versionaware.errors import IncompatibleSchemaError
from versionaware.otel import emit_compatibility_check
from versionaware.registry import SchemaRegistry
from versionaware.schema import (
    CompatibilityReport,
    FieldDescriptor,
    FieldIncompatibility,
    OperationDescriptor,
    SchemaChange,
    SchemaVersion,
)
from versionaware.types import (
    ChangeType,
    CompatibilityDirection,
    FieldKind,
    IncompatibilityType,
    is_widening,
)

logger = logging.getLogger(__name__)


class CompatibilityChecker:
    """Compares schema versions field by field and operation by operation."""

    def __init__(self, emit_events: Optional[bool] = None) -> None:
        if emit_events is None:
            emit_events = get_config().emit_span_events
        self._emit_events = emit_events

    # -- backward (migration-safety) ---------------------------------------

    def check_backward_compatible(
        self, older: SchemaVersion, newer: SchemaVersion
    ) -> CompatibilityReport:
        """Check that data of *older* can be safely carried into *newer*."""
        walker = _Walker()
        walker.backward(older.field_map(), newer.field_map(), "")
        walker.backward_operations(older.operation_map(), newer.operation_map())
        return self._finish(
            CompatibilityDirection.BACKWARD, older.version, newer.version, walker
        )

    def is_backward_compatible(
        self, older: SchemaVersion, newer: SchemaVersion
    ) -> None:
        """Raise ``IncompatibleSchemaError`` unless *newer* is backward-compatible."""
        report = self.check_backward_compatible(older, newer)
        if not report.compatible:
            raise IncompatibleSchemaError(report)

    # -- substitution (structural subtyping) -------------------------------

    def check_substitutable(
        self, candidate: SchemaVersion, expected: SchemaVersion
    ) -> CompatibilityReport:
        """Check that *candidate* can be used wherever *expected* is."""
        walker = _Walker()
        walker.substitution(candidate.field_map(), expected.field_map(), "")
        walker.substitution_operations(
            candidate.operation_map(), expected.operation_map()
        )
        return self._finish(
            CompatibilityDirection.SUBSTITUTION,
            expected.version,
            candidate.version,
            walker,
        )

    def is_substitutable(
        self, candidate: SchemaVersion, expected: SchemaVersion
    ) -> None:
        """Raise ``IncompatibleSchemaError`` unless *candidate* substitutes *expected*."""
        report = self.check_substitutable(candidate, expected)
        if not report.compatible:
            raise IncompatibleSchemaError(report)

    # -- registry-wide -----------------------------------------------------

    def check_registry(self, registry: SchemaRegistry) -> list[CompatibilityReport]:
        """Run the backward check over every consecutive version pair."""
        return [
            self.check_backward_compatible(older, newer)
            for older, newer in registry.pairs()
        ]

    @staticmethod
    def compare_versions(old: SchemaVersion, new: SchemaVersion) -> list[SchemaChange]:
        """List neutral changes between two versions, ordered by field path."""
        changes: list[SchemaChange] = []
        _diff(old.field_map(), new.field_map(), "", changes)
        _diff_operations(old.operation_map(), new.operation_map(), changes)
        return changes

    # -- internal helpers --------------------------------------------------

    def _finish(
        self,
        direction: CompatibilityDirection,
        old_version: int,
        new_version: int,
        walker: "_Walker",
    ) -> CompatibilityReport:
        compatible = not walker.issues
        report = CompatibilityReport(
            direction=direction,
            old_version=old_version,
            new_version=new_version,
            compatible=compatible,
            fields_checked=walker.checked,
            incompatibilities=walker.issues,
            message=self._build_message(compatible, walker.issues),
        )
        if compatible:
            logger.debug(
                "Schema check %s: v%d -> v%d compatible=True",
                direction.value,
                old_version,
                new_version,
            )
        else:
            logger.warning(
                "Schema check %s FAILED: v%d -> v%d incompatibilities=%s",
                direction.value,
                old_version,
                new_version,
                ",".join(report.fields()),
            )
        if self._emit_events:
            emit_compatibility_check(report)
        return report

    @staticmethod
    def _build_message(compatible: bool, issues: list[FieldIncompatibility]) -> str:
        if compatible:
            return "All fields compatible"
        return f"Incompatible: {len(issues)} field(s) break compatibility"


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


class _Walker:
    """Accumulates incompatibilities while walking two field or operation maps."""

    def __init__(self) -> None:
        self.issues: list[FieldIncompatibility] = []
        self.checked = 0

    def _add(
        self,
        path: str,
        kind: IncompatibilityType,
        detail: str,
        old: Optional[FieldDescriptor] = None,
        new: Optional[FieldDescriptor] = None,
    ) -> None:
        self.issues.append(
            FieldIncompatibility(
                field=path,
                type=kind,
                old_kind=old.kind if old else None,
                new_kind=new.kind if new else None,
                detail=detail,
            )
        )

    def backward(
        self,
        old_fields: dict[str, FieldDescriptor],
        new_fields: dict[str, FieldDescriptor],
        prefix: str,
    ) -> None:
        for name, old in old_fields.items():
            path = prefix + name
            self.checked += 1
            new = new_fields.get(name)
            if new is None:
                self._add(
                    path,
                    IncompatibilityType.REMOVED_FIELD,
                    f"Field '{path}' was removed",
                    old=old,
                )
                continue
            self._backward_field(old, new, path)

        for name, new in new_fields.items():
            if name in old_fields:
                continue
            path = prefix + name
            self.checked += 1
            if not new.optional and not new.has_default:
                self._add(
                    path,
                    IncompatibilityType.REQUIRED_ADDITION,
                    f"Required field '{path}' was added without a default",
                    new=new,
                )

    def _backward_field(
        self, old: FieldDescriptor, new: FieldDescriptor, path: str
    ) -> None:
        if not is_widening(old.kind, new.kind):
            self._add(
                path,
                IncompatibilityType.NARROWED_KIND,
                f"Field '{path}' changed kind '{old.kind.value}' -> "
                f"'{new.kind.value}'",
                old=old,
                new=new,
            )
            return
        if old.optional and not new.optional and not new.has_default:
            self._add(
                path,
                IncompatibilityType.MADE_REQUIRED,
                f"Optional field '{path}' became required without a default",
                old=old,
                new=new,
            )
        if new.kind == FieldKind.RECORD:
            self.backward(old.field_map(), new.field_map(), path + ".")
        elif new.kind == FieldKind.ARRAY:
            self._backward_field(old.items, new.items, path + "[]")

    def substitution(
        self,
        candidate_fields: dict[str, FieldDescriptor],
        expected_fields: dict[str, FieldDescriptor],
        prefix: str,
    ) -> None:
        for name, expected in expected_fields.items():
            path = prefix + name
            self.checked += 1
            candidate = candidate_fields.get(name)
            if candidate is None:
                if not expected.optional:
                    self._add(
                        path,
                        IncompatibilityType.MISSING_FIELD,
                        f"Required field '{path}' is missing from candidate",
                        old=expected,
                    )
                continue
            self._substitution_field(candidate, expected, path)

    def _substitution_field(
        self, candidate: FieldDescriptor, expected: FieldDescriptor, path: str
    ) -> None:
        if not is_widening(candidate.kind, expected.kind):
            self._add(
                path,
                IncompatibilityType.WIDENED_KIND,
                f"Field '{path}' is '{candidate.kind.value}' but "
                f"'{expected.kind.value}' is expected",
                old=expected,
                new=candidate,
            )
            return
        if candidate.optional and not expected.optional:
            self._add(
                path,
                IncompatibilityType.MADE_OPTIONAL,
                f"Field '{path}' is optional but required where expected",
                old=expected,
                new=candidate,
            )
        if expected.kind == FieldKind.RECORD:
            self.substitution(candidate.field_map(), expected.field_map(), path + ".")
        elif expected.kind == FieldKind.ARRAY:
            self._substitution_field(candidate.items, expected.items, path + "[]")

    # Operations: arguments flow from caller to operation, results back.

    def backward_operations(
        self,
        old_ops: dict[str, OperationDescriptor],
        new_ops: dict[str, OperationDescriptor],
    ) -> None:
        for name, old in old_ops.items():
            self.checked += 1
            new = new_ops.get(name)
            if new is None:
                self._add(
                    name,
                    IncompatibilityType.REMOVED_OPERATION,
                    f"Operation '{name}' was removed",
                )
                continue
            # Arguments sent by older callers must still be accepted
            self.backward(old.param_map(), new.param_map(), f"{name}:")
            if old.returns is None:
                continue
            path = f"{name}:return"
            if new.returns is None:
                self._add(
                    path,
                    IncompatibilityType.REMOVED_FIELD,
                    f"Operation '{name}' no longer returns a result",
                    old=old.returns,
                )
            else:
                # Older callers read the newer result
                self._substitution_field(new.returns, old.returns, path)

    def substitution_operations(
        self,
        candidate_ops: dict[str, OperationDescriptor],
        expected_ops: dict[str, OperationDescriptor],
    ) -> None:
        for name, expected in expected_ops.items():
            self.checked += 1
            candidate = candidate_ops.get(name)
            if candidate is None:
                self._add(
                    name,
                    IncompatibilityType.MISSING_OPERATION,
                    f"Operation '{name}' is missing from candidate",
                )
                continue
            # Params are contravariant: what callers of *expected* pass must
            # satisfy what *candidate* requires.
            self.substitution(
                expected.param_map(), candidate.param_map(), f"{name}:"
            )
            if expected.returns is None:
                continue
            path = f"{name}:return"
            if candidate.returns is None:
                self._add(
                    path,
                    IncompatibilityType.MISSING_FIELD,
                    f"Operation '{name}' returns nothing but a result is expected",
                    old=expected.returns,
                )
            else:
                self._substitution_field(candidate.returns, expected.returns, path)


def _diff(
    old_fields: dict[str, FieldDescriptor],
    new_fields: dict[str, FieldDescriptor],
    prefix: str,
    changes: list[SchemaChange],
) -> None:
    for name in sorted(new_fields.keys() - old_fields.keys()):
        changes.append(SchemaChange(type=ChangeType.ADD_FIELD, field=prefix + name))

    for name in sorted(old_fields.keys() - new_fields.keys()):
        changes.append(SchemaChange(type=ChangeType.REMOVE_FIELD, field=prefix + name))

    for name in sorted(old_fields.keys() & new_fields.keys()):
        old, new = old_fields[name], new_fields[name]
        _diff_field(old, new, prefix + name, changes)


def _diff_field(
    old: FieldDescriptor,
    new: FieldDescriptor,
    path: str,
    changes: list[SchemaChange],
) -> None:
    if old.kind != new.kind:
        changes.append(
            SchemaChange(
                type=ChangeType.CHANGE_FIELD_KIND,
                field=path,
                old=old.kind.value,
                new=new.kind.value,
            )
        )
        return
    if old.optional and not new.optional:
        changes.append(SchemaChange(type=ChangeType.MAKE_REQUIRED, field=path))
    elif not old.optional and new.optional:
        changes.append(SchemaChange(type=ChangeType.MAKE_OPTIONAL, field=path))

    if new.kind == FieldKind.RECORD:
        _diff(old.field_map(), new.field_map(), path + ".", changes)
    elif new.kind == FieldKind.ARRAY:
        _diff_field(old.items, new.items, path + "[]", changes)


def _diff_operations(
    old_ops: dict[str, OperationDescriptor],
    new_ops: dict[str, OperationDescriptor],
    changes: list[SchemaChange],
) -> None:
    for name in sorted(new_ops.keys() - old_ops.keys()):
        changes.append(SchemaChange(type=ChangeType.ADD_OPERATION, field=name))

    for name in sorted(old_ops.keys() - new_ops.keys()):
        changes.append(SchemaChange(type=ChangeType.REMOVE_OPERATION, field=name))

    for name in sorted(old_ops.keys() & new_ops.keys()):
        old, new = old_ops[name], new_ops[name]
        _diff(old.param_map(), new.param_map(), f"{name}:", changes)
        path = f"{name}:return"
        if old.returns is None and new.returns is not None:
            changes.append(SchemaChange(type=ChangeType.ADD_FIELD, field=path))
        elif old.returns is not None and new.returns is None:
            changes.append(SchemaChange(type=ChangeType.REMOVE_FIELD, field=path))
        elif old.returns is not None:
            _diff_field(old.returns, new.returns, path, changes)

"""
Core enums shared across versionaware modules.

Single source of truth for field kinds, compatibility directions and the
incompatibility / change vocabularies used in reports.
"""

from __future__ import annotations

from enum import Enum


class FieldKind(str, Enum):
    """Primitive kinds a schema field can carry."""
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    RECORD = "record"
    ARRAY = "array"


# kind -> kinds it may widen to (reflexive)
_WIDENS_TO: dict[FieldKind, frozenset[FieldKind]] = {
    FieldKind.INTEGER: frozenset({FieldKind.INTEGER, FieldKind.NUMBER}),
}


def is_widening(old: FieldKind, new: FieldKind) -> bool:
    """Return True when every *old* value is also a valid *new* value."""
    return new in _WIDENS_TO.get(old, frozenset({old}))


class CompatibilityDirection(str, Enum):
    """Which guarantee a compatibility check verifies."""
    BACKWARD = "backward"  # older data can be migrated to newer
    SUBSTITUTION = "substitution"  # candidate usable where expected is


class IncompatibilityType(str, Enum):
    """Reasons a field or operation breaks compatibility."""
    REMOVED_FIELD = "removed_field"
    NARROWED_KIND = "narrowed_kind"
    MADE_REQUIRED = "made_required"
    REQUIRED_ADDITION = "required_addition"
    REMOVED_OPERATION = "removed_operation"
    MISSING_FIELD = "missing_field"
    WIDENED_KIND = "widened_kind"
    MADE_OPTIONAL = "made_optional"
    MISSING_OPERATION = "missing_operation"


class ChangeType(str, Enum):
    """Neutral change vocabulary used by ``compare_versions``."""
    ADD_FIELD = "add_field"
    REMOVE_FIELD = "remove_field"
    CHANGE_FIELD_KIND = "change_field_kind"
    MAKE_REQUIRED = "make_required"
    MAKE_OPTIONAL = "make_optional"
    ADD_OPERATION = "add_operation"
    REMOVE_OPERATION = "remove_operation"

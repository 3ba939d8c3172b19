"""
versionaware - keep successive API versions compatible and carry their
in-memory state forward.

Four pieces, leaf-first:

- ``SchemaRegistry`` stores ordered, immutable schema versions
- ``CompatibilityChecker`` compares two versions field by field, either for
  migration-safety (backward) or structural substitution
- ``MigrationRegistry`` stores one pure transform per version step
- ``StateMigrator`` replays the step chain over a whole record store and
  ``VersionedState`` publishes the result with a single swap

Example usage:
    from versionaware import (
        CompatibilityChecker,
        MigrationRegistry,
        RecordStore,
        StateMigrator,
    )

    checker = CompatibilityChecker()
    checker.is_backward_compatible(v1, v2)

    migrations = MigrationRegistry()
    migrations.register_step(1, 2, lambda person: dict(person))
    v2_store = StateMigrator(migrations).migrate(v1_store, 2)
"""

__version__ = "0.1.0"
__all__ = [
    "SchemaRegistry",
    "CompatibilityChecker",
    "MigrationRegistry",
    "MigrationStep",
    "StateMigrator",
    "VersionedState",
    "RecordStore",
    "SchemaVersion",
    "FieldDescriptor",
    "OperationDescriptor",
    "__version__",
]


# Lazy imports to avoid loading pydantic and OTel at import time
def __getattr__(name: str):
    if name == "SchemaRegistry":
        from versionaware.registry import SchemaRegistry
        return SchemaRegistry
    if name == "CompatibilityChecker":
        from versionaware.checker import CompatibilityChecker
        return CompatibilityChecker
    if name == "MigrationRegistry":
        from versionaware.migrations import MigrationRegistry
        return MigrationRegistry
    if name == "MigrationStep":
        from versionaware.migrations import MigrationStep
        return MigrationStep
    if name == "StateMigrator":
        from versionaware.migrator import StateMigrator
        return StateMigrator
    if name == "VersionedState":
        from versionaware.migrator import VersionedState
        return VersionedState
    if name == "RecordStore":
        from versionaware.store import RecordStore
        return RecordStore
    if name == "SchemaVersion":
        from versionaware.schema import SchemaVersion
        return SchemaVersion
    if name == "FieldDescriptor":
        from versionaware.schema import FieldDescriptor
        return FieldDescriptor
    if name == "OperationDescriptor":
        from versionaware.schema import OperationDescriptor
        return OperationDescriptor
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

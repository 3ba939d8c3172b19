"""
Schema registry: an ordered, append-only sequence of schema versions.

Versions must be registered in strictly increasing order.  A registered
``SchemaVersion`` is frozen and kept until explicitly pruned.

Usage::

    from versionaware.registry import SchemaRegistry

    registry = SchemaRegistry()
    registry.register(v1)
    registry.register(v2)
    registry.latest()  # -> v2
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from versionaware.errors import (
    DuplicateVersionError,
    EmptyRegistryError,
    OutOfOrderVersionError,
)
from versionaware.schema import SchemaRegistrySpec, SchemaVersion

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Stores schema versions in registration order."""

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name
        self._versions: list[SchemaVersion] = []

    @classmethod
    def from_spec(cls, spec: SchemaRegistrySpec) -> "SchemaRegistry":
        """Build a registry from a parsed schema file."""
        registry = cls(name=spec.name)
        for schema in spec.versions:
            registry.register(schema)
        return registry

    def register(self, schema: SchemaVersion) -> None:
        """Append *schema* to the registry.

        Raises:
            DuplicateVersionError: If the version is already registered.
            OutOfOrderVersionError: If the version is lower than the latest.
        """
        if self.get(schema.version) is not None:
            raise DuplicateVersionError(schema.version)
        if self._versions and schema.version < self._versions[-1].version:
            raise OutOfOrderVersionError(schema.version, self._versions[-1].version)

        self._versions.append(schema)
        logger.debug(
            "Registered schema %s v%d (%d fields)",
            schema.name or self.name or "<unnamed>",
            schema.version,
            len(schema.fields),
        )

    def get(self, version: int) -> Optional[SchemaVersion]:
        """Return the schema for *version*, or ``None`` if unknown."""
        for schema in self._versions:
            if schema.version == version:
                return schema
        return None

    def latest(self) -> SchemaVersion:
        """Return the most recently registered schema."""
        if not self._versions:
            raise EmptyRegistryError()
        return self._versions[-1]

    def versions(self) -> list[int]:
        return [s.version for s in self._versions]

    def pairs(self) -> list[tuple[SchemaVersion, SchemaVersion]]:
        """Return consecutive (older, newer) pairs in registration order."""
        return list(zip(self._versions, self._versions[1:]))

    def prune(self, before: int) -> list[int]:
        """Drop every version lower than *before*; the latest is always kept.

        Returns:
            The pruned version numbers.
        """
        if not self._versions:
            return []
        latest = self._versions[-1]
        pruned = [
            s.version for s in self._versions
            if s.version < before and s is not latest
        ]
        self._versions = [s for s in self._versions if s.version not in pruned]
        if pruned:
            logger.info("Pruned schema versions: %s", pruned)
        return pruned

    def __len__(self) -> int:
        return len(self._versions)

    def __iter__(self) -> Iterator[SchemaVersion]:
        return iter(list(self._versions))

    def __contains__(self, version: object) -> bool:
        return any(s.version == version for s in self._versions)

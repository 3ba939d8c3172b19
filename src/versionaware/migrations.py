"""
Migration function registry.

Each step upgrades one record from version N to N+1 and steps form a single
linear chain: no skipping, no redefinition.  Multi-version jumps replay every
intermediate step in order.

Usage::

    from versionaware.migrations import MigrationRegistry

    migrations = MigrationRegistry()

    @migrations.register(3)
    def add_birth(person: dict) -> dict:
        return {**person, "birth": ...}

    chain = migrations.chain_from(1, target=4)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from versionaware.errors import ChainGapError, NoPathError, UnknownVersionError
from versionaware.registry import SchemaRegistry

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
TransformFn = Callable[[Record], Record]


@dataclass(frozen=True)
class MigrationStep:
    """A pure transform from one schema version to the next."""
    from_version: int
    to_version: int
    transform: TransformFn
    description: Optional[str] = None

    def __post_init__(self):
        if self.to_version != self.from_version + 1:
            raise ChainGapError(
                self.from_version,
                self.to_version,
                "steps must advance exactly one version",
            )

    def apply(self, record: Record) -> Record:
        return self.transform(record)


class MigrationRegistry:
    """Stores migration steps keyed by their source version."""

    def __init__(self, schemas: Optional[SchemaRegistry] = None) -> None:
        self._schemas = schemas
        self._steps: dict[int, MigrationStep] = {}

    def register_step(
        self,
        from_version: int,
        to_version: int,
        transform: TransformFn,
        description: Optional[str] = None,
    ) -> MigrationStep:
        """Register the step ``from_version -> to_version``.

        Raises:
            ChainGapError: If the step skips versions or ``from_version``
                already has a step.
            UnknownVersionError: If a schema registry is attached and either
                endpoint is not registered in it.
        """
        if to_version != from_version + 1:
            raise ChainGapError(
                from_version, to_version, "steps must advance exactly one version"
            )
        if from_version in self._steps:
            raise ChainGapError(
                from_version, to_version, "a step from this version already exists"
            )
        if self._schemas is not None:
            for version in (from_version, to_version):
                if version not in self._schemas:
                    raise UnknownVersionError(version)

        step = MigrationStep(
            from_version=from_version,
            to_version=to_version,
            transform=transform,
            description=description or getattr(transform, "__doc__", None),
        )
        self._steps[from_version] = step
        logger.debug("Registered migration step %d -> %d", from_version, to_version)
        return step

    def register(
        self, from_version: int, description: Optional[str] = None
    ) -> Callable[[TransformFn], TransformFn]:
        """Decorator form of ``register_step`` for ``from_version -> from_version + 1``."""

        def decorator(fn: TransformFn) -> TransformFn:
            self.register_step(from_version, from_version + 1, fn, description)
            return fn

        return decorator

    def chain_from(
        self, version: int, target: Optional[int] = None
    ) -> list[MigrationStep]:
        """Return the ordered steps covering ``[version, target]``.

        *target* defaults to the latest schema of the attached registry, or
        to the highest version any registered step reaches.

        Raises:
            NoPathError: If *target* is below *version* or any intermediate
                step is missing.
        """
        if target is None:
            target = self.latest_version(default=version)
        if target < version:
            raise NoPathError(version, target)

        missing = self.missing_steps(version, target)
        if missing:
            raise NoPathError(version, target, missing)
        return [self._steps[v] for v in range(version, target)]

    def missing_steps(self, from_version: int, to_version: int) -> list[int]:
        """Source versions in ``[from_version, to_version)`` lacking a step."""
        return [v for v in range(from_version, to_version) if v not in self._steps]

    def latest_version(self, default: int) -> int:
        if self._schemas is not None and len(self._schemas):
            return self._schemas.latest().version
        if not self._steps:
            return default
        return max(step.to_version for step in self._steps.values())

    def steps(self) -> list[MigrationStep]:
        return [self._steps[v] for v in sorted(self._steps)]

    def __len__(self) -> int:
        return len(self._steps)

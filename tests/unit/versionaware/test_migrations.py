"""Tests for the migration function registry."""

from __future__ import annotations

import pytest

from versionaware.errors import ChainGapError, NoPathError, UnknownVersionError
from versionaware.migrations import MigrationRegistry, MigrationStep
from versionaware.registry import SchemaRegistry


def _identity(record: dict) -> dict:
    return dict(record)


class TestRegisterStep:
    def test_register_and_chain(self):
        migrations = MigrationRegistry()
        step = migrations.register_step(1, 2, _identity, "copy")
        assert isinstance(step, MigrationStep)
        assert step.description == "copy"
        assert migrations.chain_from(1, 2) == [step]
        assert len(migrations) == 1

    def test_skipping_versions_rejected(self):
        migrations = MigrationRegistry()
        with pytest.raises(ChainGapError, match="exactly one version"):
            migrations.register_step(1, 3, _identity)
        assert len(migrations) == 0

    def test_backwards_step_rejected(self):
        with pytest.raises(ChainGapError):
            MigrationRegistry().register_step(2, 1, _identity)

    def test_redefinition_rejected(self):
        migrations = MigrationRegistry()
        migrations.register_step(1, 2, _identity)
        with pytest.raises(ChainGapError, match="already exists") as exc_info:
            migrations.register_step(1, 2, _identity)
        assert exc_info.value.from_version == 1

    def test_decorator_registration(self):
        migrations = MigrationRegistry()

        @migrations.register(3)
        def add_birth(person: dict) -> dict:
            """Derive a birth year from age."""
            return {**person, "birth": 2000 - person["age"]}

        (step,) = migrations.chain_from(3, 4)
        assert step.transform is add_birth
        assert step.description == "Derive a birth year from age."
        assert add_birth({"age": 20})["birth"] == 1980

    def test_step_dataclass_validates_adjacency(self):
        with pytest.raises(ChainGapError):
            MigrationStep(from_version=1, to_version=5, transform=_identity)


class TestChainFrom:
    def test_ordered_chain(self):
        migrations = MigrationRegistry()
        # Registration order does not matter, only adjacency
        migrations.register_step(2, 3, _identity)
        migrations.register_step(1, 2, _identity)
        migrations.register_step(3, 4, _identity)
        chain = migrations.chain_from(1, 4)
        assert [(s.from_version, s.to_version) for s in chain] == [(1, 2), (2, 3), (3, 4)]

    def test_gap_raises_no_path(self):
        migrations = MigrationRegistry()
        migrations.register_step(1, 2, _identity)
        migrations.register_step(3, 4, _identity)
        with pytest.raises(NoPathError) as exc_info:
            migrations.chain_from(1, 4)
        err = exc_info.value
        assert err.from_version == 1
        assert err.to_version == 4
        assert err.missing == [2]
        assert "2 -> 3" in str(err)

    def test_partial_chain_before_gap_still_available(self):
        migrations = MigrationRegistry()
        migrations.register_step(1, 2, _identity)
        migrations.register_step(3, 4, _identity)
        assert len(migrations.chain_from(1, 2)) == 1

    def test_same_version_is_empty_chain(self):
        assert MigrationRegistry().chain_from(3, 3) == []

    def test_downgrade_rejected(self):
        migrations = MigrationRegistry()
        migrations.register_step(1, 2, _identity)
        with pytest.raises(NoPathError, match="downgrades"):
            migrations.chain_from(2, 1)

    def test_default_target_from_steps(self):
        migrations = MigrationRegistry()
        migrations.register_step(1, 2, _identity)
        migrations.register_step(2, 3, _identity)
        assert len(migrations.chain_from(1)) == 2
        assert migrations.chain_from(3) == []

    def test_default_target_from_schema_registry(self, person_v1, person_v2, person_v3):
        schemas = SchemaRegistry()
        for schema in (person_v1, person_v2, person_v3):
            schemas.register(schema)
        migrations = MigrationRegistry(schemas)
        migrations.register_step(1, 2, _identity)
        # Latest schema is v3 but the 2 -> 3 step is missing
        with pytest.raises(NoPathError) as exc_info:
            migrations.chain_from(1)
        assert exc_info.value.missing == [2]

    def test_missing_steps(self):
        migrations = MigrationRegistry()
        migrations.register_step(2, 3, _identity)
        assert migrations.missing_steps(1, 5) == [1, 3, 4]


class TestSchemaValidation:
    def test_unknown_endpoint_rejected(self, person_v1, person_v2):
        schemas = SchemaRegistry()
        schemas.register(person_v1)
        schemas.register(person_v2)
        migrations = MigrationRegistry(schemas)
        migrations.register_step(1, 2, _identity)
        with pytest.raises(UnknownVersionError) as exc_info:
            migrations.register_step(2, 3, _identity)
        assert exc_info.value.version == 3

    def test_steps_listed_in_order(self):
        migrations = MigrationRegistry()
        migrations.register_step(5, 6, _identity)
        migrations.register_step(1, 2, _identity)
        assert [s.from_version for s in migrations.steps()] == [1, 5]

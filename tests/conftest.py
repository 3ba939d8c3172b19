"""
Pytest configuration and fixtures for versionaware tests.
"""

from __future__ import annotations

import os
from typing import Dict, Generator

import pytest

from versionaware.config import reset_config
from versionaware.loader import SchemaRegistryLoader
from versionaware.schema import FieldDescriptor, SchemaVersion


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def test_env() -> Dict[str, str]:
    """Test environment variables."""
    return {
        "VERSIONAWARE_SERVICE_NAME": "versionaware-test",
        "VERSIONAWARE_LOG_FORMAT": "json",
        "VERSIONAWARE_LOG_LEVEL": "info",
    }


@pytest.fixture(autouse=True)
def set_test_env(test_env: Dict[str, str]) -> Generator[None, None, None]:
    """Set test environment variables and reset cached state for each test."""
    original = {}
    for key, value in test_env.items():
        original[key] = os.environ.get(key)
        os.environ[key] = value
    reset_config()
    SchemaRegistryLoader.clear_cache()

    yield

    for key, value in original.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value
    reset_config()
    SchemaRegistryLoader.clear_cache()


# ============================================================================
# Person schema fixtures (v1 through v4)
# ============================================================================


def _person_fields() -> list[FieldDescriptor]:
    return [
        FieldDescriptor(name="id", kind="string"),
        FieldDescriptor(name="name", kind="string"),
        FieldDescriptor(name="age", kind="number"),
    ]


@pytest.fixture
def person_v1() -> SchemaVersion:
    return SchemaVersion(version=1, name="Person", fields=_person_fields())


@pytest.fixture
def person_v2() -> SchemaVersion:
    return SchemaVersion(version=2, name="Person", fields=_person_fields())


@pytest.fixture
def person_v3() -> SchemaVersion:
    return SchemaVersion(version=3, name="Person", fields=_person_fields())


@pytest.fixture
def person_v4() -> SchemaVersion:
    """v4 adds a required ``birth`` date with no default."""
    return SchemaVersion(
        version=4,
        name="Person",
        fields=_person_fields() + [FieldDescriptor(name="birth", kind="date")],
    )


@pytest.fixture
def fred() -> dict:
    return {"id": "1", "name": "fred", "age": 23}


PERSON_SCHEMA_YAML = """\
schema_version: "0.1.0"
kind: schema_registry
name: Person
versions:
  - version: 1
    fields:
      - {name: id, kind: string}
      - {name: name, kind: string}
      - {name: age, kind: number}
  - version: 2
    fields:
      - {name: id, kind: string}
      - {name: name, kind: string}
      - {name: age, kind: number}
      - {name: nickname, kind: string, optional: true}
  - version: 3
    fields:
      - {name: id, kind: string}
      - {name: name, kind: string}
      - {name: age, kind: number}
      - {name: nickname, kind: string, optional: true}
  - version: 4
    fields:
      - {name: id, kind: string}
      - {name: name, kind: string}
      - {name: age, kind: number}
      - {name: nickname, kind: string, optional: true}
      - {name: birth, kind: date}
"""


@pytest.fixture
def person_schema_file(tmp_path):
    path = tmp_path / "person.schema.yaml"
    path.write_text(PERSON_SCHEMA_YAML)
    return path


PERSON_API_YAML = """\
schema_version: "0.1.0"
kind: schema_registry
name: PersonApi
versions:
  - version: 1
    operations:
      - name: getPerson
        params: [{name: id, kind: string}]
        returns: {kind: record, fields: [{name: id, kind: string}, {name: name, kind: string}]}
      - name: addPerson
        params:
          - {name: person, kind: record, fields: [{name: id, kind: string}, {name: name, kind: string}]}
  - version: 2
    operations:
      - name: getPerson
        params: [{name: id, kind: string}]
        returns: {kind: record, fields: [{name: id, kind: string}, {name: name, kind: string}]}
      - name: addPerson
        params:
          - {name: person, kind: record, fields: [{name: id, kind: string}, {name: name, kind: string}]}
      - name: allPerson
        returns:
          kind: array
          items: {name: person, kind: record, fields: [{name: id, kind: string}, {name: name, kind: string}]}
  - version: 3
    operations:
      - name: getPerson
        params: [{name: id, kind: string}]
        returns: {kind: record, fields: [{name: id, kind: string}, {name: name, kind: string}]}
      - name: addPerson
        params:
          - {name: person, kind: record, fields: [{name: id, kind: string}, {name: name, kind: string}]}
"""


@pytest.fixture
def person_api_file(tmp_path):
    """v2 adds allPerson; v3 drops it again."""
    path = tmp_path / "person_api.schema.yaml"
    path.write_text(PERSON_API_YAML)
    return path

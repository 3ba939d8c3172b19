"""
Pydantic v2 models for schema versions and compatibility reports.

Schema versions are structural record-type descriptions: an ordered list of
tagged ``FieldDescriptor`` entries, plus the ``OperationDescriptor`` list of
the API that serves them.  They are used for structural comparison
only, not for validating individual record instances.

All models use ``extra="forbid"`` to reject unknown keys at parse time, and
descriptors are frozen so a registered schema cannot be mutated.

Usage::

    from versionaware.schema import SchemaRegistrySpec
    import yaml

    with open("person.schema.yaml") as fh:
        raw = yaml.safe_load(fh)
    spec = SchemaRegistrySpec.model_validate(raw)
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from versionaware.types import (
    ChangeType,
    CompatibilityDirection,
    FieldKind,
    IncompatibilityType,
)


def _check_unique_names(
    members: list[Any], owner: str, what: str = "field"
) -> None:
    seen: set[str] = set()
    for m in members:
        if m.name in seen:
            raise ValueError(f"Duplicate {what} '{m.name}' in {owner}")
        seen.add(m.name)


# ---------------------------------------------------------------------------
# Schema descriptors
# ---------------------------------------------------------------------------


class FieldDescriptor(BaseModel):
    """Structural description of a single field."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    kind: FieldKind
    optional: bool = Field(False, description="Whether the field may be absent")
    default: Optional[Any] = Field(
        None, description="Value used when older data lacks the field"
    )
    fields: list[FieldDescriptor] = Field(
        default_factory=list, description="Nested fields (record kind only)"
    )
    items: Optional[FieldDescriptor] = Field(
        None, description="Element descriptor (array kind only)"
    )
    description: Optional[str] = Field(None)

    @model_validator(mode="after")
    def _check_kind_shape(self) -> "FieldDescriptor":
        """Nested fields belong to records, element descriptors to arrays."""
        if self.fields and self.kind != FieldKind.RECORD:
            raise ValueError(
                f"Field '{self.name}' declares nested fields but is of kind "
                f"'{self.kind.value}'"
            )
        if self.kind == FieldKind.ARRAY and self.items is None:
            raise ValueError(f"Array field '{self.name}' must declare 'items'")
        if self.kind != FieldKind.ARRAY and self.items is not None:
            raise ValueError(
                f"Field '{self.name}' declares 'items' but is of kind "
                f"'{self.kind.value}'"
            )
        _check_unique_names(self.fields, f"record '{self.name}'")
        return self

    @property
    def has_default(self) -> bool:
        return self.default is not None

    def field_map(self) -> dict[str, FieldDescriptor]:
        return {f.name: f for f in self.fields}


class OperationDescriptor(BaseModel):
    """Structural description of one API operation.

    ``params`` are matched by name.  ``returns`` is ``None`` for operations
    that produce no result; its ``name`` may be omitted in schema files.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    params: list[FieldDescriptor] = Field(default_factory=list)
    returns: Optional[FieldDescriptor] = Field(
        None, description="Result descriptor; None when nothing is returned"
    )
    description: Optional[str] = Field(None)

    @field_validator("returns", mode="before")
    @classmethod
    def _default_return_name(cls, value: Any) -> Any:
        if isinstance(value, dict) and "name" not in value:
            return {"name": "return", **value}
        return value

    @model_validator(mode="after")
    def _check_params(self) -> "OperationDescriptor":
        _check_unique_names(self.params, f"operation '{self.name}'", what="param")
        return self

    def param_map(self) -> dict[str, FieldDescriptor]:
        return {p.name: p for p in self.params}


class SchemaVersion(BaseModel):
    """Immutable snapshot of a record type, and optionally its API, at one version."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: int = Field(..., ge=1)
    name: Optional[str] = Field(None, description="Record type name, e.g. Person")
    fields: list[FieldDescriptor] = Field(default_factory=list)
    operations: list[OperationDescriptor] = Field(
        default_factory=list, description="API operations exposed at this version"
    )
    description: Optional[str] = Field(None)

    @model_validator(mode="after")
    def _check_fields(self) -> "SchemaVersion":
        _check_unique_names(self.fields, f"schema v{self.version}")
        _check_unique_names(
            self.operations, f"schema v{self.version}", what="operation"
        )
        return self

    def field_map(self) -> dict[str, FieldDescriptor]:
        """Return field name -> descriptor."""
        return {f.name: f for f in self.fields}

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        return self.field_map().get(name)

    def operation_map(self) -> dict[str, OperationDescriptor]:
        """Return operation name -> descriptor."""
        return {op.name: op for op in self.operations}

    def get_operation(self, name: str) -> Optional[OperationDescriptor]:
        return self.operation_map().get(name)


# ---------------------------------------------------------------------------
# Top-level schema file
# ---------------------------------------------------------------------------


class SchemaRegistrySpec(BaseModel):
    """
    Root model for a schema registry YAML file.

    Lists every version of one record type in ascending order.
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: str = Field(
        ..., min_length=1, description="File format version (e.g. 0.1.0)"
    )
    kind: Literal["schema_registry"] = Field(
        "schema_registry", description="File type discriminator"
    )
    name: Optional[str] = Field(None, description="Record type name")
    description: Optional[str] = Field(None)
    versions: list[SchemaVersion] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


class FieldIncompatibility(BaseModel):
    """A single field that breaks compatibility."""

    model_config = ConfigDict(extra="forbid")

    field: str = Field(
        ..., description="Dot-path of the offending field or operation member"
    )
    type: IncompatibilityType
    old_kind: Optional[FieldKind] = None
    new_kind: Optional[FieldKind] = None
    detail: str = ""


class CompatibilityReport(BaseModel):
    """Outcome of one compatibility check.

    For ``backward`` checks ``old_version`` is the older schema and
    ``new_version`` the newer one.  For ``substitution`` checks
    ``old_version`` is the expected schema and ``new_version`` the candidate.
    """

    model_config = ConfigDict(extra="forbid")

    direction: CompatibilityDirection
    old_version: int
    new_version: int
    compatible: bool
    fields_checked: int = 0
    incompatibilities: list[FieldIncompatibility] = Field(default_factory=list)
    message: str = ""

    def fields(self) -> list[str]:
        """Dot-paths of all incompatible fields."""
        return [i.field for i in self.incompatibilities]


class SchemaChange(BaseModel):
    """A neutral description of one difference between two versions."""

    model_config = ConfigDict(extra="forbid")

    type: ChangeType
    field: str
    old: Optional[str] = None
    new: Optional[str] = None


FieldDescriptor.model_rebuild()

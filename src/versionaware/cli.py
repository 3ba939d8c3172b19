"""versionaware CLI - build-time schema compatibility gate.

Commands:
    versionaware check    Check one pair of schema versions
    versionaware verify   Check every consecutive version pair (build gate)
    versionaware diff     List changes between two versions
    versionaware show     Print the versions, fields and operations of a schema file
"""

import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError

from versionaware import __version__
from versionaware.checker import CompatibilityChecker
from versionaware.errors import VersionAwareError
from versionaware.loader import SchemaRegistryLoader
from versionaware.registry import SchemaRegistry
from versionaware.schema import (
    CompatibilityReport,
    FieldDescriptor,
    OperationDescriptor,
    SchemaVersion,
)
from versionaware.types import CompatibilityDirection


def _load_registry(schema_file: str) -> SchemaRegistry:
    try:
        return SchemaRegistryLoader().load_registry(Path(schema_file))
    except (TypeError, ValidationError, VersionAwareError, yaml.YAMLError) as exc:
        click.echo(f"Error: invalid schema file {schema_file}: {exc}", err=True)
        sys.exit(1)


def _require_version(registry: SchemaRegistry, version: int) -> SchemaVersion:
    schema = registry.get(version)
    if schema is None:
        click.echo(
            f"Error: version {version} not found (available: {registry.versions()})",
            err=True,
        )
        sys.exit(1)
    return schema


def _echo_report(report: CompatibilityReport) -> None:
    status = "OK" if report.compatible else "BREAKING"
    click.echo(
        f"[{status}] {report.direction.value}: "
        f"v{report.old_version} -> v{report.new_version} ({report.message})"
    )
    for issue in report.incompatibilities:
        click.echo(f"  - {issue.field}: {issue.type.value} - {issue.detail}")


def _kind_label(field: FieldDescriptor) -> str:
    if field.items is not None:
        return f"array<{field.items.kind.value}>"
    return field.kind.value


def _describe_field(field: FieldDescriptor, indent: int = 2) -> None:
    flags = []
    if field.optional:
        flags.append("optional")
    if field.has_default:
        flags.append(f"default={field.default!r}")
    suffix = f" ({', '.join(flags)})" if flags else ""
    click.echo(f"{' ' * indent}{field.name}: {_kind_label(field)}{suffix}")
    for nested in field.fields:
        _describe_field(nested, indent + 2)


def _describe_operation(op: OperationDescriptor) -> None:
    params = ", ".join(f"{p.name}: {_kind_label(p)}" for p in op.params)
    result = _kind_label(op.returns) if op.returns is not None else "none"
    click.echo(f"  {op.name}({params}) -> {result}")


@click.group()
@click.version_option(version=__version__, prog_name="versionaware")
def main():
    """versionaware - keep API record schemas compatible across versions."""
    pass


@main.command("check")
@click.argument("schema_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--old", "old_version", type=int, required=True, help="Older (or expected) version")
@click.option("--new", "new_version", type=int, required=True, help="Newer (or candidate) version")
@click.option(
    "--direction",
    "-d",
    type=click.Choice([d.value for d in CompatibilityDirection]),
    default=CompatibilityDirection.BACKWARD.value,
    show_default=True,
    help="backward: old data migrates to new; substitution: new usable where old is expected",
)
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text")
def check_cmd(
    schema_file: str,
    old_version: int,
    new_version: int,
    direction: str,
    output_format: str,
):
    """Check compatibility between two versions of SCHEMA_FILE.

    Exits with status 1 when any field breaks compatibility.

    Example:
        versionaware check person.schema.yaml --old 3 --new 4
    """
    registry = _load_registry(schema_file)
    old = _require_version(registry, old_version)
    new = _require_version(registry, new_version)

    checker = CompatibilityChecker()
    if CompatibilityDirection(direction) == CompatibilityDirection.BACKWARD:
        report = checker.check_backward_compatible(old, new)
    else:
        report = checker.check_substitutable(new, old)

    if output_format == "json":
        click.echo(report.model_dump_json(indent=2))
    else:
        _echo_report(report)

    if not report.compatible:
        sys.exit(1)


@main.command("verify")
@click.argument("schema_file", type=click.Path(exists=True, dir_okay=False))
def verify_cmd(schema_file: str):
    """Check every consecutive version pair in SCHEMA_FILE.

    Intended as a build gate: exits with status 1 if any newer version
    breaks backward compatibility with its predecessor.
    """
    registry = _load_registry(schema_file)
    if len(registry) < 2:
        click.echo("Nothing to verify: fewer than two versions")
        return

    reports = CompatibilityChecker().check_registry(registry)
    for report in reports:
        _echo_report(report)

    broken = [r for r in reports if not r.compatible]
    click.echo(f"\n{len(reports) - len(broken)}/{len(reports)} transitions compatible")
    if broken:
        sys.exit(1)


@main.command("diff")
@click.argument("schema_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--old", "old_version", type=int, required=True)
@click.option("--new", "new_version", type=int, required=True)
def diff_cmd(schema_file: str, old_version: int, new_version: int):
    """List field changes between two versions of SCHEMA_FILE."""
    registry = _load_registry(schema_file)
    old = _require_version(registry, old_version)
    new = _require_version(registry, new_version)

    changes = CompatibilityChecker.compare_versions(old, new)
    if not changes:
        click.echo("No changes detected")
        return
    for change in changes:
        line = f"{change.type.value}: {change.field}"
        if change.old or change.new:
            line += f" ({change.old} -> {change.new})"
        click.echo(line)


@main.command("show")
@click.argument("schema_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--version", "-v", "version", type=int, default=None, help="Show a single version")
def show_cmd(schema_file: str, version: Optional[int]):
    """Print the versions, fields and operations declared in SCHEMA_FILE."""
    registry = _load_registry(schema_file)
    schemas = [_require_version(registry, version)] if version else list(registry)
    for schema in schemas:
        name = schema.name or registry.name
        title = f" {name}" if name else ""
        click.echo(f"v{schema.version}{title}")
        for field in schema.fields:
            _describe_field(field)
        for op in schema.operations:
            _describe_operation(op)


if __name__ == "__main__":
    main()

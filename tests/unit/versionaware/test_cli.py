"""Tests for the versionaware CLI."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from versionaware import __version__
from versionaware.cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def quiet_span_events(monkeypatch):
    monkeypatch.setenv("VERSIONAWARE_EMIT_SPAN_EVENTS", "false")


class TestCheck:
    def test_compatible_pair(self, runner, person_schema_file):
        result = runner.invoke(
            main, ["check", str(person_schema_file), "--old", "1", "--new", "2"]
        )
        assert result.exit_code == 0
        assert "[OK] backward: v1 -> v2" in result.output

    def test_breaking_pair_exits_nonzero(self, runner, person_schema_file):
        result = runner.invoke(
            main, ["check", str(person_schema_file), "--old", "3", "--new", "4"]
        )
        assert result.exit_code == 1
        assert "[BREAKING]" in result.output
        assert "birth: required_addition" in result.output

    def test_json_output(self, runner, person_schema_file):
        result = runner.invoke(
            main,
            ["check", str(person_schema_file), "--old", "3", "--new", "4", "--format", "json"],
        )
        payload = json.loads(result.output)
        assert payload["compatible"] is False
        assert payload["incompatibilities"][0]["field"] == "birth"

    def test_substitution_direction(self, runner, person_schema_file):
        # v4 carries every v3 field, so it can stand in for v3
        result = runner.invoke(
            main,
            [
                "check", str(person_schema_file),
                "--old", "3", "--new", "4",
                "--direction", "substitution",
            ],
        )
        assert result.exit_code == 0
        assert "[OK] substitution: v3 -> v4" in result.output

    def test_unknown_version(self, runner, person_schema_file):
        result = runner.invoke(
            main, ["check", str(person_schema_file), "--old", "1", "--new", "9"]
        )
        assert result.exit_code == 1
        assert "version 9 not found" in result.output

    def test_invalid_schema_file(self, runner, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("schema_version: '0.1.0'\nversions:\n  - {version: 0}\n")
        result = runner.invoke(main, ["check", str(bad), "--old", "1", "--new", "2"])
        assert result.exit_code == 1
        assert "invalid schema file" in result.output


class TestVerify:
    def test_reports_each_transition(self, runner, person_schema_file):
        result = runner.invoke(main, ["verify", str(person_schema_file)])
        assert result.exit_code == 1
        assert "v1 -> v2" in result.output
        assert "v3 -> v4" in result.output
        assert "2/3 transitions compatible" in result.output

    def test_single_version(self, runner, tmp_path):
        path = tmp_path / "one.schema.yaml"
        path.write_text(
            "schema_version: '0.1.0'\nversions:\n  - {version: 1, fields: []}\n"
        )
        result = runner.invoke(main, ["verify", str(path)])
        assert result.exit_code == 0
        assert "Nothing to verify" in result.output


class TestDiffAndShow:
    def test_diff(self, runner, person_schema_file):
        result = runner.invoke(
            main, ["diff", str(person_schema_file), "--old", "1", "--new", "4"]
        )
        assert result.exit_code == 0
        assert "add_field: birth" in result.output
        assert "add_field: nickname" in result.output

    def test_diff_no_changes(self, runner, person_schema_file):
        result = runner.invoke(
            main, ["diff", str(person_schema_file), "--old", "2", "--new", "3"]
        )
        assert "No changes detected" in result.output

    def test_show_all(self, runner, person_schema_file):
        result = runner.invoke(main, ["show", str(person_schema_file)])
        assert result.exit_code == 0
        assert "v1 Person" in result.output
        assert "nickname: string (optional)" in result.output

    def test_show_single_version(self, runner, person_schema_file):
        result = runner.invoke(main, ["show", str(person_schema_file), "-v", "4"])
        assert "v4" in result.output
        assert "v1 " not in result.output
        assert "birth: date" in result.output


def test_version_option(runner):
    result = runner.invoke(main, ["--version"])
    assert __version__ in result.output


class TestOperations:
    def test_verify_flags_dropped_operation(self, runner, person_api_file):
        result = runner.invoke(main, ["verify", str(person_api_file)])
        assert result.exit_code == 1
        assert "[OK] backward: v1 -> v2" in result.output
        assert "allPerson: removed_operation" in result.output
        assert "1/2 transitions compatible" in result.output

    def test_substitution_flags_missing_operation(self, runner, person_api_file):
        result = runner.invoke(
            main,
            [
                "check", str(person_api_file),
                "--old", "2", "--new", "3",
                "--direction", "substitution",
            ],
        )
        assert result.exit_code == 1
        assert "allPerson: missing_operation" in result.output

    def test_show_lists_operations(self, runner, person_api_file):
        result = runner.invoke(main, ["show", str(person_api_file), "-v", "2"])
        assert result.exit_code == 0
        assert "getPerson(id: string) -> record" in result.output
        assert "addPerson(person: record) -> none" in result.output
        assert "allPerson() -> array<record>" in result.output

    def test_diff_lists_operations(self, runner, person_api_file):
        result = runner.invoke(
            main, ["diff", str(person_api_file), "--old", "1", "--new", "2"]
        )
        assert "add_operation: allPerson" in result.output

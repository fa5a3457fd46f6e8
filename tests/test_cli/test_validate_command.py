"""Tests for the offline ``wfstudio validate`` command."""

import json

import pytest
from click.testing import CliRunner

from wfstudio.cli import cli_main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def write_workflow(tmp_path):
    def _write(content):
        path = tmp_path / "workflow.json"
        path.write_text(content if isinstance(content, str) else json.dumps(content))
        return path

    return _write


class TestValidateCommand:
    def test_valid_workflow(self, runner, write_workflow, sample_workflow):
        path = write_workflow(sample_workflow)

        result = runner.invoke(cli_main, ["validate", str(path)])

        assert result.exit_code == 0
        assert f"✓ {path} is valid" in result.output

    def test_invalid_workflow_lists_errors(self, runner, write_workflow, sample_workflow):
        sample_workflow["connections"].append({"from": "end", "to": "ghost"})
        path = write_workflow(sample_workflow)

        result = runner.invoke(cli_main, ["validate", str(path)])

        assert result.exit_code == 1
        assert "has 1 error(s)" in result.output
        assert "[INVALID_CONNECTION] connections[2].to" in result.output

    def test_json_output(self, runner, write_workflow, sample_workflow):
        del sample_workflow["name"]
        path = write_workflow(sample_workflow)

        result = runner.invoke(cli_main, ["validate", str(path), "--json"])

        assert result.exit_code == 1
        report = json.loads(result.output)
        assert report["valid"] is False
        assert report["errors"][0]["code"] == "SCHEMA_REQUIRED"

    def test_unparseable_file(self, runner, write_workflow):
        path = write_workflow("{not json")

        result = runner.invoke(cli_main, ["validate", str(path), "--json"])

        assert result.exit_code == 1
        assert json.loads(result.output)["errors"][0]["code"] == "PARSE_ERROR"

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli_main, ["validate", str(tmp_path / "absent.json")])

        assert result.exit_code == 2
        assert "does not exist" in result.output

"""Tests for workflow document schema validation."""

import json

import pytest

from wfstudio.core.workflow_schema import (
    MAX_NODES,
    ValidationError,
    parse_workflow_json,
    validate_workflow,
    validate_workflow_document,
)


def _codes(errors):
    return [e["code"] for e in errors]


class TestValidDocuments:
    """Documents that must pass."""

    def test_sample_workflow_is_valid(self, sample_workflow):
        assert validate_workflow_document(sample_workflow) == []

    def test_json_string_input(self, sample_workflow):
        assert validate_workflow_document(json.dumps(sample_workflow)) == []

    def test_minimal_document(self):
        doc = {
            "name": "minimal",
            "nodes": [{"id": "n1", "type": "start", "position": {"x": 0, "y": 0}}],
            "connections": [],
        }
        assert validate_workflow_document(doc) == []

    def test_extra_top_level_and_node_fields_allowed(self, sample_workflow):
        """The editor stores layout fields the schema does not know about."""
        sample_workflow["viewport"] = {"zoom": 1}
        sample_workflow["nodes"][0]["width"] = 120
        assert validate_workflow_document(sample_workflow) == []

    def test_validate_workflow_returns_none_when_valid(self, sample_workflow):
        assert validate_workflow(sample_workflow) is None


class TestSchemaErrors:
    """Shape errors reported with SCHEMA_* codes and field paths."""

    def test_missing_nodes(self):
        errors = validate_workflow_document({"name": "x", "connections": []})
        assert _codes(errors) == ["SCHEMA_REQUIRED"]
        assert errors[0]["field"] == "root"
        assert "'nodes'" in errors[0]["message"]

    def test_empty_nodes(self):
        errors = validate_workflow_document({"name": "x", "nodes": [], "connections": []})
        assert _codes(errors) == ["SCHEMA_MINITEMS"]
        assert errors[0]["field"] == "nodes"

    def test_wrong_position_type(self, sample_workflow):
        sample_workflow["nodes"][1]["position"]["x"] = "left"
        errors = validate_workflow_document(sample_workflow)
        assert _codes(errors) == ["SCHEMA_TYPE"]
        assert errors[0]["field"] == "nodes[1].position.x"

    def test_bad_version_gets_semver_suggestion(self, sample_workflow):
        sample_workflow["version"] = "v1"
        errors = validate_workflow_document(sample_workflow)
        assert _codes(errors) == ["SCHEMA_PATTERN"]
        assert "1.0.0" in errors[0]["message"]

    def test_source_target_connection_gets_suggestion(self, sample_workflow):
        sample_workflow["connections"] = [{"source": "start", "target": "end"}]
        errors = validate_workflow_document(sample_workflow)
        messages = " ".join(e["message"] for e in errors)
        assert "SCHEMA_ADDITIONALPROPERTIES" in _codes(errors)
        assert "Did you mean 'from' instead of 'source'?" in messages

    def test_reports_every_error(self, sample_workflow):
        del sample_workflow["name"]
        sample_workflow["nodes"][0]["type"] = 42
        errors = validate_workflow_document(sample_workflow)
        assert len(errors) == 2

    def test_too_many_nodes(self):
        nodes = [{"id": f"n{i}", "type": "prompt", "position": {"x": i, "y": 0}} for i in range(MAX_NODES + 1)]
        errors = validate_workflow_document({"name": "big", "nodes": nodes, "connections": []})
        assert _codes(errors) == ["TOO_MANY_NODES"]

    def test_non_object_document(self):
        errors = validate_workflow_document(["not", "a", "workflow"])
        assert _codes(errors) == ["SCHEMA_TYPE"]


class TestReferenceErrors:
    """Node ID and connection checks that run once the shape is valid."""

    def test_duplicate_node_id(self, sample_workflow):
        sample_workflow["nodes"][2]["id"] = "start"
        sample_workflow["connections"] = []
        errors = validate_workflow_document(sample_workflow)
        assert _codes(errors) == ["DUPLICATE_NODE_ID"]
        assert errors[0]["field"] == "nodes[2].id"

    def test_connection_to_unknown_node(self, sample_workflow):
        sample_workflow["connections"].append({"from": "end", "to": "ghost"})
        errors = validate_workflow_document(sample_workflow)
        assert _codes(errors) == ["INVALID_CONNECTION"]
        assert errors[0]["field"] == "connections[2].to"

    def test_self_connection(self, sample_workflow):
        sample_workflow["connections"].append({"from": "summarize", "to": "summarize"})
        errors = validate_workflow_document(sample_workflow)
        assert _codes(errors) == ["SELF_CONNECTION"]

    def test_reference_checks_skipped_when_shape_invalid(self, sample_workflow):
        sample_workflow["nodes"][0]["id"] = "summarize"
        del sample_workflow["connections"]
        errors = validate_workflow_document(sample_workflow)
        assert _codes(errors) == ["SCHEMA_REQUIRED"]


class TestParsing:
    """JSON parsing of workflow strings."""

    def test_parse_error_reported_not_raised(self):
        errors = validate_workflow_document("{not json")
        assert _codes(errors) == ["PARSE_ERROR"]
        assert errors[0]["message"].startswith("Invalid JSON")

    def test_parse_workflow_json_rejects_non_object(self):
        with pytest.raises(ValueError, match="expected an object"):
            parse_workflow_json("[1, 2]")

    def test_parse_workflow_json_rejects_garbage(self):
        with pytest.raises(ValueError, match="Invalid JSON"):
            parse_workflow_json("{not json")


class TestValidateWorkflowRaises:
    """Single-error helper for library callers."""

    def test_raises_first_schema_error_with_path(self, sample_workflow):
        sample_workflow["nodes"][0]["position"] = {"x": 0}
        with pytest.raises(ValidationError) as exc_info:
            validate_workflow(sample_workflow)
        assert exc_info.value.path == "nodes[0].position"
        assert "Add the required field 'y'" in str(exc_info.value)

    def test_raises_reference_error_with_code(self, sample_workflow):
        sample_workflow["connections"][0]["to"] = "missing"
        with pytest.raises(ValidationError) as exc_info:
            validate_workflow(sample_workflow)
        assert exc_info.value.code == "INVALID_CONNECTION"

    def test_raises_value_error_for_bad_json(self):
        with pytest.raises(ValueError):
            validate_workflow("{not json")

"""JSON Schema definitions for workflow documents edited on the canvas.

A workflow document is the JSON the visual editor saves and the MCP tools
exchange with AI agents. This module only checks its *shape*; what a node
type means is up to the editor.

Example usage:
    >>> from wfstudio.core import validate_workflow_document
    >>>
    >>> doc = {
    ...     "name": "review-pr",
    ...     "nodes": [
    ...         {"id": "start", "type": "start", "position": {"x": 0, "y": 0}},
    ...         {"id": "end", "type": "end", "position": {"x": 0, "y": 200}},
    ...     ],
    ...     "connections": [{"from": "start", "to": "end"}],
    ... }
    >>> validate_workflow_document(doc)
    []

Common Validation Errors:
- Missing 'nodes' or 'connections': both arrays are always required
- Duplicate node IDs: each node must have a unique identifier
- Dangling connections: 'from' and 'to' must reference existing nodes
- 'source'/'target' on connections: the canvas format uses 'from'/'to'
"""

import json
import re
from typing import Any, Union

import jsonschema
from jsonschema import Draft7Validator
from jsonschema import ValidationError as JsonSchemaValidationError

MAX_NODES = 100


class ValidationError(Exception):
    """Validation error with a field path and an optional fix suggestion.

    Attributes:
        message (str): The validation error message
        path (str): Dotted path to the invalid field (e.g., "nodes[0].position")
        suggestion (str): Optional suggestion for fixing the error
        code (str): Machine-readable error code reported to agents
    """

    def __init__(self, message: str, path: str = "", suggestion: str = "", code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        self.path = path
        self.suggestion = suggestion

        full_message = "Validation error"
        if path:
            full_message += f" at {path}"
        full_message += f": {message}"
        if suggestion:
            full_message += f"\n{suggestion}"

        super().__init__(full_message)


POSITION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "description": "Canvas coordinates of the node",
    "properties": {
        "x": {"type": "number"},
        "y": {"type": "number"},
    },
    "required": ["x", "y"],
}

NODE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1, "description": "Unique identifier for the node"},
        "type": {
            "type": "string",
            "pattern": r"^[A-Za-z][A-Za-z0-9_-]*$",
            "description": "Node type understood by the editor (e.g. 'start', 'prompt', 'subAgent')",
        },
        "name": {"type": "string", "description": "Display name shown on the canvas"},
        "position": POSITION_SCHEMA,
        "data": {
            "type": "object",
            "description": "Type-specific node configuration",
            "additionalProperties": True,
        },
    },
    "required": ["id", "type", "position"],
    # The canvas stores extra layout fields (width, height, selected, ...)
    "additionalProperties": True,
}

CONNECTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "from": {"type": "string", "description": "Source node ID"},
        "to": {"type": "string", "description": "Target node ID"},
        "fromPort": {"type": "string", "description": "Output port on the source node"},
        "toPort": {"type": "string", "description": "Input port on the target node"},
        "label": {"type": "string"},
    },
    "required": ["from", "to"],
    "additionalProperties": False,
}

WORKFLOW_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string", "minLength": 1, "description": "Workflow name"},
        "description": {"type": "string"},
        "version": {
            "type": "string",
            "pattern": r"^\d+\.\d+\.\d+$",
            "description": "Semantic version of the workflow document",
        },
        "nodes": {
            "type": "array",
            "items": NODE_SCHEMA,
            "minItems": 1,
            "maxItems": MAX_NODES,
        },
        "connections": {
            "type": "array",
            "items": CONNECTION_SCHEMA,
        },
        "metadata": {"type": "object"},
        "createdAt": {"type": "string"},
        "updatedAt": {"type": "string"},
    },
    "required": ["name", "nodes", "connections"],
    "additionalProperties": True,
}


def _format_path(path: list) -> str:
    """Format a jsonschema path into a readable string like "nodes[0].type"."""
    formatted = ""
    for i, component in enumerate(path):
        if isinstance(component, int):
            formatted += f"[{component}]"
        else:
            if i > 0:
                formatted += "."
            formatted += str(component)
    return formatted or "root"


def _get_connection_suggestion(error: JsonSchemaValidationError) -> str:
    """Suggest fixes for connection field names borrowed from other graph formats."""
    if error.validator != "additionalProperties":
        return ""

    unexpected = set(re.findall(r"'([^']+)'", error.message))
    hints = []
    if "source" in unexpected:
        hints.append("Did you mean 'from' instead of 'source'?")
    if "target" in unexpected:
        hints.append("Did you mean 'to' instead of 'target'?")
    if unexpected & {"sourceHandle", "targetHandle"}:
        hints.append("Use 'fromPort'/'toPort' for port names")
    return " ".join(hints) or "Connections can only have: id, from, to, fromPort, toPort, label"


def _get_suggestion(error: JsonSchemaValidationError) -> str:
    """Get a helpful suggestion based on the validation error."""
    path = list(error.absolute_path)

    if path[:1] == ["connections"] and len(path) == 2:
        return _get_connection_suggestion(error)

    if error.validator == "required":
        match = error.message.split("'")
        if len(match) >= 2:
            return f"Add the required field '{match[1]}'"
        return "Add the missing required field"
    elif error.validator == "type":
        expected = error.validator_value
        actual = type(error.instance).__name__
        return f"Change type from '{actual}' to '{expected}'"
    elif error.validator == "pattern":
        if path and path[-1] == "version":
            return "Use semantic versioning format, e.g., '1.0.0'"
        if path and path[-1] == "type":
            return "Node types start with a letter and contain only letters, digits, '-' and '_'"
    elif error.validator == "minItems":
        return "Add at least one node to the workflow"
    elif error.validator == "maxItems":
        return f"Split the workflow; at most {MAX_NODES} nodes are supported"

    return ""


def _error_code(error: JsonSchemaValidationError) -> str:
    if error.validator == "maxItems" and list(error.absolute_path) == ["nodes"]:
        return "TOO_MANY_NODES"
    return f"SCHEMA_{str(error.validator).upper()}"


def _schema_errors(data: Any) -> list[JsonSchemaValidationError]:
    validator = Draft7Validator(WORKFLOW_SCHEMA)

    # Check if schema is valid first (development safety)
    try:
        validator.check_schema(WORKFLOW_SCHEMA)
    except jsonschema.SchemaError as e:
        raise RuntimeError(f"Schema definition error: {e}") from e

    return sorted(validator.iter_errors(data), key=lambda e: _format_path(list(e.absolute_path)))


def _reference_errors(data: dict[str, Any]) -> list[ValidationError]:
    """Check node ID uniqueness and that connections point at existing nodes.

    Only meaningful once the document passed the schema.
    """
    errors: list[ValidationError] = []

    seen: set[str] = set()
    for i, node in enumerate(data["nodes"]):
        node_id = node["id"]
        if node_id in seen:
            err = ValidationError(
                message=f"Duplicate node ID '{node_id}'",
                path=f"nodes[{i}].id",
                suggestion="Use unique IDs for each node",
                code="DUPLICATE_NODE_ID",
            )
            errors.append(err)
        seen.add(node_id)

    for i, conn in enumerate(data["connections"]):
        for end in ("from", "to"):
            if conn[end] not in seen:
                err = ValidationError(
                    message=f"Connection references non-existent node '{conn[end]}'",
                    path=f"connections[{i}].{end}",
                    suggestion=f"Change to one of: {sorted(seen)}",
                    code="INVALID_CONNECTION",
                )
                errors.append(err)
        if conn["from"] == conn["to"]:
            err = ValidationError(
                message=f"Node '{conn['from']}' is connected to itself",
                path=f"connections[{i}]",
                suggestion="Remove the connection or route it through another node",
                code="SELF_CONNECTION",
            )
            errors.append(err)

    return errors


def parse_workflow_json(text: str) -> dict[str, Any]:
    """Parse a workflow JSON string.

    Raises:
        ValueError: If the text is not JSON or does not hold an object
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ValueError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid JSON: expected an object, got {type(data).__name__}")
    return data


def validate_workflow_document(data: Union[dict[str, Any], str]) -> list[dict[str, str]]:
    """Validate a workflow document and report every problem found.

    Unlike ``validate_workflow`` this never raises for bad input: parse
    failures are reported as a ``PARSE_ERROR`` entry so agents get all the
    feedback in one round trip.

    Args:
        data: The workflow document (dict or JSON string)

    Returns:
        List of ``{"code", "message", "field"}`` dicts; empty when valid
    """
    if isinstance(data, str):
        try:
            data = parse_workflow_json(data)
        except ValueError as e:
            return [{"code": "PARSE_ERROR", "message": str(e), "field": "root"}]

    issues: list[dict[str, str]] = []
    schema_errors = _schema_errors(data)
    for error in schema_errors:
        path = _format_path(list(error.absolute_path))
        suggestion = _get_suggestion(error)
        message = error.message if not suggestion else f"{error.message}. {suggestion}"
        issues.append({"code": _error_code(error), "message": message, "field": path})

    if not schema_errors and isinstance(data, dict):
        for ref_error in _reference_errors(data):
            message = ref_error.message
            if ref_error.suggestion:
                message = f"{message}. {ref_error.suggestion}"
            issues.append({"code": ref_error.code, "message": message, "field": ref_error.path})

    return issues


def validate_workflow(data: Union[dict[str, Any], str]) -> None:
    """Validate a workflow document, raising on the first problem.

    Raises:
        ValidationError: If the document is invalid
        ValueError: If JSON parsing fails
    """
    if isinstance(data, str):
        data = parse_workflow_json(data)

    errors = _schema_errors(data)
    if errors:
        error = errors[0]
        raise ValidationError(
            message=error.message,
            path=_format_path(list(error.absolute_path)),
            suggestion=_get_suggestion(error),
        )

    reference_errors = _reference_errors(data)
    if reference_errors:
        raise reference_errors[0]

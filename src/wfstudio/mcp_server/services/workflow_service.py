"""Workflow service for the MCP tools.

Every operation returns a tool result whose text is a JSON envelope. Parse
failures, validation failures, and runtime errors all come back as structured
results so the calling agent can react to them; nothing is raised to the
protocol layer. Failures of an operation set the result's error flag, while
"no active workflow" and ``validate_workflow`` verdicts are ordinary answers.
"""

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Optional

from mcp.types import CallToolResult

from wfstudio.core.exceptions import SchemaLoadError
from wfstudio.core.workflow_schema import validate_workflow_document

from ..schema_loader import load_workflow_schema, variant_for_provider
from .base_service import BaseService, ensure_stateless

if TYPE_CHECKING:
    from ..manager import McpServerManager

logger = logging.getLogger(__name__)

NO_ACTIVE_WORKFLOW_MESSAGE = "No active workflow. Please open a workflow in the workflow editor first."
INVALID_JSON_MESSAGE = "Invalid JSON: Failed to parse workflow string"


class WorkflowToolService(BaseService):
    """Implements the workflow tools against a server manager's bridge."""

    @classmethod
    @ensure_stateless
    async def get_current_workflow(cls, manager: "McpServerManager") -> CallToolResult:
        try:
            snapshot = await manager.bridge.request_current_workflow()
        except Exception as e:
            logger.warning(f"get_current_workflow failed: {e}")
            return cls.to_result({"success": False, "error": str(e)}, is_error=True)

        if snapshot.workflow is None:
            return cls.to_result({"success": False, "error": NO_ACTIVE_WORKFLOW_MESSAGE})

        return cls.to_result({"success": True, "isStale": snapshot.is_stale, "workflow": snapshot.workflow})

    @classmethod
    @ensure_stateless
    async def get_workflow_schema(cls, manager: "McpServerManager") -> CallToolResult:
        """Return the schema document for the active provider, or an error envelope."""
        variant = variant_for_provider(manager.get_current_provider())
        try:
            schema_text = await asyncio.to_thread(load_workflow_schema, variant, manager.get_context_path())
        except SchemaLoadError as e:
            logger.exception("Failed to load workflow schema")
            return cls.to_result({"success": False, "error": str(e)}, is_error=True)
        return cls.to_text_result(schema_text)

    @classmethod
    @ensure_stateless
    async def apply_workflow(
        cls, manager: "McpServerManager", workflow_json: str, description: Optional[str] = None
    ) -> CallToolResult:
        """Parse, validate, then apply a workflow.

        The bridge is only reached once the document parses and validates.
        """
        try:
            workflow: Any = json.loads(workflow_json)
        except (json.JSONDecodeError, TypeError):
            return cls.to_result({"success": False, "error": INVALID_JSON_MESSAGE}, is_error=True)

        errors = validate_workflow_document(workflow)
        if errors:
            logger.info(f"apply_workflow rejected: {len(errors)} validation error(s)")
            return cls.to_result(
                {"success": False, "error": "Validation failed", "validationErrors": errors}, is_error=True
            )

        try:
            applied = await manager.bridge.apply_workflow(workflow, description)
        except Exception as e:
            logger.warning(f"apply_workflow failed: {e}")
            return cls.to_result({"success": False, "error": str(e)}, is_error=True)

        logger.info(f"apply_workflow {'succeeded' if applied else 'was declined'} for '{workflow.get('name')}'")
        return cls.to_result({"success": applied})

    @classmethod
    @ensure_stateless
    async def validate_workflow(cls, workflow_json: str) -> CallToolResult:
        try:
            workflow: Any = json.loads(workflow_json)
        except (json.JSONDecodeError, TypeError):
            return cls.to_result(
                {"valid": False, "errors": [{"code": "PARSE_ERROR", "message": INVALID_JSON_MESSAGE, "field": "root"}]}
            )

        try:
            errors = validate_workflow_document(workflow)
        except Exception as e:
            logger.exception("validate_workflow failed unexpectedly")
            return cls.to_result(
                {"valid": False, "errors": [{"code": "UNKNOWN_ERROR", "message": str(e)}]}, is_error=True
            )

        return cls.to_result({"valid": not errors, "errors": errors})

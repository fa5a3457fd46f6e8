"""Workflow tools exposed to AI agents.

Tools are registered on a given FastMCP instance and bound to one server
manager, so each per-request protocol session gets its own registrations.
"""

import logging
from typing import TYPE_CHECKING, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult
from pydantic import Field

from ..services.workflow_service import WorkflowToolService

if TYPE_CHECKING:
    from ..manager import McpServerManager

logger = logging.getLogger(__name__)

TOOL_NAMES = ("get_current_workflow", "get_workflow_schema", "apply_workflow", "validate_workflow")


def register_workflow_tools(mcp: FastMCP, manager: "McpServerManager") -> None:
    """Register the four workflow tools on ``mcp``."""

    @mcp.tool()
    async def get_current_workflow() -> CallToolResult:
        """Get the workflow currently open in the workflow editor.

        Returns the workflow JSON and whether it is stale (served from cache
        because the editor did not answer or is closed).

        Returns:
            JSON: {"success": true, "isStale": bool, "workflow": {...}}
            or {"success": false, "error": "..."}
        """
        logger.debug("get_current_workflow called")
        return await WorkflowToolService.get_current_workflow(manager)

    @mcp.tool()
    async def get_workflow_schema() -> CallToolResult:
        """Get the JSON schema describing valid workflow documents.

        Read this before creating or modifying a workflow. The schema is
        reduced for agents with small context budgets.
        """
        logger.debug("get_workflow_schema called")
        return await WorkflowToolService.get_workflow_schema(manager)

    @mcp.tool()
    async def apply_workflow(
        workflow: str = Field(..., description="The workflow JSON string to apply to the canvas"),
        description: Optional[str] = Field(
            None,
            description="Optional short summary of the change, shown to the user when review is enabled",
        ),
    ) -> CallToolResult:
        """Apply a workflow to the workflow editor canvas.

        The workflow is validated before being applied. When review is
        enabled the user confirms the change on the canvas first.

        Returns:
            JSON: {"success": bool} on apply,
            {"success": false, "error": "Validation failed", "validationErrors": [...]}
            or {"success": false, "error": "..."}
        """
        logger.debug(f"apply_workflow called ({len(workflow)} chars)")
        return await WorkflowToolService.apply_workflow(manager, workflow, description)

    @mcp.tool()
    async def validate_workflow(
        workflow: str = Field(..., description="The workflow JSON string to validate"),
    ) -> CallToolResult:
        """Validate a workflow JSON without applying it.

        Returns:
            JSON: {"valid": bool, "errors": [{"code", "message", "field"}]}
        """
        logger.debug("validate_workflow called")
        return await WorkflowToolService.validate_workflow(workflow)

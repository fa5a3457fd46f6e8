"""Workflow schema exposed as MCP resources.

Agents that prefer resources over tools can read the same documents
``get_workflow_schema`` returns.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from ..schema_loader import load_workflow_schema

if TYPE_CHECKING:
    from ..manager import McpServerManager

logger = logging.getLogger(__name__)


def register_schema_resources(mcp: FastMCP, manager: "McpServerManager") -> None:
    @mcp.resource(
        "wfstudio://workflow-schema",
        name="Workflow Schema",
        description="Full JSON schema for workflow documents, with field descriptions and an example.",
        mime_type="application/json",
    )
    async def workflow_schema() -> str:
        return await asyncio.to_thread(load_workflow_schema, "full", manager.get_context_path())

    @mcp.resource(
        "wfstudio://workflow-schema/basic",
        name="Workflow Schema (basic)",
        description="Reduced JSON schema for workflow documents.",
        mime_type="application/json",
    )
    async def workflow_schema_basic() -> str:
        return await asyncio.to_thread(load_workflow_schema, "basic", manager.get_context_path())

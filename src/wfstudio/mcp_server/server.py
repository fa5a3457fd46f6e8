"""FastMCP server construction for wfstudio.

A new FastMCP instance is built for every inbound HTTP request so that
concurrent callers never share protocol session state. All instances are
bound to the same server manager, and through it to one workflow bridge.
"""

from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from .resources import register_schema_resources
from .tools import register_workflow_tools

if TYPE_CHECKING:
    from .manager import McpServerManager

INSTRUCTIONS = """Tools for reading and editing the workflow open in the visual workflow editor.

RECOMMENDED SEQUENCE:
1. get_workflow_schema -> learn the document structure
2. get_current_workflow -> start from what is on the canvas (check isStale)
3. validate_workflow -> fix every reported error
4. apply_workflow -> the user may be asked to review the change first

Connections use 'from'/'to' (not 'source'/'target'). Keep existing node IDs when modifying a workflow."""


def create_mcp_server(manager: "McpServerManager") -> FastMCP:
    """Build a FastMCP instance with all tools and resources registered.

    The instance serves exactly one request, so no session state is kept
    between calls.
    """
    settings = manager.settings
    mcp = FastMCP(
        settings.server_name,
        instructions=INSTRUCTIONS,
        stateless_http=True,
        json_response=settings.json_response,
        streamable_http_path=settings.endpoint_path,
    )
    register_workflow_tools(mcp, manager)
    register_schema_resources(mcp, manager)
    return mcp


__all__ = ["INSTRUCTIONS", "create_mcp_server"]

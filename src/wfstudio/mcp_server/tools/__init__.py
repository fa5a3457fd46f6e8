"""MCP tools for wfstudio."""

from .workflow_tools import TOOL_NAMES, register_workflow_tools

__all__ = ["TOOL_NAMES", "register_workflow_tools"]

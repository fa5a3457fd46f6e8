"""wfstudio - built-in MCP server for the workflow studio canvas."""

__version__ = "0.1.0"

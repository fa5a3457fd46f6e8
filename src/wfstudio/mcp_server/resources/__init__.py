"""Static documents served by the MCP server.

``workflow-schema.json`` and ``workflow-schema-basic.json`` are loaded by
``wfstudio.mcp_server.schema_loader``; ``schema_resources`` exposes them as
MCP resources.
"""

from .schema_resources import register_schema_resources

__all__ = ["register_schema_resources"]

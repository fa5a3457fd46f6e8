"""Service layer for the MCP server.

Tool functions stay thin and delegate to these stateless services, which
tests can call without going through the protocol.
"""

from .base_service import BaseService
from .workflow_service import WorkflowToolService

__all__ = [
    "BaseService",
    "WorkflowToolService",
]

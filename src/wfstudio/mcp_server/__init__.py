"""Built-in MCP server and dual-mode workflow bridge.

External AI agents call the workflow tools over streamable HTTP; the bridge
routes each call to a live canvas (UI mode), a storage-backed provider
(headless mode), or the last cached workflow.
"""

from .bridge import WorkflowBridge
from .config_targets import ConfigTargetTracker, McpConfigWriter
from .correlation import RequestCorrelator
from .manager import McpServerManager, ServerState
from .providers import FileSystemWorkflowProvider, WorkflowProvider
from .transport import MessageTransport, QueueMessageTransport
from .types import HeadlessBinding, NoBinding, ProviderBinding, UiBinding, WorkflowSnapshot

__all__ = [
    "ConfigTargetTracker",
    "FileSystemWorkflowProvider",
    "HeadlessBinding",
    "McpConfigWriter",
    "McpServerManager",
    "MessageTransport",
    "NoBinding",
    "ProviderBinding",
    "QueueMessageTransport",
    "RequestCorrelator",
    "ServerState",
    "UiBinding",
    "WorkflowBridge",
    "WorkflowProvider",
    "WorkflowSnapshot",
]

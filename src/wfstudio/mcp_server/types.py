"""Type definitions for the MCP server and workflow bridge."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Optional, TypedDict, Union

if TYPE_CHECKING:
    from .providers import WorkflowProvider
    from .transport import MessageTransport

# A workflow document as exchanged with the canvas (see wfstudio.core.workflow_schema)
Workflow = dict[str, Any]

# Downstream AI tools whose MCP config can point at this server
McpConfigTarget = Literal["claude-code", "roo-code", "copilot", "codex"]

# AI tool currently driving edits (selects the schema variant)
AiEditingProvider = Literal[
    "claude-code",
    "codex",
    "roo-code",
    "copilot-vscode",
    "copilot-cli",
    "gemini",
    "cursor",
    "antigravity",
]


class TransportMessage(TypedDict, total=False):
    """Raw message shape carried by a MessageTransport."""

    type: str
    requestId: str
    payload: Any


class ServerStatusPayload(TypedDict):
    """Status reported to the canvas host."""

    running: bool
    port: Optional[int]
    configsWritten: list[str]
    reviewBeforeApply: bool


@dataclass(frozen=True)
class WorkflowSnapshot:
    """Last-known workflow plus whether it came from the fallback cache."""

    workflow: Optional[Workflow]
    is_stale: bool = False


@dataclass(frozen=True)
class UiBinding:
    """A live canvas is attached through a message transport."""

    transport: "MessageTransport"
    kind: Literal["ui"] = field(default="ui", init=False)


@dataclass(frozen=True)
class HeadlessBinding:
    """No canvas; workflows are read and written through a provider."""

    provider: "WorkflowProvider"
    kind: Literal["headless"] = field(default="headless", init=False)


@dataclass(frozen=True)
class NoBinding:
    """Nothing attached; fetches fall back to the cache and applies fail."""

    kind: Literal["none"] = field(default="none", init=False)


ProviderBinding = Union[UiBinding, HeadlessBinding, NoBinding]

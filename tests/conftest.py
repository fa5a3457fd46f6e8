"""Root-level test configuration and fixtures."""

import asyncio
import copy
from typing import Any, Optional

import pytest

from wfstudio.core.settings import BridgeSettings
from wfstudio.mcp_server.messages import (
    APPLY_WORKFLOW_FROM_MCP,
    APPLY_WORKFLOW_FROM_MCP_RESPONSE,
    GET_CURRENT_WORKFLOW_REQUEST,
    GET_CURRENT_WORKFLOW_RESPONSE,
)
from wfstudio.mcp_server.transport import QueueMessageTransport
from wfstudio.mcp_server.types import WorkflowSnapshot

SAMPLE_WORKFLOW: dict[str, Any] = {
    "id": "workflow-review-pr",
    "name": "review-pr",
    "description": "Summarize a pull request",
    "version": "1.0.0",
    "nodes": [
        {"id": "start", "type": "start", "name": "Start", "position": {"x": 0, "y": 0}, "data": {}},
        {
            "id": "summarize",
            "type": "prompt",
            "name": "Summarize",
            "position": {"x": 300, "y": 0},
            "data": {"prompt": "Summarize the pull request"},
        },
        {"id": "end", "type": "end", "name": "End", "position": {"x": 600, "y": 0}, "data": {}},
    ],
    "connections": [
        {"id": "c1", "from": "start", "to": "summarize"},
        {"id": "c2", "from": "summarize", "to": "end"},
    ],
}


class RecordingProvider:
    """Headless provider double that records every call."""

    def __init__(self, workflow: Optional[dict[str, Any]] = None, apply_result: bool = True):
        self.workflow = workflow
        self.apply_result = apply_result
        self.get_calls = 0
        self.applied: list[tuple[dict[str, Any], Optional[str]]] = []

    async def get_current_workflow(self) -> WorkflowSnapshot:
        self.get_calls += 1
        return WorkflowSnapshot(workflow=self.workflow, is_stale=False)

    async def apply_workflow(self, workflow: dict[str, Any], description: Optional[str] = None) -> bool:
        self.applied.append((workflow, description))
        return self.apply_result


class FakeCanvas:
    """Answers bridge requests over a QueueMessageTransport like the editor would.

    With ``respond=False`` requests are only recorded, simulating a canvas
    that never answers.
    """

    def __init__(
        self,
        workflow: Optional[dict[str, Any]] = None,
        respond: bool = True,
        apply_success: bool = True,
        apply_error: Optional[str] = None,
    ):
        self.workflow = workflow
        self.respond = respond
        self.apply_success = apply_success
        self.apply_error = apply_error
        self.received: list[dict[str, Any]] = []
        self.transport = QueueMessageTransport(sender=self._on_send)

    def _on_send(self, message: dict[str, Any]) -> None:
        self.received.append(message)
        if not self.respond:
            return

        payload = message["payload"]
        if message["type"] == GET_CURRENT_WORKFLOW_REQUEST:
            reply = {
                "type": GET_CURRENT_WORKFLOW_RESPONSE,
                "payload": {"correlationId": payload["correlationId"], "workflow": self.workflow},
            }
        elif message["type"] == APPLY_WORKFLOW_FROM_MCP:
            if self.apply_success:
                self.workflow = payload["workflow"]
            reply = {
                "type": APPLY_WORKFLOW_FROM_MCP_RESPONSE,
                "payload": {
                    "correlationId": payload["correlationId"],
                    "success": self.apply_success,
                    "error": self.apply_error,
                },
            }
        else:
            return

        # Answer asynchronously, the way a real message channel does
        asyncio.get_running_loop().call_soon(self.transport.handle_incoming, reply)


@pytest.fixture
def sample_workflow() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_WORKFLOW)


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider()


@pytest.fixture
def fast_settings() -> BridgeSettings:
    """Settings with short deadlines so timeout paths run quickly."""
    return BridgeSettings(request_timeout_ms=50, apply_with_review_timeout_ms=80, shutdown_grace_seconds=0.5)


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    """Keep developer environment overrides out of the tests."""
    for name in ("WFSTUDIO_REQUEST_TIMEOUT_MS", "WFSTUDIO_APPLY_TIMEOUT_MS", "WFSTUDIO_REVIEW_BEFORE_APPLY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_canvas():
    """Factory for FakeCanvas instances."""
    return FakeCanvas


@pytest.fixture
def make_provider():
    """Factory for RecordingProvider instances."""
    return RecordingProvider

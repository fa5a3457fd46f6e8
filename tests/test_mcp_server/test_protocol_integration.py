"""End-to-end tests driving the running server with a real MCP client."""

import asyncio
import json

from mcp import ClientSession
from mcp.client.streamable_http import streamablehttp_client

from wfstudio.core.settings import BridgeSettings
from wfstudio.mcp_server.manager import McpServerManager
from wfstudio.mcp_server.tools import TOOL_NAMES


def run_client(manager: McpServerManager, scenario):
    """Start the server, run ``scenario(session)`` against it, and stop again."""

    async def run():
        await manager.start()
        try:
            async with streamablehttp_client(manager.get_url()) as (read_stream, write_stream, _):
                async with ClientSession(read_stream, write_stream) as session:
                    await session.initialize()
                    return await scenario(session)
        finally:
            await manager.stop()

    return asyncio.run(run())


def tool_result(result) -> dict:
    return json.loads(result.content[0].text)


class TestProtocolRoundTrips:
    def test_list_tools(self, fast_settings):
        async def scenario(session):
            return await session.list_tools()

        result = run_client(McpServerManager(fast_settings), scenario)

        assert sorted(t.name for t in result.tools) == sorted(TOOL_NAMES)

    def test_validate_invalid_json(self, fast_settings):
        async def scenario(session):
            return await session.call_tool("validate_workflow", {"workflow": "{not json"})

        result = run_client(McpServerManager(fast_settings), scenario)

        assert tool_result(result)["errors"][0]["code"] == "PARSE_ERROR"
        assert result.isError is False

    def test_apply_invalid_json_sets_error_flag(self, fast_settings, provider):
        manager = McpServerManager(fast_settings)
        manager.set_workflow_provider(provider)

        async def scenario(session):
            return await session.call_tool("apply_workflow", {"workflow": "{not json"})

        result = run_client(manager, scenario)

        assert result.isError is True
        assert tool_result(result) == {"success": False, "error": "Invalid JSON: Failed to parse workflow string"}
        assert provider.applied == []

    def test_get_current_workflow_without_editor(self, fast_settings):
        async def scenario(session):
            return await session.call_tool("get_current_workflow", {})

        result = run_client(McpServerManager(fast_settings), scenario)

        assert tool_result(result)["success"] is False
        assert result.isError is False

    def test_get_current_workflow_from_canvas(self, make_canvas, sample_workflow):
        manager = McpServerManager(BridgeSettings(request_timeout_ms=2000))
        canvas = make_canvas(workflow=sample_workflow)
        manager.set_transport(canvas.transport)

        async def scenario(session):
            return await session.call_tool("get_current_workflow", {})

        result = run_client(manager, scenario)

        assert tool_result(result) == {"success": True, "isStale": False, "workflow": sample_workflow}
        assert len(canvas.received) == 1

    def test_apply_workflow_headless(self, fast_settings, provider, sample_workflow):
        manager = McpServerManager(fast_settings)
        manager.set_workflow_provider(provider)

        async def scenario(session):
            return await session.call_tool(
                "apply_workflow", {"workflow": json.dumps(sample_workflow), "description": "Initial draft"}
            )

        result = run_client(manager, scenario)

        assert tool_result(result) == {"success": True}
        assert result.isError is False
        assert provider.applied == [(sample_workflow, "Initial draft")]

    def test_sequential_calls_share_the_bridge(self, make_provider, sample_workflow, fast_settings):
        manager = McpServerManager(fast_settings)
        manager.set_workflow_provider(make_provider(workflow=None))

        async def scenario(session):
            await session.call_tool("apply_workflow", {"workflow": json.dumps(sample_workflow)})
            manager.set_workflow_provider(None)
            return await session.call_tool("get_current_workflow", {})

        result = run_client(manager, scenario)

        assert tool_result(result) == {"success": True, "isStale": True, "workflow": sample_workflow}

    def test_read_schema_resource(self, fast_settings):
        async def scenario(session):
            return await session.read_resource("wfstudio://workflow-schema")

        result = run_client(McpServerManager(fast_settings), scenario)

        assert json.loads(result.contents[0].text)["title"] == "Workflow"

"""ASGI application serving the single MCP endpoint.

Every request on the endpoint gets a fresh FastMCP instance running a
stateless streamable HTTP session, torn down once the response is complete.
Anything else is answered with a small JSON error.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from starlette.responses import JSONResponse
from starlette.types import Message, Receive, Scope, Send

from .server import create_mcp_server

if TYPE_CHECKING:
    from .manager import McpServerManager

module_logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST", "DELETE")


class McpHttpApp:
    """ASGI app routing ``endpoint_path`` to a per-request protocol session."""

    def __init__(self, manager: "McpServerManager", logger: Optional[logging.Logger] = None):
        self._manager = manager
        self._logger = logger or module_logger
        self._endpoint_path = manager.settings.endpoint_path
        self._active_tasks: set[asyncio.Task[Any]] = set()

    @property
    def active_requests(self) -> int:
        return len(self._active_tasks)

    def cancel_active_requests(self) -> int:
        """Cancel every in-flight request. Returns how many were cancelled."""
        tasks = [task for task in self._active_tasks if not task.done()]
        for task in tasks:
            task.cancel()
        return len(tasks)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        if scope["path"].rstrip("/") != self._endpoint_path.rstrip("/"):
            await JSONResponse({"error": "Not found"}, status_code=404)(scope, receive, send)
            return

        method = scope["method"]
        if method not in ALLOWED_METHODS:
            response = JSONResponse(
                {"error": "Method not allowed"},
                status_code=405,
                headers={"Allow": ", ".join(ALLOWED_METHODS)},
            )
            await response(scope, receive, send)
            return

        task = asyncio.current_task()
        if task is not None:
            self._active_tasks.add(task)

        headers_sent = False

        async def tracking_send(message: Message) -> None:
            nonlocal headers_sent
            if message["type"] == "http.response.start":
                headers_sent = True
            await send(message)

        try:
            await self._handle_protocol_request(scope, receive, tracking_send)
        except Exception:
            self._logger.exception(f"Error handling MCP {method} request")
            if not headers_sent:
                await JSONResponse({"error": "Internal server error"}, status_code=500)(scope, receive, send)
        finally:
            if task is not None:
                self._active_tasks.discard(task)

    async def _handle_protocol_request(self, scope: Scope, receive: Receive, send: Callable[..., Any]) -> None:
        mcp = create_mcp_server(self._manager)
        # Builds the session manager; the Starlette wrapper itself is not used
        mcp.streamable_http_app()
        session_manager = mcp.session_manager

        # Leaving run() cancels the session task group and disposes the transport
        async with session_manager.run():
            await session_manager.handle_request(scope, receive, send)

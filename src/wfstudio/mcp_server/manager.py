"""Lifecycle of the built-in MCP server.

``McpServerManager`` owns the HTTP listener (uvicorn on an OS-assigned
loopback port), the workflow bridge the tools talk to, and the per-session
bookkeeping the host consults (config targets, current AI provider).

State transitions: stopped -> starting -> listening -> stopping -> stopped.
"""

import asyncio
import contextlib
import logging
import socket
from collections.abc import Generator, Iterable
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import uvicorn

from wfstudio.core.exceptions import ServerAlreadyRunningError, WfStudioError
from wfstudio.core.settings import BridgeSettings

from .bridge import WorkflowBridge
from .config_targets import ConfigTargetTracker
from .http_app import McpHttpApp
from .providers import WorkflowProvider
from .transport import MessageTransport
from .types import ServerStatusPayload

module_logger = logging.getLogger(__name__)

# How long to wait for the listener after connections were force-closed
FORCE_CLOSE_WAIT_SECONDS = 1.0
STARTUP_POLL_SECONDS = 0.01


class ServerState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    LISTENING = "listening"
    STOPPING = "stopping"


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves process signal handling to the host."""

    @contextlib.contextmanager
    def capture_signals(self) -> Generator[None, None, None]:
        yield


class McpServerManager:
    """Starts and stops the MCP HTTP listener and holds the workflow bridge.

    Collaborators are injected: pass ``settings`` and ``logger`` (and
    optionally a prebuilt ``bridge``) at construction time.
    """

    def __init__(
        self,
        settings: Optional[BridgeSettings] = None,
        logger: Optional[logging.Logger] = None,
        bridge: Optional[WorkflowBridge] = None,
    ):
        self.settings = settings or BridgeSettings()
        self._logger = logger or module_logger
        self.bridge = bridge or WorkflowBridge(self.settings, self._logger)

        self._state = ServerState.STOPPED
        self._port: Optional[int] = None
        self._context_path: Optional[Path] = None
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task[None]] = None
        self._app: Optional[McpHttpApp] = None

        self._config_targets = ConfigTargetTracker()
        self._current_provider: Optional[str] = None

    # Lifecycle

    @property
    def state(self) -> ServerState:
        return self._state

    def is_running(self) -> bool:
        return self._state is ServerState.LISTENING

    def get_port(self) -> Optional[int]:
        return self._port

    def get_url(self) -> Optional[str]:
        """Endpoint URL clients connect to, or None when not listening."""
        if self._port is None:
            return None
        host = f"[{self.settings.host}]" if ":" in self.settings.host else self.settings.host
        return f"http://{host}:{self._port}{self.settings.endpoint_path}"

    async def start(self, context_path: Optional[Union[str, Path]] = None) -> int:
        """Start listening on an ephemeral loopback port.

        Args:
            context_path: Host directory holding resources such as schema overrides

        Returns:
            The port assigned by the OS

        Raises:
            ServerAlreadyRunningError: If the server is not fully stopped
            OSError: If binding the socket fails
        """
        if self._state is not ServerState.STOPPED:
            raise ServerAlreadyRunningError()

        self._state = ServerState.STARTING
        self._context_path = Path(context_path) if context_path is not None else None
        sock: Optional[socket.socket] = None
        serve_task: Optional[asyncio.Task[None]] = None

        try:
            sock = self._bind_socket()
            port = sock.getsockname()[1]

            app = McpHttpApp(self, self._logger)
            config = uvicorn.Config(
                app,
                log_config=None,
                access_log=False,
                interface="asgi3",
                lifespan="off",
                ws="none",
            )
            server = _EmbeddedServer(config)
            serve_task = asyncio.create_task(server.serve(sockets=[sock]))
            await self._wait_until_started(server, serve_task)
        except BaseException:
            self._state = ServerState.STOPPED
            self._context_path = None
            if serve_task is not None and not serve_task.done():
                serve_task.cancel()
            if sock is not None:
                sock.close()
            raise

        self._app = app
        self._server = server
        self._serve_task = serve_task
        self._port = port
        self._state = ServerState.LISTENING
        self._logger.info(f"MCP server listening on {self.get_url()}")
        return port

    async def stop(self) -> None:
        """Stop the listener. Safe to call when not running.

        Connections still open after the grace period are force-closed.
        Pending canvas correlations are left alone; they finish on their own
        deadlines. Per-session state is cleared however shutdown ends.
        """
        server, serve_task = self._server, self._serve_task
        if server is None or serve_task is None:
            self._reset_session_state()
            return

        self._state = ServerState.STOPPING
        self._server = None
        self._serve_task = None

        try:
            await self._shutdown(server, serve_task)
        finally:
            self._state = ServerState.STOPPED
            self._port = None
            self._app = None
            self._reset_session_state()
            self._logger.info("MCP server stopped")

    def _bind_socket(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.settings.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.bind((self.settings.host, 0))
        except OSError:
            sock.close()
            raise
        return sock

    async def _wait_until_started(self, server: uvicorn.Server, serve_task: "asyncio.Task[None]") -> None:
        while not server.started:
            if serve_task.done():
                error = None if serve_task.cancelled() else serve_task.exception()
                raise WfStudioError("MCP HTTP listener exited during startup") from error
            await asyncio.sleep(STARTUP_POLL_SECONDS)

    async def _shutdown(self, server: uvicorn.Server, serve_task: "asyncio.Task[None]") -> None:
        server.should_exit = True
        try:
            await asyncio.wait_for(asyncio.shield(serve_task), timeout=self.settings.shutdown_grace_seconds)
            return
        except asyncio.TimeoutError:
            pass
        except Exception:
            self._logger.exception("MCP HTTP listener failed during shutdown")
            return

        cancelled = self._app.cancel_active_requests() if self._app is not None else 0
        self._logger.warning(f"Force closing after timeout ({cancelled} open request(s))")
        server.force_exit = True

        try:
            await asyncio.wait_for(asyncio.shield(serve_task), timeout=FORCE_CLOSE_WAIT_SECONDS)
        except asyncio.TimeoutError:
            serve_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await serve_task
        except Exception:
            self._logger.exception("MCP HTTP listener failed during forced shutdown")

    def _reset_session_state(self) -> None:
        self._config_targets.clear()
        self._current_provider = None

    # Bindings

    def set_transport(self, transport: Optional[MessageTransport]) -> None:
        self.bridge.set_transport(transport)

    def set_workflow_provider(self, provider: Optional[WorkflowProvider]) -> None:
        self.bridge.set_workflow_provider(provider)

    # Session bookkeeping

    def get_context_path(self) -> Optional[Path]:
        return self._context_path

    def get_written_configs(self) -> list[str]:
        return self._config_targets.targets()

    def add_written_configs(self, targets: Iterable[str]) -> None:
        self._config_targets.add(targets)

    @property
    def config_targets(self) -> ConfigTargetTracker:
        return self._config_targets

    def set_current_provider(self, provider: Optional[str]) -> None:
        """Record which AI tool is driving edits; selects the schema variant."""
        self._current_provider = provider

    def get_current_provider(self) -> Optional[str]:
        return self._current_provider

    def set_review_before_apply(self, value: bool) -> None:
        self.bridge.set_review_before_apply(value)

    def get_review_before_apply(self) -> bool:
        return self.bridge.get_review_before_apply()

    def get_status(self) -> ServerStatusPayload:
        return {
            "running": self.is_running(),
            "port": self._port,
            "configsWritten": self.get_written_configs(),
            "reviewBeforeApply": self.get_review_before_apply(),
        }

"""Custom exceptions for wfstudio."""

from typing import Optional


class WfStudioError(Exception):
    """Base exception for all wfstudio errors."""

    pass


class ServerAlreadyRunningError(WfStudioError):
    """Raised when starting a server that is not fully stopped."""

    def __init__(self, message: str = "MCP server is already running"):
        super().__init__(message)


class NoActiveEditorError(WfStudioError):
    """Raised when a workflow write has neither a transport nor a provider to go to."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message or "No transport or workflow provider available. Please open the workflow editor."
        )


class RequestTimeoutError(WfStudioError):
    """Raised when a correlated UI round trip exceeds its deadline."""

    def __init__(self, kind: str, timeout_ms: int, message: Optional[str] = None):
        self.kind = kind
        self.timeout_ms = timeout_ms
        super().__init__(message or f"Timeout waiting for {kind} response after {timeout_ms}ms")


class WorkflowApplyError(WfStudioError):
    """Raised when the canvas explicitly rejects a workflow apply."""

    pass


class SchemaLoadError(WfStudioError):
    """Raised when the workflow schema resource cannot be loaded."""

    def __init__(self, message: str, path: Optional[str] = None, original_error: Optional[Exception] = None):
        self.path = path
        self.original_error = original_error

        if path:
            message = f"{message}\nSchema path: {path}"
        if original_error:
            message = f"{message}\nOriginal error: {original_error!s}"

        super().__init__(message)


class ConfigWriteError(WfStudioError):
    """Raised when a downstream tool's MCP config file cannot be written."""

    def __init__(self, target: str, message: str):
        self.target = target
        super().__init__(f"{target}: {message}")

"""Core wfstudio modules for workflow documents, settings, and errors."""

from .exceptions import (
    ConfigWriteError,
    NoActiveEditorError,
    RequestTimeoutError,
    SchemaLoadError,
    ServerAlreadyRunningError,
    WfStudioError,
    WorkflowApplyError,
)
from .settings import BridgeSettings, SettingsManager
from .workflow_schema import (
    MAX_NODES,
    WORKFLOW_SCHEMA,
    ValidationError,
    parse_workflow_json,
    validate_workflow,
    validate_workflow_document,
)

__all__ = [
    "MAX_NODES",
    "WORKFLOW_SCHEMA",
    "BridgeSettings",
    "ConfigWriteError",
    "NoActiveEditorError",
    "RequestTimeoutError",
    "SchemaLoadError",
    "ServerAlreadyRunningError",
    "SettingsManager",
    "ValidationError",
    "WfStudioError",
    "WorkflowApplyError",
    "parse_workflow_json",
    "validate_workflow",
    "validate_workflow_document",
]

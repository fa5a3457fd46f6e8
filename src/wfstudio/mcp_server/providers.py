"""Headless workflow providers.

A provider reads and writes the workflow document directly from storage so
the MCP tools keep working when no canvas is attached.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from wfstudio.core.json_utils import write_json_atomic

from .types import Workflow, WorkflowSnapshot

logger = logging.getLogger(__name__)


@runtime_checkable
class WorkflowProvider(Protocol):
    """Storage-backed source of the current workflow."""

    async def get_current_workflow(self) -> WorkflowSnapshot: ...

    async def apply_workflow(self, workflow: Workflow, description: Optional[str] = None) -> bool: ...


class FileSystemWorkflowProvider:
    """WorkflowProvider that reads and writes a single workflow JSON file."""

    def __init__(self, workflow_path: Union[str, Path]):
        self.workflow_path = Path(workflow_path)

    async def get_current_workflow(self) -> WorkflowSnapshot:
        """Read the workflow file; a missing file means no workflow, not an error."""
        return await asyncio.to_thread(self._read)

    async def apply_workflow(self, workflow: Workflow, description: Optional[str] = None) -> bool:
        if description:
            logger.info(f"Applying workflow to {self.workflow_path}: {description}")
        await asyncio.to_thread(write_json_atomic, self.workflow_path, workflow, ".workflow-")
        return True

    def _read(self) -> WorkflowSnapshot:
        if not self.workflow_path.exists():
            logger.debug(f"No workflow file at {self.workflow_path}")
            return WorkflowSnapshot(workflow=None, is_stale=False)

        with open(self.workflow_path, encoding="utf-8") as f:
            workflow = json.load(f)
        return WorkflowSnapshot(workflow=workflow, is_stale=False)

    def __repr__(self) -> str:
        return f"FileSystemWorkflowProvider({str(self.workflow_path)!r})"

"""Dual-mode workflow bridge.

Routes every workflow fetch and apply to exactly one place, in priority order:

1. UI mode - a canvas attached through a MessageTransport. Requests carry a
   correlation ID and are answered asynchronously via ``handle_message``.
2. Headless mode - a WorkflowProvider reading/writing storage directly.
3. Degraded mode - the in-memory cache of the last fresh workflow. Fetches
   are served from it marked stale; applies fail.

Only fresh results ever replace the cache, so staleness never compounds.
"""

import asyncio
import logging
from typing import Any, Optional

from wfstudio.core.exceptions import NoActiveEditorError, WorkflowApplyError
from wfstudio.core.settings import BridgeSettings

from .correlation import RequestCorrelator
from .messages import (
    ApplyWorkflowResponsePayload,
    GetCurrentWorkflowResponse,
    GetCurrentWorkflowResponsePayload,
    MessageValidationError,
    build_apply_workflow_request,
    build_get_workflow_request,
    parse_bridge_message,
)
from .providers import WorkflowProvider
from .transport import MessageTransport
from .types import HeadlessBinding, NoBinding, ProviderBinding, UiBinding, Workflow, WorkflowSnapshot

module_logger = logging.getLogger(__name__)


class WorkflowBridge:
    """Normalizes UI, headless, and cached workflow access behind one contract."""

    def __init__(self, settings: Optional[BridgeSettings] = None, logger: Optional[logging.Logger] = None):
        self._settings = settings or BridgeSettings()
        self._logger = logger or module_logger
        self._correlator = RequestCorrelator(self._logger)
        self._binding: ProviderBinding = NoBinding()
        self._provider: Optional[WorkflowProvider] = None
        self._cached_workflow: Optional[Workflow] = None
        self._review_before_apply = self._settings.review_before_apply

    @property
    def binding(self) -> ProviderBinding:
        return self._binding

    @property
    def cached_workflow(self) -> Optional[Workflow]:
        return self._cached_workflow

    @property
    def pending_count(self) -> int:
        return len(self._correlator)

    # Bindings

    def set_transport(self, transport: Optional[MessageTransport]) -> None:
        """Attach a live canvas, or detach it with ``None``.

        Detaching is the explicit liveness signal for a closed canvas: the
        bridge falls back to the registered provider, if any, instead of
        waiting for timeouts. Requests already in flight keep their deadlines.
        """
        if transport is None:
            self._binding = HeadlessBinding(self._provider) if self._provider is not None else NoBinding()
            self._logger.info(f"Transport detached; bridge is now in {self._binding.kind} mode")
            return

        transport.on_message(self.handle_message)
        self._binding = UiBinding(transport)
        self._logger.debug("Transport attached; bridge is now in ui mode")

    def set_workflow_provider(self, provider: Optional[WorkflowProvider]) -> None:
        """Register (or clear) the headless provider.

        An attached canvas keeps priority; the provider only becomes active
        once no transport is bound.
        """
        self._provider = provider
        if isinstance(self._binding, UiBinding):
            return
        self._binding = HeadlessBinding(provider) if provider is not None else NoBinding()
        self._logger.debug(f"Bridge is now in {self._binding.kind} mode")

    # Review setting

    def set_review_before_apply(self, value: bool) -> None:
        self._review_before_apply = value

    def get_review_before_apply(self) -> bool:
        return self._review_before_apply

    # Cache

    def update_workflow_cache(self, workflow: Optional[Workflow]) -> None:
        """Record a freshly obtained workflow as the fallback for degraded mode."""
        if workflow is None:
            return
        self._cached_workflow = workflow

    def _stale_snapshot(self) -> Optional[WorkflowSnapshot]:
        if self._cached_workflow is None:
            return None
        return WorkflowSnapshot(workflow=self._cached_workflow, is_stale=True)

    # Operations

    async def request_current_workflow(self) -> WorkflowSnapshot:
        """Fetch the current workflow.

        Never raises for "no data": with nothing bound and nothing cached the
        snapshot holds ``None``. A UI fetch that times out is answered from
        the cache marked stale, and only raises RequestTimeoutError when the
        cache is empty.
        """
        binding = self._binding

        if isinstance(binding, UiBinding):
            correlation_id, future = self._correlator.issue(
                "get",
                self._settings.request_timeout_ms,
                fallback=self._stale_snapshot,
                timeout_message="Timeout waiting for workflow from canvas",
            )
            self._send(binding.transport, correlation_id, build_get_workflow_request(correlation_id))
            # Shielded so a cancelled caller leaves the correlation to finish on its own deadline
            snapshot: WorkflowSnapshot = await asyncio.shield(future)
            return snapshot

        if isinstance(binding, HeadlessBinding):
            snapshot = await binding.provider.get_current_workflow()
            if not snapshot.is_stale:
                self.update_workflow_cache(snapshot.workflow)
            return snapshot

        return self._stale_snapshot() or WorkflowSnapshot(workflow=None, is_stale=False)

    async def apply_workflow(self, workflow: Workflow, description: Optional[str] = None) -> bool:
        """Apply a workflow to the canvas or storage.

        Raises:
            NoActiveEditorError: If neither a transport nor a provider is bound
            WorkflowApplyError: If the canvas rejected the workflow
            RequestTimeoutError: If the canvas did not answer in time
        """
        binding = self._binding

        if isinstance(binding, UiBinding):
            require_confirmation = self._review_before_apply
            timeout_ms = (
                self._settings.apply_with_review_timeout_ms
                if require_confirmation
                else self._settings.request_timeout_ms
            )
            correlation_id, future = self._correlator.issue(
                "apply",
                timeout_ms,
                timeout_message="Timeout waiting for workflow apply confirmation",
            )
            message = build_apply_workflow_request(correlation_id, workflow, require_confirmation, description)
            self._send(binding.transport, correlation_id, message)
            applied: bool = await asyncio.shield(future)
        elif isinstance(binding, HeadlessBinding):
            applied = await binding.provider.apply_workflow(workflow, description)
        else:
            raise NoActiveEditorError()

        if applied:
            self.update_workflow_cache(workflow)
        return applied

    def _send(self, transport: MessageTransport, correlation_id: str, message: Any) -> None:
        try:
            transport.send(message)
        except Exception as e:
            self._logger.exception(f"Failed to send {message.get('type')} to canvas")
            self._correlator.reject(correlation_id, e)

    # Inbound messages

    def handle_message(self, raw: Any) -> None:
        """Transport subscription entry point for messages from the canvas."""
        try:
            message = parse_bridge_message(raw)
        except MessageValidationError as e:
            self._logger.warning(f"Dropping malformed message from canvas: {e}")
            return

        if message is None:
            return
        if isinstance(message, GetCurrentWorkflowResponse):
            self.handle_workflow_response(message.payload)
        else:
            self.handle_apply_response(message.payload)

    def handle_workflow_response(self, payload: GetCurrentWorkflowResponsePayload) -> None:
        if payload.correlation_id not in self._correlator:
            self._logger.debug(f"Ignoring late workflow response {payload.correlation_id}")
            return

        self.update_workflow_cache(payload.workflow)
        self._correlator.resolve(payload.correlation_id, WorkflowSnapshot(workflow=payload.workflow, is_stale=False))

    def handle_apply_response(self, payload: ApplyWorkflowResponsePayload) -> None:
        if payload.success:
            self._correlator.resolve(payload.correlation_id, True)
        else:
            self._correlator.reject(payload.correlation_id, WorkflowApplyError(payload.error or "Failed to apply workflow"))

"""Correlation of asynchronous request/response pairs across the canvas boundary.

The canvas answers requests by posting a message back with the same
correlation ID. Each outstanding request is an ``asyncio.Future`` paired with
a deadline timer; the pair is always created and disposed together so a late
response can never resolve a request that already timed out, and a timer can
never fire after a response arrived.
"""

import asyncio
import itertools
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from wfstudio.core.exceptions import RequestTimeoutError

T = TypeVar("T")


@dataclass
class PendingRequest(Generic[T]):
    """In-flight state for one correlated request."""

    kind: str
    timeout_ms: int
    future: "asyncio.Future[T]"
    timer: asyncio.TimerHandle
    fallback: Optional[Callable[[], Optional[T]]] = None
    timeout_message: Optional[str] = None


class RequestCorrelator:
    """Tracks pending requests by correlation ID.

    ``resolve`` and ``reject`` are no-ops for unknown IDs, which makes
    duplicate and late responses harmless.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._pending: dict[str, PendingRequest[Any]] = {}
        self._counter = itertools.count(1)

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, correlation_id: object) -> bool:
        return correlation_id in self._pending

    def new_id(self, kind: str) -> str:
        """Generate a correlation ID that is never reused within the process.

        Timestamp plus random token, with a per-correlator sequence number so
        two IDs minted in the same millisecond still differ.
        """
        timestamp_ms = int(time.time() * 1000)
        return f"mcp-{kind}-{timestamp_ms}-{next(self._counter)}-{secrets.token_hex(4)}"

    def issue(
        self,
        kind: str,
        timeout_ms: int,
        fallback: Optional[Callable[[], Optional[T]]] = None,
        timeout_message: Optional[str] = None,
    ) -> tuple[str, "asyncio.Future[T]"]:
        """Register a new pending request.

        Args:
            kind: Short label for logs and timeout errors (e.g. "get", "apply")
            timeout_ms: Deadline after which the request expires
            fallback: Called on expiry; a non-None return value resolves the
                request instead of failing it with a timeout
            timeout_message: Message for the timeout error raised on expiry

        Returns:
            Tuple of (correlation_id, future) - embed the ID in the outbound message
        """
        loop = asyncio.get_running_loop()
        correlation_id = self.new_id(kind)
        while correlation_id in self._pending:
            correlation_id = self.new_id(kind)

        future: asyncio.Future[T] = loop.create_future()
        timer = loop.call_later(timeout_ms / 1000, self._expire, correlation_id)
        self._pending[correlation_id] = PendingRequest(
            kind=kind,
            timeout_ms=timeout_ms,
            future=future,
            timer=timer,
            fallback=fallback,
            timeout_message=timeout_message,
        )
        future.add_done_callback(lambda fut: self._discard(correlation_id, fut))

        self._logger.debug(f"Issued {kind} request {correlation_id} (timeout {timeout_ms}ms)")
        return correlation_id, future

    def resolve(self, correlation_id: str, value: Any) -> bool:
        """Resolve a pending request. Returns False if the ID is unknown."""
        pending = self._take(correlation_id)
        if pending is None:
            self._logger.debug(f"Ignoring response for unknown request {correlation_id}")
            return False
        if not pending.future.done():
            pending.future.set_result(value)
        return True

    def reject(self, correlation_id: str, error: BaseException) -> bool:
        """Fail a pending request. Returns False if the ID is unknown."""
        pending = self._take(correlation_id)
        if pending is None:
            self._logger.debug(f"Ignoring failure for unknown request {correlation_id}")
            return False
        if not pending.future.done():
            pending.future.set_exception(error)
        return True

    def _take(self, correlation_id: str) -> Optional[PendingRequest[Any]]:
        pending = self._pending.pop(correlation_id, None)
        if pending is not None:
            pending.timer.cancel()
        return pending

    def _discard(self, correlation_id: str, future: "asyncio.Future[Any]") -> None:
        # Only reached with a live entry when the future was cancelled from outside
        pending = self._pending.get(correlation_id)
        if pending is not None and pending.future is future:
            self._take(correlation_id)

    def _expire(self, correlation_id: str) -> None:
        pending = self._pending.pop(correlation_id, None)
        if pending is None or pending.future.done():
            return

        fallback_value = pending.fallback() if pending.fallback is not None else None
        if fallback_value is not None:
            self._logger.info(f"{pending.kind} request {correlation_id} timed out; serving cached value")
            pending.future.set_result(fallback_value)
            return

        self._logger.warning(f"{pending.kind} request {correlation_id} timed out after {pending.timeout_ms}ms")
        pending.future.set_exception(RequestTimeoutError(pending.kind, pending.timeout_ms, pending.timeout_message))

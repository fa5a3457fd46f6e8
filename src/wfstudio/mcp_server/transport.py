"""Message transport between the bridge and a live canvas.

Hosts (VSCode webview IPC, Electron IPC, a WebSocket) implement
``MessageTransport``. ``QueueMessageTransport`` is the in-process
implementation: outbound messages are pushed to a ``sender`` callback, or land
on an asyncio queue when no sender is set, and the host feeds canvas replies
back through ``handle_incoming``.
"""

import asyncio
import logging
from typing import Callable, Optional, Protocol, runtime_checkable

from .types import TransportMessage

logger = logging.getLogger(__name__)

MessageHandler = Callable[[TransportMessage], None]


@runtime_checkable
class MessageTransport(Protocol):
    """Bidirectional channel to the canvas."""

    def send(self, message: TransportMessage) -> None:
        """Post a message to the canvas. Must not block."""
        ...

    def on_message(self, handler: MessageHandler) -> None:
        """Register the handler for messages coming from the canvas."""
        ...


class QueueMessageTransport:
    """MessageTransport backed by an asyncio queue.

    Mirrors the WebSocket adapter: an optional ``sender`` callback forwards
    outbound messages to a live connection. Without a sender, messages are
    kept on ``outbox`` for a consumer that pulls them with ``next_message``.
    """

    def __init__(self, sender: Optional[Callable[[TransportMessage], None]] = None) -> None:
        self.outbox: asyncio.Queue[TransportMessage] = asyncio.Queue()
        self._sender = sender
        self._handler: Optional[MessageHandler] = None

    def set_sender(self, sender: Optional[Callable[[TransportMessage], None]]) -> None:
        self._sender = sender

    def send(self, message: TransportMessage) -> None:
        if self._sender is None:
            self.outbox.put_nowait(message)
            return
        self._sender(message)

    def on_message(self, handler: MessageHandler) -> None:
        self._handler = handler

    def handle_incoming(self, message: TransportMessage) -> None:
        """Called by the host when a message arrives from the canvas."""
        if self._handler is None:
            logger.debug(f"Dropping {message.get('type')} message: no handler registered")
            return
        self._handler(message)

    async def next_message(self, timeout: Optional[float] = None) -> TransportMessage:
        """Wait for the next outbound message."""
        if timeout is None:
            return await self.outbox.get()
        return await asyncio.wait_for(self.outbox.get(), timeout=timeout)

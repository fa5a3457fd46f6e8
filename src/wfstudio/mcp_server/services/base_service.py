"""Base service layer for MCP tool logic.

Services hold no state of their own: every call receives the server manager
it operates on, so a fresh protocol session per request can share nothing but
the bridge.
"""

import json
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

from mcp.types import CallToolResult, TextContent

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseService:
    """Base class for MCP services.

    All service methods are class methods; instances are never needed.
    """

    def __init__(self) -> None:
        # This init is here to catch accidental instance creation
        logger.debug(f"Creating {self.__class__.__name__} instance")

    @staticmethod
    def to_envelope(payload: dict[str, Any]) -> str:
        """Serialize a tool result envelope as compact JSON text."""
        return json.dumps(payload, ensure_ascii=False)

    @staticmethod
    def to_text_result(text: str, is_error: bool = False) -> CallToolResult:
        return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)

    @classmethod
    def to_result(cls, payload: dict[str, Any], is_error: bool = False) -> CallToolResult:
        """Wrap an envelope as a tool result.

        ``is_error`` sets the protocol error flag; the envelope text is the
        same either way.
        """
        return cls.to_text_result(cls.to_envelope(payload), is_error)


def ensure_stateless(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Decorator logging entry and exit of an async service operation."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        logger.debug(f"Executing {func.__name__}")
        result = await func(*args, **kwargs)
        logger.debug(f"Completed {func.__name__}")
        return result

    return wrapper

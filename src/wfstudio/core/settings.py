"""Settings management for wfstudio with environment variable override support."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from .json_utils import write_json_atomic

logger = logging.getLogger(__name__)

LOOPBACK_HOSTS = ("127.0.0.1", "localhost", "::1")


class BridgeSettings(BaseModel):
    """Configuration for the built-in MCP server and its workflow bridge.

    Timeouts are in milliseconds to match the values exchanged with the
    canvas host; the shutdown grace is in seconds.
    """

    version: str = Field(default="1.0.0")
    server_name: str = Field(default="wfstudio", description="Name reported to MCP clients")
    host: str = Field(default="127.0.0.1", description="Loopback address the listener binds to")
    endpoint_path: str = Field(default="/mcp", description="The single HTTP path serving the protocol")
    request_timeout_ms: int = Field(
        default=10000,
        gt=0,
        description="Deadline for workflow fetches, and for applies that need no confirmation",
    )
    apply_with_review_timeout_ms: int = Field(
        default=120000,
        gt=0,
        description="Deadline for applies that wait for a human to confirm on the canvas",
    )
    shutdown_grace_seconds: float = Field(
        default=3.0,
        gt=0,
        description="Time allowed for connections to close before they are force-terminated",
    )
    json_response: bool = Field(
        default=False,
        description="Answer POST requests with plain JSON instead of an SSE stream",
    )
    review_before_apply: bool = Field(default=True)

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Only loopback addresses are allowed; the server has no authentication."""
        if v not in LOOPBACK_HOSTS:
            raise ValueError(f"Invalid host: {v}. Must be one of: {', '.join(LOOPBACK_HOSTS)}")
        return v

    @field_validator("endpoint_path")
    @classmethod
    def validate_endpoint_path(cls, v: str) -> str:
        """Validate endpoint path is absolute."""
        if not v.startswith("/"):
            raise ValueError(f"Invalid endpoint_path: {v}. Must start with '/'")
        return v


class SettingsManager:
    """Manages wfstudio settings with environment variable override support.

    Overrides are applied to a copy on every load so they never end up
    persisted by ``save()``.
    """

    ENV_OVERRIDES: dict[str, str] = {
        "WFSTUDIO_REQUEST_TIMEOUT_MS": "request_timeout_ms",
        "WFSTUDIO_APPLY_TIMEOUT_MS": "apply_with_review_timeout_ms",
        "WFSTUDIO_REVIEW_BEFORE_APPLY": "review_before_apply",
    }

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = settings_path or Path.home() / ".wfstudio" / "settings.json"
        self._settings: Optional[BridgeSettings] = None

    def load(self) -> BridgeSettings:
        """Load settings with environment variable overrides."""
        if self._settings is None:
            self._settings = self._load_from_file()
        return self._apply_env_overrides(self._settings)

    def reload(self) -> BridgeSettings:
        """Force reload settings from file."""
        self._settings = None
        return self.load()

    def _load_from_file(self) -> BridgeSettings:
        """Load settings from file or return defaults."""
        if not self.settings_path.exists():
            return BridgeSettings()
        try:
            with open(self.settings_path, encoding="utf-8") as f:
                data = json.load(f)
            return BridgeSettings(**data)
        except Exception as e:
            # If file is corrupted, use defaults
            logger.warning(f"Failed to load settings from {self.settings_path} ({e}); using defaults")
            return BridgeSettings()

    def _apply_env_overrides(self, settings: BridgeSettings) -> BridgeSettings:
        """Return a copy of settings with environment variable overrides applied."""
        updates: dict[str, Any] = {}

        for env_name, field_name in self.ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue

            if field_name == "review_before_apply":
                lowered = raw.strip().lower()
                if lowered in ("true", "1", "yes"):
                    updates[field_name] = True
                elif lowered in ("false", "0", "no"):
                    updates[field_name] = False
                else:
                    logger.warning(f"Invalid {env_name}: {raw}. Using {getattr(settings, field_name)}")
                continue

            try:
                value = int(raw)
                if value <= 0:
                    raise ValueError("must be positive")
            except ValueError:
                logger.warning(f"Invalid {env_name}: {raw}. Using {getattr(settings, field_name)}")
                continue
            updates[field_name] = value

        if not updates:
            return settings.model_copy()
        return settings.model_copy(update=updates)

    def save(self, settings: Optional[BridgeSettings] = None) -> None:
        """Save settings to file with atomic operations."""
        if settings is None:
            settings = self._settings or self._load_from_file()

        write_json_atomic(self.settings_path, settings.model_dump(), prefix=".settings.")

        # Clear cache to force reload on next access
        self._settings = None

"""Downstream AI tool configurations pointing at the built-in MCP server.

Each supported AI tool reads MCP server entries from its own config file.
``McpConfigWriter`` merges an entry for this server (whose port changes on
every start) into those files, and ``ConfigTargetTracker`` remembers which
targets were written during the current server session.

Example ``.mcp.json`` after writing the ``claude-code`` target:

```json
{
    "mcpServers": {
        "wfstudio": {"type": "http", "url": "http://127.0.0.1:51234/mcp"}
    }
}
```
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from wfstudio.core.exceptions import ConfigWriteError
from wfstudio.core.json_utils import write_json_atomic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigTargetSpec:
    """Where and how a target stores its MCP server entries."""

    relative_path: str
    servers_key: str
    transport_type: str


# Workspace-relative JSON config files
JSON_CONFIG_TARGETS: dict[str, ConfigTargetSpec] = {
    "claude-code": ConfigTargetSpec(".mcp.json", "mcpServers", "http"),
    "roo-code": ConfigTargetSpec(".roo/mcp.json", "mcpServers", "streamable-http"),
    "copilot": ConfigTargetSpec(".vscode/mcp.json", "servers", "http"),
}

# Written by the host (TOML in the user's home); only tracked here
HOST_MANAGED_TARGETS = frozenset({"codex"})

KNOWN_TARGETS = frozenset(JSON_CONFIG_TARGETS) | HOST_MANAGED_TARGETS


class ConfigTargetTracker:
    """Set of targets configured for the running server instance.

    Append-only until ``clear()``, which the server manager calls on stop so
    a new instance (on a new port) is never assumed to be configured.
    """

    def __init__(self) -> None:
        self._targets: set[str] = set()

    def add(self, targets: Iterable[str]) -> None:
        self._targets.update(targets)

    def contains(self, target: str) -> bool:
        return target in self._targets

    def targets(self) -> list[str]:
        return sorted(self._targets)

    def describe(self) -> str:
        if not self._targets:
            return "not configured"
        return f"currently configured for: [{', '.join(self.targets())}]"

    def clear(self) -> None:
        self._targets.clear()

    def __len__(self) -> int:
        return len(self._targets)


class McpConfigWriter:
    """Writes this server's entry into workspace-level AI tool configs."""

    def __init__(self, workspace: Union[str, Path]):
        self.workspace = Path(workspace).expanduser().resolve()

    def config_path(self, target: str) -> Path:
        return self.workspace / self._spec(target).relative_path

    def write(self, target: str, url: str, server_name: str = "wfstudio") -> Path:
        """Add or replace the server entry for ``target``, keeping other servers.

        Returns:
            Path of the written config file

        Raises:
            ConfigWriteError: If the target is unsupported or the existing file is not valid JSON
        """
        spec = self._spec(target)
        path = self.workspace / spec.relative_path

        config = self._load(target, path)
        servers = config.setdefault(spec.servers_key, {})
        if not isinstance(servers, dict):
            raise ConfigWriteError(target, f"'{spec.servers_key}' in {path} is not an object")
        servers[server_name] = {"type": spec.transport_type, "url": url}

        self._save(target, path, config)
        logger.info(f"Wrote MCP config for {target}: {path}")
        return path

    def remove(self, target: str, server_name: str = "wfstudio") -> bool:
        """Remove the server entry. Returns False if there was nothing to remove."""
        spec = self._spec(target)
        path = self.workspace / spec.relative_path
        if not path.exists():
            return False

        config = self._load(target, path)
        servers = config.get(spec.servers_key)
        if not isinstance(servers, dict) or server_name not in servers:
            return False

        del servers[server_name]
        self._save(target, path, config)
        logger.info(f"Removed MCP config for {target}: {path}")
        return True

    def _spec(self, target: str) -> ConfigTargetSpec:
        spec = JSON_CONFIG_TARGETS.get(target)
        if spec is None:
            if target in HOST_MANAGED_TARGETS:
                raise ConfigWriteError(target, "config is managed by the host and cannot be written here")
            raise ConfigWriteError(
                target, f"unsupported config target (supported: {', '.join(sorted(JSON_CONFIG_TARGETS))})"
            )
        return spec

    def _load(self, target: str, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                config: Optional[Any] = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigWriteError(target, f"invalid JSON in {path}: {e}") from e
        except OSError as e:
            raise ConfigWriteError(target, f"cannot read {path}: {e}") from e
        if not isinstance(config, dict):
            raise ConfigWriteError(target, f"{path} does not contain a JSON object")
        return config

    def _save(self, target: str, path: Path, config: dict[str, Any]) -> None:
        try:
            write_json_atomic(path, config, prefix=".mcp-config-")
        except OSError as e:
            logger.exception(f"Failed to write MCP config for {target}")
            raise ConfigWriteError(target, f"cannot write {path}: {e}") from e

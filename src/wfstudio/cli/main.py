"""wfstudio command line interface.

``wfstudio serve`` runs the MCP server in headless mode: tools read and write
a workflow JSON file directly, with no editor attached.
"""

import asyncio
import contextlib
import json
import signal
import sys
from pathlib import Path
from typing import Optional

import click

from wfstudio import __version__
from wfstudio.core.exceptions import ConfigWriteError
from wfstudio.core.settings import BridgeSettings, SettingsManager
from wfstudio.core.workflow_schema import validate_workflow_document
from wfstudio.mcp_server.config_targets import HOST_MANAGED_TARGETS, KNOWN_TARGETS, McpConfigWriter
from wfstudio.mcp_server.manager import McpServerManager
from wfstudio.mcp_server.providers import FileSystemWorkflowProvider

from .logging_config import configure_logging

DEFAULT_WORKFLOW_PATH = Path(".vscode") / "workflows" / "workflow.json"


@click.group(name="wfstudio")
@click.version_option(__version__, prog_name="wfstudio")
def cli_main() -> None:
    """Workflow editor MCP server."""
    pass


@cli_main.command(name="serve")
@click.argument("workflow_path", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--config-target",
    "config_targets",
    multiple=True,
    type=click.Choice(sorted(KNOWN_TARGETS)),
    help="Write this AI tool's MCP config to point at the server (repeatable)",
)
@click.option(
    "--workspace",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Workspace root for config files and the default workflow path (default: current directory)",
)
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (default: ~/.wfstudio/settings.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show informational logs")
def serve(
    workflow_path: Optional[Path],
    config_targets: tuple[str, ...],
    workspace: Optional[Path],
    settings_path: Optional[Path],
    verbose: bool,
) -> None:
    """Serve WORKFLOW_PATH to AI agents over MCP until interrupted.

    WORKFLOW_PATH defaults to .vscode/workflows/workflow.json in the workspace.
    """
    configure_logging(verbose)

    workspace = (workspace or Path.cwd()).resolve()
    workflow_path = (workflow_path or workspace / DEFAULT_WORKFLOW_PATH).resolve()
    settings = SettingsManager(settings_path).load()

    with contextlib.suppress(KeyboardInterrupt):
        exit_code = asyncio.run(_serve(settings, workflow_path, workspace, config_targets))
        if exit_code:
            sys.exit(exit_code)


async def _serve(
    settings: BridgeSettings,
    workflow_path: Path,
    workspace: Path,
    config_targets: tuple[str, ...],
) -> int:
    manager = McpServerManager(settings)
    manager.set_workflow_provider(FileSystemWorkflowProvider(workflow_path))

    try:
        await manager.start(context_path=workspace)
    except Exception as e:
        click.echo(f"Error: Failed to start MCP server: {e}", err=True)
        return 1

    url = manager.get_url() or ""
    writer = McpConfigWriter(workspace)
    try:
        _write_config_targets(manager, writer, url, config_targets)

        click.echo(f"MCP server listening on {url}")
        click.echo(f"Workflow file: {workflow_path}")
        if manager.get_written_configs():
            click.echo(f"Configured for: {', '.join(manager.get_written_configs())}")
        click.echo("Press Ctrl+C to stop.")

        await _wait_for_shutdown()
    finally:
        written = manager.get_written_configs()
        await manager.stop()
        _remove_config_targets(writer, written, settings.server_name)

    return 0


def _write_config_targets(
    manager: McpServerManager, writer: McpConfigWriter, url: str, config_targets: tuple[str, ...]
) -> None:
    for target in config_targets:
        if manager.config_targets.contains(target):
            continue
        if target in HOST_MANAGED_TARGETS:
            click.echo(f"Note: {target} config is not written automatically; point it at {url}", err=True)
            continue
        try:
            writer.write(target, url, manager.settings.server_name)
        except ConfigWriteError as e:
            click.echo(f"Warning: {e}", err=True)
            continue
        manager.add_written_configs([target])


def _remove_config_targets(writer: McpConfigWriter, targets: list[str], server_name: str) -> None:
    # The port is gone once stopped; leaving the entry would point agents at nothing
    for target in targets:
        try:
            writer.remove(target, server_name)
        except ConfigWriteError as e:
            click.echo(f"Warning: {e}", err=True)


async def _wait_for_shutdown() -> None:
    """Block until SIGINT or SIGTERM."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)
    try:
        await stop.wait()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.remove_signal_handler(sig)


@cli_main.command(name="validate")
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def validate(workflow_file: Path, output_json: bool) -> None:
    """Check WORKFLOW_FILE against the workflow schema without serving it."""
    errors = validate_workflow_document(workflow_file.read_text(encoding="utf-8"))

    if output_json:
        click.echo(json.dumps({"valid": not errors, "errors": errors}, indent=2))
    elif not errors:
        click.echo(f"✓ {workflow_file} is valid")
    else:
        click.echo(f"✗ {workflow_file} has {len(errors)} error(s):", err=True)
        for error in errors:
            click.echo(f"  [{error['code']}] {error['field']}: {error['message']}", err=True)

    if errors:
        sys.exit(1)

"""Loading of the workflow schema document served to agents.

Two variants exist: ``full`` (descriptions and an example) and ``basic``, a
reduced document for agents with tighter context budgets.
"""

import json
import logging
from pathlib import Path
from typing import Literal, Optional, Union

from wfstudio.core.exceptions import SchemaLoadError

logger = logging.getLogger(__name__)

SchemaVariant = Literal["full", "basic"]

SCHEMA_FILENAMES: dict[str, str] = {
    "full": "workflow-schema.json",
    "basic": "workflow-schema-basic.json",
}

# Providers whose agents get the reduced schema
BASIC_SCHEMA_PROVIDERS = frozenset({"codex", "roo-code", "copilot-vscode"})

PACKAGED_RESOURCES_DIR = Path(__file__).parent / "resources"


def variant_for_provider(provider: Optional[str]) -> SchemaVariant:
    """Pick the schema variant for the AI tool currently driving edits."""
    if provider in BASIC_SCHEMA_PROVIDERS:
        return "basic"
    return "full"


def default_schema_path(context_path: Union[str, Path], variant: SchemaVariant) -> Path:
    """Location of a schema variant under a host context directory."""
    return Path(context_path) / "resources" / SCHEMA_FILENAMES[variant]


def load_workflow_schema(variant: SchemaVariant = "full", context_path: Optional[Union[str, Path]] = None) -> str:
    """Load a schema variant as compact JSON text.

    A copy under ``<context_path>/resources/`` takes precedence over the one
    shipped with the package, so hosts can serve an updated schema.

    Raises:
        SchemaLoadError: If the variant is unknown or the file is missing or not JSON
    """
    if variant not in SCHEMA_FILENAMES:
        raise SchemaLoadError(f"Unknown schema variant: {variant}")

    path = PACKAGED_RESOURCES_DIR / SCHEMA_FILENAMES[variant]
    if context_path is not None:
        override = default_schema_path(context_path, variant)
        if override.exists():
            path = override
        else:
            logger.debug(f"No schema at {override}; using packaged {variant} schema")

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaLoadError("Failed to read workflow schema", path=str(path), original_error=e) from e

    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaLoadError("Workflow schema is not valid JSON", path=str(path), original_error=e) from e

    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)

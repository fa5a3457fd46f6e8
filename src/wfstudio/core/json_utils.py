"""JSON file utilities for wfstudio."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def write_json_atomic(path: Path, data: Any, prefix: str = ".wfstudio-") -> None:
    """Write JSON to ``path`` atomically with 2-space indentation.

    The document is written to a temp file in the same directory and then
    moved over the target, so readers never observe a partial file. Parent
    directories are created as needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=prefix, suffix=".tmp")
    try:
        with open(temp_fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(temp_path, path)
    except Exception:
        Path(temp_path).unlink(missing_ok=True)
        raise

"""Atomic file writes so a reader never sees a half-written cache snapshot."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def atomic_write_text(filepath: Path, text: str) -> None:
    """Write *text* to *filepath* atomically.

    The data goes to a temporary file in the target directory first and is
    then moved over the destination with :func:`os.replace`.  Parent
    directories are created as needed.
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    # Same directory as the target so the rename stays on one filesystem
    fd, tmp_path = tempfile.mkstemp(dir=filepath.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, filepath)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def atomic_json_write(filepath: Path, data: Any) -> None:
    """Serialize *data* as compact JSON and write it atomically."""
    atomic_write_text(filepath, json.dumps(data, ensure_ascii=False) + "\n")


def read_json(filepath: Path) -> Any:
    """Load JSON from *filepath*.

    Raises:
        OSError: If the file cannot be read.
        json.JSONDecodeError: If the content is not valid JSON.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        return json.load(f)


def remove_file(filepath: Path) -> bool:
    """Delete *filepath* if it exists.

    Returns:
        True if a file was removed, False if there was nothing to remove.
    """
    try:
        Path(filepath).unlink()
    except FileNotFoundError:
        return False
    return True

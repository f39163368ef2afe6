"""Atomic file writes for object bytes and sidecars."""

from __future__ import annotations

import re
import uuid
from pathlib import Path

_TEMP_NAME = re.compile(r"^\..+\.[0-9a-f]{32}\.tmp$")


def temp_path_for(path: Path) -> Path:
    """Return a unique hidden temp path in the same directory as ``path``."""
    return path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")


def is_temp_name(file_name: str) -> bool:
    """Return True if ``file_name`` is an in-flight temp file."""
    return bool(_TEMP_NAME.match(file_name))


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` via a temp file and ``os.replace``.

    Readers observe either the previous content or the new content.

    Raises:
        OSError: If the temp file cannot be written or moved into place.
    """
    tmp_file = temp_path_for(path)
    try:
        tmp_file.write_bytes(data)
        tmp_file.replace(path)
    except OSError:
        tmp_file.unlink(missing_ok=True)
        raise

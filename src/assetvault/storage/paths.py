"""Path resolution for stored objects.

Maps a logical object name and a visibility flag to a file inside the
matching partition directory:

    {uploads_dir}/public/{sanitized_name}
    {uploads_dir}/private/{sanitized_name}

Every character outside ``[A-Za-z0-9._-]`` is replaced with ``_``. Separators
therefore never survive, so the result is always a direct child of its
partition directory. Distinct unsafe names may sanitize to the same file name.
"""

from __future__ import annotations

import re
from pathlib import Path

from assetvault.storage.errors import InvalidObjectNameError, PathTraversalError
from assetvault.storage.models import Visibility

METADATA_SUFFIX = ".metadata.json"
PLACEHOLDER = "_"
MAX_NAME_LENGTH = 200

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_ONLY_DOTS = re.compile(r"^\.+$")


def sanitize_object_name(name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9._-]`` with ``_``.

    Pure and deterministic. Does not validate; see safe_file_name.
    """
    return _UNSAFE_CHARS.sub(PLACEHOLDER, name)


def is_sidecar_name(file_name: str) -> bool:
    """Return True if ``file_name`` is a metadata sidecar."""
    return file_name.endswith(METADATA_SUFFIX)


def safe_file_name(name: str) -> str:
    """Sanitize ``name`` and reject results that cannot be stored safely.

    Raises:
        InvalidObjectNameError: For empty names, names longer than
            MAX_NAME_LENGTH, dot-only names (``.``, ``..``), and names that
            would collide with a sidecar file.
    """
    if not name:
        raise InvalidObjectNameError("Invalid name: empty", name=name)
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidObjectNameError(
            f"Invalid name: longer than {MAX_NAME_LENGTH} characters",
            name=name[:MAX_NAME_LENGTH],
        )

    sanitized = sanitize_object_name(name)

    if _ONLY_DOTS.match(sanitized):
        raise InvalidObjectNameError("Invalid name: refers to a directory", name=name)
    if is_sidecar_name(sanitized):
        raise InvalidObjectNameError(f"Invalid name: reserved suffix {METADATA_SUFFIX}", name=name)
    return sanitized


def child_path(base_dir: Path, name: str) -> Path:
    """Join the safe file name for ``name`` to ``base_dir``.

    Both sides are resolved before the containment check, so a symlink
    placed in ``base_dir`` cannot redirect the name outside it.

    Raises:
        InvalidObjectNameError: If the name cannot be stored safely.
        PathTraversalError: If the resolved path is not a direct child of
            the resolved ``base_dir``.
    """
    path = base_dir / safe_file_name(name)
    if path.resolve().parent != base_dir.resolve():
        raise PathTraversalError(name=name)
    return path


class PathResolver:
    """Resolves logical object names to paths inside the two partitions."""

    def __init__(self, uploads_dir: str | Path) -> None:
        self._uploads_dir = Path(uploads_dir).resolve()
        self._base_dirs = {
            Visibility.PUBLIC: self._uploads_dir / Visibility.PUBLIC.value,
            Visibility.PRIVATE: self._uploads_dir / Visibility.PRIVATE.value,
        }

    @property
    def uploads_dir(self) -> Path:
        return self._uploads_dir

    def base_dir(self, visibility: Visibility) -> Path:
        """Return the partition directory for ``visibility``."""
        return self._base_dirs[Visibility(visibility)]

    def resolve(self, name: str, visibility: Visibility) -> Path:
        """Resolve ``name`` to a file path inside the ``visibility`` partition.

        Deterministic: the same name and visibility always give the same path.

        Raises:
            InvalidObjectNameError: If the name cannot be stored safely.
            PathTraversalError: If the joined path escapes the partition.
        """
        visibility = Visibility(visibility)
        try:
            return child_path(self.base_dir(visibility), name)
        except InvalidObjectNameError as e:
            e.visibility = visibility.value
            raise

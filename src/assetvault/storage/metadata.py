"""Sidecar metadata persistence.

Each object file ``<name>`` has a JSON sidecar ``<name>.metadata.json`` in
the same partition directory. Reads are forgiving: a missing or corrupt
sidecar degrades to an empty record so object availability never depends on
metadata integrity.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from assetvault.acl.policy import AclPolicy
from assetvault.storage.errors import ObjectNotFoundError, StorageIOError
from assetvault.storage.fileio import atomic_write_bytes
from assetvault.storage.models import ObjectMetadata
from assetvault.storage.paths import METADATA_SUFFIX

logger = logging.getLogger(__name__)


class AclLookupStatus(StrEnum):
    """How an ACL lookup was satisfied."""

    CONFIGURED = "configured"
    NOT_CONFIGURED = "not_configured"
    READ_ERROR = "read_error"


@dataclass(frozen=True, slots=True)
class AclLookup:
    """Result of reading the ACL out of a sidecar.

    ``policy`` is always usable; ``status`` tells configured, absent, and
    unreadable apart for logging.
    """

    policy: AclPolicy
    status: AclLookupStatus


class MetadataStore:
    """Reads and writes JSON sidecars next to object files."""

    def sidecar_path(self, path: Path) -> Path:
        """Return the sidecar path for an object file path."""
        return path.with_name(path.name + METADATA_SUFFIX)

    def _load_raw(self, path: Path) -> dict[str, Any]:
        """Load the sidecar as a raw dict.

        Raises:
            ObjectNotFoundError: If the sidecar is missing, unreadable, or not
                a JSON object.
        """
        sidecar = self.sidecar_path(path)
        try:
            content = sidecar.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ObjectNotFoundError("Metadata not found", name=path.name) from e
        except OSError as e:
            logger.warning("Failed to read metadata %s: %s", sidecar.name, e)
            raise ObjectNotFoundError("Metadata unreadable", name=path.name) from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning("Corrupt metadata %s: %s", sidecar.name, e)
            raise ObjectNotFoundError("Metadata corrupt", name=path.name) from e

        if not isinstance(data, dict):
            logger.warning("Metadata %s is not a JSON object", sidecar.name)
            raise ObjectNotFoundError("Metadata corrupt", name=path.name)
        return data

    def load(self, path: Path) -> ObjectMetadata:
        """Strictly read the sidecar for ``path``.

        Raises:
            ObjectNotFoundError: If the sidecar is missing or unreadable.
        """
        return ObjectMetadata.from_dict(self._load_raw(path))

    def read(self, path: Path) -> ObjectMetadata:
        """Read the sidecar for ``path``, returning an empty record on failure."""
        try:
            return self.load(path)
        except ObjectNotFoundError:
            return ObjectMetadata()

    def read_acl(self, path: Path) -> AclLookup:
        """Read the ACL policy from the sidecar for ``path``."""
        try:
            metadata = self.load(path)
        except ObjectNotFoundError as e:
            if isinstance(e.__cause__, FileNotFoundError):
                return AclLookup(AclPolicy.empty(), AclLookupStatus.NOT_CONFIGURED)
            return AclLookup(AclPolicy.empty(), AclLookupStatus.READ_ERROR)

        if metadata.acl is None:
            return AclLookup(AclPolicy.empty(), AclLookupStatus.NOT_CONFIGURED)
        return AclLookup(metadata.acl, AclLookupStatus.CONFIGURED)

    def write(self, path: Path, record: ObjectMetadata) -> None:
        """Serialize ``record`` to the sidecar for ``path``, overwriting it.

        Raises:
            StorageIOError: If the sidecar cannot be written.
        """
        sidecar = self.sidecar_path(path)
        payload = json.dumps(record.to_dict(), indent=2).encode("utf-8")
        try:
            atomic_write_bytes(sidecar, payload)
        except OSError as e:
            raise StorageIOError(
                message=f"Failed to write metadata: {e}",
                name=path.name,
                cause=e,
            ) from e

    def update(self, path: Path, **changes: Any) -> ObjectMetadata:
        """Merge ``changes`` into the existing sidecar and write it back.

        A missing or unreadable sidecar is treated as an empty record, so the
        merge creates one. Fields not named in ``changes`` are kept as-is.

        Args:
            path: Object file path.
            **changes: ObjectMetadata field names and their new values.

        Returns:
            The record that was written.

        Raises:
            StorageIOError: If the sidecar cannot be written.
        """
        merged = dataclasses.replace(self.read(path), **changes)
        self.write(path, merged)
        return merged

    def remove(self, path: Path) -> bool:
        """Delete the sidecar for ``path``.

        Returns:
            True if a sidecar was removed, False if there was none.

        Raises:
            StorageIOError: If the sidecar exists but cannot be removed.
        """
        sidecar = self.sidecar_path(path)
        try:
            sidecar.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageIOError(
                message=f"Failed to remove metadata: {e}",
                name=path.name,
                cause=e,
            ) from e
        return True

"""assetvault filesystem object store.

Stores objects as plain files under two partition directories with a JSON
sidecar per object:

    {uploads_dir}/public/{name}
    {uploads_dir}/public/{name}.metadata.json
    {uploads_dir}/private/{name}
    {uploads_dir}/private/{name}.metadata.json

Bytes and sidecar are written separately (bytes first). Each file write is
atomic, the pair is not: a failure between the two leaves stale or missing
metadata, which reconcile() repairs. There is no per-object lock; concurrent
uploads of the same object are last-writer-wins.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from assetvault.acl.groups import GroupMembershipResolver
from assetvault.acl.policy import AccessPolicyEngine, AclPolicy, Permission
from assetvault.config import StorageSettings
from assetvault.storage.errors import (
    InvalidObjectNameError,
    ObjectNotFoundError,
    StorageIOError,
)
from assetvault.storage.fileio import atomic_write_bytes, is_temp_name
from assetvault.storage.metadata import AclLookupStatus, MetadataStore
from assetvault.storage.models import SIDECAR_FIELDS, ObjectMetadata, Visibility
from assetvault.storage.object_store import ObjectStore
from assetvault.storage.outcome import FailureKind, Outcome
from assetvault.storage.paths import (
    METADATA_SUFFIX,
    PathResolver,
    child_path,
    is_sidecar_name,
)
from assetvault.storage.tracing import traced_storage_operation

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    """Changes made by a reconcile pass over one partition.

    Attributes:
        visibility: Partition that was scanned.
        orphaned_sidecars_removed: Sidecars whose object bytes were missing.
        sidecars_rebuilt: Objects that had no readable sidecar.
        sizes_corrected: Objects whose recorded size disagreed with the file.
        errors: Files that could not be repaired.
    """

    visibility: Visibility
    orphaned_sidecars_removed: list[str] = field(default_factory=list)
    sidecars_rebuilt: list[str] = field(default_factory=list)
    sizes_corrected: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(
            self.orphaned_sidecars_removed or self.sidecars_rebuilt or self.sizes_corrected
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "visibility": self.visibility.value,
            "orphaned_sidecars_removed": self.orphaned_sidecars_removed,
            "sidecars_rebuilt": self.sidecars_rebuilt,
            "sizes_corrected": self.sizes_corrected,
            "errors": self.errors,
        }


class FilesystemObjectStore(ObjectStore):
    """Filesystem-backed access-controlled object store.

    Construct one instance at process start and pass it to every
    collaborator that needs storage.
    """

    def __init__(
        self,
        uploads_dir: str | Path | None = None,
        *,
        settings: StorageSettings | None = None,
        groups: GroupMembershipResolver | None = None,
    ) -> None:
        """Initialize filesystem storage.

        Args:
            uploads_dir: Root directory for both partitions. Ignored when
                ``settings`` is given.
            settings: Full storage settings. If neither argument is given,
                settings are read from the environment.
            groups: Resolver for group grantees in ACL policies.
        """
        if settings is None:
            if uploads_dir is not None:
                settings = StorageSettings.for_directory(uploads_dir)
            else:
                settings = StorageSettings.from_env()

        self._settings = settings
        self._resolver = PathResolver(settings.uploads_dir)
        self._metadata = MetadataStore()
        self._engine = AccessPolicyEngine(groups)

        self.ensure_directories()
        logger.debug(
            "FilesystemObjectStore initialized with uploads_dir=%s", self._resolver.uploads_dir
        )

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "filesystem"

    @property
    def settings(self) -> StorageSettings:
        return self._settings

    @property
    def uploads_dir(self) -> Path:
        return self._resolver.uploads_dir

    def base_dir(self, visibility: Visibility) -> Path:
        """Return the partition directory for ``visibility``."""
        return self._resolver.base_dir(visibility)

    def public_object_search_paths(self) -> list[str]:
        """Return the configured public object search paths."""
        return list(self._settings.public_search_paths)

    def locate_public_object(self, name: str) -> Path | None:
        """Return the first file for ``name`` across the public search paths.

        Raises:
            InvalidObjectNameError: If ``name`` cannot be mapped to a safe file name.
        """
        for search_path in self._settings.public_search_paths:
            candidate = child_path(Path(search_path), name)
            if candidate.is_file():
                return candidate
        return None

    def metadata_for(self, path: Path) -> ObjectMetadata:
        """Read the sidecar next to ``path``; empty when missing or unreadable."""
        return self._metadata.read(path)

    def ensure_directories(self) -> None:
        """Create both partition directories if missing. Safe to race."""
        for visibility in Visibility:
            try:
                self.base_dir(visibility).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.warning("Could not create %s directory: %s", visibility.value, e)

    def _check_permission(
        self,
        path: Path,
        name: str,
        visibility: Visibility,
        caller_id: str | None,
        permission: Permission,
    ) -> Outcome[Any] | None:
        """Return an ACCESS_DENIED outcome if the caller lacks ``permission``."""
        lookup = self._metadata.read_acl(path)
        if lookup.status is AclLookupStatus.READ_ERROR:
            logger.warning(
                "ACL unreadable, evaluating as empty policy: visibility=%s name=%s",
                visibility.value,
                name,
            )

        if self._engine.can_access(lookup.policy, caller_id, permission):
            return None

        logger.info(
            "Access denied: visibility=%s name=%s caller=%s permission=%s",
            visibility.value,
            name,
            caller_id,
            permission.value,
        )
        return Outcome.fail(
            FailureKind.ACCESS_DENIED,
            f"Caller lacks {permission.value} permission",
            name=name,
            visibility=visibility.value,
        )

    @traced_storage_operation("upload")
    def upload(
        self,
        name: str,
        data: bytes,
        *,
        visibility: Visibility = Visibility.PUBLIC,
        content_type: str | None = None,
        metadata: Mapping[str, Any] | None = None,
        acl: AclPolicy | None = None,
        caller_id: str | None = None,
    ) -> Outcome[ObjectMetadata]:
        """Store an object."""
        visibility = Visibility(visibility)
        try:
            path = self._resolver.resolve(name, visibility)
        except InvalidObjectNameError as e:
            return Outcome.from_error(e)

        replacing = path.is_file()
        existing_acl = self._metadata.read_acl(path) if replacing else None

        if caller_id is not None and replacing:
            denied = self._check_permission(path, name, visibility, caller_id, Permission.WRITE)
            if denied is not None:
                return denied

        policy = acl
        if policy is None:
            if existing_acl is not None and existing_acl.status is AclLookupStatus.CONFIGURED:
                policy = existing_acl.policy
            elif caller_id is not None:
                policy = AclPolicy(owner_id=caller_id)

        fields = dict(metadata or {})
        if content_type is None and fields.get("contentType"):
            content_type = str(fields["contentType"])

        record = ObjectMetadata(
            original_name=name,
            size=len(data),
            uploaded_at=datetime.now(UTC),
            content_type=content_type,
            is_private=visibility.is_private,
            acl=policy,
            extra={k: v for k, v in fields.items() if k not in SIDECAR_FIELDS},
        )

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write_bytes(path, data)
        except OSError as e:
            logger.error("Failed to upload %s (%s): %s", name, visibility.value, e)
            return Outcome.fail(
                FailureKind.UPLOAD_FAILURE,
                f"Upload failed: {e}",
                name=name,
                visibility=visibility.value,
            )

        try:
            self._metadata.write(path, record)
        except StorageIOError as e:
            logger.error(
                "Object bytes stored but metadata write failed for %s (%s): %s",
                name,
                visibility.value,
                e.message,
            )
            return Outcome.fail(
                FailureKind.UPLOAD_FAILURE,
                f"Upload failed: {e.message}",
                name=name,
                visibility=visibility.value,
            )

        logger.info("File uploaded: %s -> %s/%s", name, visibility.value, path.name)
        return Outcome.success(record, name=name, visibility=visibility.value)

    @traced_storage_operation("download")
    def download(
        self,
        name: str,
        *,
        visibility: Visibility = Visibility.PUBLIC,
        caller_id: str | None = None,
    ) -> Outcome[bytes]:
        """Read an object's bytes."""
        visibility = Visibility(visibility)
        try:
            path = self._resolver.resolve(name, visibility)
        except InvalidObjectNameError as e:
            return Outcome.from_error(e)

        if not path.is_file():
            return Outcome.fail(
                FailureKind.NOT_FOUND, "Object not found", name=name, visibility=visibility.value
            )

        if visibility.is_private:
            denied = self._check_permission(path, name, visibility, caller_id, Permission.READ)
            if denied is not None:
                return denied

        try:
            content = path.read_bytes()
        except FileNotFoundError:
            return Outcome.fail(
                FailureKind.NOT_FOUND, "Object not found", name=name, visibility=visibility.value
            )
        except OSError as e:
            logger.error("Failed to read %s (%s): %s", name, visibility.value, e)
            return Outcome.fail(
                FailureKind.IO_FAILURE,
                f"Read failed: {e}",
                name=name,
                visibility=visibility.value,
            )

        return Outcome.success(content, name=name, visibility=visibility.value)

    @traced_storage_operation("delete")
    def delete(
        self,
        name: str,
        *,
        visibility: Visibility = Visibility.PUBLIC,
        caller_id: str | None = None,
    ) -> Outcome[None]:
        """Delete an object and, best-effort, its metadata sidecar."""
        visibility = Visibility(visibility)
        try:
            path = self._resolver.resolve(name, visibility)
        except InvalidObjectNameError as e:
            return Outcome.from_error(e)

        if not path.is_file():
            return Outcome.fail(
                FailureKind.NOT_FOUND, "Object not found", name=name, visibility=visibility.value
            )

        if caller_id is not None:
            denied = self._check_permission(path, name, visibility, caller_id, Permission.WRITE)
            if denied is not None:
                return denied

        try:
            path.unlink()
        except FileNotFoundError:
            return Outcome.fail(
                FailureKind.NOT_FOUND, "Object not found", name=name, visibility=visibility.value
            )
        except OSError as e:
            logger.error("Failed to delete %s (%s): %s", name, visibility.value, e)
            return Outcome.fail(
                FailureKind.IO_FAILURE,
                f"Delete failed: {e}",
                name=name,
                visibility=visibility.value,
            )

        try:
            self._metadata.remove(path)
        except StorageIOError as e:
            logger.warning("Object deleted but metadata removal failed for %s: %s", name, e)

        logger.info("File deleted: %s (%s)", name, visibility.value)
        return Outcome.success(None, name=name, visibility=visibility.value)

    @traced_storage_operation("list")
    def list_objects(
        self,
        prefix: str = "",
        *,
        visibility: Visibility = Visibility.PUBLIC,
    ) -> list[str]:
        """List object names in a partition, sorted lexically."""
        base_dir = self.base_dir(Visibility(visibility))
        try:
            entries = [entry for entry in base_dir.iterdir() if entry.is_file()]
        except OSError as e:
            logger.warning("Failed to list objects in %s: %s", base_dir.name, e)
            return []

        return sorted(
            entry.name
            for entry in entries
            if not is_sidecar_name(entry.name)
            and not is_temp_name(entry.name)
            and entry.name.startswith(prefix)
        )

    @traced_storage_operation("exists")
    def exists(self, name: str, *, visibility: Visibility = Visibility.PUBLIC) -> bool:
        """Return True if the object's bytes exist."""
        try:
            path = self._resolver.resolve(name, Visibility(visibility))
        except InvalidObjectNameError:
            return False
        try:
            return path.is_file()
        except OSError:
            return False

    @traced_storage_operation("get_metadata")
    def get_metadata(
        self,
        name: str,
        *,
        visibility: Visibility = Visibility.PUBLIC,
    ) -> Outcome[ObjectMetadata]:
        """Read an object's metadata record."""
        visibility = Visibility(visibility)
        try:
            path = self._resolver.resolve(name, visibility)
        except InvalidObjectNameError as e:
            return Outcome.from_error(e)

        try:
            record = self._metadata.load(path)
        except ObjectNotFoundError as e:
            return Outcome.fail(
                FailureKind.NOT_FOUND, e.message, name=name, visibility=visibility.value
            )
        return Outcome.success(record, name=name, visibility=visibility.value)

    @traced_storage_operation("get_acl")
    def get_acl(self, name: str, *, visibility: Visibility = Visibility.PRIVATE) -> AclPolicy:
        """Return the object's ACL policy, empty when none is configured."""
        visibility = Visibility(visibility)
        try:
            path = self._resolver.resolve(name, visibility)
        except InvalidObjectNameError:
            return AclPolicy.empty()

        lookup = self._metadata.read_acl(path)
        if lookup.status is AclLookupStatus.READ_ERROR:
            logger.warning("Failed to read ACL for %s (%s)", name, visibility.value)
        return lookup.policy

    @traced_storage_operation("set_acl")
    def set_acl(
        self,
        name: str,
        policy: AclPolicy,
        *,
        visibility: Visibility = Visibility.PRIVATE,
        caller_id: str | None = None,
    ) -> Outcome[AclPolicy]:
        """Replace the object's ACL, keeping all other metadata fields.

        The existing sidecar, or an empty record when there is none, is
        merged and written back. A failed write is logged and otherwise
        ignored.
        """
        visibility = Visibility(visibility)
        try:
            path = self._resolver.resolve(name, visibility)
        except InvalidObjectNameError as e:
            return Outcome.from_error(e)

        if caller_id is not None:
            denied = self._check_permission(path, name, visibility, caller_id, Permission.ADMIN)
            if denied is not None:
                return denied

        try:
            self._metadata.update(path, acl=policy)
        except StorageIOError as e:
            logger.warning("Failed to set ACL for %s (%s): %s", name, visibility.value, e)

        return Outcome.success(policy, name=name, visibility=visibility.value)

    @traced_storage_operation("can_access")
    def can_access(
        self,
        name: str,
        permission: Permission,
        *,
        visibility: Visibility = Visibility.PRIVATE,
        caller_id: str | None = None,
    ) -> bool:
        """Return True if ``caller_id`` holds ``permission`` on the object.

        Public objects are readable by anyone; every other combination is
        evaluated against the stored ACL.
        """
        visibility = Visibility(visibility)
        permission = Permission.parse(permission)
        if not visibility.is_private and permission is Permission.READ:
            return True

        try:
            path = self._resolver.resolve(name, visibility)
        except InvalidObjectNameError:
            return False

        return self._engine.can_access(self._metadata.read_acl(path).policy, caller_id, permission)

    def reconcile(self, *, visibility: Visibility = Visibility.PUBLIC) -> ReconcileReport:
        """Repair metadata left inconsistent by interrupted writes or deletes.

        - Sidecars without object bytes are removed.
        - Objects without a readable sidecar get one rebuilt from the file
          (name, size, modification time); no ACL is invented.
        - Recorded sizes that disagree with the file are corrected.

        In-flight temp files are left alone.
        """
        visibility = Visibility(visibility)
        report = ReconcileReport(visibility=visibility)
        base_dir = self.base_dir(visibility)

        try:
            names = {entry.name for entry in base_dir.iterdir() if entry.is_file()}
        except OSError as e:
            logger.warning("Failed to scan %s for reconcile: %s", base_dir.name, e)
            report.errors.append(base_dir.name)
            return report

        for file_name in sorted(names):
            if is_temp_name(file_name):
                continue

            if is_sidecar_name(file_name):
                object_name = file_name[: -len(METADATA_SUFFIX)]
                if object_name in names:
                    continue
                try:
                    self._metadata.remove(base_dir / object_name)
                    report.orphaned_sidecars_removed.append(file_name)
                except StorageIOError as e:
                    logger.warning("Could not remove orphaned sidecar %s: %s", file_name, e)
                    report.errors.append(file_name)
                continue

            path = base_dir / file_name
            try:
                stat = path.stat()
                try:
                    record = self._metadata.load(path)
                except ObjectNotFoundError:
                    self._metadata.write(
                        path,
                        ObjectMetadata(
                            original_name=file_name,
                            size=stat.st_size,
                            uploaded_at=datetime.fromtimestamp(stat.st_mtime, UTC),
                            is_private=visibility.is_private,
                        ),
                    )
                    report.sidecars_rebuilt.append(file_name)
                    continue

                if record.size != stat.st_size:
                    self._metadata.update(path, size=stat.st_size)
                    report.sizes_corrected.append(file_name)
            except (OSError, StorageIOError) as e:
                logger.warning("Could not reconcile %s: %s", file_name, e)
                report.errors.append(file_name)

        if report.changed:
            logger.info(
                "Reconciled %s partition: removed=%d rebuilt=%d resized=%d",
                visibility.value,
                len(report.orphaned_sidecars_removed),
                len(report.sidecars_rebuilt),
                len(report.sizes_corrected),
            )
        return report

"""assetvault object store interface.

Defines the facade contract every storage backend implements, plus the
backend-independent operations built on top of it.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import PurePosixPath
from typing import Any

from assetvault.acl.policy import AclPolicy, Permission
from assetvault.storage.models import ObjectMetadata, Visibility
from assetvault.storage.outcome import FailureKind, Outcome
from assetvault.storage.response import ResponseSink

logger = logging.getLogger(__name__)

STATUS_FOR_FAILURE: dict[FailureKind, int] = {
    FailureKind.NOT_FOUND: 404,
    FailureKind.ACCESS_DENIED: 403,
    FailureKind.VALIDATION: 400,
}

_ERROR_MESSAGES: dict[int, str] = {
    400: "Invalid object name",
    403: "Access denied",
    404: "Object not found",
    500: "Download failed",
}


class ObjectStore(ABC):
    """Abstract base class for access-controlled object stores.

    Objects are identified by (name, visibility). Public objects are readable
    by anyone; private objects require READ under their ACL. WRITE and ADMIN
    are checked for every visibility whenever a caller identity is supplied.

    Implementations:
    - FilesystemObjectStore: local filesystem with JSON sidecars
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability."""
        ...

    @abstractmethod
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
        """Store an object, overwriting any object with the same identity.

        Args:
            name: Logical object name.
            data: Object content.
            visibility: Partition to store into.
            content_type: Optional MIME type recorded in metadata.
            metadata: Extra metadata fields stored verbatim in the sidecar.
            acl: Policy to attach. When omitted, an existing policy is kept;
                a new object uploaded by ``caller_id`` is owned by that caller.
            caller_id: Uploading identity. None means a trusted in-process
                caller and skips the WRITE check.

        Returns:
            Outcome with the written metadata, or UPLOAD_FAILURE,
            ACCESS_DENIED, or VALIDATION.
        """
        ...

    @abstractmethod
    def download(
        self,
        name: str,
        *,
        visibility: Visibility = Visibility.PUBLIC,
        caller_id: str | None = None,
    ) -> Outcome[bytes]:
        """Read an object's bytes.

        Returns:
            Outcome with the bytes, or NOT_FOUND, ACCESS_DENIED (private
            objects only), VALIDATION, or IO_FAILURE.
        """
        ...

    @abstractmethod
    def delete(
        self,
        name: str,
        *,
        visibility: Visibility = Visibility.PUBLIC,
        caller_id: str | None = None,
    ) -> Outcome[None]:
        """Delete an object and, best-effort, its metadata.

        Returns:
            Outcome with None, or NOT_FOUND, ACCESS_DENIED, VALIDATION, or
            IO_FAILURE.
        """
        ...

    @abstractmethod
    def list_objects(
        self,
        prefix: str = "",
        *,
        visibility: Visibility = Visibility.PUBLIC,
    ) -> list[str]:
        """List object names in a partition starting with ``prefix``, sorted.

        Never fails; directory errors yield an empty list.
        """
        ...

    @abstractmethod
    def exists(self, name: str, *, visibility: Visibility = Visibility.PUBLIC) -> bool:
        """Return True if the object's bytes exist. Never fails."""
        ...

    @abstractmethod
    def get_metadata(
        self,
        name: str,
        *,
        visibility: Visibility = Visibility.PUBLIC,
    ) -> Outcome[ObjectMetadata]:
        """Read an object's metadata record.

        Returns:
            Outcome with the record, or NOT_FOUND if the sidecar is missing
            or unreadable.
        """
        ...

    @abstractmethod
    def get_acl(self, name: str, *, visibility: Visibility = Visibility.PRIVATE) -> AclPolicy:
        """Return the object's ACL policy, empty when none is configured.

        Never fails.
        """
        ...

    @abstractmethod
    def set_acl(
        self,
        name: str,
        policy: AclPolicy,
        *,
        visibility: Visibility = Visibility.PRIVATE,
        caller_id: str | None = None,
    ) -> Outcome[AclPolicy]:
        """Replace the object's ACL, keeping all other metadata fields.

        Never raises. A failed sidecar write is a logged no-op and the
        outcome is still a success.

        Returns:
            Outcome with the policy, or ACCESS_DENIED (caller lacks ADMIN)
            or VALIDATION.
        """
        ...

    @abstractmethod
    def can_access(
        self,
        name: str,
        permission: Permission,
        *,
        visibility: Visibility = Visibility.PRIVATE,
        caller_id: str | None = None,
    ) -> bool:
        """Return True if ``caller_id`` holds ``permission`` on the object."""
        ...

    def download_to_response(
        self,
        name: str,
        sink: ResponseSink,
        *,
        visibility: Visibility = Visibility.PUBLIC,
        caller_id: str | None = None,
        cache_max_age: int = 3600,
    ) -> int:
        """Write an object to ``sink`` as an HTTP-style response.

        Sets Content-Type (from metadata, if recorded), Content-Length and
        Cache-Control. Failures are written as JSON error bodies:
        NOT_FOUND as 404, ACCESS_DENIED as 403, VALIDATION as 400, anything
        else as 500.

        Returns:
            The status code written to the sink.
        """
        visibility = Visibility(visibility)
        try:
            outcome = self.download(name, visibility=visibility, caller_id=caller_id)
            if not outcome.ok:
                status = STATUS_FOR_FAILURE.get(outcome.failure, 500)  # type: ignore[arg-type]
                sink.send_json(status, {"error": _ERROR_MESSAGES[status]})
                return status

            body: bytes = outcome.value  # type: ignore[assignment]
            meta_outcome = self.get_metadata(name, visibility=visibility)
            if meta_outcome.ok and meta_outcome.value is not None:
                content_type = meta_outcome.value.content_type
                if content_type:
                    sink.set_header("Content-Type", content_type)

            scope = "private" if visibility.is_private else "public"
            sink.set_status(200)
            sink.set_header("Content-Length", str(len(body)))
            sink.set_header("Cache-Control", f"{scope}, max-age={cache_max_age}")
            sink.send(body)
            return 200

        except Exception:
            logger.exception("Download to response failed: visibility=%s", visibility.value)
            sink.send_json(500, {"error": _ERROR_MESSAGES[500]})
            return 500

    @staticmethod
    def generate_unique_file_name(original_name: str) -> str:
        """Return ``<base>_<uuid4><ext>`` for an uploaded file name.

        Directory components of ``original_name`` are dropped.
        """
        file_path = PurePosixPath(original_name.replace("\\", "/"))
        return f"{file_path.stem}_{uuid.uuid4()}{file_path.suffix}"

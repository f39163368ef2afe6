"""assetvault object storage error types.

Each error maps to one failure kind of the storage facade. Facade operations
return typed outcomes; these exceptions are raised by the lower layers and by
``Outcome.unwrap()`` for callers that prefer exceptions.
"""

from __future__ import annotations


class ObjectStorageError(Exception):
    """Base exception for object storage operations.

    Attributes:
        message: Human-readable error message.
        name: Logical object name associated with the operation (if any).
        visibility: Partition of the object ("public" or "private"), if known.
    """

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        visibility: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.name = name
        self.visibility = visibility

    def __str__(self) -> str:
        parts = [self.message]
        if self.name:
            parts.append(f"name={self.name}")
        if self.visibility:
            parts.append(f"visibility={self.visibility}")
        return " ".join(parts)


class ObjectNotFoundError(ObjectStorageError):
    """Raised when an object or its metadata sidecar does not exist."""

    def __init__(
        self,
        message: str = "Object not found",
        *,
        name: str | None = None,
        visibility: str | None = None,
    ) -> None:
        super().__init__(message, name=name, visibility=visibility)


class AccessDeniedError(ObjectStorageError):
    """Raised when the caller does not hold the permission an operation needs.

    Attributes:
        caller_id: Identity that was checked (None for anonymous callers).
        permission: Permission that was requested.
    """

    def __init__(
        self,
        message: str = "Access denied",
        *,
        name: str | None = None,
        visibility: str | None = None,
        caller_id: str | None = None,
        permission: str | None = None,
    ) -> None:
        super().__init__(message, name=name, visibility=visibility)
        self.caller_id = caller_id
        self.permission = permission


class InvalidObjectNameError(ObjectStorageError):
    """Raised when an object name cannot be mapped to a safe file name."""

    def __init__(
        self,
        message: str = "Invalid object name",
        *,
        name: str | None = None,
        visibility: str | None = None,
    ) -> None:
        super().__init__(message, name=name, visibility=visibility)


class PathTraversalError(InvalidObjectNameError):
    """Raised when a resolved path would land outside its partition directory."""

    def __init__(
        self,
        message: str = "Invalid name: path resolves outside storage partition",
        *,
        name: str | None = None,
        visibility: str | None = None,
    ) -> None:
        super().__init__(message, name=name, visibility=visibility)


class StorageIOError(ObjectStorageError):
    """Raised when the filesystem cannot complete an operation.

    Covers failures other than absence (permission denied, disk full,
    I/O error).
    """

    def __init__(
        self,
        message: str = "Storage I/O error",
        *,
        name: str | None = None,
        visibility: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, name=name, visibility=visibility)
        self.cause = cause


class UploadFailedError(StorageIOError):
    """Raised when writing an object's bytes or sidecar fails during upload."""

    def __init__(
        self,
        message: str = "Upload failed",
        *,
        name: str | None = None,
        visibility: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, name=name, visibility=visibility, cause=cause)

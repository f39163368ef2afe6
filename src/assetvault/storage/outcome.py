"""Typed results for object storage operations.

Facade operations return an Outcome instead of raising for expected failure
modes, so callers must look at ``failure`` before using ``value``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from assetvault.storage.errors import (
    AccessDeniedError,
    InvalidObjectNameError,
    ObjectNotFoundError,
    ObjectStorageError,
    StorageIOError,
    UploadFailedError,
)

T = TypeVar("T")


class FailureKind(StrEnum):
    """Enumerated failure kinds surfaced by the storage facade."""

    NOT_FOUND = "NOT_FOUND"
    ACCESS_DENIED = "ACCESS_DENIED"
    VALIDATION = "VALIDATION"
    UPLOAD_FAILURE = "UPLOAD_FAILURE"
    IO_FAILURE = "IO_FAILURE"


_ERROR_FOR_KIND: dict[FailureKind, type[ObjectStorageError]] = {
    FailureKind.NOT_FOUND: ObjectNotFoundError,
    FailureKind.ACCESS_DENIED: AccessDeniedError,
    FailureKind.VALIDATION: InvalidObjectNameError,
    FailureKind.UPLOAD_FAILURE: UploadFailedError,
    FailureKind.IO_FAILURE: StorageIOError,
}


def failure_kind_for(error: ObjectStorageError) -> FailureKind:
    """Classify a storage exception into its failure kind."""
    if isinstance(error, ObjectNotFoundError):
        return FailureKind.NOT_FOUND
    if isinstance(error, AccessDeniedError):
        return FailureKind.ACCESS_DENIED
    if isinstance(error, InvalidObjectNameError):
        return FailureKind.VALIDATION
    if isinstance(error, UploadFailedError):
        return FailureKind.UPLOAD_FAILURE
    return FailureKind.IO_FAILURE


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Result of a storage operation.

    Attributes:
        value: Result value when the operation succeeded.
        failure: Failure kind when it did not, else None.
        message: Human-readable failure reason (empty on success).
        name: Object name the operation targeted.
        visibility: Partition the operation targeted.
    """

    value: T | None = None
    failure: FailureKind | None = None
    message: str = ""
    name: str | None = None
    visibility: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(
        cls,
        value: T,
        *,
        name: str | None = None,
        visibility: str | None = None,
    ) -> Outcome[T]:
        return cls(value=value, name=name, visibility=visibility)

    @classmethod
    def fail(
        cls,
        failure: FailureKind,
        message: str,
        *,
        name: str | None = None,
        visibility: str | None = None,
    ) -> Outcome[T]:
        return cls(failure=failure, message=message, name=name, visibility=visibility)

    @classmethod
    def from_error(cls, error: ObjectStorageError) -> Outcome[T]:
        """Build a failed outcome from a storage exception."""
        return cls(
            failure=failure_kind_for(error),
            message=error.message,
            name=error.name,
            visibility=error.visibility,
        )

    def to_error(self) -> ObjectStorageError:
        """Build the typed exception matching this failed outcome.

        Raises:
            ValueError: If the outcome is a success.
        """
        if self.failure is None:
            raise ValueError("Successful outcome has no error")
        error_cls = _ERROR_FOR_KIND[self.failure]
        return error_cls(self.message, name=self.name, visibility=self.visibility)

    def unwrap(self) -> T:
        """Return the value, raising the typed storage error on failure."""
        if self.failure is not None:
            raise self.to_error()
        return self.value  # type: ignore[return-value]

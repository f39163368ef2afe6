"""Tests for storage outcomes and error types."""

from __future__ import annotations

import pytest

from assetvault.storage.errors import (
    AccessDeniedError,
    InvalidObjectNameError,
    ObjectNotFoundError,
    PathTraversalError,
    StorageIOError,
    UploadFailedError,
)
from assetvault.storage.outcome import FailureKind, Outcome, failure_kind_for


class TestFailureKindMapping:
    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (ObjectNotFoundError(), FailureKind.NOT_FOUND),
            (AccessDeniedError(), FailureKind.ACCESS_DENIED),
            (InvalidObjectNameError(), FailureKind.VALIDATION),
            (PathTraversalError(), FailureKind.VALIDATION),
            (UploadFailedError(), FailureKind.UPLOAD_FAILURE),
            (StorageIOError(), FailureKind.IO_FAILURE),
        ],
    )
    def test_error_classification(self, error: Exception, kind: FailureKind) -> None:
        assert failure_kind_for(error) is kind  # type: ignore[arg-type]


class TestOutcome:
    def test_success(self) -> None:
        outcome = Outcome.success(b"data", name="a.txt", visibility="public")

        assert outcome.ok
        assert outcome.unwrap() == b"data"
        assert outcome.message == ""

    def test_success_with_none_value_is_ok(self) -> None:
        assert Outcome.success(None).ok

    def test_fail_unwrap_raises_matching_error(self) -> None:
        outcome: Outcome[bytes] = Outcome.fail(
            FailureKind.ACCESS_DENIED,
            "Caller lacks read permission",
            name="a",
            visibility="private",
        )

        with pytest.raises(AccessDeniedError) as exc_info:
            outcome.unwrap()

        assert exc_info.value.name == "a"
        assert str(exc_info.value) == "Caller lacks read permission name=a visibility=private"

    def test_from_error_keeps_context(self) -> None:
        outcome: Outcome[None] = Outcome.from_error(
            InvalidObjectNameError("Invalid name: empty", name="", visibility="public")
        )

        assert outcome.failure is FailureKind.VALIDATION
        assert outcome.message == "Invalid name: empty"
        assert outcome.visibility == "public"

    def test_to_error_on_success_raises(self) -> None:
        with pytest.raises(ValueError):
            Outcome.success(1).to_error()


class TestErrorRendering:
    def test_str_omits_missing_context(self) -> None:
        assert str(ObjectNotFoundError()) == "Object not found"

    def test_storage_io_error_keeps_cause(self) -> None:
        cause = OSError("disk full")
        error = StorageIOError("write failed", name="a", cause=cause)

        assert error.cause is cause
        assert str(error) == "write failed name=a"

"""Unit tests for the CloudX error hierarchy and envelope."""

from __future__ import annotations

import pytest

from cloudx.drivers.base import DiskUsage
from cloudx.errors import (
    CloudXError,
    ConflictError,
    FileTooLargeError,
    ForbiddenError,
    InternalError,
    InvalidPathError,
    NotFoundError,
    PathTraversalError,
    UnauthorizedError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error_cls", "status_code", "code"),
    [
        (UnauthorizedError, 401, "unauthorized"),
        (ForbiddenError, 403, "forbidden"),
        (PathTraversalError, 403, "path_traversal"),
        (NotFoundError, 404, "not_found"),
        (ConflictError, 409, "conflict"),
        (ValidationError, 400, "validation_error"),
        (InvalidPathError, 400, "invalid_path"),
        (FileTooLargeError, 400, "file_too_large"),
        (InternalError, 500, "internal_error"),
    ],
)
def test_status_and_code(error_cls: type[CloudXError], status_code: int, code: str):
    err = error_cls()
    assert err.status_code == status_code
    assert err.code == code
    assert isinstance(err, CloudXError)


def test_to_dict_envelope():
    err = NotFoundError("Bucket not found: photos", details={"bucket": "photos"})

    assert err.to_dict("req-1") == {
        "error": {
            "code": "not_found",
            "message": "Bucket not found: photos",
            "request_id": "req-1",
            "details": {"bucket": "photos"},
        }
    }


def test_default_message_and_details():
    err = ConflictError()
    assert err.message == "Conflict"
    assert err.details == {}
    assert str(err) == "Conflict"


def test_path_errors_are_subclasses():
    assert issubclass(PathTraversalError, ForbiddenError)
    assert issubclass(InvalidPathError, ValidationError)
    assert issubclass(FileTooLargeError, ValidationError)


@pytest.mark.parametrize(
    ("used", "total", "expected"),
    [(0, 0, "0%"), (10, 100, "10%"), (1, 3, "33%"), (100, 100, "100%")],
)
def test_disk_usage_capacity(used: int, total: int, expected: str):
    usage = DiskUsage(total=total, used=used, available=total - used, mounted="/")
    assert usage.capacity == expected

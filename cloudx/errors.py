"""CloudX error types.

Error codes are stable strings for programmatic handling. Every error raised
by the core is a CloudXError subclass; the app-level exception handler turns
it into ``{"error": {code, message, request_id, details}}``.

NotFoundError also covers "exists but belongs to someone else", so callers
cannot discover other tenants' resources.
"""

from __future__ import annotations

from typing import Any


class CloudXError(Exception):
    """Base error for all CloudX exceptions."""

    code: str = "internal_error"
    message: str = "An internal error occurred"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self, request_id: str | None = None) -> dict[str, Any]:
        """Render the error envelope returned to API clients."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "request_id": request_id,
                "details": self.details,
            }
        }


class InternalError(CloudXError):
    """Unexpected I/O or server failure (500)."""


class UnauthorizedError(CloudXError):
    """Missing or unknown credential (401)."""

    code = "unauthorized"
    message = "Authentication required"
    status_code = 401


class ForbiddenError(CloudXError):
    """Authenticated but not allowed (403)."""

    code = "forbidden"
    message = "Permission denied"
    status_code = 403


class PathTraversalError(ForbiddenError):
    """Path resolves outside of the bucket root (403)."""

    code = "path_traversal"
    message = "Access denied"


class NotFoundError(CloudXError):
    """Resource not found (404)."""

    code = "not_found"
    message = "Resource not found"
    status_code = 404


class ConflictError(CloudXError):
    """Resource already exists (409)."""

    code = "conflict"
    message = "Conflict"
    status_code = 409


class ValidationError(CloudXError):
    """Request validation error (400)."""

    code = "validation_error"
    message = "Validation error"
    status_code = 400


class InvalidPathError(ValidationError):
    """Malformed path input (400)."""

    code = "invalid_path"
    message = "Invalid path"


class FileTooLargeError(ValidationError):
    """Upload exceeds the configured size cap (400)."""

    code = "file_too_large"
    message = "File too large"

"""Path validation and resolution for bucket storage.

Every caller-supplied path goes through ``resolve_within`` before the
filesystem is touched. Resolution is purely lexical: ``.`` and empty
segments are dropped, ``..`` pops a segment, and any ``..`` that would climb
above the bucket root is rejected. A leading ``/`` is bucket-relative, so
``/photos`` and ``photos`` name the same folder.
"""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath

from cloudx.errors import InvalidPathError, PathTraversalError, ValidationError

# Bucket names and owner ids are used verbatim as directory names.
SAFE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,63}$")


def normalize_relative_path(path: str | None, *, field_name: str = "path") -> str:
    """Normalize a bucket-relative path.

    Args:
        path: Caller-supplied path (may be None or empty for the root)
        field_name: Name of field for error messages

    Returns:
        The normalized path, "" for the bucket root

    Raises:
        InvalidPathError: If the path contains null bytes
        PathTraversalError: If the path climbs above the root

    Examples:
        >>> normalize_relative_path("a/b/../c")
        'a/c'
        >>> normalize_relative_path("./a//b/")
        'a/b'
        >>> normalize_relative_path("a/..")
        ''
        >>> normalize_relative_path("../etc/passwd")
        PathTraversalError
    """
    if not path:
        return ""

    # Check for null bytes (injection attack)
    if "\x00" in path:
        raise InvalidPathError(
            message=f"{field_name} contains invalid characters",
            details={"field": field_name, "reason": "null_byte"},
        )

    parts: list[str] = []
    for part in PurePosixPath(path.lstrip("/")).parts:
        if part == ".":
            continue
        elif part == "..":
            if parts:
                parts.pop()
            else:
                raise PathTraversalError(
                    message=f"{field_name} escapes bucket boundary",
                    details={"field": field_name, "reason": "path_traversal"},
                )
        else:
            parts.append(part)

    return "/".join(parts)


def resolve_within(root: Path, path: str | None, *, field_name: str = "path") -> Path:
    """Resolve ``path`` against ``root``, refusing anything outside it.

    ``root`` must already be absolute. The containment check compares path
    components, so a sibling like ``bucket2`` never passes for ``bucket``.

    Raises:
        InvalidPathError: If the path contains null bytes
        PathTraversalError: If the result is not ``root`` or a descendant of it
    """
    normalized = normalize_relative_path(path, field_name=field_name)
    if not normalized:
        return root

    resolved = root.joinpath(*normalized.split("/"))
    if resolved != root and root not in resolved.parents:
        raise PathTraversalError(
            message=f"{field_name} escapes bucket boundary",
            details={"field": field_name, "reason": "path_traversal"},
        )
    return resolved


def validate_name(name: str | None, *, field_name: str = "name") -> str:
    """Validate a bucket name or owner id (letters, digits, hyphen, underscore)."""
    if not name or not SAFE_NAME_PATTERN.fullmatch(name):
        raise ValidationError(
            message=(
                f"{field_name} must be 1-63 characters of letters, digits, "
                "hyphen or underscore"
            ),
            details={"field": field_name, "reason": "invalid_name"},
        )
    return name


def validate_filename(filename: str | None, *, field_name: str = "filename") -> str:
    """Validate an upload filename: exactly one non-special path component."""
    if not filename:
        raise InvalidPathError(
            message=f"{field_name} is required",
            details={"field": field_name, "reason": "empty_filename"},
        )
    if "\x00" in filename:
        raise InvalidPathError(
            message=f"{field_name} contains invalid characters",
            details={"field": field_name, "reason": "null_byte"},
        )
    if "/" in filename or "\\" in filename or filename in (".", ".."):
        raise InvalidPathError(
            message=f"{field_name} must be a plain file name",
            details={"field": field_name, "reason": "invalid_filename"},
        )
    return filename

"""Unit tests for bucket path normalization and containment.

Includes edge cases: double slashes, leading slashes, sibling prefixes, etc.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from cloudx.errors import InvalidPathError, PathTraversalError, ValidationError
from cloudx.validators.path import (
    normalize_relative_path,
    resolve_within,
    validate_filename,
    validate_name,
)


class TestNormalizeRelativePath:
    """Test lexical normalization of bucket-relative paths."""

    # --- Valid paths ---

    def test_valid_simple_path(self) -> None:
        assert normalize_relative_path("file.txt") == "file.txt"

    def test_valid_nested_path(self) -> None:
        assert normalize_relative_path("a/b/c.txt") == "a/b/c.txt"

    def test_normalizes_dot_prefix(self) -> None:
        assert normalize_relative_path("./file.txt") == "file.txt"

    def test_normalizes_internal_traversal(self) -> None:
        # a/b/../c -> a/c
        assert normalize_relative_path("a/b/../c") == "a/c"

    def test_normalizes_double_slashes_and_trailing_slash(self) -> None:
        assert normalize_relative_path("a//b/") == "a/b"

    def test_leading_slash_is_bucket_relative(self) -> None:
        assert normalize_relative_path("/photos/2024") == "photos/2024"

    def test_empty_and_none_are_root(self) -> None:
        assert normalize_relative_path("") == ""
        assert normalize_relative_path(None) == ""

    def test_climb_back_to_root(self) -> None:
        assert normalize_relative_path("a/..") == ""

    def test_allows_double_dots_in_filename(self) -> None:
        # "file..txt" contains .. but not as a path component
        assert normalize_relative_path("file..txt") == "file..txt"

    def test_allows_hidden_files(self) -> None:
        assert normalize_relative_path(".hidden") == ".hidden"

    # --- Rejected paths ---

    @pytest.mark.parametrize(
        "path",
        ["..", "../etc/passwd", "../../etc/passwd", "a/../../b", "/../x"],
    )
    def test_rejects_escape_above_root(self, path: str) -> None:
        with pytest.raises(PathTraversalError) as exc_info:
            normalize_relative_path(path)
        assert exc_info.value.status_code == 403
        assert exc_info.value.code == "path_traversal"

    def test_rejects_null_byte(self) -> None:
        with pytest.raises(InvalidPathError) as exc_info:
            normalize_relative_path("a\x00b")
        assert exc_info.value.details["reason"] == "null_byte"

    def test_error_names_the_field(self) -> None:
        with pytest.raises(PathTraversalError) as exc_info:
            normalize_relative_path("../x", field_name="folder")
        assert exc_info.value.details["field"] == "folder"


class TestResolveWithin:
    """Test resolution against a bucket root."""

    @pytest.fixture
    def root(self, tmp_path: Path) -> Path:
        return tmp_path / "alice" / "bucket"

    def test_empty_path_is_root(self, root: Path) -> None:
        assert resolve_within(root, "") == root

    def test_resolves_nested_path(self, root: Path) -> None:
        assert resolve_within(root, "a/b/../c") == root / "a" / "c"

    def test_traversal_rejected(self, root: Path) -> None:
        with pytest.raises(PathTraversalError):
            resolve_within(root, "../../etc/passwd")

    def test_sibling_bucket_not_reachable(self, root: Path) -> None:
        # "bucket2" shares a string prefix with "bucket" but is not inside it
        with pytest.raises(PathTraversalError):
            resolve_within(root, "../bucket2/file.txt")

    def test_result_stays_under_root(self, root: Path) -> None:
        resolved = resolve_within(root, "/x/./y//z")
        assert root in resolved.parents
        assert resolved == root / "x" / "y" / "z"


class TestValidateName:
    @pytest.mark.parametrize("name", ["photos", "my-bucket", "data_2024", "A" * 63])
    def test_accepts_safe_names(self, name: str) -> None:
        assert validate_name(name) == name

    @pytest.mark.parametrize(
        "name",
        ["", None, "a/b", "..", ".staging", "has space", "A" * 64, "ünïcode"],
    )
    def test_rejects_unsafe_names(self, name: str | None) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_name(name)
        assert exc_info.value.code == "validation_error"


class TestValidateFilename:
    def test_accepts_plain_name(self) -> None:
        assert validate_filename("report.pdf") == "report.pdf"

    @pytest.mark.parametrize("filename", ["", None, "a/b.txt", "..\\x", ".", ".."])
    def test_rejects_non_plain_names(self, filename: str | None) -> None:
        with pytest.raises(InvalidPathError):
            validate_filename(filename)

    def test_null_byte_has_own_reason(self) -> None:
        with pytest.raises(InvalidPathError) as exc_info:
            validate_filename("a\x00.txt")
        assert exc_info.value.details["reason"] == "null_byte"

    def test_empty_reason(self) -> None:
        with pytest.raises(InvalidPathError) as exc_info:
            validate_filename("")
        assert exc_info.value.details["reason"] == "empty_filename"

"""Tests for security utilities."""

import pytest

from ai_helper.exceptions import PathTraversalError
from ai_helper.tools.security import PathValidator


class TestPathValidator:
    """Tests for PathValidator class."""

    def test_allows_path_within_root(self, tmp_path):
        """Test that paths within the root are allowed."""
        validator = PathValidator(allowed_roots=[str(tmp_path)])
        test_file = tmp_path / "test.txt"
        test_file.touch()

        result = validator.validate(str(test_file))
        assert result == test_file.resolve()

    def test_relative_paths_resolve_against_first_root(self, tmp_path):
        """Test that relative paths are anchored at the first root."""
        validator = PathValidator(allowed_roots=[str(tmp_path)])
        assert validator.validate("notes/todo.txt") == (tmp_path / "notes" / "todo.txt").resolve()

    def test_blocks_path_outside_root(self, tmp_path):
        """Test that paths outside the root are blocked."""
        validator = PathValidator(allowed_roots=[str(tmp_path)])

        with pytest.raises(PathTraversalError):
            validator.validate("/etc/passwd")

    def test_blocks_traversal_attempt(self, tmp_path):
        """Test that path traversal attempts are blocked."""
        validator = PathValidator(allowed_roots=[str(tmp_path)])

        with pytest.raises(PathTraversalError):
            validator.validate(str(tmp_path / ".." / ".." / "etc" / "passwd"))

    def test_blocks_sibling_with_common_prefix(self, tmp_path):
        """Test that a sibling directory sharing the root's name prefix is blocked."""
        root = tmp_path / "data"
        root.mkdir()
        validator = PathValidator(allowed_roots=[str(root)])

        assert validator.is_valid(str(tmp_path / "data-secret" / "key")) is False

    def test_multiple_roots(self, tmp_path):
        """Test that every configured root is allowed."""
        first, second = tmp_path / "a", tmp_path / "b"
        first.mkdir()
        second.mkdir()
        validator = PathValidator(allowed_roots=[str(first), str(second)])

        assert validator.is_valid(str(second / "file.txt")) is True

    def test_is_valid_returns_bool(self, tmp_path):
        """Test that is_valid returns boolean without raising."""
        validator = PathValidator(allowed_roots=[str(tmp_path)])

        assert validator.is_valid(str(tmp_path / "test.txt")) is True
        assert validator.is_valid("/etc/passwd") is False

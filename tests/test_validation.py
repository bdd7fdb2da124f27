"""
Tests for Validation Utilities
==============================
"""

import pytest

from jatranslate.utils.validation import (
    is_safe_path,
    sanitize_filename,
    validate_debug_root,
)


@pytest.mark.unit
class TestIsSafePath:
    """Tests for is_safe_path function."""

    def test_safe_path_returns_true(self):
        """Normal paths should be considered safe."""
        assert is_safe_path("/tmp/debug") is True
        assert is_safe_path("./relative/path") is True
        assert is_safe_path("debug_out") is True

    def test_path_traversal_returns_false(self):
        """Paths with .. should be detected as unsafe."""
        assert is_safe_path("../etc/passwd") is False
        assert is_safe_path("debug/../../secrets") is False

    def test_system_paths_return_false(self):
        """System locations must never receive debug output."""
        assert is_safe_path("/etc") is False
        assert is_safe_path("/etc/debug") is False
        assert is_safe_path("/proc/self") is False
        assert is_safe_path("/dev/null") is False

    def test_similar_prefix_is_not_rejected(self):
        assert is_safe_path("/etcetera/debug") is True

    def test_path_with_base_dir(self, tmp_path):
        """Path under base directory should be safe."""
        subdir = tmp_path / "subdir"
        subdir.mkdir()

        assert is_safe_path(subdir, base_dir=tmp_path) is True
        assert is_safe_path(tmp_path.parent, base_dir=tmp_path) is False


@pytest.mark.unit
class TestValidateDebugRoot:
    """Tests for validate_debug_root."""

    def test_empty_path_raises(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            validate_debug_root("")

    def test_unsafe_path_raises(self):
        with pytest.raises(ValueError, match="Unsafe"):
            validate_debug_root("/etc/jatranslate")

    def test_file_is_not_a_directory(self, tmp_path):
        f = tmp_path / "file.txt"
        f.write_text("x")

        with pytest.raises(ValueError, match="not a directory"):
            validate_debug_root(f)

    def test_missing_directory_is_allowed(self, tmp_path):
        """Debug roots are created on demand."""
        target = tmp_path / "later"
        assert validate_debug_root(target) == target

    def test_expands_user_home(self):
        assert "~" not in str(validate_debug_root("~/jatranslate-debug"))


@pytest.mark.unit
class TestSanitizeFilename:

    def test_strips_directories(self):
        assert sanitize_filename("../../run") == "run"
        assert sanitize_filename("a\\b\\c") == "c"

    def test_replaces_whitespace_and_dangerous_chars(self):
        assert sanitize_filename('my run: "v2"?') == "my_run_v2"

    def test_empty_becomes_unnamed(self):
        assert sanitize_filename("") == "unnamed"
        assert sanitize_filename("...") == "unnamed"

    def test_truncates_preserving_extension(self):
        name = sanitize_filename("a" * 300 + ".txt", max_length=20)
        assert len(name) == 20
        assert name.endswith(".txt")

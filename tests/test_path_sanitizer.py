"""Tests for path sanitization"""

import pytest

from src.core.errors import (ErrorKind, InvalidNameError, PathTooLongError,
                             PathTraversalError)
from src.core.files import PathSanitizer


@pytest.fixture
def sanitizer(tmp_path):
    return PathSanitizer(str(tmp_path), max_name_length=20)


class TestConfinement:
    """Paths must never resolve outside the base directory"""

    @pytest.mark.parametrize(
        "raw",
        [
            "..",
            "../",
            "../../etc/passwd",
            "a/../../b",
            "docs/../../../etc",
            "./../x",
        ],
    )
    def test_parent_traversal_rejected(self, sanitizer, raw):
        with pytest.raises(PathTraversalError) as exc_info:
            sanitizer.sanitize(raw)
        assert exc_info.value.kind is ErrorKind.PATH_TRAVERSAL

    @pytest.mark.parametrize("raw", ["/etc/passwd", "/", "//etc", "/tmp/../etc"])
    def test_absolute_paths_rejected(self, sanitizer, raw):
        with pytest.raises(PathTraversalError):
            sanitizer.sanitize(raw)

    def test_nul_byte_rejected(self, sanitizer):
        with pytest.raises(PathTraversalError):
            sanitizer.sanitize("a\x00b")

    def test_backslash_is_not_a_separator(self, sanitizer):
        """On POSIX the backslash sequence stays inside one segment and fails the name pattern"""
        with pytest.raises(InvalidNameError):
            sanitizer.sanitize("..\\..\\etc")

    def test_dotdot_prefixed_name_is_not_traversal(self, sanitizer):
        assert sanitizer.sanitize("..hidden") == "..hidden"

    def test_traversal_that_returns_inside_is_allowed(self, sanitizer):
        assert sanitizer.sanitize("a/../b") == "b"


class TestNormalization:

    @pytest.mark.parametrize("raw", ["", ".", "./", "docs/.."])
    def test_root_forms(self, sanitizer, raw):
        assert sanitizer.sanitize(raw) == "."

    def test_redundant_segments_collapsed(self, sanitizer):
        assert sanitizer.sanitize("./a//b/./c/") == "a/b/c"


class TestLength:

    def test_exact_max_length_accepted(self, sanitizer):
        path = "a" * 20
        assert sanitizer.sanitize(path) == path

    def test_one_over_max_length_rejected(self, sanitizer):
        with pytest.raises(PathTooLongError) as exc_info:
            sanitizer.sanitize("a" * 21)
        assert exc_info.value.details["length"] == 21

    def test_length_counted_after_normalization(self, sanitizer):
        # 24 raw characters, 20 once the "./" prefixes are dropped
        raw = "./" + "./" + "a" * 20
        assert sanitizer.sanitize(raw) == "a" * 20

    def test_traversal_reported_before_length(self, sanitizer):
        with pytest.raises(PathTraversalError):
            sanitizer.sanitize("../" + "a" * 50)


class TestNamePattern:

    @pytest.mark.parametrize(
        "raw",
        ["report.pdf", "my file-1.txt", "a_b", "docs/notes.md", "résumé.txt", ".hidden"],
    )
    def test_allowed_names(self, sanitizer, raw):
        assert sanitizer.sanitize(raw) == raw

    @pytest.mark.parametrize("raw", ["a<b", "x>y", "q?", "docs/a|b", "tab\tname"])
    def test_disallowed_names(self, sanitizer, raw):
        with pytest.raises(InvalidNameError):
            sanitizer.sanitize(raw)

    def test_only_final_segment_checked(self, sanitizer):
        assert sanitizer.sanitize("we!rd/ok.txt") == "we!rd/ok.txt"

    def test_trailing_newline_rejected(self, sanitizer):
        with pytest.raises(InvalidNameError):
            sanitizer.sanitize("name\n")

    def test_custom_pattern(self, tmp_path):
        sanitizer = PathSanitizer(str(tmp_path), valid_name=r"^[a-z]+$")
        assert sanitizer.sanitize("abc") == "abc"
        with pytest.raises(InvalidNameError):
            sanitizer.sanitize("abc.txt")

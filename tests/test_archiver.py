"""Tests for zip archive assembly"""

import io
import os
import zipfile

import pytest

from src.core.errors import StorageError
from src.core.files import FolderArchiver
from src.core.files.archiver import is_hidden


class UnseekableSink:
    """Write-only output, like an HTTP response body"""

    def __init__(self):
        self.chunks = []

    def write(self, data):
        self.chunks.append(bytes(data))
        return len(data)

    def flush(self):
        pass

    def getvalue(self):
        return b"".join(self.chunks)


@pytest.fixture
def tree(tmp_path):
    """Two ordinary files, a hidden file and a hidden folder with visible contents"""
    root = tmp_path / "served"
    (root / "sub").mkdir(parents=True)
    (root / ".git" / "objects").mkdir(parents=True)
    (root / "one.txt").write_bytes(b"one")
    (root / "sub" / "two.txt").write_bytes(b"two")
    (root / ".secret").write_bytes(b"hidden")
    (root / ".git" / "config").write_bytes(b"cfg")
    (root / ".git" / "objects" / "blob").write_bytes(b"blob")
    return root


def read_names(data: bytes):
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return archive.namelist()


class TestFolderArchiver:

    def test_hidden_entries_excluded(self, tree):
        sink = io.BytesIO()
        count = FolderArchiver().write_archive(sink, str(tree))

        assert count == 2
        assert read_names(sink.getvalue()) == ["one.txt", "sub/two.txt"]

    def test_contents_preserved(self, tree):
        sink = io.BytesIO()
        FolderArchiver().write_archive(sink, str(tree))

        with zipfile.ZipFile(io.BytesIO(sink.getvalue())) as archive:
            assert archive.read("one.txt") == b"one"
            assert archive.read("sub/two.txt") == b"two"

    def test_no_directory_entries(self, tree):
        (tree / "empty").mkdir()
        sink = io.BytesIO()
        FolderArchiver().write_archive(sink, str(tree))

        assert all(not name.endswith("/") for name in read_names(sink.getvalue()))

    def test_unseekable_sink(self, tree):
        sink = UnseekableSink()
        FolderArchiver().write_archive(sink, str(tree))

        data = sink.getvalue()
        assert read_names(data) == ["one.txt", "sub/two.txt"]
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.testzip() is None

    def test_order_is_deterministic(self, tree):
        for name in ("b.txt", "a.txt", "c.txt"):
            (tree / "sub" / name).write_bytes(name.encode())

        first, second = io.BytesIO(), io.BytesIO()
        FolderArchiver().write_archive(first, str(tree))
        FolderArchiver().write_archive(second, str(tree))

        names = read_names(first.getvalue())
        assert names == read_names(second.getvalue())
        assert names == ["one.txt", "sub/a.txt", "sub/b.txt", "sub/c.txt", "sub/two.txt"]

    def test_stored_compression(self, tree):
        sink = io.BytesIO()
        FolderArchiver(compression=zipfile.ZIP_STORED).write_archive(sink, str(tree))

        with zipfile.ZipFile(io.BytesIO(sink.getvalue())) as archive:
            assert {i.compress_type for i in archive.infolist()} == {zipfile.ZIP_STORED}

    def test_broken_link_aborts(self, tree):
        os.symlink(tree / "gone", tree / "sub" / "zz-dangling")

        with pytest.raises(StorageError) as exc_info:
            FolderArchiver().write_archive(io.BytesIO(), str(tree))
        assert exc_info.value.operation == "zip"
        assert exc_info.value.path == "sub/zz-dangling"

    def test_missing_root_is_walk_error(self, tmp_path):
        with pytest.raises(StorageError) as exc_info:
            FolderArchiver().write_archive(io.BytesIO(), str(tmp_path / "absent"))
        assert exc_info.value.operation == "walk"


@pytest.mark.parametrize(
    "name,hidden",
    [(".env", True), (".", True), ("file.txt", False), ("a.b", False)],
)
def test_is_hidden(name, hidden):
    assert is_hidden(name) is hidden

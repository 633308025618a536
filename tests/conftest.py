"""Pytest configuration and fixtures"""

import io
import os
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.core.config import FileSettings, ServerSettings, Settings, StorageSettings, reset_settings
from src.core.files import EntryInfo, FileManager
from src.infrastructure.filesystem import LocalFileStorage

FAKE_BASE = os.path.abspath(os.sep + os.path.join("srv", "files"))


class FakeStorage:
    """In-memory storage that records every call it receives"""

    def __init__(self, base_path: str = FAKE_BASE):
        self.base_path = base_path
        self.calls: List[tuple] = []
        self.directories: Dict[str, List[EntryInfo]] = {}
        self.written: Dict[str, bytes] = {}
        self.error: Optional[Exception] = None

    def _record(self, *call) -> None:
        self.calls.append(call)
        if self.error is not None:
            raise self.error

    def read_directory(self, rel_path: str) -> List[EntryInfo]:
        self._record("read_directory", rel_path)
        if rel_path not in self.directories:
            raise FileNotFoundError(rel_path)
        return self.directories[rel_path]

    def write_file(self, rel_path: str, stream: BinaryIO) -> None:
        self._record("write_file", rel_path)
        self.written[rel_path] = stream.read()

    def remove(self, rel_path: str) -> None:
        self._record("remove", rel_path)

    def move(self, old_rel: str, new_rel: str) -> None:
        self._record("move", old_rel, new_rel)

    def create_directory(self, rel_path: str) -> None:
        self._record("create_directory", rel_path)

    def get_absolute_path(self, rel_path: str) -> str:
        return os.path.join(self.base_path, rel_path)


class MemorySink(io.BytesIO):
    """Response sink collecting headers and body in memory"""

    def __init__(self):
        super().__init__()
        self.headers: Dict[str, str] = {}

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch):
    """Keep environment and cached settings from leaking between tests"""
    for key in list(os.environ):
        if key.startswith("FILEBROWSER_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    """Base directory all operations are confined to"""
    base = tmp_path / "storage"
    base.mkdir()
    return base


@pytest.fixture
def settings(base_dir: Path) -> Settings:
    return Settings(
        storage=StorageSettings(base_path=base_dir),
        server=ServerSettings(max_upload_size=1024),
        file=FileSettings(),
    )


@pytest.fixture
def local_storage(base_dir: Path) -> LocalFileStorage:
    return LocalFileStorage(base_dir)


@pytest.fixture
def file_manager(local_storage: LocalFileStorage) -> FileManager:
    return FileManager(local_storage)


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def fake_manager(fake_storage: FakeStorage) -> FileManager:
    return FileManager(fake_storage)


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def client(settings: Settings) -> TestClient:
    """Create a FastAPI test client bound to a temporary base directory"""
    return TestClient(create_app(settings))

"""File browser core: path sanitization and file operations"""
from .archiver import FolderArchiver
from .file_types import EntryInfo, FileData, FileStorage, ResponseSink
from .manager import FileManager
from .path_sanitizer import PathSanitizer

__all__ = [
    'EntryInfo',
    'FileData',
    'FileManager',
    'FileStorage',
    'FolderArchiver',
    'PathSanitizer',
    'ResponseSink',
]

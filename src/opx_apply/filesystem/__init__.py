"""File-system collaborators: protocols, disk, in-memory and overlay trees."""

from opx_apply.filesystem.base import DiffSink, FileSystem, normalize_relative
from opx_apply.filesystem.exceptions import (
    FileExistsConflictError,
    FileMissingError,
    FileSystemError,
    PathResolutionError,
)
from opx_apply.filesystem.local import LocalFileSystem
from opx_apply.filesystem.memory import InMemoryFileSystem, OverlayFileSystem

__all__ = [
    "DiffSink",
    "FileExistsConflictError",
    "FileMissingError",
    "FileSystem",
    "FileSystemError",
    "InMemoryFileSystem",
    "LocalFileSystem",
    "OverlayFileSystem",
    "PathResolutionError",
    "normalize_relative",
]

"""Exceptions for file-system collaborators."""


class FileSystemError(Exception):
    """Base exception for file-system operations."""


class FileMissingError(FileSystemError):
    """Raised when a file that must exist does not."""


class FileExistsConflictError(FileSystemError):
    """Raised when a destination file already exists."""


class PathResolutionError(FileSystemError):
    """Raised when a path cannot be mapped into the workspace."""

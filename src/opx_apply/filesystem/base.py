"""Collaborator protocols for reading and mutating the file tree."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


def normalize_relative(path: str) -> str:
    """Strip one leading "./" (or ".\\") and turn backslashes into slashes.

    Bare dotfiles such as ".env" are left alone.
    """
    if path.startswith("./") or path.startswith(".\\"):
        path = path[2:]
    return path.replace("\\", "/")


@runtime_checkable
class FileSystem(Protocol):
    """File tree the orchestrator reads from and writes to.

    Every method accepts an optional workspace root name for multi-root
    trees. Paths are as written in the response.
    """

    def resolve_key(self, path: str, root: str | None = None) -> str:
        """Stable identity of a file; two spellings of one file share it."""

    def read_file(self, path: str, root: str | None = None) -> str:
        """Return file text. Raises FileMissingError when absent."""

    def write_file(self, path: str, content: str, root: str | None = None) -> None:
        """Create or overwrite a file, creating parent directories."""

    def delete_file(self, path: str, root: str | None = None) -> None:
        """Remove a file. Raises FileMissingError when absent."""

    def rename_file(self, old_path: str, new_path: str, root: str | None = None) -> None:
        """Move a file. Raises FileExistsConflictError if new_path exists."""

    def exists(self, path: str, root: str | None = None) -> bool:
        """Return True if the file exists."""


@runtime_checkable
class DiffSink(Protocol):
    """Receives the before/after text of a previewed row."""

    def show(self, path: str, original: str, modified: str, new_path: str | None = None) -> None:
        """Present the change to the user; new_path is set for renames."""

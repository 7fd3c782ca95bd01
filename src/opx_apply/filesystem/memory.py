"""In-memory file systems for dry runs and tests."""

from __future__ import annotations

from opx_apply.filesystem.base import FileSystem, normalize_relative
from opx_apply.filesystem.exceptions import FileExistsConflictError, FileMissingError


class InMemoryFileSystem:
    """Dict-backed file tree keyed by normalized relative path.

    Files under a named root are keyed "root:path".
    """

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files: dict[str, str] = {}
        for path, content in (files or {}).items():
            self.files[self.resolve_key(path)] = content

    def resolve_key(self, path: str, root: str | None = None) -> str:
        rel = normalize_relative(path)
        return f"{root}:{rel}" if root else rel

    def read_file(self, path: str, root: str | None = None) -> str:
        key = self.resolve_key(path, root)
        if key not in self.files:
            raise FileMissingError(f"File not found: {key}")
        return self.files[key]

    def write_file(self, path: str, content: str, root: str | None = None) -> None:
        self.files[self.resolve_key(path, root)] = content

    def delete_file(self, path: str, root: str | None = None) -> None:
        key = self.resolve_key(path, root)
        if key not in self.files:
            raise FileMissingError(f"File not found: {key}")
        del self.files[key]

    def rename_file(self, old_path: str, new_path: str, root: str | None = None) -> None:
        old_key = self.resolve_key(old_path, root)
        new_key = self.resolve_key(new_path, root)
        if old_key not in self.files:
            raise FileMissingError(f"File not found: {old_key}")
        if new_key in self.files:
            raise FileExistsConflictError(f"File already exists: {new_key}")
        self.files[new_key] = self.files.pop(old_key)

    def exists(self, path: str, root: str | None = None) -> bool:
        return self.resolve_key(path, root) in self.files


class OverlayFileSystem:
    """Copy-on-write view over another file system.

    Writes, deletes and renames land in the overlay only; the base tree is
    never touched. Used for dry-run previews of a whole batch.
    """

    def __init__(self, base: FileSystem) -> None:
        self.base = base
        self.overlay: dict[str, str | None] = {}  # None marks a deleted file

    def resolve_key(self, path: str, root: str | None = None) -> str:
        return self.base.resolve_key(path, root)

    def read_file(self, path: str, root: str | None = None) -> str:
        key = self.resolve_key(path, root)
        if key in self.overlay:
            content = self.overlay[key]
            if content is None:
                raise FileMissingError(f"File not found: {path}")
            return content
        return self.base.read_file(path, root)

    def write_file(self, path: str, content: str, root: str | None = None) -> None:
        self.overlay[self.resolve_key(path, root)] = content

    def delete_file(self, path: str, root: str | None = None) -> None:
        if not self.exists(path, root):
            raise FileMissingError(f"File not found: {path}")
        self.overlay[self.resolve_key(path, root)] = None

    def rename_file(self, old_path: str, new_path: str, root: str | None = None) -> None:
        if self.exists(new_path, root):
            raise FileExistsConflictError(f"File already exists: {new_path}")
        content = self.read_file(old_path, root)
        self.write_file(new_path, content, root)
        self.overlay[self.resolve_key(old_path, root)] = None

    def exists(self, path: str, root: str | None = None) -> bool:
        key = self.resolve_key(path, root)
        if key in self.overlay:
            return self.overlay[key] is not None
        return self.base.exists(path, root)

    def changed_paths(self) -> list[str]:
        """Keys written or deleted through the overlay, in first-touch order."""
        return list(self.overlay)

"""Disk-backed file system with multi-root workspace path resolution."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from opx_apply.filesystem.base import normalize_relative
from opx_apply.filesystem.exceptions import (
    FileExistsConflictError,
    FileMissingError,
    FileSystemError,
    PathResolutionError,
)

logger = logging.getLogger(__name__)

FILE_URI_SCHEME = "file://"


class LocalFileSystem:
    """Reads and writes files under one or more named workspace roots.

    Paths may be file:// URIs, absolute paths, or relative paths. Relative
    paths resolve against the root named by ``root``, the only root when
    there is one, or a "rootName:relative/path" prefix. Anything that
    resolves outside every root is refused.

    Text is read and written with ``newline=""`` so CRLF files keep their
    line endings.
    """

    def __init__(self, roots: Mapping[str, str | Path] | None = None) -> None:
        if not roots:
            cwd = Path.cwd()
            roots = {cwd.name or str(cwd): cwd}
        self.roots: dict[str, Path] = {
            name: Path(path).expanduser().resolve() for name, path in roots.items()
        }

    def _ensure_inside(self, target: Path) -> Path:
        resolved = target.resolve()
        if not any(resolved == root or resolved.is_relative_to(root) for root in self.roots.values()):
            raise PathResolutionError(f"Path is outside the current workspace: {resolved}")
        return resolved

    def resolve(self, path: str, root: str | None = None) -> Path:
        """Map a response path onto an absolute path inside the workspace.

        Raises:
            PathResolutionError: If the root is unknown, the path is
                ambiguous across roots, or it points outside the workspace.
        """
        if path.startswith(FILE_URI_SCHEME):
            parsed = urlparse(path)
            return self._ensure_inside(Path(url2pathname(unquote(parsed.path))))

        if os.path.isabs(path):
            return self._ensure_inside(Path(path))

        if root:
            if root not in self.roots:
                available = ", ".join(self.roots)
                raise PathResolutionError(f'Workspace root "{root}" not found. Available: {available}')
            base = self.roots[root]
        elif len(self.roots) == 1:
            base = next(iter(self.roots.values()))
        else:
            root_name, sep, rel = path.partition(":")
            if sep and root_name in self.roots:
                return self._ensure_inside(self.roots[root_name] / normalize_relative(rel))
            raise PathResolutionError(
                f'Ambiguous workspace path "{path}". Provide a root attribute '
                f'or use "<rootName>:<relative/path>" format.'
            )

        return self._ensure_inside(base / normalize_relative(path))

    def resolve_key(self, path: str, root: str | None = None) -> str:
        return str(self.resolve(path, root))

    def read_file(self, path: str, root: str | None = None) -> str:
        target = self.resolve(path, root)
        try:
            with open(target, encoding="utf-8", newline="") as handle:
                return handle.read()
        except FileNotFoundError as exc:
            raise FileMissingError(f"File not found: {target}") from exc
        except OSError as exc:
            raise FileSystemError(f"Failed to read {target}: {exc}") from exc

    def write_file(self, path: str, content: str, root: str | None = None) -> None:
        target = self.resolve(path, root)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8", newline="") as handle:
                handle.write(content)
        except OSError as exc:
            raise FileSystemError(f"Failed to write {target}: {exc}") from exc
        logger.debug(f"Wrote {target}")

    def delete_file(self, path: str, root: str | None = None) -> None:
        target = self.resolve(path, root)
        try:
            target.unlink()
        except FileNotFoundError as exc:
            raise FileMissingError(f"File not found: {target}") from exc
        except OSError as exc:
            raise FileSystemError(f"Failed to delete {target}: {exc}") from exc
        logger.debug(f"Deleted {target}")

    def rename_file(self, old_path: str, new_path: str, root: str | None = None) -> None:
        source = self.resolve(old_path, root)
        destination = self.resolve(new_path, root)
        if not source.is_file():
            raise FileMissingError(f"File not found: {source}")
        if destination.exists():
            raise FileExistsConflictError(f"File already exists: {destination}")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            source.rename(destination)
        except OSError as exc:
            raise FileSystemError(f"Failed to rename {source} to {destination}: {exc}") from exc
        logger.debug(f"Renamed {source} -> {destination}")

    def exists(self, path: str, root: str | None = None) -> bool:
        return self.resolve(path, root).is_file()

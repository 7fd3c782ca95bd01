"""Utilities for presenting row changes as unified diffs."""

import difflib
import logging

logger = logging.getLogger(__name__)


def generate_unified_diff(
    file_path: str,
    original_content: str,
    modified_content: str,
    new_path: str | None = None,
) -> str:
    """Generate a git-compatible unified diff.

    Args:
        file_path: Path as written in the response (e.g. "src/app.ts").
        original_content: File content before the row is applied.
        modified_content: File content after the row is applied.
        new_path: Destination path for renames; defaults to file_path.

    Returns:
        Unified diff string with a/ b/ prefixes. Empty string if no changes.
    """
    target_path = new_path or file_path
    if original_content == modified_content and target_path == file_path:
        return ""

    original_lines = original_content.splitlines(keepends=True)
    modified_lines = modified_content.splitlines(keepends=True)

    diff_gen = difflib.unified_diff(
        original_lines,
        modified_lines,
        fromfile=f"a/{file_path}",
        tofile=f"b/{target_path}",
        lineterm="",
    )

    # keepends=True leaves a newline (or CRLF) on content lines; strip it
    # so the lines can be rejoined with a single "\n"
    diff_lines = [line.rstrip("\r\n") for line in diff_gen]
    if not diff_lines:
        return f"rename from {file_path}\nrename to {target_path}"
    return "\n".join(diff_lines)


class UnifiedDiffSink:
    """Diff sink that renders each previewed row as a unified diff.

    Rendered diffs are kept in ``diffs`` in arrival order, and optionally
    passed to ``emit`` (e.g. ``print``) as they arrive.
    """

    def __init__(self, emit=None) -> None:
        self.emit = emit
        self.diffs: list[str] = []

    def show(self, path: str, original: str, modified: str, new_path: str | None = None) -> None:
        diff = generate_unified_diff(path, original, modified, new_path=new_path)
        self.diffs.append(diff)
        logger.debug(f"Rendered preview diff for {path} ({len(diff)} chars)")
        if self.emit is not None:
            self.emit(diff)

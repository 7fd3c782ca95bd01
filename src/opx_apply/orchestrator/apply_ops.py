"""Per-action handlers shared by the batch graph and row-level session calls.

Applying a row is split in two: ``plan_row`` reads the current text (from
the virtual content map first, then the file system) and computes the
outcome without writing; ``commit_row`` performs the write and returns the
content-map updates. Row previews stop after planning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from opx_apply.filesystem import FileSystem, FileSystemError
from opx_apply.models import ActionType, FileAction, RowApplyResult
from opx_apply.orchestrator.cascade import (
    detect_eol,
    is_cascade_failure,
    locate_search,
    normalize_to_eol,
)
from opx_apply.orchestrator.exceptions import (
    ApplyError,
    MissingContentError,
    OccurrenceNotFoundError,
    SearchNotFoundError,
)

logger = logging.getLogger(__name__)

SEARCH_EXCERPT_LENGTH = 20


class RowOp(str, Enum):
    """File-system effect of a planned row."""

    WRITE = "write"
    DELETE = "delete"
    RENAME = "rename"
    NOOP = "noop"


@dataclass
class RowPlan:
    key: str
    op: RowOp
    message: str
    original: str | None = None  # None when the file does not exist yet
    modified: str | None = None  # None when the row deletes the file
    target_key: str | None = None  # Rename destination
    notes: list[str] = field(default_factory=list)


def read_current(
    fs: FileSystem,
    contents: dict[str, str | None],
    path: str,
    root: str | None = None,
) -> str | None:
    """Current text of a file, or None if it does not exist.

    Rows earlier in the batch take precedence over what is on disk.
    """
    key = fs.resolve_key(path, root)
    if key in contents:
        return contents[key]
    if not fs.exists(path, root):
        return None
    return fs.read_file(path, root)


def _plan_create(action: FileAction, fs: FileSystem, contents: dict[str, str | None]) -> RowPlan:
    if not action.changes:
        raise MissingContentError("No content provided for create action")
    key = fs.resolve_key(action.path, action.root)
    current = read_current(fs, contents, action.path, action.root)
    if current is not None:
        return RowPlan(key=key, op=RowOp.NOOP, message="File already exists (skipped create)",
                       original=current, modified=current)
    return RowPlan(key=key, op=RowOp.WRITE, message="File created successfully",
                   original=None, modified=action.changes[0].content)


def _plan_rewrite(action: FileAction, fs: FileSystem, contents: dict[str, str | None]) -> RowPlan:
    if not action.changes:
        raise MissingContentError("No content provided for rewrite action")
    key = fs.resolve_key(action.path, action.root)
    current = read_current(fs, contents, action.path, action.root)
    if current is None:
        raise ApplyError("File does not exist, cannot rewrite")
    return RowPlan(key=key, op=RowOp.WRITE, message="File rewritten successfully",
                   original=current, modified=action.changes[0].content)


def _plan_modify(action: FileAction, fs: FileSystem, contents: dict[str, str | None]) -> RowPlan:
    if not action.changes:
        raise MissingContentError("No changes provided for modify action")
    key = fs.resolve_key(action.path, action.root)
    current = read_current(fs, contents, action.path, action.root)
    if current is None:
        raise ApplyError("File does not exist, cannot modify")

    eol = detect_eol(current)
    text = current
    applied = 0
    notes: list[str] = []
    missed_search = False
    missed_occurrence = False

    # Each block sees the text produced by the blocks before it
    for change in action.changes:
        if not change.search:
            notes.append("Error: Search block missing in a change")
            continue
        search = normalize_to_eol(change.search, eol)
        pos = locate_search(text, search, change.occurrence)
        if pos < 0:
            if isinstance(change.occurrence, int) and search in text:
                missed_occurrence = True
                notes.append(f"Error: occurrence={change.occurrence} not found for search block")
            else:
                missed_search = True
                notes.append(f'Error: Search text not found: "{search[:SEARCH_EXCERPT_LENGTH]}..."')
            continue
        replacement = normalize_to_eol(change.content, eol)
        text = text[:pos] + replacement + text[pos + len(search):]
        applied += 1
        notes.append(f'Success: Applied change: "{change.description or "Modify file"}"')

    summary = "; ".join(notes)
    if applied == 0:
        message = f"Failed to apply any modifications. {summary}"
        if missed_search:
            raise SearchNotFoundError(message)
        if missed_occurrence:
            raise OccurrenceNotFoundError(message)
        raise ApplyError(message)

    return RowPlan(key=key, op=RowOp.WRITE,
                   message=f"Applied {applied}/{len(action.changes)} modifications. {summary}",
                   original=current, modified=text, notes=notes)


def _plan_delete(action: FileAction, fs: FileSystem, contents: dict[str, str | None]) -> RowPlan:
    key = fs.resolve_key(action.path, action.root)
    current = read_current(fs, contents, action.path, action.root)
    if current is None:
        raise ApplyError("File does not exist, cannot delete")
    return RowPlan(key=key, op=RowOp.DELETE, message="File deleted successfully",
                   original=current, modified=None)


def _plan_rename(action: FileAction, fs: FileSystem, contents: dict[str, str | None]) -> RowPlan:
    if not action.new_path:
        raise MissingContentError("Missing new path for rename operation.")
    key = fs.resolve_key(action.path, action.root)
    target_key = fs.resolve_key(action.new_path, action.root)
    current = read_current(fs, contents, action.path, action.root)
    if current is None:
        raise ApplyError(f"Original file '{action.path}' does not exist, cannot rename.")
    if read_current(fs, contents, action.new_path, action.root) is not None:
        raise ApplyError(f"Destination '{action.new_path}' already exists, cannot rename.")
    return RowPlan(key=key, op=RowOp.RENAME,
                   message=f"File renamed successfully to '{action.new_path}'",
                   original=current, modified=current, target_key=target_key)


_PLANNERS = {
    ActionType.CREATE: _plan_create,
    ActionType.REWRITE: _plan_rewrite,
    ActionType.MODIFY: _plan_modify,
    ActionType.DELETE: _plan_delete,
    ActionType.RENAME: _plan_rename,
}


def plan_row(action: FileAction, fs: FileSystem, contents: dict[str, str | None]) -> RowPlan:
    """Compute what applying action would do, without writing anything.

    Raises:
        ApplyError: If the action cannot be applied.
        FileSystemError: If the file system refuses a read or a path.
    """
    return _PLANNERS[action.action](action, fs, contents)


def commit_row(plan: RowPlan, action: FileAction, fs: FileSystem) -> dict[str, str | None]:
    """Perform the planned write and return the content-map updates.

    Raises:
        FileSystemError: If the write, delete or rename fails.
    """
    if plan.op == RowOp.WRITE:
        fs.write_file(action.path, plan.modified or "", action.root)
        return {plan.key: plan.modified or ""}
    if plan.op == RowOp.DELETE:
        fs.delete_file(action.path, action.root)
        return {plan.key: None}
    if plan.op == RowOp.RENAME:
        fs.rename_file(action.path, action.new_path, action.root)
        return {plan.key: None, plan.target_key: plan.original}
    return {}


def apply_action(
    row_index: int,
    action: FileAction,
    fs: FileSystem,
    contents: dict[str, str | None],
    mutated: dict[str, list[int]],
) -> tuple[RowApplyResult, dict[str, str | None], dict[str, list[int]]]:
    """Apply one action and fold its effect into the content map.

    Expected failures (ApplyError, FileSystemError) become a failed
    RowApplyResult; anything else propagates.

    Returns:
        (result, updated contents, updated mutation history). The inputs
        are not modified.
    """
    new_contents = dict(contents)
    new_mutated = {key: list(rows) for key, rows in mutated.items()}
    key: str | None = None

    try:
        key = fs.resolve_key(action.path, action.root)
        plan = plan_row(action, fs, contents)
        updates = commit_row(plan, action, fs)
    except (ApplyError, FileSystemError) as exc:
        cascade = isinstance(exc, SearchNotFoundError) and is_cascade_failure(key, row_index, mutated)
        logger.info(f"Row {row_index + 1} ({action.action.value} {action.path}) failed: {exc}")
        result = RowApplyResult(
            row_index=row_index,
            path=action.path,
            action=action.action,
            success=False,
            message=str(exc),
            new_path=action.new_path,
            is_cascade_failure=cascade,
        )
        return result, new_contents, new_mutated

    new_contents.update(updates)
    for changed_key in updates:
        new_mutated.setdefault(changed_key, []).append(row_index)

    logger.info(f"Row {row_index + 1} ({action.action.value} {action.path}): {plan.message}")
    result = RowApplyResult(
        row_index=row_index,
        path=action.path,
        action=action.action,
        success=True,
        message=plan.message,
        new_path=action.new_path,
    )
    return result, new_contents, new_mutated

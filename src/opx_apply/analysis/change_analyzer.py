"""Preview statistics and descriptions for parsed file actions.

All functions are pure: the same action always yields the same row.
"""

import math

from opx_apply.models import ActionType, ChangeSummary, FileAction, PreviewData, PreviewTableRow

# Rewrites replace roughly this share of the existing lines
REWRITE_REMOVED_RATIO = 0.8
# Placeholder size for deletes; the real file is not read during preview
DELETE_REMOVED_LINES = 50
# Modify descriptions list at most this many blocks before summarizing
MAX_LISTED_DESCRIPTIONS = 3
DESCRIPTION_SEPARATOR = " • "

DEFAULT_DESCRIPTIONS = {
    ActionType.CREATE: "Create file",
    ActionType.REWRITE: "Rewrite file",
    ActionType.MODIFY: "Modify file",
    ActionType.DELETE: "Delete file",
}


def count_lines(text: str | None) -> int:
    """Number of lines in text: 0 when empty, else newlines + 1."""
    if not text:
        return 0
    return text.count("\n") + 1


def summarize_changes(action: FileAction) -> ChangeSummary:
    """Compute added/removed line counts for one action."""
    if action.action == ActionType.CREATE:
        return ChangeSummary(added=sum(count_lines(c.content) for c in action.changes))

    if action.action == ActionType.REWRITE:
        added = sum(count_lines(c.content) for c in action.changes)
        return ChangeSummary(added=added, removed=math.ceil(added * REWRITE_REMOVED_RATIO))

    if action.action == ActionType.MODIFY:
        added = 0
        removed = 0
        for change in action.changes:
            removed += count_lines(change.search) or 1
            added += count_lines(change.content)
        return ChangeSummary(added=added, removed=removed)

    if action.action == ActionType.DELETE:
        return ChangeSummary(added=0, removed=DELETE_REMOVED_LINES)

    return ChangeSummary()


def describe(action: FileAction) -> str:
    """Human-readable one-line description of an action."""
    if action.action == ActionType.RENAME:
        return f"Rename to {action.new_path or 'new location'}"

    default = DEFAULT_DESCRIPTIONS[action.action]
    if action.action == ActionType.DELETE:
        return default

    if action.action in (ActionType.CREATE, ActionType.REWRITE):
        first = action.changes[0].description if action.changes else None
        return first or default

    descriptions = [change.description or default for change in action.changes]
    if not descriptions:
        return default
    if len(descriptions) == 1:
        return descriptions[0]
    if len(descriptions) <= MAX_LISTED_DESCRIPTIONS:
        return DESCRIPTION_SEPARATOR.join(descriptions)
    extra = len(descriptions) - 2
    return DESCRIPTION_SEPARATOR.join(descriptions[:2] + [f"(+{extra} more)"])


def find_blocking_error(action: FileAction) -> str | None:
    """Return why the action cannot be applied, before touching any file."""
    if action.action == ActionType.RENAME and not action.new_path:
        return f"Missing new path for rename of '{action.path}'"
    if action.action == ActionType.MODIFY:
        if not action.changes:
            return f"No changes to apply to '{action.path}'"
        if any(change.search is None for change in action.changes):
            return f"A change block for '{action.path}' has no search text"
    if action.action in (ActionType.CREATE, ActionType.REWRITE) and not action.changes:
        return f"No content provided for {action.action.value} of '{action.path}'"
    return None


def analyze(action: FileAction) -> PreviewTableRow:
    """Build the preview row for one action."""
    error = find_blocking_error(action)
    warnings = [warning for change in action.changes for warning in change.warnings]
    return PreviewTableRow(
        path=action.path,
        action=action.action,
        description=describe(action),
        changes=summarize_changes(action),
        new_path=action.new_path,
        has_error=error is not None,
        error_message=error,
        warnings=warnings,
        change_blocks=list(action.changes),
    )


def analyze_actions(actions: list[FileAction], errors: list[str] | None = None) -> PreviewData:
    """Build preview rows for a batch, in action order."""
    return PreviewData(rows=[analyze(action) for action in actions], errors=list(errors or []))

"""Literal payload extraction between <<< / >>> marker lines."""

OPEN_MARKER = "<<<"
CLOSE_MARKER = ">>>"
LEGACY_MARKER = "==="

# Truncated marker lines seen in model output
_TRUNCATED_OPEN = ("<", "<<")
_TRUNCATED_CLOSE = (">", ">>")


def _first_nonblank(stripped: list[str]) -> int:
    for i, line in enumerate(stripped):
        if line:
            return i
    return -1


def _last_nonblank(stripped: list[str]) -> int:
    for i in range(len(stripped) - 1, -1, -1):
        if stripped[i]:
            return i
    return -1


def heal_markers(lines: list[str]) -> list[str]:
    """Repair a truncated opening/closing marker line.

    Only the first non-blank line can become <<< and only the last
    non-blank line can become >>>, and only when the full marker is
    missing on that side.
    """
    stripped = [line.strip() for line in lines]
    healed = list(lines)
    if OPEN_MARKER not in stripped:
        first = _first_nonblank(stripped)
        if first >= 0 and stripped[first] in _TRUNCATED_OPEN:
            healed[first] = OPEN_MARKER
    if CLOSE_MARKER not in stripped:
        last = _last_nonblank(stripped)
        if last >= 0 and stripped[last] in _TRUNCATED_CLOSE:
            healed[last] = CLOSE_MARKER
    return healed


def _between(lines: list[str], start: int, end: int) -> str:
    text = "\n".join(lines[start + 1:end])
    if text.endswith("\r"):
        text = text[:-1]
    return text


def _strip_blank_edges(lines: list[str]) -> str:
    trimmed = list(lines)
    if trimmed and not trimmed[0].strip():
        trimmed.pop(0)
    if trimmed and not trimmed[-1].strip():
        trimmed.pop()
    text = "\n".join(trimmed)
    if text.endswith("\r"):
        text = text[:-1]
    return text


def extract_literal(inner: str, allow_legacy: bool = False) -> tuple[str, str | None]:
    """Extract the payload of a content element.

    The text between the first <<< line and the last >>> line is returned
    verbatim; trailing whitespace after either marker is tolerated. With
    allow_legacy, a pair of === lines is accepted when no <<< / >>> marker
    is present. A body with no markers at all is returned as written minus
    one leading and one trailing blank line.

    Returns:
        (text, warning). A malformed marker pair yields ("", warning)
        instead of raising.
    """
    lines = heal_markers(inner.split("\n"))
    stripped = [line.strip() for line in lines]

    open_idx = stripped.index(OPEN_MARKER) if OPEN_MARKER in stripped else -1
    close_idx = -1
    for i in range(len(stripped) - 1, open_idx, -1):
        if stripped[i] == CLOSE_MARKER:
            close_idx = i
            break

    if open_idx >= 0 and close_idx >= 0:
        return _between(lines, open_idx, close_idx), None
    if open_idx >= 0:
        return "", f"Malformed literal block: missing closing {CLOSE_MARKER} marker"
    if CLOSE_MARKER in stripped:
        return "", f"Malformed literal block: missing opening {OPEN_MARKER} marker"

    if allow_legacy:
        legacy = [i for i, line in enumerate(stripped) if line == LEGACY_MARKER]
        if len(legacy) >= 2:
            return _between(lines, legacy[0], legacy[-1]), None
        if len(legacy) == 1:
            return "", f"Malformed literal block: unpaired {LEGACY_MARKER} marker"

    return _strip_blank_edges(lines), None

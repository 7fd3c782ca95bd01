"""Pure helper functions for search location and cascade detection.

All functions are stateless and have no external dependencies.
"""

from opx_apply.models import Occurrence
from opx_apply.orchestrator.state import BatchState

CRLF = "\r\n"
LF = "\n"


def detect_eol(text: str) -> str:
    """Return the line ending used by text: CRLF if any line uses it, else LF."""
    return CRLF if CRLF in text else LF


def normalize_to_eol(text: str, eol: str) -> str:
    """Rewrite every line ending in text to eol."""
    unified = text.replace(CRLF, LF)
    if eol == LF:
        return unified
    return unified.replace(LF, eol)


def find_nth_occurrence(text: str, needle: str, n: int) -> int:
    """Find the index of the nth (1-indexed) occurrence of needle.

    Occurrences may overlap.

    Returns:
        Start index, or -1 if there are fewer than n occurrences.
    """
    if n < 1 or not needle:
        return -1
    pos = -1
    for _ in range(n):
        pos = text.find(needle, pos + 1)
        if pos == -1:
            return -1
    return pos


def locate_search(text: str, search: str, occurrence: Occurrence | None = None) -> int:
    """Locate search in text following the occurrence policy.

    Args:
        text: Current document text.
        search: Search text, already in the document's line endings.
        occurrence: "first" (default), "last", or a 1-indexed N.

    Returns:
        Start index of the selected match, or -1.
    """
    if not search:
        return -1
    if occurrence == "last":
        return text.rfind(search)
    if isinstance(occurrence, int):
        return find_nth_occurrence(text, search, occurrence)
    return text.find(search)


def is_cascade_failure(key: str | None, row_index: int, mutated: dict[str, list[int]]) -> bool:
    """True if an earlier row already changed the file this row failed on.

    Args:
        key: File key of the failed row, None if its path never resolved.
        row_index: Index of the failed row.
        mutated: File key -> indexes of rows that changed it.
    """
    if key is None:
        return False
    return any(index != row_index for index in mutated.get(key, []))


def next_row_or_end(state: BatchState) -> str:
    """Router function for the apply loop's conditional edge.

    Returns:
        "continue" while rows remain, "done" otherwise.
    """
    if state["cursor"] < len(state["actions"]):
        return "continue"
    return "done"

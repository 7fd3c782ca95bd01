"""State definition for the LangGraph batch apply graph."""

import operator
from typing import Annotated, TypedDict

from opx_apply.models import BatchStatus, FileAction, RowApplyResult


class BatchState(TypedDict):
    """State for one ordered walk over a batch of file actions.

    Fields with Annotated[list, operator.add] reducers accumulate across nodes.
    All other fields use default overwrite semantics.
    """

    # Input
    actions: list[FileAction]

    # Progress
    cursor: int
    status: BatchStatus

    # Virtual content map: file key -> current text, None once deleted/moved away
    contents: dict[str, str | None]
    # File key -> indexes of rows that changed it
    mutated: dict[str, list[int]]

    # Accumulating reducers
    results: Annotated[list[RowApplyResult], operator.add]
    errors: Annotated[list[str], operator.add]


def make_initial_state(
    actions: list[FileAction],
    contents: dict[str, str | None] | None = None,
    mutated: dict[str, list[int]] | None = None,
) -> BatchState:
    """Create the initial state for a batch walk.

    Args:
        actions: Parsed actions, in application order.
        contents: Content map carried over from earlier rows, if any.
        mutated: Mutation history carried over from earlier rows, if any.

    Returns:
        BatchState dict with all fields initialised to defaults.
    """
    return {
        "actions": list(actions),
        "cursor": 0,
        "status": BatchStatus.PENDING,
        "contents": dict(contents or {}),
        "mutated": {key: list(rows) for key, rows in (mutated or {}).items()},
        "results": [],
        "errors": [],
    }

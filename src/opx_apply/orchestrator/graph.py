"""LangGraph batch graph for applying parsed file actions in order.

One apply node handles one row per step and loops on itself until every
action has been attempted. A failing row never stops the walk.
"""

import logging
from typing import Callable

from langgraph.graph import END, START, StateGraph

from opx_apply.filesystem import FileSystem
from opx_apply.models import BatchStatus, FileAction
from opx_apply.orchestrator.apply_ops import apply_action
from opx_apply.orchestrator.cascade import next_row_or_end
from opx_apply.orchestrator.exceptions import GraphBuildError
from opx_apply.orchestrator.state import BatchState, make_initial_state

logger = logging.getLogger(__name__)

# Steps outside the per-row loop (start, finish) plus headroom
RECURSION_HEADROOM = 5


def start_node(state: BatchState) -> dict:
    """Move the batch to RUNNING."""
    logger.info(f"Starting batch of {len(state['actions'])} action(s)")
    return {"status": BatchStatus.RUNNING, "cursor": 0}


def make_apply_row_node(fs: FileSystem) -> Callable[[BatchState], dict]:
    """Factory: returns a node closure that applies the action at the cursor.

    The closure:
    1. Reads the action at state["cursor"]
    2. Calls apply_action() against fs and the content map
    3. Returns {"results": [result], "contents": ..., "mutated": ..., "cursor": cursor + 1}

    Row failures come back as failed results. Unexpected exceptions are
    not caught here; they abort the whole invocation.
    """

    def apply_row_node(state: BatchState) -> dict:
        cursor = state["cursor"]
        action = state["actions"][cursor]
        result, contents, mutated = apply_action(
            cursor,
            action,
            fs,
            state["contents"],
            state["mutated"],
        )
        return {
            "results": [result],
            "contents": contents,
            "mutated": mutated,
            "cursor": cursor + 1,
        }

    return apply_row_node


def finish_node(state: BatchState) -> dict:
    """Mark the batch COMPLETED and log a summary."""
    failed = sum(1 for result in state["results"] if not result.success)
    logger.info(f"Batch finished: {len(state['results']) - failed} succeeded, {failed} failed")
    return {"status": BatchStatus.COMPLETED}


def build_graph(fs: FileSystem):
    """Build and compile the batch StateGraph.

    Edge topology:
      START -> start_node
      start_node -> conditional(next_row_or_end) -> {apply_row_node, finish_node}
      apply_row_node -> conditional(next_row_or_end) -> {apply_row_node, finish_node}
      finish_node -> END

    No checkpointer (in-memory state only).

    Args:
        fs: File system the rows are applied to.

    Returns:
        CompiledStateGraph ready to invoke.

    Raises:
        GraphBuildError: If graph construction fails.
    """
    try:
        graph = StateGraph(BatchState)

        graph.add_node("start_node", start_node)
        graph.add_node("apply_row_node", make_apply_row_node(fs))
        graph.add_node("finish_node", finish_node)

        graph.add_edge(START, "start_node")

        routes = {"continue": "apply_row_node", "done": "finish_node"}
        graph.add_conditional_edges("start_node", next_row_or_end, routes)
        graph.add_conditional_edges("apply_row_node", next_row_or_end, routes)

        graph.add_edge("finish_node", END)

        return graph.compile()

    except Exception as exc:
        raise GraphBuildError(f"Failed to build batch graph: {exc}") from exc


def run_batch(
    actions: list[FileAction],
    fs: FileSystem,
    contents: dict[str, str | None] | None = None,
    mutated: dict[str, list[int]] | None = None,
) -> BatchState:
    """Apply actions in order and return the final batch state.

    Args:
        actions: Parsed actions, in application order.
        fs: File system to apply them to.
        contents: Content map carried over from earlier rows, if any.
        mutated: Mutation history carried over from earlier rows, if any.

    Returns:
        Final BatchState with one RowApplyResult per action.

    Raises:
        GraphBuildError: If the graph cannot be built.
    """
    app = build_graph(fs)
    initial = make_initial_state(actions, contents=contents, mutated=mutated)
    return app.invoke(initial, config={"recursion_limit": len(actions) + RECURSION_HEADROOM})

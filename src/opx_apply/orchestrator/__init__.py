"""Apply orchestrator: ordered, partially-failable application of file actions."""

from opx_apply.orchestrator.apply_ops import RowPlan, apply_action, commit_row, plan_row
from opx_apply.orchestrator.exceptions import (
    ApplyError,
    GraphBuildError,
    MissingContentError,
    OccurrenceNotFoundError,
    OrchestratorError,
    SearchNotFoundError,
)
from opx_apply.orchestrator.graph import build_graph, run_batch
from opx_apply.orchestrator.session import ApplySession
from opx_apply.orchestrator.state import BatchState, make_initial_state

__all__ = [
    "ApplyError",
    "ApplySession",
    "BatchState",
    "GraphBuildError",
    "MissingContentError",
    "OccurrenceNotFoundError",
    "OrchestratorError",
    "RowPlan",
    "SearchNotFoundError",
    "apply_action",
    "build_graph",
    "commit_row",
    "make_initial_state",
    "plan_row",
    "run_batch",
]

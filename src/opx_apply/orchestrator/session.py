"""Request-level entry points: preview, apply, and per-row apply/preview.

An ApplySession owns one file system and serializes mutating requests on
it. Row-level calls for the same pasted text share a content map and a
mutation history, so a row that fails because an earlier row already
changed its file is reported as a cascade failure.
"""

from __future__ import annotations

import itertools
import logging
import threading

from opx_apply.analysis import analyze_actions
from opx_apply.filesystem import DiffSink, FileSystem, FileSystemError, OverlayFileSystem
from opx_apply.models import ApplyResponse, BatchStatus, FileAction, RowApplyResult
from opx_apply.orchestrator.apply_ops import apply_action, plan_row
from opx_apply.orchestrator.exceptions import ApplyError
from opx_apply.orchestrator.graph import run_batch
from opx_apply.parsing import parse, preprocess
from opx_apply.utils import UnifiedDiffSink

logger = logging.getLogger(__name__)

BUSY_ERROR = "Another operation is already in progress"
NO_ACTIONS_ERROR = "No valid file actions found in the response"


def _dedupe(messages: list[str]) -> list[str]:
    return list(dict.fromkeys(messages))


class _Prepared:
    """Parsed request text with its lint notes and preview rows."""

    def __init__(self, text: str) -> None:
        pre = preprocess(text)
        self.lint = _dedupe(pre.changes + pre.issues)
        result = parse(pre.text)
        self.actions: list[FileAction] = result.actions
        self.errors: list[str] = result.errors
        self.warnings: list[str] = result.warnings
        self.plan = result.plan
        self.preview = analyze_actions(result.actions, result.errors)


class ApplySession:
    """Serialized preview/apply requests against one file system.

    Args:
        fs: File system that apply requests mutate.
        diff_sink: Receives row previews; defaults to a UnifiedDiffSink.
    """

    def __init__(self, fs: FileSystem, diff_sink: DiffSink | None = None) -> None:
        self.fs = fs
        self.diff_sink = diff_sink if diff_sink is not None else UnifiedDiffSink()
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._current_id = 0
        self._reset_history(None)

    def is_current(self, request_id: int) -> bool:
        """True if request_id belongs to the most recently accepted request."""
        return request_id == self._current_id

    @property
    def row_results(self) -> list[RowApplyResult]:
        """Latest result per row for the current text, in row order."""
        return [self._row_results[index] for index in sorted(self._row_results)]

    def _reset_history(self, text: str | None) -> None:
        self._history_text = text
        self._contents: dict[str, str | None] = {}
        self._mutated: dict[str, list[int]] = {}
        self._row_results: dict[int, RowApplyResult] = {}

    def _run(self, name: str, handler) -> ApplyResponse:
        request_id = next(self._ids)
        if not self._lock.acquire(blocking=False):
            logger.warning(f"Rejected {name} request {request_id}: {BUSY_ERROR}")
            return ApplyResponse(request_id=request_id, success=False, errors=[BUSY_ERROR])
        try:
            self._current_id = request_id
            response = handler()
            response.request_id = request_id
            return response
        except Exception as exc:
            logger.exception(f"{name} request {request_id} aborted")
            return ApplyResponse(
                request_id=request_id,
                success=False,
                status=BatchStatus.ABORTED,
                errors=[f"Unexpected error during {name}: {exc}"],
            )
        finally:
            self._lock.release()

    def preview(self, text: str) -> ApplyResponse:
        """Parse text and dry-run every action on an overlay of the tree."""
        return self._run("preview", lambda: self._preview(text))

    def _preview(self, text: str) -> ApplyResponse:
        prepared = _Prepared(text)
        if not prepared.actions:
            return self._no_actions(prepared)
        state = run_batch(prepared.actions, OverlayFileSystem(self.fs))
        return ApplyResponse(
            success=True,
            status=state["status"],
            results=state["results"],
            errors=prepared.errors + state["errors"],
            lint=prepared.lint,
            preview_data=prepared.preview,
        )

    def apply(self, text: str) -> ApplyResponse:
        """Parse text and apply every action in order to the real tree.

        Starts a new batch: row results from earlier requests are dropped.
        """
        return self._run("apply", lambda: self._apply(text))

    def _apply(self, text: str) -> ApplyResponse:
        prepared = _Prepared(text)
        self._reset_history(text)
        if not prepared.actions:
            return self._no_actions(prepared)
        state = run_batch(prepared.actions, self.fs)
        self._contents = state["contents"]
        self._mutated = state["mutated"]
        self._row_results = {result.row_index: result for result in state["results"]}
        return ApplyResponse(
            success=True,
            status=state["status"],
            results=state["results"],
            errors=prepared.errors + state["errors"],
            lint=prepared.lint,
            preview_data=prepared.preview,
        )

    def apply_row(self, text: str, row_index: int) -> ApplyResponse:
        """Apply only the action at row_index (0-based).

        Calls with the same text share state; a different text starts over.
        """
        return self._run("row apply", lambda: self._apply_row(text, row_index))

    def _apply_row(self, text: str, row_index: int) -> ApplyResponse:
        prepared = _Prepared(text)
        if text != self._history_text:
            self._reset_history(text)
        error = self._check_row(prepared, row_index)
        if error is not None:
            return error

        result, self._contents, self._mutated = apply_action(
            row_index,
            prepared.actions[row_index],
            self.fs,
            self._contents,
            self._mutated,
        )
        self._row_results[row_index] = result
        return ApplyResponse(
            success=result.success,
            status=BatchStatus.COMPLETED,
            results=[result],
            errors=[] if result.success else [result.message],
            lint=prepared.lint,
            preview_data=prepared.preview,
        )

    def preview_row(self, text: str, row_index: int) -> ApplyResponse:
        """Compute the would-be content of one row and send it to the diff sink."""
        return self._run("row preview", lambda: self._preview_row(text, row_index))

    def _preview_row(self, text: str, row_index: int) -> ApplyResponse:
        prepared = _Prepared(text)
        contents = self._contents if text == self._history_text else {}
        error = self._check_row(prepared, row_index)
        if error is not None:
            return error

        action = prepared.actions[row_index]
        try:
            plan = plan_row(action, self.fs, contents)
        except (ApplyError, FileSystemError) as exc:
            result = RowApplyResult(
                row_index=row_index,
                path=action.path,
                action=action.action,
                success=False,
                message=str(exc),
                new_path=action.new_path,
            )
            return ApplyResponse(
                success=False,
                status=BatchStatus.COMPLETED,
                results=[result],
                errors=[result.message],
                lint=prepared.lint,
                preview_data=prepared.preview,
            )

        self.diff_sink.show(
            action.path, plan.original or "", plan.modified or "", new_path=action.new_path
        )
        result = RowApplyResult(
            row_index=row_index,
            path=action.path,
            action=action.action,
            success=True,
            message=plan.message,
            new_path=action.new_path,
        )
        return ApplyResponse(
            success=True,
            status=BatchStatus.COMPLETED,
            results=[result],
            lint=prepared.lint,
            preview_data=prepared.preview,
        )

    def _no_actions(self, prepared: _Prepared) -> ApplyResponse:
        return ApplyResponse(
            success=False,
            status=BatchStatus.COMPLETED,
            errors=prepared.errors or [NO_ACTIONS_ERROR],
            lint=prepared.lint,
            preview_data=prepared.preview,
        )

    def _check_row(self, prepared: _Prepared, row_index: int) -> ApplyResponse | None:
        if not prepared.actions:
            return self._no_actions(prepared)
        if not 0 <= row_index < len(prepared.actions):
            return ApplyResponse(
                success=False,
                status=BatchStatus.COMPLETED,
                errors=[f"Row index {row_index} out of range (0-{len(prepared.actions) - 1})"],
                lint=prepared.lint,
                preview_data=prepared.preview,
            )
        return None

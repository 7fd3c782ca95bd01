"""Data models for opx-apply."""

from opx_apply.models.action_models import (
    OPX_OP_MAP,
    ActionType,
    ChangeBlock,
    FileAction,
    Occurrence,
)
from opx_apply.models.apply_models import ApplyResponse, BatchStatus, RowApplyResult
from opx_apply.models.parse_models import (
    MaskedBlock,
    MaskResult,
    NormalizeResult,
    ParseResult,
    PreprocessResult,
)
from opx_apply.models.preview_models import ChangeSummary, PreviewData, PreviewTableRow

__all__ = [
    "OPX_OP_MAP",
    "ActionType",
    "ApplyResponse",
    "BatchStatus",
    "ChangeBlock",
    "ChangeSummary",
    "FileAction",
    "MaskResult",
    "MaskedBlock",
    "NormalizeResult",
    "Occurrence",
    "ParseResult",
    "PreprocessResult",
    "PreviewData",
    "PreviewTableRow",
    "RowApplyResult",
]

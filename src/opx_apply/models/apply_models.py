"""Models for applying actions and reporting per-row outcomes."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from opx_apply.models.action_models import ActionType
from opx_apply.models.preview_models import PreviewData


class BatchStatus(str, Enum):
    """Lifecycle of one batch walk."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class RowApplyResult(BaseModel):
    """Outcome of applying one file action."""

    model_config = ConfigDict(frozen=False)

    row_index: int  # 0-based position in the parsed action list
    path: str
    action: ActionType
    success: bool
    message: str
    new_path: str | None = None
    is_cascade_failure: bool = False  # An earlier row already changed this file


class ApplyResponse(BaseModel):
    """What a preview/apply/row-apply request returns to its caller."""

    model_config = ConfigDict(frozen=False)

    request_id: int = 0
    success: bool
    status: BatchStatus = BatchStatus.PENDING
    results: list[RowApplyResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    lint: list[str] = Field(default_factory=list)  # Normalization notes + lint issues
    preview_data: PreviewData | None = None

"""Preview models derived from parsed actions."""

from pydantic import BaseModel, ConfigDict, Field

from opx_apply.models.action_models import ActionType, ChangeBlock


class ChangeSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    added: int = Field(default=0, ge=0)
    removed: int = Field(default=0, ge=0)


class PreviewTableRow(BaseModel):
    """One previewable row per file action."""

    model_config = ConfigDict(frozen=False)

    path: str
    action: ActionType
    description: str
    changes: ChangeSummary = Field(default_factory=ChangeSummary)
    new_path: str | None = None
    has_error: bool = False
    error_message: str | None = None
    warnings: list[str] = Field(default_factory=list)
    change_blocks: list[ChangeBlock] = Field(default_factory=list)


class PreviewData(BaseModel):
    model_config = ConfigDict(frozen=False)

    rows: list[PreviewTableRow] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

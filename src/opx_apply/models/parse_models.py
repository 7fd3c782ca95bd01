"""Result models for the masking, preprocessing and parsing stages."""

from pydantic import BaseModel, ConfigDict, Field

from opx_apply.models.action_models import FileAction


class MaskedBlock(BaseModel):
    """A content-bearing element lifted out of the text before normalization."""

    model_config = ConfigDict(frozen=True)

    tag: str  # Tag name as written, e.g. "put" or "FIND"
    attrs: str = ""  # Raw attribute text of the opening tag, leading space included
    inner: str  # Verbatim payload between the opening and closing tags


class MaskResult(BaseModel):
    """Masked text plus the blocks needed to restore it."""

    model_config = ConfigDict(frozen=True)

    masked: str
    blocks: list[MaskedBlock] = Field(default_factory=list)
    prefix: str  # Placeholder prefix, guaranteed absent from the input


class NormalizeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    changes: list[str] = Field(default_factory=list)


class PreprocessResult(BaseModel):
    """Normalized, payload-preserving text intended to be re-parsed."""

    model_config = ConfigDict(frozen=True)

    text: str
    changes: list[str] = Field(default_factory=list)  # What normalization did
    issues: list[str] = Field(default_factory=list)  # Lint diagnostics


class ParseResult(BaseModel):
    """Actions extracted from a response, with diagnostics as data."""

    model_config = ConfigDict(frozen=True)

    plan: str | None = None
    actions: list[FileAction] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

"""Models for parsed file actions and their change blocks."""

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class ActionType(str, Enum):
    """Kind of file-level operation described by an edit."""

    CREATE = "create"
    REWRITE = "rewrite"
    MODIFY = "modify"
    DELETE = "delete"
    RENAME = "rename"


# OPX op names -> action kinds
OPX_OP_MAP: dict[str, ActionType] = {
    "new": ActionType.CREATE,
    "replace": ActionType.REWRITE,
    "patch": ActionType.MODIFY,
    "remove": ActionType.DELETE,
    "move": ActionType.RENAME,
}

Occurrence = Union[Literal["first", "last"], int]


class ChangeBlock(BaseModel):
    """One edit unit within a file action."""

    model_config = ConfigDict(frozen=True)

    description: str | None = None  # None when the edit gave no <why>/<description>
    search: str | None = None  # Only consulted for modify
    content: str = ""  # Empty string is distinct from an absent search
    occurrence: Occurrence | None = None  # first | last | 1-indexed N
    warnings: list[str] = Field(default_factory=list)  # Degraded payload notes


class FileAction(BaseModel):
    """One file-level operation with its ordered change blocks."""

    model_config = ConfigDict(frozen=True)

    path: str
    action: ActionType
    new_path: str | None = None  # Required iff action == rename
    root: str | None = None  # Workspace root name for multi-root workspaces
    changes: list[ChangeBlock] = Field(default_factory=list)

"""Runtime settings read from the environment."""

import logging
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

ROOTS_ENV = "OPX_WORKSPACE_ROOTS"
LOG_LEVEL_ENV = "OPX_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


class ApplySettings(BaseModel):
    """Workspace roots and logging level for the CLI."""

    model_config = ConfigDict(frozen=True)

    workspace_roots: dict[str, str] = Field(default_factory=dict)  # name -> absolute path
    log_level: str = DEFAULT_LOG_LEVEL

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


def parse_roots(raw: str | None) -> dict[str, str]:
    """Parse "name=path" or bare "path" entries separated by os.pathsep.

    A bare path is named after its last directory component. Empty
    entries are skipped; with no entries the current directory is used.
    """
    roots: dict[str, str] = {}
    for entry in (raw or "").split(os.pathsep):
        entry = entry.strip()
        if not entry:
            continue
        name, sep, path = entry.partition("=")
        if not sep:
            path = entry
            name = Path(entry).expanduser().resolve().name or entry
        roots[name.strip()] = str(Path(path.strip()).expanduser().resolve())
    if not roots:
        cwd = Path.cwd()
        roots[cwd.name or str(cwd)] = str(cwd)
    return roots


def load_settings(environ: dict[str, str] | None = None) -> ApplySettings:
    """Build settings from environment variables.

    Args:
        environ: Mapping to read instead of os.environ.

    Raises:
        pydantic.ValidationError: If a value is invalid.
    """
    env = os.environ if environ is None else environ
    return ApplySettings(
        workspace_roots=parse_roots(env.get(ROOTS_ENV)),
        log_level=env.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL),
    )

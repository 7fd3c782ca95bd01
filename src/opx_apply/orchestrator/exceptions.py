"""Exceptions for orchestrator operations.

Row handlers raise ApplyError subclasses; the batch graph turns them into
failed row results instead of letting them escape.
"""


class OrchestratorError(Exception):
    """Base exception for all orchestrator operations."""


class GraphBuildError(OrchestratorError):
    """Raised when graph construction fails."""


class ApplyError(OrchestratorError):
    """Raised when a single file action cannot be applied."""


class SearchNotFoundError(ApplyError):
    """Raised when no search block of a modify action could be located."""


class OccurrenceNotFoundError(SearchNotFoundError):
    """Raised when the requested Nth occurrence of a search block is missing."""


class MissingContentError(ApplyError):
    """Raised when an action carries no content or changes to apply."""

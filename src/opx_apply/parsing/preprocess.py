"""Safe pre-processing of pasted responses: mask, normalize, lint, restore."""

from opx_apply.models.parse_models import PreprocessResult
from opx_apply.parsing.linter import lint
from opx_apply.parsing.masker import mask, restore
from opx_apply.parsing.normalizer import normalize


def preprocess(text: str) -> PreprocessResult:
    """Normalize attribute zones without touching payloads.

    Returns:
        PreprocessResult whose text is ready to be parsed, with the
        normalization notes and the lint issues found after normalizing.
    """
    masked = mask(text)
    normalized = normalize(masked.masked)
    issues = lint(normalized.text)
    restored = restore(normalized.text, masked.blocks, masked.prefix)
    return PreprocessResult(text=restored, changes=normalized.changes, issues=issues)


def lint_text(text: str) -> list[str]:
    """Live lint for partially typed input; never mutates or raises."""
    try:
        masked = mask(text)
        return lint(normalize(masked.masked).text)
    except Exception as exc:
        return [f"Lint failed: {exc}"]

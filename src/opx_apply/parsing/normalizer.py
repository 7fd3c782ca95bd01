"""Attribute normalization for masked response text.

Only recognized tag shapes are rewritten; everything else, including the
payload placeholders, passes through untouched.
"""

import re

from opx_apply.models.parse_models import NormalizeResult

CURLY_QUOTES_NOTE = "Replaced curly quotes with ASCII quotes"

_DOUBLE_CURLY = re.compile("[“”]")
_SINGLE_CURLY = re.compile("[‘’]")

_SINGLE_QUOTED_ATTR = re.compile(r"([\w-]+)\s*=\s*'([^']*)'")
_DOUBLE_QUOTED_ATTR = re.compile(r'(\b[\w-]+)(\s*=\s*"[^"]*")')

# (label, opening-tag pattern) in the order notes are emitted
TAG_ZONES: list[tuple[str, re.Pattern[str]]] = [
    ("<edit>", re.compile(r"<\s*edit\b[^<>]*>", re.IGNORECASE)),
    ("<to/>", re.compile(r"<\s*to\b[^<>]*/\s*>", re.IGNORECASE)),
    ("<file>", re.compile(r"<\s*file\b[^<>]*>", re.IGNORECASE)),
    ("<new/>", re.compile(r"<\s*new\b[^<>]*/\s*>", re.IGNORECASE)),
]


def normalize_curly_quotes(text: str) -> tuple[str, bool]:
    out = _DOUBLE_CURLY.sub('"', text)
    out = _SINGLE_CURLY.sub("'", out)
    return out, out != text


def normalize_tag_attributes(tag: str) -> tuple[str, bool]:
    """Double-quote single-quoted values and lowercase keys inside one tag."""
    out = _SINGLE_QUOTED_ATTR.sub(lambda m: f'{m.group(1)}="{m.group(2)}"', tag)
    out = _DOUBLE_QUOTED_ATTR.sub(lambda m: m.group(1).lower() + m.group(2), out)
    return out, out != tag


def normalize(masked: str) -> NormalizeResult:
    """Normalize quotes and attribute spelling in masked text.

    Tag names keep their casing. One note is emitted per tag kind that
    actually changed, so re-normalizing normalized text reports nothing.
    """
    changes: list[str] = []

    out, curly_changed = normalize_curly_quotes(masked)
    if curly_changed:
        changes.append(CURLY_QUOTES_NOTE)

    for label, pattern in TAG_ZONES:
        changed_any = False

        def _fix(match: re.Match[str]) -> str:
            nonlocal changed_any
            fixed, changed = normalize_tag_attributes(match.group(0))
            changed_any = changed_any or changed
            return fixed

        out = pattern.sub(_fix, out)
        if changed_any:
            changes.append(
                f"Normalized {label} attributes: single → double quotes, lowercased keys"
            )

    return NormalizeResult(text=out, changes=changes)

"""Read-only structural lint over masked, normalized text."""

import re

ATTR_EXCERPT_LENGTH = 120

_EDIT_OPEN = re.compile(r"<\s*edit\b([^<>]*)>", re.IGNORECASE)
_FILE_OPEN = re.compile(r"<\s*file\b([^<>]*)>", re.IGNORECASE)
_ATTR = re.compile(r"""([\w-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")


def parse_attributes(attr_text: str) -> dict[str, str]:
    """Parse key="value" / key='value' pairs; keys are lowercased.

    Later duplicates win. Anything that is not a quoted pair is ignored.
    """
    attrs: dict[str, str] = {}
    for match in _ATTR.finditer(attr_text):
        value = match.group(2) if match.group(2) is not None else (match.group(3) or "")
        attrs[match.group(1).lower()] = value
    return attrs


def _lint_tags(
    text: str,
    pattern: re.Pattern[str],
    label: str,
    required: tuple[str, str],
) -> list[str]:
    issues: list[str] = []
    for idx, match in enumerate(pattern.finditer(text), 1):
        attr_text = match.group(1) or ""
        attrs = parse_attributes(attr_text)
        missing = [key for key in required if not attrs.get(key)]
        if missing:
            excerpt = attr_text.strip().rstrip("/").strip()[:ATTR_EXCERPT_LENGTH]
            issues.append(f'{label} #{idx}: missing {" and ".join(missing)} (attrs="{excerpt}")')
    return issues


def lint(masked: str) -> list[str]:
    """Report edit tags that lack their required attributes.

    Each <edit> needs file and op; each <file> needs path and action.
    Occurrences are numbered from 1 per tag kind. Nested structure
    (<find>, <put>, <to/>) is left to the parser.
    """
    issues = _lint_tags(masked, _EDIT_OPEN, "Edit", ("file", "op"))
    issues.extend(_lint_tags(masked, _FILE_OPEN, "File", ("path", "action")))
    return issues

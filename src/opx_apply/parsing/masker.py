"""Payload masking: lift literal content blocks out of the markup.

Downstream text transforms (quote normalization, attribute rewriting,
linting, tokenizing) run on the masked text, so nothing they do can reach
code inside <put>, <find>, <content> or <search>.
"""

import re

from opx_apply.models.parse_models import MaskedBlock, MaskResult

CONTENT_TAGS = ("put", "find", "content", "search")

PLACEHOLDER_BASE = "__OPX_BLOCK"

_OPEN_CONTENT_TAG = re.compile(
    r"<\s*(put|find|content|search)\b([^<>]*)>",
    re.IGNORECASE,
)


def _closing_tag_pattern(tag: str) -> re.Pattern[str]:
    return re.compile(r"<\s*/\s*" + re.escape(tag) + r"\s*>", re.IGNORECASE)


_CLOSERS: dict[str, re.Pattern[str]] = {tag: _closing_tag_pattern(tag) for tag in CONTENT_TAGS}


def choose_prefix(text: str) -> str:
    """Return a placeholder prefix that does not occur anywhere in text."""
    prefix = f"{PLACEHOLDER_BASE}_"
    counter = 0
    while prefix in text:
        counter += 1
        prefix = f"{PLACEHOLDER_BASE}{counter}_"
    return prefix


def placeholder_pattern(prefix: str) -> re.Pattern[str]:
    """Regex matching placeholders produced with prefix; groups: tag, index."""
    return re.compile(re.escape(prefix) + r"(put|find|content|search)_(\d+)__")


def mask(text: str) -> MaskResult:
    """Replace every well-formed content element with a placeholder.

    An opening tag is paired with the nearest following closing tag of the
    same name. Openers without a closer, and self-closing content tags,
    stay in the text untouched so the parser can report them.

    Args:
        text: Raw response text.

    Returns:
        MaskResult with the masked text, the lifted blocks (index order),
        and the placeholder prefix used.
    """
    prefix = choose_prefix(text)
    blocks: list[MaskedBlock] = []
    pieces: list[str] = []
    pos = 0
    scan_from = 0

    while True:
        opening = _OPEN_CONTENT_TAG.search(text, scan_from)
        if opening is None:
            break

        raw_tag, attrs = opening.group(1), opening.group(2)
        if attrs.rstrip().endswith("/"):
            # <put/> has no body to protect
            scan_from = opening.end()
            continue

        closing = _CLOSERS[raw_tag.lower()].search(text, opening.end())
        if closing is None:
            scan_from = opening.end()
            continue

        index = len(blocks)
        blocks.append(
            MaskedBlock(
                tag=raw_tag,
                attrs=attrs,
                inner=text[opening.end():closing.start()],
            )
        )
        pieces.append(text[pos:opening.start()])
        pieces.append(f"{prefix}{raw_tag.lower()}_{index}__")
        pos = closing.end()
        scan_from = closing.end()

    pieces.append(text[pos:])
    return MaskResult(masked="".join(pieces), blocks=blocks, prefix=prefix)


def restore(text: str, blocks: list[MaskedBlock], prefix: str) -> str:
    """Put the original content elements back in place of their placeholders.

    Placeholders whose index has no stored block are left as they are.
    """
    def _replace(match: re.Match[str]) -> str:
        idx = int(match.group(2))
        if idx >= len(blocks):
            return match.group(0)
        block = blocks[idx]
        return f"<{block.tag}{block.attrs}>{block.inner}</{block.tag}>"

    return placeholder_pattern(prefix).sub(_replace, text)


def unmask(result: MaskResult, text: str | None = None) -> str:
    """Restore either the masked text itself or a transformed copy of it."""
    return restore(result.masked if text is None else text, result.blocks, result.prefix)

"""Action parser: turn a pasted response into ordered FileActions.

Both dialects are accepted:
- OPX:      <edit file=".." op="new|patch|replace|remove|move"> with <why>,
            <find occurrence="..">, <put>, <to file=".."/>
- explicit: <file path=".." action="create|rewrite|modify|delete|rename">
            with <change>, <description>, <search>, <content>, <new path=".."/>

Parsing never raises. Structural problems are collected as error strings
and do not stop extraction of later, independent edits.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterator

from opx_apply.models.action_models import OPX_OP_MAP, ActionType, ChangeBlock, FileAction, Occurrence
from opx_apply.models.parse_models import MaskedBlock, MaskResult, ParseResult
from opx_apply.parsing.linter import parse_attributes
from opx_apply.parsing.literals import extract_literal
from opx_apply.parsing.masker import mask, restore
from opx_apply.parsing.scanner import Element, Payload, build_tree, walk

logger = logging.getLogger(__name__)

EMPTY_INPUT_ERROR = "Response text is empty"
NO_EDITS_ERROR = "No <edit> or <file> elements recognized"

_ACTION_NAMES = {action.value: action for action in ActionType}
_FENCE_OPEN = re.compile(r"^```[\w-]*[ \t]*\r?\n?")
_FENCE_CLOSE = re.compile(r"\r?\n?```\s*$")


@dataclass
class ParsedEdit:
    """One file-level element and what came out of it."""

    ordinal: int  # 1-indexed position among file-level elements
    action: FileAction | None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def sanitize_response(raw: str) -> str:
    """Strip a code fence wrapped around the whole response."""
    text = raw.strip()
    if text.startswith("```"):
        text = _FENCE_OPEN.sub("", text, count=1)
    if text.endswith("```"):
        text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def parse_occurrence(raw: str | None) -> Occurrence | None:
    """Parse first|last|N (N >= 1); anything else is ignored."""
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in ("first", "last"):
        return value
    if value.isdigit() and int(value) > 0:
        return int(value)
    return None


class _Document:
    """Masked response plus helpers for reading element text back out."""

    def __init__(self, masked: MaskResult) -> None:
        self.masked = masked
        self.nodes, self.notes = build_tree(masked.masked, masked.prefix)

    def block(self, payload: Payload) -> MaskedBlock | None:
        if 0 <= payload.index < len(self.masked.blocks):
            return self.masked.blocks[payload.index]
        return None

    def inner_text(self, element: Element) -> str:
        raw = self.masked.masked[element.inner_start:element.inner_end]
        return restore(raw, self.masked.blocks, self.masked.prefix)

    def plan(self) -> str | None:
        for element in walk(self.nodes, frozenset({"plan"})):
            if element.terminated:
                text = self.inner_text(element).strip()
                return text or None
        return None

    def file_level_elements(self) -> Iterator[Element]:
        return walk(self.nodes, frozenset({"edit", "file"}))


def _description(doc: _Document, element: Element, tag: str) -> str | None:
    child = element.first(tag)
    if child is None:
        return None
    text = doc.inner_text(child).strip()
    return text or None


def _unterminated_content_errors(element: Element, label: str) -> list[str]:
    return [
        f"Unterminated <{child.name}> in {label}"
        for child in element.elements()
        if child.name in ("put", "find", "content", "search")
    ]


def _parse_edit(doc: _Document, element: Element, ordinal: int) -> ParsedEdit:
    result = ParsedEdit(ordinal=ordinal, action=None)
    attrs = element.attrs
    path = (attrs.get("file") or "").strip()
    op = (attrs.get("op") or "").strip()

    if not path or not op:
        missing = " and ".join(name for name, value in (("file", path), ("op", op)) if not value)
        result.errors.append(f"Edit #{ordinal}: missing required attribute {missing}")
        return result

    action_type = OPX_OP_MAP.get(op.lower()) or _ACTION_NAMES.get(op.lower())
    if action_type is None:
        result.errors.append(f"Edit #{ordinal}: unknown op '{op}' for '{path}'")
        return result

    if not element.terminated:
        result.errors.append(f"Edit #{ordinal}: unterminated <edit> for '{path}'")
        return result

    label = f"edit for '{path}'"
    result.errors.extend(_unterminated_content_errors(element, label))
    description = _description(doc, element, "why")
    new_path: str | None = None
    changes: list[ChangeBlock] = []

    if action_type == ActionType.RENAME:
        target = element.first("to")
        new_path = (target.attrs.get("file") or "").strip() if target is not None else ""
        if not new_path:
            new_path = None
            result.errors.append(f'Missing <to file="..."/> for move of \'{path}\'')

    elif action_type in (ActionType.CREATE, ActionType.REWRITE):
        for payload in element.payloads():
            block = doc.block(payload)
            if block is None or block.tag.lower() != "put":
                continue
            content, warning = extract_literal(block.inner)
            changes.append(_change(description, content=content, warning=warning, path=path))
        if not changes:
            result.errors.append(f"Missing <put> for {op} of '{path}'")

    elif action_type == ActionType.MODIFY:
        changes = _pair_find_put(doc, element, description, path, result.errors)

    for change in changes:
        result.warnings.extend(change.warnings)

    result.action = FileAction(
        path=path,
        action=action_type,
        new_path=new_path,
        root=(attrs.get("root") or None),
        changes=changes,
    )
    return result


def _change(
    description: str | None,
    content: str,
    warning: str | None,
    path: str,
    search: str | None = None,
    occurrence: Occurrence | None = None,
    search_warning: str | None = None,
) -> ChangeBlock:
    warnings = [
        f"{note} in '{path}'; payload treated as empty"
        for note in (search_warning, warning)
        if note
    ]
    return ChangeBlock(
        description=description,
        search=search,
        content=content,
        occurrence=occurrence,
        warnings=warnings,
    )


def _pair_find_put(
    doc: _Document,
    element: Element,
    description: str | None,
    path: str,
    errors: list[str],
) -> list[ChangeBlock]:
    changes: list[ChangeBlock] = []
    pending: tuple[str, str | None, Occurrence | None] | None = None
    saw_any = False

    for payload in element.payloads():
        block = doc.block(payload)
        if block is None:
            continue
        kind = block.tag.lower()
        if kind not in ("find", "put"):
            continue
        saw_any = True
        text, warning = extract_literal(block.inner)

        if kind == "find":
            if pending is not None:
                errors.append(f"Missing <put> after <find> in patch of '{path}'")
            occurrence = parse_occurrence(parse_attributes(block.attrs).get("occurrence"))
            pending = (text, warning, occurrence)
            continue

        if pending is None:
            errors.append(f"<put> without preceding <find> in patch of '{path}'")
            continue

        search, search_warning, occurrence = pending
        pending = None
        if not search.strip():
            errors.append(f"Empty or missing marker block in <find> for '{path}'")
            search = None
        changes.append(
            _change(
                description,
                content=text,
                warning=warning,
                path=path,
                search=search,
                occurrence=occurrence,
                search_warning=search_warning,
            )
        )

    if pending is not None:
        errors.append(f"Missing <put> after <find> in patch of '{path}'")
    if not saw_any:
        errors.append(f"Missing <find>/<put> for patch of '{path}'")
    return changes


def _parse_file(doc: _Document, element: Element, ordinal: int) -> ParsedEdit:
    result = ParsedEdit(ordinal=ordinal, action=None)
    attrs = element.attrs
    path = (attrs.get("path") or "").strip()
    action_name = (attrs.get("action") or "").strip()

    if not path or not action_name:
        result.errors.append(f"File #{ordinal}: missing required attribute path or action")
        return result

    action_type = _ACTION_NAMES.get(action_name.lower()) or OPX_OP_MAP.get(action_name.lower())
    if action_type is None:
        result.errors.append(f"File #{ordinal}: unknown action '{action_name}' for '{path}'")
        return result

    if not element.terminated:
        result.errors.append(f"File #{ordinal}: unterminated <file> for '{path}'")
        return result

    new_path: str | None = None
    changes: list[ChangeBlock] = []

    if action_type == ActionType.RENAME:
        target = element.first("new")
        new_path = (target.attrs.get("path") or "").strip() if target is not None else ""
        if not new_path:
            new_path = None
            result.errors.append(f"Missing <new> element for rename action on: {path}")
    elif action_type != ActionType.DELETE:
        for change_el in element.elements("change"):
            change = _parse_change(doc, change_el, action_type, path, result.errors)
            if change is not None:
                changes.append(change)
        if not changes:
            result.errors.append(f"No <change> blocks for {action_type.value} of '{path}'")

    for change in changes:
        result.warnings.extend(change.warnings)

    result.action = FileAction(
        path=path,
        action=action_type,
        new_path=new_path,
        root=(attrs.get("root") or None),
        changes=changes,
    )
    return result


def _parse_change(
    doc: _Document,
    element: Element,
    action_type: ActionType,
    path: str,
    errors: list[str],
) -> ChangeBlock | None:
    if not element.terminated:
        errors.append(f"Unterminated <change> in file '{path}'")
        return None
    errors.extend(_unterminated_content_errors(element, f"change for '{path}'"))

    description = _description(doc, element, "description")

    # First <content> and first <search> payload win
    literals: dict[str, tuple[str, str | None]] = {}
    for payload in element.payloads():
        block = doc.block(payload)
        if block is not None and block.tag.lower() not in literals:
            literals[block.tag.lower()] = extract_literal(block.inner, allow_legacy=True)

    content, content_warning = literals.get("content", (None, None))
    if content is None:
        errors.append(f"Missing <content> in change for '{path}'")
        content = ""

    search: str | None = None
    search_warning: str | None = None
    occurrence: Occurrence | None = None
    if action_type == ActionType.MODIFY:
        search, search_warning = literals.get("search", (None, None))
        if not search or not search.strip():
            errors.append(f"Empty or missing <search> block for '{path}'")
            search = None
        occurrence_el = element.first("occurrence")
        if occurrence_el is not None:
            occurrence = parse_occurrence(doc.inner_text(occurrence_el))

    return _change(
        description,
        content=content,
        warning=content_warning,
        path=path,
        search=search,
        occurrence=occurrence,
        search_warning=search_warning,
    )


def iter_actions(text: str) -> Iterator[ParsedEdit]:
    """Yield one ParsedEdit per file-level element, in source order.

    Each call rescans the text, so the sequence can be restarted freely.
    """
    return _iter_document(_Document(mask(sanitize_response(text))))


def _iter_document(doc: _Document) -> Iterator[ParsedEdit]:
    ordinals = {"edit": 0, "file": 0}
    for element in doc.file_level_elements():
        ordinals[element.name] += 1
        if element.name == "edit":
            yield _parse_edit(doc, element, ordinals["edit"])
        else:
            yield _parse_file(doc, element, ordinals["file"])


def parse(text: str) -> ParseResult:
    """Parse a response into actions, a plan, errors and warnings."""
    if not text or not text.strip():
        return ParseResult(errors=[EMPTY_INPUT_ERROR])

    try:
        doc = _Document(mask(sanitize_response(text)))
        actions: list[FileAction] = []
        errors: list[str] = []
        warnings: list[str] = []
        seen = 0
        for parsed in _iter_document(doc):
            seen += 1
            errors.extend(parsed.errors)
            warnings.extend(parsed.warnings)
            if parsed.action is not None:
                actions.append(parsed.action)

        if seen == 0:
            errors.append(NO_EDITS_ERROR)

        plan = doc.plan()
    except Exception as exc:
        logger.exception("Response parsing failed")
        return ParseResult(errors=[f"Failed to parse response: {exc}"])

    logger.info(f"Parsed {len(actions)} action(s) with {len(errors)} error(s)")
    return ParseResult(plan=plan, actions=actions, errors=errors, warnings=warnings)

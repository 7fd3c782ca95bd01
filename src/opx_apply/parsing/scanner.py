"""Tokenizer and recursive-descent tree builder for masked response text.

The scanner only recognizes the tag names of the two edit dialects; any
other angle-bracket text stays plain text. Payload placeholders left by
the masker become their own token kind, so literal code never reaches the
tree as markup.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, Union

from opx_apply.parsing.linter import parse_attributes

KNOWN_TAGS = frozenset({
    "opx", "edit", "why", "find", "put", "to",
    "file", "change", "description", "search", "content", "new", "occurrence",
    "plan",
})

# Elements that describe one file-level operation; they never nest.
FILE_LEVEL_TAGS = frozenset({"edit", "file"})

MAX_DEPTH = 64

TEXT = "text"
OPEN = "open"
CLOSE = "close"
PAYLOAD = "payload"


@dataclass(frozen=True)
class Token:
    kind: str
    start: int
    end: int
    name: str = ""  # Lowercased tag name for OPEN/CLOSE
    attr_text: str = ""
    self_closing: bool = False
    index: int = -1  # Block index for PAYLOAD


@dataclass
class Payload:
    index: int
    start: int
    end: int


@dataclass
class Text:
    value: str
    start: int
    end: int


@dataclass
class Element:
    name: str
    attr_text: str
    start: int
    inner_start: int
    inner_end: int = -1
    end: int = -1
    self_closing: bool = False
    terminated: bool = False
    children: list[Node] = field(default_factory=list)

    @property
    def attrs(self) -> dict[str, str]:
        return parse_attributes(self.attr_text)

    def elements(self, name: str | None = None) -> list[Element]:
        """Direct child elements, optionally filtered by name."""
        return [
            child for child in self.children
            if isinstance(child, Element) and (name is None or child.name == name)
        ]

    def first(self, name: str) -> Element | None:
        for child in self.children:
            if isinstance(child, Element) and child.name == name:
                return child
        return None

    def payloads(self) -> list[Payload]:
        return [child for child in self.children if isinstance(child, Payload)]


Node = Union[Element, Text, Payload]


def _token_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(
        r"(?P<ph>" + re.escape(prefix) + r"(?:put|find|content|search)_(?P<idx>\d+)__)"
        r"|(?P<tag><\s*(?P<close>/)?\s*(?P<name>[A-Za-z][\w-]*)"
        r"(?P<attrs>[^<>]*?)(?P<selfclose>/)?\s*>)"
    )


def tokenize(masked: str, prefix: str) -> list[Token]:
    """Split masked text into tag, payload and text tokens.

    Adjacent plain text is merged into a single TEXT token.
    """
    tokens: list[Token] = []
    text_start: int | None = None

    def _flush(upto: int) -> None:
        nonlocal text_start
        if text_start is not None and upto > text_start:
            tokens.append(Token(TEXT, text_start, upto))
        text_start = None

    pos = 0
    for match in _token_pattern(prefix).finditer(masked):
        if match.start() > pos and text_start is None:
            text_start = pos

        if match.group("ph"):
            _flush(match.start())
            tokens.append(Token(PAYLOAD, match.start(), match.end(), index=int(match.group("idx"))))
        else:
            name = match.group("name").lower()
            if name not in KNOWN_TAGS:
                if text_start is None:
                    text_start = match.start()
                pos = match.end()
                continue
            _flush(match.start())
            is_close = bool(match.group("close"))
            tokens.append(
                Token(
                    CLOSE if is_close else OPEN,
                    match.start(),
                    match.end(),
                    name=name,
                    attr_text=match.group("attrs") or "",
                    self_closing=bool(match.group("selfclose")) and not is_close,
                )
            )
        pos = match.end()

    if pos < len(masked) and text_start is None:
        text_start = pos
    _flush(len(masked))
    return tokens


class TreeBuilder:
    """Recursive-descent builder turning tokens into an element forest.

    Recovery rules for malformed input:
    - a closing tag that matches an enclosing element closes every element
      opened since, leaving them unterminated;
    - a closing tag matching nothing open is dropped and noted;
    - an <edit>/<file> opening while another one is open ends the open one
      unterminated;
    - anything still open at end of input is unterminated.
    """

    def __init__(self, masked: str, tokens: list[Token]) -> None:
        self._masked = masked
        self._tokens = tokens
        self._pos = 0
        self._open: list[str] = []
        self.notes: list[str] = []

    def build(self) -> list[Node]:
        self._pos = 0
        self._open = []
        self.notes = []
        # Nothing is open at the top level, so this runs to the last token
        return self._parse_nodes(depth=0)

    def _parse_nodes(self, depth: int) -> list[Node]:
        nodes: list[Node] = []
        while self._pos < len(self._tokens):
            tok = self._tokens[self._pos]

            if tok.kind == CLOSE:
                if tok.name in self._open:
                    return nodes
                self.notes.append(f"Ignored stray </{tok.name}> at offset {tok.start}")
                self._pos += 1
                continue

            if tok.kind == OPEN:
                if tok.name in FILE_LEVEL_TAGS and any(n in FILE_LEVEL_TAGS for n in self._open):
                    return nodes
                if depth >= MAX_DEPTH:
                    nodes.append(Text(self._masked[tok.start:tok.end], tok.start, tok.end))
                    self._pos += 1
                    continue
                nodes.append(self._parse_element(tok, depth))
                continue

            if tok.kind == PAYLOAD:
                nodes.append(Payload(tok.index, tok.start, tok.end))
            else:
                nodes.append(Text(self._masked[tok.start:tok.end], tok.start, tok.end))
            self._pos += 1
        return nodes

    def _parse_element(self, tok: Token, depth: int) -> Element:
        self._pos += 1
        element = Element(
            name=tok.name,
            attr_text=tok.attr_text,
            start=tok.start,
            inner_start=tok.end,
            self_closing=tok.self_closing,
        )
        if tok.self_closing:
            element.inner_end = tok.end
            element.end = tok.end
            element.terminated = True
            return element

        self._open.append(tok.name)
        element.children = self._parse_nodes(depth + 1)
        self._open.pop()

        if self._pos < len(self._tokens):
            nxt = self._tokens[self._pos]
            if nxt.kind == CLOSE and nxt.name == tok.name:
                element.inner_end = nxt.start
                element.end = nxt.end
                element.terminated = True
                self._pos += 1
                return element
            element.inner_end = element.end = nxt.start
        else:
            element.inner_end = element.end = len(self._masked)
        return element


def build_tree(masked: str, prefix: str) -> tuple[list[Node], list[str]]:
    """Tokenize masked text and build its element forest.

    Returns:
        (top-level nodes, recovery notes)
    """
    builder = TreeBuilder(masked, tokenize(masked, prefix))
    return builder.build(), builder.notes


def walk(nodes: list[Node], names: frozenset[str]) -> Iterator[Element]:
    """Yield elements whose name is in names, in document order.

    Matching elements are not descended into.
    """
    stack: list[Iterator[Node]] = [iter(nodes)]
    while stack:
        node = next(stack[-1], None)
        if node is None:
            stack.pop()
            continue
        if not isinstance(node, Element):
            continue
        if node.name in names:
            yield node
            continue
        stack.append(iter(node.children))

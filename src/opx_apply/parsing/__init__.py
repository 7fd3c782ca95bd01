"""Parsing pipeline: mask, normalize, lint, and parse pasted responses."""

from opx_apply.parsing.linter import lint, parse_attributes
from opx_apply.parsing.literals import extract_literal
from opx_apply.parsing.masker import mask, restore, unmask
from opx_apply.parsing.normalizer import normalize
from opx_apply.parsing.parser import ParsedEdit, iter_actions, parse, sanitize_response
from opx_apply.parsing.preprocess import lint_text, preprocess

__all__ = [
    "ParsedEdit",
    "extract_literal",
    "iter_actions",
    "lint",
    "lint_text",
    "mask",
    "normalize",
    "parse",
    "parse_attributes",
    "preprocess",
    "restore",
    "sanitize_response",
    "unmask",
]

"""Tests for the tokenizer and recursive-descent tree builder."""

from opx_apply.parsing.masker import mask
from opx_apply.parsing.scanner import CLOSE, OPEN, PAYLOAD, TEXT, Element, Payload, build_tree, tokenize, walk


def _tree(text: str):
    masked = mask(text)
    return build_tree(masked.masked, masked.prefix)


def test_tokenize_kinds():
    masked = mask('<edit file="a" op="new"><put>x</put></edit>')
    kinds = [token.kind for token in tokenize(masked.masked, masked.prefix)]
    assert kinds == [OPEN, PAYLOAD, CLOSE]


def test_unknown_tags_stay_text():
    tokens = tokenize("if a <b> c <div>", "__P_")
    assert [token.kind for token in tokens] == [TEXT]


def test_self_closing_token():
    tokens = tokenize('<to file="b.ts" />', "__P_")
    assert tokens[0].self_closing is True
    assert tokens[0].name == "to"


def test_nested_elements_and_payloads():
    nodes, notes = _tree('<opx><edit file="a" op="patch"><why>w</why><find>f</find><put>p</put></edit></opx>')
    assert notes == []
    opx = nodes[0]
    edit = opx.first("edit")
    assert edit.terminated is True
    assert edit.attrs == {"file": "a", "op": "patch"}
    assert edit.first("why").terminated
    assert [payload.index for payload in edit.payloads()] == [0, 1]


def test_unterminated_edit_closed_by_next_edit():
    nodes, _ = _tree('<edit file="a" op="new"><put>x</put>\n<edit file="b" op="remove"/>')
    edits = list(walk(nodes, frozenset({"edit"})))
    assert [edit.attrs["file"] for edit in edits] == ["a", "b"]
    assert edits[0].terminated is False
    assert edits[1].terminated is True


def test_stray_closer_noted_and_ignored():
    nodes, notes = _tree('</why><edit file="a" op="remove"/>')
    assert notes == ["Ignored stray </why> at offset 0"]
    assert isinstance(nodes[0], Element)


def test_mismatched_closer_closes_inner_elements():
    nodes, _ = _tree('<edit file="a" op="move"><why>unclosed</edit>')
    edit = nodes[0]
    assert edit.terminated is True
    assert edit.first("why").terminated is False


def test_unterminated_at_end_of_input():
    nodes, _ = _tree('<file path="a" action="delete">')
    assert nodes[0].terminated is False


def test_walk_document_order_without_descending():
    nodes, _ = _tree('<plan>p</plan><opx><edit file="1" op="remove"/></opx><file path="2" action="delete"></file>')
    names = [element.name for element in walk(nodes, frozenset({"edit", "file", "plan"}))]
    assert names == ["plan", "edit", "file"]


def test_payload_nodes_carry_block_index():
    nodes, _ = _tree("<put>a</put><put>b</put>")
    assert [node.index for node in nodes if isinstance(node, Payload)] == [0, 1]

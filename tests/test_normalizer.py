"""Tests for attribute normalization."""

from opx_apply.parsing.masker import mask, unmask
from opx_apply.parsing.normalizer import CURLY_QUOTES_NOTE, normalize, normalize_tag_attributes


def test_single_quotes_and_key_case_in_edit_tag():
    result = normalize("<edit FILE='src/a.ts' Op='new'>")
    assert result.text == '<edit file="src/a.ts" op="new">'
    assert result.changes == [
        "Normalized <edit> attributes: single → double quotes, lowercased keys"
    ]


def test_tag_name_case_preserved():
    result = normalize("<Edit File='a' op='new'>")
    assert result.text.startswith("<Edit ")


def test_curly_quotes_replaced():
    result = normalize("<edit file=“a.ts” op=“new”>")
    assert result.text == '<edit file="a.ts" op="new">'
    assert result.changes == [CURLY_QUOTES_NOTE]


def test_self_closing_to_and_new_tags():
    result = normalize("<to FILE='b.ts'/>\n<new Path='c.ts' />")
    assert '<to file="b.ts"/>' in result.text
    assert '<new path="c.ts" />' in result.text
    assert len(result.changes) == 2


def test_file_tag_normalized():
    result = normalize("<file Path='a.ts' ACTION='modify'>")
    assert result.text == '<file path="a.ts" action="modify">'


def test_already_normalized_text_reports_nothing():
    text = '<edit file="a.ts" op="new">\n__OPX_BLOCK_put_0__\n</edit>'
    result = normalize(text)
    assert result.text == text
    assert result.changes == []


def test_normalize_is_idempotent():
    once = normalize("<edit FILE='a' op=“patch”>")
    twice = normalize(once.text)
    assert twice.text == once.text
    assert twice.changes == []


def test_payload_untouched_through_mask():
    raw = "<edit file='a.ts' op='new'>\n<put>\n<<<\nconst q = 'x'; // “curly”\n>>>\n</put>\n</edit>"
    masked = mask(raw)
    normalized = normalize(masked.masked)
    restored = unmask(masked, normalized.text)
    assert "const q = 'x'; // “curly”" in restored
    assert restored.startswith('<edit file="a.ts" op="new">')


def test_normalize_tag_attributes_reports_change():
    assert normalize_tag_attributes('<edit file="a">') == ('<edit file="a">', False)
    assert normalize_tag_attributes("<edit file='a'>") == ('<edit file="a">', True)

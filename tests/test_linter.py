"""Tests for structural lint and the preprocess pipeline."""

from opx_apply.parsing.linter import lint, parse_attributes
from opx_apply.parsing.preprocess import lint_text, preprocess


class TestParseAttributes:

    def test_both_quote_styles_and_lowercase_keys(self):
        attrs = parse_attributes(""" FILE="a.ts" op='new' root="web" """)
        assert attrs == {"file": "a.ts", "op": "new", "root": "web"}

    def test_unquoted_values_ignored(self):
        assert parse_attributes("file=a.ts op='new'") == {"op": "new"}

    def test_later_duplicate_wins(self):
        assert parse_attributes('op="new" op="patch"') == {"op": "patch"}


class TestLint:

    def test_missing_file_reported_at_first_edit(self):
        issues = lint('<edit op="new">\n</edit>')
        assert issues == ['Edit #1: missing file (attrs="op="new"")']

    def test_missing_both_attributes(self):
        issues = lint("<edit>\n</edit>")
        assert issues == ['Edit #1: missing file and op (attrs="")']

    def test_numbering_counts_every_edit(self):
        text = '<edit file="a" op="new"></edit>\n<edit file="b"></edit>'
        assert lint(text) == ['Edit #2: missing op (attrs="file="b"")']

    def test_self_closing_edit_excerpt(self):
        issues = lint('<edit file="gone.ts" />')
        assert issues == ['Edit #1: missing op (attrs="file="gone.ts"")']

    def test_file_dialect_linted(self):
        issues = lint('<file path="a.ts">\n</file>')
        assert issues == ['File #1: missing action (attrs="path="a.ts"")']

    def test_excerpt_truncated(self):
        long_value = "x" * 300
        issues = lint(f'<edit op="new" note="{long_value}">')
        excerpt = issues[0].split('attrs="', 1)[1][:-2]
        assert len(excerpt) == 120

    def test_clean_text_has_no_issues(self):
        assert lint('<edit file="a.ts" op="remove"/>') == []


class TestPreprocess:

    def test_normalizes_and_keeps_payload(self):
        raw = "<edit file='a.ts' op='new'>\n<put>\n<<<\nx = 'y'\n>>>\n</put>\n</edit>"
        result = preprocess(raw)
        assert result.text == raw.replace("file='a.ts' op='new'", 'file="a.ts" op="new"')
        assert len(result.changes) == 1
        assert result.issues == []

    def test_issues_reported_after_normalizing(self):
        result = preprocess("<edit FILE='a.ts'></edit>")
        assert result.issues == ['Edit #1: missing op (attrs="file="a.ts"")']

    def test_lint_ignores_edit_text_inside_payload(self):
        raw = '<edit file="a.ts" op="new">\n<put>\n<<<\n<edit>\n>>>\n</put>\n</edit>'
        assert preprocess(raw).issues == []

    def test_lint_text_live(self):
        assert lint_text("<edit file='x'>") == ['Edit #1: missing op (attrs="file="x"")']
        assert lint_text("") == []

    def test_curly_quotes_in_search_kept(self):
        raw = (
            "<file path=“a.ts” action=“modify”><change>"
            "<search>\n===\nconst s = “hello”;\n===\n</search>"
            "<content>\n===\nconst s = “bye”;\n===\n</content></change></file>"
        )
        text = preprocess(raw).text
        assert text.startswith('<file path="a.ts" action="modify">')
        assert "const s = “hello”;" in text
        assert "const s = “bye”;" in text

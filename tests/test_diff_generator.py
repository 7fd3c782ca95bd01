"""Tests for diff_generator utility functions."""

from opx_apply.filesystem import DiffSink
from opx_apply.utils.diff_generator import UnifiedDiffSink, generate_unified_diff


def test_generate_unified_diff_basic():
    """Basic diff has --- a/ and +++ b/ headers and changed lines."""
    diff = generate_unified_diff(
        "src/app.ts",
        "const a = 1;\nconst b = 2;\n",
        "const a = 10;\nconst b = 2;\n",
    )
    assert diff.startswith("--- a/src/app.ts")
    assert "+++ b/src/app.ts" in diff
    assert "-const a = 1;" in diff
    assert "+const a = 10;" in diff


def test_generate_unified_diff_no_changes():
    """Identical content returns empty string."""
    assert generate_unified_diff("a.ts", "hello\n", "hello\n") == ""


def test_generate_unified_diff_new_file():
    """A created file diffs against empty text."""
    diff = generate_unified_diff("new.ts", "", "line1\nline2\n")
    assert "+line1" in diff
    assert "+line2" in diff


def test_generate_unified_diff_crlf_lines_unsplit():
    """CRLF content does not produce blank diff lines."""
    diff = generate_unified_diff("w.txt", "a\r\nb\r\n", "a\r\nc\r\n")
    assert "-b" in diff.split("\n")
    assert "+c" in diff.split("\n")
    assert "\r" not in diff


def test_generate_unified_diff_rename_only():
    """Same content under a new path reports the rename."""
    diff = generate_unified_diff("a.ts", "x\n", "x\n", new_path="b.ts")
    assert diff == "rename from a.ts\nrename to b.ts"


def test_generate_unified_diff_rename_with_changes():
    diff = generate_unified_diff("a.ts", "x\n", "y\n", new_path="b.ts")
    assert diff.startswith("--- a/a.ts")
    assert "+++ b/b.ts" in diff


class TestUnifiedDiffSink:

    def test_is_a_diff_sink(self):
        assert isinstance(UnifiedDiffSink(), DiffSink)

    def test_collects_diffs(self):
        sink = UnifiedDiffSink()
        sink.show("a.ts", "x\n", "y\n")
        assert len(sink.diffs) == 1
        assert "+y" in sink.diffs[0]

    def test_emits_when_configured(self):
        emitted = []
        sink = UnifiedDiffSink(emit=emitted.append)
        sink.show("a.ts", "x\n", "y\n")
        assert emitted == sink.diffs

    def test_rename_passed_through(self):
        sink = UnifiedDiffSink()
        sink.show("a.ts", "x\n", "x\n", new_path="b.ts")
        assert sink.diffs == ["rename from a.ts\nrename to b.ts"]

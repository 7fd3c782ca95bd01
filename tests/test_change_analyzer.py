"""Tests for preview statistics and descriptions."""

import pytest

from opx_apply.analysis.change_analyzer import (
    analyze,
    analyze_actions,
    count_lines,
    describe,
    find_blocking_error,
    summarize_changes,
)
from opx_apply.models import ActionType, ChangeBlock, ChangeSummary, FileAction


def _action(kind: ActionType, *blocks: ChangeBlock, new_path: str | None = None) -> FileAction:
    return FileAction(path="src/a.ts", action=kind, new_path=new_path, changes=list(blocks))


def _blocks(count: int) -> list[ChangeBlock]:
    return [ChangeBlock(description=f"step {i}", search="x", content="y") for i in range(1, count + 1)]


@pytest.mark.parametrize(
    "text, expected",
    [("", 0), (None, 0), ("one", 1), ("a\nb", 2), ("a\nb\n", 3)],
)
def test_count_lines(text, expected):
    assert count_lines(text) == expected


class TestSummaries:

    def test_create_sums_all_blocks(self):
        action = _action(ActionType.CREATE, ChangeBlock(content="a\nb"), ChangeBlock(content="c"))
        assert summarize_changes(action) == ChangeSummary(added=3, removed=0)

    def test_rewrite_removed_is_ceiling(self):
        action = _action(ActionType.REWRITE, ChangeBlock(content="a\nb\nc"))
        assert summarize_changes(action) == ChangeSummary(added=3, removed=3)
        action = _action(ActionType.REWRITE, ChangeBlock(content="\n".join("x" * 10)))
        assert summarize_changes(action) == ChangeSummary(added=10, removed=8)

    def test_modify_counts_search_and_content(self):
        action = _action(
            ActionType.MODIFY,
            ChangeBlock(search="a\nb", content="c"),
            ChangeBlock(search=None, content="d\ne\nf"),
        )
        assert summarize_changes(action) == ChangeSummary(added=4, removed=3)

    def test_delete_fixed_estimate(self):
        row = analyze(_action(ActionType.DELETE))
        assert row.changes == ChangeSummary(added=0, removed=50)
        assert row.description == "Delete file"

    def test_rename_has_no_line_changes(self):
        row = analyze(_action(ActionType.RENAME, new_path="src/b.ts"))
        assert row.changes == ChangeSummary(added=0, removed=0)
        assert row.description == "Rename to src/b.ts"
        assert row.new_path == "src/b.ts"


class TestDescriptions:

    def test_single_block(self):
        assert describe(_action(ActionType.MODIFY, *_blocks(1))) == "step 1"

    def test_three_blocks_joined(self):
        assert describe(_action(ActionType.MODIFY, *_blocks(3))) == "step 1 • step 2 • step 3"

    def test_four_blocks_summarized(self):
        assert describe(_action(ActionType.MODIFY, *_blocks(4))) == "step 1 • step 2 • (+2 more)"

    def test_missing_descriptions_fall_back(self):
        action = _action(ActionType.MODIFY, ChangeBlock(search="a"), ChangeBlock(search="b", description="B"))
        assert describe(action) == "Modify file • B"

    def test_defaults_per_kind(self):
        assert describe(_action(ActionType.MODIFY)) == "Modify file"
        assert describe(_action(ActionType.CREATE, ChangeBlock(content="x"))) == "Create file"
        assert describe(_action(ActionType.REWRITE)) == "Rewrite file"
        assert describe(_action(ActionType.RENAME)) == "Rename to new location"

    def test_create_uses_first_description(self):
        action = _action(ActionType.CREATE, ChangeBlock(description="Add util", content="x"))
        assert describe(action) == "Add util"


class TestBlockingErrors:

    def test_rename_without_new_path(self):
        row = analyze(_action(ActionType.RENAME))
        assert row.has_error is True
        assert "src/a.ts" in row.error_message

    def test_modify_block_without_search(self):
        row = analyze(_action(ActionType.MODIFY, ChangeBlock(content="x")))
        assert row.has_error is True

    def test_create_without_changes(self):
        assert find_blocking_error(_action(ActionType.CREATE)) is not None

    def test_valid_rows_have_no_error(self):
        row = analyze(_action(ActionType.MODIFY, *_blocks(2)))
        assert row.has_error is False
        assert row.error_message is None


def test_warnings_and_blocks_carried_to_row():
    block = ChangeBlock(content="", warnings=["payload treated as empty"])
    row = analyze(_action(ActionType.CREATE, block))
    assert row.warnings == ["payload treated as empty"]
    assert row.change_blocks == [block]


def test_analyze_is_deterministic():
    action = _action(ActionType.MODIFY, *_blocks(5))
    assert analyze(action) == analyze(action)


def test_analyze_actions_keeps_order_and_errors():
    actions = [_action(ActionType.DELETE), _action(ActionType.RENAME, new_path="b")]
    data = analyze_actions(actions, ["parse problem"])
    assert [row.action for row in data.rows] == [ActionType.DELETE, ActionType.RENAME]
    assert data.errors == ["parse problem"]

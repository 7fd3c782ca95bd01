"""Tests for the pure orchestrator helpers and initial batch state."""

import pytest

from opx_apply.models import BatchStatus, FileAction
from opx_apply.orchestrator.cascade import (
    detect_eol,
    find_nth_occurrence,
    is_cascade_failure,
    locate_search,
    next_row_or_end,
    normalize_to_eol,
)
from opx_apply.orchestrator.state import make_initial_state


def test_detect_eol():
    assert detect_eol("a\r\nb") == "\r\n"
    assert detect_eol("a\nb") == "\n"
    assert detect_eol("") == "\n"


def test_normalize_to_eol():
    assert normalize_to_eol("a\r\nb\nc", "\n") == "a\nb\nc"
    assert normalize_to_eol("a\r\nb\nc", "\r\n") == "a\r\nb\r\nc"


class TestFindNthOccurrence:

    def test_counts_overlapping_matches(self):
        assert find_nth_occurrence("aaaa", "aa", 2) == 1
        assert find_nth_occurrence("aaaa", "aa", 3) == 2

    def test_too_few_matches(self):
        assert find_nth_occurrence("abab", "ab", 3) == -1

    @pytest.mark.parametrize("n", [0, -1])
    def test_invalid_n(self, n):
        assert find_nth_occurrence("abab", "ab", n) == -1

    def test_empty_needle(self):
        assert find_nth_occurrence("abc", "", 1) == -1


class TestLocateSearch:

    TEXT = "x = 1\ny = 2\nx = 1\n"

    def test_default_is_first(self):
        assert locate_search(self.TEXT, "x = 1") == 0
        assert locate_search(self.TEXT, "x = 1", "first") == 0

    def test_last(self):
        assert locate_search(self.TEXT, "x = 1", "last") == 12

    def test_nth(self):
        assert locate_search(self.TEXT, "x = 1", 2) == 12
        assert locate_search(self.TEXT, "x = 1", 3) == -1

    def test_missing(self):
        assert locate_search(self.TEXT, "z = 3") == -1
        assert locate_search(self.TEXT, "") == -1


class TestIsCascadeFailure:

    def test_earlier_row_changed_file(self):
        assert is_cascade_failure("a.ts", 2, {"a.ts": [0]}) is True

    def test_only_own_row(self):
        assert is_cascade_failure("a.ts", 1, {"a.ts": [1]}) is False

    def test_untouched_file(self):
        assert is_cascade_failure("a.ts", 1, {"b.ts": [0]}) is False

    def test_unresolved_key(self):
        assert is_cascade_failure(None, 1, {"a.ts": [0]}) is False


def test_next_row_or_end():
    actions = [FileAction(path="a", action="delete")]
    state = make_initial_state(actions)
    assert next_row_or_end(state) == "continue"
    state["cursor"] = 1
    assert next_row_or_end(state) == "done"
    assert next_row_or_end(make_initial_state([])) == "done"


class TestMakeInitialState:

    def test_defaults(self):
        state = make_initial_state([])
        assert state["cursor"] == 0
        assert state["status"] == BatchStatus.PENDING
        assert state["contents"] == {}
        assert state["mutated"] == {}
        assert state["results"] == []
        assert state["errors"] == []

    def test_carried_state_is_copied(self):
        contents = {"a.ts": "x"}
        mutated = {"a.ts": [0]}
        state = make_initial_state([], contents=contents, mutated=mutated)
        state["contents"]["b.ts"] = "y"
        state["mutated"]["a.ts"].append(1)
        assert contents == {"a.ts": "x"}
        assert mutated == {"a.ts": [0]}

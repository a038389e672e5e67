"""Tests for the LCS line diff."""

import pytest

from blueprint_sync.errors import DiffTooLargeError
from blueprint_sync.sync.differ import (
    DiffEntry,
    DiffKind,
    compute_diff,
    diff_stats,
    longest_common_subsequence,
    new_text,
    old_text,
    render_diff,
)

ADD, REMOVE, SAME = DiffKind.ADD, DiffKind.REMOVE, DiffKind.SAME


def _pairs(entries):
    return [(e.kind, e.line) for e in entries]


class TestComputeDiff:
    """Tests for compute_diff()."""

    def test_single_line_replacement(self):
        entries = compute_diff("a\nb\nc", "a\nx\nc")
        assert _pairs(entries) == [
            (SAME, "a"),
            (REMOVE, "b"),
            (ADD, "x"),
            (SAME, "c"),
        ]

    def test_identical_texts_are_all_same(self):
        text = "one\ntwo\nthree"
        entries = compute_diff(text, text)
        assert all(e.kind is SAME for e in entries)
        assert len(entries) == 3

    def test_disjoint_texts_remove_then_add(self):
        entries = compute_diff("a\nb", "x\ny")
        assert _pairs(entries) == [
            (REMOVE, "a"),
            (REMOVE, "b"),
            (ADD, "x"),
            (ADD, "y"),
        ]

    def test_pure_insertion(self):
        entries = compute_diff("a\nc", "a\nb\nc")
        assert _pairs(entries) == [(SAME, "a"), (ADD, "b"), (SAME, "c")]

    def test_pure_deletion(self):
        entries = compute_diff("a\nb\nc", "a\nc")
        assert _pairs(entries) == [(SAME, "a"), (REMOVE, "b"), (SAME, "c")]

    def test_empty_to_text(self):
        entries = compute_diff("", "a")
        assert _pairs(entries) == [(REMOVE, ""), (ADD, "a")]

    @pytest.mark.parametrize(
        "old,new",
        [
            ("a\nb\nc", "a\nx\nc"),
            ("x\ny\nz", ""),
            ("# T\n\nbody\n", "# T\nbody\nmore\n"),
            ("a\nb\na\nb", "b\na\nb\na"),
        ],
    )
    def test_replay_reconstructs_both_sides(self, old, new):
        entries = compute_diff(old, new)
        assert old_text(entries) == old
        assert new_text(entries) == new

    def test_size_guard(self):
        with pytest.raises(DiffTooLargeError) as exc_info:
            compute_diff("a\nb\nc", "a", max_lines=2)
        assert exc_info.value.lines == 3
        assert isinstance(exc_info.value, ValueError)

    def test_size_guard_allows_limit(self):
        assert len(compute_diff("a\nb", "a\nb", max_lines=2)) == 2


class TestLongestCommonSubsequence:
    def test_ties_prefer_old_index(self):
        # "a" and "b" are both valid; stepping back on the old side first keeps "a"
        assert longest_common_subsequence(["a", "b"], ["b", "a"]) == ["a"]

    def test_swapped_lines_keep_first_old_line(self):
        entries = compute_diff("a\nb", "b\na")
        assert _pairs(entries) == [(ADD, "b"), (SAME, "a"), (REMOVE, "b")]

    def test_lcs_is_common_subsequence(self):
        old = ["x", "a", "y", "b", "c"]
        new = ["a", "b", "z", "c"]
        assert longest_common_subsequence(old, new) == ["a", "b", "c"]


class TestRenderDiff:
    """Tests for render_diff()."""

    def test_no_changes(self):
        entries = compute_diff("a\nb", "a\nb")
        assert render_diff(entries) == "  (no changes)"

    def test_prefixes(self):
        entries = compute_diff("a\nb\nc", "a\nx\nc")
        assert render_diff(entries) == "  a\n- b\n+ x\n  c"

    def test_gap_marker_between_distant_changes(self):
        old = "\n".join(["0", "1", "2", "3", "4", "5", "6", "7", "8", "9"])
        new = old.replace("0", "A").replace("9", "Z")
        out = render_diff(compute_diff(old, new), context_lines=1).split("\n")
        assert out == ["- 0", "+ A", "  1", "  ...", "  8", "- 9", "+ Z"]

    def test_context_window(self):
        old = "\n".join(str(i) for i in range(10))
        new = old.replace("5", "five")
        out = render_diff(compute_diff(old, new), context_lines=2).split("\n")
        assert out == ["  3", "  4", "- 5", "+ five", "  6", "  7"]

    def test_zero_context(self):
        entries = [
            DiffEntry(SAME, "a"),
            DiffEntry(REMOVE, "b"),
            DiffEntry(SAME, "c"),
        ]
        assert render_diff(entries, context_lines=0) == "- b"


class TestDiffStats:
    def test_counts(self):
        stats = diff_stats(compute_diff("a\nb\nc", "a\nx\ny\nc"))
        assert (stats.added, stats.removed, stats.unchanged) == (2, 1, 2)
        assert stats.changed

    def test_unchanged(self):
        stats = diff_stats(compute_diff("a", "a"))
        assert not stats.changed

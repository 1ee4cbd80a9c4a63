"""Unit tests for gap computation and hunk grouping."""

from types import SimpleNamespace

from diffview.core.diff.gaps import compute_gap_map, group_by_hunk
from diffview.core.models import TRAILING_GAP_KEY, Hunk


def hunk(old_start, old_lines, new_start=None, new_lines=None):
    return Hunk(
        old_start, old_lines,
        old_start if new_start is None else new_start,
        old_lines if new_lines is None else new_lines,
    )


class TestComputeGapMap:
    """Tests for compute_gap_map."""

    def test_leading_and_trailing_gaps(self, ten_lines):
        gap_map = compute_gap_map([hunk(4, 2)], ten_lines)

        assert gap_map.gaps[0].start_line_number == 1
        assert gap_map.gaps[0].lines == ("line1", "line2", "line3")
        assert gap_map.trailing.start_line_number == 6
        assert gap_map.trailing.lines == tuple(f"line{i}" for i in range(6, 11))
        assert gap_map.keys() == [0, TRAILING_GAP_KEY]

    def test_gap_between_hunks(self, ten_lines):
        gap_map = compute_gap_map([hunk(1, 2), hunk(7, 2)], ten_lines)

        assert 0 not in gap_map.gaps
        assert gap_map.gaps[1].start_line_number == 3
        assert gap_map.gaps[1].lines == ("line3", "line4", "line5", "line6")
        assert gap_map.trailing.start_line_number == 9
        assert gap_map.trailing.lines == ("line9", "line10")

    def test_no_hunks(self, ten_lines):
        gap_map = compute_gap_map([], ten_lines)
        assert gap_map.gaps == {}
        assert gap_map.trailing is None
        assert gap_map.is_empty

    def test_hunk_spanning_whole_file(self, ten_lines):
        gap_map = compute_gap_map([hunk(1, 10)], ten_lines)
        assert gap_map.gaps == {}
        assert gap_map.trailing is None

    def test_adjacent_hunks_leave_no_gap(self, ten_lines):
        gap_map = compute_gap_map([hunk(1, 3), hunk(4, 7)], ten_lines)
        assert gap_map.is_empty

    def test_gaps_and_hunks_partition_the_file(self, ten_lines):
        """Every line number is covered exactly once."""
        hunks = [hunk(2, 2), hunk(6, 1), hunk(8, 1)]
        gap_map = compute_gap_map(hunks, ten_lines)

        covered = []
        for key in gap_map.keys():
            gap = gap_map.get(key)
            covered.extend(gap.old_number(i) for i in range(gap.total))
        for h in hunks:
            covered.extend(range(h.old_start, h.old_start + h.old_lines))

        assert sorted(covered) == list(range(1, 11))
        for key in gap_map.keys():
            gap = gap_map.get(key)
            assert list(gap.lines) == ten_lines[gap.start_line_number - 1:gap.start_line_number - 1 + gap.total]

    def test_coordinates_past_end_clamp(self, ten_lines):
        """Hunks beyond the file never raise and yield empty or clipped gaps."""
        gap_map = compute_gap_map([hunk(15, 2), hunk(20, 1)], ten_lines)

        assert gap_map.gaps[0].total == 10
        assert 1 not in gap_map.gaps
        assert gap_map.trailing is None

    def test_new_side_numbers_follow_hunk_offsets(self, ten_lines):
        """Lines after a hunk that adds lines shift on the new side."""
        gap_map = compute_gap_map([hunk(4, 2, 4, 5)], ten_lines)

        assert gap_map.gaps[0].new_number(0) == 1
        assert gap_map.trailing.old_number(0) == 6
        assert gap_map.trailing.new_number(0) == 9

    def test_new_side_numbers_between_hunks(self, ten_lines):
        gap_map = compute_gap_map([hunk(1, 2, 1, 1), hunk(7, 2, 6, 2)], ten_lines)

        assert gap_map.gaps[1].old_number(0) == 3
        assert gap_map.gaps[1].new_number(0) == 2

    def test_hidden_line_count(self, ten_lines):
        gap_map = compute_gap_map([hunk(4, 2)], ten_lines)
        assert gap_map.hidden_line_count == 8


class TestGroupByHunk:
    """Tests for group_by_hunk."""

    @staticmethod
    def entries(indices):
        return [SimpleNamespace(hunk_index=i, n=n) for n, i in enumerate(indices)]

    def test_groups_contiguous_runs(self):
        groups = group_by_hunk(self.entries([0, 0, 1, 1, 1, 2]))
        assert [len(g) for g in groups] == [2, 3, 1]
        assert [e.n for g in groups for e in g] == [0, 1, 2, 3, 4, 5]

    def test_does_not_merge_separate_runs(self):
        groups = group_by_hunk(self.entries([0, 1, 0]))
        assert [[e.hunk_index for e in g] for g in groups] == [[0], [1], [0]]

    def test_empty(self):
        assert group_by_hunk([]) == []

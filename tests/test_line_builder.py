"""Unit tests for the unified and split line builders."""

from conftest import indexed_tokens

from diffview.core.diff.hunks import extract_sides
from diffview.core.diff.line_builder import LineBuilder, build_split_lines, build_unified_lines
from diffview.core.models import DiffLineType, Hunk, SideTokens


CONTEXT = DiffLineType.CONTEXT
ADDED = DiffLineType.ADDED
REMOVED = DiffLineType.REMOVED
EMPTY = DiffLineType.EMPTY


class TestUnifiedLines:
    """Tests for build_unified_lines."""

    def test_change_group_pairs_by_position(self, change_group_hunk):
        """3 removed + 1 added gives one paired and two unpaired removed lines."""
        entries = build_unified_lines([change_group_hunk])

        assert [e.type for e in entries] == [REMOVED, REMOVED, REMOVED, ADDED]
        assert [e.text for e in entries] == ["alpha one", "alpha two", "alpha three", "beta one"]
        assert [e.content.has_highlight for e in entries] == [True, False, False, True]

    def test_removed_entries_precede_added_entries(self):
        hunk = Hunk(1, 1, 1, 3, ("-x", "+y1", "+y2", "+y3"))
        entries = build_unified_lines([hunk])

        assert [e.type for e in entries] == [REMOVED, ADDED, ADDED, ADDED]
        assert [e.content.has_highlight for e in entries] == [True, True, False, False]

    def test_line_numbers(self):
        hunk = Hunk(5, 3, 7, 3, (" x", "-y", "+z", " w"))
        entries = build_unified_lines([hunk])

        assert [(e.old_num, e.new_num) for e in entries] == [(5, 7), (6, None), (None, 8), (7, 9)]
        assert [e.prefix for e in entries] == [' ', '-', '+', ' ']

    def test_pure_addition_is_unpaired(self):
        entries = build_unified_lines([Hunk(1, 0, 1, 2, ("+a", "+b"))])
        assert [e.type for e in entries] == [ADDED, ADDED]
        assert not any(e.content.has_highlight for e in entries)

    def test_pure_removal_is_unpaired(self):
        entries = build_unified_lines([Hunk(1, 2, 1, 0, ("-a", "-b"))])
        assert [e.type for e in entries] == [REMOVED, REMOVED]
        assert not any(e.content.has_highlight for e in entries)

    def test_addition_before_removal_is_not_paired(self):
        """Only a removed run followed by an added run forms a pair."""
        entries = build_unified_lines([Hunk(1, 1, 1, 1, ("+a", "-b"))])
        assert [e.type for e in entries] == [ADDED, REMOVED]
        assert not any(e.content.has_highlight for e in entries)

    def test_unprefixed_line_is_context(self):
        entries = build_unified_lines([Hunk(1, 1, 1, 1, ("",))])
        assert entries[0].type is CONTEXT
        assert entries[0].text == ""

    def test_hunk_index(self):
        hunks = [Hunk(1, 1, 1, 1, (" a",)), Hunk(9, 1, 9, 1, ("-b", "+c"))]
        entries = build_unified_lines(hunks)
        assert [e.hunk_index for e in entries] == [0, 1, 1]

    def test_whitespace_survives(self):
        hunk = Hunk(1, 1, 1, 1, ("-        return value;", "+    return newValue;"))
        removed, added = build_unified_lines([hunk])
        assert removed.text == "        return value;"
        assert added.text == "    return newValue;"


class TestSplitLines:
    """Tests for build_split_lines."""

    def test_unpaired_removed_lines_get_right_placeholders(self, change_group_hunk):
        split = build_split_lines([change_group_hunk])

        assert [e.type for e in split.left] == [REMOVED, REMOVED, REMOVED]
        assert [e.type for e in split.right] == [ADDED, EMPTY, EMPTY]
        assert [e.num for e in split.right] == [1, None, None]
        assert split.right[1].text == ""

    def test_unpaired_added_lines_get_left_placeholders(self):
        split = build_split_lines([Hunk(3, 1, 3, 2, ("-a", "+b", "+c"))])

        assert [e.type for e in split.left] == [REMOVED, EMPTY]
        assert [e.type for e in split.right] == [ADDED, ADDED]
        assert [e.num for e in split.left] == [3, None]
        assert [e.num for e in split.right] == [3, 4]

    def test_context_is_mirrored(self):
        split = build_split_lines([Hunk(4, 2, 10, 2, (" same", " also"))])

        assert [(l.text, r.text) for l, r in split.rows()] == [("same", "same"), ("also", "also")]
        assert [(l.num, r.num) for l, r in split.rows()] == [(4, 10), (5, 11)]

    def test_columns_have_equal_length(self):
        hunks = [
            Hunk(1, 4, 1, 2, (" a", "-b", "-c", "+C", " d")),
            Hunk(20, 1, 18, 3, ("-x", "+y", "+z", "+w")),
        ]
        split = build_split_lines(hunks)
        assert len(split.left) == len(split.right) == len(split)
        for left, right in split.rows():
            assert left.hunk_index == right.hunk_index


class TestTokenCursors:
    """Token arrays line up with each side's lines across hunks."""

    HUNKS = [
        Hunk(1, 2, 1, 2, (" a", "-b", "+B")),
        Hunk(8, 1, 8, 2, (" c", "+d")),
    ]

    def builder(self):
        old_code, new_code = extract_sides(self.HUNKS)
        return LineBuilder(
            SideTokens.from_lines(indexed_tokens(old_code)),
            SideTokens.from_lines(indexed_tokens(new_code)),
        )

    @staticmethod
    def token_line(content):
        return {f.style["line"] for f in content if f.style}

    def test_unified_cursors(self):
        entries = self.builder().build_unified(self.HUNKS)
        by_text = {e.text: e for e in entries}

        assert self.token_line(by_text["a"].content) == {"0"}
        assert self.token_line(by_text["b"].content) == {"1"}
        assert self.token_line(by_text["B"].content) == {"1"}
        assert self.token_line(by_text["c"].content) == {"2"}
        assert self.token_line(by_text["d"].content) == {"3"}

    def test_split_context_uses_each_sides_tokens(self):
        split = self.builder().build_split(self.HUNKS)
        row = next((l, r) for l, r in split.rows() if l.text == "c")

        assert self.token_line(row[0].content) == {"2"}
        assert self.token_line(row[1].content) == {"2"}
        d_row = next(r for _, r in split.rows() if r.text == "d")
        assert self.token_line(d_row.content) == {"3"}

    def test_missing_token_lines_fall_back_to_plain(self):
        builder = LineBuilder(SideTokens.from_lines([]), SideTokens.from_lines([]))
        entries = builder.build_unified(self.HUNKS)
        assert all(not e.content.is_styled for e in entries)
        assert [e.text for e in entries] == ["a", "b", "B", "c", "d"]

    def test_builder_can_be_reused(self):
        """Each build starts its token indices from the first line again."""
        builder = self.builder()
        builder.build_split(self.HUNKS)
        first = builder.build_unified(self.HUNKS)
        second = builder.build_unified(self.HUNKS)

        expected = [self.token_line(e.content) for e in self.builder().build_unified(self.HUNKS)]
        assert [self.token_line(e.content) for e in first] == expected
        assert [self.token_line(e.content) for e in second] == expected
        assert expected[-1] == {"3"}

"""Unit tests for fusing word-diff segments with syntax tokens."""

import pytest

from diffview.core.diff.fusion import (
    fuse_word_diff,
    keep_new_side,
    keep_old_side,
    render_added_inline,
    render_removed_inline,
    render_tokenized_line,
)
from diffview.core.diff.text_diff import diff_words_with_space
from diffview.core.models import Change, Fragment, InlineHighlight, Token


KEYWORD = {"--light": "#0000ff"}
NAME = {"--light": "#000000"}

REMOVED = InlineHighlight.REMOVED
ADDED = InlineHighlight.ADDED


class TestFuseWithoutTokens:
    """Fusion when no syntax tokens are available."""

    SEGMENTS = [Change("a "), Change("b", removed=True), Change("c", added=True), Change(" d")]

    def test_old_side_fragments(self):
        content = fuse_word_diff(self.SEGMENTS, None, REMOVED, keep_old_side)
        assert content.fragments == (
            Fragment("a "),
            Fragment("b", None, REMOVED),
            Fragment(" d"),
        )

    def test_new_side_fragments(self):
        content = fuse_word_diff(self.SEGMENTS, None, ADDED, keep_new_side)
        assert content.text == "a c d"
        assert [f.highlight for f in content] == [None, ADDED, None]
        assert not content.is_styled


class TestFuseWithTokens:
    """Fusion of segment and token boundaries."""

    def test_token_split_at_segment_boundary(self):
        """A token crossing a segment boundary is split in two fragments."""
        segments = diff_words_with_space("foo bar", "foo baz")
        tokens = (Token("foo b", KEYWORD), Token("ar", NAME))

        content = fuse_word_diff(segments, tokens, REMOVED, keep_old_side)

        assert content.fragments == (
            Fragment("foo ", KEYWORD, None),
            Fragment("b", KEYWORD, REMOVED),
            Fragment("ar", NAME, REMOVED),
        )

    def test_segment_spanning_several_tokens(self):
        segments = [Change("x = 1", removed=True)]
        tokens = (Token("x", NAME), Token(" ", None), Token("=", KEYWORD), Token(" ", None), Token("1", NAME))

        content = fuse_word_diff(segments, tokens, REMOVED, keep_old_side)

        assert [f.text for f in content] == ["x", " ", "=", " ", "1"]
        assert all(f.highlight is REMOVED for f in content)

    def test_tokens_running_out_leave_rest_unstyled(self):
        content = render_tokenized_line("abcd", (Token("ab", KEYWORD),))
        assert content.fragments == (Fragment("ab", KEYWORD), Fragment("cd"))

    def test_zero_length_tokens_are_skipped(self):
        content = render_tokenized_line("x", (Token("", KEYWORD), Token("x", NAME)))
        assert content.fragments == (Fragment("x", NAME),)

    def test_text_comes_from_segments_not_tokens(self):
        """Mismatched tokens only affect styles, never the text."""
        content = render_tokenized_line("ab", (Token("abcdef", KEYWORD),))
        assert content.text == "ab"


class TestRenderLines:
    """Tests for whole-line and paired-line rendering."""

    def test_plain_line(self):
        content = render_tokenized_line("    pass", None)
        assert content.fragments == (Fragment("    pass"),)

    def test_empty_line(self):
        assert render_tokenized_line("", None).text == ""
        assert render_tokenized_line("", ()).text == ""

    @pytest.mark.parametrize("old_line,new_line", [
        ("        return value;", "    return newValue;"),
        ("\tx\t=\t1", "  x = 2"),
        ("   ", ""),
    ])
    def test_paired_lines_reconstruct_exactly(self, old_line, new_line):
        old_tokens = (Token(old_line[:3], KEYWORD), Token(old_line[3:], NAME))
        new_tokens = (Token(new_line, NAME),)

        removed = render_removed_inline(old_line, new_line, old_tokens)
        added = render_added_inline(old_line, new_line, new_tokens)

        assert removed.text == old_line
        assert added.text == new_line

    def test_paired_lines_mark_changed_words(self):
        removed = render_removed_inline("return value;", "return newValue;", None)
        added = render_added_inline("return value;", "return newValue;", None)

        assert [f.text for f in removed if f.highlight is REMOVED] == ["value"]
        assert [f.text for f in added if f.highlight is ADDED] == ["newValue"]

    def test_custom_word_diff(self):
        def whole_line(old, new):
            return [Change(old, removed=True), Change(new, added=True)]

        removed = render_removed_inline("a b", "a c", None, word_diff=whole_line)
        assert removed.fragments == (Fragment("a b", None, REMOVED),)

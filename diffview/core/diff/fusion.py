"""
Fusion of word-diff segments with syntax tokens.

Splits syntax tokens at word-diff boundaries so every resulting fragment
carries both the token's style and the segment's diff highlight. The text
of the fragments always comes from the word-diff segments, never from the
tokens, so one side's fragments concatenate to exactly that side's line.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from diffview.core.diff.text_diff import WordDiffFunc, diff_words_with_space
from diffview.core.models import (
    Change,
    Fragment,
    InlineHighlight,
    LineContent,
    Token,
)


SegmentFilter = Callable[[Change], bool]


def keep_old_side(change: Change) -> bool:
    return not change.added


def keep_new_side(change: Change) -> bool:
    return not change.removed


def fuse_word_diff(
    segments: Sequence[Change],
    tokens: Optional[Sequence[Token]],
    highlight: Optional[InlineHighlight],
    keep: SegmentFilter
) -> LineContent:
    """
    Merge word-diff segment boundaries with syntax token boundaries.

    Walks the kept segments and the tokens simultaneously, taking the
    shorter remaining run each step. A token may be split across several
    fragments and a segment may span several tokens. If the tokens run
    out first, the rest of the text is emitted unstyled.

    Args:
        segments: Word-diff chunks for one line pair
        tokens: Syntax tokens for this side's line, or None
        highlight: Marker for changed segments
        keep: Side filter (``keep_old_side`` or ``keep_new_side``)

    Returns:
        The side's rendered content.
    """
    parts = [segment for segment in segments if keep(segment)]

    if tokens is None:
        return LineContent(tuple(
            Fragment(part.value, None, highlight if part.is_change else None)
            for part in parts if part.value
        ))

    fragments: list[Fragment] = []
    token_index = 0
    token_offset = 0  # char offset within current token

    for part in parts:
        marker = highlight if part.is_change else None
        remaining = len(part.value)
        position = 0

        while remaining > 0 and token_index < len(tokens):
            token = tokens[token_index]
            available = len(token.content) - token_offset
            if available <= 0:
                token_index += 1
                token_offset = 0
                continue
            take = min(remaining, available)

            fragments.append(Fragment(part.value[position:position + take], token.style, marker))

            position += take
            remaining -= take
            token_offset += take

            if token_offset >= len(token.content):
                token_index += 1
                token_offset = 0

        if remaining > 0:
            fragments.append(Fragment(part.value[position:], None, marker))

    return LineContent(tuple(fragments))


def render_tokenized_line(text: str, tokens: Optional[Sequence[Token]]) -> LineContent:
    """Render a whole line with syntax tokens, falling back to plain text."""
    if tokens is None:
        return LineContent.plain(text)
    return fuse_word_diff((Change(text),), tokens, None, keep_old_side)


def render_removed_inline(
    old_line: str,
    new_line: str,
    old_tokens: Optional[Sequence[Token]],
    word_diff: Optional[WordDiffFunc] = None
) -> LineContent:
    """Render the old line of a pair with word-level highlights."""
    segments = (word_diff or diff_words_with_space)(old_line, new_line)
    return fuse_word_diff(segments, old_tokens, InlineHighlight.REMOVED, keep_old_side)


def render_added_inline(
    old_line: str,
    new_line: str,
    new_tokens: Optional[Sequence[Token]],
    word_diff: Optional[WordDiffFunc] = None
) -> LineContent:
    """Render the new line of a pair with word-level highlights."""
    segments = (word_diff or diff_words_with_space)(old_line, new_line)
    return fuse_word_diff(segments, new_tokens, InlineHighlight.ADDED, keep_new_side)

"""
Display-line builders for unified and split layouts.

Both builders walk hunks in order while keeping one cursor per side into
that side's token lines. Old-side lines are context and removed lines;
new-side lines are context and added lines. The cursors therefore line up
with ``extract_sides`` output, which is what gets tokenized.

A run of removed lines directly followed by a run of added lines forms a
change group. Lines at the same position in both runs are paired and
rendered with word-level highlights; the rest render as whole lines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from diffview.core.diff.fusion import (
    render_added_inline,
    render_removed_inline,
    render_tokenized_line,
)
from diffview.core.diff.text_diff import WordDiffFunc
from diffview.core.models import (
    PLAIN_TOKENS,
    DiffLineEntry,
    DiffLineType,
    Hunk,
    LineContent,
    SideTokens,
    SplitLineEntry,
    SplitLines,
)


@dataclass
class _SideLine:
    """A line's text and its index into the side's token lines."""
    text: str
    token_index: int


@dataclass
class _Block:
    """A context line or a change group within a hunk."""
    context: Optional[tuple[_SideLine, _SideLine]] = None
    removed: list[_SideLine] = field(default_factory=list)
    added: list[_SideLine] = field(default_factory=list)

    @property
    def paired(self) -> int:
        return min(len(self.removed), len(self.added))


def _split_blocks(hunks: Sequence[Hunk]) -> list[list[_Block]]:
    """
    Split each hunk into context lines and change groups.

    Token indices run on across hunks, one counter per side. Lines
    without a recognised prefix are treated as context.
    """
    old_index = 0
    new_index = 0
    result: list[list[_Block]] = []

    for hunk in hunks:
        blocks: list[_Block] = []
        lines = hunk.lines
        i = 0
        while i < len(lines):
            prefix = lines[i][:1] or ' '

            if prefix in ('-', '+'):
                block = _Block()
                while i < len(lines) and lines[i][:1] == '-':
                    block.removed.append(_SideLine(lines[i][1:], old_index))
                    old_index += 1
                    i += 1
                while i < len(lines) and lines[i][:1] == '+':
                    block.added.append(_SideLine(lines[i][1:], new_index))
                    new_index += 1
                    i += 1
                blocks.append(block)
            else:
                text = lines[i][1:]
                blocks.append(_Block(context=(
                    _SideLine(text, old_index),
                    _SideLine(text, new_index),
                )))
                old_index += 1
                new_index += 1
                i += 1

        result.append(blocks)

    return result


class LineBuilder:
    """
    Builds the ordered display-line model from hunks.

    Token sets default to plain text; a side that has no tokens
    renders unstyled.
    """

    def __init__(
        self,
        old_tokens: SideTokens = PLAIN_TOKENS,
        new_tokens: SideTokens = PLAIN_TOKENS,
        word_diff: Optional[WordDiffFunc] = None
    ):
        self.old_tokens = old_tokens
        self.new_tokens = new_tokens
        self.word_diff = word_diff

    def build_unified(self, hunks: Sequence[Hunk]) -> list[DiffLineEntry]:
        """Build unified diff lines from hunks."""
        result: list[DiffLineEntry] = []

        for hunk_index, (hunk, blocks) in enumerate(zip(hunks, _split_blocks(hunks))):
            old_num = hunk.old_start
            new_num = hunk.new_start

            for block in blocks:
                if block.context is not None:
                    old_line, _ = block.context
                    result.append(DiffLineEntry(
                        old_num, new_num, ' ',
                        render_tokenized_line(old_line.text, self.old_tokens.for_line(old_line.token_index)),
                        DiffLineType.CONTEXT, hunk_index
                    ))
                    old_num += 1
                    new_num += 1
                    continue

                for line in self._render_removed(block):
                    result.append(DiffLineEntry(old_num, None, '-', line, DiffLineType.REMOVED, hunk_index))
                    old_num += 1
                for line in self._render_added(block):
                    result.append(DiffLineEntry(None, new_num, '+', line, DiffLineType.ADDED, hunk_index))
                    new_num += 1

        return result

    def build_split(self, hunks: Sequence[Hunk]) -> SplitLines:
        """Build split diff columns from hunks (removed on left, added on right)."""
        split = SplitLines()
        left = split.left
        right = split.right

        for hunk_index, (hunk, blocks) in enumerate(zip(hunks, _split_blocks(hunks))):
            old_num = hunk.old_start
            new_num = hunk.new_start

            for block in blocks:
                if block.context is not None:
                    old_line, new_line = block.context
                    left.append(SplitLineEntry(
                        render_tokenized_line(old_line.text, self.old_tokens.for_line(old_line.token_index)),
                        DiffLineType.CONTEXT, old_num, hunk_index
                    ))
                    right.append(SplitLineEntry(
                        render_tokenized_line(new_line.text, self.new_tokens.for_line(new_line.token_index)),
                        DiffLineType.CONTEXT, new_num, hunk_index
                    ))
                    old_num += 1
                    new_num += 1
                    continue

                removed = self._render_removed(block)
                added = self._render_added(block)
                paired = block.paired

                for j in range(paired):
                    left.append(SplitLineEntry(removed[j], DiffLineType.REMOVED, old_num, hunk_index))
                    right.append(SplitLineEntry(added[j], DiffLineType.ADDED, new_num, hunk_index))
                    old_num += 1
                    new_num += 1
                for content in removed[paired:]:
                    left.append(SplitLineEntry(content, DiffLineType.REMOVED, old_num, hunk_index))
                    right.append(SplitLineEntry.empty(hunk_index))
                    old_num += 1
                for content in added[paired:]:
                    left.append(SplitLineEntry.empty(hunk_index))
                    right.append(SplitLineEntry(content, DiffLineType.ADDED, new_num, hunk_index))
                    new_num += 1

        return split

    def _render_removed(self, block: _Block) -> list[LineContent]:
        """Removed lines of a change group: paired first, then unpaired."""
        paired = block.paired
        rendered = [
            render_removed_inline(
                block.removed[j].text,
                block.added[j].text,
                self.old_tokens.for_line(block.removed[j].token_index),
                self.word_diff,
            )
            for j in range(paired)
        ]
        rendered.extend(
            render_tokenized_line(line.text, self.old_tokens.for_line(line.token_index))
            for line in block.removed[paired:]
        )
        return rendered

    def _render_added(self, block: _Block) -> list[LineContent]:
        """Added lines of a change group: paired first, then unpaired."""
        paired = block.paired
        rendered = [
            render_added_inline(
                block.removed[j].text,
                block.added[j].text,
                self.new_tokens.for_line(block.added[j].token_index),
                self.word_diff,
            )
            for j in range(paired)
        ]
        rendered.extend(
            render_tokenized_line(line.text, self.new_tokens.for_line(line.token_index))
            for line in block.added[paired:]
        )
        return rendered


def build_unified_lines(
    hunks: Sequence[Hunk],
    old_tokens: SideTokens = PLAIN_TOKENS,
    new_tokens: SideTokens = PLAIN_TOKENS
) -> list[DiffLineEntry]:
    """Build unified diff lines from hunks with optional syntax tokens."""
    return LineBuilder(old_tokens, new_tokens).build_unified(hunks)


def build_split_lines(
    hunks: Sequence[Hunk],
    old_tokens: SideTokens = PLAIN_TOKENS,
    new_tokens: SideTokens = PLAIN_TOKENS
) -> SplitLines:
    """Build split diff lines from hunks with optional syntax tokens."""
    return LineBuilder(old_tokens, new_tokens).build_split(hunks)

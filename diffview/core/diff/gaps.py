"""
Gap computation and hunk grouping.

A gap is a run of unchanged original-file lines that the hunks leave out.
Gaps together with the hunks' old-line ranges cover the whole original
file, so revealing every gap reproduces the full file around the changes.
"""

from __future__ import annotations

from itertools import groupby
from typing import Protocol, Sequence, TypeVar

from diffview.core.models import Gap, GapMap, Hunk


class _HasHunkIndex(Protocol):
    hunk_index: int


E = TypeVar('E', bound=_HasHunkIndex)


def compute_gap_map(hunks: Sequence[Hunk], original_file_lines: Sequence[str]) -> GapMap:
    """
    Compute the gaps before, between and after hunks.

    Gap at key 0 = lines before the first hunk.
    Gap at key N = lines between hunk N-1 and hunk N.
    The trailing gap (lines after the last hunk) is returned separately.

    Hunk coordinates past the end of the file clamp to empty slices.

    Args:
        hunks: Hunks ordered by ``old_start``
        original_file_lines: Lines of the full old file (0-based)

    Returns:
        GapMap with only the non-empty gaps.
    """
    gap_map = GapMap()
    if not hunks:
        return gap_map

    # New-side numbers follow from the hunk after the gap: unchanged lines
    # keep the old-to-new offset that hunk starts with.
    first = hunks[0]
    if first.old_start > 1:
        end_line = first.old_start - 1  # 1-based inclusive
        lines = tuple(original_file_lines[:end_line])
        if lines:
            gap_map.gaps[0] = Gap(lines, 1, first.new_start - first.old_start + 1)

    for i in range(1, len(hunks)):
        prev = hunks[i - 1]
        curr = hunks[i]
        gap_start = prev.old_start + prev.old_lines  # first line after prev
        gap_end = curr.old_start - 1
        if gap_end >= gap_start:
            lines = tuple(original_file_lines[gap_start - 1:gap_end])
            if lines:
                offset = curr.new_start - curr.old_start
                gap_map.gaps[i] = Gap(lines, gap_start, gap_start + offset)

    last = hunks[-1]
    trailing_start = last.old_start + last.old_lines
    if 1 <= trailing_start <= len(original_file_lines):
        offset = (last.new_start + last.new_lines) - trailing_start
        gap_map.trailing = Gap(
            tuple(original_file_lines[trailing_start - 1:]),
            trailing_start,
            trailing_start + offset,
        )

    return gap_map


def group_by_hunk(entries: Sequence[E]) -> list[list[E]]:
    """
    Split entries into contiguous runs of equal ``hunk_index``.

    Order is preserved and runs are never merged, even when two
    non-adjacent runs share an index.
    """
    return [list(run) for _, run in groupby(entries, key=lambda entry: entry.hunk_index)]

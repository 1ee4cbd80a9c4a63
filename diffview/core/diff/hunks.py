"""
Hunk sources and hunk helpers.

Provides:
- Normalizing two raw texts into a single hunk
- Parsing unified patch text into hunks
- Building a multi-hunk structured patch with context
- Extracting each side's source text for tokenization
"""

from __future__ import annotations

import difflib
import logging
import re
from typing import Iterable, Optional, Sequence

from diffview.core.diff.text_diff import LineDiffFunc, diff_lines, split_file_lines
from diffview.core.exceptions import PatchParseError
from diffview.core.models import Hunk


_HUNK_HEADER = re.compile(r'^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@')

NO_NEWLINE_MARKER = '\\'


def raw_diff_to_hunks(
    old_text: str,
    new_text: str,
    line_diff: Optional[LineDiffFunc] = None
) -> list[Hunk]:
    """
    Convert two raw texts into a single normalized hunk.

    Every line of both texts appears in the hunk, so the hunk starts at
    line 1 on both sides and no context is ever hidden.

    Args:
        old_text: Full content of the old file
        new_text: Full content of the new file
        line_diff: Line diff function; defaults to the difflib adapter

    Returns:
        A list holding exactly one hunk.
    """
    changes = (line_diff or diff_lines)(old_text, new_text)

    lines: list[str] = []
    old_lines = 0
    new_lines = 0

    for change in changes:
        prefix = '+' if change.added else '-' if change.removed else ' '
        value = change.value[:-1] if change.value.endswith('\n') else change.value
        for line in value.split('\n'):
            lines.append(prefix + line)
            if change.added:
                new_lines += 1
            elif change.removed:
                old_lines += 1
            else:
                old_lines += 1
                new_lines += 1

    return [Hunk(old_start=1, old_lines=old_lines, new_start=1, new_lines=new_lines, lines=tuple(lines))]


def parse_unified_patch(patch: str | Iterable[str]) -> list[Hunk]:
    """
    Parse unified diff text into hunks.

    File headers (``---``/``+++``) and any text outside a hunk are
    skipped; a hunk ends once its header counts are used up.
    ``\\ No newline at end of file`` markers are dropped. Lines break at
    ``\\n`` only, so a ``\\r`` before it stays part of the line.

    Args:
        patch: Patch text, or an iterable of its lines

    Returns:
        Hunks in patch order.

    Raises:
        PatchParseError: If a hunk header is malformed.
    """
    raw_lines = split_file_lines(patch) if isinstance(patch, str) else [
        line[:-1] if line.endswith('\n') else line for line in patch
    ]

    hunks: list[Hunk] = []
    header: Optional[tuple[int, int, int, int]] = None
    body: list[str] = []
    old_left = new_left = 0

    for number, line in enumerate(raw_lines, start=1):
        if line.startswith('@@'):
            if header is not None:
                hunks.append(_make_hunk(header, body))
            header = _parse_header(line, number)
            body = []
            _, old_left, _, new_left = header
        elif header is None or line.startswith(NO_NEWLINE_MARKER):
            continue
        elif old_left > 0 or new_left > 0:
            body.append(line)
            prefix = line[:1]
            if prefix != '+':
                old_left -= 1
            if prefix != '-':
                new_left -= 1

    if header is not None:
        hunks.append(_make_hunk(header, body))

    logging.debug(f"parse_unified_patch - parsed {len(hunks)} hunk(s)")
    return hunks


def structured_patch(old_text: str, new_text: str, context_lines: int = 3) -> list[Hunk]:
    """
    Build context-limited hunks for two texts, as a VCS patch would.

    Unlike ``raw_diff_to_hunks`` this leaves unchanged regions outside the
    context window out of the hunks, so they can be shown as gaps.
    """
    old = split_file_lines(old_text)
    new = split_file_lines(new_text)
    return parse_unified_patch(
        difflib.unified_diff(old, new, lineterm='', n=context_lines)
    )


def extract_sides(hunks: Sequence[Hunk]) -> tuple[str, str]:
    """
    Extract old-side and new-side source text from hunks for tokenization.

    Old side = context lines + removed lines (in order).
    New side = context lines + added lines (in order).
    """
    old_lines: list[str] = []
    new_lines: list[str] = []
    for hunk in hunks:
        for line in hunk.lines:
            prefix = line[:1] or ' '
            text = line[1:]
            if prefix == '-':
                old_lines.append(text)
            elif prefix == '+':
                new_lines.append(text)
            else:
                old_lines.append(text)
                new_lines.append(text)
    return '\n'.join(old_lines), '\n'.join(new_lines)


def count_hunk_lines(hunks: Sequence[Hunk]) -> int:
    """Count the total number of lines across all hunks."""
    return sum(len(hunk.lines) for hunk in hunks)


def _parse_header(line: str, number: int) -> tuple[int, int, int, int]:
    """Parse ``@@ -start[,count] +start[,count] @@``; omitted counts are 1."""
    match = _HUNK_HEADER.match(line)
    if not match:
        raise PatchParseError(f"malformed hunk header {line!r}", number)
    old_start, old_count, new_start, new_count = match.groups()
    return (
        int(old_start),
        int(old_count) if old_count is not None else 1,
        int(new_start),
        int(new_count) if new_count is not None else 1,
    )


def _make_hunk(header: tuple[int, int, int, int], body: list[str]) -> Hunk:
    old_start, old_count, new_start, new_count = header
    # An empty side is reported one line before its insertion point
    if old_count == 0:
        old_start += 1
    if new_count == 0:
        new_start += 1
    return Hunk(old_start, old_count, new_start, new_count, tuple(body))

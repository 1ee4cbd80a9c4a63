"""
Line and word diff functions.

Thin adapters over ``difflib.SequenceMatcher`` that report changes as an
ordered list of ``Change`` chunks:
- Line diff: chunks of whole lines (newlines kept)
- Word diff: chunks of words, punctuation and whitespace runs

Both keep every character of their inputs, so either side can be rebuilt
exactly from the chunks. Whitespace runs are compared as tokens of their
own rather than folded into neighbouring words, which keeps indentation
intact when two lines differ only in leading whitespace.
"""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from diffview.core.models import Change


# Whitespace runs, word runs, then single punctuation characters.
_WORD_PATTERN = re.compile(r'\s+|\w+|[^\w\s]')

# Lines end at "\n" only; "\r", form feeds and the like stay inside a line.
_LINE_PATTERN = re.compile(r'[^\n]*\n|[^\n]+')


@dataclass
class TextCompareOptions:
    """Options for text comparison."""
    autojunk: bool = False
    junk_filter: Optional[Callable[[str], bool]] = None


LineDiffFunc = Callable[[str, str], list[Change]]
WordDiffFunc = Callable[[str, str], list[Change]]


class TextDiffEngine:
    """
    Engine for line-level and word-level comparison.

    Supports options for controlling how ``difflib`` matches
    sequences.
    """

    def __init__(self, options: Optional[TextCompareOptions] = None):
        self.options = options or TextCompareOptions()

    def diff_lines(self, old_text: str, new_text: str) -> list[Change]:
        """
        Compare two texts line by line.

        Args:
            old_text: Full content of the old file
            new_text: Full content of the new file

        Returns:
            Ordered chunks; each value is one or more whole lines
            including their line endings.
        """
        return self._diff_sequences(
            split_lines_keepends(old_text),
            split_lines_keepends(new_text),
        )

    def diff_words(self, old_line: str, new_line: str) -> list[Change]:
        """
        Compare two lines word by word, keeping whitespace runs as tokens.

        Returns:
            Ordered chunks; removed chunks precede added chunks
            within a replaced region.
        """
        return self._diff_sequences(self._tokenize(old_line), self._tokenize(new_line))

    def _diff_sequences(self, left: Sequence[str], right: Sequence[str]) -> list[Change]:
        """Build merged change chunks from matcher opcodes."""
        matcher = difflib.SequenceMatcher(
            self.options.junk_filter, left, right, autojunk=self.options.autojunk
        )

        changes: list[Change] = []
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == 'equal':
                self._append(changes, ''.join(left[i1:i2]))
            elif tag == 'delete':
                self._append(changes, ''.join(left[i1:i2]), removed=True)
            elif tag == 'insert':
                self._append(changes, ''.join(right[j1:j2]), added=True)
            elif tag == 'replace':
                self._append(changes, ''.join(left[i1:i2]), removed=True)
                self._append(changes, ''.join(right[j1:j2]), added=True)
        return changes

    @staticmethod
    def _append(
        changes: list[Change],
        value: str,
        added: bool = False,
        removed: bool = False
    ) -> None:
        """Append a chunk, merging it into the previous one of the same kind."""
        if not value:
            return
        if changes and changes[-1].added == added and changes[-1].removed == removed:
            changes[-1] = Change(changes[-1].value + value, added, removed)
        else:
            changes.append(Change(value, added, removed))

    def _tokenize(self, text: str) -> list[str]:
        """Tokenize text into words, punctuation and whitespace."""
        return _WORD_PATTERN.findall(text)


def split_lines_keepends(text: str) -> list[str]:
    """Split text into lines at ``\\n``, keeping each line's newline."""
    return _LINE_PATTERN.findall(text)


def split_file_lines(text: str) -> list[str]:
    """Split file content into lines; a final newline does not add a line."""
    if not text:
        return []
    lines = text.split('\n')
    if lines[-1] == '':
        lines.pop()
    return lines


_default_engine = TextDiffEngine()


def diff_lines(old_text: str, new_text: str) -> list[Change]:
    """Line diff with default options."""
    return _default_engine.diff_lines(old_text, new_text)


def diff_words_with_space(old_line: str, new_line: str) -> list[Change]:
    """Whitespace-preserving word diff with default options."""
    return _default_engine.diff_words(old_line, new_line)


def reconstruct(changes: Sequence[Change], side: str) -> str:
    """
    Rebuild one side's text from diff chunks.

    Args:
        changes: Chunks from a line or word diff
        side: ``'old'`` or ``'new'``
    """
    if side == 'old':
        return ''.join(c.value for c in changes if not c.added)
    if side == 'new':
        return ''.join(c.value for c in changes if not c.removed)
    raise ValueError(f"Unknown side: {side!r}")

"""
Core data models for the diff rendering engine.

This module defines all data structures used across the engine:
- Patch models (hunks, line/word diff changes)
- Syntax token models
- Rendered line content (fragments)
- Unified and split line entries
- Gap models
- Display rows consumed by a list UI

All models are designed to be:
- UI-agnostic (can be used with any frontend)
- Type-hinted for IDE support
- Immutable where practical
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Mapping, Optional, Sequence, Union


# =============================================================================
# Enumerations
# =============================================================================

class DiffLineType(Enum):
    """Type of line in a rendered diff."""
    CONTEXT = "context"  # Unchanged line, shown for context
    ADDED = "added"      # Line exists only in the new file
    REMOVED = "removed"  # Line exists only in the old file
    EMPTY = "empty"      # Placeholder for split-view alignment


class ViewMode(Enum):
    """Diff layout."""
    UNIFIED = "unified"
    SPLIT = "split"

    @classmethod
    def from_string(cls, value: str) -> 'ViewMode':
        """Create from string value, defaulting to unified."""
        for mode in cls:
            if mode.value == value.lower():
                return mode
        try:
            return cls[value.upper()]
        except KeyError:
            return cls.UNIFIED


class InlineHighlight(Enum):
    """Word-level highlight applied to a changed segment of a paired line."""
    REMOVED = auto()
    ADDED = auto()


class GapAffordance(Enum):
    """Controls offered by a gap separator."""
    NONE = auto()          # Nothing hidden; separator is omitted
    EXPAND_ALL = auto()    # Few enough lines hidden to reveal in one click
    EXPAND_EDGES = auto()  # Reveal from either edge, one step at a time


# =============================================================================
# Patch Models
# =============================================================================

@dataclass(frozen=True)
class Change:
    """
    One chunk of a line-level or word-level diff.

    Concatenating the values of all chunks that are not ``added`` rebuilds
    the old text; concatenating all chunks that are not ``removed`` rebuilds
    the new text.
    """
    value: str
    added: bool = False
    removed: bool = False

    @property
    def is_change(self) -> bool:
        return self.added or self.removed


@dataclass(frozen=True)
class Hunk:
    """
    A contiguous block of a patch.

    ``lines`` holds prefixed strings: ``'+'`` for added, ``'-'`` for removed
    and ``' '`` for context lines.
    """
    old_start: int        # Starting line number in old file (1-indexed)
    old_lines: int        # Number of lines from old file
    new_start: int        # Starting line number in new file (1-indexed)
    new_lines: int        # Number of lines from new file
    lines: tuple[str, ...] = ()

    @property
    def header(self) -> str:
        """Generate unified diff hunk header."""
        return f"@@ -{self.old_start},{self.old_lines} +{self.new_start},{self.new_lines} @@"

    @property
    def old_end(self) -> int:
        """First old-file line number after this hunk."""
        return self.old_start + self.old_lines

    @property
    def change_count(self) -> int:
        """Count of added and removed lines."""
        return sum(1 for line in self.lines if line[:1] in ('+', '-'))


# =============================================================================
# Syntax Token Models
# =============================================================================

TokenStyle = Mapping[str, str]


@dataclass(frozen=True)
class Token:
    """A styled span of source text from a syntax highlighter."""
    content: str
    style: Optional[TokenStyle] = None


TokenLine = tuple[Token, ...]


@dataclass(frozen=True)
class SideTokens:
    """
    Per-line token arrays for one side of a diff.

    ``lines is None`` means no highlighting is available for the side
    (unknown language, over the highlight ceiling, or not tokenized yet).
    Use ``PLAIN_TOKENS`` for that state.
    """
    lines: Optional[tuple[TokenLine, ...]] = None

    @classmethod
    def from_lines(cls, lines: Sequence[Sequence[Token]]) -> 'SideTokens':
        return cls(tuple(tuple(line) for line in lines))

    @property
    def is_plain(self) -> bool:
        return self.lines is None

    def for_line(self, index: int) -> Optional[TokenLine]:
        """Tokens for the side's ``index``-th line, or None if unavailable."""
        if self.lines is None or index < 0 or index >= len(self.lines):
            return None
        return self.lines[index]


PLAIN_TOKENS = SideTokens()


# =============================================================================
# Rendered Content
# =============================================================================

@dataclass(frozen=True)
class Fragment:
    """
    One span of rendered line content.

    Carries the token style of the syntax highlighter (if any) and the
    word-diff highlight of the segment it came from (if any).
    """
    text: str
    style: Optional[TokenStyle] = None
    highlight: Optional[InlineHighlight] = None


@dataclass(frozen=True)
class LineContent:
    """Rendered content of one line: an ordered run of fragments."""
    fragments: tuple[Fragment, ...] = ()

    @classmethod
    def plain(cls, text: str) -> 'LineContent':
        """Unstyled content for ``text``."""
        return cls((Fragment(text),) if text else ())

    @property
    def text(self) -> str:
        """The line's text, exactly as it appears in the file."""
        return ''.join(fragment.text for fragment in self.fragments)

    @property
    def has_highlight(self) -> bool:
        return any(fragment.highlight is not None for fragment in self.fragments)

    @property
    def is_styled(self) -> bool:
        return any(fragment.style is not None for fragment in self.fragments)

    def __iter__(self) -> Iterator[Fragment]:
        return iter(self.fragments)

    def __len__(self) -> int:
        return len(self.fragments)


EMPTY_CONTENT = LineContent()


# =============================================================================
# Line Entries
# =============================================================================

@dataclass
class DiffLineEntry:
    """A single unified diff line."""
    old_num: Optional[int]
    new_num: Optional[int]
    prefix: str
    content: LineContent
    type: DiffLineType
    hunk_index: int  # Index of the hunk this line belongs to

    @property
    def text(self) -> str:
        return self.content.text


@dataclass
class SplitLineEntry:
    """A single line of one column in a split diff."""
    content: LineContent
    type: DiffLineType
    num: Optional[int]
    hunk_index: int

    @classmethod
    def empty(cls, hunk_index: int) -> 'SplitLineEntry':
        """Alignment placeholder for the column without a counterpart."""
        return cls(EMPTY_CONTENT, DiffLineType.EMPTY, None, hunk_index)

    @property
    def prefix(self) -> str:
        prefixes = {
            DiffLineType.ADDED: '+',
            DiffLineType.REMOVED: '-',
        }
        return prefixes.get(self.type, ' ')

    @property
    def text(self) -> str:
        return self.content.text


@dataclass
class SplitLines:
    """Left and right columns of a split diff; always the same length."""
    left: list[SplitLineEntry] = field(default_factory=list)
    right: list[SplitLineEntry] = field(default_factory=list)

    def rows(self) -> Iterator[tuple[SplitLineEntry, SplitLineEntry]]:
        return zip(self.left, self.right)

    def __len__(self) -> int:
        return len(self.left)


# =============================================================================
# Gap Models
# =============================================================================

GapKey = Union[int, str]

TRAILING_GAP_KEY = "trailing"


@dataclass(frozen=True)
class Gap:
    """
    A run of unchanged original-file lines hidden between or around hunks.

    ``start_line_number`` is the old-file number of the first line.
    ``new_start_line_number`` is the same line's number in the new file.
    """
    lines: tuple[str, ...]
    start_line_number: int
    new_start_line_number: Optional[int] = None

    @property
    def total(self) -> int:
        return len(self.lines)

    @property
    def new_start(self) -> int:
        if self.new_start_line_number is None:
            return self.start_line_number
        return self.new_start_line_number

    def old_number(self, index: int) -> int:
        """Old-file line number of the gap line at ``index``."""
        return self.start_line_number + index

    def new_number(self, index: int) -> int:
        """New-file line number of the gap line at ``index``."""
        return self.new_start + index


@dataclass
class GapMap:
    """
    Gaps keyed by the index of the hunk they precede, plus a trailing gap.

    Key 0 is the gap before the first hunk; key ``i`` is the gap between
    hunk ``i - 1`` and hunk ``i``.
    """
    gaps: dict[int, Gap] = field(default_factory=dict)
    trailing: Optional[Gap] = None

    def get(self, key: GapKey) -> Optional[Gap]:
        if key == TRAILING_GAP_KEY:
            return self.trailing
        return self.gaps.get(key)

    def keys(self) -> list[GapKey]:
        keys: list[GapKey] = sorted(self.gaps)
        if self.trailing is not None:
            keys.append(TRAILING_GAP_KEY)
        return keys

    @property
    def is_empty(self) -> bool:
        return not self.gaps and self.trailing is None

    @property
    def hidden_line_count(self) -> int:
        return sum(gap.total for gap in self.gaps.values()) + (
            self.trailing.total if self.trailing else 0
        )


# =============================================================================
# Display Rows
# =============================================================================

@dataclass
class DiffLineRow:
    """A unified diff line."""
    entry: DiffLineEntry

    @property
    def hunk_index(self) -> int:
        return self.entry.hunk_index


@dataclass
class SplitRow:
    """One row of a split diff: a left and a right cell."""
    left: SplitLineEntry
    right: SplitLineEntry

    @property
    def hunk_index(self) -> int:
        return self.left.hunk_index


@dataclass
class GapLineRow:
    """A revealed, unchanged line from a gap."""
    gap_key: GapKey
    index: int  # Position of the line within its gap
    old_num: int
    new_num: int
    content: LineContent

    @property
    def text(self) -> str:
        return self.content.text


@dataclass
class GapSeparatorRow:
    """The control row standing in for a gap's hidden lines."""
    gap_key: GapKey
    hidden_count: int
    affordance: GapAffordance
    label: str
    is_first: bool = False
    is_last: bool = False
    tokenizing: bool = False


DisplayRow = Union[DiffLineRow, SplitRow, GapLineRow, GapSeparatorRow]


@dataclass
class DiffRenderModel:
    """
    Complete renderable line model of a diff.

    Rows are in display order and ready for a generic list UI.
    """
    view_mode: ViewMode
    rows: list[DisplayRow] = field(default_factory=list)
    gap_map: Optional[GapMap] = None
    file_path: Optional[str] = None
    language: Optional[str] = None

    @property
    def has_gaps(self) -> bool:
        return self.gap_map is not None and not self.gap_map.is_empty

    def iter_separators(self) -> Iterator[GapSeparatorRow]:
        for row in self.rows:
            if isinstance(row, GapSeparatorRow):
                yield row

    def separator_for(self, key: GapKey) -> Optional[GapSeparatorRow]:
        for row in self.iter_separators():
            if row.gap_key == key:
                return row
        return None

    def __len__(self) -> int:
        return len(self.rows)

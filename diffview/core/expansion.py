"""
Incremental disclosure of gap lines.

Each gap has a reveal state: how many lines are shown from its top
edge (next to the preceding hunk) and from its bottom edge (next to
the following hunk). The reducers below are the only way that state
changes. ``GapExpansionController`` wraps them for one gap instance and
tokenizes newly revealed lines on demand.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from functools import partial
from typing import Mapping, Optional, Sequence

from PyQt6.QtCore import QObject, pyqtSignal

from diffview.core.diff.fusion import render_tokenized_line
from diffview.core.models import (
    Gap,
    GapAffordance,
    GapKey,
    GapLineRow,
    GapSeparatorRow,
    TokenLine,
)
from diffview.services.language_map import guess_language
from diffview.services.tokenizer import TokenizerService


GAP_EXPAND_STEP = 10


@dataclass(frozen=True)
class GapReveal:
    """Revealed line counts at the top and bottom edges of a gap."""
    top: int = 0
    bottom: int = 0

    def hidden(self, total: int) -> int:
        return max(0, total - self.top - self.bottom)


HIDDEN = GapReveal()


# =============================================================================
# Reducers
# =============================================================================

def expand_top(reveal: GapReveal, total: int, step: int = GAP_EXPAND_STEP) -> GapReveal:
    """Reveal up to ``step`` more lines below the preceding hunk."""
    hidden = reveal.hidden(total)
    if hidden == 0:
        return reveal
    return replace(reveal, top=reveal.top + min(step, hidden))


def expand_bottom(reveal: GapReveal, total: int, step: int = GAP_EXPAND_STEP) -> GapReveal:
    """Reveal up to ``step`` more lines above the following hunk."""
    hidden = reveal.hidden(total)
    if hidden == 0:
        return reveal
    return replace(reveal, bottom=reveal.bottom + min(step, hidden))


def expand_all(reveal: GapReveal, total: int) -> GapReveal:
    """Reveal the whole gap in one step."""
    if reveal.hidden(total) == 0:
        return reveal
    return GapReveal(top=total, bottom=0)


def affordance_for(hidden: int, step: int = GAP_EXPAND_STEP) -> GapAffordance:
    if hidden <= 0:
        return GapAffordance.NONE
    if hidden <= step:
        return GapAffordance.EXPAND_ALL
    return GapAffordance.EXPAND_EDGES


def hidden_label(hidden: int) -> str:
    return f"{hidden} line{'' if hidden == 1 else 's'} hidden"


def revealed_indices(reveal: GapReveal, total: int) -> list[int]:
    """Gap line indices currently shown, top edge first."""
    top = min(reveal.top, total)
    bottom_start = max(top, total - reveal.bottom)
    return list(range(top)) + list(range(bottom_start, total))


# =============================================================================
# Row Builders
# =============================================================================

def gap_line_rows(
    key: GapKey,
    gap: Gap,
    reveal: GapReveal,
    tokens: Optional[Mapping[int, TokenLine]] = None
) -> tuple[list[GapLineRow], list[GapLineRow]]:
    """Rows for the revealed top and bottom lines of a gap."""
    tokens = tokens or {}
    total = gap.total
    top = min(reveal.top, total)
    bottom_start = max(top, total - reveal.bottom)

    def row(index: int) -> GapLineRow:
        return GapLineRow(
            key, index,
            gap.old_number(index),
            gap.new_number(index),
            render_tokenized_line(gap.lines[index], tokens.get(index)),
        )

    return [row(i) for i in range(top)], [row(i) for i in range(bottom_start, total)]


def gap_separator_row(
    key: GapKey,
    gap: Gap,
    reveal: GapReveal,
    step: int = GAP_EXPAND_STEP,
    leading: bool = False,
    trailing: bool = False,
    tokenizing: bool = False
) -> Optional[GapSeparatorRow]:
    """
    The separator for a gap, or None once nothing is hidden.

    ``leading``/``trailing`` mark the gap at the very top or bottom of the
    diff; the separator is only flagged first/last while no lines sit
    between it and that edge.
    """
    hidden = reveal.hidden(gap.total)
    if hidden == 0:
        return None
    return GapSeparatorRow(
        gap_key=key,
        hidden_count=hidden,
        affordance=affordance_for(hidden, step),
        label=hidden_label(hidden),
        is_first=leading and reveal.top == 0,
        is_last=trailing and reveal.bottom == 0,
        tokenizing=tokenizing,
    )


# =============================================================================
# Controller
# =============================================================================

class GapExpansionController(QObject):
    """
    Reveal state and lazily tokenized lines for one gap.

    Only lines that have never been tokenized are sent to the tokenizer,
    joined into a single request per reveal. Every reveal bumps a
    generation counter and cancels the request it supersedes; a result
    whose generation is no longer current is discarded. The line-index token cache belongs to this instance
    alone.
    """

    reveal_changed = pyqtSignal(object)   # GapReveal
    tokens_changed = pyqtSignal()
    tokenizing_changed = pyqtSignal(bool)

    def __init__(
        self,
        key: GapKey,
        gap: Gap,
        file_path: Optional[str] = None,
        tokenizer: Optional[TokenizerService] = None,
        step: int = GAP_EXPAND_STEP,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.key = key
        self.gap = gap
        self.step = step
        self._lang = guess_language(file_path)
        self._tokenizer = tokenizer
        self._reveal = HIDDEN
        self._tokens: dict[int, TokenLine] = {}
        self._generation = 0
        self._tokenizing = False
        self._disposed = False
        self._request: Optional[str] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def reveal(self) -> GapReveal:
        return self._reveal

    @property
    def total(self) -> int:
        return self.gap.total

    @property
    def hidden(self) -> int:
        return self._reveal.hidden(self.gap.total)

    @property
    def affordance(self) -> GapAffordance:
        return affordance_for(self.hidden, self.step)

    @property
    def tokenizing(self) -> bool:
        return self._tokenizing

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def tokens(self) -> Mapping[int, TokenLine]:
        """Tokenized lines by gap line index."""
        return dict(self._tokens)

    # -------------------------------------------------------------------------
    # Reveal operations
    # -------------------------------------------------------------------------

    def expand_top(self) -> bool:
        """Grow the top edge. Returns True if anything changed."""
        return self._apply(expand_top(self._reveal, self.gap.total, self.step))

    def expand_bottom(self) -> bool:
        """Grow the bottom edge. Returns True if anything changed."""
        return self._apply(expand_bottom(self._reveal, self.gap.total, self.step))

    def expand_all(self) -> bool:
        """Reveal every hidden line. Returns True if anything changed."""
        return self._apply(expand_all(self._reveal, self.gap.total))

    # The separator's arrow labels point away from the edge they grow:
    # "expand down" reveals below the preceding hunk (top edge) and
    # "expand up" reveals above the following hunk (bottom edge).
    expand_down = expand_top
    expand_up = expand_bottom

    def dispose(self) -> None:
        """Cancel any in-flight tokenization and drop its result."""
        self._disposed = True
        self._generation += 1
        self._cancel_request()

    # -------------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------------

    def line_rows(self) -> tuple[list[GapLineRow], list[GapLineRow]]:
        return gap_line_rows(self.key, self.gap, self._reveal, self._tokens)

    def separator_row(self, leading: bool = False, trailing: bool = False) -> Optional[GapSeparatorRow]:
        return gap_separator_row(
            self.key, self.gap, self._reveal, self.step,
            leading=leading, trailing=trailing, tokenizing=self._tokenizing,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _apply(self, reveal: GapReveal) -> bool:
        if reveal == self._reveal or self._disposed:
            return False
        self._reveal = reveal
        self._generation += 1
        self._cancel_request()
        self.reveal_changed.emit(reveal)
        self._tokenize_revealed()
        return True

    def _tokenize_revealed(self) -> None:
        if self._lang is None or self._tokenizer is None:
            return

        indices = [
            i for i in revealed_indices(self._reveal, self.gap.total)
            if i not in self._tokens
        ]
        if not indices:
            self._set_tokenizing(False)
            return

        code = '\n'.join(self.gap.lines[i] for i in indices)

        cached = self._tokenizer.get_cached(self._lang, code)
        if cached is not None:
            self._merge(indices, cached)
            self._set_tokenizing(False)
            return

        self._set_tokenizing(True)
        logging.debug(f"GapExpansionController - tokenizing {len(indices)} lines of gap {self.key}")
        self._request = self._tokenizer.tokenize_async(
            self._lang, code, partial(self._on_tokens, self._generation, indices)
        )

    def _on_tokens(
        self,
        generation: int,
        indices: Sequence[int],
        tokens: Optional[Sequence[TokenLine]]
    ) -> None:
        if generation != self._generation:
            logging.debug(f"GapExpansionController - discarding stale tokens for gap {self.key}")
            return

        self._request = None
        self._set_tokenizing(False)
        if tokens is not None:
            self._merge(indices, tokens)

    def _cancel_request(self) -> None:
        if self._request is not None:
            self._tokenizer.cancel(self._request)
            self._request = None

    def _merge(self, indices: Sequence[int], tokens: Sequence[TokenLine]) -> None:
        for index, line_tokens in zip(indices, tokens):
            self._tokens[index] = tuple(line_tokens)
        self.tokens_changed.emit()

    def _set_tokenizing(self, value: bool) -> None:
        if value != self._tokenizing:
            self._tokenizing = value
            self.tokenizing_changed.emit(value)

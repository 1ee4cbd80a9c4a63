"""
Top-level diff rendering.

``render`` is a pure function from hunks, tokens and reveal states to the
display-row model. ``DiffTokenLoader`` and ``DiffViewModel`` hold the state
that feeds it: whole-diff syntax tokens, one ``GapExpansionController`` per
gap, and the chosen layout.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Collection, Mapping, Optional, Sequence, Union

from PyQt6.QtCore import QObject, pyqtSignal

from diffview.core.diff.gaps import compute_gap_map, group_by_hunk
from diffview.core.diff.hunks import count_hunk_lines, extract_sides
from diffview.core.diff.line_builder import LineBuilder
from diffview.core.diff.text_diff import split_file_lines
from diffview.core.expansion import (
    GAP_EXPAND_STEP,
    HIDDEN,
    GapExpansionController,
    GapReveal,
    gap_line_rows,
    gap_separator_row,
)
from diffview.core.models import (
    PLAIN_TOKENS,
    TRAILING_GAP_KEY,
    DiffLineRow,
    DiffRenderModel,
    Gap,
    GapKey,
    GapMap,
    Hunk,
    SideTokens,
    SplitRow,
    TokenLine,
    ViewMode,
)
from diffview.services.language_map import guess_language
from diffview.services.tokenizer import TokenizerService


HIGHLIGHT_LINE_LIMIT = 1000


def render(
    hunks: Sequence[Hunk],
    view_mode: Union[ViewMode, str] = ViewMode.UNIFIED,
    file_path: Optional[str] = None,
    original_file: Optional[str] = None,
    *,
    old_tokens: SideTokens = PLAIN_TOKENS,
    new_tokens: SideTokens = PLAIN_TOKENS,
    reveals: Optional[Mapping[GapKey, GapReveal]] = None,
    gap_tokens: Optional[Mapping[GapKey, Mapping[int, TokenLine]]] = None,
    tokenizing: Collection[GapKey] = (),
    gap_map: Optional[GapMap] = None,
    step: int = GAP_EXPAND_STEP
) -> DiffRenderModel:
    """
    Render hunks into an ordered row model for a list UI.

    Without an original file (and no precomputed ``gap_map``) the rows are
    just the diff lines. Otherwise every hunk group is preceded by its gap
    and the last group is followed by the trailing gap. A gap contributes
    its revealed top lines, its separator while any line is hidden, and
    its revealed bottom lines.

    Args:
        hunks: Hunks ordered by ``old_start``
        view_mode: Unified or split layout
        file_path: Path used to name the language of the diff
        original_file: Full old-file content, enables gaps
        old_tokens: Old-side token lines, or PLAIN_TOKENS
        new_tokens: New-side token lines, or PLAIN_TOKENS
        reveals: Reveal state per gap key; missing keys are fully hidden
        gap_tokens: Tokenized gap lines per gap key, by line index
        tokenizing: Gap keys with a tokenization request in flight
        gap_map: Precomputed gaps, used instead of ``original_file``
        step: Lines revealed per edge expansion

    Returns:
        The display-row model.
    """
    if isinstance(view_mode, str):
        view_mode = ViewMode.from_string(view_mode)

    if gap_map is None and original_file is not None:
        gap_map = compute_gap_map(hunks, split_file_lines(original_file))

    builder = LineBuilder(old_tokens, new_tokens)
    if view_mode is ViewMode.SPLIT:
        line_rows: list = [SplitRow(left, right) for left, right in builder.build_split(hunks).rows()]
    else:
        line_rows = [DiffLineRow(entry) for entry in builder.build_unified(hunks)]

    model = DiffRenderModel(
        view_mode=view_mode,
        gap_map=gap_map,
        file_path=file_path,
        language=guess_language(file_path),
    )

    if gap_map is None:
        model.rows = line_rows
        return model

    reveals = reveals or {}
    gap_tokens = gap_tokens or {}

    def add_gap(key: GapKey, gap: Gap, leading: bool = False, trailing: bool = False) -> None:
        reveal = reveals.get(key, HIDDEN)
        top, bottom = gap_line_rows(key, gap, reveal, gap_tokens.get(key))
        model.rows.extend(top)
        separator = gap_separator_row(
            key, gap, reveal, step,
            leading=leading, trailing=trailing, tokenizing=key in tokenizing,
        )
        if separator is not None:
            model.rows.append(separator)
        model.rows.extend(bottom)

    groups = group_by_hunk(line_rows)
    for n, group in enumerate(groups):
        hunk_index = group[0].hunk_index
        gap = gap_map.gaps.get(hunk_index)
        if gap is not None:
            add_gap(hunk_index, gap, leading=n == 0)

        model.rows.extend(group)

        if n == len(groups) - 1 and gap_map.trailing is not None:
            add_gap(TRAILING_GAP_KEY, gap_map.trailing, trailing=True)

    return model


class DiffTokenLoader(QObject):
    """
    Whole-diff syntax tokens for both sides.

    Each ``load`` cancels the previous requests and bumps the generation
    of both sides, so results for earlier hunks are discarded. Diffs over
    the line limit, or in a language without a lexer, stay plain.
    """

    tokens_changed = pyqtSignal()

    SIDES = ('old', 'new')

    def __init__(
        self,
        tokenizer: Optional[TokenizerService] = None,
        highlight_line_limit: int = HIGHLIGHT_LINE_LIMIT,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self._tokenizer = tokenizer
        self.highlight_line_limit = highlight_line_limit
        self._tokens: dict[str, SideTokens] = {side: PLAIN_TOKENS for side in self.SIDES}
        self._generations: dict[str, int] = {side: 0 for side in self.SIDES}
        self._requests: dict[str, str] = {}

    @property
    def old_tokens(self) -> SideTokens:
        return self._tokens['old']

    @property
    def new_tokens(self) -> SideTokens:
        return self._tokens['new']

    def generation(self, side: str) -> int:
        return self._generations[side]

    def load(self, hunks: Sequence[Hunk], file_path: Optional[str]) -> None:
        """Start tokenizing both sides of ``hunks``."""
        self.cancel()
        self._tokens = {side: PLAIN_TOKENS for side in self.SIDES}

        lang = guess_language(file_path)
        if self._tokenizer is None or lang is None:
            self.tokens_changed.emit()
            return
        line_count = count_hunk_lines(hunks)
        if line_count > self.highlight_line_limit:
            logging.debug(f"DiffTokenLoader - {line_count} lines over limit, not highlighting")
            self.tokens_changed.emit()
            return

        codes = dict(zip(self.SIDES, extract_sides(hunks)))

        pending = []
        for side in self.SIDES:
            cached = self._tokenizer.get_cached(lang, codes[side])
            if cached is not None:
                self._tokens[side] = SideTokens.from_lines(cached)
            else:
                pending.append(side)
        self.tokens_changed.emit()

        for side in pending:
            request_id = self._tokenizer.tokenize_async(
                lang, codes[side],
                partial(self._on_tokens, side, self._generations[side]),
            )
            if request_id is not None:
                self._requests[side] = request_id

    def cancel(self) -> None:
        """Cancel in-flight requests and discard their results."""
        for request_id in self._requests.values():
            self._tokenizer.cancel(request_id)
        self._requests.clear()
        for side in self.SIDES:
            self._generations[side] += 1

    def _on_tokens(self, side: str, generation: int, tokens: Optional[Sequence[TokenLine]]) -> None:
        if generation != self._generations[side]:
            logging.debug(f"DiffTokenLoader - discarding stale {side} tokens")
            return
        self._requests.pop(side, None)
        if tokens is None:
            return
        self._tokens[side] = SideTokens.from_lines(tokens)
        self.tokens_changed.emit()


class DiffViewModel(QObject):
    """
    Stateful wrapper around ``render``.

    Owns the whole-diff token loader and one gap controller per gap.
    Setting different hunks, file path or original file resets every
    reveal state; ``changed`` fires whenever the rendered rows may differ.
    """

    changed = pyqtSignal()

    def __init__(
        self,
        tokenizer: Optional[TokenizerService] = None,
        view_mode: ViewMode = ViewMode.UNIFIED,
        highlight_line_limit: int = HIGHLIGHT_LINE_LIMIT,
        step: int = GAP_EXPAND_STEP,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self._tokenizer = tokenizer
        self._view_mode = view_mode
        self.step = step

        self._hunks: tuple[Hunk, ...] = ()
        self._file_path: Optional[str] = None
        self._original_file: Optional[str] = None
        self._gap_map: Optional[GapMap] = None
        self._controllers: dict[GapKey, GapExpansionController] = {}

        self._loader = DiffTokenLoader(tokenizer, highlight_line_limit, parent=self)
        self._loader.tokens_changed.connect(self._emit_changed)

    # -------------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------------

    @property
    def hunks(self) -> tuple[Hunk, ...]:
        return self._hunks

    @property
    def file_path(self) -> Optional[str]:
        return self._file_path

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    @property
    def gap_map(self) -> Optional[GapMap]:
        return self._gap_map

    @property
    def loader(self) -> DiffTokenLoader:
        return self._loader

    def set_diff(
        self,
        hunks: Sequence[Hunk],
        file_path: Optional[str] = None,
        original_file: Optional[str] = None
    ) -> None:
        """Show a diff. Unchanged inputs keep the current reveal state."""
        hunks = tuple(hunks)
        diff_changed = hunks != self._hunks or file_path != self._file_path
        if not diff_changed and original_file == self._original_file:
            return

        self._hunks = hunks
        self._file_path = file_path
        self._original_file = original_file
        self._reset_gaps()

        if diff_changed:
            self._loader.load(hunks, file_path)
        self.changed.emit()

    def set_view_mode(self, view_mode: Union[ViewMode, str]) -> None:
        if isinstance(view_mode, str):
            view_mode = ViewMode.from_string(view_mode)
        if view_mode is not self._view_mode:
            self._view_mode = view_mode
            self.changed.emit()

    # -------------------------------------------------------------------------
    # Gap reveal
    # -------------------------------------------------------------------------

    def controller(self, key: GapKey) -> Optional[GapExpansionController]:
        return self._controllers.get(key)

    @property
    def controllers(self) -> dict[GapKey, GapExpansionController]:
        return dict(self._controllers)

    def expand_top(self, key: GapKey) -> bool:
        controller = self._controllers.get(key)
        return controller.expand_top() if controller else False

    def expand_bottom(self, key: GapKey) -> bool:
        controller = self._controllers.get(key)
        return controller.expand_bottom() if controller else False

    def expand_all(self, key: GapKey) -> bool:
        controller = self._controllers.get(key)
        return controller.expand_all() if controller else False

    def expand_all_gaps(self) -> None:
        for controller in self._controllers.values():
            controller.expand_all()

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def render(self) -> DiffRenderModel:
        controllers = self._controllers.items()
        return render(
            self._hunks,
            self._view_mode,
            self._file_path,
            old_tokens=self._loader.old_tokens,
            new_tokens=self._loader.new_tokens,
            reveals={key: c.reveal for key, c in controllers},
            gap_tokens={key: c.tokens for key, c in controllers},
            tokenizing={key for key, c in controllers if c.tokenizing},
            gap_map=self._gap_map,
            step=self.step,
        )

    def dispose(self) -> None:
        """Drop all pending results and gap state."""
        self._loader.cancel()
        self._clear_controllers()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _reset_gaps(self) -> None:
        self._clear_controllers()

        if self._original_file is None:
            self._gap_map = None
            return

        self._gap_map = compute_gap_map(self._hunks, split_file_lines(self._original_file))
        for key in self._gap_map.keys():
            controller = GapExpansionController(
                key, self._gap_map.get(key), self._file_path, self._tokenizer, self.step, parent=self
            )
            controller.reveal_changed.connect(self._emit_changed)
            controller.tokens_changed.connect(self._emit_changed)
            controller.tokenizing_changed.connect(self._emit_changed)
            self._controllers[key] = controller

    def _emit_changed(self, *_args) -> None:
        self.changed.emit()

    def _clear_controllers(self) -> None:
        for controller in self._controllers.values():
            controller.dispose()
            controller.deleteLater()
        self._controllers.clear()

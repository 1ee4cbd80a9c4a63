"""
Diff module for the rendering engine.

Provides:
- Line and whitespace-preserving word diffs
- Hunk sources (raw texts, unified patches, structured patches)
- Gap computation and hunk grouping
- Fusion of word-diff segments with syntax tokens
- Unified and split line builders
"""

from diffview.core.diff.text_diff import (
    TextDiffEngine,
    TextCompareOptions,
    diff_lines,
    diff_words_with_space,
    reconstruct,
)
from diffview.core.diff.hunks import (
    raw_diff_to_hunks,
    parse_unified_patch,
    structured_patch,
    extract_sides,
    count_hunk_lines,
)
from diffview.core.diff.gaps import (
    compute_gap_map,
    group_by_hunk,
)
from diffview.core.diff.fusion import (
    fuse_word_diff,
    keep_new_side,
    keep_old_side,
    render_added_inline,
    render_removed_inline,
    render_tokenized_line,
)
from diffview.core.diff.line_builder import (
    LineBuilder,
    build_split_lines,
    build_unified_lines,
)

__all__ = [
    # Text diff
    'TextDiffEngine',
    'TextCompareOptions',
    'diff_lines',
    'diff_words_with_space',
    'reconstruct',
    # Hunks
    'raw_diff_to_hunks',
    'parse_unified_patch',
    'structured_patch',
    'extract_sides',
    'count_hunk_lines',
    # Gaps
    'compute_gap_map',
    'group_by_hunk',
    # Fusion
    'fuse_word_diff',
    'keep_new_side',
    'keep_old_side',
    'render_added_inline',
    'render_removed_inline',
    'render_tokenized_line',
    # Line builders
    'LineBuilder',
    'build_split_lines',
    'build_unified_lines',
]

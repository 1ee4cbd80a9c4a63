"""
Console entry point for the diff view engine.

This module handles:
- Command line argument parsing
- Logging configuration
- Settings loading
- Rendering two files and printing the row model
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, List

from PyQt6.QtCore import QCoreApplication

from diffview.core.diff.hunks import structured_patch
from diffview.core.models import (
    DiffLineRow,
    DiffRenderModel,
    DisplayRow,
    GapAffordance,
    GapLineRow,
    GapSeparatorRow,
    InlineHighlight,
    LineContent,
    SplitLineEntry,
    SplitRow,
    ViewMode,
)
from diffview.core.render import DiffViewModel
from diffview.services.settings import DiffViewSettings, SettingsManager
from diffview.services.tokenizer import (
    DARK_STYLE_KEY,
    PygmentsTokenizer,
    TokenCache,
    TokenizerClient,
)
from diffview.workers.thread_pool import WorkerPool


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "diffview"
APP_VERSION = "0.1.0"

COLUMN_WIDTH = 60


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    old_path: str = ""
    new_path: str = ""
    split: bool = False
    context_lines: Optional[int] = None
    expand_all: bool = False
    no_highlight: bool = False
    settings_file: Optional[str] = None
    log_level: str = "WARNING"
    log_file: Optional[str] = None


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Custom log formatter with colors for console."""

    COLORS = {
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelno, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure logging.

    Console output goes to stderr so it never mixes with the rendered diff.

    Args:
        level: Log level string
        log_file: Optional file path for logging

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(LogFormatter(use_colors=True))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    return root_logger


# =============================================================================
# Command Line Parsing
# =============================================================================

def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """
    Parse command line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Render a line diff of two files with hidden-context gaps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s old.py new.py                 Unified diff
  %(prog)s --split old.py new.py         Side-by-side diff
  %(prog)s --expand-all old.py new.py    Show every unchanged line
        """
    )

    parser.add_argument('old', help='Old version of the file')
    parser.add_argument('new', help='New version of the file')

    parser.add_argument(
        '--split',
        action='store_true',
        help='Side-by-side layout'
    )
    parser.add_argument(
        '--context',
        type=int,
        default=None,
        metavar='N',
        help='Context lines around each change'
    )
    parser.add_argument(
        '--expand-all',
        action='store_true',
        help='Reveal every gap'
    )
    parser.add_argument(
        '--no-highlight',
        action='store_true',
        help='Skip syntax highlighting'
    )

    parser.add_argument(
        '--settings',
        help='Settings file path'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default='WARNING',
        help='Log level'
    )
    parser.add_argument(
        '--log-file',
        help='Also write log messages to this file'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'{APP_NAME} {APP_VERSION}'
    )

    parsed = parser.parse_args(args)

    return CommandLineArgs(
        old_path=parsed.old,
        new_path=parsed.new,
        split=parsed.split,
        context_lines=parsed.context,
        expand_all=parsed.expand_all,
        no_highlight=parsed.no_highlight,
        settings_file=parsed.settings,
        log_level=parsed.log_level,
        log_file=parsed.log_file,
    )


# =============================================================================
# Text Output
# =============================================================================

def format_content(content: LineContent, color: bool = False) -> str:
    """
    Render line content as terminal text.

    Word-level changes are wrapped in ``[-...-]`` and ``{+...+}``.
    Token colors are applied as 24-bit escapes when ``color`` is set.
    """
    parts = []
    for fragment in content:
        text = fragment.text
        if color and fragment.style and DARK_STYLE_KEY in fragment.style:
            r, g, b = (int(fragment.style[DARK_STYLE_KEY][i:i + 2], 16) for i in (1, 3, 5))
            text = f"\033[38;2;{r};{g};{b}m{text}\033[0m"
        if fragment.highlight is InlineHighlight.REMOVED:
            text = f"[-{text}-]"
        elif fragment.highlight is InlineHighlight.ADDED:
            text = f"{{+{text}+}}"
        parts.append(text)
    return ''.join(parts)


def _number(value: Optional[int]) -> str:
    return f"{value:>5}" if value is not None else "     "


def _split_cell(entry: SplitLineEntry, color: bool) -> str:
    if entry.num is None and not entry.content:
        return " " * (COLUMN_WIDTH + 8)
    text = format_content(entry.content, color)
    return f"{_number(entry.num)} {entry.prefix} {text}"


def format_row(row: DisplayRow, view_mode: ViewMode, color: bool = False) -> str:
    """Render one display row as a line of text."""
    if isinstance(row, DiffLineRow):
        entry = row.entry
        return f"{_number(entry.old_num)} {_number(entry.new_num)} {entry.prefix} {format_content(entry.content, color)}"

    if isinstance(row, SplitRow):
        left = _split_cell(row.left, color)
        return f"{left:<{COLUMN_WIDTH + 8}} | {_split_cell(row.right, color)}"

    if isinstance(row, GapLineRow):
        text = format_content(row.content, color)
        if view_mode is ViewMode.SPLIT:
            left = f"{_number(row.old_num)}   {text}"
            return f"{left:<{COLUMN_WIDTH + 8}} | {_number(row.new_num)}   {text}"
        return f"{_number(row.old_num)} {_number(row.new_num)}   {text}"

    if isinstance(row, GapSeparatorRow):
        if row.affordance is GapAffordance.EXPAND_EDGES:
            return f"{'':>11} ... expand down | {row.label} | expand up ..."
        return f"{'':>11} ... {row.label} ..."

    raise TypeError(f"Unknown row type: {type(row).__name__}")


def print_model(model: DiffRenderModel, color: bool = False) -> None:
    for row in model.rows:
        print(format_row(row, model.view_mode, color))


# =============================================================================
# Rendering
# =============================================================================

def create_tokenizer(settings: DiffViewSettings) -> TokenizerClient:
    highlight = settings.highlight
    return TokenizerClient(
        tokenizer=PygmentsTokenizer(highlight.light_style, highlight.dark_style),
        cache=TokenCache(highlight.cache_size),
        pool=WorkerPool(max_workers=highlight.max_workers),
    )


def render_files(args: CommandLineArgs, settings: DiffViewSettings) -> DiffRenderModel:
    """
    Diff two files and wait for any syntax highlighting to arrive.

    Raises:
        OSError: If either file cannot be read
    """
    old_text = Path(args.old_path).read_text(encoding='utf-8')
    new_text = Path(args.new_path).read_text(encoding='utf-8')

    context = args.context_lines if args.context_lines is not None else settings.render.context_lines
    hunks = structured_patch(old_text, new_text, context)
    logging.info(f"main - {len(hunks)} hunk(s) between {args.old_path} and {args.new_path}")

    tokenizer = None
    if settings.highlight.enabled and not args.no_highlight:
        tokenizer = create_tokenizer(settings)

    view_mode = ViewMode.SPLIT if args.split else settings.render.view_mode
    view_model = DiffViewModel(
        tokenizer,
        view_mode,
        highlight_line_limit=settings.render.highlight_line_limit,
        step=settings.render.gap_expand_step,
    )
    view_model.set_diff(hunks, file_path=args.new_path, original_file=old_text)
    if args.expand_all:
        view_model.expand_all_gaps()

    if tokenizer is not None:
        while tokenizer.pool.pending_count:
            tokenizer.wait_for_done()
            QCoreApplication.processEvents()

    return view_model.render()


# =============================================================================
# Main Function
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Console main entry point.

    Returns:
        Exit code (0 for success)
    """
    args = parse_arguments(argv)

    log_file = Path(args.log_file) if args.log_file else None
    logger = setup_logging(args.log_level, log_file)

    manager = SettingsManager(Path(args.settings_file)) if args.settings_file else SettingsManager()
    settings = manager.settings

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    try:
        model = render_files(args, settings)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Cannot read input: {e}")
        return 1

    print_model(model, color=sys.stdout.isatty())
    return 0


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == '__main__':
    sys.exit(main())

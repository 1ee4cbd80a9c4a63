"""Tests for the console entry point."""

import logging

import pytest

from main import format_content, format_row, main, parse_arguments
from diffview.core.models import (
    DiffLineEntry,
    DiffLineRow,
    DiffLineType,
    Fragment,
    GapAffordance,
    GapSeparatorRow,
    InlineHighlight,
    LineContent,
    ViewMode,
)


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def files(tmp_path):
    old = tmp_path / "old.py"
    new = tmp_path / "new.py"
    old.write_text(''.join(f"x{i} = {i}\n" for i in range(1, 31)), encoding='utf-8')
    new.write_text(''.join(
        f"x{i} = {i * 100 if i == 15 else i}\n" for i in range(1, 31)
    ), encoding='utf-8')
    return old, new


class TestParseArguments:
    """Tests for parse_arguments."""

    def test_defaults(self):
        args = parse_arguments(["a.txt", "b.txt"])
        assert (args.old_path, args.new_path) == ("a.txt", "b.txt")
        assert not args.split
        assert args.context_lines is None
        assert args.log_level == "WARNING"

    def test_options(self):
        args = parse_arguments(["--split", "--context", "1", "--expand-all", "--no-highlight", "a", "b"])
        assert args.split and args.expand_all and args.no_highlight
        assert args.context_lines == 1


class TestMain:
    """Tests for main."""

    def test_renders_changed_line(self, files, tmp_path, capsys):
        old, new = files
        code = main([str(old), str(new), "--no-highlight", "--settings", str(tmp_path / "s.json")])

        out = capsys.readouterr().out
        assert code == 0
        assert "x15 = {+1500+}" in out
        assert "11 lines hidden" in out
        assert "12 lines hidden" in out

    def test_expand_all_shows_every_line(self, files, tmp_path, capsys):
        old, new = files
        code = main([
            str(old), str(new), "--no-highlight", "--expand-all",
            "--settings", str(tmp_path / "s.json"),
        ])

        out = capsys.readouterr().out
        assert code == 0
        assert "hidden" not in out
        assert "x1 = 1" in out
        assert "x30 = 30" in out

    def test_split_layout(self, files, tmp_path, capsys):
        old, new = files
        main([str(old), str(new), "--no-highlight", "--split", "--settings", str(tmp_path / "s.json")])

        out = capsys.readouterr().out
        changed = next(line for line in out.splitlines() if "1500" in line)
        assert " | " in changed
        assert "x15 = " in changed.split(" | ")[0]

    def test_with_highlighting(self, files, tmp_path, capsys):
        old, new = files
        code = main([str(old), str(new), "--settings", str(tmp_path / "s.json")])

        assert code == 0
        assert "x15 = {+1500+}" in capsys.readouterr().out

    def test_missing_file(self, tmp_path):
        code = main([str(tmp_path / "nope.py"), str(tmp_path / "nope2.py"), "--settings", str(tmp_path / "s.json")])
        assert code == 1


class TestFormatting:
    """Tests for row formatting."""

    def test_word_highlights(self):
        content = LineContent((
            Fragment("return "),
            Fragment("value", highlight=InlineHighlight.REMOVED),
        ))
        assert format_content(content) == "return [-value-]"

    def test_added_word(self):
        content = LineContent((Fragment("new", highlight=InlineHighlight.ADDED),))
        assert format_content(content) == "{+new+}"

    def test_color_escape(self):
        content = LineContent((Fragment("x", {"--dark": "#ff8000"}),))
        assert format_content(content, color=True) == "\033[38;2;255;128;0mx\033[0m"
        assert format_content(content) == "x"

    def test_unified_row(self):
        entry = DiffLineEntry(3, None, '-', LineContent.plain("gone"), DiffLineType.REMOVED, 0)
        assert format_row(DiffLineRow(entry), ViewMode.UNIFIED) == "    3       - gone"

    def test_separator_row(self):
        row = GapSeparatorRow(0, 4, GapAffordance.EXPAND_ALL, "4 lines hidden")
        assert format_row(row, ViewMode.UNIFIED).strip() == "... 4 lines hidden ..."

    def test_unknown_row(self):
        with pytest.raises(TypeError):
            format_row(object(), ViewMode.UNIFIED)

"""
Exception types raised by the diff rendering engine.

The pure rendering transformations never raise for well-formed input;
these cover ill-formed input at the edges (patch text, settings files).
"""

from __future__ import annotations

from typing import Optional


class DiffViewError(Exception):
    """Base class for all diffview errors."""
    pass


class PatchParseError(DiffViewError, ValueError):
    """Raised when unified patch text cannot be parsed into hunks."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class SettingsError(DiffViewError):
    """Raised when settings cannot be persisted."""
    pass

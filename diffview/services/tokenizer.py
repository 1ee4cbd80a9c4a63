"""
Syntax tokenization service.

Provides:
- PygmentsTokenizer: turns a block of code into per-line token arrays
- TokenCache: LRU cache keyed by (language, code)
- TokenizerClient: cache probe plus asynchronous tokenization on a
  worker pool, with results delivered on the client's thread
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Callable, Optional, Protocol

from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.token import _TokenType
from pygments.util import ClassNotFound
from PyQt6.QtCore import QObject

from diffview.core.models import Token, TokenLine, TokenStyle
from diffview.workers.thread_pool import WorkerPool


TokenLines = tuple[TokenLine, ...]
TokenCallback = Callable[[Optional[TokenLines]], None]

LIGHT_STYLE_KEY = "--light"
DARK_STYLE_KEY = "--dark"


class TokenizerService(Protocol):
    """What diff rendering needs from a tokenizer."""

    def get_cached(self, lang: str, code: str) -> Optional[TokenLines]:
        ...

    def tokenize_async(self, lang: str, code: str, callback: TokenCallback) -> Optional[str]:
        ...

    def cancel(self, request_id: str) -> bool:
        ...


class PygmentsTokenizer:
    """
    Tokenizer backed by Pygments lexers and styles.

    Each token carries a style mapping with a light and a dark
    foreground color, so a consumer can switch themes without
    re-tokenizing.
    """

    def __init__(self, light_style: str = "default", dark_style: str = "github-dark"):
        self._light = get_style_by_name(light_style)
        self._dark = get_style_by_name(dark_style)
        self._style_memo: dict[_TokenType, Optional[TokenStyle]] = {}

    def supports(self, lang: str) -> bool:
        try:
            get_lexer_by_name(lang)
        except ClassNotFound:
            return False
        return True

    def tokenize(self, lang: str, code: str) -> Optional[TokenLines]:
        """
        Tokenize ``code`` as ``lang``.

        Returns exactly one token array per ``code.split('\\n')`` line,
        or None if the language is not supported.
        """
        try:
            lexer = get_lexer_by_name(lang, stripnl=False, ensurenl=False)
        except ClassNotFound:
            logging.debug(f"PygmentsTokenizer - no lexer for '{lang}'")
            return None

        lines: list[list[Token]] = [[]]
        for ttype, value in lexer.get_tokens(code):
            style = self._style_for(ttype)
            pieces = value.split('\n')
            for n, piece in enumerate(pieces):
                if n > 0:
                    lines.append([])
                if piece:
                    lines[-1].append(Token(piece, style))

        # Lexers normalize some input (line endings, BOM); keep the line
        # count aligned with the caller's split.
        expected = code.count('\n') + 1
        if len(lines) < expected:
            lines.extend([] for _ in range(expected - len(lines)))
        del lines[expected:]

        return tuple(tuple(line) for line in lines)

    def _style_for(self, ttype: _TokenType) -> Optional[TokenStyle]:
        if ttype in self._style_memo:
            return self._style_memo[ttype]

        style: dict[str, str] = {}
        light = self._light.style_for_token(ttype).get('color')
        dark = self._dark.style_for_token(ttype).get('color')
        if light:
            style[LIGHT_STYLE_KEY] = f"#{light}"
        if dark:
            style[DARK_STYLE_KEY] = f"#{dark}"

        result = style or None
        self._style_memo[ttype] = result
        return result


class TokenCache:
    """Least-recently-used cache of token arrays keyed by (language, code)."""

    def __init__(self, max_entries: int = 200):
        self.max_entries = max_entries
        self._entries: OrderedDict[tuple[str, str], TokenLines] = OrderedDict()

    def get(self, lang: str, code: str) -> Optional[TokenLines]:
        key = (lang, code)
        tokens = self._entries.get(key)
        if tokens is not None:
            self._entries.move_to_end(key)
        return tokens

    def put(self, lang: str, code: str, tokens: TokenLines) -> None:
        key = (lang, code)
        self._entries[key] = tokens
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class TokenizerClient(QObject):
    """
    Asynchronous tokenizer front end.

    Probes the cache first; a miss runs the tokenizer on the worker pool.
    Results are cached and handed to the callback on this object's thread.
    Failures are logged and delivered as None, never raised. A cancelled
    request delivers nothing.
    """

    def __init__(
        self,
        tokenizer: Optional[PygmentsTokenizer] = None,
        cache: Optional[TokenCache] = None,
        pool: Optional[WorkerPool] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.tokenizer = tokenizer or PygmentsTokenizer()
        self.cache = cache if cache is not None else TokenCache()
        self.pool = pool or WorkerPool(parent=self)

    def get_cached(self, lang: str, code: str) -> Optional[TokenLines]:
        """Synchronous cache probe."""
        return self.cache.get(lang, code)

    def tokenize_async(self, lang: str, code: str, callback: TokenCallback) -> Optional[str]:
        """
        Tokenize in the background and call ``callback`` with the result.

        Returns:
            A request id for ``cancel``, or None when the result came
            from the cache and was already delivered.
        """
        cached = self.cache.get(lang, code)
        if cached is not None:
            logging.debug(f"TokenizerClient - cache hit for '{lang}'")
            callback(cached)
            return None

        def on_result(tokens: Optional[TokenLines]) -> None:
            if tokens is not None:
                self.cache.put(lang, code, tokens)
            callback(tokens)

        def on_error(error_type: str, message: str) -> None:
            logging.warning(f"TokenizerClient - tokenizing '{lang}' failed: {error_type}: {message}")
            callback(None)

        logging.debug(f"TokenizerClient - dispatching '{lang}' ({code.count(chr(10)) + 1} lines)")
        return self.pool.submit(
            self.tokenizer.tokenize, lang, code,
            callback=on_result,
            error_callback=on_error,
        )

    def cancel(self, request_id: str) -> bool:
        """Drop a pending request; a queued one never runs."""
        return self.pool.cancel(request_id)

    def wait_for_done(self, timeout: int = -1) -> bool:
        """Block until pending tokenization threads finish."""
        return self.pool.wait_all(timeout)

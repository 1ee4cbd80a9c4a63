"""Pytest configuration and shared fixtures for the diffview test suite."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import pytest
from PyQt6.QtCore import QCoreApplication

from diffview.core.models import Hunk, Token


STYLE = {"--light": "#000000", "--dark": "#ffffff"}


def make_tokens(code: str, style=None) -> tuple:
    """One token per non-empty line of ``code``; empty lines get none."""
    style = style or STYLE
    return tuple(
        (Token(line, style),) if line else ()
        for line in code.split('\n')
    )


def indexed_tokens(code: str) -> tuple:
    """Like ``make_tokens`` but each line's style names its line index."""
    return tuple(
        (Token(line, {"line": str(i)}),) if line else ()
        for i, line in enumerate(code.split('\n'))
    )


@dataclass
class FakeRequest:
    lang: str
    code: str
    callback: Callable
    request_id: str = ""

    def complete(self, tokens: Optional[tuple] = ...) -> None:
        self.callback(make_tokens(self.code) if tokens is ... else tokens)


class FakeTokenizer:
    """
    Records tokenization requests and completes them on demand.

    ``cache`` is probed synchronously, like the real client. Cancelled
    request ids are recorded in ``cancelled``.
    """

    def __init__(self):
        self.cache: dict[tuple[str, str], tuple] = {}
        self.requests: list[FakeRequest] = []
        self.cancelled: list[str] = []

    def get_cached(self, lang: str, code: str):
        return self.cache.get((lang, code))

    def tokenize_async(self, lang: str, code: str, callback: Callable) -> str:
        request_id = f"req_{len(self.requests) + 1}"
        self.requests.append(FakeRequest(lang, code, callback, request_id))
        return request_id

    def cancel(self, request_id: str) -> bool:
        self.cancelled.append(request_id)
        return True


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """One Qt core application for the whole session."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def fake_tokenizer() -> FakeTokenizer:
    return FakeTokenizer()


@pytest.fixture
def ten_lines() -> list[str]:
    return [f"line{i}" for i in range(1, 11)]


@pytest.fixture
def change_group_hunk() -> Hunk:
    """Three removed lines followed by one added line."""
    return Hunk(1, 3, 1, 1, ("-alpha one", "-alpha two", "-alpha three", "+beta one"))

"""Tokenizer for checksum manifest text."""

from __future__ import annotations

import io
from typing import Callable, TextIO

from .models import EOF_LITERAL, Token

_WHITESPACE = frozenset(" \t")
_RESERVED = frozenset("*\r\n \t" + EOF_LITERAL)


def _is_whitespace(ch: str) -> bool:
    return ch in _WHITESPACE


def _is_word(ch: str) -> bool:
    return ch != "" and ch not in _RESERVED


class ManifestLexer:
    """Split manifest text into `(Token, literal)` pairs.

    The lexer reads one character at a time from a text stream and keeps a
    single character of look-back so runs of whitespace or word characters can
    be collected greedily. Streams must be opened with `newline=""`; universal
    newline translation would hide CR tokens.

    `unscan` pushes the most recently returned token back so the next `scan`
    yields it again. Only one token can be pushed back.
    """

    def __init__(self, source: TextIO | str) -> None:
        if isinstance(source, str):
            source = io.StringIO(source, newline="")
        self._reader = source
        self._pending: str | None = None
        self._last = ""
        self._current: tuple[Token, str] = (Token.INVALID, "")
        self._has_pushback = False

    @property
    def current(self) -> tuple[Token, str]:
        """Return the most recently scanned token."""
        return self._current

    def scan(self) -> tuple[Token, str]:
        """Return the next token and its literal text."""
        if self._has_pushback:
            self._has_pushback = False
            return self._current
        self._current = self._next_token()
        return self._current

    def unscan(self) -> None:
        """Push the last scanned token back onto the stream."""
        self._has_pushback = True

    def _next_token(self) -> tuple[Token, str]:
        ch = self._read()

        if _is_whitespace(ch):
            self._unread()
            return self._scan_run(Token.SPACE, _is_whitespace)
        if _is_word(ch):
            self._unread()
            return self._scan_run(Token.WORD, _is_word)

        if ch == "*":
            return Token.ASTERISK, ch
        if ch == "\r":
            return Token.CR, ch
        if ch == "\n":
            return Token.LF, ch
        if ch == "":
            return Token.EOF, EOF_LITERAL
        return Token.INVALID, ch

    def _scan_run(self, token: Token, accepts: Callable[[str], bool]) -> tuple[Token, str]:
        buffer = [self._read()]
        while True:
            ch = self._read()
            if accepts(ch):
                buffer.append(ch)
                continue
            self._unread()
            break
        return token, "".join(buffer)

    def _read(self) -> str:
        if self._pending is not None:
            ch, self._pending = self._pending, None
        else:
            ch = self._reader.read(1)
        self._last = ch
        return ch

    def _unread(self) -> None:
        self._pending = self._last


__all__ = ["ManifestLexer"]

"""Recursive-descent parser for checksum manifests.

Each line follows ``hash SPACE [ASTERISK] path lineEnd`` where the path is a
run of word and whitespace tokens that must not end on whitespace, and a line
ends with CRLF, LF, or the end of input. Errors carry the token class that was
expected together with the literal the lexer produced.
"""

from __future__ import annotations

from typing import TextIO

from mirrorstore.errors import ManifestSyntaxError

from .lexer import ManifestLexer
from .models import ChecksumItem, Token

_PATH_TOKENS = (Token.WORD, Token.SPACE)
_LINE_END_TOKENS = (Token.CR, Token.LF, Token.EOF)


class ManifestParser:
    """Turn manifest text into an ordered list of `ChecksumItem` records."""

    def __init__(self, source: TextIO | str) -> None:
        self._lexer = ManifestLexer(source)

    def parse(self) -> list[ChecksumItem]:
        """Parse every line of the manifest.

        Returns:
            list[ChecksumItem]: Items in manifest order; empty for empty input.

        Raises:
            ManifestSyntaxError: If any line violates the grammar. No partial
                result is returned.
        """
        items: list[ChecksumItem] = []

        while True:
            token, literal = self._lexer.scan()
            if token is Token.EOF:
                break
            if token is not Token.WORD:
                raise ManifestSyntaxError("hash", literal)
            digest = literal

            token, literal = self._lexer.scan()
            if token is not Token.SPACE:
                raise ManifestSyntaxError("whitespace", literal)

            binary_mode = self._parse_mode()
            path = self._parse_path()
            items.append(ChecksumItem(hash=digest, binary_mode=binary_mode, path=path))

            if self._parse_line_end():
                break

        return items

    def _parse_mode(self) -> bool:
        token, literal = self._lexer.scan()
        if token is Token.ASTERISK:
            binary_mode = True
        elif token in _PATH_TOKENS:
            self._lexer.unscan()
            binary_mode = False
        else:
            raise ManifestSyntaxError("whitespace", literal)

        # no gap allowed between the marker and the path
        token, literal = self._lexer.scan()
        if token is Token.SPACE:
            raise ManifestSyntaxError("path", literal)
        self._lexer.unscan()
        return binary_mode

    def _parse_path(self) -> str:
        parts: list[str] = []
        last_token: Token | None = None
        while True:
            token, literal = self._lexer.scan()
            if token in _PATH_TOKENS:
                parts.append(literal)
                last_token = token
            elif token in _LINE_END_TOKENS:
                self._lexer.unscan()
                break
            else:
                raise ManifestSyntaxError("path", literal)

        if not parts:
            raise ManifestSyntaxError("path", self._lexer.current[1])
        if last_token is Token.SPACE:
            raise ManifestSyntaxError("path", " ")
        return "".join(parts)

    def _parse_line_end(self) -> bool:
        """Consume the line terminator and report whether input has ended."""
        token, literal = self._lexer.scan()
        if token is Token.CR:
            token, literal = self._lexer.scan()
            if token is not Token.LF:
                raise ManifestSyntaxError("endline", literal)
            return False
        if token is Token.LF:
            return False
        if token is Token.EOF:
            return True
        raise ManifestSyntaxError("endline", literal)


def parse(source: TextIO | str) -> list[ChecksumItem]:
    """Parse manifest text without validating hashes."""
    return ManifestParser(source).parse()


__all__ = ["ManifestParser", "parse"]

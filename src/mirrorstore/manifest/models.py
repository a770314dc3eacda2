"""Manifest data models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

EOF_LITERAL = "\x00"


class Token(Enum):
    """Primitive token classes produced by the manifest lexer."""

    INVALID = "invalid"
    SPACE = "space"
    CR = "cr"
    LF = "lf"
    EOF = "eof"
    ASTERISK = "asterisk"
    WORD = "word"


class ChecksumItem(BaseModel):
    """One manifest line.

    Attributes:
        hash: Hex digest text copied verbatim from the line.
        binary_mode: Whether a `*` marker preceded the path.
        path: Literal trailing text of the line; may contain spaces.
    """

    model_config = ConfigDict(frozen=True)

    hash: str
    binary_mode: bool = False
    path: str


__all__ = ["EOF_LITERAL", "Token", "ChecksumItem"]

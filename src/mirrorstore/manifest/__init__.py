"""Checksum manifest lexing, parsing, validation, and serialization."""

from .lexer import ManifestLexer
from .models import EOF_LITERAL, ChecksumItem, Token
from .parser import ManifestParser, parse
from .validator import parse_manifest, read_manifest, validate_hashes
from .writer import check_path, format_line, serialize, write_manifest

__all__ = [
    "EOF_LITERAL",
    "ChecksumItem",
    "check_path",
    "Token",
    "ManifestLexer",
    "ManifestParser",
    "parse",
    "parse_manifest",
    "read_manifest",
    "validate_hashes",
    "format_line",
    "serialize",
    "write_manifest",
]

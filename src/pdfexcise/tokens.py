# src/pdfexcise/tokens.py
"""Module: pdfexcise.tokens

The lexical unit consumed by :class:`~pdfexcise.scope_filter.ScopeFilter`.

Tokenizing is done by qpdf (through :class:`pikepdf.TokenFilter`); this
module only narrows pikepdf's token types to the four kinds the redaction
engine distinguishes, and extracts the logical value of string tokens.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Union

import pikepdf
from pikepdf import TokenType

from .utils.pdf_conversion import (
    extract_string_bytes,
    string_token_raw,
    string_token_value,
)

logger = logging.getLogger(__name__)


class TokenKind(enum.Enum):
    """Token categories relevant to scope tracking."""

    WORD = "word"
    """An operator name, e.g. ``Tj``, ``BT`` or ``q``."""

    STRING = "string"
    """A delimited string literal, ``(...)`` or ``<...>``."""

    SPACE = "space"
    """A run of whitespace."""

    OTHER = "other"
    """Anything else: numbers, names, arrays, dictionaries, comments."""


_KIND_BY_TYPE = {
    TokenType.word: TokenKind.WORD,
    TokenType.string: TokenKind.STRING,
    TokenType.space: TokenKind.SPACE,
}


@dataclass(frozen=True)
class ContentToken:
    """One token of a content stream.

    Attributes:
        kind (TokenKind): The token category.
        raw (bytes): The serialized form, exactly as it appeared in the stream.
        value (bytes): The logical value. For strings this is the unescaped
            content; for every other kind it equals ``raw``.
    """

    kind: TokenKind
    raw: bytes
    value: bytes

    @property
    def text(self) -> str:
        """The logical value as text, one character per byte."""
        return self.value.decode("latin-1")

    @classmethod
    def word(cls, name: Union[str, bytes]) -> "ContentToken":
        raw = extract_string_bytes(name)
        return cls(TokenKind.WORD, raw, raw)

    @classmethod
    def space(cls, raw: Union[str, bytes] = b" ") -> "ContentToken":
        raw = extract_string_bytes(raw)
        return cls(TokenKind.SPACE, raw, raw)

    @classmethod
    def other(cls, raw: Union[str, bytes]) -> "ContentToken":
        raw = extract_string_bytes(raw)
        return cls(TokenKind.OTHER, raw, raw)

    @classmethod
    def string(cls, value: Union[str, bytes]) -> "ContentToken":
        """Build a string token from its logical value, serialized by qpdf."""
        value = extract_string_bytes(value)
        return cls(TokenKind.STRING, string_token_raw(value), value)

    @classmethod
    def parse_string(cls, raw: bytes) -> "ContentToken":
        """Build a string token from its serialized form."""
        return cls(TokenKind.STRING, raw, string_token_value(raw))


def from_pikepdf(token: pikepdf.Token) -> Optional[ContentToken]:
    """Convert a token delivered by qpdf into a :class:`ContentToken`.

    Returns ``None`` for the end-of-stream notification, which pikepdf
    delivers either as an ``eof`` token or as an empty ``bad`` token.
    """
    raw = bytes(token.raw_value)
    if token.type_ == TokenType.eof:
        return None
    if token.type_ == TokenType.bad and not raw:
        return None

    kind = _KIND_BY_TYPE.get(token.type_, TokenKind.OTHER)
    if kind is TokenKind.STRING:
        return ContentToken.parse_string(raw)
    if token.type_ == TokenType.bad:
        logger.debug("Passing through unparseable token %r", raw)
    return ContentToken(kind, raw, raw)

# src/pdfexcise/scope_filter.py

"""Module: pdfexcise.scope_filter

The redaction engine. :class:`ScopeFilter` consumes the tokens of one
content stream, in order and without look-ahead, and removes every region
of the configured :class:`~pdfexcise.scope.Scope` whose text matches a
pattern.

Content that might have to be removed is buffered in a stack of frames.
When a frame's scope closes, its collected text is tested: a match discards
the whole frame, otherwise its tokens are merged into the frame below.
"""


import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Pattern, Union

import pikepdf

from .scope import Scope
from .tokens import ContentToken, TokenKind, from_pikepdf

logger = logging.getLogger(__name__)

BEGIN_MARKERS = {b"BT": Scope.TEXT_OBJECT, b"q": Scope.GRAPHICS_STATE}
END_MARKERS = {b"ET": Scope.TEXT_OBJECT, b"Q": Scope.GRAPHICS_STATE}

PatternLike = Union[str, Pattern[str]]


def compile_pattern(pattern: PatternLike) -> Pattern[str]:
    """Compile ``pattern`` unless it already is a compiled expression.

    Raises:
        re.error: If the expression is invalid.
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)


@dataclass
class Frame:
    """Buffered content of one open scope, awaiting a keep/discard decision.

    Attributes:
        tokens (List[ContentToken]): Tokens received since the frame opened.
        text (str): Concatenated values of the string tokens among them,
            tested against the pattern when the frame closes.
        redacted (bool): True once anything inside the frame has been
            removed or rewritten.
    """

    tokens: List[ContentToken] = field(default_factory=list)
    text: str = ""
    redacted: bool = False


class ScopeFilter:
    """
    Single-pass token filter that redacts matches at a given scope.

    Feed every token of a stream to :meth:`handle_token`, then call
    :meth:`handle_eof` once. Afterwards :attr:`output` holds the surviving
    tokens, :attr:`redact` tells whether text left outside any redacted
    region still matches (the signal used for :attr:`Scope.STREAM` and
    :attr:`Scope.PAGE`), and :attr:`modified` tells whether anything was
    removed.

    Args:
        pattern: Regular expression, as text or compiled.
        scope: The scope to redact at.
    """

    def __init__(self, pattern: PatternLike, scope: Scope = Scope.MATCH):
        self.pattern = compile_pattern(pattern)
        self.scope = Scope(scope)

        # the bottom frame holds committed output and is never flushed
        self._stack: List[Frame] = [Frame()]
        self._trim = False
        self._finished = False

        self.output: List[ContentToken] = []
        self.redact = False
        self.modified = False

    def __repr__(self):
        return (
            f"ScopeFilter(pattern={self.pattern.pattern!r}, scope={self.scope.name}, "
            f"depth={len(self._stack)}, finished={self._finished})"
        )

    @property
    def depth(self) -> int:
        """Number of open frames above the root."""
        return len(self._stack) - 1

    @property
    def output_bytes(self) -> bytes:
        """The surviving stream content, serialized."""
        return b"".join(token.raw for token in self.output)

    def handle_token(self, token: ContentToken) -> None:
        """Consume the next token of the stream."""
        if self._finished:
            raise RuntimeError("ScopeFilter already reached end of stream")

        if token.kind is TokenKind.WORD:
            # Start/end markers take no operands; any other word closes
            # an operator together with its operands
            if token.value in BEGIN_MARKERS:
                self._start(BEGIN_MARKERS[token.value], token)
            elif token.value in END_MARKERS:
                self._end(END_MARKERS[token.value], token)
            else:
                self._end(Scope.OPERATOR, token)
        elif token.kind is TokenKind.SPACE:
            if not self._trim:
                self._append(token)
            self._trim = False
        elif token.kind is TokenKind.STRING and self.scope is Scope.MATCH:
            self._append(self._remove_matches(token))
        else:
            # Operands open an operator scope; operators don't nest, so
            # starting one on every operand is harmless
            self._start(Scope.OPERATOR, token)

    def handle_eof(self) -> None:
        """Close all open scopes and settle the output and verdict."""
        if self._finished:
            return

        while len(self._stack) > 1:
            self._flush()

        root = self._stack[0]
        self.output = list(root.tokens)
        self.redact = bool(self.pattern.search(root.text))
        self.modified = root.redacted
        self._finished = True

        logger.debug(
            "Stream filtered at %s scope: %d tokens kept, modified=%s, redact=%s",
            self.scope.name,
            len(self.output),
            self.modified,
            self.redact,
        )

    def _remove_matches(self, token: ContentToken) -> ContentToken:
        text = self.pattern.sub("", token.text)
        if text == token.text:
            return token
        self._stack[-1].redacted = True
        return ContentToken.string(text.encode("latin-1"))

    def _append(self, token: ContentToken) -> None:
        target = self._stack[-1]
        target.tokens.append(token)
        if token.kind is TokenKind.STRING:
            target.text += token.text
        self._trim = False

    def _start(self, scope: Scope, token: ContentToken) -> None:
        if self.scope is scope and (scope.nestable or len(self._stack) == 1):
            self._stack.append(Frame())
        self._append(token)

    def _end(self, scope: Scope, token: ContentToken) -> None:
        self._append(token)
        if self.scope is scope and len(self._stack) > 1:
            self._flush()

    def _flush(self) -> None:
        frame = self._stack.pop()
        parent = self._stack[-1]

        if self.pattern.search(frame.text):
            logger.debug(
                "Discarding %s of %d tokens matching %r",
                self.scope.name,
                len(frame.tokens),
                frame.text,
            )
            parent.redacted = True
            # swallow the separator that followed the discarded region
            self._trim = True
            return

        for token in frame.tokens:
            self._append(token)
        parent.redacted = parent.redacted or frame.redacted


def filter_tokens(
    tokens: Iterable[ContentToken], pattern: PatternLike, scope: Scope = Scope.MATCH
) -> ScopeFilter:
    """Run a fresh :class:`ScopeFilter` over ``tokens`` and return it, finished."""
    scope_filter = ScopeFilter(pattern, scope)
    for token in tokens:
        scope_filter.handle_token(token)
    scope_filter.handle_eof()
    return scope_filter


class ScopeTokenFilter(pikepdf.TokenFilter):
    """Feeds the tokens qpdf produces for a content stream into a :class:`ScopeFilter`.

    Every token is swallowed (``handle_token`` returns ``None``), so the
    filtered stream qpdf writes is empty; the redacted content is read from
    the wrapped :class:`ScopeFilter` once filtering has finished.
    """

    def __init__(self, scope_filter: ScopeFilter):
        super().__init__()
        self.scope_filter = scope_filter

    def handle_token(self, token: Optional[pikepdf.Token] = None):
        if token is None:
            return None
        content_token = from_pikepdf(token)
        if content_token is not None:
            self.scope_filter.handle_token(content_token)
        return None

# src/pdfexcise/scope.py
"""
The granularity at which matching content is redacted.
"""
import enum


class Scope(enum.IntEnum):
    """Redaction scopes, ordered from narrowest to widest.

    A narrower scope is always physically contained in any wider scope that
    is open at the same time, so comparisons between members are meaningful:
    scopes below :attr:`STREAM` rewrite stream content, while :attr:`STREAM`
    and :attr:`PAGE` decide whether whole units are kept.
    """

    MATCH = 0
    """Only the matched text inside a string operand."""

    OPERATOR = 1
    """The operator whose operands contain the match, e.g. ``(...) Tj``."""

    TEXT_OBJECT = 2
    """The enclosing ``BT ... ET`` block."""

    GRAPHICS_STATE = 3
    """The enclosing ``q ... Q`` block."""

    STREAM = 4
    """The whole content stream."""

    PAGE = 5
    """The whole page, including its Form XObjects."""

    @property
    def nestable(self) -> bool:
        """Whether the scope's begin/end markers may nest inside each other."""
        return self in (Scope.TEXT_OBJECT, Scope.GRAPHICS_STATE)

    @property
    def flag(self) -> str:
        """The single-letter command-line flag selecting this scope."""
        return SCOPE_FLAGS[self.value]


# index matches the enum value
SCOPE_FLAGS = "motqsp"

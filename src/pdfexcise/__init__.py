# src/pdfexcise/__init__.py
"""
pdfexcise: scope-aware redaction of PDF content streams.

Text matching a regular expression is removed together with the unit that
encloses it: just the matched characters, the drawing operator, the
``BT``/``ET`` text object, the ``q``/``Q`` graphics state block, the whole
content stream, or the whole page. Everything else is passed through
byte-for-byte.

Content streams are tokenized by qpdf through ``pikepdf``; the document is
read and written with ``pikepdf`` as well.
"""
import logging

from .api import RedactionOptions, redact, redact_file, redact_page
from .scope import SCOPE_FLAGS, Scope
from .scope_filter import Frame, ScopeFilter, ScopeTokenFilter, filter_tokens
from .tokens import ContentToken, TokenKind

logging.getLogger(__name__).addHandler(logging.NullHandler())


__all__ = [
    "redact",
    "redact_page",
    "redact_file",
    "RedactionOptions",
    "Scope",
    "SCOPE_FLAGS",
    "ScopeFilter",
    "ScopeTokenFilter",
    "Frame",
    "filter_tokens",
    "ContentToken",
    "TokenKind",
]

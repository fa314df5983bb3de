# src/pdfexcise/utils/pdf_conversion.py
"""
Conversion between Python values and PDF string operands.
"""
from typing import Any

import pikepdf


def extract_string_bytes(operand: Any) -> bytes:
    """
    Helper to get raw bytes from various string representations.
    Handles fallback to UTF-8 if the string contains special characters.
    """
    if isinstance(operand, bytes):
        return operand

    if isinstance(operand, str):
        try:
            return operand.encode("latin1")
        except UnicodeEncodeError:
            return operand.encode("utf-8")

    if isinstance(operand, pikepdf.String):
        return bytes(operand)

    raise TypeError(f"Cannot extract string bytes from {type(operand)}")


def string_token_value(raw: bytes) -> bytes:
    """Return the bytes held by a serialized ``(...)`` or ``<...>`` string."""
    return bytes(pikepdf.Object.parse(raw))


def string_token_raw(value: bytes) -> bytes:
    """Serialize bytes as a PDF string token, the way qpdf writes strings."""
    return pikepdf.String(value).unparse()

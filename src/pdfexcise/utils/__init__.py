# src/pdfexcise/utils/__init__.py
"""
Utility modules for data conversion.
"""
from .pdf_conversion import (
    extract_string_bytes,
    string_token_raw,
    string_token_value,
)

__all__ = [
    "extract_string_bytes",
    "string_token_raw",
    "string_token_value",
]

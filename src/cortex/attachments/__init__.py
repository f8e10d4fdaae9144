"""Attachment normalization for user-selected files."""

from .normalizer import extract_docx_text, load_attachment, normalize_attachment

__all__ = [
    "extract_docx_text",
    "load_attachment",
    "normalize_attachment",
]

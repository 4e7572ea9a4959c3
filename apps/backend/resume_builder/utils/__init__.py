"""Utility helpers."""

from .date_parser import format_date_range, format_long_date, parse_document_date

__all__ = [
    "format_date_range",
    "format_long_date",
    "parse_document_date",
]

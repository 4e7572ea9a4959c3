"""Database models for the resume builder."""

from .base import Base, TimestampMixin
from .stored_document import StoredDocument

__all__ = [
    "Base",
    "TimestampMixin",
    "StoredDocument",
]

"""Key-value slot holding a serialized resume document."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class StoredDocument(Base, TimestampMixin):
    """One row per storage key; ``payload`` is the whole document as JSON.

    Writes always replace the payload in full, so a row never holds a
    partially saved document.
    """

    __tablename__ = "stored_documents"

    # Primary Key - storage key ("resume")
    key: Mapped[str] = mapped_column(String(255), primary_key=True)

    payload: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<StoredDocument(key='{self.key}', size={len(self.payload)})>"

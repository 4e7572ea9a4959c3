"""Request and response schemas for the resume HTTP endpoints."""

from typing import Any

from pydantic import Field

from resume_builder.schemas.sections import DocumentModel


class SectionMoveRequest(DocumentModel):
    """Move a section to a new position."""

    new_index: int = Field(..., ge=0, description="Target position in the section list")


class SectionCreated(DocumentModel):
    index: int
    section: dict[str, Any]


class PageRequest(DocumentModel):
    page: int = Field(..., description="1-based page number; out of range values are clamped")


class ResizeRequest(DocumentModel):
    available_width: float = Field(..., gt=0, description="Width of the preview container")


class PreviewStatus(DocumentModel):
    """Current preview state as shown by the browser editor."""

    state: str
    current_page: int
    total_pages: int
    width: float
    media_type: str | None = None
    page_content: str | None = None
    error: str | None = None


class ImportResult(DocumentModel):
    """Outcome of an import request.

    Without confirmation the validated document is returned for review and
    nothing is stored.
    """

    requires_confirmation: bool
    imported: bool
    document: dict[str, Any]

"""Pydantic schemas for the resume document root.

The persisted format is ``{"sections": [...], "settings": {...}}``. It is
used unchanged for autosave, exported files and imported files.
"""

import json
import logging
from collections import Counter
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

from resume_builder.schemas.sections import (
    EDUCATIONS,
    EMPLOYMENT_HISTORY,
    PERSONAL_DETAILS,
    SKILLS,
    UNIQUE_SECTION_TYPES,
    DocumentModel,
    PersonalDetailsSection,
    Section,
    new_section,
)

logger = logging.getLogger(__name__)

FontFamily = Literal["courier", "helvetica", "times-roman"]
FontSize = Literal[10, 12, 14]

FONT_FAMILIES: tuple[str, ...] = ("courier", "helvetica", "times-roman")
FONT_SIZES: tuple[int, ...] = (10, 12, 14)

DEFAULT_FONT_FAMILY = "courier"
DEFAULT_FONT_SIZE = 10


class DocumentSettings(DocumentModel):
    """Template style settings.

    Unknown values fall back to the defaults instead of failing, so a file
    written by a newer editor with extra fonts still opens.
    """

    font_family: FontFamily = Field(
        DEFAULT_FONT_FAMILY,
        alias="fontFamily",
        validation_alias=AliasChoices("fontFamily", "font_family", "font"),
    )
    font_size: FontSize = Field(DEFAULT_FONT_SIZE, alias="fontSize")

    @field_validator("font_family", mode="before")
    @classmethod
    def fallback_font_family(cls, value: Any) -> str:
        if value in FONT_FAMILIES:
            return value
        logger.warning(f"Unknown font family {value!r}, using {DEFAULT_FONT_FAMILY}")
        return DEFAULT_FONT_FAMILY

    @field_validator("font_size", mode="before")
    @classmethod
    def fallback_font_size(cls, value: Any) -> int:
        try:
            size = int(value)
        except (TypeError, ValueError):
            size = None
        if size in FONT_SIZES:
            return size
        logger.warning(f"Unknown font size {value!r}, using {DEFAULT_FONT_SIZE}")
        return DEFAULT_FONT_SIZE


class ResumeDocument(DocumentModel):
    """Complete resume: ordered sections plus template settings.

    Section order is display order. ``personalDetails``, ``skills`` and
    ``languages`` may each appear at most once.
    """

    sections: list[Section]
    settings: DocumentSettings = Field(default_factory=DocumentSettings)

    @model_validator(mode="after")
    def check_unique_sections(self):
        counts = Counter(section.type for section in self.sections)
        duplicated = sorted(t for t in UNIQUE_SECTION_TYPES if counts[t] > 1)
        if duplicated:
            raise PydanticCustomError(
                "duplicate_section",
                "Only one section of type {section_types} is allowed",
                {"section_types": ", ".join(duplicated)},
            )
        return self

    @property
    def personal_details(self) -> PersonalDetailsSection | None:
        """The personal details section, if the document has one."""
        for section in self.sections:
            if section.type == PERSONAL_DETAILS:
                return section
        return None

    def sections_of_type(self, section_type: str) -> list:
        return [s for s in self.sections if s.type == section_type]

    def has_section(self, section_type: str) -> bool:
        return any(s.type == section_type for s in self.sections)


def default_document() -> ResumeDocument:
    """Built-in starting document.

    One empty personal details section followed by empty skills, education
    and employment history sections, courier at size 10.
    """
    return ResumeDocument(
        sections=[
            new_section(PERSONAL_DETAILS),
            new_section(SKILLS),
            new_section(EDUCATIONS),
            new_section(EMPLOYMENT_HISTORY),
        ],
        settings=DocumentSettings(),
    )


def document_to_dict(document: ResumeDocument) -> dict[str, Any]:
    """JSON-compatible dict in the persisted (camelCase) format."""
    return document.model_dump(mode="json", by_alias=True)


def serialize_document(document: ResumeDocument, pretty: bool = False) -> bytes:
    """Serialize a document to UTF-8 JSON bytes.

    Args:
        document: Validated document
        pretty: Indent with two spaces (export files)

    Returns:
        UTF-8 encoded JSON
    """
    data = document_to_dict(document)
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")
    return json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

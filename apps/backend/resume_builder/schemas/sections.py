"""Pydantic schemas for resume sections.

A section is one typed block of resume content. The ``type`` field is the
discriminator of the ``Section`` union and never changes once a section
exists; ``title`` is a free display label defaulted per type.

JSON keys are camelCase (``firstName``, ``startDate``) to stay compatible
with files exported by the browser editor; Python code uses snake_case.
"""

from datetime import date
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from resume_builder.utils.date_parser import parse_document_date

PERSONAL_DETAILS = "personalDetails"
SKILLS = "skills"
EDUCATIONS = "educations"
EMPLOYMENT_HISTORY = "employmentHistory"
LANGUAGES = "languages"

SECTION_TYPES = (PERSONAL_DETAILS, SKILLS, EDUCATIONS, EMPLOYMENT_HISTORY, LANGUAGES)

# At most one section of each of these types may exist in a document
UNIQUE_SECTION_TYPES = frozenset({PERSONAL_DETAILS, SKILLS, LANGUAGES})

DEFAULT_TITLES = {
    PERSONAL_DETAILS: "Personal Details",
    SKILLS: "Skills",
    EDUCATIONS: "Education",
    EMPLOYMENT_HISTORY: "Employment History",
    LANGUAGES: "Languages",
}

SkillLevel = Literal["novice", "beginner", "intermediate", "advanced", "expert"]
LanguageLevel = Literal["native", "fluent", "intermediate", "basic"]

SKILL_LEVEL_RANKS = {
    "novice": 1,
    "beginner": 2,
    "intermediate": 3,
    "advanced": 4,
    "expert": 5,
}


def _coerce_date(value: Any) -> date | None:
    try:
        return parse_document_date(value)
    except ValueError:
        raise PydanticCustomError(
            "invalid_date",
            "Invalid date: {value}",
            {"value": str(value)},
        )


DocumentDate = Annotated[date | None, BeforeValidator(_coerce_date)]


class DocumentModel(BaseModel):
    """Base model with camelCase aliases for the persisted JSON format."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class DatedEntry(DocumentModel):
    """Base for entries with an optional start/end date range."""

    start_date: DocumentDate = None
    end_date: DocumentDate = None
    description: str = ""

    @model_validator(mode="after")
    def check_date_order(self):
        """End date must be strictly after start date when both are set."""
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise PydanticCustomError(
                "date_order",
                "End date cannot be earlier than start date.",
                {"field": "endDate"},
            )
        return self


class SkillEntry(DocumentModel):
    name: str = ""
    level: SkillLevel = "novice"

    @property
    def rank(self) -> int:
        return SKILL_LEVEL_RANKS[self.level]


class EducationEntry(DatedEntry):
    school: str = ""
    degree: str = ""


class EmploymentEntry(DatedEntry):
    job_title: str = ""
    company: str = ""


class LanguageEntry(DocumentModel):
    name: str = ""
    level: LanguageLevel = "basic"


class PersonalDetailsSection(DocumentModel):
    """Identity and contact data; source of the page header and profile."""

    type: Literal["personalDetails"] = PERSONAL_DETAILS
    title: str = DEFAULT_TITLES[PERSONAL_DETAILS]
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    country: str = ""
    city: str = ""
    address: str = ""
    postal_code: str = ""
    driving_license: str = ""
    nationality: str = ""
    place_of_birth: str = ""
    date_of_birth: DocumentDate = None
    summary: str = Field("", description="Rich text (restricted HTML)")
    wanted_job_title: str = ""

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class SkillsSection(DocumentModel):
    type: Literal["skills"] = SKILLS
    title: str = DEFAULT_TITLES[SKILLS]
    skills: list[SkillEntry] = Field(default_factory=list)

    @property
    def entries(self) -> list[SkillEntry]:
        return self.skills


class EducationsSection(DocumentModel):
    type: Literal["educations"] = EDUCATIONS
    title: str = DEFAULT_TITLES[EDUCATIONS]
    educations: list[EducationEntry] = Field(default_factory=list)

    @property
    def entries(self) -> list[EducationEntry]:
        return self.educations


class EmploymentHistorySection(DocumentModel):
    type: Literal["employmentHistory"] = EMPLOYMENT_HISTORY
    title: str = DEFAULT_TITLES[EMPLOYMENT_HISTORY]
    employments: list[EmploymentEntry] = Field(default_factory=list)

    @property
    def entries(self) -> list[EmploymentEntry]:
        return self.employments


class LanguagesSection(DocumentModel):
    type: Literal["languages"] = LANGUAGES
    title: str = DEFAULT_TITLES[LANGUAGES]
    languages: list[LanguageEntry] = Field(default_factory=list)

    @property
    def entries(self) -> list[LanguageEntry]:
        return self.languages


Section = Annotated[
    Union[
        PersonalDetailsSection,
        SkillsSection,
        EducationsSection,
        EmploymentHistorySection,
        LanguagesSection,
    ],
    Field(discriminator="type"),
]

SECTION_MODELS: dict[str, type[DocumentModel]] = {
    PERSONAL_DETAILS: PersonalDetailsSection,
    SKILLS: SkillsSection,
    EDUCATIONS: EducationsSection,
    EMPLOYMENT_HISTORY: EmploymentHistorySection,
    LANGUAGES: LanguagesSection,
}


def new_section(section_type: str, **overrides: Any) -> DocumentModel:
    """Build a section of the given type with default values.

    Args:
        section_type: One of ``SECTION_TYPES``
        **overrides: Field values (snake_case or camelCase) to set

    Returns:
        Validated section model

    Raises:
        KeyError: If the section type is unknown
    """
    model = SECTION_MODELS[section_type]
    return model.model_validate({**overrides, "type": section_type})

"""Two-column resume template.

``render_template`` maps a validated document and its style settings to a
``LayoutTree``. It is a pure function: no I/O, no clocks, and equal inputs
produce equal trees.

Layout rules:
    - Header: "firstName lastName" and the wanted job title, taken from the
      personal details section.
    - Sidebar: personal details (as a "Details" block), skills, languages.
    - Main column: profile (the personal details summary), education,
      employment history.
    - Within each column sections keep document order. Sections without
      entries are left out.
    - Every skill, education and employment entry is a keep-together block.
"""

from collections.abc import Callable

from resume_builder.schemas.document import DocumentSettings, ResumeDocument
from resume_builder.schemas.layout import (
    Block,
    Column,
    Divider,
    Gauge,
    LayoutTree,
    PageGeometry,
    TextNode,
    Theme,
)
from resume_builder.schemas.sections import (
    EDUCATIONS,
    EMPLOYMENT_HISTORY,
    LANGUAGES,
    PERSONAL_DETAILS,
    SECTION_TYPES,
    SKILLS,
    EducationsSection,
    EmploymentHistorySection,
    LanguagesSection,
    PersonalDetailsSection,
    SkillsSection,
)
from resume_builder.services.fonts import resolve_font_family, resolve_font_size
from resume_builder.services.rich_text import render_rich_text
from resume_builder.utils.date_parser import format_date_range, format_long_date

GAUGE_UNITS = 5

SIDEBAR = "sidebar"
MAIN = "main"

DETAILS_TITLE = "Details"
PROFILE_TITLE = "Profile"


def resolve_theme(settings: DocumentSettings | None, page: PageGeometry | None = None) -> Theme:
    """Resolve style settings against the font tables."""
    family = settings.font_family if settings else None
    size = settings.font_size if settings else None
    family_key, typeface = resolve_font_family(family)
    size_key, scale = resolve_font_size(size)
    return Theme(
        font_family=family_key,
        font_size=size_key,
        typeface=typeface,
        sizes=scale,
        page=page or PageGeometry(),
    )


def _section_block(title: str, children: list) -> Block:
    return Block(kind="section", children=(TextNode(title, "title"), Divider(), *children))


def _lines(*values: str) -> list[TextNode]:
    return [TextNode(value, "content") for value in values if value and value.strip()]


def _details_group(label: str, lines: list[TextNode]) -> Block:
    return Block(kind="details_group", children=(TextNode(label, "detail_title"), *lines))


def _render_personal_details(section: PersonalDetailsSection) -> Block:
    """Sidebar "Details" block; name and job title go to the header instead."""
    personal = _lines(
        section.place_of_birth,
        format_long_date(section.date_of_birth) if section.date_of_birth else "",
        f"License: {section.driving_license}" if section.driving_license else "",
        section.nationality,
    )
    location = ", ".join(part for part in (section.country, section.city) if part)
    address = _lines(location, section.address, section.postal_code)
    contact = _lines(section.email, section.phone)

    return Block(
        kind="section",
        children=(
            TextNode(DETAILS_TITLE, "title"),
            Divider(),
            _details_group("Personal", personal),
            _details_group("Address", address),
            _details_group("Contact", contact),
        ),
    )


def _render_skills(section: SkillsSection) -> Block | None:
    if not section.skills:
        return None
    entries = [
        Block(
            kind="skill",
            children=(TextNode(skill.name, "content"), Gauge(filled=skill.rank, total=GAUGE_UNITS)),
            keep_together=True,
        )
        for skill in section.skills
    ]
    return _section_block(section.title, entries)


def _render_languages(section: LanguagesSection) -> Block | None:
    if not section.languages:
        return None
    entries = [
        TextNode(f"{language.name} ({language.level})", "content")
        for language in section.languages
    ]
    return _section_block(section.title, entries)


def _dated_entry(kind: str, heading: str, start, end, description: str) -> Block:
    return Block(
        kind=kind,
        children=(
            TextNode(heading, "entry_title"),
            TextNode(format_date_range(start, end), "entry_date"),
            *render_rich_text(description),
        ),
        keep_together=True,
    )


def _render_educations(section: EducationsSection) -> Block | None:
    if not section.educations:
        return None
    entries = [
        _dated_entry(
            "education",
            ", ".join(part for part in (edu.degree, edu.school) if part),
            edu.start_date,
            edu.end_date,
            edu.description,
        )
        for edu in section.educations
    ]
    return _section_block(section.title, entries)


def _render_employment_history(section: EmploymentHistorySection) -> Block | None:
    if not section.employments:
        return None
    entries = [
        _dated_entry(
            "employment",
            ", ".join(part for part in (job.job_title, job.company) if part),
            job.start_date,
            job.end_date,
            job.description,
        )
        for job in section.employments
    ]
    return _section_block(section.title, entries)


# Section type -> (column, renderer). Every section type must be listed.
SECTION_RENDERERS: dict[str, tuple[str, Callable]] = {
    PERSONAL_DETAILS: (SIDEBAR, _render_personal_details),
    SKILLS: (SIDEBAR, _render_skills),
    LANGUAGES: (SIDEBAR, _render_languages),
    EDUCATIONS: (MAIN, _render_educations),
    EMPLOYMENT_HISTORY: (MAIN, _render_employment_history),
}

_missing = set(SECTION_TYPES) - set(SECTION_RENDERERS)
if _missing:
    raise RuntimeError(f"No template renderer for section types: {sorted(_missing)}")


def _render_header(personal: PersonalDetailsSection | None) -> Block:
    name = personal.full_name if personal else ""
    job_title = personal.wanted_job_title if personal else ""
    return Block(
        kind="header",
        children=(TextNode(name, "name"), TextNode(job_title, "job_title")),
        keep_together=True,
    )


def _render_profile(personal: PersonalDetailsSection | None) -> Block | None:
    if personal is None:
        return None
    summary = render_rich_text(personal.summary)
    if not summary:
        return None
    return _section_block(PROFILE_TITLE, list(summary))


def render_template(
    document: ResumeDocument,
    settings: DocumentSettings | None = None,
    page: PageGeometry | None = None,
) -> LayoutTree:
    """Map a validated document to the two-column layout tree.

    Args:
        document: Validated resume document
        settings: Style settings; defaults to ``document.settings``
        page: Page geometry; defaults to A4

    Returns:
        Layout tree ready for a renderer
    """
    theme = resolve_theme(settings or document.settings, page)
    personal = document.personal_details

    sidebar: list[Block] = []
    main: list[Block] = []

    profile = _render_profile(personal)
    if profile is not None:
        main.append(profile)

    for section in document.sections:
        column, renderer = SECTION_RENDERERS[section.type]
        block = renderer(section)
        if block is None:
            continue
        (sidebar if column == SIDEBAR else main).append(block)

    ratio = theme.page.sidebar_ratio
    return LayoutTree(
        theme=theme,
        header=_render_header(personal),
        sidebar=Column(name=SIDEBAR, width_ratio=ratio, blocks=tuple(sidebar)),
        main=Column(name=MAIN, width_ratio=1 - ratio, blocks=tuple(main)),
    )

"""Whole-document validation of untrusted input.

Validation is all-or-nothing: either the complete document validates, or a
single ``DocumentValidationError`` lists every violated constraint with its
field path. Nothing that fails here may be persisted or rendered.
"""

from typing import Any

from pydantic import ValidationError

from resume_builder.errors import DocumentValidationError, Violation
from resume_builder.schemas.document import ResumeDocument
from resume_builder.schemas.sections import SECTION_TYPES

# pydantic error types renamed to the codes callers match on
ERROR_CODES = {
    "union_tag_invalid": "unknown_section_type",
    "union_tag_not_found": "missing_section_type",
}


def format_path(loc: tuple[Any, ...]) -> str:
    """Render a pydantic location tuple as ``sections[0].educations[1].endDate``.

    Discriminated unions insert the tag value after the list index; it is
    dropped so paths mirror the JSON document.
    """
    parts: list[str] = []
    for position, item in enumerate(loc):
        if isinstance(item, int):
            if parts:
                parts[-1] = f"{parts[-1]}[{item}]"
            else:
                parts.append(f"[{item}]")
            continue
        if (
            position == 2
            and loc[0] == "sections"
            and isinstance(loc[1], int)
            and item in SECTION_TYPES
        ):
            continue
        parts.append(str(item))
    return ".".join(parts)


def violations_from_error(error: ValidationError) -> list[Violation]:
    """Convert a pydantic ``ValidationError`` into field-pathed violations."""
    violations = []
    for item in error.errors(include_url=False):
        loc = tuple(item.get("loc", ()))
        ctx = item.get("ctx") or {}
        # Entry-level checks attach the offending field through their context
        if "field" in ctx:
            loc = loc + (ctx["field"],)
        code = ERROR_CODES.get(item["type"], item["type"])
        violations.append(Violation(path=format_path(loc), code=code, message=item["msg"]))
    return violations


def validate(raw: Any) -> ResumeDocument:
    """Validate untrusted data into a ``ResumeDocument``.

    Dates are coerced to ``date``, section shapes are checked per ``type``,
    date ranges must end after they start, and missing fields receive their
    defaults. Validating an already-validated document's JSON is a no-op.

    Args:
        raw: Parsed JSON (dict), or an existing ``ResumeDocument``

    Returns:
        Validated document

    Raises:
        DocumentValidationError: With one violation per broken constraint
    """
    if isinstance(raw, ResumeDocument):
        raw = raw.model_dump(by_alias=True)
    try:
        return ResumeDocument.model_validate(raw)
    except ValidationError as e:
        raise DocumentValidationError(violations_from_error(e)) from e

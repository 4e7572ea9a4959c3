"""Exception taxonomy for the resume builder.

Validation failures carry one ``Violation`` per broken constraint so callers
can point the user at the exact field. Nothing here is fatal to the process:
the worst outcome of any of these errors is falling back to the default
document.
"""

from dataclasses import dataclass


class ResumeError(Exception):
    """Base class for all resume builder errors."""

    pass


@dataclass(frozen=True)
class Violation:
    """A single violated constraint.

    Attributes:
        path: Dotted field path, e.g. ``sections[2].educations[0].endDate``
        code: Machine-readable error code
        message: Human-readable description
    """

    path: str
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.path or '<root>'}: {self.message} [{self.code}]"


class DocumentValidationError(ResumeError):
    """Raised when a document (or a mutation of one) breaks the schema."""

    def __init__(self, violations: list[Violation]):
        self.violations = list(violations)
        summary = "; ".join(str(v) for v in self.violations[:5])
        if len(self.violations) > 5:
            summary += f"; ... ({len(self.violations) - 5} more)"
        super().__init__(
            f"Resume validation failed with {len(self.violations)} error(s): {summary}"
        )

    @property
    def codes(self) -> set[str]:
        return {v.code for v in self.violations}

    def paths(self) -> list[str]:
        return [v.path for v in self.violations]


class ResumeImportError(ResumeError):
    """Raised when an imported file cannot become the current document.

    ``kind`` separates files that could not be read, files that are not JSON,
    and JSON files that do not match the resume format. ``message`` is the
    text shown to the user.
    """

    READ_ERROR = "read_error"
    INVALID_JSON = "invalid_json"
    INVALID_SCHEMA = "invalid_schema"

    def __init__(
        self,
        kind: str,
        message: str,
        violations: list[Violation] | None = None,
    ):
        self.kind = kind
        self.message = message
        self.violations = list(violations or [])
        super().__init__(message)


class RenderError(ResumeError):
    """Raised when the renderer capability fails to produce a document."""

    pass


class TypstCompilationError(RenderError):
    """Raised when Typst compilation fails."""

    pass


class RenderTimeoutError(RenderError):
    """Raised when rendering exceeds its time limit."""

    pass


class SectionIndexError(ResumeError, IndexError):
    """Raised when a section index is outside the document."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"Section index {index} out of range (document has {size} sections)")

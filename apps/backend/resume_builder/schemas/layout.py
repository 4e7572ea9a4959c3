"""Layout tree produced by the template renderer.

The tree is renderer-agnostic: it says what goes in the page header and in
each of the two columns, which style every piece of text uses, and which
blocks must not be split across a page boundary. Pagination is left to the
renderer capability.

All nodes are frozen dataclasses, so equal trees compare equal and nodes can
be used as cache keys.
"""

from dataclasses import dataclass, field
from typing import Literal, Union

TextStyle = Literal[
    "name",
    "job_title",
    "title",
    "content",
    "detail_title",
    "entry_title",
    "entry_date",
    "paragraph",
]


@dataclass(frozen=True)
class Span:
    """A run of text with inline formatting."""

    text: str
    bold: bool = False
    italic: bool = False


@dataclass(frozen=True)
class TextNode:
    """A single line or paragraph of plain text in one style."""

    text: str
    style: TextStyle = "content"


@dataclass(frozen=True)
class RichParagraph:
    """Paragraph of formatted spans (from rich text fields)."""

    spans: tuple[Span, ...]

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)


@dataclass(frozen=True)
class RichList:
    """Ordered or unordered list of paragraphs."""

    ordered: bool
    items: tuple[RichParagraph, ...]


@dataclass(frozen=True)
class Gauge:
    """Discrete level indicator, e.g. 3 of 5 filled dots."""

    filled: int
    total: int = 5


@dataclass(frozen=True)
class Divider:
    """Horizontal rule under a section title."""

    pass


@dataclass(frozen=True)
class Block:
    """Group of nodes.

    Attributes:
        kind: What the block represents ("section", "skill", "education"...)
        children: Child nodes in display order
        keep_together: Must not be split across a page boundary
    """

    kind: str
    children: tuple["Node", ...] = ()
    keep_together: bool = False


Node = Union[TextNode, RichParagraph, RichList, Gauge, Divider, Block]


@dataclass(frozen=True)
class Typeface:
    """Font family variants and metrics used for layout."""

    normal: str
    bold: str
    italic: str
    bold_italic: str
    # Average glyph advance as a fraction of the font size
    width_factor: float
    typst_fonts: tuple[str, ...] = ()


@dataclass(frozen=True)
class SizeScale:
    """Point sizes for each text role."""

    small: float
    normal: float
    large: float
    title: float


@dataclass(frozen=True)
class PageGeometry:
    """A4 page in PDF points."""

    width: float = 595.28
    height: float = 841.89
    padding: float = 30.0
    sidebar_ratio: float = 0.3

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.padding

    @property
    def content_height(self) -> float:
        return self.height - 2 * self.padding


@dataclass(frozen=True)
class Theme:
    """Resolved font family, font scale and page geometry."""

    font_family: str
    font_size: int
    typeface: Typeface
    sizes: SizeScale
    page: PageGeometry = field(default_factory=PageGeometry)


@dataclass(frozen=True)
class Column:
    name: Literal["sidebar", "main"]
    width_ratio: float
    blocks: tuple[Block, ...] = ()


@dataclass(frozen=True)
class LayoutTree:
    """Fixed two-column page layout with a header on the first page."""

    theme: Theme
    header: Block
    sidebar: Column
    main: Column

    def columns(self) -> tuple[Column, Column]:
        return (self.sidebar, self.main)


@dataclass(frozen=True)
class PaginationHints:
    """Hints passed to the renderer alongside the layout tree."""

    page: PageGeometry = field(default_factory=PageGeometry)
    header_on_first_page_only: bool = True

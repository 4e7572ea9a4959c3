"""In-process paginating renderer producing a plain text proof.

Text is measured with the typeface's average glyph width, wrapped greedily
per column and stacked onto A4 pages. Keep-together blocks move to the next
page as a whole when they do not fit; only a block taller than an empty page
is split line by line. The two columns paginate independently and the page
count is the longer of the two. The header appears on the first page.

Block measurements are cached on the (block, theme, width) triple, so
re-rendering after a small edit only re-measures the blocks that changed.
"""

import logging
import textwrap
from dataclasses import dataclass, replace
from functools import lru_cache

from resume_builder.schemas.layout import (
    Block,
    Column,
    Divider,
    Gauge,
    LayoutTree,
    PaginationHints,
    RichList,
    RichParagraph,
    TextNode,
    Theme,
)
from resume_builder.services.renderer import RenderedDocument

logger = logging.getLogger(__name__)

LINE_HEIGHT = 1.2
DIVIDER_HEIGHT = 11.0
LIST_INDENT = 10.0

# Space after a block, by kind (points; "normal" means one normal font size)
BLOCK_MARGINS = {
    "section": 15.0,
    "details_group": 4.0,
    "skill": 4.0,
    "education": "normal",
    "employment": "normal",
    "header": "small",
}

STYLE_SIZES = {
    "name": "title",
    "job_title": "normal",
    "title": "large",
    "content": "small",
    "detail_title": "normal",
    "entry_title": "normal",
    "entry_date": "small",
    "paragraph": "normal",
}

FILLED_UNIT = "●"
EMPTY_UNIT = "○"


@dataclass(frozen=True)
class _Line:
    text: str
    height: float


@dataclass(frozen=True)
class _Unit:
    """Smallest piece placed on a page."""

    lines: tuple[_Line, ...]
    keep_together: bool = False
    spacing: float = 0.0

    @property
    def height(self) -> float:
        return sum(line.height for line in self.lines)


def _size(theme: Theme, role: str) -> float:
    return getattr(theme.sizes, role)


def _wrap(text: str, width: float, size: float, theme: Theme, indent: str = "") -> list[str]:
    chars = max(1, int(width / (size * theme.typeface.width_factor)))
    lines: list[str] = []
    for raw_line in text.split("\n") or [""]:
        wrapped = textwrap.wrap(
            raw_line,
            width=chars,
            initial_indent=indent,
            subsequent_indent=" " * len(indent),
            break_long_words=True,
        )
        lines.extend(wrapped or [indent.rstrip()])
    return lines


def _text_lines(text: str, role: str, width: float, theme: Theme, indent: str = "") -> list[_Line]:
    size = _size(theme, role)
    return [_Line(line, size * LINE_HEIGHT) for line in _wrap(text, width, size, theme, indent)]


def _node_lines(node, width: float, theme: Theme) -> list[_Line]:
    if isinstance(node, TextNode):
        return _text_lines(node.text, STYLE_SIZES[node.style], width, theme)
    if isinstance(node, RichParagraph):
        return _text_lines(node.text, "normal", width, theme)
    if isinstance(node, RichList):
        lines: list[_Line] = []
        for number, item in enumerate(node.items, start=1):
            marker = f"{number}. " if node.ordered else "• "
            lines.extend(_text_lines(item.text, "normal", width - LIST_INDENT, theme, indent=marker))
        return lines
    if isinstance(node, Gauge):
        text = FILLED_UNIT * node.filled + EMPTY_UNIT * (node.total - node.filled)
        return [_Line(text, _size(theme, "normal") / 2 + 2)]
    if isinstance(node, Divider):
        chars = max(1, int(width / (_size(theme, "small") * theme.typeface.width_factor)))
        return [_Line("-" * chars, DIVIDER_HEIGHT)]
    if isinstance(node, Block):
        lines = []
        for child in node.children:
            lines.extend(_node_lines(child, width, theme))
        return lines
    raise TypeError(f"Unknown layout node: {type(node).__name__}")


def _margin(kind: str, theme: Theme) -> float:
    margin = BLOCK_MARGINS.get(kind, 0.0)
    if isinstance(margin, str):
        return _size(theme, margin)
    return margin


@lru_cache(maxsize=2048)
def measure_block(block: Block, theme: Theme, width: float) -> tuple[_Unit, ...]:
    """Split a block into placement units.

    Keep-together blocks become one unit; other blocks contribute one unit
    per child so they can break between children.
    """
    spacing = _margin(block.kind, theme)
    if block.keep_together:
        return (_Unit(tuple(_node_lines(block, width, theme)), keep_together=True, spacing=spacing),)

    units: list[_Unit] = []
    for child in block.children:
        if isinstance(child, Block):
            units.extend(measure_block(child, theme, width))
        else:
            units.append(_Unit(tuple(_node_lines(child, width, theme))))
    if units:
        last = units[-1]
        units[-1] = _Unit(last.lines, last.keep_together, last.spacing + spacing)
    return tuple(units)


def _column_width(column: Column, theme: Theme) -> float:
    return column.width_ratio * theme.page.content_width - 2 * _size(theme, "normal")


def _paginate_column(
    units: list[_Unit],
    page_height: float,
    first_page_offset: float,
) -> list[list[str]]:
    """Stack units onto pages; returns the lines of each page."""
    pages: list[list[str]] = [[]]
    y = first_page_offset

    def new_page():
        nonlocal y
        pages.append([])
        y = 0.0

    for unit in units:
        fits_empty_page = unit.height <= page_height
        if unit.keep_together and fits_empty_page and y + unit.height > page_height and y > 0:
            new_page()
        for line in unit.lines:
            if y + line.height > page_height and y > 0:
                new_page()
            pages[-1].append(line.text)
            y += line.height
        y += unit.spacing
    return pages


class TextProofRenderer:
    """Renderer capability that paginates in process and emits text."""

    media_type = "text/plain; charset=utf-8"

    def paginate(self, tree: LayoutTree, hints: PaginationHints | None = None) -> RenderedDocument:
        """Synchronous pagination; ``render`` wraps this for the async protocol."""
        theme = tree.theme
        if hints is not None and hints.page != theme.page:
            theme = replace(theme, page=hints.page)
        page_height = theme.page.content_height

        header_width = theme.page.content_width
        header_units = measure_block(tree.header, theme, header_width)
        header_lines = [line.text for unit in header_units for line in unit.lines]
        header_height = sum(unit.height + unit.spacing for unit in header_units)

        column_pages: list[list[list[str]]] = []
        for column in tree.columns():
            width = _column_width(column, theme)
            units = [unit for block in column.blocks for unit in measure_block(block, theme, width)]
            column_pages.append(_paginate_column(units, page_height, header_height))

        page_count = max(len(pages) for pages in column_pages)
        rendered_pages = []
        for index in range(page_count):
            parts = [f"=== Page {index + 1}/{page_count} ==="]
            if index == 0:
                parts.extend(header_lines)
            for column, pages in zip(tree.columns(), column_pages):
                lines = pages[index] if index < len(pages) else []
                if lines:
                    parts.append(f"--- {column.name} ---")
                    parts.extend(lines)
            rendered_pages.append("\n".join(parts))

        logger.debug(f"Text proof paginated to {page_count} page(s)")
        return RenderedDocument(
            content="\f".join(rendered_pages).encode("utf-8"),
            page_count=page_count,
            media_type=self.media_type,
            pages=tuple(rendered_pages),
        )

    async def render(self, tree: LayoutTree, hints: PaginationHints | None = None) -> RenderedDocument:
        return self.paginate(tree, hints)

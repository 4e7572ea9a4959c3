"""PDF generation service using Typst compiler.

This service converts a layout tree into Typst markup and compiles it to PDF
using the Typst CLI binary. The page count is read back from the compiled PDF
with pdfminer.

Keep-together blocks become ``block(breakable: false)``, so Typst moves a whole
entry to the next page instead of splitting it.
"""

import asyncio
import io
import logging
import tempfile
from pathlib import Path

from pdfminer.pdfpage import PDFPage

from resume_builder.config import settings
from resume_builder.errors import RenderError, RenderTimeoutError, TypstCompilationError
from resume_builder.schemas.layout import (
    Block,
    Divider,
    Gauge,
    LayoutTree,
    PaginationHints,
    RichList,
    RichParagraph,
    Span,
    TextNode,
    Theme,
)
from resume_builder.services.renderer import RenderedDocument

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"

# Typst styling per text role: (size role, weight, style)
TEXT_STYLES = {
    "name": ("title", "bold", "normal"),
    "job_title": ("normal", "regular", "normal"),
    "title": ("large", "bold", "normal"),
    "content": ("small", "regular", "normal"),
    "detail_title": ("normal", "bold", "normal"),
    "entry_title": ("normal", "bold", "normal"),
    "entry_date": ("small", "regular", "italic"),
    "paragraph": ("normal", "regular", "normal"),
}

CENTERED_STYLES = {"name", "job_title"}

GAUGE_FILLED = "black"
GAUGE_EMPTY = 'rgb("#9ca3af")'


def typst_string(text: str) -> str:
    """Quote text as a Typst string literal."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def _pt(value: float) -> str:
    return f"{value:g}pt"


def _span(span: Span, size: float) -> str:
    weight = "bold" if span.bold else "regular"
    style = "italic" if span.italic else "normal"
    return f'text(size: {_pt(size)}, weight: "{weight}", style: "{style}", {typst_string(span.text)})'


def _paragraph(paragraph: RichParagraph, theme: Theme) -> str:
    size = theme.sizes.normal
    return "[" + "".join(f"#{_span(span, size)}" for span in paragraph.spans) + "]"


def _node(node, theme: Theme) -> str:
    """Typst code expression for one layout node."""
    if isinstance(node, TextNode):
        role, weight, style = TEXT_STYLES[node.style]
        size = getattr(theme.sizes, role)
        text = f'text(size: {_pt(size)}, weight: "{weight}", style: "{style}", {typst_string(node.text)})'
        if node.style in CENTERED_STYLES:
            return f"align(center, {text})"
        return text
    if isinstance(node, RichParagraph):
        return _paragraph(node, theme)
    if isinstance(node, RichList):
        function = "enum" if node.ordered else "list"
        items = ", ".join(_paragraph(item, theme) for item in node.items)
        return f"{function}({items})"
    if isinstance(node, Gauge):
        radius = theme.sizes.normal / 4
        dots = [
            f"circle(radius: {_pt(radius)}, fill: {GAUGE_FILLED if i < node.filled else GAUGE_EMPTY})"
            for i in range(node.total)
        ]
        return f"stack(dir: ltr, spacing: 2pt, {', '.join(dots)})"
    if isinstance(node, Divider):
        return "line(length: 100%, stroke: 1pt)"
    if isinstance(node, Block):
        children = ", ".join(_node(child, theme) for child in node.children) or "[]"
        breakable = "false" if node.keep_together else "true"
        return f"block(breakable: {breakable}, width: 100%, stack(dir: ttb, spacing: 3pt, {children}))"
    raise TypeError(f"Unknown layout node: {type(node).__name__}")


def to_typst_markup(tree: LayoutTree, hints: PaginationHints | None = None) -> str:
    """Convert a layout tree to a standalone Typst document.

    Args:
        tree: Layout tree from the template renderer
        hints: Page geometry override

    Returns:
        Typst source text
    """
    theme = tree.theme
    page = hints.page if hints else theme.page
    fonts = ", ".join(typst_string(font) for font in theme.typeface.typst_fonts)
    sidebar = ", ".join(_node(block, theme) for block in tree.sidebar.blocks) or "[]"
    main = ", ".join(_node(block, theme) for block in tree.main.blocks) or "[]"
    sidebar_pct = round(tree.sidebar.width_ratio * 100, 2)
    main_pct = round(tree.main.width_ratio * 100, 2)
    inset = _pt(theme.sizes.normal)

    return "\n".join([
        f"#set page(width: {_pt(page.width)}, height: {_pt(page.height)}, margin: {_pt(page.padding)})",
        f"#set text(font: ({fonts},), size: {_pt(theme.sizes.normal)})",
        f"#{_node(tree.header, theme)}",
        f"#v({_pt(theme.sizes.small)})",
        f"#grid(columns: ({sidebar_pct}%, {main_pct}%), inset: {inset},",
        f"  stack(dir: ttb, spacing: 15pt, {sidebar}),",
        f"  stack(dir: ttb, spacing: 15pt, {main}),",
        ")",
        "",
    ])


def count_pdf_pages(pdf_bytes: bytes) -> int:
    """Count pages of a PDF document."""
    return sum(1 for _ in PDFPage.get_pages(io.BytesIO(pdf_bytes)))


class TypstRenderer:
    """Renderer capability backed by the Typst CLI.

    Performance:
    - Async subprocess execution (non-blocking)
    - Temp files in the system temp dir
    - Timeout protection
    """

    media_type = PDF_MEDIA_TYPE

    def __init__(self, binary: str | None = None, timeout: float | None = None):
        self.binary = binary or settings.typst_binary
        self.timeout = timeout or settings.render_timeout

    async def render(self, tree: LayoutTree, hints: PaginationHints | None = None) -> RenderedDocument:
        """Compile the layout tree to PDF.

        Args:
            tree: Layout tree
            hints: Pagination hints (page geometry)

        Returns:
            RenderedDocument with PDF bytes and page count

        Raises:
            TypstCompilationError: If compilation fails
            RenderTimeoutError: If compilation exceeds the timeout
            RenderError: If the compiler binary is missing
        """
        start_time = asyncio.get_running_loop().time()

        with tempfile.TemporaryDirectory(prefix="typst_") as tmpdir:
            tmpdir_path = Path(tmpdir)
            source_path = tmpdir_path / "resume.typ"
            output_pdf_path = tmpdir_path / "resume.pdf"
            source_path.write_text(to_typst_markup(tree, hints), encoding="utf-8")

            try:
                process = await asyncio.create_subprocess_exec(
                    self.binary,
                    "compile",
                    str(source_path),
                    str(output_pdf_path),
                    "--root", str(tmpdir_path),
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except FileNotFoundError as e:
                raise RenderError(f"Typst binary not found: {self.binary}") from e

            try:
                _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
                raise RenderTimeoutError(f"Typst compilation timed out after {self.timeout}s")
            except asyncio.CancelledError:
                if process.returncode is None:
                    process.kill()
                raise

            if process.returncode != 0:
                error_msg = stderr.decode("utf-8", errors="replace")
                logger.error(f"Typst compilation failed: {error_msg}")
                raise TypstCompilationError(
                    f"Typst compilation failed (exit {process.returncode}): {error_msg}"
                )

            if not output_pdf_path.exists():
                raise TypstCompilationError("Typst compilation succeeded but PDF not found")

            pdf_bytes = output_pdf_path.read_bytes()

        page_count = count_pdf_pages(pdf_bytes)
        elapsed = asyncio.get_running_loop().time() - start_time
        logger.info(f"PDF generated in {elapsed:.2f}s ({len(pdf_bytes)} bytes, {page_count} page(s))")
        return RenderedDocument(content=pdf_bytes, page_count=page_count, media_type=self.media_type)

"""Renderer capability interface.

A renderer turns a layout tree plus pagination hints into a paginated
artifact. Implementations:

    - ``TextProofRenderer`` (services.text_proof): pure Python, measures and
      paginates in process; used for the live preview.
    - ``TypstRenderer`` (services.pdf_generator): compiles a PDF with the
      Typst CLI; used for downloads.
"""

from dataclasses import dataclass
from typing import Protocol

from resume_builder.schemas.layout import LayoutTree, PaginationHints


@dataclass(frozen=True)
class RenderedDocument:
    """Paginated output of a renderer.

    Attributes:
        content: Artifact bytes (PDF, or UTF-8 text proof)
        page_count: Number of pages, at least 1
        media_type: MIME type of ``content``
        pages: Per-page text where the renderer provides it
    """

    content: bytes
    page_count: int
    media_type: str
    pages: tuple[str, ...] = ()


class Renderer(Protocol):
    """Anything that can paginate a layout tree."""

    async def render(
        self,
        tree: LayoutTree,
        hints: PaginationHints | None = None,
    ) -> RenderedDocument:
        ...

"""Live preview of the rendered document.

The controller debounces change notifications, runs the template and the
renderer capability, and keeps track of which page is on screen.

Renders are latest-wins. At most one render is in flight; a change that
arrives meanwhile marks the preview dirty, the in-flight result is discarded
when it lands, and a render of the newest document starts right away.
"""

import asyncio
import logging
from enum import Enum

from resume_builder.config import settings
from resume_builder.errors import RenderError
from resume_builder.schemas.document import ResumeDocument
from resume_builder.schemas.layout import PaginationHints
from resume_builder.services.renderer import RenderedDocument, Renderer
from resume_builder.services.scheduling import Debouncer, Scheduler
from resume_builder.services.template import render_template

logger = logging.getLogger(__name__)


class PreviewState(str, Enum):
    IDLE = "idle"
    RENDERING = "rendering"
    READY = "ready"
    ERROR = "error"


class PreviewController:
    """Debounced, latest-wins preview with page navigation.

    Args:
        renderer: Renderer capability used for the preview
        scheduler: Timer source for the debounce
        delay: Quiet interval in seconds before re-rendering
        min_width: Smallest allowed render width
        max_width: Largest allowed render width (also the initial width)
        hints: Pagination hints passed to the renderer
    """

    def __init__(
        self,
        renderer: Renderer,
        scheduler: Scheduler,
        delay: float | None = None,
        min_width: float | None = None,
        max_width: float | None = None,
        hints: PaginationHints | None = None,
    ):
        self.renderer = renderer
        self.delay = settings.preview_delay if delay is None else delay
        self.min_width = settings.preview_min_width if min_width is None else min_width
        self.max_width = settings.preview_max_width if max_width is None else max_width
        self.hints = hints

        self.state = PreviewState.IDLE
        self.artifact: RenderedDocument | None = None
        self.last_error: RenderError | None = None
        self.current_page = 1
        self.width = self.max_width

        self._debouncer = Debouncer(scheduler)
        self._document: ResumeDocument | None = None
        self._generation = 0
        self._task: asyncio.Task | None = None
        self._dirty = False
        self._closed = False
        self._first_request = True

    # Rendering

    @property
    def total_pages(self) -> int:
        return self.artifact.page_count if self.artifact else 0

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    def request_render(self, document: ResumeDocument) -> None:
        """Schedule a render of ``document``, replacing any earlier request.

        The first request renders with no delay so the preview appears as
        soon as the session opens.
        """
        if self._closed:
            return
        self._document = document
        self._generation += 1
        delay = 0 if self._first_request else self.delay
        self._first_request = False
        self._debouncer.schedule(self._start, delay)

    def retry(self) -> None:
        """Render the latest document again after a failure."""
        if self._closed or self._document is None:
            return
        self._debouncer.cancel_pending()
        self._start()

    def _start(self) -> None:
        if self._closed or self._document is None:
            return
        if self.in_flight:
            self._dirty = True
            return
        self._launch()

    def _launch(self) -> None:
        self._dirty = False
        self.state = PreviewState.RENDERING
        self._task = asyncio.get_running_loop().create_task(
            self._render(self._document, self._generation)
        )

    async def _render(self, document: ResumeDocument, generation: int) -> None:
        result = None
        error = None
        try:
            tree = render_template(document)
            result = await self.renderer.render(tree, self.hints)
        except RenderError as e:
            error = e
        except Exception as e:
            error = RenderError(f"Preview rendering failed: {type(e).__name__}: {e}")

        if self._closed:
            return
        self._task = None

        if generation != self._generation:
            logger.debug(f"Discarding superseded preview render (generation {generation})")
            if self._dirty:
                self._launch()
            return

        if error is not None:
            logger.error(f"Preview render failed: {error}")
            self.state = PreviewState.ERROR
            self.last_error = error
            return

        self._apply(result)

    def _apply(self, result: RenderedDocument) -> None:
        self.artifact = result
        self.last_error = None
        self.state = PreviewState.READY
        if self.current_page > result.page_count:
            self.current_page = 1
        logger.debug(f"Preview ready: {result.page_count} page(s)")

    async def wait_idle(self) -> None:
        """Wait until no render is in flight (follow-up renders included)."""
        while self._task is not None:
            await asyncio.wait({self._task})

    def close(self) -> None:
        """Stop the preview. Pending timers are cancelled and an in-flight
        render is abandoned without being awaited."""
        self._closed = True
        self._debouncer.cancel_pending()
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.state = PreviewState.IDLE

    # Navigation

    def go_to_page(self, page: int) -> int:
        """Show ``page``, clamped to the rendered page range."""
        self.current_page = min(max(1, page), max(1, self.total_pages))
        return self.current_page

    def next_page(self) -> int:
        return self.go_to_page(self.current_page + 1)

    def previous_page(self) -> int:
        return self.go_to_page(self.current_page - 1)

    @property
    def current_page_content(self) -> str | None:
        """Text of the page on screen, for renderers that provide one."""
        if self.artifact is None or not self.artifact.pages:
            return None
        return self.artifact.pages[self.current_page - 1]

    def resize(self, available_width: float) -> float:
        """Recalculate the render width for a new container width."""
        self.width = min(max(available_width, self.min_width), self.max_width)
        return self.width

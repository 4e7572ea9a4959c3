"""Editing session: one document, its autosave and its preview.

The section store is the single writer. Autosave and preview subscribe to
its change notifications and debounce independently, so neither pipeline
waits for the other.
"""

import logging

from resume_builder.config import settings
from resume_builder.schemas.document import ResumeDocument
from resume_builder.services.persistence import KeyValueStore, PendingImport, PersistenceBridge
from resume_builder.services.preview import PreviewController
from resume_builder.services.renderer import RenderedDocument, Renderer
from resume_builder.services.scheduling import AsyncioScheduler, Scheduler
from resume_builder.services.section_store import SectionStore
from resume_builder.services.template import render_template

logger = logging.getLogger(__name__)


class ResumeSession:
    """Wires a SectionStore to a PersistenceBridge and a PreviewController.

    Use ``ResumeSession.open`` to load the stored document and start both
    pipelines; ``close`` stops the preview and flushes autosave.
    """

    def __init__(
        self,
        store: SectionStore,
        bridge: PersistenceBridge,
        preview: PreviewController,
        pdf_renderer: Renderer,
    ):
        self.store = store
        self.bridge = bridge
        self.preview = preview
        self.pdf_renderer = pdf_renderer
        self._unsubscribe = [
            store.subscribe(bridge.autosave),
            store.subscribe(preview.request_render),
        ]

    @classmethod
    async def open(
        cls,
        kv_store: KeyValueStore,
        preview_renderer: Renderer,
        pdf_renderer: Renderer | None = None,
        scheduler: Scheduler | None = None,
        autosave_delay: float | None = None,
        preview_delay: float | None = None,
        key: str | None = None,
    ) -> "ResumeSession":
        """Load the stored document and start an editing session.

        Args:
            kv_store: Store capability holding the document
            preview_renderer: Renderer used for the live preview
            pdf_renderer: Renderer used for downloads, defaults to the preview one
            scheduler: Timer source, defaults to the running event loop
            autosave_delay: Autosave quiet interval in seconds
            preview_delay: Preview quiet interval in seconds
            key: Storage key

        Returns:
            Open session with the first preview render scheduled
        """
        scheduler = scheduler or AsyncioScheduler()
        bridge = PersistenceBridge(kv_store, scheduler, key=key, delay=autosave_delay)
        document = await bridge.load()
        preview = PreviewController(
            preview_renderer,
            scheduler,
            delay=preview_delay,
            min_width=settings.preview_min_width,
            max_width=settings.preview_max_width,
        )
        session = cls(SectionStore(document), bridge, preview, pdf_renderer or preview_renderer)
        preview.request_render(session.store.snapshot())
        logger.info(f"Editing session opened with {len(session.store)} section(s)")
        return session

    @property
    def document(self) -> ResumeDocument:
        return self.store.snapshot()

    def export_file(self) -> bytes:
        return self.bridge.export_file(self.store.snapshot())

    def import_file(self, data: bytes | str) -> PendingImport:
        """Validate an uploaded file. Nothing changes until it is confirmed."""
        return self.bridge.import_file(data)

    async def confirm_import(self, pending: PendingImport) -> ResumeDocument:
        """Store the imported document and make it the current one."""
        document = await pending.confirm()
        return self.store.replace(document)

    async def download_pdf(self) -> RenderedDocument:
        """Render the current document with the PDF renderer."""
        tree = render_template(self.store.snapshot())
        return await self.pdf_renderer.render(tree)

    async def close(self) -> None:
        """Stop the preview and write any pending autosave."""
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
        self.preview.close()
        if self.bridge.flush():
            logger.info("Flushed pending autosave on close")
        await self.bridge.drain()

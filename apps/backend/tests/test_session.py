"""Tests for the editing session wiring."""

import json

import pytest

from resume_builder.schemas.document import default_document, serialize_document
from resume_builder.services.persistence import MemoryStore
from resume_builder.services.preview import PreviewState
from resume_builder.services.session import ResumeSession
from resume_builder.services.text_proof import TextProofRenderer

AUTOSAVE_DELAY = 1.0
PREVIEW_DELAY = 0.5


@pytest.fixture
async def session(memory_store, scheduler):
    session = await ResumeSession.open(
        memory_store,
        preview_renderer=TextProofRenderer(),
        scheduler=scheduler,
        autosave_delay=AUTOSAVE_DELAY,
        preview_delay=PREVIEW_DELAY,
        key="resume",
    )
    yield session
    await session.close()


async def test_opens_with_default_document(session, scheduler):
    assert session.document == default_document()
    scheduler.advance(0)
    await session.preview.wait_idle()
    assert session.preview.state == PreviewState.READY
    assert session.preview.total_pages == 1


async def test_opens_stored_document(scheduler, ada_document):
    store = MemoryStore({"resume": serialize_document(ada_document)})
    session = await ResumeSession.open(store, TextProofRenderer(), scheduler=scheduler, key="resume")
    assert session.document == ada_document
    await session.close()


async def test_edits_feed_both_pipelines(session, memory_store, scheduler):
    scheduler.advance(0)
    await session.preview.wait_idle()

    session.store.update(0, {"firstName": "Ada", "lastName": "Lovelace"})
    scheduler.advance(PREVIEW_DELAY)
    await session.preview.wait_idle()
    assert "Ada Lovelace" in session.preview.current_page_content
    assert memory_store.write_count == 0

    scheduler.advance(AUTOSAVE_DELAY - PREVIEW_DELAY)
    assert memory_store.write_count == 1
    assert json.loads(memory_store.data["resume"])["sections"][0]["lastName"] == "Lovelace"


async def test_close_flushes_autosave(memory_store, scheduler):
    session = await ResumeSession.open(memory_store, TextProofRenderer(), scheduler=scheduler, key="resume")
    session.store.append("languages")
    await session.close()
    assert memory_store.write_count == 1
    assert scheduler.pending == 0

    # Closed sessions no longer listen to the store
    session.store.append("educations")
    assert scheduler.pending == 0


async def test_confirmed_import_replaces_document(session, memory_store, ada_document):
    pending = session.import_file(serialize_document(ada_document, pretty=True))
    assert session.document == default_document()

    await session.confirm_import(pending)
    assert session.document == ada_document
    assert memory_store.data["resume"] == serialize_document(ada_document)


async def test_cancelled_import_changes_nothing(session, memory_store, ada_document):
    pending = session.import_file(serialize_document(ada_document))
    pending.cancel()
    assert session.document == default_document()
    assert memory_store.write_count == 0


async def test_export(session):
    assert json.loads(session.export_file()) == json.loads(serialize_document(default_document()))


async def test_download_uses_pdf_renderer(session, ada_document):
    session.store.replace(ada_document)
    rendered = await session.download_pdf()
    assert rendered.page_count == 1
    assert b"Ada Lovelace" in rendered.content

"""Tests for the SQLite-backed key-value store."""

import pytest

from resume_builder.schemas.document import serialize_document
from resume_builder.services.persistence import PersistenceBridge, SqlStore


@pytest.fixture
async def sql_store(tmp_path):
    store = SqlStore(f"sqlite+aiosqlite:///{tmp_path / 'resume.db'}")
    await store.init()
    yield store
    await store.close()


async def test_missing_key(sql_store):
    assert await sql_store.get("resume") is None


async def test_set_then_get(sql_store):
    await sql_store.set("resume", b'{"sections":[]}')
    assert await sql_store.get("resume") == b'{"sections":[]}'


async def test_set_replaces_payload(sql_store):
    await sql_store.set("resume", b"first")
    await sql_store.set("resume", b"second")
    assert await sql_store.get("resume") == b"second"


async def test_bridge_round_trip(sql_store, scheduler, ada_document):
    bridge = PersistenceBridge(sql_store, scheduler, key="resume", delay=1.0)
    bridge.autosave(ada_document)
    scheduler.advance(1.0)
    await bridge.drain()
    assert await sql_store.get("resume") == serialize_document(ada_document)
    assert await bridge.load() == ada_document


async def test_data_survives_reopen(tmp_path, ada_document):
    url = f"sqlite+aiosqlite:///{tmp_path / 'resume.db'}"
    first = SqlStore(url)
    await first.init()
    await first.set("resume", serialize_document(ada_document))
    await first.close()

    second = SqlStore(url)
    await second.init()
    try:
        assert await second.get("resume") == serialize_document(ada_document)
    finally:
        await second.close()

"""Tests for autosave, load fallback, import and export."""

import asyncio
import json

import pytest

from resume_builder.errors import ResumeError, ResumeImportError
from resume_builder.schemas.document import default_document, serialize_document
from resume_builder.services.persistence import MemoryStore, PersistenceBridge
from resume_builder.services.section_store import SectionStore

DELAY = 1.0


@pytest.fixture
def bridge(memory_store, scheduler):
    return PersistenceBridge(memory_store, scheduler, key="resume", delay=DELAY)


class SlowFirstWriteStore:
    """Async store whose first write finishes after later ones are issued."""

    def __init__(self):
        self.data = {}
        self.writes = []

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        slow = not self.writes
        self.writes.append(value)
        if slow:
            await asyncio.sleep(0.05)
        self.data[key] = value


class TestAutosave:
    def test_burst_produces_one_write(self, bridge, memory_store, scheduler, default_doc):
        store = SectionStore(default_doc)
        store.subscribe(bridge.autosave)

        for name in ["A", "Ad", "Ada"]:
            store.update(0, {"firstName": name})
            scheduler.advance(0.5)
        assert memory_store.write_count == 0

        scheduler.advance(0.5)
        assert memory_store.write_count == 1
        saved = json.loads(memory_store.data["resume"])
        assert saved["sections"][0]["firstName"] == "Ada"

    def test_write_is_timed_from_last_edit(self, bridge, memory_store, scheduler, default_doc):
        bridge.autosave(default_doc)
        scheduler.advance(0.75)
        bridge.autosave(default_doc)
        scheduler.advance(0.75)
        assert memory_store.write_count == 0
        scheduler.advance(0.25)
        assert memory_store.write_count == 1

    def test_spaced_edits_each_write(self, bridge, memory_store, scheduler, default_doc):
        for _ in range(3):
            bridge.autosave(default_doc)
            scheduler.advance(DELAY + 0.1)
        assert memory_store.write_count == 3

    def test_write_is_whole_document(self, bridge, memory_store, scheduler, ada_document):
        bridge.autosave(ada_document)
        scheduler.advance(DELAY)
        assert memory_store.data["resume"] == serialize_document(ada_document)

    def test_flush_writes_immediately(self, bridge, memory_store, default_doc):
        bridge.autosave(default_doc)
        assert bridge.autosave_pending
        assert bridge.flush() is True
        assert memory_store.write_count == 1
        assert bridge.flush() is False

    def test_later_mutation_does_not_leak_into_pending_write(self, bridge, memory_store, scheduler, default_doc):
        bridge.autosave(default_doc)
        default_doc.sections[0].first_name = "Changed"
        scheduler.advance(DELAY)
        saved = json.loads(memory_store.data["resume"])
        assert saved["sections"][0]["firstName"] == ""

    async def test_slow_write_is_not_overtaken(self, scheduler, default_doc):
        store = SlowFirstWriteStore()
        bridge = PersistenceBridge(store, scheduler, key="resume", delay=DELAY)
        latest = default_doc.model_copy(deep=True)
        latest.sections[0].first_name = "Latest"

        bridge.autosave(default_doc)
        scheduler.advance(DELAY)
        bridge.autosave(latest)
        scheduler.advance(DELAY)
        await bridge.drain()

        assert store.writes == [serialize_document(default_doc), serialize_document(latest)]
        assert (await bridge.load()).sections[0].first_name == "Latest"

    async def test_flush_during_slow_write_keeps_latest(self, scheduler, default_doc):
        store = SlowFirstWriteStore()
        bridge = PersistenceBridge(store, scheduler, key="resume", delay=DELAY)
        latest = default_doc.model_copy(deep=True)
        latest.sections[0].first_name = "Latest"

        bridge.autosave(default_doc)
        scheduler.advance(DELAY)
        bridge.autosave(latest)
        assert bridge.flush() is True
        await bridge.drain()

        saved = json.loads(store.data["resume"])
        assert saved["sections"][0]["firstName"] == "Latest"

    async def test_writes_queued_behind_slow_write_collapse(self, scheduler, default_doc):
        store = SlowFirstWriteStore()
        bridge = PersistenceBridge(store, scheduler, key="resume", delay=DELAY)

        bridge.autosave(default_doc)
        scheduler.advance(DELAY)
        for name in ["A", "Ad", "Ada"]:
            edited = default_doc.model_copy(deep=True)
            edited.sections[0].first_name = name
            bridge.autosave(edited)
            scheduler.advance(DELAY)
        await bridge.drain()

        assert len(store.writes) == 2
        assert json.loads(store.data["resume"])["sections"][0]["firstName"] == "Ada"


class TestLoad:
    async def test_missing_key_gives_default(self, bridge):
        assert await bridge.load() == default_document()

    @pytest.mark.parametrize(
        "stored",
        [
            b"",
            "",
            b"not json",
            "not json",
            b"\xff\xfe\x00",
            json.dumps({"sections": [{"type": "hobbies"}]}),
            json.dumps({"sections": "nope"}),
            json.dumps([1, 2, 3]),
        ],
    )
    async def test_corrupt_data_falls_back_to_default(self, scheduler, stored):
        bridge = PersistenceBridge(MemoryStore({"resume": stored}), scheduler, key="resume")
        assert await bridge.load() == default_document()

    async def test_loads_stored_document(self, scheduler, ada_document):
        store = MemoryStore({"resume": serialize_document(ada_document)})
        bridge = PersistenceBridge(store, scheduler, key="resume")
        assert await bridge.load() == ada_document

    async def test_failing_store_falls_back(self, scheduler):
        class BrokenStore:
            def get(self, key):
                raise OSError("disk gone")

            def set(self, key, value):
                raise OSError("disk gone")

        bridge = PersistenceBridge(BrokenStore(), scheduler, key="resume")
        assert await bridge.load() == default_document()

    async def test_awaitable_store(self, scheduler, ada_document):
        class AsyncStore:
            def __init__(self):
                self.data = {}

            async def get(self, key):
                return self.data.get(key)

            async def set(self, key, value):
                self.data[key] = value

        store = AsyncStore()
        bridge = PersistenceBridge(store, scheduler, key="resume", delay=DELAY)
        bridge.autosave(ada_document)
        scheduler.advance(DELAY)
        await bridge.drain()
        assert await bridge.load() == ada_document


class TestExport:
    def test_export_is_pretty_json(self, bridge, ada_document):
        exported = bridge.export_file(ada_document)
        assert exported.startswith(b"{\n  ")
        assert bridge.import_file(exported).document == ada_document


class TestImport:
    def test_not_utf8(self, bridge):
        with pytest.raises(ResumeImportError) as exc_info:
            bridge.import_file(b"\xff\xfe\xfa")
        assert exc_info.value.kind == ResumeImportError.READ_ERROR
        assert exc_info.value.message == "Error reading file"

    def test_not_json(self, bridge):
        with pytest.raises(ResumeImportError) as exc_info:
            bridge.import_file(b"{not json")
        assert exc_info.value.kind == ResumeImportError.INVALID_JSON
        assert exc_info.value.message == "Invalid JSON format"

    def test_json_but_schema_invalid(self, bridge):
        data = json.dumps({"sections": [{"type": "educations", "educations": [
            {"startDate": "2020-01-01", "endDate": "2010-01-01"}
        ]}]})
        with pytest.raises(ResumeImportError) as exc_info:
            bridge.import_file(data.encode())
        error = exc_info.value
        assert error.kind == ResumeImportError.INVALID_SCHEMA
        assert error.message.startswith("Invalid JSON format")
        assert [v.path for v in error.violations] == ["sections[0].educations[0].endDate"]

    def test_import_does_not_write_until_confirmed(self, bridge, memory_store, ada_document):
        pending = bridge.import_file(serialize_document(ada_document))
        assert pending.document == ada_document
        assert memory_store.write_count == 0

    async def test_confirm_overwrites(self, bridge, memory_store, ada_document):
        pending = bridge.import_file(serialize_document(ada_document))
        assert await pending.confirm() == ada_document
        assert memory_store.write_count == 1
        assert await bridge.load() == ada_document

    async def test_confirm_drops_pending_autosave(self, bridge, memory_store, scheduler, default_doc, ada_document):
        bridge.autosave(default_doc)
        pending = bridge.import_file(serialize_document(ada_document))
        await pending.confirm()
        scheduler.advance(DELAY * 2)
        assert memory_store.write_count == 1
        assert await bridge.load() == ada_document

    async def test_cancel_leaves_store_untouched(self, bridge, memory_store, ada_document):
        memory_store.set("resume", serialize_document(default_document()))
        pending = bridge.import_file(serialize_document(ada_document))
        pending.cancel()
        with pytest.raises(ResumeError):
            await pending.confirm()
        assert memory_store.write_count == 1
        assert await bridge.load() == default_document()

    async def test_confirm_twice_fails(self, bridge, ada_document):
        pending = bridge.import_file(serialize_document(ada_document))
        await pending.confirm()
        with pytest.raises(ResumeError):
            await pending.confirm()

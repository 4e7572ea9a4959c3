"""Persistence bridge between the editing session and a key-value store.

The whole document lives under a single key. Autosave is debounced on the
trailing edge: a burst of edits produces one write, ``delay`` seconds after
the last edit of the burst. Every write is a full snapshot.

Import and export share the autosave format. An imported file is validated
up front but only written once the caller confirms it.
"""

import asyncio
import inspect
import json
import logging
from collections.abc import Awaitable
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncEngine

from resume_builder.config import settings
from resume_builder.database import close_db, create_engine, create_session_factory, init_db
from resume_builder.errors import DocumentValidationError, ResumeError, ResumeImportError
from resume_builder.models import StoredDocument
from resume_builder.schemas.document import ResumeDocument, default_document, serialize_document
from resume_builder.schemas.validation import validate
from resume_builder.services.scheduling import Debouncer, Scheduler

logger = logging.getLogger(__name__)

READ_ERROR_MESSAGE = "Error reading file"
INVALID_JSON_MESSAGE = "Invalid JSON format"
INVALID_SCHEMA_MESSAGE = "Invalid JSON format: the file does not match the resume format"


class KeyValueStore(Protocol):
    """Store capability. Either method may return its result or an awaitable."""

    def get(self, key: str) -> bytes | str | None | Awaitable[bytes | str | None]:
        ...

    def set(self, key: str, value: bytes) -> None | Awaitable[None]:
        ...


async def _resolve(result):
    if inspect.isawaitable(result):
        return await result
    return result


class MemoryStore:
    """Synchronous in-process store. Keeps every write for inspection."""

    def __init__(self, initial: dict[str, bytes | str] | None = None):
        self.data: dict[str, bytes | str] = dict(initial or {})
        self.writes: list[tuple[str, bytes]] = []

    def get(self, key: str) -> bytes | str | None:
        return self.data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self.data[key] = value
        self.writes.append((key, value))

    @property
    def write_count(self) -> int:
        return len(self.writes)


class SqlStore:
    """Asynchronous store backed by SQLAlchemy (sqlite via aiosqlite).

    Example:
        store = SqlStore("sqlite+aiosqlite:///./resume.db")
        await store.init()
        await store.set("resume", payload)
        await store.close()
    """

    def __init__(self, database_url: str | None = None, engine: AsyncEngine | None = None):
        self.engine = engine or create_engine(database_url)
        self._sessions = create_session_factory(self.engine)

    async def init(self) -> None:
        await init_db(self.engine)

    async def close(self) -> None:
        await close_db(self.engine)

    async def get(self, key: str) -> bytes | None:
        async with self._sessions() as session:
            row = await session.get(StoredDocument, key)
            if row is None:
                return None
            return row.payload.encode("utf-8")

    async def set(self, key: str, value: bytes) -> None:
        payload = value.decode("utf-8") if isinstance(value, bytes) else value
        async with self._sessions() as session:
            try:
                row = await session.get(StoredDocument, key)
                if row is None:
                    session.add(StoredDocument(key=key, payload=payload))
                else:
                    row.payload = payload
                await session.commit()
            except Exception:
                await session.rollback()
                raise


def _decode(raw: bytes | str) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return raw


class PendingImport:
    """A validated import waiting for the user's go-ahead.

    Nothing is written until ``confirm`` is awaited. After ``cancel`` the
    import can no longer be confirmed.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    def __init__(self, bridge: "PersistenceBridge", document: ResumeDocument):
        self.document = document
        self.state = self.PENDING
        self._bridge = bridge

    async def confirm(self) -> ResumeDocument:
        """Overwrite the stored document with the imported one.

        Raises:
            ResumeError: If the import was already confirmed or cancelled
        """
        if self.state != self.PENDING:
            raise ResumeError(f"Import is already {self.state}")
        await self._bridge.overwrite(self.document)
        self.state = self.CONFIRMED
        logger.info("Imported resume confirmed and stored")
        return self.document

    def cancel(self) -> None:
        if self.state == self.PENDING:
            self.state = self.CANCELLED
            logger.info("Import cancelled, stored resume left untouched")


class PersistenceBridge:
    """Loads, autosaves, imports and exports the document.

    Args:
        store: Store capability (sync or async)
        scheduler: Timer source for the autosave debounce
        key: Storage key
        delay: Autosave quiet interval in seconds
    """

    def __init__(
        self,
        store: KeyValueStore,
        scheduler: Scheduler,
        key: str | None = None,
        delay: float | None = None,
    ):
        self.store = store
        self.key = key or settings.storage_key
        self.delay = settings.autosave_delay if delay is None else delay
        self._debouncer = Debouncer(scheduler)
        self._writer: asyncio.Future | None = None
        self._queued: bytes | None = None

    @property
    def autosave_pending(self) -> bool:
        return self._debouncer.pending

    async def load(self) -> ResumeDocument:
        """Read the stored document.

        Missing, empty, unreadable or invalid data falls back to the default
        document; the reason is logged and never raised.
        """
        try:
            raw = await _resolve(self.store.get(self.key))
        except Exception as e:
            logger.warning(f"Could not read stored resume ({type(e).__name__}: {e}), using default")
            return default_document()

        if raw is None:
            logger.info("No stored resume, using default")
            return default_document()

        try:
            text = _decode(raw)
        except UnicodeDecodeError:
            logger.warning("Stored resume is not valid UTF-8, using default")
            return default_document()

        if not text.strip():
            logger.warning("Stored resume is empty, using default")
            return default_document()

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Stored resume is not valid JSON ({e}), using default")
            return default_document()

        try:
            document = validate(data)
        except DocumentValidationError as e:
            logger.warning(f"Stored resume failed validation, using default: {e}")
            return default_document()

        logger.debug(f"Loaded resume with {len(document.sections)} section(s)")
        return document

    def autosave(self, document: ResumeDocument) -> None:
        """Schedule a debounced write of ``document``.

        The document is serialized now, so later mutations of the caller's
        object cannot leak into the pending write.
        """
        payload = serialize_document(document)
        self._debouncer.schedule(lambda: self._write(payload), self.delay)

    def flush(self) -> bool:
        """Write a pending autosave immediately.

        Returns:
            True if a write was pending
        """
        return self._debouncer.flush()

    def cancel_pending(self) -> None:
        self._debouncer.cancel_pending()

    async def drain(self) -> None:
        """Wait until every autosave write, queued ones included, has finished."""
        while self._writer is not None and not self._writer.done():
            await asyncio.wait({self._writer})

    def _write(self, payload: bytes) -> None:
        # One asynchronous write at a time; newer payloads replace the queued one
        if self._writer is not None and not self._writer.done():
            self._queued = payload
            return
        try:
            result = self._set(payload)
        except Exception as e:
            logger.error(f"Autosave failed: {type(e).__name__}: {e}")
            return
        if inspect.isawaitable(result):
            self._writer = asyncio.ensure_future(self._write_loop(result))

    def _set(self, payload: bytes):
        logger.debug(f"Autosaving resume ({len(payload)} bytes)")
        return self.store.set(self.key, payload)

    async def _write_loop(self, write) -> None:
        try:
            while True:
                try:
                    await write
                except Exception as e:
                    logger.error(f"Autosave failed: {type(e).__name__}: {e}")
                if self._queued is None:
                    return
                payload, self._queued = self._queued, None
                try:
                    write = _resolve(self._set(payload))
                except Exception as e:
                    logger.error(f"Autosave failed: {type(e).__name__}: {e}")
                    write = _resolve(None)
        finally:
            self._writer = None

    async def overwrite(self, document: ResumeDocument) -> None:
        """Replace the stored document right away, dropping any pending autosave."""
        self._debouncer.cancel_pending()
        self._queued = None
        await self.drain()
        await _resolve(self.store.set(self.key, serialize_document(document)))

    def export_file(self, document: ResumeDocument) -> bytes:
        """Pretty-printed JSON for the ``resume.json`` download."""
        return serialize_document(document, pretty=True)

    def import_file(self, data: bytes | str) -> PendingImport:
        """Parse and validate an uploaded file.

        Args:
            data: Raw file contents

        Returns:
            PendingImport to confirm or cancel

        Raises:
            ResumeImportError: If the file cannot be read, is not JSON, or does
                not match the resume format
        """
        try:
            text = _decode(data)
        except UnicodeDecodeError as e:
            logger.warning(f"Rejected import: {e}")
            raise ResumeImportError(ResumeImportError.READ_ERROR, READ_ERROR_MESSAGE) from e

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Rejected import, not JSON: {e}")
            raise ResumeImportError(ResumeImportError.INVALID_JSON, INVALID_JSON_MESSAGE) from e

        try:
            document = validate(raw)
        except DocumentValidationError as e:
            logger.warning(f"Rejected import, schema invalid: {e}")
            raise ResumeImportError(
                ResumeImportError.INVALID_SCHEMA,
                INVALID_SCHEMA_MESSAGE,
                violations=e.violations,
            ) from e

        return PendingImport(self, document)

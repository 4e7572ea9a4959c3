"""Ordered, mutable collection of resume sections.

The store is the only writer of the document during an editing session.
Every mutation is validated against the whole document before it is
applied; a rejected mutation raises and leaves the store untouched. After
each applied mutation, subscribers receive a snapshot of the new document.
"""

import logging
from collections.abc import Callable
from typing import Any

from resume_builder.errors import DocumentValidationError, SectionIndexError, Violation
from resume_builder.schemas.document import DocumentSettings, ResumeDocument, document_to_dict
from resume_builder.schemas.sections import SECTION_MODELS, UNIQUE_SECTION_TYPES
from resume_builder.schemas.validation import validate

logger = logging.getLogger(__name__)

Listener = Callable[[ResumeDocument], None]


def _patch_keys(model) -> dict[str, str]:
    keys = {}
    for name, field in model.model_fields.items():
        target = field.alias or name
        keys[name] = target
        for choice in getattr(field.validation_alias, "choices", None) or ():
            if isinstance(choice, str):
                keys[choice] = target
    return keys


def _normalize_patch(patch: dict[str, Any], model) -> dict[str, Any]:
    """Map field names and legacy keys in a patch to their JSON aliases."""
    keys = _patch_keys(model)
    return {keys.get(key, key): value for key, value in patch.items()}


class SectionStore:
    """Section list plus settings for one document.

    Indices address sections in display order. ``update`` keeps indices
    stable; ``remove`` shifts later sections down by one; ``move`` is the
    only way to reorder.
    """

    def __init__(self, document: ResumeDocument):
        self._document = validate(document)
        self._listeners: list[Listener] = []

    # Observers

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, raw: dict[str, Any]) -> ResumeDocument:
        document = validate(raw)
        self._document = document
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
        return document

    # Queries

    def snapshot(self) -> ResumeDocument:
        """Deep copy of the current document."""
        return self._document.model_copy(deep=True)

    def list(self) -> list:
        return [section.model_copy(deep=True) for section in self._document.sections]

    def get(self, index: int):
        self._check_index(index)
        return self._document.sections[index].model_copy(deep=True)

    def __len__(self) -> int:
        return len(self._document.sections)

    def can_append(self, section_type: str) -> bool:
        """False when ``section_type`` is unique and already present."""
        if not isinstance(section_type, str) or section_type not in SECTION_MODELS:
            return False
        if section_type in UNIQUE_SECTION_TYPES:
            return not self._document.has_section(section_type)
        return True

    # Mutations

    def append(self, seed) -> int | None:
        """Append a section built from ``seed``.

        Args:
            seed: Section model, dict with a ``type`` key, or a type name

        Returns:
            Index of the new section, or None when a section of a unique
            type already exists (the document is left unchanged)

        Raises:
            DocumentValidationError: If the seed is not a valid section
        """
        if isinstance(seed, str):
            seed = {"type": seed}
        elif not isinstance(seed, dict):
            seed = seed.model_dump(mode="json", by_alias=True)

        section_type = seed.get("type")
        if not isinstance(section_type, str) or section_type not in SECTION_MODELS:
            raise DocumentValidationError([
                Violation(
                    path=f"sections[{len(self)}].type",
                    code="unknown_section_type",
                    message=f"Unknown section type: {section_type!r}",
                )
            ])
        if not self.can_append(section_type):
            logger.info(f"Refusing to add a second {section_type} section")
            return None

        raw = document_to_dict(self._document)
        raw["sections"].append(dict(seed))
        self._commit(raw)
        return len(self) - 1

    def update(self, index: int, patch: dict[str, Any]):
        """Apply a partial update to the section at ``index``.

        Raises:
            SectionIndexError: If the index is out of range
            DocumentValidationError: If the patch changes the section type or
                produces an invalid document
        """
        self._check_index(index)
        current = self._document.sections[index]
        patch = _normalize_patch(patch, type(current))
        if "type" in patch and patch["type"] != current.type:
            raise DocumentValidationError([
                Violation(
                    path=f"sections[{index}].type",
                    code="immutable_type",
                    message=f"Section type cannot change from {current.type!r}",
                )
            ])

        raw = document_to_dict(self._document)
        raw["sections"][index] = {**raw["sections"][index], **patch}
        document = self._commit(raw)
        return document.sections[index].model_copy(deep=True)

    def remove(self, index: int):
        """Remove and return the section at ``index``. Cannot be undone."""
        self._check_index(index)
        removed = self._document.sections[index].model_copy(deep=True)
        raw = document_to_dict(self._document)
        del raw["sections"][index]
        self._commit(raw)
        return removed

    def move(self, index: int, new_index: int) -> None:
        """Move the section at ``index`` so it ends up at ``new_index``."""
        self._check_index(index)
        self._check_index(new_index)
        if index == new_index:
            return
        raw = document_to_dict(self._document)
        section = raw["sections"].pop(index)
        raw["sections"].insert(new_index, section)
        self._commit(raw)

    def update_settings(self, patch: dict[str, Any]) -> ResumeDocument:
        """Change font family and/or font size."""
        raw = document_to_dict(self._document)
        raw["settings"] = {**raw["settings"], **_normalize_patch(patch, DocumentSettings)}
        return self._commit(raw)

    def replace(self, document: ResumeDocument) -> ResumeDocument:
        """Swap in a whole new document (confirmed import)."""
        return self._commit(document_to_dict(document))

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._document.sections):
            raise SectionIndexError(index, len(self._document.sections))

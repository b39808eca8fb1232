"""Preset store: the list of saved push payloads in ``pushes.json``."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional

from .json_document import JsonDocument, StorageError
from .models import PushPayload
from .storage_paths import pushes_file

_LOGGER = logging.getLogger("PushMaker.Store.Pushes")


class PushRepository:
    def __init__(self, path: Optional[Path] = None) -> None:
        self._document = JsonDocument(path if path is not None else pushes_file())

    @property
    def path(self) -> Path:
        return self._document.path

    def get_all(self) -> List[PushPayload]:
        with self._document.locked():
            return self._read_all()

    def upsert(self, push: PushPayload) -> None:
        """Replace any record with the same id, appending ``push`` at the end."""

        with self._document.locked():
            current = self._read_all()
            updated = [item for item in current if item.id != push.id]
            updated.append(push)
            self._write_all(updated)
        _LOGGER.debug("Stored push %s (%s)", push.id, push.name)

    def delete(self, push_id: str) -> None:
        with self._document.locked():
            current = self._read_all()
            remaining = [item for item in current if item.id != push_id]
            self._write_all(remaining)
        _LOGGER.debug("Deleted push %s (%d remaining)", push_id, len(remaining))

    def _read_all(self) -> List[PushPayload]:
        raw: Any = self._document.read()
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise StorageError(f"{self.path.name} must contain a JSON array")
        pushes: List[PushPayload] = []
        for entry in raw:
            if not isinstance(entry, Mapping):
                raise StorageError(f"{self.path.name} contains a non-object entry")
            pushes.append(PushPayload.from_dict(entry))
        return pushes

    def _write_all(self, pushes: List[PushPayload]) -> None:
        self._document.write([push.to_dict() for push in pushes])

"""A single JSON document on disk guarded by an in-process lock."""
from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

_LOGGER = logging.getLogger("PushMaker.Store")


class StorageError(RuntimeError):
    """The document could not be read, decoded or written."""


class JsonDocument:
    """Whole-document reads and atomic whole-document writes.

    Callers hold :meth:`locked` around a read-modify-write sequence so that
    concurrent operations in this process never interleave. There is no
    cross-process locking.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @contextmanager
    def locked(self) -> Iterator["JsonDocument"]:
        with self._lock:
            yield self

    def ensure_exists(self) -> None:
        if self._path.exists():
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.touch()
        except OSError as exc:
            raise StorageError(f"Cannot create {self._path}: {exc}") from exc
        _LOGGER.debug("Created empty document %s", self._path)

    def read(self) -> Any:
        """Return the decoded document, or None when the file is blank. Caller holds the lock."""

        self.ensure_exists()
        try:
            content = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot read {self._path}: {exc}") from exc
        if not content.strip():
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            _LOGGER.warning("Corrupt JSON in %s: %s", self._path, exc)
            raise StorageError(f"Corrupt JSON in {self._path.name}: {exc}") from exc

    def write(self, document: Any) -> None:
        """Replace the whole document atomically. Caller holds the lock."""

        self.ensure_exists()
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            tmp_path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            _LOGGER.warning("Failed to write %s: %s", self._path, exc)
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                _LOGGER.debug("Could not remove %s", tmp_path)
            raise StorageError(f"Cannot write {self._path}: {exc}") from exc

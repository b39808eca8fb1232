"""Settings store: the chosen adb path in ``settings.json``."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from .json_document import JsonDocument, StorageError
from .models import AppSettings
from .storage_paths import settings_file

_LOGGER = logging.getLogger("PushMaker.Store.Settings")


class AppSettingsRepository:
    def __init__(self, path: Optional[Path] = None) -> None:
        self._document = JsonDocument(path if path is not None else settings_file())

    @property
    def path(self) -> Path:
        return self._document.path

    def get(self) -> AppSettings:
        with self._document.locked():
            raw: Any = self._document.read()
        if raw is None:
            return AppSettings()
        if not isinstance(raw, Mapping):
            raise StorageError(f"{self.path.name} must contain a JSON object")
        return AppSettings.from_dict(raw)

    def save(self, settings: AppSettings) -> None:
        with self._document.locked():
            self._document.write(settings.to_dict())
        _LOGGER.debug("Saved settings (adbPath=%s)", settings.adb_path)

from __future__ import annotations

import json
from pathlib import Path

import pytest

from push_store.json_document import StorageError
from push_store.models import AppSettings
from push_store.settings_repository import AppSettingsRepository


def test_blank_or_missing_settings_return_default(tmp_path: Path) -> None:
    repository = AppSettingsRepository(tmp_path / "settings.json")
    assert repository.get() == AppSettings()

    (tmp_path / "settings.json").write_text("", encoding="utf-8")
    assert repository.get().adb_path is None


def test_save_overwrites_document(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    repository = AppSettingsRepository(path)

    repository.save(AppSettings("/opt/sdk/platform-tools/adb"))
    assert json.loads(path.read_text(encoding="utf-8")) == {"adbPath": "/opt/sdk/platform-tools/adb"}
    assert repository.get().adb_path == "/opt/sdk/platform-tools/adb"

    repository.save(AppSettings())
    assert json.loads(path.read_text(encoding="utf-8")) == {}
    assert repository.get() == AppSettings()


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text('{"adbPath": "/usr/bin/adb", "theme": "dark"}', encoding="utf-8")

    assert AppSettingsRepository(path).get() == AppSettings("/usr/bin/adb")


def test_non_object_document_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(StorageError):
        AppSettingsRepository(path).get()

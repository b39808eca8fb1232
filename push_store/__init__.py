"""Local persistence for push presets and application settings."""
from .json_document import JsonDocument, StorageError
from .models import (
    DEFAULT_PUSH_ACTION,
    AppSettings,
    KeyValueField,
    PayloadMode,
    PushPayload,
    PushPriority,
)
from .push_repository import PushRepository
from .settings_repository import AppSettingsRepository

__all__ = [
    "DEFAULT_PUSH_ACTION",
    "AppSettings",
    "AppSettingsRepository",
    "JsonDocument",
    "KeyValueField",
    "PayloadMode",
    "PushPayload",
    "PushPriority",
    "PushRepository",
    "StorageError",
]

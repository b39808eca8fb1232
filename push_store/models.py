"""Push payload records shared by the bridge, the stores and the controller."""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Type, TypeVar

DEFAULT_PUSH_ACTION = "com.pushmaker.DEBUG_PUSH"

_E = TypeVar("_E", bound=Enum)


class PushPriority(str, Enum):
    NORMAL = "NORMAL"
    HIGH = "HIGH"


class PayloadMode(str, Enum):
    STRUCTURED = "STRUCTURED"
    RAW_JSON = "RAW_JSON"


def random_id() -> str:
    return uuid.uuid4().hex[:16]


def now_millis() -> int:
    return int(time.time() * 1000)


def _str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _enum(enum_type: Type[_E], value: Any, default: _E) -> _E:
    try:
        return enum_type(str(value).strip().upper())
    except ValueError:
        return default


@dataclass(frozen=True)
class KeyValueField:
    """One metadata or data entry; ``id`` only distinguishes rows in an editor."""

    id: str = field(default_factory=random_id)
    key: str = ""
    value: str = ""

    def is_blank(self) -> bool:
        return not self.key.strip() and not self.value.strip()

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "key": self.key, "value": self.value}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "KeyValueField":
        raw_id = _str(payload.get("id"))
        return cls(
            id=raw_id or random_id(),
            key=_str(payload.get("key")),
            value=_str(payload.get("value")),
        )


def _fields_from(raw: Any) -> Tuple[KeyValueField, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(KeyValueField.from_dict(item) for item in raw if isinstance(item, Mapping))


@dataclass(frozen=True)
class PushPayload:
    """A push-notification test case, editable in memory and storable as a preset."""

    id: str = field(default_factory=random_id)
    action: str = DEFAULT_PUSH_ACTION
    target_component: str = ""
    name: str = ""
    title: str = ""
    body: str = ""
    channel_id: str = ""
    collapse_key: str = ""
    priority: PushPriority = PushPriority.HIGH
    icon: str = ""
    metadata: Tuple[KeyValueField, ...] = ()
    data_fields: Tuple[KeyValueField, ...] = ()
    payload_mode: PayloadMode = PayloadMode.STRUCTURED
    raw_json_payload: str = ""
    created_at: int = field(default_factory=now_millis)
    updated_at: int = field(default_factory=now_millis)

    def touch(self, now: Optional[int] = None) -> "PushPayload":
        """Return a copy with ``updated_at`` stamped; the stamp never moves backwards."""

        stamp = now if now is not None else now_millis()
        return replace(self, updated_at=max(stamp, self.updated_at + 1))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action,
            "targetComponent": self.target_component,
            "name": self.name,
            "title": self.title,
            "body": self.body,
            "channelId": self.channel_id,
            "collapseKey": self.collapse_key,
            "priority": self.priority.value,
            "icon": self.icon,
            "metadata": [entry.to_dict() for entry in self.metadata],
            "dataFields": [entry.to_dict() for entry in self.data_fields],
            "payloadMode": self.payload_mode.value,
            "rawJsonPayload": self.raw_json_payload,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PushPayload":
        """Build a payload from a stored record; unknown keys are ignored, missing ones defaulted."""

        stamp = now_millis()
        return cls(
            id=_str(payload.get("id")) or random_id(),
            action=_str(payload.get("action"), DEFAULT_PUSH_ACTION),
            target_component=_str(payload.get("targetComponent")),
            name=_str(payload.get("name")),
            title=_str(payload.get("title")),
            body=_str(payload.get("body")),
            channel_id=_str(payload.get("channelId")),
            collapse_key=_str(payload.get("collapseKey")),
            priority=_enum(PushPriority, payload.get("priority"), PushPriority.HIGH),
            icon=_str(payload.get("icon")),
            metadata=_fields_from(payload.get("metadata")),
            data_fields=_fields_from(payload.get("dataFields")),
            payload_mode=_enum(PayloadMode, payload.get("payloadMode"), PayloadMode.STRUCTURED),
            raw_json_payload=_str(payload.get("rawJsonPayload")),
            created_at=_int(payload.get("createdAt"), stamp),
            updated_at=_int(payload.get("updatedAt"), stamp),
        )


@dataclass(frozen=True)
class AppSettings:
    adb_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.adb_path is None:
            return {}
        return {"adbPath": self.adb_path}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AppSettings":
        raw = payload.get("adbPath")
        if not isinstance(raw, str) or not raw.strip():
            return cls()
        return cls(adb_path=raw)

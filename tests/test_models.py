from __future__ import annotations

from push_store.models import (
    DEFAULT_PUSH_ACTION,
    AppSettings,
    KeyValueField,
    PayloadMode,
    PushPayload,
    PushPriority,
)


def test_new_payload_defaults() -> None:
    push = PushPayload()

    assert len(push.id) == 16
    assert push.action == DEFAULT_PUSH_ACTION
    assert push.priority is PushPriority.HIGH
    assert push.payload_mode is PayloadMode.STRUCTURED
    assert push.created_at > 0
    assert PushPayload().id != push.id


def test_touch_never_moves_backwards() -> None:
    push = PushPayload(updated_at=5_000)

    assert push.touch(now=10_000).updated_at == 10_000
    assert push.touch(now=1_000).updated_at == 5_001
    assert push.touch(now=10_000).id == push.id


def test_from_dict_tolerates_bad_values() -> None:
    push = PushPayload.from_dict(
        {
            "id": "",
            "priority": "URGENT",
            "payloadMode": "raw_json",
            "createdAt": "not-a-number",
            "metadata": [{"key": "k"}, "junk"],
            "dataFields": "nope",
        }
    )

    assert len(push.id) == 16
    assert push.priority is PushPriority.HIGH
    assert push.payload_mode is PayloadMode.RAW_JSON
    assert push.created_at > 0
    assert len(push.metadata) == 1
    assert push.metadata[0].key == "k" and push.metadata[0].value == ""
    assert push.data_fields == ()


def test_key_value_blankness() -> None:
    assert KeyValueField().is_blank()
    assert KeyValueField(key=" ", value="\t").is_blank()
    assert not KeyValueField(value="x").is_blank()


def test_app_settings_serialisation() -> None:
    assert AppSettings().to_dict() == {}
    assert AppSettings.from_dict({"adbPath": "  "}) == AppSettings()
    assert AppSettings.from_dict(AppSettings("/x/adb").to_dict()) == AppSettings("/x/adb")

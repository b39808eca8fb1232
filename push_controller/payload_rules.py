"""Editing, sanitising and validation rules for push payloads.

Two distinct passes exist. :func:`ensure_editable` prepares a payload for
the editor and always leaves at least one (possibly empty) metadata and data
row. :func:`sanitize` prepares a payload for saving or sending and drops the
empty rows instead.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Optional, Tuple

from push_store.models import DEFAULT_PUSH_ACTION, KeyValueField, PayloadMode, PushPayload

NAME_REQUIRED_MESSAGE = "Name is required before saving"
DEVICE_REQUIRED_MESSAGE = "Select a device before sending"
CONTENT_REQUIRED_MESSAGE = "Add at least a title or body"
RAW_JSON_REQUIRED_MESSAGE = "Provide JSON payload content"


def _action_or_default(action: str) -> str:
    return action if action.strip() else DEFAULT_PUSH_ACTION


def _non_blank(fields: Iterable[KeyValueField]) -> Tuple[KeyValueField, ...]:
    return tuple(entry for entry in fields if not entry.is_blank())


def ensure_editable(payload: PushPayload) -> PushPayload:
    return replace(
        payload,
        action=_action_or_default(payload.action),
        target_component=payload.target_component.strip(),
        metadata=payload.metadata or (KeyValueField(),),
        data_fields=payload.data_fields or (KeyValueField(),),
    )


def sanitize(payload: PushPayload) -> PushPayload:
    return replace(
        payload,
        action=_action_or_default(payload.action),
        target_component=payload.target_component.strip(),
        metadata=_non_blank(payload.metadata),
        data_fields=_non_blank(payload.data_fields),
        raw_json_payload=payload.raw_json_payload.strip(),
    )


def blank_push() -> PushPayload:
    """A fresh editor payload seeded with the default action and one empty row per list."""

    return ensure_editable(PushPayload())


def validate_for_save(payload: PushPayload) -> Optional[str]:
    if not payload.name.strip():
        return NAME_REQUIRED_MESSAGE
    return None


def validate_for_send(device_id: Optional[str], payload: PushPayload) -> Optional[str]:
    """Return the reason a send must be refused, or None when it may proceed."""

    if not device_id:
        return DEVICE_REQUIRED_MESSAGE
    if payload.payload_mode is PayloadMode.STRUCTURED and not payload.title.strip() and not payload.body.strip():
        return CONTENT_REQUIRED_MESSAGE
    if payload.payload_mode is PayloadMode.RAW_JSON and not payload.raw_json_payload.strip():
        return RAW_JSON_REQUIRED_MESSAGE
    return None

"""adb command surface: device listing and push broadcasts."""
from __future__ import annotations

import json
import logging
import os
import re
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional

from push_store.models import KeyValueField, PushPayload, PushPriority

from .process_runner import AdbError, ProcessRunner

__all__ = [
    "AdbCommandResult",
    "AdbDevice",
    "AdbError",
    "AdbService",
    "DeviceState",
    "build_broadcast_command",
    "encode_payload_json",
    "parse_device_line",
    "parse_devices_output",
    "quote_for_shell",
]

DEVICES_HEADER = "List of devices"
PAYLOAD_EXTRA = "payload"
SEND_FALLBACK_MESSAGE = "Push broadcast sent"
FAILURE_FALLBACK_MESSAGE = "ADB command failed"

_LOGGER = logging.getLogger("PushMaker.Bridge")
_WHITESPACE = re.compile(r"\s+")


class DeviceState(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"
    UNAUTHORIZED = "UNAUTHORIZED"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class AdbDevice:
    id: str
    description: str
    state: DeviceState


@dataclass(frozen=True)
class AdbCommandResult:
    ok: bool
    message: str

    @classmethod
    def succeeded(cls, message: str) -> "AdbCommandResult":
        return cls(True, message)

    @classmethod
    def failed(cls, message: str) -> "AdbCommandResult":
        return cls(False, message)


def _state_from_token(token: str) -> DeviceState:
    lowered = token.lower()
    if "device" in lowered:
        return DeviceState.ONLINE
    if "offline" in lowered:
        return DeviceState.OFFLINE
    if "unauthorized" in lowered:
        return DeviceState.UNAUTHORIZED
    return DeviceState.UNKNOWN


def parse_device_line(line: str) -> Optional[AdbDevice]:
    """Parse one ``adb devices -l`` row; header and short rows yield None."""

    trimmed = line.strip()
    if not trimmed or trimmed.startswith(DEVICES_HEADER):
        return None
    tokens = _WHITESPACE.split(trimmed)
    if len(tokens) < 2:
        return None
    return AdbDevice(id=tokens[0], description=" ".join(tokens[2:]), state=_state_from_token(tokens[1]))


def parse_devices_output(stdout: str) -> List[AdbDevice]:
    devices: List[AdbDevice] = []
    for line in stdout.splitlines():
        device = parse_device_line(line)
        if device is not None:
            devices.append(device)
    return devices


def quote_for_shell(value: str) -> str:
    """Single-quote ``value`` for the device shell."""

    if not value:
        return "''"
    return "'" + value.replace("'", "'\\''") + "'"


def _key_values(fields: Iterable[KeyValueField]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for entry in fields:
        if entry.key.strip():
            values[entry.key] = entry.value
    return values


def encode_payload_json(payload: PushPayload) -> str:
    """Encode the structured view of ``payload``; default-valued fields are left out."""

    document: Dict[str, object] = {}
    for key, value in (
        ("name", payload.name),
        ("title", payload.title),
        ("body", payload.body),
        ("channelId", payload.channel_id),
        ("collapseKey", payload.collapse_key),
    ):
        if value:
            document[key] = value
    if payload.priority is not PushPriority.HIGH:
        document["priority"] = payload.priority.value.lower()
    if payload.icon:
        document["icon"] = payload.icon
    metadata = _key_values(payload.metadata)
    if metadata:
        document["metadata"] = metadata
    data = _key_values(payload.data_fields)
    if data:
        document["data"] = data
    return json.dumps(document, ensure_ascii=False, separators=(",", ":"))


def build_broadcast_command(executable: str, device_id: str, payload: PushPayload) -> List[str]:
    command = [executable, "-s", device_id, "shell", "am", "broadcast", "-a", payload.action]
    if payload.target_component.strip():
        command.extend(["-n", payload.target_component])
    command.extend(["--es", PAYLOAD_EXTRA, quote_for_shell(encode_payload_json(payload))])
    return command


def _failure_message(exit_code: int, stdout: str, stderr: str) -> str:
    lines = [f"ADB exited with {exit_code}"]
    if stdout.strip():
        lines.append(stdout)
    if stderr.strip():
        lines.append(stderr)
    return "\n".join(lines).strip() or FAILURE_FALLBACK_MESSAGE


class AdbService:
    """Thin client over the adb executable.

    ``executable`` is the configured override; when it is empty the ``ADB``
    environment variable is consulted, then a bare ``adb`` resolved on PATH.
    """

    def __init__(
        self,
        executable: Optional[str] = None,
        *,
        runner: Optional[ProcessRunner] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._runner = runner or ProcessRunner()
        self._environ = environ if environ is not None else os.environ
        self._lock = threading.Lock()
        self._custom_executable = self._clean(executable)

    @staticmethod
    def _clean(path: Optional[str]) -> Optional[str]:
        if path is None or not path.strip():
            return None
        return path

    def set_executable(self, path: Optional[str]) -> str:
        """Replace the override and return the executable now in effect."""

        with self._lock:
            self._custom_executable = self._clean(path)
        effective = self.current_executable()
        _LOGGER.debug("adb executable set to %s", effective)
        return effective

    def current_executable(self) -> str:
        with self._lock:
            custom = self._custom_executable
        if custom is not None:
            return custom
        return self._clean(self._environ.get("ADB")) or "adb"

    def list_devices(self) -> List[AdbDevice]:
        """Return connected devices; raises :class:`AdbError` if adb cannot be run."""

        result = self._runner.run([self.current_executable(), "devices", "-l"])
        if result.exit_code != 0:
            _LOGGER.warning("adb devices exited with %s: %s", result.exit_code, result.stderr)
        devices = parse_devices_output(result.stdout)
        _LOGGER.debug("adb reported %d device(s)", len(devices))
        return devices

    def send_push(self, device_id: str, payload: PushPayload) -> AdbCommandResult:
        command = build_broadcast_command(self.current_executable(), device_id, payload)
        try:
            result = self._runner.run(command)
        except AdbError as exc:
            return AdbCommandResult.failed(str(exc) or FAILURE_FALLBACK_MESSAGE)
        if result.exit_code == 0:
            return AdbCommandResult.succeeded(result.stdout if result.stdout.strip() else SEND_FALLBACK_MESSAGE)
        message = _failure_message(result.exit_code, result.stdout, result.stderr)
        _LOGGER.warning("Push broadcast to %s failed: %s", device_id, message)
        return AdbCommandResult.failed(message)

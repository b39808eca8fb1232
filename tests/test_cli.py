from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pytest

from push_bridge.adb_service import AdbCommandResult, AdbDevice, DeviceState
from push_bridge.process_runner import ProcessLaunchError
from push_controller import cli
from push_store.models import AppSettings, PayloadMode, PushPayload, PushPriority
from push_store.push_repository import PushRepository
from push_store.settings_repository import AppSettingsRepository


class RecordingAdb:
    instances: List["RecordingAdb"] = []
    devices: List[AdbDevice] = []
    error: Optional[Exception] = None

    def __init__(self, executable: Optional[str] = None) -> None:
        self.executable = executable
        self.sent: List[tuple[str, PushPayload]] = []
        RecordingAdb.instances.append(self)

    def list_devices(self) -> List[AdbDevice]:
        if RecordingAdb.error is not None:
            raise RecordingAdb.error
        return list(RecordingAdb.devices)

    def send_push(self, device_id: str, payload: PushPayload) -> AdbCommandResult:
        self.sent.append((device_id, payload))
        return AdbCommandResult.succeeded("Broadcast completed: result=0")


class StubLocator:
    executables = {"/sdk/platform-tools/adb"}
    detected: Optional[str] = "/sdk/platform-tools/adb"

    def is_executable(self, path: str) -> bool:
        return path in self.executables

    def detect(self) -> Optional[str]:
        return self.detected


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("PUSHMAKER_HOME", str(tmp_path))
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(cli, "AdbService", RecordingAdb)
    monkeypatch.setattr(cli, "AdbLocator", StubLocator)
    monkeypatch.setattr(RecordingAdb, "instances", [])
    monkeypatch.setattr(RecordingAdb, "devices", [AdbDevice("emulator-5554", "model:Pixel_7", DeviceState.ONLINE)])
    monkeypatch.setattr(RecordingAdb, "error", None)
    monkeypatch.setattr(StubLocator, "detected", "/sdk/platform-tools/adb")
    return tmp_path


def test_parse_pair_rejects_missing_separator() -> None:
    parser = cli.build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["send", "--data", "novalue"])


def test_devices_lists_serials(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["devices"]) == 0

    out = capsys.readouterr().out
    assert out.strip() == "emulator-5554\tonline\tmodel:Pixel_7"
    assert RecordingAdb.instances[0].executable == "/sdk/platform-tools/adb"


def test_devices_reports_empty_list(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    RecordingAdb.devices = []

    assert cli.main(["devices"]) == 1
    assert "No ADB devices detected" in capsys.readouterr().out


def test_devices_reports_adb_errors(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    RecordingAdb.error = ProcessLaunchError("[Errno 2] No such file or directory: 'adb'")

    assert cli.main(["devices"]) == 1
    assert capsys.readouterr().err.startswith("ADB error: ")


def test_adb_flag_overrides_saved_setting(home: Path) -> None:
    AppSettingsRepository(home / "settings.json").save(AppSettings("/sdk/platform-tools/adb"))

    cli.main(["--adb", "/custom/adb", "devices"])

    assert RecordingAdb.instances[0].executable == "/custom/adb"


def test_send_builds_payload_from_flags(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(
        [
            "send",
            "--title",
            "Hello",
            "--priority",
            "normal",
            "--data",
            "deeplink=app://home",
            "--metadata",
            "campaign=spring=2024",
        ]
    )

    assert code == 0
    [(device_id, payload)] = RecordingAdb.instances[0].sent
    assert device_id == "emulator-5554"
    assert payload.title == "Hello"
    assert payload.priority is PushPriority.NORMAL
    assert [(field.key, field.value) for field in payload.data_fields] == [("deeplink", "app://home")]
    assert [(field.key, field.value) for field in payload.metadata] == [("campaign", "spring=2024")]
    assert "Broadcast completed" in capsys.readouterr().out


def test_send_rejects_empty_content(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["send", "--device", "emulator-5554"]) == 2

    assert "Add at least a title or body" in capsys.readouterr().err
    assert RecordingAdb.instances[0].sent == []


def test_send_without_devices_requires_selection(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    RecordingAdb.devices = []

    assert cli.main(["send", "--title", "Hi"]) == 2
    assert "Select a device before sending" in capsys.readouterr().err


def test_send_uses_newest_preset_by_name(home: Path) -> None:
    repository = PushRepository(home / "pushes.json")
    repository.upsert(PushPayload(name="promo", title="old", updated_at=1))
    repository.upsert(PushPayload(name="promo", title="new", updated_at=5))

    assert cli.main(["send", "--preset", "promo", "--body", "extra"]) == 0

    [(_, payload)] = RecordingAdb.instances[0].sent
    assert payload.title == "new"
    assert payload.body == "extra"


def test_send_unknown_preset(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["send", "--preset", "missing"]) == 2
    assert "missing" in capsys.readouterr().err


def test_send_raw_json_file(home: Path) -> None:
    raw = home / "payload.json"
    raw.write_text('{"custom": true}\n', encoding="utf-8")

    assert cli.main(["send", "--raw-json", str(raw)]) == 0

    [(_, payload)] = RecordingAdb.instances[0].sent
    assert payload.payload_mode is PayloadMode.RAW_JSON
    assert payload.raw_json_payload == '{"custom": true}'


def test_presets_lists_newest_first(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repository = PushRepository(home / "pushes.json")
    first = PushPayload(name="first", updated_at=1)
    second = PushPayload(name="second", updated_at=2)
    repository.upsert(first)
    repository.upsert(second)

    assert cli.main(["presets"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines == [f"{second.id}\tsecond\tstructured", f"{first.id}\tfirst\tstructured"]


def test_presets_reports_corrupt_store(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (home / "pushes.json").write_text("[{", encoding="utf-8")

    assert cli.main(["presets"]) == 1
    assert capsys.readouterr().err.startswith("Error: ")


def test_detect_adb(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["detect-adb"]) == 0
    assert capsys.readouterr().out.strip() == "/sdk/platform-tools/adb"

    StubLocator.detected = None
    assert cli.main(["detect-adb"]) == 1
    assert "Could not locate platform-tools automatically" in capsys.readouterr().err


def test_set_adb_validates_and_persists(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    settings = AppSettingsRepository(home / "settings.json")

    assert cli.main(["set-adb", "/nope/adb"]) == 2
    assert settings.get() == AppSettings()

    assert cli.main(["set-adb", "/sdk/platform-tools/adb"]) == 0
    assert settings.get().adb_path == "/sdk/platform-tools/adb"

    assert cli.main(["set-adb"]) == 0
    assert settings.get() == AppSettings()
    assert capsys.readouterr().out.splitlines()[-1] == "Using adb from PATH"

"""Command-line front end: list devices and presets, send pushes, configure adb."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from push_bridge.adb_service import AdbError, AdbService
from push_bridge.locator import AdbLocator
from push_store.json_document import StorageError
from push_store.models import AppSettings, KeyValueField, PayloadMode, PushPayload, PushPriority
from push_store.push_repository import PushRepository
from push_store.settings_repository import AppSettingsRepository
from push_store.storage_paths import pushes_file, resolve_base_directory, settings_file
from version import __version__

from .logging_utils import configure_logging
from .payload_rules import sanitize, validate_for_send

_LOGGER = logging.getLogger("PushMaker.CLI")


def _parse_pair(text: str) -> Tuple[str, str]:
    key, sep, value = text.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {text!r}")
    return key, value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pushmaker", description="Send debug push broadcasts to Android devices.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--adb", help="adb executable to use for this invocation")
    parser.add_argument("--log-level", help="logging level (default from PUSHMAKER_LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("devices", help="list connected devices")
    sub.add_parser("presets", help="list saved push presets")
    sub.add_parser("detect-adb", help="print the adb executable found automatically")

    set_adb = sub.add_parser("set-adb", help="store the adb executable path")
    set_adb.add_argument("path", nargs="?", help="path to adb; omit to fall back to PATH lookup")

    send = sub.add_parser("send", help="broadcast a push to a device")
    send.add_argument("--device", help="device serial (defaults to the first connected device)")
    send.add_argument("--preset", help="saved preset name or id")
    send.add_argument("--action")
    send.add_argument("--component", help="explicit receiver component")
    send.add_argument("--title")
    send.add_argument("--body")
    send.add_argument("--channel-id")
    send.add_argument("--collapse-key")
    send.add_argument("--icon")
    send.add_argument("--priority", choices=[p.value.lower() for p in PushPriority])
    send.add_argument("--metadata", action="append", type=_parse_pair, default=[], metavar="KEY=VALUE")
    send.add_argument("--data", action="append", type=_parse_pair, default=[], metavar="KEY=VALUE")
    send.add_argument("--raw-json", type=Path, metavar="FILE", help="send in raw JSON mode with this file's content")
    return parser


def _find_preset(repository: PushRepository, reference: str) -> Optional[PushPayload]:
    pushes = repository.get_all()
    for push in pushes:
        if push.id == reference:
            return push
    matches = [push for push in pushes if push.name == reference]
    if not matches:
        return None
    return max(matches, key=lambda push: push.updated_at)


def _payload_from_args(args: argparse.Namespace, base: PushPayload) -> PushPayload:
    payload = base
    overrides = {
        "action": args.action,
        "target_component": args.component,
        "title": args.title,
        "body": args.body,
        "channel_id": args.channel_id,
        "collapse_key": args.collapse_key,
        "icon": args.icon,
    }
    payload = replace(payload, **{key: value for key, value in overrides.items() if value is not None})
    if args.priority:
        payload = replace(payload, priority=PushPriority(args.priority.upper()))
    if args.metadata:
        payload = replace(payload, metadata=payload.metadata + tuple(KeyValueField(key=k, value=v) for k, v in args.metadata))
    if args.data:
        payload = replace(payload, data_fields=payload.data_fields + tuple(KeyValueField(key=k, value=v) for k, v in args.data))
    if args.raw_json is not None:
        payload = replace(
            payload,
            payload_mode=PayloadMode.RAW_JSON,
            raw_json_payload=args.raw_json.read_text(encoding="utf-8"),
        )
    return payload


def _resolve_executable(args: argparse.Namespace, settings: AppSettingsRepository, locator: AdbLocator) -> Optional[str]:
    if args.adb:
        return os.path.expanduser(args.adb)
    try:
        saved = settings.get().adb_path
    except StorageError as exc:
        _LOGGER.warning("Ignoring unreadable settings: %s", exc)
        saved = None
    if saved and locator.is_executable(saved):
        return saved
    return locator.detect()


def _cmd_devices(adb: AdbService) -> int:
    devices = adb.list_devices()
    if not devices:
        print("No ADB devices detected")
        return 1
    for device in devices:
        print(f"{device.id}\t{device.state.value.lower()}\t{device.description}".rstrip())
    return 0


def _cmd_presets(repository: PushRepository) -> int:
    pushes = sorted(repository.get_all(), key=lambda push: push.updated_at, reverse=True)
    for push in pushes:
        print(f"{push.id}\t{push.name}\t{push.payload_mode.value.lower()}")
    return 0


def _cmd_send(args: argparse.Namespace, adb: AdbService, repository: PushRepository) -> int:
    base = PushPayload()
    if args.preset:
        preset = _find_preset(repository, args.preset)
        if preset is None:
            print(f"No saved preset named {args.preset!r}", file=sys.stderr)
            return 2
        base = preset
    payload = sanitize(_payload_from_args(args, base))
    device_id = args.device
    if not device_id:
        devices = adb.list_devices()
        device_id = devices[0].id if devices else None
    problem = validate_for_send(device_id, payload)
    if problem is not None:
        print(problem, file=sys.stderr)
        return 2
    result = adb.send_push(device_id, payload)
    print(result.message, file=sys.stdout if result.ok else sys.stderr)
    return 0 if result.ok else 1


def _cmd_set_adb(args: argparse.Namespace, settings: AppSettingsRepository, locator: AdbLocator) -> int:
    path = os.path.expanduser(args.path.strip()) if args.path and args.path.strip() else None
    if path is not None and not locator.is_executable(path):
        print("File not found or not executable", file=sys.stderr)
        return 2
    settings.save(AppSettings(path))
    print(f"Using ADB at {path}" if path else "Using adb from PATH")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    base_dir = resolve_base_directory()
    configure_logging(args.log_level, log_dir=base_dir)

    locator = AdbLocator()
    repository = PushRepository(pushes_file(base_dir))
    settings = AppSettingsRepository(settings_file(base_dir))
    try:
        if args.command == "detect-adb":
            detected = locator.detect()
            if detected is None:
                print("Could not locate platform-tools automatically", file=sys.stderr)
                return 1
            print(detected)
            return 0
        if args.command == "set-adb":
            return _cmd_set_adb(args, settings, locator)
        if args.command == "presets":
            return _cmd_presets(repository)

        adb = AdbService(_resolve_executable(args, settings, locator))
        if args.command == "devices":
            return _cmd_devices(adb)
        return _cmd_send(args, adb, repository)
    except AdbError as exc:
        print(f"ADB error: {exc}", file=sys.stderr)
        return 1
    except (StorageError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

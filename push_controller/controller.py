"""Application controller behind the PushMaker editor.

The UI observes :class:`~push_controller.state.PushMakerState` snapshots via
:meth:`PushMakerController.subscribe` and calls the operations below. Blocking
work (adb, file I/O, dialogs) runs on the task scope; validation failures are
reported synchronously through the message slot without touching disk or adb.
"""
from __future__ import annotations

import logging
import os
import webbrowser
from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional

from push_bridge.adb_service import AdbError, AdbService
from push_bridge.locator import AdbLocator
from push_store.json_document import StorageError
from push_store.models import AppSettings, PayloadMode, PushPayload, PushPriority
from push_store.push_repository import PushRepository
from push_store.settings_repository import AppSettingsRepository

from .payload_rules import blank_push, ensure_editable, sanitize, validate_for_save, validate_for_send
from .state import Listener, PushMakerState, Reducer, StateStore
from .task_scope import Scope, TaskScope

PLATFORM_TOOLS_URL = "https://developer.android.com/studio/releases/platform-tools"

NO_DEVICES_MESSAGE = "No ADB devices detected"
ADB_NOT_FOUND_MESSAGE = "ADB not found. Set the path in settings."
NOT_EXECUTABLE_MESSAGE = "File not found or not executable"
DETECT_FAILED_MESSAGE = "Could not locate platform-tools automatically"
PUSH_SAVED_MESSAGE = "Push saved"
PUSH_DELETED_MESSAGE = "Push deleted"
PUSH_SENT_MESSAGE = "Push sent"

PathChooser = Callable[[], Optional[str]]

_LOGGER = logging.getLogger("PushMaker.Controller")


class PushMakerController:
    def __init__(
        self,
        repository: PushRepository,
        settings_repository: AppSettingsRepository,
        adb_service: AdbService,
        *,
        locator: Optional[AdbLocator] = None,
        scope: Optional[Scope] = None,
        store: Optional[StateStore] = None,
        raw_json_chooser: Optional[PathChooser] = None,
        adb_chooser: Optional[PathChooser] = None,
        open_url: Callable[[str], bool] = webbrowser.open,
    ) -> None:
        self._repository = repository
        self._settings = settings_repository
        self._adb = adb_service
        self._locator = locator or AdbLocator()
        self._scope: Scope = scope or TaskScope()
        self._store = store or StateStore()
        self._raw_json_chooser = raw_json_chooser
        self._adb_chooser = adb_chooser
        self._open_url = open_url

    # State -----------------------------------------------------------------

    @property
    def state(self) -> PushMakerState:
        return self._store.state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self._store.subscribe(listener)

    def _update(self, reducer: Reducer) -> PushMakerState:
        return self._store.update(reducer)

    def _set_message(self, message: Optional[str]) -> None:
        self._update(lambda state: replace(state, message=message))

    # Lifecycle -------------------------------------------------------------

    def initialize(self) -> None:
        self._scope.launch(self._load_saved_pushes_reporting)
        self._scope.launch(self._configure_and_refresh)

    def dispose(self) -> None:
        self._scope.cancel()

    def consume_message(self) -> None:
        self._update(lambda state: state if state.message is None else replace(state, message=None))

    # Devices ---------------------------------------------------------------

    def refresh_devices(self) -> None:
        self._scope.launch(self._refresh_devices)

    def select_device(self, device_id: str) -> None:
        self._update(lambda state: replace(state, selected_device_id=device_id))

    def _refresh_devices(self) -> None:
        self._update(lambda state: replace(state, is_refreshing_devices=True))
        try:
            devices = tuple(self._adb.list_devices())
        except AdbError as exc:
            message = f"ADB error: {str(exc) or 'unknown error'}"
            self._update(
                lambda state: replace(
                    state,
                    devices=(),
                    selected_device_id=None,
                    is_refreshing_devices=False,
                    message=message,
                )
            )
            return

        def _reconcile(state: PushMakerState) -> PushMakerState:
            selected = state.selected_device_id
            if not any(device.id == selected for device in devices):
                selected = devices[0].id if devices else None
            return replace(
                state,
                devices=devices,
                selected_device_id=selected,
                is_refreshing_devices=False,
                message=state.message if devices else NO_DEVICES_MESSAGE,
            )

        self._update(_reconcile)

    # Editing ---------------------------------------------------------------

    def update_current_push(self, transform: Callable[[PushPayload], PushPayload]) -> None:
        self._update(lambda state: replace(state, current_push=ensure_editable(transform(state.current_push))))

    def update_priority(self, priority: PushPriority) -> None:
        self.update_current_push(lambda push: replace(push, priority=priority))

    def update_payload_mode(self, mode: PayloadMode) -> None:
        self.update_current_push(lambda push: replace(push, payload_mode=mode))

    def update_raw_json_payload(self, value: str) -> None:
        self.update_current_push(lambda push: replace(push, raw_json_payload=value))

    def clear_current_push(self) -> None:
        self._update(lambda state: replace(state, current_push=blank_push()))

    def load_saved_push(self, push_id: str) -> None:
        def _load(state: PushMakerState) -> PushMakerState:
            target = next((push for push in state.saved_pushes if push.id == push_id), None)
            if target is None:
                return state
            return replace(state, current_push=ensure_editable(target))

        self._update(_load)

    def import_raw_json_from_file(self) -> None:
        self._scope.launch(self._import_raw_json)

    def _import_raw_json(self) -> None:
        selection = self._choose(self._raw_json_chooser)
        if selection is None:
            return
        try:
            content = Path(selection).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self._set_message(f"Failed to read file: {exc}")
            return
        self.update_raw_json_payload(content)

    # Presets ---------------------------------------------------------------

    def save_current_push(self) -> None:
        current = sanitize(self.state.current_push)
        problem = validate_for_save(current)
        if problem is not None:
            self._set_message(problem)
            return
        self._scope.launch(self._save_push, current)

    def _save_push(self, push: PushPayload) -> None:
        stored = push.touch()
        try:
            self._repository.upsert(stored)
        except StorageError as exc:
            _LOGGER.warning("Saving push %s failed: %s", stored.id, exc)
            self._set_message(f"Save failed: {exc}")
            return
        message = self._reload_after_change(PUSH_SAVED_MESSAGE)
        self._update(lambda state: replace(state, current_push=ensure_editable(stored), message=message))

    def remove_saved_push(self, push_id: str) -> None:
        self._scope.launch(self._remove_push, push_id)

    def _remove_push(self, push_id: str) -> None:
        try:
            self._repository.delete(push_id)
        except StorageError as exc:
            _LOGGER.warning("Deleting push %s failed: %s", push_id, exc)
            self._set_message(f"Delete failed: {exc}")
            return
        self._set_message(self._reload_after_change(PUSH_DELETED_MESSAGE))

    def _reload_after_change(self, done_message: str) -> str:
        try:
            self._load_saved_pushes()
        except StorageError as exc:
            _LOGGER.warning("Reloading saved pushes failed: %s", exc)
            return f"{done_message}, but reloading saved pushes failed: {exc}"
        return done_message

    def _load_saved_pushes(self) -> None:
        pushes = sorted(
            (ensure_editable(push) for push in self._repository.get_all()),
            key=lambda push: push.updated_at,
            reverse=True,
        )
        self._update(lambda state: replace(state, saved_pushes=tuple(pushes)))

    def _load_saved_pushes_reporting(self) -> None:
        try:
            self._load_saved_pushes()
        except StorageError as exc:
            _LOGGER.warning("Loading saved pushes failed: %s", exc)
            self._set_message(f"Failed to load saved pushes: {exc}")

    # Sending ---------------------------------------------------------------

    def send_current_push(self) -> None:
        state = self.state
        device_id = state.selected_device_id
        payload = sanitize(state.current_push)
        problem = validate_for_send(device_id, payload)
        if problem is not None:
            self._set_message(problem)
            return
        self._scope.launch(self._send_push, device_id, payload)

    def _send_push(self, device_id: str, payload: PushPayload) -> None:
        self._update(lambda state: replace(state, is_sending=True))
        try:
            result = self._adb.send_push(device_id, payload)
        except Exception as exc:
            _LOGGER.error("Sending push to %s failed: %s", device_id, exc, exc_info=exc)
            self._update(lambda state: replace(state, is_sending=False, message=f"Send failed: {exc}"))
            return
        message = result.message if result.message.strip() else PUSH_SENT_MESSAGE
        if not result.ok:
            _LOGGER.info("Push to %s rejected: %s", device_id, message)
        self._update(lambda state: replace(state, is_sending=False, message=message))

    # Settings --------------------------------------------------------------

    def open_settings(self) -> None:
        self._update(
            lambda state: replace(
                state,
                is_settings_open=True,
                settings_adb_path_input=state.adb_path or state.settings_adb_path_input,
                settings_error=None,
            )
        )

    def close_settings(self) -> None:
        self._update(lambda state: replace(state, is_settings_open=False, settings_error=None))

    def update_settings_adb_path_input(self, value: str) -> None:
        self._update(lambda state: replace(state, settings_adb_path_input=value))

    def save_adb_path_from_settings(self) -> None:
        raw = self.state.settings_adb_path_input.strip()
        path = os.path.expanduser(raw) if raw else None
        if path is not None and not self._locator.is_executable(path):
            self._update(lambda state: replace(state, settings_error=NOT_EXECUTABLE_MESSAGE))
            return
        self._scope.launch(self._save_adb_path, path)

    def _save_adb_path(self, path: Optional[str]) -> None:
        try:
            self._apply_adb_path(path, persist=True)
        except StorageError as exc:
            _LOGGER.warning("Saving adb path failed: %s", exc)
            self._update(lambda state: replace(state, settings_error=f"Failed to save settings: {exc}"))
            return
        message = f"Using ADB at {path}" if path else "Using adb from PATH"
        self._update(lambda state: replace(state, is_settings_open=False, settings_error=None, message=message))
        self._refresh_devices()

    def detect_adb_path_from_settings(self) -> None:
        self._scope.launch(self._detect_adb_path)

    def _detect_adb_path(self) -> None:
        detected = self._locator.detect()
        if detected is not None:
            self._update(lambda state: replace(state, settings_adb_path_input=detected, settings_error=None))
        else:
            self._update(lambda state: replace(state, settings_error=DETECT_FAILED_MESSAGE))

    def browse_adb_path_from_settings(self) -> None:
        self._scope.launch(self._browse_adb_path)

    def _browse_adb_path(self) -> None:
        selection = self._choose(self._adb_chooser)
        if selection is not None:
            self._update(lambda state: replace(state, settings_adb_path_input=selection, settings_error=None))

    def open_adb_download_page(self) -> None:
        self._scope.launch(self._open_download_page)

    def _open_download_page(self) -> None:
        try:
            opened = self._open_url(PLATFORM_TOOLS_URL)
        except webbrowser.Error as exc:
            self._set_message(f"Failed to open browser: {exc}")
            return
        if not opened:
            self._set_message("Failed to open browser: no browser available")

    def _configure_and_refresh(self) -> None:
        self._ensure_adb_path_configured()
        self._refresh_devices()

    def _ensure_adb_path_configured(self) -> None:
        try:
            settings = self._settings.get()
        except StorageError as exc:
            _LOGGER.warning("Reading settings failed: %s", exc)
            settings = AppSettings()
        saved = settings.adb_path if settings.adb_path and self._locator.is_executable(settings.adb_path) else None
        resolved = saved or self._locator.detect()
        if resolved is None:
            self._update(
                lambda state: replace(state, adb_path=None, settings_adb_path_input="", message=ADB_NOT_FOUND_MESSAGE)
            )
            return
        try:
            self._apply_adb_path(resolved, persist=saved is None)
        except StorageError as exc:
            _LOGGER.warning("Persisting detected adb path failed: %s", exc)
            self._apply_adb_path(resolved, persist=False)

    def _apply_adb_path(self, path: Optional[str], *, persist: bool) -> None:
        if persist:
            self._settings.save(AppSettings(path))
        self._adb.set_executable(path)
        self._update(
            lambda state: replace(state, adb_path=path, settings_adb_path_input=path or "", settings_error=None)
        )

    def _choose(self, chooser: Optional[PathChooser]) -> Optional[str]:
        if chooser is None:
            self._set_message("File picker unavailable")
            return None
        try:
            return chooser()
        except Exception as exc:
            _LOGGER.warning("File picker failed: %s", exc, exc_info=exc)
            self._set_message(f"File picker error: {exc}")
            return None

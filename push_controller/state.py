"""Immutable controller state and its single owner."""
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, List, Optional, Tuple

from push_bridge.adb_service import AdbDevice
from push_store.models import PushPayload

from .payload_rules import blank_push

_LOGGER = logging.getLogger("PushMaker.Controller.State")


@dataclass(frozen=True)
class PushMakerState:
    devices: Tuple[AdbDevice, ...] = ()
    selected_device_id: Optional[str] = None
    current_push: PushPayload = field(default_factory=blank_push)
    saved_pushes: Tuple[PushPayload, ...] = ()
    is_sending: bool = False
    is_refreshing_devices: bool = False
    message: Optional[str] = None
    adb_path: Optional[str] = None
    is_settings_open: bool = False
    settings_adb_path_input: str = ""
    settings_error: Optional[str] = None


Reducer = Callable[[PushMakerState], PushMakerState]
Listener = Callable[[PushMakerState], None]


class StateStore:
    """Owns the current :class:`PushMakerState`.

    Every change is a reducer applied under the store lock, so two operations
    never read-modify-write the same snapshot concurrently. Snapshots are queued
    under that lock and delivered after it is released, one drainer at a time,
    so listeners see them in production order and may block on other writers.
    """

    def __init__(self, initial: Optional[PushMakerState] = None) -> None:
        self._lock = threading.RLock()
        self._state = initial if initial is not None else PushMakerState()
        self._listeners: List[Listener] = []
        # (target listener or None for everyone, snapshot)
        self._pending: Deque[Tuple[Optional[Listener], PushMakerState]] = deque()
        self._draining = False

    @property
    def state(self) -> PushMakerState:
        with self._lock:
            return self._state

    def update(self, reducer: Reducer) -> PushMakerState:
        with self._lock:
            new_state = reducer(self._state)
            if new_state is self._state:
                return new_state
            self._state = new_state
            self._pending.append((None, new_state))
        self._drain()
        return new_state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; it receives the current snapshot before any later one."""

        with self._lock:
            self._listeners.append(listener)
            self._pending.append((listener, self._state))
        self._drain()

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _drain(self) -> None:
        with self._lock:
            if self._draining:
                return
            self._draining = True
        try:
            while True:
                with self._lock:
                    if not self._pending:
                        self._draining = False
                        return
                    target, snapshot = self._pending.popleft()
                    if target is None:
                        listeners = list(self._listeners)
                    else:
                        listeners = [target] if target in self._listeners else []
                for listener in listeners:
                    self._notify(listener, snapshot)
        except BaseException:
            with self._lock:
                self._draining = False
            raise

    @staticmethod
    def _notify(listener: Listener, snapshot: PushMakerState) -> None:
        try:
            listener(snapshot)
        except Exception as exc:
            _LOGGER.warning("State listener %r failed: %s", listener, exc, exc_info=exc)

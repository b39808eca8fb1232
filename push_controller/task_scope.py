"""Background work for the controller."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, Protocol

_LOGGER = logging.getLogger("PushMaker.Controller.Tasks")


class Scope(Protocol):
    def launch(self, fn: Callable[..., Any], *args: Any) -> Optional[Future]: ...
    def cancel(self) -> None: ...


class TaskScope:
    """Fire-and-forget worker pool cancelled as a whole on shutdown."""

    def __init__(self, *, max_workers: int = 4, name: str = "PushMakerTask") -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
        self._lock = threading.Lock()
        self._cancelled = False

    @property
    def is_active(self) -> bool:
        with self._lock:
            return not self._cancelled

    def launch(self, fn: Callable[..., Any], *args: Any) -> Optional[Future]:
        with self._lock:
            if self._cancelled:
                _LOGGER.debug("Task scope cancelled; dropping %s", getattr(fn, "__name__", fn))
                return None
            return self._executor.submit(self._run, fn, *args)

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
        self._executor.shutdown(wait=False, cancel_futures=True)
        _LOGGER.debug("Task scope cancelled")

    @staticmethod
    def _run(fn: Callable[..., Any], *args: Any) -> None:
        try:
            fn(*args)
        except Exception as exc:
            _LOGGER.error("Background task %s failed: %s", getattr(fn, "__name__", fn), exc, exc_info=exc)

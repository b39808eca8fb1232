from __future__ import annotations

import logging
import threading

import pytest

from push_controller.task_scope import TaskScope


def test_launch_runs_function_with_arguments() -> None:
    scope = TaskScope(max_workers=1)
    results = []
    try:
        future = scope.launch(results.append, "value")
        assert future is not None
        future.result(timeout=5)
    finally:
        scope.cancel()

    assert results == ["value"]


def test_failures_are_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    def _fail() -> None:
        raise ValueError("broken task")

    scope = TaskScope(max_workers=1)
    logger = logging.getLogger("PushMaker.Controller.Tasks")
    logger.addHandler(caplog.handler)
    try:
        future = scope.launch(_fail)
        assert future is not None
        assert future.result(timeout=5) is None
    finally:
        logger.removeHandler(caplog.handler)
        scope.cancel()

    assert any("broken task" in record.getMessage() for record in caplog.records)


def test_cancel_drops_pending_and_later_work() -> None:
    scope = TaskScope(max_workers=1)
    started = threading.Event()
    gate = threading.Event()
    ran = []

    def _block() -> None:
        started.set()
        gate.wait(5)

    first = scope.launch(_block)
    assert started.wait(5)
    pending = scope.launch(ran.append, "pending")
    scope.cancel()
    gate.set()

    assert scope.is_active is False
    assert scope.launch(ran.append, "late") is None
    assert first is not None and first.result(timeout=5) is None
    assert pending is not None and pending.cancelled()
    assert ran == []


def test_cancel_twice_is_harmless() -> None:
    scope = TaskScope()
    scope.cancel()
    scope.cancel()

    assert scope.is_active is False

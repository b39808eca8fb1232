"""Run external commands with a bounded wait and captured output."""
from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Any, Callable, Dict, Sequence

import psutil

DEFAULT_TIMEOUT_SECONDS = 15.0
TERMINATE_GRACE_SECONDS = 3.0

_LOGGER = logging.getLogger("PushMaker.Bridge.Process")


class AdbError(RuntimeError):
    """Raised when a bridge command could not produce any output."""


class ProcessLaunchError(AdbError):
    """The executable could not be started (missing, not executable, OS refusal)."""


class ProcessTimeoutError(AdbError):
    """The command did not finish in time and was terminated."""

    def __init__(self, argv: Sequence[str], timeout: float) -> None:
        self.argv = list(argv)
        self.timeout = timeout
        super().__init__(f"{self.argv[0]} timed out after {timeout:g}s")


@dataclass(frozen=True)
class ProcessResult:
    exit_code: int
    stdout: str
    stderr: str


def terminate_process_tree(pid: int, grace: float = TERMINATE_GRACE_SECONDS) -> None:
    """Terminate ``pid`` and its descendants, killing whatever ignores SIGTERM."""

    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return
    try:
        children = parent.children(recursive=True)
    except psutil.Error:
        children = []
    procs = [*children, parent]
    for proc in procs:
        try:
            proc.terminate()
        except psutil.NoSuchProcess:
            pass
    _gone, alive = psutil.wait_procs(procs, timeout=grace)
    for proc in alive:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass
    if alive:
        psutil.wait_procs(alive, timeout=2.0)


class ProcessRunner:
    """Start a command, wait up to ``timeout`` seconds and collect stdout/stderr separately."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        popen: Callable[..., Any] = subprocess.Popen,
        terminate_tree: Callable[[int], None] = terminate_process_tree,
    ) -> None:
        self._timeout = float(timeout)
        self._popen = popen
        self._terminate_tree = terminate_tree

    @property
    def timeout(self) -> float:
        return self._timeout

    def run(self, argv: Sequence[str]) -> ProcessResult:
        command = list(argv)
        if not command:
            raise ProcessLaunchError("No command given")
        kwargs: Dict[str, Any] = {
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.PIPE,
            "stderr": subprocess.PIPE,
            "text": True,
            "encoding": "utf-8",
            "errors": "replace",
        }
        if os.name == "nt":
            creation_flags = getattr(subprocess, "CREATE_NO_WINDOW", 0)
            if creation_flags:
                kwargs["creationflags"] = creation_flags
        _LOGGER.debug("Running %s", command)
        try:
            process = self._popen(command, **kwargs)
        except OSError as exc:
            _LOGGER.warning("Failed to start %s: %s", command[0], exc)
            raise ProcessLaunchError(str(exc)) from exc

        try:
            stdout, stderr = process.communicate(timeout=self._timeout)
        except subprocess.TimeoutExpired:
            _LOGGER.warning("Command %s exceeded %.1fs; terminating (pid=%s)", command, self._timeout, process.pid)
            self._reap_after_timeout(process)
            raise ProcessTimeoutError(command, self._timeout) from None

        result = ProcessResult(process.returncode, (stdout or "").strip(), (stderr or "").strip())
        _LOGGER.debug("Command %s exited with %s", command[0], result.exit_code)
        return result

    def _reap_after_timeout(self, process: Any) -> None:
        try:
            self._terminate_tree(process.pid)
        except Exception as exc:
            _LOGGER.warning("Failed to terminate process tree pid=%s: %s", process.pid, exc)
            process.kill()
        try:
            process.communicate(timeout=2.0)
        except subprocess.TimeoutExpired:
            # A grandchild still holds the pipes open; leave it to the OS.
            _LOGGER.debug("Output pipes still open after terminating pid=%s", process.pid)

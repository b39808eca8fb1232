"""Locate a usable ``adb`` executable on the local machine."""
from __future__ import annotations

import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Iterable, Mapping, Optional

ADB_ENV_VAR = "ADB"
SDK_ROOT_ENV_VARS = ("ANDROID_HOME", "ANDROID_SDK_ROOT")

_LOGGER = logging.getLogger("PushMaker.Bridge.Locator")


def _expand_tilde(path: str, home: str) -> str:
    if path.startswith("~"):
        return home + path[1:]
    return path


def is_executable(path: str, *, home: Optional[str] = None) -> bool:
    """Return True when ``path`` names an existing, regular, executable file."""

    if not path:
        return False
    target = Path(_expand_tilde(path, home if home is not None else str(Path.home())))
    try:
        return target.is_file() and os.access(target, os.X_OK)
    except OSError:
        return False


class AdbLocator:
    """Search the environment and the usual SDK install folders for ``adb``."""

    def __init__(
        self,
        *,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[str] = None,
        platform: Optional[str] = None,
        which=shutil.which,
    ) -> None:
        self._environ = environ if environ is not None else os.environ
        self._home = home if home is not None else str(Path.home())
        self._platform = platform if platform is not None else sys.platform
        self._which = which

    @property
    def binary_name(self) -> str:
        return "adb.exe" if self._is_windows() else "adb"

    def is_executable(self, path: str) -> bool:
        return is_executable(path, home=self._home)

    def detect(self) -> Optional[str]:
        """Return the first usable adb path, or None when nothing is installed."""

        direct = self._env(ADB_ENV_VAR)
        if direct is not None:
            expanded = _expand_tilde(direct, self._home)
            if self.is_executable(expanded):
                _LOGGER.debug("Using adb from %s=%s", ADB_ENV_VAR, expanded)
                return expanded
            _LOGGER.debug("Ignoring %s=%s; not an executable file", ADB_ENV_VAR, direct)

        for root in self.sdk_roots():
            for candidate in self._candidate_paths(root):
                if self.is_executable(candidate):
                    _LOGGER.debug("Found adb under SDK root %s: %s", root, candidate)
                    return candidate

        found = self._which(self.binary_name)
        if found and self.is_executable(found):
            _LOGGER.debug("Found adb on PATH: %s", found)
            return found
        _LOGGER.debug("No adb executable found")
        return None

    def sdk_roots(self) -> list[str]:
        roots = [value for value in (self._env(name) for name in SDK_ROOT_ENV_VARS) if value is not None]
        roots.extend(self._default_sdk_guesses())
        return roots

    def _candidate_paths(self, sdk_root: str) -> Iterable[str]:
        base = Path(_expand_tilde(sdk_root, self._home))
        yield str(base / "platform-tools" / self.binary_name)
        yield str(base / self.binary_name)

    def _default_sdk_guesses(self) -> list[str]:
        home = self._home
        guesses = [
            f"{home}/Library/Android/sdk",
            f"{home}/Android/Sdk",
            f"{home}/Android/sdk",
        ]
        local_app_data = self._env("LOCALAPPDATA") or f"{home}/AppData/Local"
        guesses.append(f"{local_app_data}/Android/Sdk")
        program_files = self._env("ProgramFiles")
        if program_files is not None:
            guesses.append(f"{program_files}/Android/Android Studio")
        return guesses

    def _env(self, name: str) -> Optional[str]:
        value = self._environ.get(name)
        if value is None or not value.strip():
            return None
        return value

    def _is_windows(self) -> bool:
        return self._platform.startswith("win")


def detect_adb_executable() -> Optional[str]:
    return AdbLocator().detect()

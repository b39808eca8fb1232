"""Per-user storage locations."""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping, Optional

APP_DIR_NAME = "PushMaker"
HOME_ENV_VAR = "PUSHMAKER_HOME"
PUSHES_FILE_NAME = "pushes.json"
SETTINGS_FILE_NAME = "settings.json"


def resolve_base_directory(
    *,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
    platform: Optional[str] = None,
) -> Path:
    """Return the application data folder: roaming app-data, Application Support or XDG config."""

    env = environ if environ is not None else os.environ
    override = (env.get(HOME_ENV_VAR) or "").strip()
    if override:
        return Path(override).expanduser()
    home_dir = home if home is not None else Path.home()
    system = platform if platform is not None else sys.platform
    if system.startswith("win"):
        app_data = env.get("APPDATA")
        root = Path(app_data) if app_data else home_dir / "AppData" / "Roaming"
    elif system == "darwin":
        root = home_dir / "Library" / "Application Support"
    else:
        xdg = (env.get("XDG_CONFIG_HOME") or "").strip()
        root = Path(xdg) if xdg else home_dir / ".config"
    return root / APP_DIR_NAME


def pushes_file(base: Optional[Path] = None) -> Path:
    return (base if base is not None else resolve_base_directory()) / PUSHES_FILE_NAME


def settings_file(base: Optional[Path] = None) -> Path:
    return (base if base is not None else resolve_base_directory()) / SETTINGS_FILE_NAME

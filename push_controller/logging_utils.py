"""Logging setup shared by the controller and the command-line front end."""
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from version import is_dev_build

LOGGER_NAME = "PushMaker"
LOG_LEVEL_ENV_VAR = "PUSHMAKER_LOG_LEVEL"
LOG_FILE_NAME = "pushmaker.log"
LOG_MAX_BYTES = 512 * 1024
DEFAULT_LOG_RETENTION = 5


def resolve_log_level(value: Any, default: int = logging.INFO) -> int:
    """Accept a level number or name (``"debug"``, ``"WARN"``, ``"10"``)."""

    if value is None:
        return default
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    if not text:
        return default
    if text.isdigit():
        return int(text)
    attr = getattr(logging, text.upper(), None)
    if isinstance(attr, int):
        return attr
    return default


def resolve_logs_dir(base_dir: Path) -> Path:
    log_dir = base_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def build_rotating_file_handler(
    log_dir: Path,
    file_name: str,
    *,
    retention: int = DEFAULT_LOG_RETENTION,
    max_bytes: int = LOG_MAX_BYTES,
    formatter: Optional[logging.Formatter] = None,
) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        log_dir / file_name,
        maxBytes=max_bytes,
        backupCount=max(0, retention - 1),
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler


def _default_level() -> int:
    fallback = logging.DEBUG if is_dev_build() else logging.INFO
    return resolve_log_level(os.getenv(LOG_LEVEL_ENV_VAR), fallback)


def configure_logging(level: Any = None, log_dir: Optional[Path] = None) -> logging.Logger:
    """Attach console and (optionally) rotating file handlers to the ``PushMaker`` logger once."""

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_log_level(level, _default_level()))
    formatter = logging.Formatter("[%(asctime)s] [%(levelname)s] %(name)s: %(message)s", "%H:%M:%S")
    if not any(getattr(handler, "_pushmaker_console", False) for handler in logger.handlers):
        console = logging.StreamHandler(sys.stderr)
        console._pushmaker_console = True  # type: ignore[attr-defined]
        console.setFormatter(formatter)
        logger.addHandler(console)
    if log_dir is not None and not any(getattr(handler, "_pushmaker_file", False) for handler in logger.handlers):
        try:
            file_handler = build_rotating_file_handler(
                resolve_logs_dir(log_dir),
                LOG_FILE_NAME,
                formatter=logging.Formatter(
                    "%(asctime)s.%(msecs)03d - %(levelname)s - %(name)s - %(message)s",
                    "%Y-%m-%d %H:%M:%S",
                ),
            )
        except OSError as exc:
            logger.warning("Failed to initialise log file under %s: %s", log_dir, exc)
        else:
            file_handler._pushmaker_file = True  # type: ignore[attr-defined]
            logger.addHandler(file_handler)
    logger.propagate = False
    return logger

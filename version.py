"""PushMaker release identifier and the developer-mode switch."""
from __future__ import annotations

import os
from importlib import metadata
from typing import Callable, Mapping, Optional

__all__ = ["__version__", "DEV_MODE_ENV_VAR", "DISTRIBUTION_NAME", "installed_version", "is_dev_build"]

# Kept in step with ``version`` in pyproject.toml.
__version__ = "1.0.0"
DISTRIBUTION_NAME = "pushmaker"
DEV_MODE_ENV_VAR = "PUSHMAKER_DEV_MODE"

_FORCE_ON = frozenset({"1", "true", "yes", "on"})
_FORCE_OFF = frozenset({"0", "false", "no", "off"})


def installed_version(distribution: str = DISTRIBUTION_NAME) -> Optional[str]:
    """Version recorded in the installed package metadata, or None for a bare checkout."""

    try:
        return metadata.version(distribution)
    except metadata.PackageNotFoundError:
        return None


def is_dev_build(
    environ: Optional[Mapping[str, str]] = None,
    lookup: Callable[[], Optional[str]] = installed_version,
) -> bool:
    """Return True when developer-only behaviour (DEBUG logging) should be on.

    ``PUSHMAKER_DEV_MODE`` decides when set to a recognised on/off token.
    Otherwise a checkout that was never installed, or an install whose
    metadata does not match ``__version__``, counts as a development build.
    """

    env = environ if environ is not None else os.environ
    token = (env.get(DEV_MODE_ENV_VAR) or "").strip().lower()
    if token in _FORCE_ON:
        return True
    if token in _FORCE_OFF:
        return False
    return lookup() != __version__

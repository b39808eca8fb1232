"""Run the PushMaker test suites from a source checkout.

Usage:
    python tests/configure_pytest_environment.py [pytest args]

Puts the checkout root on sys.path so ``push_bridge``, ``push_store``,
``push_controller`` and ``version`` import without installing the project,
confirms psutil is importable, then hands the arguments to pytest. Without
arguments both ``tests/`` and ``push_controller/tests/`` are collected.
"""
from __future__ import annotations

import sys
from pathlib import Path


def _require_psutil() -> None:
    try:
        import psutil  # noqa: F401
    except ImportError as exc:  # pragma: no cover
        print("psutil is not installed; run `pip install -e .[test]` first.", file=sys.stderr)
        raise SystemExit(1) from exc


def main(argv: list[str]) -> int:
    root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(root))

    try:
        import pytest  # type: ignore
    except ImportError as exc:  # pragma: no cover
        print("pytest is not installed in this environment.", file=sys.stderr)
        raise SystemExit(1) from exc

    _require_psutil()

    if not argv:
        argv = [str(root / "tests"), str(root / "push_controller" / "tests")]
    return pytest.main(argv)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))

"""Pytest configuration shared by every suite.

What:
  Establish project import paths and keep the runtime configuration cache
  clean between tests.

Why:
  Tests must exercise the in-repo ``mimemail`` sources rather than an
  installed wheel, and the loader memoises the configuration globally. A
  developer's own ``MIMEMAIL_CONFIG_PATH`` must not leak into the suite either.

How:
  Prepend ``mimemail/src`` to ``sys.path`` at import time and define an autouse
  fixture that unsets ``MIMEMAIL_CONFIG_PATH``, moves into a temporary working
  directory (so a stray ``mimemail.yaml`` is never picked up) and resets the
  cache before and after each test.

Interfaces:
  :func:`runtime_config` (pytest fixture).
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "mimemail" / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

import pytest

from mimemail.config.loader import reset_runtime_config


@pytest.fixture(autouse=True)
def runtime_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Run every test against the built-in configuration defaults."""

    monkeypatch.delenv("MIMEMAIL_CONFIG_PATH", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    reset_runtime_config()
    try:
        yield
    finally:
        reset_runtime_config()

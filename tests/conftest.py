from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable when the package is not installed
ROOT = TESTS_DIR.parent
for extra in (ROOT / "src",):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from exam_drill.core.logging import close_logger  # noqa: E402
from fixtures import WorkspaceBuilder  # noqa: E402

_CLI_LOGGERS = ("exam_drill.trainer", "exam_drill.validate")


@pytest.fixture(autouse=True)
def _isolate_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Keep tests away from the real home directory and shell settings."""

    for key in list(os.environ):
        if key.startswith("EXAM_DRILL_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("EXAM_DRILL_HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    yield
    for name in _CLI_LOGGERS:
        close_logger(logging.getLogger(name))


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path)

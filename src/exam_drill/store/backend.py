"""Directory-backed string key-value storage for per-device learner data."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Optional

__all__ = [
    "KeyValueStorage",
    "open_storage",
]

_KEY_RE = re.compile(r"^[A-Za-z0-9._-]+$")


class KeyValueStorage:
    """Store each key as a UTF-8 file inside ``directory``.

    Writes go through a temp file and ``os.replace`` so a crash never leaves
    a half-written value behind.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{key}.", suffix=".tmp", dir=self.directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        return sorted(
            path.stem
            for path in self.directory.glob("*.json")
            if path.is_file()
        )


def open_storage(directory: Optional[Path]) -> Optional[KeyValueStorage]:
    """Return storage rooted at ``directory`` or ``None`` when unusable."""

    if directory is None:
        return None
    path = Path(directory)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return None
    if not path.is_dir() or not os.access(path, os.W_OK):
        return None
    return KeyValueStorage(path)

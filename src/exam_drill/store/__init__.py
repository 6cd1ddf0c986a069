"""Local persistence for learner progress."""

from __future__ import annotations

from .backend import KeyValueStorage, open_storage
from .progress import (
    PROGRESS_KEY,
    WRONG_NOTE_KEY,
    ProgressBySubject,
    ProgressStore,
)

__all__ = [
    "KeyValueStorage",
    "open_storage",
    "PROGRESS_KEY",
    "WRONG_NOTE_KEY",
    "ProgressBySubject",
    "ProgressStore",
]

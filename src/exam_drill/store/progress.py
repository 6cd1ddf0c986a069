"""Wrong-note lists and progress counters kept per subject on this device.

Every operation is best-effort. When the storage backend is missing, holds
corrupt data, or fails to write, reads fall back to empty values and writes
are dropped; callers never see an exception.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from .backend import KeyValueStorage

__all__ = [
    "WRONG_NOTE_KEY",
    "PROGRESS_KEY",
    "ProgressBySubject",
    "ProgressStore",
]

WRONG_NOTE_KEY = "exam_drill.wrongnote.v1"
PROGRESS_KEY = "exam_drill.progress.v1"

_LOGGER = logging.getLogger("exam_drill.store")

_FIELDS = (
    ("practice_answered", "practiceAnswered"),
    ("practice_correct", "practiceCorrect"),
    ("exam_attempts", "examAttempts"),
    ("exam_questions", "examQuestions"),
    ("exam_correct", "examCorrect"),
)


@dataclass
class ProgressBySubject:
    practice_answered: int = 0
    practice_correct: int = 0
    exam_attempts: int = 0
    exam_questions: int = 0
    exam_correct: int = 0

    @property
    def practice_accuracy(self) -> float:
        if not self.practice_answered:
            return 0.0
        return self.practice_correct / self.practice_answered

    @property
    def exam_accuracy(self) -> float:
        if not self.exam_questions:
            return 0.0
        return self.exam_correct / self.exam_questions

    def to_dict(self) -> Dict[str, int]:
        return {key: getattr(self, attr) for attr, key in _FIELDS}

    @classmethod
    def from_dict(cls, payload: object) -> "ProgressBySubject":
        if not isinstance(payload, Mapping):
            return cls()
        values: Dict[str, int] = {}
        for attr, key in _FIELDS:
            raw = payload.get(key, 0)
            if isinstance(raw, bool) or not isinstance(raw, int):
                raw = 0
            values[attr] = raw
        return cls(**values)


class ProgressStore:
    """Per-subject wrong notes and counters on top of a key-value backend."""

    def __init__(
        self,
        storage: Optional[KeyValueStorage],
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self.storage = storage
        self.logger = logger or _LOGGER

    @property
    def available(self) -> bool:
        return self.storage is not None

    # ------------------------------------------------------------------
    # Raw JSON access
    # ------------------------------------------------------------------
    def _load(self, key: str) -> Dict[str, Any]:
        if self.storage is None:
            return {}
        try:
            raw = self.storage.get_item(key)
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.warning(
                "Failed to read local data",
                extra={"key": key, "error": str(exc)},
            )
            return {}
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            self.logger.debug("Ignored corrupt local data", extra={"key": key})
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, key: str, value: Mapping[str, Any]) -> None:
        if self.storage is None:
            return
        try:
            self.storage.set_item(key, json.dumps(value, ensure_ascii=False))
        except OSError as exc:
            self.logger.warning(
                "Failed to write local data",
                extra={"key": key, "error": str(exc)},
            )

    # ------------------------------------------------------------------
    # Wrong notes
    # ------------------------------------------------------------------
    def get_wrong_notes(self, subject: str) -> List[str]:
        entries = self._load(WRONG_NOTE_KEY).get(subject)
        if not isinstance(entries, list):
            return []
        return [entry for entry in entries if isinstance(entry, str)]

    def add_wrong_note(self, subject: str, question_id: str) -> None:
        store = self._load(WRONG_NOTE_KEY)
        current = self.get_wrong_notes(subject)
        if question_id in current:
            return
        store[subject] = [*current, question_id]
        self._save(WRONG_NOTE_KEY, store)

    def remove_wrong_note(self, subject: str, question_id: str) -> None:
        store = self._load(WRONG_NOTE_KEY)
        current = self.get_wrong_notes(subject)
        if question_id not in current:
            return
        store[subject] = [entry for entry in current if entry != question_id]
        self._save(WRONG_NOTE_KEY, store)

    def clear_wrong_notes(self, subject: str) -> None:
        store = self._load(WRONG_NOTE_KEY)
        if store.pop(subject, None) is None:
            return
        self._save(WRONG_NOTE_KEY, store)

    # ------------------------------------------------------------------
    # Progress counters
    # ------------------------------------------------------------------
    def get_progress(self, subject: str) -> ProgressBySubject:
        return ProgressBySubject.from_dict(
            self._load(PROGRESS_KEY).get(subject)
        )

    def record_practice_answer(self, subject: str, is_correct: bool) -> None:
        store = self._load(PROGRESS_KEY)
        progress = ProgressBySubject.from_dict(store.get(subject))
        progress.practice_answered += 1
        if is_correct:
            progress.practice_correct += 1
        store[subject] = progress.to_dict()
        self._save(PROGRESS_KEY, store)

    def record_exam_attempt(
        self, subject: str, total: int, correct: int
    ) -> None:
        store = self._load(PROGRESS_KEY)
        progress = ProgressBySubject.from_dict(store.get(subject))
        progress.exam_attempts += 1
        progress.exam_questions += total
        progress.exam_correct += correct
        store[subject] = progress.to_dict()
        self._save(PROGRESS_KEY, store)

    def clear_all(self) -> None:
        """Delete every wrong note and counter on this device."""

        if self.storage is None:
            return
        for key in (WRONG_NOTE_KEY, PROGRESS_KEY):
            try:
                self.storage.remove_item(key)
            except OSError as exc:
                self.logger.warning(
                    "Failed to clear local data",
                    extra={"key": key, "error": str(exc)},
                )

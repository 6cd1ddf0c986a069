"""Immutable records produced by the question loader."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

__all__ = [
    "DEFAULT_EXPLANATION",
    "Choice",
    "NormalizedQuestion",
    "WarningKind",
    "PoolWarning",
    "SubjectPool",
]

DEFAULT_EXPLANATION = "No explanation is provided for this question."


@dataclass(frozen=True)
class Choice:
    """A single answer option as authored in the question file."""

    no: int
    text: str


@dataclass(frozen=True)
class NormalizedQuestion:
    """A question resolved against its subject, exam year and session."""

    id: str
    source_file: str
    subject: str
    year: int
    session: int
    no: int
    question: str
    choices: tuple[Choice, ...]
    correct_choice_no: int
    explanation: str = DEFAULT_EXPLANATION
    topic: Optional[str] = None

    def choice_numbers(self) -> frozenset[int]:
        return frozenset(choice.no for choice in self.choices)


class WarningKind(str, Enum):
    """Kinds of informational notes attached to a pool."""

    META_MISMATCH = "meta_mismatch"
    MISSING_YEAR = "missing_year"
    SMALL_POOL = "small_pool"


@dataclass(frozen=True)
class PoolWarning:
    kind: WarningKind
    message: str


@dataclass(frozen=True)
class SubjectPool:
    """All questions available for a subject under a year/session filter."""

    subject: str
    questions: tuple[NormalizedQuestion, ...]
    warnings: tuple[PoolWarning, ...] = ()

    def __len__(self) -> int:
        return len(self.questions)

    def warnings_of(self, kind: WarningKind) -> list[PoolWarning]:
        return [warning for warning in self.warnings if warning.kind is kind]

    def select(self, ids: Iterable[str]) -> list[NormalizedQuestion]:
        """Return pool questions whose id is in ``ids``, in pool order."""

        wanted = set(ids)
        return [q for q in self.questions if q.id in wanted]

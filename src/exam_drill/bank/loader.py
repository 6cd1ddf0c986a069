"""Discover question files and assemble per-subject question pools.

The loader favours availability over strictness: unreadable files, files
with unexpected names and malformed entries are skipped so a single broken
file never blocks a quiz. Disagreements and gaps that a learner should know
about are reported as :class:`~exam_drill.bank.models.PoolWarning` entries
on the returned pool. Strict reporting lives in
:mod:`exam_drill.bank.validator`.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .models import (
    DEFAULT_EXPLANATION,
    Choice,
    NormalizedQuestion,
    PoolWarning,
    SubjectPool,
    WarningKind,
)
from .subjects import SUBJECT_MAP, canonicalize_subject, subject_slugs

__all__ = [
    "DEFAULT_YEARS",
    "DEFAULT_SESSIONS",
    "DEFAULT_MIN_POOL_SIZE",
    "FILE_PATTERN",
    "ParsedFilename",
    "expand_year",
    "parse_filename",
    "list_question_files",
    "read_question_file",
    "normalize_question",
    "load_subject_pool",
    "subject_counts",
]

DEFAULT_YEARS: tuple[int, ...] = (2024, 2025)
DEFAULT_SESSIONS: tuple[int, ...] = (1, 2, 3)
# Matches the default quiz size so a short pool is flagged before a quiz
# comes out shorter than requested.
DEFAULT_MIN_POOL_SIZE = 20

FILE_PATTERN = re.compile(r"^(\d{2})-(\d+)-([a-z_]+)\.json$")
_QUESTION_SUFFIX = ".json"

_LOGGER = logging.getLogger("exam_drill.bank.loader")


@dataclass(frozen=True)
class ParsedFilename:
    year: int
    session: int
    raw_subject: str
    subject: Optional[str]


def expand_year(two_digit: int) -> int:
    """Expand a two-digit exam year; 90-99 map to the 1900s."""

    return 1900 + two_digit if two_digit >= 90 else 2000 + two_digit


def parse_filename(name: str) -> Optional[ParsedFilename]:
    """Parse ``<yy>-<session>-<subject>.json`` from the basename."""

    match = FILE_PATTERN.match(Path(name).name)
    if not match:
        return None
    raw_subject = match.group(3)
    return ParsedFilename(
        year=expand_year(int(match.group(1))),
        session=int(match.group(2)),
        raw_subject=raw_subject,
        subject=canonicalize_subject(raw_subject),
    )


def list_question_files(root: Path) -> List[str]:
    """Return question file paths relative to ``root``, sorted.

    A missing root yields an empty list.
    """
    base = Path(root)
    if not base.is_dir():
        return []
    found = [
        child.relative_to(base).as_posix()
        for child in base.rglob(f"*{_QUESTION_SUFFIX}")
        if child.is_file()
    ]
    return sorted(found)


def read_question_file(path: Path) -> Optional[Mapping[str, Any]]:
    """Read a question file, returning ``None`` when it cannot be used."""

    try:
        text = Path(path).read_text(encoding="utf-8")
        payload = json.loads(text)
    except (OSError, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(payload, Mapping):
        return None
    return payload


def _mapping(value: object) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _coerce_int(value: object) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _normalize_choices(raw_choices: object) -> tuple[Choice, ...]:
    if not isinstance(raw_choices, list):
        return ()
    choices: list[Choice] = []
    for item in raw_choices:
        if not isinstance(item, Mapping):
            continue
        number = _coerce_int(item.get("no"))
        if number is None:
            continue
        choices.append(Choice(no=number, text=str(item.get("text", ""))))
    return tuple(choices)


def normalize_question(
    raw: object,
    *,
    source_file: str,
    subject: str,
    year: int,
    session: int,
    position: int,
) -> Optional[NormalizedQuestion]:
    """Build a :class:`NormalizedQuestion` or ``None`` for unusable entries.

    ``position`` is the 1-based index of the entry in its file and stands in
    for the question number when the entry does not carry one.
    """
    if not isinstance(raw, Mapping):
        return None
    prompt = raw.get("question")
    if not prompt:
        return None
    choices = _normalize_choices(raw.get("choices"))
    if not choices:
        return None
    answer_no = _mapping(raw.get("answer")).get("choiceNo")
    correct = _coerce_int(answer_no) if answer_no else None
    if not correct:
        return None

    number = _coerce_int(raw.get("no"))
    if number is None:
        number = position
    explanation = raw.get("explanation")
    topic = raw.get("topic")
    return NormalizedQuestion(
        id=f"{subject}-{year}-{session}-{number}",
        source_file=source_file,
        subject=subject,
        year=year,
        session=session,
        no=number,
        question=str(prompt),
        choices=choices,
        correct_choice_no=correct,
        explanation=(
            DEFAULT_EXPLANATION if explanation is None else str(explanation)
        ),
        topic=str(topic) if topic is not None else None,
    )


def load_subject_pool(
    subject: str,
    years: Sequence[int] = DEFAULT_YEARS,
    sessions: Sequence[int] = DEFAULT_SESSIONS,
    *,
    root: Path,
    min_pool_size: int = DEFAULT_MIN_POOL_SIZE,
    logger: Optional[logging.Logger] = None,
) -> SubjectPool:
    """Assemble the question pool for ``subject`` from files under ``root``.

    Files are matched by name, filtered to the requested years and sessions,
    and normalized. The pool is rebuilt on every call.
    """
    log = logger or _LOGGER
    subject = canonicalize_subject(subject) or subject
    meta = SUBJECT_MAP.get(subject)
    display_name = meta.name if meta else subject
    year_filter = list(years)
    session_filter = list(sessions)
    base = Path(root)

    questions: list[NormalizedQuestion] = []
    warnings: list[PoolWarning] = []
    observed: set[tuple[int, int]] = set()
    seen_ids: set[str] = set()

    for relative in list_question_files(base):
        parsed = parse_filename(relative)
        if parsed is None:
            log.debug(
                "Skipped file with unrecognized name",
                extra={"source": relative},
            )
            continue

        payload = read_question_file(base / relative)
        if payload is None:
            log.debug(
                "Skipped unreadable question file",
                extra={"source": relative},
            )
            continue

        file_meta = _mapping(payload.get("meta"))
        resolved = parsed.subject or canonicalize_subject(
            _mapping(file_meta.get("subject")).get("code")
        )
        if resolved is None or resolved != subject:
            continue

        year, session = parsed.year, parsed.session
        if year not in year_filter or session not in session_filter:
            continue
        observed.add((year, session))

        exam = _mapping(file_meta.get("exam"))
        meta_year = exam.get("year")
        meta_session = exam.get("session")
        if meta_year is not None and meta_session is not None:
            if meta_year != year or meta_session != session:
                warnings.append(
                    PoolWarning(
                        kind=WarningKind.META_MISMATCH,
                        message=(
                            f"{relative}: embedded exam "
                            f"{meta_year}-{meta_session} disagrees with "
                            f"filename {year}-{session}; using the filename."
                        ),
                    )
                )
                log.info(
                    "Embedded exam metadata disagrees with filename",
                    extra={
                        "source": relative,
                        "meta_year": meta_year,
                        "meta_session": meta_session,
                    },
                )

        raw_questions = payload.get("questions")
        if not isinstance(raw_questions, list):
            raw_questions = []
        kept = 0
        for position, raw in enumerate(raw_questions, start=1):
            normalized = normalize_question(
                raw,
                source_file=relative,
                subject=subject,
                year=year,
                session=session,
                position=position,
            )
            if normalized is None:
                continue
            kept += 1
            if normalized.id in seen_ids:
                log.debug(
                    "Dropped duplicate question id",
                    extra={"source": relative, "id": normalized.id},
                )
                continue
            seen_ids.add(normalized.id)
            questions.append(normalized)
        dropped = len(raw_questions) - kept
        if dropped:
            log.debug(
                "Dropped malformed question entries",
                extra={"source": relative, "dropped": dropped},
            )

    for year in year_filter:
        for session in session_filter:
            if (year, session) in observed:
                continue
            warnings.append(
                PoolWarning(
                    kind=WarningKind.MISSING_YEAR,
                    message=(
                        f"{display_name}: no file for {year} session "
                        f"{session}; using the data that is available."
                    ),
                )
            )

    if len(questions) < min_pool_size:
        warnings.append(
            PoolWarning(
                kind=WarningKind.SMALL_POOL,
                message=(
                    f"{display_name}: the pool holds {len(questions)} "
                    f"question(s), so a quiz may have fewer than "
                    f"{min_pool_size}."
                ),
            )
        )

    log.info(
        "Assembled subject pool",
        extra={
            "subject": subject,
            "years": year_filter,
            "sessions": session_filter,
            "question_count": len(questions),
            "warning_count": len(warnings),
        },
    )
    return SubjectPool(
        subject=subject,
        questions=tuple(questions),
        warnings=tuple(warnings),
    )


def subject_counts(
    *,
    root: Path,
    years: Sequence[int] = DEFAULT_YEARS,
    sessions: Sequence[int] = DEFAULT_SESSIONS,
    subjects: Optional[Iterable[str]] = None,
    logger: Optional[logging.Logger] = None,
) -> dict[str, int]:
    """Return the pool size for each canonical subject."""

    return {
        slug: len(
            load_subject_pool(
                slug, years, sessions, root=root, logger=logger
            ).questions
        )
        for slug in (subjects or subject_slugs())
    }

"""Builders for question documents in the on-disk JSON format."""

from __future__ import annotations

from typing import Any, Optional, Sequence


def make_question(
    no: Optional[int] = 1,
    *,
    answer: Any = 1,
    choices: int = 4,
    question: Optional[str] = None,
    explanation: Optional[str] = None,
    topic: Optional[str] = None,
) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "question": question or f"Question {no}",
        "choices": [
            {"no": idx, "text": f"Choice {idx}"}
            for idx in range(1, choices + 1)
        ],
        "answer": {"choiceNo": answer},
    }
    if no is not None:
        entry["no"] = no
    if explanation is not None:
        entry["explanation"] = explanation
    if topic is not None:
        entry["topic"] = topic
    return entry


def make_document(
    questions: Sequence[dict[str, Any]],
    *,
    year: Optional[int] = None,
    session: Optional[int] = None,
    subject_code: Optional[str] = None,
) -> dict[str, Any]:
    meta: dict[str, Any] = {}
    exam: dict[str, Any] = {}
    if year is not None:
        exam["year"] = year
    if session is not None:
        exam["session"] = session
    if exam:
        meta["exam"] = exam
    if subject_code is not None:
        meta["subject"] = {"code": subject_code}
    document: dict[str, Any] = {"questions": list(questions)}
    if meta:
        document["meta"] = meta
    return document


def numbered(count: int, *, start: int = 1, **kwargs: Any) -> list[dict]:
    return [make_question(no, **kwargs) for no in range(start, start + count)]

"""Strict checks over a question tree for authors (``drill validate``).

Unlike the loader, which skips whatever it cannot use, the validator reports
every problem it finds so the tree can be fixed before learners see it.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from rich.console import Console
from rich.table import Table

from ..config import ConfigOverrides, DrillConfigError, load_config
from ..core.logging import configure_logger
from .loader import list_question_files, parse_filename
from .subjects import canonicalize_subject

__all__ = [
    "IssueCode",
    "ValidationIssue",
    "ValidationReport",
    "validate_question_tree",
    "main",
]

_LOGGER = logging.getLogger("exam_drill.bank.validator")


class IssueCode(str, Enum):
    MISSING_ROOT = "MISSING_ROOT"
    INVALID_FILENAME = "INVALID_FILENAME"
    PARSE_FAIL = "PARSE_FAIL"
    META_YEAR_MISMATCH = "META_YEAR_MISMATCH"
    META_SESSION_MISMATCH = "META_SESSION_MISMATCH"
    SUBJECT_UNKNOWN_FILE = "SUBJECT_UNKNOWN_FILE"
    SUBJECT_MISMATCH = "SUBJECT_MISMATCH"
    QUESTIONS_NOT_ARRAY = "QUESTIONS_NOT_ARRAY"
    QUESTION_SHAPE_INVALID = "QUESTION_SHAPE_INVALID"
    ANSWER_NOT_IN_CHOICES = "ANSWER_NOT_IN_CHOICES"


@dataclass(frozen=True)
class ValidationIssue:
    code: IssueCode
    file: str
    detail: Optional[str] = None
    index: Optional[int] = None

    def describe(self) -> str:
        location = self.file
        if self.index is not None:
            location = f"{location} #{self.index}"
        if self.detail:
            return f"[{self.code.value}] {location}: {self.detail}"
        return f"[{self.code.value}] {location}"


@dataclass
class ValidationReport:
    files_checked: int = 0
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def add(
        self,
        code: IssueCode,
        file: str,
        detail: Optional[str] = None,
        *,
        index: Optional[int] = None,
    ) -> None:
        self.issues.append(ValidationIssue(code, file, detail, index))


def validate_question_tree(
    root: Path, *, logger: Optional[logging.Logger] = None
) -> ValidationReport:
    """Check every ``*.json`` file under ``root`` and collect issues."""

    log = logger or _LOGGER
    base = Path(root)
    report = ValidationReport()
    if not base.is_dir():
        report.add(IssueCode.MISSING_ROOT, str(base))
        log.error("Question root is missing", extra={"root": str(base)})
        return report

    for relative in list_question_files(base):
        report.files_checked += 1
        _validate_file(base, relative, report)

    log.info(
        "Validated question tree",
        extra={
            "root": str(base),
            "files": report.files_checked,
            "issues": len(report.issues),
        },
    )
    return report


def _validate_file(
    base: Path, relative: str, report: ValidationReport
) -> None:
    parsed = parse_filename(relative)
    if parsed is None:
        report.add(IssueCode.INVALID_FILENAME, relative)
        return

    payload = _read_json(base / relative)
    if payload is None or payload in (False, 0, ""):
        report.add(IssueCode.PARSE_FAIL, relative)
        return

    document = payload if isinstance(payload, Mapping) else {}
    meta = _mapping(document.get("meta"))
    exam = _mapping(meta.get("exam"))

    meta_year = exam.get("year")
    if meta_year is not None and meta_year != parsed.year:
        report.add(
            IssueCode.META_YEAR_MISMATCH,
            relative,
            f"meta={meta_year} filename={parsed.year}",
        )
    meta_session = exam.get("session")
    if meta_session is not None and meta_session != parsed.session:
        report.add(
            IssueCode.META_SESSION_MISMATCH,
            relative,
            f"meta={meta_session} filename={parsed.session}",
        )

    if parsed.subject is None:
        report.add(IssueCode.SUBJECT_UNKNOWN_FILE, relative)

    subject_meta = _mapping(meta.get("subject"))
    meta_subject = canonicalize_subject(subject_meta.get("code"))
    if meta_subject and parsed.subject and meta_subject != parsed.subject:
        report.add(
            IssueCode.SUBJECT_MISMATCH,
            relative,
            f"meta={meta_subject} filename={parsed.subject}",
        )

    questions = document.get("questions")
    if not isinstance(questions, list):
        report.add(IssueCode.QUESTIONS_NOT_ARRAY, relative)
        return

    for index, entry in enumerate(questions, start=1):
        _validate_question(entry, relative, index, report)


def _validate_question(
    entry: object, relative: str, index: int, report: ValidationReport
) -> None:
    item = _mapping(entry)
    choices = item.get("choices")
    answer = _mapping(item.get("answer")).get("choiceNo")
    if not item.get("question") or not isinstance(choices, list):
        report.add(IssueCode.QUESTION_SHAPE_INVALID, relative, index=index)
        return
    if isinstance(answer, bool) or not isinstance(answer, (int, float)):
        report.add(IssueCode.QUESTION_SHAPE_INVALID, relative, index=index)
        return

    numbers = [_mapping(choice).get("no") for choice in choices]
    if answer not in numbers:
        report.add(IssueCode.ANSWER_NOT_IN_CHOICES, relative, index=index)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError):
        return None


def _mapping(value: object) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drill validate",
        description=(
            "Check every question file for naming, metadata and shape "
            "problems. Exits with status 1 when any issue is found."
        ),
    )
    parser.add_argument(
        "--root",
        type=Path,
        help="Question directory to check (defaults to questions.root).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help=(
            "Path to a TOML config file (defaults to the workspace config "
            "directory)."
        ),
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root used for config and logs.",
    )
    parser.add_argument(
        "--log-level",
        help="Set the logging level for the run (defaults to INFO).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr.",
    )
    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    console: Console | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        load_result = load_config(
            config_path=args.config,
            overrides=ConfigOverrides(
                question_root=args.root, log_level=args.log_level
            ),
            workspace_path=args.workspace,
        )
    except DrillConfigError as exc:
        parser.error(str(exc))

    logger, _ = configure_logger(
        "exam_drill.validate",
        log_dir=load_result.layout.path_for("logs"),
        level=load_result.config.log_level,
        verbose=args.verbose,
    )
    root = load_result.config.question_root
    report = validate_question_tree(root, logger=logger)

    output = console or Console(stderr=not report.ok)
    _print_report(output, report, root)
    return report.exit_code


def _print_report(
    console: Console, report: ValidationReport, root: Path
) -> None:
    if report.ok:
        console.print(
            f"[green]Validation passed:[/] {report.files_checked} file(s) "
            f"under {root}"
        )
        return

    table = Table(title="Question issues", show_lines=False)
    table.add_column("Code", style="red")
    table.add_column("File", overflow="fold")
    table.add_column("#", justify="right")
    table.add_column("Detail", overflow="fold")
    for issue in report.issues:
        table.add_row(
            issue.code.value,
            issue.file,
            str(issue.index) if issue.index is not None else "",
            issue.detail or "",
        )
    console.print(table)
    console.print(
        f"[bold red]Validation failed:[/] {len(report.issues)} issue(s) in "
        f"{report.files_checked} file(s)"
    )


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main(sys.argv[1:]))

"""Command-line entry points for practice, exams and wrong-note review."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from ..bank.loader import load_subject_pool, subject_counts
from ..bank.models import SubjectPool
from ..bank.subjects import SUBJECT_MAP, canonicalize_subject, subject_slugs
from ..config import (
    ConfigOverrides,
    DrillConfig,
    DrillConfigError,
    load_config,
)
from ..core.logging import configure_logger
from ..core.workspace import WorkspaceLayout
from ..quiz.sampler import RenderedQuestion, build_rendered_questions
from ..quiz.session import InputProvider, QuizSessionResult, run_quiz_session
from ..store import ProgressBySubject, ProgressStore, open_storage

__all__ = ["main", "COMMANDS"]

COMMANDS = (
    "subjects",
    "pool",
    "practice",
    "exam",
    "wrong-note",
    "progress",
    "reset",
)

EXIT_UNKNOWN_SUBJECT = 2


@dataclass
class _Context:
    config: DrillConfig
    layout: WorkspaceLayout
    logger: logging.Logger
    store: ProgressStore
    console: Console
    input_provider: InputProvider
    rng: random.Random


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        type=Path,
        help="Question directory (defaults to questions.root).",
    )
    parser.add_argument(
        "--years",
        nargs="+",
        type=int,
        help="Exam years to include, e.g. --years 2024 2025.",
    )
    parser.add_argument(
        "--sessions",
        nargs="+",
        type=int,
        help="Exam sessions to include, e.g. --sessions 1 2 3.",
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
        help="Override the workspace root (config, logs and progress).",
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


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drill",
        description="Practice exam questions one subject at a time.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subjects_parser = subparsers.add_parser(
        "subjects",
        help="List subjects with pool sizes and progress.",
    )
    _add_common_options(subjects_parser)

    pool_parser = subparsers.add_parser(
        "pool",
        help="Show the question pool and warnings for a subject.",
    )
    pool_parser.add_argument("subject", help="Subject slug or alias.")
    pool_parser.add_argument(
        "--list",
        action="store_true",
        help="List every question in the pool.",
    )
    _add_common_options(pool_parser)

    for name, help_text in (
        ("practice", "Answer questions with immediate feedback."),
        ("exam", "Take a mock exam graded on submit."),
    ):
        session_parser = subparsers.add_parser(name, help=help_text)
        session_parser.add_argument("subject", help="Subject slug or alias.")
        session_parser.add_argument(
            "-n",
            "--num",
            type=int,
            help="Number of questions (defaults to quiz.size).",
        )
        _add_common_options(session_parser)

    wrong_parser = subparsers.add_parser(
        "wrong-note",
        help="Review questions you previously missed.",
    )
    wrong_parser.add_argument("subject", help="Subject slug or alias.")
    wrong_parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete every wrong note for the subject instead of reviewing.",
    )
    _add_common_options(wrong_parser)

    progress_parser = subparsers.add_parser(
        "progress",
        help="Show practice and exam counters.",
    )
    progress_parser.add_argument(
        "subject",
        nargs="?",
        help="Limit the report to one subject.",
    )
    _add_common_options(progress_parser)

    reset_parser = subparsers.add_parser(
        "reset",
        help="Delete all wrong notes and progress stored on this device.",
    )
    reset_parser.add_argument(
        "--yes",
        action="store_true",
        help="Skip the confirmation prompt.",
    )
    _add_common_options(reset_parser)
    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    console: Console | None = None,
    input_provider: InputProvider | None = None,
    rng: random.Random | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    num = getattr(args, "num", None)
    if num is not None and num <= 0:
        parser.error("--num must be a positive integer.")

    overrides = ConfigOverrides(
        question_root=args.root,
        years=args.years,
        sessions=args.sessions,
        quiz_size=num,
        log_level=args.log_level,
    )
    try:
        load_result = load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except DrillConfigError as exc:
        parser.error(str(exc))

    logger, _ = configure_logger(
        "exam_drill.trainer",
        log_dir=load_result.layout.path_for("logs"),
        level=load_result.config.log_level,
        verbose=args.verbose,
    )
    logger.debug("drill command invoked", extra={"command": args.command})

    output = console or Console()
    storage = open_storage(load_result.layout.path_for("storage"))
    if storage is None:
        logger.warning(
            "Local storage unavailable",
            extra={"path": str(load_result.layout.path_for("storage"))},
        )
    ctx = _Context(
        config=load_result.config,
        layout=load_result.layout,
        logger=logger,
        store=ProgressStore(storage, logger=logger),
        console=output,
        input_provider=input_provider or _console_input(output),
        rng=rng or random.Random(),
    )

    handlers: dict[str, Callable[[argparse.Namespace, _Context], int]] = {
        "subjects": _handle_subjects,
        "pool": _handle_pool,
        "practice": _handle_practice,
        "exam": _handle_exam,
        "wrong-note": _handle_wrong_note,
        "progress": _handle_progress,
        "reset": _handle_reset,
    }
    return handlers[args.command](args, ctx)


def _console_input(console: Console) -> InputProvider:
    def _provider() -> str:
        return console.input("[bold cyan]>[/] ")

    return _provider


# ----------------------------------------------------------------------
# Handlers
# ----------------------------------------------------------------------
def _handle_subjects(args: argparse.Namespace, ctx: _Context) -> int:
    counts = _counts(ctx)
    table = Table(title="Subjects", box=box.SIMPLE)
    table.add_column("Slug", style="cyan")
    table.add_column("Subject")
    table.add_column("Questions", justify="right")
    table.add_column("Wrong notes", justify="right")
    table.add_column("Practice", justify="right")
    table.add_column("Exams", justify="right")
    for slug in subject_slugs():
        progress = ctx.store.get_progress(slug)
        table.add_row(
            slug,
            SUBJECT_MAP[slug].name,
            str(counts.get(slug, 0)),
            str(len(ctx.store.get_wrong_notes(slug))),
            _practice_cell(progress),
            _exam_cell(progress),
        )
    ctx.console.print(table)
    ctx.console.print(
        f"[dim]Years {_join(ctx.config.years)}, sessions "
        f"{_join(ctx.config.sessions)} from {ctx.config.question_root}[/]"
    )
    _warn_if_unsaved(ctx)
    return 0


def _handle_pool(args: argparse.Namespace, ctx: _Context) -> int:
    slug = _resolve_subject(args.subject, ctx)
    if slug is None:
        return EXIT_UNKNOWN_SUBJECT
    pool = _load_pool(slug, ctx)
    ctx.console.print(
        f"[bold]{SUBJECT_MAP[slug].name}[/]: {len(pool)} question(s)"
    )
    _print_warnings(pool, ctx)
    if args.list and len(pool):
        table = Table(box=box.SIMPLE, expand=True)
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Year", justify="right")
        table.add_column("Session", justify="right")
        table.add_column("No.", justify="right")
        table.add_column("Question", overflow="ellipsis", no_wrap=True)
        for question in pool.questions:
            table.add_row(
                question.id,
                str(question.year),
                str(question.session),
                str(question.no),
                question.question,
            )
        ctx.console.print(table)
    return 0


def _handle_practice(args: argparse.Namespace, ctx: _Context) -> int:
    slug = _resolve_subject(args.subject, ctx)
    if slug is None:
        return EXIT_UNKNOWN_SUBJECT
    pool = _load_pool(slug, ctx)
    _print_warnings(pool, ctx)
    _warn_if_unsaved(ctx)
    questions = build_rendered_questions(
        pool.questions, ctx.config.quiz_size, ctx.rng
    )

    def _on_answer(question: RenderedQuestion, is_correct: bool) -> None:
        ctx.store.record_practice_answer(slug, is_correct)
        if not is_correct:
            ctx.store.add_wrong_note(slug, question.id)

    result = run_quiz_session(
        questions,
        ctx.console,
        ctx.input_provider,
        mode="practice",
        show_explanations=ctx.config.show_explanations,
        on_answer=_on_answer,
    )
    _log_session(ctx, slug, "practice", result)
    return 0


def _handle_exam(args: argparse.Namespace, ctx: _Context) -> int:
    slug = _resolve_subject(args.subject, ctx)
    if slug is None:
        return EXIT_UNKNOWN_SUBJECT
    pool = _load_pool(slug, ctx)
    _print_warnings(pool, ctx)
    _warn_if_unsaved(ctx)
    questions = build_rendered_questions(
        pool.questions, ctx.config.quiz_size, ctx.rng
    )
    result = run_quiz_session(
        questions,
        ctx.console,
        ctx.input_provider,
        mode="exam",
        show_explanations=ctx.config.show_explanations,
    )
    if result.exit_action == "submitted":
        ctx.store.record_exam_attempt(
            slug,
            result.summary.total_questions,
            result.summary.correct_answers,
        )
    _log_session(ctx, slug, "exam", result)
    return 0


def _handle_wrong_note(args: argparse.Namespace, ctx: _Context) -> int:
    slug = _resolve_subject(args.subject, ctx)
    if slug is None:
        return EXIT_UNKNOWN_SUBJECT
    name = SUBJECT_MAP[slug].name

    if args.clear:
        removed = len(ctx.store.get_wrong_notes(slug))
        ctx.store.clear_wrong_notes(slug)
        ctx.logger.info(
            "Cleared wrong notes", extra={"subject": slug, "count": removed}
        )
        ctx.console.print(f"Cleared {removed} wrong note(s) for {name}.")
        return 0

    pool = _load_pool(slug, ctx)
    _print_warnings(pool, ctx)
    _warn_if_unsaved(ctx)
    noted = pool.select(ctx.store.get_wrong_notes(slug))
    if not noted:
        ctx.console.print(f"No wrong notes for {name}.")
        return 0
    questions = build_rendered_questions(noted, len(noted), ctx.rng)

    def _on_answer(question: RenderedQuestion, is_correct: bool) -> None:
        ctx.store.record_practice_answer(slug, is_correct)

    def _on_remove(question: RenderedQuestion) -> None:
        ctx.store.remove_wrong_note(slug, question.id)

    result = run_quiz_session(
        questions,
        ctx.console,
        ctx.input_provider,
        mode="wrong_note",
        show_explanations=ctx.config.show_explanations,
        on_answer=_on_answer,
        on_remove=_on_remove,
    )
    _log_session(ctx, slug, "wrong_note", result)
    return 0


def _handle_progress(args: argparse.Namespace, ctx: _Context) -> int:
    if args.subject is not None:
        slug = _resolve_subject(args.subject, ctx)
        if slug is None:
            return EXIT_UNKNOWN_SUBJECT
        slugs: Sequence[str] = (slug,)
    else:
        slugs = subject_slugs()

    table = Table(title="Progress", box=box.SIMPLE)
    table.add_column("Subject")
    table.add_column("Practice answered", justify="right")
    table.add_column("Practice correct", justify="right")
    table.add_column("Exams", justify="right")
    table.add_column("Exam accuracy", justify="right")
    table.add_column("Wrong notes", justify="right")
    for slug in slugs:
        progress = ctx.store.get_progress(slug)
        table.add_row(
            SUBJECT_MAP[slug].name,
            str(progress.practice_answered),
            str(progress.practice_correct),
            str(progress.exam_attempts),
            _percent(progress.exam_accuracy, progress.exam_questions),
            str(len(ctx.store.get_wrong_notes(slug))),
        )
    ctx.console.print(table)
    _warn_if_unsaved(ctx)
    return 0


def _handle_reset(args: argparse.Namespace, ctx: _Context) -> int:
    if not args.yes:
        confirmed = Confirm.ask(
            "Delete all wrong notes and progress on this device?",
            console=ctx.console,
            default=False,
        )
        if not confirmed:
            ctx.console.print("Nothing was deleted.")
            return 0
    ctx.store.clear_all()
    ctx.logger.info("Cleared all local data")
    ctx.console.print("All local wrong notes and progress were deleted.")
    return 0


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _resolve_subject(raw: str, ctx: _Context) -> Optional[str]:
    slug = canonicalize_subject(raw)
    if slug is None:
        ctx.console.print(
            f"[red]Subject not found: '{raw}'.[/] "
            f"Choose one of: {', '.join(subject_slugs())}."
        )
    return slug


def _load_pool(slug: str, ctx: _Context) -> SubjectPool:
    return load_subject_pool(
        slug,
        ctx.config.years,
        ctx.config.sessions,
        root=ctx.config.question_root,
        min_pool_size=ctx.config.min_pool_size,
        logger=ctx.logger,
    )


def _counts(ctx: _Context) -> dict[str, int]:
    return subject_counts(
        root=ctx.config.question_root,
        years=ctx.config.years,
        sessions=ctx.config.sessions,
        logger=ctx.logger,
    )


def _print_warnings(pool: SubjectPool, ctx: _Context) -> None:
    if not pool.warnings:
        return
    ctx.console.print(
        Panel(
            "\n".join(warning.message for warning in pool.warnings),
            title="Warnings",
            border_style="yellow",
        )
    )


def _warn_if_unsaved(ctx: _Context) -> None:
    if not ctx.store.available:
        ctx.console.print(
            "[yellow]Local storage is unavailable; progress will not be "
            "saved.[/]"
        )


def _log_session(
    ctx: _Context, slug: str, mode: str, result: QuizSessionResult
) -> None:
    ctx.logger.info(
        "Session finished",
        extra={
            "subject": slug,
            "mode": mode,
            "exit_action": result.exit_action,
            "total": result.summary.total_questions,
            "answered": result.summary.answered_questions,
            "correct": result.summary.correct_answers,
        },
    )


def _practice_cell(progress: ProgressBySubject) -> str:
    if not progress.practice_answered:
        return "-"
    return (
        f"{progress.practice_correct}/{progress.practice_answered} "
        f"({progress.practice_accuracy * 100:.0f}%)"
    )


def _exam_cell(progress: ProgressBySubject) -> str:
    if not progress.exam_attempts:
        return "-"
    return (
        f"{progress.exam_attempts} "
        f"({_percent(progress.exam_accuracy, progress.exam_questions)})"
    )


def _percent(ratio: float, denominator: int) -> str:
    if not denominator:
        return "-"
    return f"{ratio * 100:.0f}%"


def _join(values: Sequence[int]) -> str:
    return ", ".join(str(value) for value in values)


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    sys.exit(main())

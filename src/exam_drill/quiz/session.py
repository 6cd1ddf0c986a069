"""Rich-powered quiz session controller and supporting data structures.

The loop renders one :class:`RenderedQuestion` at a time, reads commands from
an injectable input provider and returns a :class:`QuizSessionResult`. Three
modes share the loop:

* ``practice``: the first answer to a question is final and is graded on the
  spot.
* ``exam``: answers may change freely until the learner submits; grading
  happens once, in the summary.
* ``wrong_note``: graded like practice, and ``d`` drops the current question
  from the learner's wrong notes.

Persistence is left to the caller through the ``on_answer`` and ``on_remove``
callbacks so the loop itself stays free of storage concerns.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .sampler import RenderedQuestion

InputProvider = Callable[[], str]
AnswerCallback = Callable[[RenderedQuestion, bool], None]
RemoveCallback = Callable[[RenderedQuestion], None]
ExitAction = Literal["submitted", "quit", "empty"]
SessionMode = Literal["practice", "exam", "wrong_note"]

SESSION_MODES: tuple[str, ...] = ("practice", "exam", "wrong_note")

_TITLES = {
    "practice": "Practice",
    "exam": "Mock Exam",
    "wrong_note": "Wrong Notes",
}


@dataclass(frozen=True)
class QuestionResponse:
    """The learner's final answer to one question."""

    question_id: str
    prompt: str
    selected: int | None
    selected_position: int | None
    selected_text: str | None
    answer: int
    answer_position: int | None
    answer_text: str | None
    is_correct: bool
    explanation: str | None = None


@dataclass(frozen=True)
class QuizSummary:
    """Overall session summary derived from question responses."""

    total_questions: int
    correct_answers: int
    accuracy: float
    answered_questions: int

    @property
    def score(self) -> int:
        """Score out of 100, rounded to the nearest integer."""

        if self.total_questions == 0:
            return 0
        return round(self.correct_answers / self.total_questions * 100)


@dataclass(frozen=True)
class QuizSessionResult:
    """Return value from ``run_quiz_session``."""

    responses: list[QuestionResponse]
    summary: QuizSummary
    exit_action: ExitAction
    removed: tuple[str, ...] = ()


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: Literal["next", "prev", "submit", "quit", "select", "delete"]
    position: int | None = None


@dataclass
class QuizSessionState:
    """Mutable session state shared by the Rich UI loop."""

    questions: list[RenderedQuestion]
    mode: SessionMode = "practice"
    show_explanations: bool = True
    index: int = 0
    selections: dict[str, int] = field(default_factory=dict)
    removed: list[str] = field(default_factory=list)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> RenderedQuestion:
        return self.questions[self.index]

    @property
    def answers_are_final(self) -> bool:
        return self.mode != "exam"

    def answered_count(self) -> int:
        return len(self.selections)

    def is_locked(self, question: RenderedQuestion | None = None) -> bool:
        target = question or self.current
        return self.answers_are_final and target.id in self.selections

    def select(self, position: int) -> bool:
        question = self.current
        choice = question.choice_at(position)
        if choice is None or self.is_locked(question):
            return False
        self.selections[question.id] = choice.original_no
        return True

    def next(self) -> None:
        if self.index + 1 < self.total_questions:
            self.index += 1

    def previous(self) -> None:
        if self.index > 0:
            self.index -= 1

    def selected_for(
        self, question: RenderedQuestion | None = None
    ) -> int | None:
        target = question or self.current
        return self.selections.get(target.id)

    def mark_removed(self, question: RenderedQuestion | None = None) -> bool:
        target = question or self.current
        if target.id in self.removed:
            return False
        self.removed.append(target.id)
        return True


def parse_session_command(raw: str | None) -> SessionCommand | None:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"n", "next"}:
        return SessionCommand("next")
    if lowered in {"p", "prev", "previous"}:
        return SessionCommand("prev")
    if lowered in {"submit", "s"}:
        return SessionCommand("submit")
    if lowered in {"quit", "q", "exit"}:
        return SessionCommand("quit")
    if lowered in {"d", "delete", "remove"}:
        return SessionCommand("delete")
    if text.isdigit():
        return SessionCommand("select", int(text))
    return None


def run_quiz_session(
    questions: Sequence[RenderedQuestion],
    console: Console,
    input_provider: InputProvider,
    *,
    mode: SessionMode = "practice",
    show_explanations: bool = True,
    on_answer: AnswerCallback | None = None,
    on_remove: RemoveCallback | None = None,
) -> QuizSessionResult:
    """Run an interactive quiz session using Rich-rendered prompts."""

    if mode not in SESSION_MODES:
        raise ValueError(f"Unknown session mode: {mode!r}")
    state = QuizSessionState(
        list(questions), mode=mode, show_explanations=show_explanations
    )

    if not state.questions:
        console.print(
            Panel(
                "No questions to show.",
                title=_TITLES[mode],
                border_style="yellow",
            )
        )
        summary = QuizSummary(
            total_questions=0,
            correct_answers=0,
            accuracy=0.0,
            answered_questions=0,
        )
        return QuizSessionResult([], summary, "empty")

    exit_action: ExitAction = "quit"
    while True:
        _render_question(console, state)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            exit_action = "quit"
            break
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        exit_candidate = _apply_command(
            command,
            state,
            console,
            on_answer=on_answer,
            on_remove=on_remove,
        )
        if exit_candidate:
            exit_action = exit_candidate
            break

    responses, summary = _build_responses_and_summary(state)
    result = QuizSessionResult(
        responses, summary, exit_action, removed=tuple(state.removed)
    )

    if exit_action == "submitted":
        _render_summary(
            console, result, mode=mode, show_explanations=show_explanations
        )

    return result


def _apply_command(
    command: SessionCommand,
    state: QuizSessionState,
    console: Console,
    *,
    on_answer: AnswerCallback | None = None,
    on_remove: RemoveCallback | None = None,
) -> ExitAction | None:
    if command.type == "select" and command.position is not None:
        question = state.current
        if state.is_locked(question):
            console.print(
                "[yellow]This question has already been answered.[/]"
            )
            return None
        if not state.select(command.position):
            console.print(
                "[red]'%s' is not a valid choice for this question.[/red]"
                % command.position,
            )
            return None
        if state.answers_are_final:
            is_correct = question.is_correct(state.selected_for(question))
            _render_feedback(console, state, question, is_correct)
            if on_answer is not None:
                on_answer(question, is_correct)
        else:
            console.print(f"Selected [bold]{command.position}[/].")
        return None
    if command.type == "delete":
        if state.mode != "wrong_note":
            console.print(
                "[red]Removing questions only works in wrong-note review.[/]"
            )
            return None
        question = state.current
        if not state.mark_removed(question):
            console.print("[yellow]Already removed from wrong notes.[/]")
            return None
        if on_remove is not None:
            on_remove(question)
        console.print("[green]Removed from wrong notes.[/]")
        return None
    if command.type == "next":
        state.next()
        return None
    if command.type == "prev":
        state.previous()
        return None
    if command.type == "quit":
        console.print("\n[bold yellow]Ending session without submission.[/]")
        return "quit"
    if command.type == "submit":
        return "submitted"
    return None


def _render_feedback(
    console: Console,
    state: QuizSessionState,
    question: RenderedQuestion,
    is_correct: bool,
) -> None:
    if is_correct:
        console.print("[bold green]Correct.[/]")
    else:
        position = question.position_of(question.correct_choice_no)
        answer = question.choice_for(question.correct_choice_no)
        if position is not None and answer is not None:
            console.print(
                f"[bold red]Incorrect.[/] The answer is {position}) "
                f"{answer.text}"
            )
        else:
            console.print(
                "[bold red]Incorrect.[/] The recorded answer is not one of "
                "the listed choices."
            )
    if state.show_explanations:
        console.print(
            Panel(
                question.explanation,
                title="Explanation",
                border_style="green" if is_correct else "red",
            )
        )


def _render_question(console: Console, state: QuizSessionState) -> None:
    question = state.current
    header = Text.assemble(
        (f"Question {state.index + 1}", "bold cyan"),
        (f" / {state.total_questions}", "dim"),
        (
            f"  {question.year} session {question.session}, "
            f"No. {question.no}",
            "dim",
        ),
    )
    console.print()
    console.rule(header)
    if question.id in state.removed:
        console.print(Text("(removed from wrong notes)", style="dim"))
    console.print(Text(question.prompt, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("#", justify="center", style="cyan")
    table.add_column("Choice")

    selected = state.selected_for(question)
    reveal = state.is_locked(question)
    for position, choice in enumerate(question.choices, start=1):
        chosen = choice.original_no == selected
        indicator = "•" if chosen else " "
        choice_text = (
            Text(choice.text) if choice.text else Text("", style="dim")
        )
        if reveal and choice.original_no == question.correct_choice_no:
            choice_text.stylize("bold green")
        elif reveal and chosen:
            choice_text.stylize("bold red")
        elif chosen:
            choice_text.stylize("bold green")
        row_text = Text(indicator + " ")
        row_text += choice_text
        table.add_row(str(position), row_text)

    console.print(table)
    commands = [
        f"choices [1-{len(question.choices)}]",
        "n (next)",
        "p (prev)",
        "s (submit)",
        "q (quit)",
    ]
    if state.mode == "wrong_note":
        commands.append("d (remove note)")
    console.print(
        Text(
            f"Answered {state.answered_count()}/{state.total_questions} | "
            f"Commands: {', '.join(commands)}",
            style="dim",
        )
    )


def _build_responses_and_summary(
    state: QuizSessionState,
) -> tuple[list[QuestionResponse], QuizSummary]:
    responses: list[QuestionResponse] = []
    for question in state.questions:
        selected = state.selected_for(question)
        chosen = question.choice_for(selected)
        answer = question.choice_for(question.correct_choice_no)
        responses.append(
            QuestionResponse(
                question_id=question.id,
                prompt=question.prompt,
                selected=selected,
                selected_position=question.position_of(selected),
                selected_text=chosen.text if chosen else None,
                answer=question.correct_choice_no,
                answer_position=question.position_of(
                    question.correct_choice_no
                ),
                answer_text=answer.text if answer else None,
                is_correct=question.is_correct(selected),
                explanation=(
                    question.explanation if state.show_explanations else None
                ),
            )
        )

    total = len(responses)
    correct = sum(1 for response in responses if response.is_correct)
    summary = QuizSummary(
        total_questions=total,
        correct_answers=correct,
        accuracy=(correct / total) if total else 0.0,
        answered_questions=sum(
            1 for response in responses if response.selected is not None
        ),
    )
    return responses, summary


def _render_summary(
    console: Console,
    result: QuizSessionResult,
    *,
    mode: SessionMode,
    show_explanations: bool,
) -> None:
    console.print()
    console.rule(Text(f"{_TITLES[mode]} Summary", style="bold magenta"))

    summary = result.summary
    overview = Table(
        show_header=False,
        box=box.MINIMAL_DOUBLE_HEAD,
        expand=False,
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Total questions", str(summary.total_questions))
    overview.add_row("Answered", str(summary.answered_questions))
    overview.add_row("Correct", str(summary.correct_answers))
    overview.add_row("Score", f"{summary.score} / 100")
    console.print(overview)

    response_table = Table(title="Responses", box=box.SIMPLE, expand=True)
    response_table.add_column("#", justify="right")
    response_table.add_column("Question", overflow="fold")
    response_table.add_column("Your answer")
    response_table.add_column("Correct answer")
    response_table.add_column("Result", justify="center")

    for idx, response in enumerate(result.responses, start=1):
        your = (
            str(response.selected_position)
            if response.selected_position is not None
            else "-"
        )
        correct = (
            str(response.answer_position)
            if response.answer_position is not None
            else "-"
        )
        outcome = "✅" if response.is_correct else "❌"
        response_table.add_row(
            str(idx),
            response.prompt or f"Question {idx}",
            your,
            correct,
            outcome,
        )
    console.print(response_table)

    if show_explanations:
        for response in result.responses:
            if not response.explanation:
                continue
            border = "green" if response.is_correct else "red"
            console.print(
                Panel(
                    response.explanation,
                    title=f"Explanation: {response.question_id}",
                    border_style=border,
                )
            )

"""Quiz assembly and the interactive Rich session loop."""

from __future__ import annotations

from .sampler import (
    DEFAULT_QUIZ_SIZE,
    RenderedChoice,
    RenderedQuestion,
    build_rendered_questions,
    render_question,
    sample_without_replacement,
    shuffle,
)
from .session import (
    SESSION_MODES,
    QuestionResponse,
    QuizSessionResult,
    QuizSessionState,
    QuizSummary,
    SessionCommand,
    parse_session_command,
    run_quiz_session,
)

__all__ = [
    "DEFAULT_QUIZ_SIZE",
    "RenderedChoice",
    "RenderedQuestion",
    "build_rendered_questions",
    "render_question",
    "sample_without_replacement",
    "shuffle",
    "SESSION_MODES",
    "QuestionResponse",
    "QuizSessionResult",
    "QuizSessionState",
    "QuizSummary",
    "SessionCommand",
    "parse_session_command",
    "run_quiz_session",
]

"""Random quiz assembly from a subject pool.

Questions are drawn without replacement and each question's choices are
shuffled independently. Rendered choices keep the ordinal they were authored
with so a selection can be graded against ``correct_choice_no`` regardless of
where the choice ended up on screen.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

from ..bank.models import NormalizedQuestion

__all__ = [
    "DEFAULT_QUIZ_SIZE",
    "RenderedChoice",
    "RenderedQuestion",
    "shuffle",
    "sample_without_replacement",
    "render_question",
    "build_rendered_questions",
]

DEFAULT_QUIZ_SIZE = 20

T = TypeVar("T")


@dataclass(frozen=True)
class RenderedChoice:
    id: str
    original_no: int
    text: str


@dataclass(frozen=True)
class RenderedQuestion:
    """A question as shown in one quiz, with choices in display order."""

    id: str
    prompt: str
    explanation: str
    correct_choice_no: int
    choices: tuple[RenderedChoice, ...]
    year: int
    session: int
    no: int
    topic: Optional[str] = None

    def is_correct(self, original_no: Optional[int]) -> bool:
        if original_no is None:
            return False
        return original_no == self.correct_choice_no

    def choice_at(self, position: int) -> Optional[RenderedChoice]:
        """Return the choice shown at 1-based ``position``."""

        if 1 <= position <= len(self.choices):
            return self.choices[position - 1]
        return None

    def choice_for(
        self, original_no: Optional[int]
    ) -> Optional[RenderedChoice]:
        for choice in self.choices:
            if choice.original_no == original_no:
                return choice
        return None

    def position_of(self, original_no: Optional[int]) -> Optional[int]:
        for position, choice in enumerate(self.choices, start=1):
            if choice.original_no == original_no:
                return position
        return None


def shuffle(
    items: Sequence[T], rng: Optional[random.Random] = None
) -> List[T]:
    """Return a uniformly shuffled copy of ``items`` (Fisher-Yates)."""

    generator = rng or random.Random()
    copied = list(items)
    for i in range(len(copied) - 1, 0, -1):
        j = generator.randrange(i + 1)
        copied[i], copied[j] = copied[j], copied[i]
    return copied


def sample_without_replacement(
    items: Sequence[T],
    count: int,
    rng: Optional[random.Random] = None,
) -> List[T]:
    """Draw ``count`` distinct items in random order.

    Asking for at least as many items as exist returns a full shuffle.
    """
    if count <= 0:
        return []
    shuffled = shuffle(items, rng)
    if count >= len(shuffled):
        return shuffled
    return shuffled[:count]


def render_question(
    question: NormalizedQuestion, rng: Optional[random.Random] = None
) -> RenderedQuestion:
    return RenderedQuestion(
        id=question.id,
        prompt=question.question,
        explanation=question.explanation,
        correct_choice_no=question.correct_choice_no,
        choices=tuple(
            RenderedChoice(
                id=f"{question.id}-{choice.no}",
                original_no=choice.no,
                text=choice.text,
            )
            for choice in shuffle(question.choices, rng)
        ),
        year=question.year,
        session=question.session,
        no=question.no,
        topic=question.topic,
    )


def build_rendered_questions(
    pool: Sequence[NormalizedQuestion],
    count: int = DEFAULT_QUIZ_SIZE,
    rng: Optional[random.Random] = None,
) -> List[RenderedQuestion]:
    """Sample up to ``count`` questions and shuffle each one's choices."""

    generator = rng or random.Random()
    return [
        render_question(question, generator)
        for question in sample_without_replacement(pool, count, generator)
    ]

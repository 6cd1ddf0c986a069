from __future__ import annotations

import random
from collections import Counter

from exam_drill.bank.models import Choice, NormalizedQuestion
from exam_drill.quiz import sampler


def _question(no: int, *, choices: int = 4, answer: int = 2):
    return NormalizedQuestion(
        id=f"sw_design-2024-1-{no}",
        source_file="24-1-sw_design.json",
        subject="sw_design",
        year=2024,
        session=1,
        no=no,
        question=f"Question {no}",
        choices=tuple(
            Choice(no=idx, text=f"Choice {idx}")
            for idx in range(1, choices + 1)
        ),
        correct_choice_no=answer,
    )


def test_shuffle_returns_permutation_without_mutating_input():
    items = list(range(10))

    result = sampler.shuffle(items, random.Random(3))

    assert sorted(result) == items
    assert items == list(range(10))
    assert result is not items


def test_shuffle_is_deterministic_for_seeded_generators():
    first = sampler.shuffle(range(20), random.Random(42))
    second = sampler.shuffle(range(20), random.Random(42))

    assert first == second


def test_shuffle_visits_every_ordering():
    rng = random.Random(7)

    seen = Counter(tuple(sampler.shuffle("abc", rng)) for _ in range(600))

    assert len(seen) == 6


def test_sample_without_replacement_is_distinct():
    items = list(range(30))

    result = sampler.sample_without_replacement(items, 20, random.Random(1))

    assert len(result) == 20
    assert len(set(result)) == 20
    assert set(result) <= set(items)


def test_sample_without_replacement_large_count_returns_everything():
    items = list(range(5))

    result = sampler.sample_without_replacement(items, 20, random.Random(1))

    assert sorted(result) == items


def test_sample_without_replacement_non_positive_count():
    assert sampler.sample_without_replacement([1, 2, 3], 0) == []
    assert sampler.sample_without_replacement([1, 2, 3], -4) == []


def test_build_rendered_questions_keeps_original_numbers():
    pool = [_question(no, answer=3) for no in range(1, 26)]

    rendered = sampler.build_rendered_questions(pool, 20, random.Random(5))

    assert len(rendered) == 20
    assert len({q.id for q in rendered}) == 20
    for question in rendered:
        assert sorted(c.original_no for c in question.choices) == [1, 2, 3, 4]
        assert {c.id for c in question.choices} == {
            f"{question.id}-{n}" for n in range(1, 5)
        }
        for choice in question.choices:
            assert choice.text == f"Choice {choice.original_no}"
        assert question.is_correct(3)
        assert not question.is_correct(1)
        assert not question.is_correct(None)


def test_rendered_question_position_helpers():
    rendered = sampler.render_question(_question(1), random.Random(9))

    for position, choice in enumerate(rendered.choices, start=1):
        assert rendered.choice_at(position) == choice
        assert rendered.position_of(choice.original_no) == position
        assert rendered.choice_for(choice.original_no) == choice
    assert rendered.choice_at(0) is None
    assert rendered.choice_at(5) is None
    assert rendered.position_of(99) is None


def test_build_rendered_questions_empty_pool():
    assert sampler.build_rendered_questions([], 20) == []

from __future__ import annotations

import pytest

from exam_drill.bank import subjects


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("sw_design", "sw_design"),
        ("SW_DEV", "sw_engineering"),
        ("sw_dev", "sw_engineering"),
        ("db_build", "db_engineering"),
        ("IS_MGMT", "is_management"),
        ("pl_use", "language_application"),
        ("Language_Application", "language_application"),
    ],
)
def test_canonicalize_subject_resolves_aliases(value, expected):
    assert subjects.canonicalize_subject(value) == expected


@pytest.mark.parametrize(
    "value", [None, "", "history", 42, " sw_design ", "sw-design"]
)
def test_canonicalize_subject_returns_none_for_unknown(value):
    assert subjects.canonicalize_subject(value) is None


def test_every_alias_maps_back_to_its_subject():
    for meta in subjects.SUBJECTS:
        assert subjects.canonicalize_subject(meta.slug) == meta.slug
        for alias in meta.aliases:
            assert subjects.canonicalize_subject(alias) == meta.slug


def test_subject_slugs_follow_registry_order():
    assert subjects.subject_slugs() == (
        "sw_design",
        "sw_engineering",
        "db_engineering",
        "is_management",
        "language_application",
    )


def test_get_subject_rejects_unknown_slug():
    assert subjects.get_subject("sw_design").name == "Software Design"
    with pytest.raises(KeyError):
        subjects.get_subject("sw_dev")

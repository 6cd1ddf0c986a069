"""Canonical exam subjects and their accepted aliases."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

__all__ = [
    "SubjectMeta",
    "SUBJECTS",
    "SUBJECT_MAP",
    "canonicalize_subject",
    "get_subject",
    "subject_slugs",
]


@dataclass(frozen=True)
class SubjectMeta:
    """Display metadata for one canonical subject."""

    slug: str
    name: str
    aliases: tuple[str, ...]


SUBJECTS: tuple[SubjectMeta, ...] = (
    SubjectMeta(
        slug="sw_design",
        name="Software Design",
        aliases=("SW_DESIGN", "sw_design"),
    ),
    SubjectMeta(
        slug="sw_engineering",
        name="Software Development",
        aliases=("SW_ENGINEERING", "SW_DEV", "sw_engineering", "sw_dev"),
    ),
    SubjectMeta(
        slug="db_engineering",
        name="Database Construction",
        aliases=("DB_ENGINEERING", "DB_BUILD", "db_engineering", "db_build"),
    ),
    SubjectMeta(
        slug="is_management",
        name="Information Systems Management",
        aliases=("IS_MANAGEMENT", "IS_MGMT", "is_management", "is_mgmt"),
    ),
    SubjectMeta(
        slug="language_application",
        name="Programming Language Application",
        aliases=(
            "LANGUAGE_APPLICATION",
            "PL_USE",
            "language_application",
            "pl_use",
        ),
    ),
)

SUBJECT_MAP: Mapping[str, SubjectMeta] = MappingProxyType(
    {subject.slug: subject for subject in SUBJECTS}
)


def _build_alias_table() -> Mapping[str, str]:
    table: dict[str, str] = {}
    for subject in SUBJECTS:
        table[subject.slug.lower()] = subject.slug
        for alias in subject.aliases:
            table[alias.lower()] = subject.slug
    return MappingProxyType(table)


_ALIASES = _build_alias_table()


def canonicalize_subject(value: Optional[str]) -> Optional[str]:
    """Return the canonical slug for ``value`` or ``None`` when unknown."""

    if not value or not isinstance(value, str):
        return None
    return _ALIASES.get(value.lower())


def get_subject(slug: str) -> SubjectMeta:
    try:
        return SUBJECT_MAP[slug]
    except KeyError as exc:
        raise KeyError(f"Unknown subject '{slug}'.") from exc


def subject_slugs() -> tuple[str, ...]:
    return tuple(subject.slug for subject in SUBJECTS)

"""Question bank: subject registry, data model and loader."""

from __future__ import annotations

from .loader import (
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_SESSIONS,
    DEFAULT_YEARS,
    expand_year,
    list_question_files,
    load_subject_pool,
    parse_filename,
    subject_counts,
)
from .models import (
    Choice,
    NormalizedQuestion,
    PoolWarning,
    SubjectPool,
    WarningKind,
)
from .subjects import (
    SUBJECTS,
    SubjectMeta,
    canonicalize_subject,
    get_subject,
    subject_slugs,
)

__all__ = [
    "DEFAULT_MIN_POOL_SIZE",
    "DEFAULT_SESSIONS",
    "DEFAULT_YEARS",
    "expand_year",
    "list_question_files",
    "load_subject_pool",
    "parse_filename",
    "subject_counts",
    "Choice",
    "NormalizedQuestion",
    "PoolWarning",
    "SubjectPool",
    "WarningKind",
    "SUBJECTS",
    "SubjectMeta",
    "canonicalize_subject",
    "get_subject",
    "subject_slugs",
]

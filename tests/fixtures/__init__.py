"""Shared testing fixtures for the exam_drill test suite."""

from .questions import make_document, make_question, numbered  # noqa: F401
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "WorkspaceBuilder",
    "build_tree",
    "make_document",
    "make_question",
    "numbered",
]

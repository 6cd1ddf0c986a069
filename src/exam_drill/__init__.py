"""Local exam-question drill: practice, mock exams and wrong-note review."""

__all__ = ["__version__"]

__version__ = "0.1.0"

"""Interactive practice, mock exams and wrong-note review."""

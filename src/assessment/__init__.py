"""Assessment and grading engine for quiz-based courses."""

__version__ = "0.1.0"

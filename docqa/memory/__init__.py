"""Session memory: question history for the active session."""
from docqa.memory.history import QuestionHistory

__all__ = ["QuestionHistory"]

"""Question history for the current session.

Keeps the most recent distinct questions, newest first. History entries
reference documents by id only and outlive the documents they were asked
against.
"""
from typing import List, Optional

import structlog

from docqa import config
from docqa.models import Query

logger = structlog.get_logger()


class QuestionHistory:
    """Bounded, de-duplicated list of asked questions."""

    def __init__(self, max_size: int = None):
        """Initialize the question history.

        Args:
            max_size: Number of questions to keep (default from config, 0 keeps none)
        """
        self.max_size = config.HISTORY_SIZE if max_size is None else max_size
        if self.max_size < 0:
            raise ValueError(f"max_size cannot be negative, got {self.max_size}")
        self._queries: List[Query] = []

    def __len__(self) -> int:
        return len(self._queries)

    def add(self, query: Query) -> bool:
        """Record a question unless the same text is already in the history.

        Args:
            query: The asked question

        Returns:
            True if the question was added, False if it was a duplicate or
            the history keeps nothing
        """
        if self.max_size == 0:
            return False
        if self.find(query.text) is not None:
            logger.debug("question_history_duplicate", query_id=query.id)
            return False

        self._queries = ([query] + self._queries)[: self.max_size]
        logger.info(
            "question_history_added",
            query_id=query.id,
            document_id=query.document_id,
            size=len(self._queries),
        )
        return True

    def find(self, text: str) -> Optional[Query]:
        """Return the stored question with exactly this text, if any."""
        for query in self._queries:
            if query.text == text:
                return query
        return None

    def list(self) -> List[Query]:
        """List questions, most recent first."""
        return list(self._queries)

    def clear(self) -> None:
        self._queries = []

"""In-memory chunk store keyed by document id."""
from typing import Dict, List

import structlog

from docqa.models import TextChunk

logger = structlog.get_logger()


class ChunkStore:
    """Holds each document's chunks and embeddings for the session.

    A document's chunks are written once; replacing them requires removing
    the document first.
    """

    def __init__(self):
        self._chunks: Dict[str, List[TextChunk]] = {}

    def __contains__(self, document_id: str) -> bool:
        return document_id in self._chunks

    def __len__(self) -> int:
        return len(self._chunks)

    def put(self, document_id: str, chunks: List[TextChunk]) -> None:
        """Store the chunks of a new document.

        Raises:
            ValueError: If chunks are already stored for this document
        """
        if document_id in self._chunks:
            raise ValueError(f"Chunks already stored for document {document_id}")

        self._chunks[document_id] = list(chunks)
        logger.info(
            "chunks_stored",
            document_id=document_id,
            chunk_count=len(chunks),
            embedded=sum(1 for c in chunks if c.embedding is not None),
        )

    def get(self, document_id: str) -> List[TextChunk]:
        """Return a document's chunks, or an empty list if unknown."""
        return list(self._chunks.get(document_id, []))

    def remove(self, document_id: str) -> bool:
        removed = self._chunks.pop(document_id, None) is not None
        if removed:
            logger.info("chunks_removed", document_id=document_id)
        return removed

    def get_stats(self) -> dict:
        chunk_count = sum(len(c) for c in self._chunks.values())
        embedded = sum(
            1 for chunks in self._chunks.values() for c in chunks if c.embedding is not None
        )
        return {
            "document_count": len(self._chunks),
            "chunk_count": chunk_count,
            "embedding_count": embedded,
        }

"""Retriever for semantic search over a document's chunks.

Handles:
- Query embedding generation
- Chunk lookup in the chunk store
- Similarity ranking
"""
from typing import List, Optional

import structlog

from docqa import config
from docqa.errors import EmbeddingChunkFailed, EmptyCorpus
from docqa.models import ScoredChunk
from docqa.rag.embeddings import EmbeddingService
from docqa.rag.ranker import rank_chunks
from docqa.rag.store import ChunkStore

logger = structlog.get_logger()


class Retriever:
    """Semantic retriever for RAG pipeline."""

    def __init__(
        self,
        store: ChunkStore,
        embedding_service: EmbeddingService,
        top_k: int = None,
    ):
        """Initialize the retriever.

        Args:
            store: Chunk store holding embedded chunks
            embedding_service: Service used to embed the question
            top_k: Number of results to retrieve (default from config)
        """
        self.store = store
        self.embedding_service = embedding_service
        self.top_k = config.RETRIEVAL_TOP_K if top_k is None else top_k

    async def retrieve(
        self,
        question: str,
        document_id: str,
        top_k: Optional[int] = None,
    ) -> List[ScoredChunk]:
        """Find the chunks most relevant to a question.

        Args:
            question: User question text
            document_id: Document to search
            top_k: Number of results to return (overrides default)

        Returns:
            List of ScoredChunk objects, best first. Empty if no chunk has an
            embedding.

        Raises:
            EmptyCorpus: If the document has no chunks
            EmbeddingModelLoadFailed: If the embedding model cannot be loaded
            EmbeddingChunkFailed: If the question cannot be embedded
            ValueError: If top_k is less than 1
        """
        if top_k is None:
            top_k = self.top_k
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")

        chunks = self.store.get(document_id)

        if not chunks:
            logger.warning("retrieval_empty_corpus", document_id=document_id)
            raise EmptyCorpus("No chunks found for document")

        logger.info(
            "retrieval_started",
            document_id=document_id,
            query_length=len(question),
            top_k=top_k,
        )

        query_embedding = await self.embedding_service.embed_query(question)
        if query_embedding is None:
            raise EmbeddingChunkFailed("Failed to generate embedding for question")

        results = rank_chunks(query_embedding, chunks, top_k=top_k)

        if not results:
            logger.info("no_relevant_context_found", document_id=document_id)

        logger.info(
            "retrieval_completed",
            document_id=document_id,
            results_returned=len(results),
            top_score=results[0].score if results else None,
        )

        return results

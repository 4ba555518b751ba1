"""Ingest pipeline for turning an uploaded file into a searchable document.

Orchestrates:
- Text extraction
- Text chunking
- Embedding generation
- Chunk storage
"""
from typing import Optional

import structlog

from docqa.models import Document, DocumentFile, new_id
from docqa.rag.chunker import TextChunker
from docqa.rag.embeddings import EmbeddingService, ProgressCallback
from docqa.rag.extractor import TextExtractor
from docqa.rag.store import ChunkStore

logger = structlog.get_logger()


class IngestPipeline:
    """Pipeline for ingesting one document into the chunk store."""

    def __init__(
        self,
        store: ChunkStore,
        embedding_service: EmbeddingService,
        extractor: Optional[TextExtractor] = None,
    ):
        """Initialize the ingest pipeline.

        Args:
            store: Chunk store the finished chunks are written to
            embedding_service: Service used to embed chunks
            extractor: Text extractor (a default one is created if not provided)
        """
        self.store = store
        self.embedding_service = embedding_service
        self.extractor = extractor or TextExtractor()

        self.stats = {
            "documents_processed": 0,
            "documents_failed": 0,
            "chunks_created": 0,
            "embeddings_generated": 0,
        }

    async def ingest(
        self,
        file: DocumentFile,
        chunk_size: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Document:
        """Extract, chunk, embed and store a document.

        Nothing is stored unless every fatal step succeeds.

        Args:
            file: The document to ingest
            chunk_size: Chunk size in characters (default from config)
            progress_callback: Optional callback(done, total) during embedding

        Returns:
            The created Document

        Raises:
            UnsupportedFormat: If the media type is not supported
            ExtractionFailed: If the text cannot be extracted
            EmbeddingModelLoadFailed: If the embedding model cannot be loaded
        """
        logger.info("ingesting_document", name=file.name, size=file.size)

        try:
            extracted = await self.extractor.extract(file)

            chunker = TextChunker(chunk_size=chunk_size)
            chunks = chunker.chunk_text(extracted.text, extracted.page_count)

            if not chunks:
                logger.warning("no_chunks_created", name=file.name)

            embedded = await self.embedding_service.embed(chunks, progress_callback)
        except Exception:
            self.stats["documents_failed"] += 1
            raise

        document_id = new_id()
        final_chunks = [
            chunk.model_copy(update={"id": new_id(), "document_id": document_id})
            for chunk in embedded
        ]
        self.store.put(document_id, final_chunks)

        embedding_count = sum(1 for c in final_chunks if c.embedding is not None)
        document = Document(
            id=document_id,
            name=file.name,
            size=file.size,
            type=file.media_type,
            page_count=extracted.page_count,
            word_count=extracted.word_count,
            chunk_count=len(final_chunks),
            embedding_count=embedding_count,
        )

        self.stats["documents_processed"] += 1
        self.stats["chunks_created"] += len(final_chunks)
        self.stats["embeddings_generated"] += embedding_count

        logger.info(
            "document_ingested",
            document_id=document_id,
            name=file.name,
            page_count=document.page_count,
            word_count=document.word_count,
            **chunker.get_chunk_stats(final_chunks),
            embedding_count=embedding_count,
        )

        return document

"""Document session: one active document, its chunks and the question history.

Handles:
- Uploading and replacing the active document
- Loading bundled sample documents
- Answering questions against the active document
"""
import asyncio
from pathlib import Path
from typing import List, Optional

import structlog

from docqa import config
from docqa.errors import NoActiveDocument
from docqa.memory import QuestionHistory
from docqa.models import Answer, Document, DocumentFile, Query
from docqa.rag.chunker import get_chunk_size
from docqa.rag.embeddings import EmbeddingService, ProgressCallback
from docqa.rag.extractor import SUPPORTED_MEDIA_TYPES, resolve_media_type
from docqa.rag.ingest import IngestPipeline
from docqa.rag.retriever import Retriever
from docqa.rag.store import ChunkStore
from docqa.rag.synthesizer import AnswerSynthesizer

logger = structlog.get_logger()


class DocumentSession:
    """Owns the chunk store and the active document for one user session."""

    def __init__(
        self,
        embedding_service: Optional[EmbeddingService] = None,
        synthesizer: Optional[AnswerSynthesizer] = None,
        documents_dir: Optional[Path] = None,
        history_size: Optional[int] = None,
    ):
        self.store = ChunkStore()
        self.embedding_service = embedding_service or EmbeddingService()
        self.synthesizer = synthesizer or AnswerSynthesizer()
        self.documents_dir = documents_dir or config.DOCUMENTS_DIR

        self.pipeline = IngestPipeline(self.store, self.embedding_service)
        self.retriever = Retriever(self.store, self.embedding_service)
        self.history = QuestionHistory(max_size=history_size)

        self.document: Optional[Document] = None
        self.current_answer: Optional[Answer] = None
        # Sample file the active document was loaded from, if any
        self.preloaded_filename: Optional[str] = None
        self._ingest_lock = asyncio.Lock()

    async def upload_document(
        self,
        file: DocumentFile,
        chunk_size: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Document:
        """Process a file and make it the active document.

        The previous document stays active if processing fails.

        Args:
            file: The uploaded document
            chunk_size: Chunk size preset (small, medium or large)
            progress_callback: Optional callback(done, total) during embedding

        Returns:
            The new active Document
        """
        async with self._ingest_lock:
            document = await self.pipeline.ingest(
                file,
                chunk_size=get_chunk_size(chunk_size),
                progress_callback=progress_callback,
            )

            previous = self.document
            self.document = document
            self.current_answer = None
            self.preloaded_filename = None
            if previous is not None:
                self.store.remove(previous.id)
                logger.info("document_replaced", previous_id=previous.id, document_id=document.id)

        return document

    def remove_document(self) -> bool:
        """Drop the active document and its chunks.

        Returns:
            True if a document was removed
        """
        if self.document is None:
            return False

        document_id = self.document.id
        self.store.remove(document_id)
        self.document = None
        self.current_answer = None
        self.preloaded_filename = None
        logger.info("document_removed", document_id=document_id)
        return True

    def list_preloaded_documents(self) -> List[dict]:
        """List the sample documents bundled with the app."""
        if not self.documents_dir.exists():
            return []

        documents = []
        for path in sorted(self.documents_dir.iterdir()):
            if not path.is_file():
                continue
            if resolve_media_type(path.name) not in SUPPORTED_MEDIA_TYPES:
                continue
            documents.append({
                "id": path.stem.replace("_", "-"),
                "title": path.stem.replace("_", " ").title(),
                "filename": path.name,
            })
        return documents

    async def load_preloaded_document(self, filename: str) -> Document:
        """Load a bundled sample document and make it the active document.

        Loading the sample that is already active returns it without
        processing it again.

        Raises:
            FileNotFoundError: If no sample document has this name
        """
        path = (self.documents_dir / filename).resolve()
        if path.parent != self.documents_dir.resolve() or not path.is_file():
            raise FileNotFoundError(f"Document not found: {filename}")

        if self.document is not None and self.preloaded_filename == path.name:
            logger.info("preloaded_document_reused", document_id=self.document.id, filename=path.name)
            return self.document

        file = DocumentFile(
            name=path.name,
            content=await asyncio.to_thread(path.read_bytes),
            media_type=resolve_media_type(path.name) or "text/plain",
        )
        document = await self.upload_document(file)
        self.preloaded_filename = path.name
        return document

    async def ask_question(self, question: str, top_k: Optional[int] = None) -> Answer:
        """Answer a question about the active document.

        History and the current answer change only if an answer is produced.

        Args:
            question: The question text
            top_k: Number of chunks used as context (default from config)

        Returns:
            The Answer with its sources

        Raises:
            NoActiveDocument: If no document is loaded
            ValueError: If the question is empty
            EmptyCorpus: If the document has no chunks
            GenerationFailed: If the LLM call fails
        """
        question = question.strip()
        if not question:
            raise ValueError("Question cannot be empty")

        document = self.document
        if document is None:
            raise NoActiveDocument("Upload a document before asking questions")

        logger.info(
            "question_received",
            document_id=document.id,
            question_preview=question[:100],
        )

        results = await self.retriever.retrieve(question, document.id, top_k=top_k)
        answer_text = await self.synthesizer.synthesize(question, results)

        query = Query(document_id=document.id, text=question)
        answer = Answer(
            query_id=query.id,
            text=answer_text,
            sources=[result.to_source() for result in results],
        )

        self.current_answer = answer
        self.history.add(query)

        logger.info(
            "question_answered",
            document_id=document.id,
            query_id=query.id,
            source_count=len(answer.sources),
        )
        return answer

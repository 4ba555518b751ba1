"""Embedding generation for chunks and queries.

Handles:
- Lazy, load-once feature-extraction model with explicit teardown
- Mean pooling over token features and L2 normalization
- Batched processing with a cooperative pause between batches
- Per-chunk failure isolation
"""
import asyncio
from typing import Any, Callable, List, Optional, Protocol

import numpy as np
import structlog

from docqa import config
from docqa.errors import EmbeddingChunkFailed, EmbeddingModelLoadFailed
from docqa.models import TextChunk

logger = structlog.get_logger()

ProgressCallback = Callable[[int, int], None]


class FeatureExtractor(Protocol):
    """Maps text to token features, shape (tokens, dim), or a pooled (dim,) vector."""

    def __call__(self, text: str) -> Any: ...


class SentenceTransformerExtractor:
    """Token-level features from a sentence-transformers model."""

    def __init__(self, model_name: str):
        # Imported here so the heavy dependency loads only with the model
        from sentence_transformers import SentenceTransformer

        self.model_name = model_name
        self._model = SentenceTransformer(model_name)

    def __call__(self, text: str) -> np.ndarray:
        output = self._model.encode(
            text,
            output_value="token_embeddings",
            convert_to_numpy=False,
        )
        if hasattr(output, "detach"):
            output = output.detach().cpu().numpy()
        return np.asarray(output, dtype=np.float32)


def mean_pool(features: Any) -> np.ndarray:
    """Average token features into a single vector."""
    array = np.asarray(features, dtype=np.float32)
    if array.ndim == 1:
        return array
    if array.ndim != 2 or array.shape[0] == 0:
        raise ValueError(f"Unexpected feature shape: {array.shape}")
    return array.mean(axis=0)


def l2_normalize(vector: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        return vector
    return vector / norm


class EmbeddingService:
    """Embeds chunks and queries with a lazily loaded, shared model."""

    def __init__(
        self,
        model_name: str = None,
        batch_size: int = None,
        batch_pause: float = None,
        loader: Optional[Callable[[str], FeatureExtractor]] = None,
    ):
        """Initialize the embedding service.

        The model is not loaded until first use.

        Args:
            model_name: Feature-extraction model name (default from config)
            batch_size: Chunks processed per batch (default from config)
            batch_pause: Seconds to yield between batches (default from config)
            loader: Factory building the extractor from a model name
        """
        self.model_name = model_name or config.EMBEDDING_MODEL
        self.batch_size = batch_size or config.EMBEDDING_BATCH_SIZE
        self.batch_pause = config.EMBEDDING_BATCH_PAUSE if batch_pause is None else batch_pause
        self._loader = loader or SentenceTransformerExtractor

        self._extractor: Optional[FeatureExtractor] = None
        self._load_lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._extractor is not None

    async def load(self) -> FeatureExtractor:
        """Load the model once and reuse it afterwards.

        Raises:
            EmbeddingModelLoadFailed: If the model cannot be loaded
        """
        if self._extractor is not None:
            return self._extractor

        async with self._load_lock:
            if self._extractor is None:
                logger.info("embedding_model_loading", model=self.model_name)
                try:
                    self._extractor = await asyncio.to_thread(self._loader, self.model_name)
                except Exception as e:
                    logger.error(
                        "embedding_model_load_failed",
                        model=self.model_name,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise EmbeddingModelLoadFailed(
                        f"Failed to load embedding model {self.model_name}: {e}"
                    ) from e
                logger.info("embedding_model_loaded", model=self.model_name)

        return self._extractor

    async def close(self) -> None:
        """Release the model. A later call to load() loads it again."""
        async with self._load_lock:
            if self._extractor is not None:
                logger.info("embedding_model_released", model=self.model_name)
            self._extractor = None

    def _compute(self, extractor: FeatureExtractor, text: str) -> List[float]:
        vector = l2_normalize(mean_pool(extractor(text)))
        if not np.all(np.isfinite(vector)):
            raise ValueError("Embedding contains non-finite values")
        return vector.tolist()

    async def embed_chunk(self, chunk: TextChunk) -> TextChunk:
        """Return a copy of the chunk carrying its embedding.

        Raises:
            EmbeddingModelLoadFailed: If the model cannot be loaded
            EmbeddingChunkFailed: If this chunk cannot be embedded
        """
        extractor = await self.load()
        try:
            embedding = await asyncio.to_thread(self._compute, extractor, chunk.text)
        except Exception as e:
            raise EmbeddingChunkFailed(f"Failed to embed chunk: {e}") from e
        return chunk.model_copy(update={"embedding": embedding})

    async def embed(
        self,
        chunks: List[TextChunk],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[TextChunk]:
        """Embed chunks in document order.

        A chunk that fails to embed is returned unchanged.

        Args:
            chunks: Chunks to embed
            progress_callback: Optional callback(done, total) after each batch

        Returns:
            Chunks in the same order, with embeddings where they succeeded

        Raises:
            EmbeddingModelLoadFailed: If the model cannot be loaded
        """
        if not chunks:
            return []

        await self.load()

        results: List[TextChunk] = []
        failed = 0

        for i in range(0, len(chunks), self.batch_size):
            batch = chunks[i : i + self.batch_size]

            for chunk in batch:
                try:
                    results.append(await self.embed_chunk(chunk))
                except EmbeddingChunkFailed as e:
                    failed += 1
                    logger.warning(
                        "embedding_chunk_failed",
                        chunk_location=chunk.metadata.location,
                        text_preview=chunk.text[:100],
                        error=str(e),
                    )
                    results.append(chunk)

            logger.debug(
                "embeddings_batch_generated",
                batch_size=len(batch),
                total_so_far=len(results),
            )

            if progress_callback:
                progress_callback(len(results), len(chunks))

            # Let other tasks run between batches
            await asyncio.sleep(self.batch_pause)

        logger.info(
            "embeddings_generated",
            chunk_count=len(chunks),
            embedded=len(chunks) - failed,
            failed=failed,
        )

        return results

    async def embed_query(self, text: str) -> Optional[List[float]]:
        """Embed a question through the same path as document chunks.

        Returns:
            The embedding, or None if it could not be computed
        """
        query_chunk = TextChunk(id="question", text=text)
        [embedded] = await self.embed([query_chunk])
        return embedded.embedding

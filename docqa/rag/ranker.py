"""Cosine similarity ranking of chunks against a query embedding."""
from typing import List, Optional, Sequence

import numpy as np
import structlog

from docqa import config
from docqa.errors import EmptyCorpus
from docqa.models import ScoredChunk, TextChunk

logger = structlog.get_logger()


def cosine_similarity(
    a: Optional[Sequence[float]], b: Optional[Sequence[float]]
) -> float:
    """Cosine similarity of two vectors.

    Returns 0.0 for missing, mismatched or zero-norm vectors.
    """
    if a is None or b is None or len(a) != len(b) or len(a) == 0:
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)

    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    similarity = float(np.dot(va, vb) / (norm_a * norm_b))
    # Rounding can push normalized vectors just past the bounds
    return max(-1.0, min(1.0, similarity))


def rank_chunks(
    query_embedding: Sequence[float],
    chunks: List[TextChunk],
    top_k: int = None,
) -> List[ScoredChunk]:
    """Score chunks against a query and keep the best ``top_k``.

    Chunks without an embedding are skipped. Equal scores keep document order.

    Raises:
        EmptyCorpus: If there are no chunks at all
        ValueError: If top_k is less than 1
    """
    if top_k is None:
        top_k = config.RETRIEVAL_TOP_K
    if top_k < 1:
        raise ValueError(f"top_k must be at least 1, got {top_k}")

    if not chunks:
        raise EmptyCorpus("No chunks found for document")

    scored = [
        ScoredChunk(chunk=chunk, score=cosine_similarity(query_embedding, chunk.embedding))
        for chunk in chunks
        if chunk.embedding is not None
    ]

    if len(scored) < len(chunks):
        logger.debug(
            "unembedded_chunks_skipped",
            skipped=len(chunks) - len(scored),
        )

    # sorted() is stable, also with reverse=True
    ranked = sorted(scored, key=lambda s: s.score, reverse=True)[:top_k]

    logger.debug(
        "chunks_ranked",
        candidates=len(scored),
        returned=len(ranked),
        top_score=ranked[0].score if ranked else None,
    )
    return ranked

"""Tests for the embedding service."""
import asyncio

import numpy as np
import pytest

from docqa.errors import EmbeddingChunkFailed, EmbeddingModelLoadFailed
from docqa.models import TextChunk
from docqa.rag.embeddings import EmbeddingService, l2_normalize, mean_pool


def _chunks(*texts):
    return [TextChunk(text=t) for t in texts]


class TestPooling:
    def test_mean_pool_averages_tokens(self):
        pooled = mean_pool([[1.0, 0.0], [0.0, 1.0], [2.0, 2.0]])

        np.testing.assert_allclose(pooled, [1.0, 1.0])

    def test_mean_pool_passes_through_pooled_vector(self):
        np.testing.assert_allclose(mean_pool([0.5, 0.5]), [0.5, 0.5])

    def test_mean_pool_rejects_empty_features(self):
        with pytest.raises(ValueError):
            mean_pool(np.zeros((0, 4)))

    def test_l2_normalize(self):
        np.testing.assert_allclose(l2_normalize(np.array([3.0, 4.0])), [0.6, 0.8])

    def test_l2_normalize_keeps_zero_vector(self):
        np.testing.assert_allclose(l2_normalize(np.zeros(3)), [0.0, 0.0, 0.0])


class TestEmbed:
    @pytest.mark.asyncio
    async def test_embeddings_are_unit_length(self, embedding_service):
        results = await embedding_service.embed(_chunks("the cat sat", "a dog barked loudly"))

        for chunk in results:
            assert chunk.embedding is not None
            assert np.linalg.norm(chunk.embedding) == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_input_chunks_are_not_mutated(self, embedding_service):
        chunks = _chunks("unchanged")
        results = await embedding_service.embed(chunks)

        assert chunks[0].embedding is None
        assert results[0].embedding is not None

    @pytest.mark.asyncio
    async def test_same_text_gives_same_vector(self, embedding_service):
        first = await embedding_service.embed(_chunks("deterministic text"))
        second = await embedding_service.embed(_chunks("deterministic text"))

        assert first[0].embedding == second[0].embedding

    @pytest.mark.asyncio
    async def test_order_is_preserved(self, embedding_service):
        texts = [f"chunk number {i}" for i in range(12)]
        results = await embedding_service.embed(_chunks(*texts))

        assert [c.text for c in results] == texts

    @pytest.mark.asyncio
    async def test_failed_chunk_is_returned_without_embedding(self, embedding_service):
        results = await embedding_service.embed(
            _chunks("fine text", "this one will EXPLODE", "also fine")
        )

        assert [c.embedding is not None for c in results] == [True, False, True]
        assert results[1].text == "this one will EXPLODE"

    @pytest.mark.asyncio
    async def test_embed_chunk_raises_chunk_failure(self, embedding_service):
        with pytest.raises(EmbeddingChunkFailed):
            await embedding_service.embed_chunk(TextChunk(text="EXPLODE"))

    @pytest.mark.asyncio
    async def test_progress_reported_per_batch(self, embedding_service):
        progress = []
        await embedding_service.embed(
            _chunks(*[f"text {i}" for i in range(12)]),
            progress_callback=lambda done, total: progress.append((done, total)),
        )

        assert embedding_service.batch_size == 5
        assert progress == [(5, 12), (10, 12), (12, 12)]

    @pytest.mark.asyncio
    async def test_empty_input_does_not_load_model(self, embedding_service):
        assert await embedding_service.embed([]) == []
        assert not embedding_service.is_loaded

    @pytest.mark.asyncio
    async def test_query_uses_same_path_as_chunks(self, embedding_service):
        [chunk] = await embedding_service.embed(_chunks("capital of France"))
        query = await embedding_service.embed_query("capital of France")

        assert query == chunk.embedding

    @pytest.mark.asyncio
    async def test_failed_query_returns_none(self, embedding_service):
        assert await embedding_service.embed_query("EXPLODE") is None


class TestModelLifecycle:
    @pytest.mark.asyncio
    async def test_model_loaded_once(self, fake_extractor):
        loads = []

        def loader(name):
            loads.append(name)
            return fake_extractor

        service = EmbeddingService(model_name="fake", batch_pause=0, loader=loader)
        await asyncio.gather(
            service.embed(_chunks("one")),
            service.embed(_chunks("two")),
            service.embed_query("three"),
        )

        assert loads == ["fake"]
        assert service.is_loaded

    @pytest.mark.asyncio
    async def test_load_failure_is_fatal_and_retryable(self, fake_extractor):
        attempts = []

        def loader(name):
            attempts.append(name)
            if len(attempts) == 1:
                raise OSError("model download failed")
            return fake_extractor

        service = EmbeddingService(model_name="fake", batch_pause=0, loader=loader)

        with pytest.raises(EmbeddingModelLoadFailed) as exc_info:
            await service.embed(_chunks("text"))
        assert isinstance(exc_info.value.__cause__, OSError)
        assert not service.is_loaded

        results = await service.embed(_chunks("text"))
        assert results[0].embedding is not None
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_close_releases_model(self, embedding_service):
        await embedding_service.load()
        assert embedding_service.is_loaded

        await embedding_service.close()
        assert not embedding_service.is_loaded

        await embedding_service.load()
        assert embedding_service.is_loaded

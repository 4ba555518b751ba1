"""Shared fixtures for unit tests.

Provides a deterministic bag-of-words feature extractor in place of the
sentence-transformers model and a mock transport for the generation endpoint.
"""
import hashlib
import re
from typing import Callable, List

import httpx
import numpy as np
import pytest

from docqa.llm_client import GenerationClient
from docqa.models import ChunkMetadata, TextChunk
from docqa.rag.embeddings import EmbeddingService
from docqa.rag.synthesizer import AnswerSynthesizer
from docqa.session import DocumentSession

FAKE_DIMENSION = 64
FAILING_MARKER = "EXPLODE"


class BagOfWordsExtractor:
    """One hashed one-hot row per token; texts containing EXPLODE fail."""

    def __init__(self):
        self.calls: List[str] = []

    def __call__(self, text: str) -> np.ndarray:
        self.calls.append(text)
        if FAILING_MARKER in text:
            raise RuntimeError("feature extraction failed")

        tokens = re.findall(r"\w+", text.lower())
        if not tokens:
            return np.zeros((1, FAKE_DIMENSION), dtype=np.float32)

        rows = np.zeros((len(tokens), FAKE_DIMENSION), dtype=np.float32)
        for i, token in enumerate(tokens):
            index = int(hashlib.md5(token.encode()).hexdigest(), 16) % FAKE_DIMENSION
            rows[i, index] = 1.0
        return rows


def generation_response(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def make_generation_client(handler: Callable[[httpx.Request], httpx.Response]) -> GenerationClient:
    return GenerationClient(base_url="http://llm.test", transport=httpx.MockTransport(handler))


def make_chunk(text: str, embedding=None, page_number=None, chunk_id=None) -> TextChunk:
    return TextChunk(
        id=chunk_id or f"chunk-{text[:10]}",
        document_id="doc-1",
        text=text,
        metadata=ChunkMetadata(page_number=page_number),
        embedding=embedding,
    )


@pytest.fixture
def fake_extractor() -> BagOfWordsExtractor:
    return BagOfWordsExtractor()


@pytest.fixture
def embedding_service(fake_extractor) -> EmbeddingService:
    return EmbeddingService(
        model_name="fake-model",
        batch_pause=0,
        loader=lambda name: fake_extractor,
    )


@pytest.fixture
def llm_requests() -> List[httpx.Request]:
    """Requests received by the mock generation endpoint."""
    return []


@pytest.fixture
def llm_answer() -> dict:
    """Mutable reply of the mock generation endpoint."""
    return {"status": 200, "content": "**Paris** is the capital."}


@pytest.fixture
def generation_client(llm_requests, llm_answer) -> GenerationClient:
    def handler(request: httpx.Request) -> httpx.Response:
        llm_requests.append(request)
        if llm_answer["status"] != 200:
            return httpx.Response(llm_answer["status"], json={"error": "upstream failed"})
        return generation_response(llm_answer["content"])

    return make_generation_client(handler)


@pytest.fixture
def session(embedding_service, generation_client, tmp_path) -> DocumentSession:
    return DocumentSession(
        embedding_service=embedding_service,
        synthesizer=AnswerSynthesizer(client=generation_client),
        documents_dir=tmp_path,
    )


@pytest.fixture
def chunk_factory() -> Callable[..., TextChunk]:
    return make_chunk


@pytest.fixture
def generation_client_factory() -> Callable[..., GenerationClient]:
    return make_generation_client

"""Data models shared by the retrieval pipeline and the HTTP API.

Models serialize with camelCase aliases (``model_dump(by_alias=True)``) and
accept either spelling on input.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ChunkMetadata(_Model):
    """Position of a chunk inside its document."""

    page_number: Optional[int] = None
    location: Optional[int] = None


class TextChunk(_Model):
    """A slice of document text, optionally carrying its embedding.

    ``id`` and ``document_id`` stay empty until ingestion assigns them.
    """

    id: str = ""
    document_id: str = ""
    text: str
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)
    embedding: Optional[List[float]] = None


class Document(_Model):
    """A processed document. Immutable once created."""

    id: str = Field(default_factory=new_id)
    name: str
    size: int
    type: str
    page_count: int
    word_count: int
    chunk_count: int
    embedding_count: int
    created_at: datetime = Field(default_factory=utcnow)


class Query(_Model):
    id: str = Field(default_factory=new_id)
    document_id: str
    text: str
    created_at: datetime = Field(default_factory=utcnow)


class Source(_Model):
    """Read-only projection of a chunk used to ground an answer."""

    chunk_id: str
    text: str
    page_number: Optional[int] = None
    score: Optional[float] = None


class Answer(_Model):
    id: str = Field(default_factory=new_id)
    query_id: str
    text: str
    sources: List[Source] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


class ChatMessage(BaseModel):
    role: str
    content: str


class GenerateRequest(BaseModel):
    """Body of ``POST /api/generate``."""

    messages: List[ChatMessage] = Field(min_length=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, gt=0)


class AskRequest(BaseModel):
    """Body of ``POST /api/questions``."""

    question: str = Field(min_length=1, max_length=2000)
    top_k: Optional[int] = Field(default=None, gt=0, le=20)


@dataclass(frozen=True)
class DocumentFile:
    """Raw document bytes plus what the caller declared about them."""

    name: str
    content: bytes
    media_type: str

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ScoredChunk:
    """A chunk paired with its similarity to a query."""

    chunk: TextChunk
    score: float

    def to_source(self) -> Source:
        return Source(
            chunk_id=self.chunk.id,
            text=self.chunk.text,
            page_number=self.chunk.metadata.page_number,
            score=self.score,
        )

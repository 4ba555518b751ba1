"""Text chunking with overlap for RAG pipeline.

Text is split into line nodes tagged with an estimated page number, then
nodes are packed into chunks of roughly ``chunk_size`` characters. A node is
never split, so a single long line can exceed the chunk size.
"""
import math
from dataclasses import dataclass
from typing import List, Optional

import structlog

from docqa import config
from docqa.models import ChunkMetadata, TextChunk
from docqa.rag.extractor import split_lines

logger = structlog.get_logger()

# Average characters per word used to turn the character overlap into words
CHARS_PER_WORD = 5


@dataclass
class TextNode:
    """A non-empty line of the document with its position."""

    text: str
    page_number: int
    location: int


def create_text_nodes(text: str, page_count: int) -> List[TextNode]:
    """Split text into line nodes, spreading lines evenly over the pages.

    Args:
        text: Extracted document text
        page_count: Number of pages the lines are distributed over

    Returns:
        List of TextNode objects, empty lines removed
    """
    lines = split_lines(text)
    lines_per_page = math.ceil(len(lines) / max(1, page_count))

    nodes = []
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        nodes.append(
            TextNode(
                text=stripped,
                page_number=index // lines_per_page + 1,
                location=index,
            )
        )
    return nodes


def get_chunk_size(setting: Optional[str]) -> int:
    """Map a chunk size preset (small/medium/large) to characters."""
    return config.CHUNK_SIZE_PRESETS.get(setting or "", config.CHUNK_SIZE)


class TextChunker:
    """Line-based text chunker with word overlap between chunks."""

    def __init__(
        self,
        chunk_size: int = None,
        chunk_overlap: int = None,
    ):
        """Initialize the text chunker.

        Args:
            chunk_size: Advisory size of each chunk in characters (default from config)
            chunk_overlap: Overlap between chunks in characters (default from config)
        """
        self.chunk_size = chunk_size or config.CHUNK_SIZE
        self.chunk_overlap = config.CHUNK_OVERLAP if chunk_overlap is None else chunk_overlap

        # Validate parameters
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"Overlap ({self.chunk_overlap}) must be less than "
                f"chunk size ({self.chunk_size})"
            )

        logger.debug(
            "chunker_initialized",
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
        )

    @property
    def overlap_words(self) -> int:
        """Words carried into the next chunk.

        This approximates the character overlap and is not exact.
        """
        return self.chunk_overlap // CHARS_PER_WORD

    def chunk_text(self, text: str, page_count: int = 1) -> List[TextChunk]:
        """Split text into overlapping chunks.

        Args:
            text: Text to chunk
            page_count: Page count used to estimate each line's page

        Returns:
            List of TextChunk objects without ids
        """
        return self.chunk_nodes(create_text_nodes(text, page_count))

    def chunk_nodes(self, nodes: List[TextNode]) -> List[TextChunk]:
        """Pack text nodes into chunks.

        Args:
            nodes: Line nodes in document order

        Returns:
            List of TextChunk objects without ids
        """
        chunks: List[TextChunk] = []
        if not nodes:
            return chunks

        buffer = ""
        page_number = nodes[0].page_number
        location = nodes[0].location

        for node in nodes:
            if buffer and len(buffer) + len(node.text) > self.chunk_size:
                chunks.append(self._make_chunk(buffer, page_number, location))

                # Seed the next chunk with the tail of the previous one
                tail = buffer.split()[-self.overlap_words:] if self.overlap_words else []
                buffer = " ".join(tail + [node.text])
                page_number = node.page_number
                location = node.location
            else:
                buffer = f"{buffer} {node.text}" if buffer else node.text
                # Keep the earliest page number
                page_number = min(page_number, node.page_number)

        if buffer.strip():
            chunks.append(self._make_chunk(buffer, page_number, location))

        logger.info(
            "text_chunked",
            node_count=len(nodes),
            chunk_count=len(chunks),
            avg_chunk_size=sum(len(c.text) for c in chunks) // len(chunks),
        )

        return chunks

    @staticmethod
    def _make_chunk(buffer: str, page_number: int, location: int) -> TextChunk:
        return TextChunk(
            text=buffer.strip(),
            metadata=ChunkMetadata(page_number=page_number, location=location),
        )

    def get_chunk_stats(self, chunks: List[TextChunk]) -> dict:
        """Get statistics about a set of chunks.

        Args:
            chunks: List of TextChunk objects

        Returns:
            Dictionary with chunk statistics
        """
        if not chunks:
            return {
                "chunk_count": 0,
                "total_chars": 0,
                "avg_chunk_size": 0,
                "min_chunk_size": 0,
                "max_chunk_size": 0,
                "overlap": self.chunk_overlap,
            }

        chunk_sizes = [len(c.text) for c in chunks]

        return {
            "chunk_count": len(chunks),
            "total_chars": sum(chunk_sizes),
            "avg_chunk_size": sum(chunk_sizes) // len(chunks),
            "min_chunk_size": min(chunk_sizes),
            "max_chunk_size": max(chunk_sizes),
            "overlap": self.chunk_overlap,
        }

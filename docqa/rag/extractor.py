"""Text extraction for uploaded documents.

Handles:
- Plain text (page count estimated from lines)
- PDF via pypdf (exact page count)
- DOCX via python-docx (page count estimated from words)
"""
import asyncio
import io
import math
import mimetypes
from dataclasses import dataclass
from typing import Callable, Dict, List

import docx
import structlog
from docx.table import Table
from pypdf import PdfReader

from docqa.errors import ExtractionFailed, UnsupportedFormat
from docqa.models import DocumentFile

logger = structlog.get_logger()

PLAIN_TEXT = "text/plain"
PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

SUPPORTED_MEDIA_TYPES = (PLAIN_TEXT, PDF, DOCX)

# Not every platform's mime tables know .docx
mimetypes.add_type(DOCX, ".docx")

LINES_PER_PAGE = 40
WORDS_PER_PAGE = 500


@dataclass
class ExtractedText:
    """Flat document text plus its (possibly estimated) page count."""

    text: str
    page_count: int

    @property
    def word_count(self) -> int:
        return count_words(self.text)


def count_words(text: str) -> int:
    return len(text.split())


def split_lines(text: str) -> List[str]:
    """Split on \\n only; a final newline does not start another line.

    Page estimates and chunk paging both count lines this way.
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def resolve_media_type(file_name: str, declared: str = "") -> str:
    """Return the declared media type, guessing from the name if it is generic."""
    declared = (declared or "").split(";")[0].strip().lower()
    if declared and declared != "application/octet-stream":
        return declared
    guessed, _ = mimetypes.guess_type(file_name)
    if guessed:
        return guessed
    return declared


class TextExtractor:
    """Converts document bytes into text according to the declared media type."""

    def __init__(self):
        self._handlers: Dict[str, Callable[[bytes], ExtractedText]] = {
            PLAIN_TEXT: self._extract_plain_text,
            PDF: self._extract_pdf,
            DOCX: self._extract_docx,
        }

    async def extract(self, file: DocumentFile) -> ExtractedText:
        """Extract text from a document file.

        Parsing runs in a worker thread so the event loop stays responsive.

        Args:
            file: Document bytes with declared media type

        Returns:
            ExtractedText with text and page count

        Raises:
            UnsupportedFormat: If the media type is not supported
            ExtractionFailed: If the content cannot be read or parsed
        """
        media_type = (file.media_type or "").split(";")[0].strip().lower()
        handler = self._handlers.get(media_type)
        if handler is None:
            logger.warning("unsupported_media_type", name=file.name, media_type=file.media_type)
            raise UnsupportedFormat(file.media_type)

        logger.info("extraction_started", name=file.name, media_type=media_type, size=file.size)

        try:
            extracted = await asyncio.to_thread(handler, file.content)
        except Exception as e:
            logger.error(
                "extraction_failed",
                name=file.name,
                media_type=media_type,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ExtractionFailed(f"Could not extract text from {file.name}: {e}") from e

        logger.info(
            "extraction_completed",
            name=file.name,
            page_count=extracted.page_count,
            text_length=len(extracted.text),
        )
        return extracted

    def _extract_plain_text(self, content: bytes) -> ExtractedText:
        text = content.decode("utf-8-sig")
        line_count = len(split_lines(text))
        page_count = max(1, math.ceil(line_count / LINES_PER_PAGE))
        return ExtractedText(text=text, page_count=page_count)

    def _extract_pdf(self, content: bytes) -> ExtractedText:
        reader = PdfReader(io.BytesIO(content))

        # Blank line after every page keeps page boundaries visible to the chunker
        pages = []
        for page in reader.pages:
            pages.append((page.extract_text() or "") + "\n\n")

        return ExtractedText(text="".join(pages), page_count=len(reader.pages))

    def _extract_docx(self, content: bytes) -> ExtractedText:
        document = docx.Document(io.BytesIO(content))

        blocks = []
        for block in document.iter_inner_content():
            if isinstance(block, Table):
                for row in block.rows:
                    # merged cells repeat in row.cells
                    seen = set()
                    for cell in row.cells:
                        if cell._tc in seen:
                            continue
                        seen.add(cell._tc)
                        blocks.extend(p.text for p in cell.paragraphs)
            else:
                blocks.append(block.text)

        text = "\n\n".join(blocks)
        page_count = max(1, math.ceil(count_words(text) / WORDS_PER_PAGE))
        return ExtractedText(text=text, page_count=page_count)

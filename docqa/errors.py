"""Error taxonomy for the document question-answering pipeline.

Each error carries the HTTP status the API layer answers with, so routes can
let them propagate to a single error handler.
"""


class DocQAError(Exception):
    """Base class for all expected pipeline failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedFormat(DocQAError):
    """The declared media type is not plain text, PDF or DOCX."""

    status_code = 415

    def __init__(self, media_type: str):
        super().__init__(f"Unsupported file type: {media_type or 'unknown'}")
        self.media_type = media_type


class ExtractionFailed(DocQAError):
    """The file could not be read, decoded or parsed."""

    status_code = 422


class EmbeddingModelLoadFailed(DocQAError):
    """The feature-extraction model could not be loaded."""

    status_code = 503


class EmbeddingChunkFailed(DocQAError):
    """A single text could not be embedded."""

    status_code = 500


class EmptyCorpus(DocQAError):
    """Ranking was attempted against a document without chunks."""

    status_code = 409


class GenerationFailed(DocQAError):
    """The LLM call failed or returned a malformed payload."""

    status_code = 502


class NoActiveDocument(DocQAError):
    """No document is loaded in the session."""

    status_code = 404


class DocumentTooLarge(DocQAError):
    """The uploaded file exceeds the accepted size."""

    status_code = 413

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"File is too large ({size} bytes); the maximum is {limit} bytes"
        )
        self.size = size
        self.limit = limit

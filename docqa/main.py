"""Main Quart application for DocQA."""
import logging

import httpx
import structlog
from pydantic import ValidationError
from quart import Quart, jsonify, request

from docqa import config
from docqa.errors import DocQAError, DocumentTooLarge
from docqa.llm_client import ollama_client
from docqa.models import AskRequest, DocumentFile, GenerateRequest
from docqa.rag.extractor import resolve_media_type
from docqa.rag.synthesizer import markdown_to_safe_html
from docqa.session import DocumentSession

# Configure structured logging
logging.basicConfig(level=config.LOG_LEVEL, format="%(message)s")
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger()

# Initialize Quart app
app = Quart(__name__)
# Leave room for multipart overhead; the upload route enforces the exact limit
app.config["MAX_CONTENT_LENGTH"] = config.MAX_UPLOAD_BYTES + 1024 * 1024

# Single-user session holding the active document
document_session = DocumentSession()


def _validation_error(e: ValidationError):
    return jsonify({
        "error": "Invalid request",
        "details": e.errors(include_url=False, include_context=False),
    }), 400


@app.after_serving
async def shutdown():
    """Release the embedding model."""
    await document_session.embedding_service.close()


@app.route("/api/documents", methods=["POST"])
async def upload_document():
    """Upload a document and make it the active one.

    Expects multipart form data:
        file: the document (text, PDF or DOCX, max 20 MiB)
        chunk_size: optional preset, one of small, medium, large

    Returns:
        201 with the processed document
    """
    files = await request.files
    upload = files.get("file")

    if upload is None or not upload.filename:
        return jsonify({"error": "Missing 'file' in request"}), 400

    form = await request.form
    chunk_size = form.get("chunk_size") or None
    if chunk_size and chunk_size not in config.CHUNK_SIZE_PRESETS:
        return jsonify({
            "error": f"Invalid chunk_size; expected one of {', '.join(config.CHUNK_SIZE_PRESETS)}"
        }), 400

    content = upload.read()
    if len(content) > config.MAX_UPLOAD_BYTES:
        raise DocumentTooLarge(len(content), config.MAX_UPLOAD_BYTES)

    file = DocumentFile(
        name=upload.filename,
        content=content,
        media_type=resolve_media_type(upload.filename, upload.mimetype),
    )

    logger.info(
        "document_upload_received",
        name=file.name,
        size=file.size,
        media_type=file.media_type,
        chunk_size=chunk_size,
    )

    document = await document_session.upload_document(file, chunk_size=chunk_size)
    return jsonify(document.model_dump(mode="json", by_alias=True)), 201


@app.route("/api/documents/current", methods=["GET"])
async def get_current_document():
    """Return the active document."""
    if document_session.document is None:
        return jsonify({"error": "No document loaded"}), 404
    return jsonify(document_session.document.model_dump(mode="json", by_alias=True))


@app.route("/api/documents/current", methods=["DELETE"])
async def remove_current_document():
    """Remove the active document and its chunks.

    Returns:
        204 No Content if removed
        404 Not Found if no document is loaded
    """
    if document_session.remove_document():
        return "", 204
    return jsonify({"error": "No document loaded"}), 404


@app.route("/api/documents/preloaded", methods=["GET"])
async def list_preloaded_documents():
    """List the bundled sample documents."""
    return jsonify({"documents": document_session.list_preloaded_documents()})


@app.route("/api/documents/preloaded/<filename>", methods=["POST"])
async def load_preloaded_document(filename: str):
    """Load a bundled sample document and make it the active one."""
    try:
        document = await document_session.load_preloaded_document(filename)
    except FileNotFoundError:
        return jsonify({"error": "Document not found"}), 404

    return jsonify(document.model_dump(mode="json", by_alias=True)), 201


@app.route("/api/questions", methods=["POST"])
async def ask_question():
    """Answer a question about the active document.

    Expects JSON body:
    {
        "question": "question text",
        "top_k": 3  // optional
    }

    Returns JSON:
    {
        "answer": {"id": ..., "queryId": ..., "text": "markdown", "sources": [...]},
        "html": "sanitized HTML rendering of the answer"
    }
    """
    data = await request.get_json(silent=True)

    try:
        body = AskRequest.model_validate(data or {})
    except ValidationError as e:
        logger.warning("invalid_question_request", error_count=e.error_count())
        return _validation_error(e)

    try:
        answer = await document_session.ask_question(body.question, top_k=body.top_k)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "answer": answer.model_dump(mode="json", by_alias=True),
        "html": markdown_to_safe_html(answer.text),
    })


@app.route("/api/questions/current", methods=["GET"])
async def current_answer():
    """Return the latest answer for the active document."""
    answer = document_session.current_answer
    if answer is None:
        return jsonify({"error": "No answer yet"}), 404
    return jsonify({
        "answer": answer.model_dump(mode="json", by_alias=True),
        "html": markdown_to_safe_html(answer.text),
    })


@app.route("/api/questions/history", methods=["GET"])
async def question_history():
    """List recent questions, most recent first."""
    queries = [q.model_dump(mode="json", by_alias=True) for q in document_session.history.list()]
    return jsonify({"queries": queries})


@app.route("/api/generate", methods=["POST"])
async def generate():
    """Proxy a chat completion to the configured Ollama model.

    Expects JSON body:
    {
        "messages": [{"role": "system", "content": "..."}, ...],
        "temperature": 0.7,  // optional
        "max_tokens": 1000   // optional
    }

    Returns JSON:
    {
        "choices": [{"message": {"role": "assistant", "content": "..."}}]
    }
    """
    data = await request.get_json(silent=True)

    try:
        body = GenerateRequest.model_validate(data or {})
    except ValidationError as e:
        logger.warning("invalid_generate_request", error_count=e.error_count())
        return _validation_error(e)

    try:
        response = await ollama_client.chat(
            [m.model_dump() for m in body.messages],
            temperature=body.temperature,
            max_tokens=body.max_tokens,
        )
    except httpx.HTTPError as e:
        logger.error("generate_proxy_failed", error=str(e), error_type=type(e).__name__)
        return jsonify({"error": f"Error: {e}"}), 502

    content = response.get("message", {}).get("content", "")
    if not content:
        logger.error("empty_ollama_response", response=response)
        return jsonify({"error": "Empty response from LLM"}), 502

    return jsonify({
        "choices": [{"message": {"role": "assistant", "content": content}}]
    })


@app.route("/health/ready")
async def health_ready():
    """Readiness probe - check if app can serve requests.

    Checks:
    - Ollama service is reachable
    - Chat model is available
    """
    checks = {
        "status": "healthy",
        "ollama": False,
        "models": False,
        "embedding_model_loaded": document_session.embedding_service.is_loaded,
        "store": document_session.store.get_stats(),
    }

    try:
        models = await ollama_client.list_models()
        checks["ollama"] = True

        if config.CHAT_MODEL in models:
            checks["models"] = True
        else:
            checks["status"] = "unhealthy"
            checks["error"] = f"Missing chat model: {config.CHAT_MODEL}"

        status_code = 200 if checks["status"] == "healthy" else 503
        return jsonify(checks), status_code

    except Exception as e:
        logger.error("health_check_failed", error=str(e))
        checks["status"] = "unhealthy"
        checks["error"] = str(e)
        return jsonify(checks), 503


@app.route("/health/live")
async def health_live():
    """Liveness probe - check if app is running."""
    return jsonify({"status": "alive"}), 200


@app.errorhandler(DocQAError)
async def handle_docqa_error(error: DocQAError):
    """Turn pipeline failures into a single user-facing message."""
    logger.warning(
        "request_failed",
        error=error.message,
        error_type=type(error).__name__,
        status_code=error.status_code,
    )
    return jsonify({"error": error.message, "type": type(error).__name__}), error.status_code


@app.errorhandler(404)
async def not_found(error):
    """Handle 404 errors."""
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(413)
async def too_large(error):
    """Handle request bodies over MAX_CONTENT_LENGTH."""
    return jsonify({"error": "File is too large"}), 413


@app.errorhandler(500)
async def internal_error(error):
    """Handle 500 errors."""
    logger.error("internal_server_error", error=str(error))
    return jsonify({"error": "Internal server error"}), 500


def run():
    """Run the development server."""
    app.run(host="0.0.0.0", port=5000, debug=True)


if __name__ == "__main__":
    # For development - use hypercorn in production
    run()

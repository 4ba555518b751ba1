"""Application configuration with sensible defaults."""
import os
from pathlib import Path

# Paths
BASE_DIR = Path(__file__).parent.parent
DOCUMENTS_DIR = Path(os.getenv("DOCUMENTS_DIR", str(BASE_DIR / "documents")))

# Ollama configuration (backs the /api/generate proxy)
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
CHAT_MODEL = os.getenv("CHAT_MODEL", "llama3:8b-instruct")

# Generation endpoint used by the answer synthesizer
GENERATION_BASE_URL = os.getenv("GENERATION_BASE_URL", "http://localhost:5000")
GENERATION_TEMPERATURE = float(os.getenv("GENERATION_TEMPERATURE", "0.5"))
GENERATION_MAX_TOKENS = int(os.getenv("GENERATION_MAX_TOKENS", "1000"))
GENERATION_TIMEOUT = float(os.getenv("GENERATION_TIMEOUT", "60.0"))

# Embedding model (runs locally, mean pooled + L2 normalized)
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2")
EMBEDDING_BATCH_SIZE = int(os.getenv("EMBEDDING_BATCH_SIZE", "5"))
EMBEDDING_BATCH_PAUSE = float(os.getenv("EMBEDDING_BATCH_PAUSE", "0.01"))  # seconds

# RAG parameters (character-based)
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "1000"))
CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "200"))
CHUNK_SIZE_PRESETS = {
    "small": 500,
    "medium": 1000,
    "large": 2000,
}
RETRIEVAL_TOP_K = int(os.getenv("RETRIEVAL_TOP_K", "3"))

# Uploads
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))  # 20 MiB

# Question history
HISTORY_SIZE = int(os.getenv("HISTORY_SIZE", "5"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

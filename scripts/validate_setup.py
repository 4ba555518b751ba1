#!/usr/bin/env python
"""Validate DocQA setup - check dependencies, configuration and models."""
import sys
import asyncio
from pathlib import Path

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"

def print_success(msg):
    print(f"{GREEN}✓{RESET} {msg}")

def print_error(msg):
    print(f"{RED}✗{RESET} {msg}")

def print_info(msg):
    print(f"{BLUE}ℹ{RESET} {msg}")

def print_warning(msg):
    print(f"{YELLOW}⚠{RESET} {msg}")

def print_section(title):
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}{title:^60}{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

async def main():
    print_section("DocQA - Setup Validation")

    errors = []
    warnings = []

    # 1. Python version check
    print_section("1. Python Environment")
    python_version = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    print_info(f"Python version: {python_version}")
    if sys.version_info >= (3, 11):
        print_success("Python version >= 3.11")
    else:
        print_error("Python version < 3.11 (required)")
        errors.append("Python version too old")

    # 2. Import core dependencies
    print_section("2. Core Dependencies")

    dependencies = [
        ("quart", "Quart web framework"),
        ("hypercorn", "Hypercorn ASGI server"),
        ("httpx", "HTTP client"),
        ("numpy", "Vector math"),
        ("pydantic", "Data validation"),
        ("structlog", "Structured logging"),
        ("pypdf", "PDF text extraction"),
        ("docx", "DOCX text extraction"),
        ("sentence_transformers", "Embedding model runtime"),
        ("markdown", "Markdown rendering"),
        ("nh3", "HTML sanitizer"),
    ]

    for module_name, description in dependencies:
        try:
            __import__(module_name)
            print_success(f"{description:30} ({module_name})")
        except ImportError as e:
            print_error(f"{description:30} ({module_name}) - {e}")
            errors.append(f"Missing: {module_name}")

    # 3. Test configuration
    print_section("3. Configuration")

    try:
        # Add parent directory to path to import docqa
        sys.path.insert(0, str(Path(__file__).parent.parent))
        from docqa import config

        print_success(f"Config loaded successfully")
        print_info(f"  Chat model: {config.CHAT_MODEL}")
        print_info(f"  Embedding model: {config.EMBEDDING_MODEL}")
        print_info(f"  Ollama URL: {config.OLLAMA_BASE_URL}")
        print_info(f"  Generation URL: {config.GENERATION_BASE_URL}")
        print_info(f"  Chunk size: {config.CHUNK_SIZE} chars (overlap {config.CHUNK_OVERLAP})")

        if config.DOCUMENTS_DIR.exists():
            print_success(f"Sample documents directory exists: {config.DOCUMENTS_DIR}")
        else:
            print_warning(f"Sample documents directory missing: {config.DOCUMENTS_DIR}")
            warnings.append("No sample documents")

    except Exception as e:
        print_error(f"Failed to load config: {e}")
        errors.append("Config loading failed")
        return errors, warnings

    # 4. Test Ollama connection
    print_section("4. Ollama Service")

    try:
        import httpx
        from docqa.llm_client import OllamaClient

        models = set(await OllamaClient().list_models())
        print_success(f"Ollama service running at {config.OLLAMA_BASE_URL}")
        print_info(f"Found {len(models)} models installed")

        if config.CHAT_MODEL in models:
            print_success(f"Chat model available: {config.CHAT_MODEL}")
        else:
            print_error(f"Chat model missing: {config.CHAT_MODEL}")
            print_info(f"  Run: ollama pull {config.CHAT_MODEL}")
            errors.append(f"Missing chat model: {config.CHAT_MODEL}")

    except httpx.ConnectError:
        print_error("Cannot connect to Ollama service")
        print_info(f"  Make sure Ollama is running: ollama serve")
        errors.append("Ollama not running")
    except Exception as e:
        print_error(f"Ollama check failed: {e}")
        errors.append(f"Ollama error: {e}")

    # 5. Load the embedding model and embed a test string
    print_section("5. Embedding Model")

    try:
        from docqa.rag.embeddings import EmbeddingService

        service = EmbeddingService()
        first = await service.embed_query("test")
        second = await service.embed_query("test")
        await service.close()

        if first is None:
            print_error("Embedding model returned no vector")
            errors.append("Embedding failed")
        else:
            print_success(f"Embedding model working (dimension: {len(first)})")
            if first == second:
                print_success("Embeddings are deterministic")
            else:
                print_warning("Embedding the same text twice gave different vectors")
                warnings.append("Non-deterministic embeddings")

    except Exception as e:
        print_error(f"Embedding model test failed: {e}")
        errors.append(f"Embedding model error: {e}")

    # 6. Summary
    print_section("Summary")

    if not errors:
        print_success(f"All checks passed! ✨")
        print_info(f"\n  Start the server with: hypercorn docqa.main:app")
    else:
        print_error(f"Found {len(errors)} error(s):")
        for i, error in enumerate(errors, 1):
            print(f"  {i}. {error}")

    if warnings:
        print_warning(f"\nFound {len(warnings)} warning(s):")
        for i, warning in enumerate(warnings, 1):
            print(f"  {i}. {warning}")

    print()
    return errors, warnings

if __name__ == "__main__":
    errors, warnings = asyncio.run(main())
    sys.exit(1 if errors else 0)

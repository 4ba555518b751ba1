"""Pytest configuration and fixtures for E2E tests.

These run against a live server (with Ollama and the embedding model
available). Set E2E_BASE_URL to enable them, e.g.:

    E2E_BASE_URL=http://localhost:5000 pytest -m e2e
"""
import os

import pytest
from playwright.sync_api import APIRequestContext


# Test configuration
BASE_URL = os.getenv("E2E_BASE_URL")
TEST_TIMEOUT = 120000  # 2 minutes, first upload loads the embedding model


@pytest.fixture
def api(request) -> APIRequestContext:
    """HTTP client bound to the running server."""
    if not BASE_URL:
        pytest.skip("E2E_BASE_URL not set")

    playwright = request.getfixturevalue("playwright")
    context = playwright.request.new_context(base_url=BASE_URL, timeout=TEST_TIMEOUT)
    yield context
    context.dispose()


@pytest.fixture
def sample_document():
    """Small document with a fact the model can answer from."""
    return {
        "name": "capitals.txt",
        "mimeType": "text/plain",
        "buffer": b"Paris is the capital of France.\nBerlin is the capital of Germany.\n",
    }

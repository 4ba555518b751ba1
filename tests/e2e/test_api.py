"""E2E tests for the document question-answering API."""
import pytest
from playwright.sync_api import APIRequestContext

pytestmark = pytest.mark.e2e


def test_health_live(api: APIRequestContext):
    """Test that the app reports itself alive."""
    response = api.get("/health/live")
    assert response.status == 200
    assert response.json() == {"status": "alive"}


def test_upload_and_ask(api: APIRequestContext, sample_document):
    """Test uploading a document and asking about it."""
    response = api.post("/api/documents", multipart={"file": sample_document})
    assert response.status == 201

    document = response.json()
    assert document["name"] == "capitals.txt"
    assert document["chunkCount"] >= 1

    response = api.post("/api/questions", data={"question": "What is the capital of France?"})
    assert response.status == 200

    data = response.json()
    assert data["answer"]["text"]
    assert data["html"]
    assert data["answer"]["sources"]
    assert "Paris" in data["answer"]["sources"][0]["text"]


def test_question_appears_in_history(api: APIRequestContext, sample_document):
    """Test that an answered question is listed first in history."""
    api.post("/api/documents", multipart={"file": sample_document})
    api.post("/api/questions", data={"question": "Which city is the capital of Germany?"})

    response = api.get("/api/questions/history")
    queries = response.json()["queries"]
    assert queries[0]["text"] == "Which city is the capital of Germany?"


def test_remove_document(api: APIRequestContext, sample_document):
    """Test that asking after removal fails with a clear error."""
    api.post("/api/documents", multipart={"file": sample_document})

    response = api.delete("/api/documents/current")
    assert response.status == 204

    response = api.post("/api/questions", data={"question": "Anything?"})
    assert response.status == 404
    assert response.json()["type"] == "NoActiveDocument"


def test_unsupported_upload_rejected(api: APIRequestContext):
    """Test that images are rejected."""
    response = api.post(
        "/api/documents",
        multipart={"file": {"name": "photo.png", "mimeType": "image/png", "buffer": b"\x89PNG"}},
    )
    assert response.status == 415

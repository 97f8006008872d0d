"""Integration tests for the FastAPI HTTP gateway.

These tests call OpenRouter through the HTTP endpoints.
Requires OPENROUTER_API_KEY; skipped otherwise.
"""

import os

import pytest
from fastapi.testclient import TestClient

from tenx_cards.llm.server.app import app

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not os.getenv("OPENROUTER_API_KEY"), reason="OPENROUTER_API_KEY not set"),
]

MODEL = os.getenv("INTEGRATION_MODEL", "openai/gpt-4o-mini")


@pytest.fixture(scope="module")
def client():
    # Entering the context runs the lifespan, which builds the OpenRouter client
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def test_chat(client):
    resp = client.post(
        "/v1/chat",
        json={
            "messages": [{"role": "user", "content": "Say 'hello' and nothing else."}],
            "model": MODEL,
            "params": {"max_tokens": 10},
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    assert "hello" in data["content"].lower()
    assert data["usage"]["totalTokens"] > 0
    assert "x-request-id" in resp.headers


def test_chat_structured(client):
    resp = client.post(
        "/v1/chat",
        json={
            "messages": [{"role": "user", "content": "Make one flashcard about gravity."}],
            "model": MODEL,
            "responseFormat": {
                "type": "json_schema",
                "json_schema": {
                    "name": "flashcard",
                    "strict": True,
                    "schema": {
                        "type": "object",
                        "properties": {"front": {"type": "string"}, "back": {"type": "string"}},
                        "required": ["front", "back"],
                        "additionalProperties": False,
                    },
                },
            },
        },
    )
    assert resp.status_code == 200
    assert resp.json()["content"].lstrip().startswith("{")


def test_chat_validation_error(client):
    resp = client.post("/v1/chat", json={"messages": [], "model": MODEL})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_models(client):
    resp = client.get("/v1/models")
    assert resp.status_code == 200
    assert any(m["id"] == MODEL for m in resp.json()["data"])

"""Integration tests against the real OpenRouter API.

Requires OPENROUTER_API_KEY; skipped otherwise.
"""

import os

import pytest
from pydantic import BaseModel

from tenx_cards.llm import (
    AuthError,
    LLMServiceError,
    LLMSettings,
    OpenRouterClient,
    ServiceConfig,
    complete,
    extract,
)

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not os.getenv("OPENROUTER_API_KEY"), reason="OPENROUTER_API_KEY not set"),
]

MODEL = os.getenv("INTEGRATION_MODEL", "openai/gpt-4o-mini")


class Flashcard(BaseModel):
    front: str
    back: str


class Deck(BaseModel):
    cards: list[Flashcard]


@pytest.mark.asyncio
async def test_complete():
    result = await complete(
        [{"role": "user", "content": "Say 'hello' and nothing else."}],
        model=MODEL,
        params={"max_tokens": 10, "temperature": 0},
    )

    assert "hello" in result.content.lower()
    assert result.usage.total_tokens > 0


@pytest.mark.asyncio
async def test_extract_flashcards():
    async with OpenRouterClient.from_settings(LLMSettings(default_model=MODEL)) as client:
        deck = await extract(
            Deck,
            client=client,
            messages=[
                {"role": "system", "content": "Create exactly two flashcards from the text."},
                {"role": "user", "content": "Water boils at 100 C. Ice melts at 0 C."},
            ],
        )

    assert len(deck.cards) == 2
    assert all(card.front and card.back for card in deck.cards)


@pytest.mark.asyncio
async def test_list_models():
    async with OpenRouterClient.from_settings() as client:
        models = await client.list_models()

    assert any(m.id == MODEL for m in models)


@pytest.mark.asyncio
async def test_unknown_model():
    async with OpenRouterClient.from_settings() as client:
        with pytest.raises(LLMServiceError) as exc_info:
            await client.chat(
                [{"role": "user", "content": "Hi"}],
                model="nonexistent/model-that-does-not-exist",
            )
    assert exc_info.value.code in ("MODEL_ERROR", "API_ERROR")


@pytest.mark.asyncio
async def test_invalid_key():
    config = ServiceConfig(api_key="sk-or-v1-invalid", default_model=MODEL)
    async with OpenRouterClient(config) as client:
        with pytest.raises(AuthError):
            await client.chat([{"role": "user", "content": "Hi"}])

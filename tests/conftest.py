"""Shared test configuration and fixtures."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from tenx_cards.llm.client import OpenRouterClient
from tenx_cards.llm.config import RetryConfig, ServiceConfig, reset_settings
from tenx_cards.llm.observability import disable_observability

API_KEY = "sk-or-v1-test-secret-key"
BASE_URL = "https://openrouter.test/api/v1"

Handler = Callable[[httpx.Request], Any]


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture(autouse=True)
def _isolate_globals():
    """Fresh settings and observability state for every test."""
    reset_settings()
    disable_observability()
    yield
    reset_settings()
    disable_observability()


@pytest.fixture
def config() -> ServiceConfig:
    return ServiceConfig(
        api_key=API_KEY,
        base_url=BASE_URL,
        default_model="openai/gpt-4o-mini",
        retry=RetryConfig(max_retries=3, retry_delay=1.0),
        timeout=5.0,
    )


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_client(config: ServiceConfig, sleep: SleepRecorder):
    """
    Factory for clients whose HTTP traffic goes to ``handler``.

    Handlers receive the ``httpx.Request`` and return an ``httpx.Response``
    (or raise an ``httpx`` transport error).
    """

    def factory(handler: Handler, cfg: ServiceConfig | None = None) -> OpenRouterClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return OpenRouterClient(cfg or config, http_client=http_client, sleep=sleep)

    return factory

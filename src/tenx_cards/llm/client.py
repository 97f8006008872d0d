"""
OpenRouter chat-completion client.

Validate → build → {send → classify → retry}* → parse. Provides an
async-first interface with typed errors and per-attempt timeouts.
"""

import logging
import random
from collections.abc import Mapping, Sequence
from typing import Any, Self

import httpx

from tenx_cards.llm.builder import build_payload
from tenx_cards.llm.classifier import classify_response
from tenx_cards.llm.config import LLMSettings, ServiceConfig
from tenx_cards.llm.observability import record_generation
from tenx_cards.llm.parser import decode_json, parse_chat_response, parse_models_response
from tenx_cards.llm.retry import RetryPolicy, Sleep
from tenx_cards.llm.schemas import (
    ChatMessage,
    ChatRequest,
    ChatResult,
    ModelInfo,
    RequestParams,
    ResponseFormat,
)
from tenx_cards.llm.transport import HttpTransport, TransportResponse
from tenx_cards.llm.validation import validate_request

CHAT_PATH = "/chat/completions"
MODELS_PATH = "/models"

Message = ChatMessage | Mapping[str, Any]


class OpenRouterClient:
    """
    Resilient client for the OpenRouter chat API.

    Safe for concurrent use: each call owns its attempt loop and deadlines,
    and only the read-only ServiceConfig is shared.

    Args:
        config: Immutable service configuration
        http_client: Optional shared ``httpx.AsyncClient`` (not closed by this client)
        logger: Logger for request/retry records (defaults to this module's logger)
        sleep: Backoff sleep coroutine (defaults to ``asyncio.sleep``)
        rng: Random source for backoff jitter

    Example:
        >>> async with OpenRouterClient(ServiceConfig(api_key=key, default_model="openai/gpt-4o-mini")) as client:
        ...     result = await client.chat([{"role": "user", "content": "Hello!"}])
        ...     print(result.content)
    """

    def __init__(
        self,
        config: ServiceConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
        sleep: Sleep | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        self._transport = HttpTransport(config, http_client)
        self._retry = RetryPolicy(config.retry, sleep=sleep, rng=rng, logger=self._logger)

    @classmethod
    def from_settings(cls, settings: LLMSettings | None = None, **kwargs: Any) -> Self:
        """Build a client from environment settings."""
        return cls(ServiceConfig.from_settings(settings), **kwargs)

    @property
    def config(self) -> ServiceConfig:
        return self._config

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def chat(
        self,
        messages: Sequence[Message],
        *,
        model: str | None = None,
        params: RequestParams | Mapping[str, Any] | None = None,
        response_format: ResponseFormat | Mapping[str, Any] | None = None,
    ) -> ChatResult:
        """
        Send a chat completion and return the parsed first choice.

        Args:
            messages: Conversation (``ChatMessage`` or ``{"role", "content"}`` dicts)
            model: Model override (defaults to ``config.default_model``)
            params: Sampling parameters overriding config defaults key by key
            response_format: Strict JSON-schema structured-output descriptor

        Returns:
            ChatResult with content, finish reason and usage

        Raises:
            ValidationError: Malformed request (no network call made)
            AuthError: Invalid API key
            ModelError: Unknown or unavailable model
            RateLimitError: Rate limited after all retries
            APIError: Other provider error
            NetworkError: Connection failure or timeout after all retries
            ParseError: Malformed success envelope
        """
        request = ChatRequest(
            messages=list(messages or []),
            model=model,
            params=dict(params) if isinstance(params, Mapping) else params,
            response_format=response_format,
        )
        validate_request(request)
        payload = build_payload(request, self._config)

        self._logger.info(
            "Calling OpenRouter chat completion with model %s (%d messages)",
            payload["model"],
            len(payload["messages"]),
            extra={"endpoint": CHAT_PATH, "method": "POST", "model": payload["model"]},
        )

        response = await self._request("POST", CHAT_PATH, payload, model=payload["model"])
        result = parse_chat_response(decode_json(response.text, status_code=response.status_code))
        record_generation(result)
        return result

    async def list_models(self) -> list[ModelInfo]:
        """
        Fetch the models available to this API key.

        Uses the same transport, retry and error path as chat().
        """
        self._logger.info(
            "Fetching OpenRouter model listing",
            extra={"endpoint": MODELS_PATH, "method": "GET"},
        )
        response = await self._request("GET", MODELS_PATH)
        return parse_models_response(decode_json(response.text, status_code=response.status_code))

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        *,
        model: str | None = None,
    ) -> TransportResponse:
        secret = self._config.api_key.get_secret_value()

        async def attempt(n: int) -> TransportResponse:
            self._logger.debug(
                "%s %s attempt %d", method, path, n + 1, extra={"endpoint": path, "attempt": n + 1}
            )
            response = await self._transport.send(method, path, json=payload)
            if not response.is_success:
                raise classify_response(
                    response.status_code,
                    response.text,
                    response.headers,
                    retryable_statuses=self._config.retry.retryable_statuses,
                    model=model,
                    secret=secret,
                )
            return response

        return await self._retry.execute(attempt, operation=f"{method} {path}")


async def complete(
    messages: Sequence[Message],
    *,
    model: str | None = None,
    params: RequestParams | Mapping[str, Any] | None = None,
    response_format: ResponseFormat | Mapping[str, Any] | None = None,
    settings: LLMSettings | None = None,
) -> ChatResult:
    """
    One-shot chat completion using a client built from settings.

    Args:
        messages: Conversation messages
        model: Model override (defaults to settings.default_model)
        params: Sampling parameters
        response_format: Optional structured-output descriptor
        settings: Optional custom LLMSettings instance (uses global if not provided)

    Example:
        >>> result = await complete(
        ...     [{"role": "user", "content": "Hello!"}],
        ...     model="openai/gpt-4o-mini",
        ... )
        >>> print(result.content)
    """
    async with OpenRouterClient.from_settings(settings) as client:
        return await client.chat(
            messages,
            model=model,
            params=params,
            response_format=response_format,
        )
